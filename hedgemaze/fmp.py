"""Decoding of FMP tile map files: the chunked map format with header, blocks, animations and layers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from os import PathLike

from hedgemaze.blocks import Animation, Block, MapError, MapErrorCode, init_anims

LAYER_COUNT = 8
_NOVC_LIMIT = 70
_ANIM_RECORD_SIZE = 16
_LAYER_TAGS = {b"BODY": 0, **{f"LYR{n}".encode("ascii"): n for n in range(1, LAYER_COUNT)}}
_NOVC_ITEM = re.compile(r"([0-9]*)(?:-([0-9]*))?,?")


def _truncated() -> MapError:
    return MapError(MapErrorCode.MAP_LOAD_ERROR, "map data is truncated")


def _slice(data: bytes, offset: int, length: int) -> bytes:
    if offset < 0 or length < 0 or offset + length > len(data):
        raise _truncated()
    return bytes(data[offset:offset + length])


def _cdiv(numerator: int, denominator: int) -> int:
    """Integer division that truncates toward zero."""
    if denominator == 0:
        raise MapError(MapErrorCode.MAP_LOAD_ERROR, "map header gives a zero-sized unit")
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def read_short(data: bytes, offset: int, lsb: bool) -> int:
    """Read a signed 16-bit value in the map's byte order."""
    return int.from_bytes(_slice(data, offset, 2), "little" if lsb else "big", signed=True)


def read_long(data: bytes, offset: int, lsb: bool) -> int:
    """Read a signed 32-bit value in the map's byte order."""
    return int.from_bytes(_slice(data, offset, 4), "little" if lsb else "big", signed=True)


def read_chunk_size(data: bytes, offset: int) -> int:
    """Read a chunk length, which is always stored big-endian."""
    return int.from_bytes(_slice(data, offset, 4), "big")


@dataclass
class MapHeader:
    """Contents of the MPHD chunk."""

    lsb: bool
    maptype: int
    width: int
    height: int
    blockwidth: int
    blockheight: int
    depth: int
    blockstrsize: int
    numblockstr: int
    numblockgfx: int
    blockgapx: int
    blockgapy: int
    blockstaggerx: int
    blockstaggery: int


@dataclass
class MapData:
    """Everything decoded from one FMP file."""

    header: MapHeader
    palette: bytes | None = None
    blocks: list[Block] = field(default_factory=list)
    anim_seq: list[int] = field(default_factory=list)
    anims: list[Animation] = field(default_factory=list)
    graphics: bytes | None = None
    novc_text: str = ""
    layers: list[list[int] | None] = field(default_factory=lambda: [None] * LAYER_COUNT)


def decode_header(chunk: bytes) -> MapHeader:
    """Decode an MPHD chunk, including its 8-byte tag and size."""
    body = bytes(chunk[8:])
    if _slice(body, 0, 1)[0] > 1:
        raise MapError(MapErrorCode.MAP_TOO_NEW)
    lsb = _slice(body, 2, 1)[0] == 1
    maptype = _slice(body, 3, 1)[0]
    if maptype > 3:
        raise MapError(MapErrorCode.MAP_TOO_NEW)

    def short(offset: int) -> int:
        return read_short(body, offset, lsb)

    blockwidth = short(12)
    blockheight = short(14)
    if read_chunk_size(chunk, 4) > 28:
        gaps = (short(28), short(30), short(32), short(34))
    else:
        gaps = (blockwidth, blockheight, 0, 0)
    return MapHeader(
        lsb=lsb,
        maptype=maptype,
        width=short(4),
        height=short(6),
        blockwidth=blockwidth,
        blockheight=blockheight,
        depth=short(16),
        blockstrsize=short(18),
        numblockstr=short(20),
        numblockgfx=short(22),
        blockgapx=gaps[0],
        blockgapy=gaps[1],
        blockstaggerx=gaps[2],
        blockstaggery=gaps[3],
    )


def decode_blocks(chunk: bytes, header: MapHeader) -> list[Block]:
    """Decode a BKDT chunk into block records."""
    body = bytes(chunk[8:])
    lsb = header.lsb
    if header.blockstrsize <= 0:
        raise MapError(MapErrorCode.MAP_LOAD_ERROR, "block record size must be positive")
    graphic_size = header.blockwidth * header.blockheight * ((header.depth + 1) // 8)

    blocks = []
    for start in range(0, header.numblockstr * header.blockstrsize, header.blockstrsize):
        offsets = [read_long(body, start + 4 * n, lsb) for n in range(4)]
        if header.maptype == 0:
            offsets = [_cdiv(value, graphic_size) for value in offsets]
        flags = _slice(body, start + 31, 1)[0]
        blocks.append(
            Block(
                bgoff=offsets[0],
                fgoff=offsets[1],
                fgoff2=offsets[2],
                fgoff3=offsets[3],
                user1=read_long(body, start + 16, lsb) & 0xFFFFFFFF,
                user2=read_long(body, start + 20, lsb) & 0xFFFFFFFF,
                user3=read_short(body, start + 24, lsb) & 0xFFFF,
                user4=read_short(body, start + 26, lsb) & 0xFFFF,
                user5=body[start + 28],
                user6=body[start + 29],
                user7=body[start + 30],
                unused3=bool(flags & 0x80),
                unused2=bool(flags & 0x40),
                unused1=bool(flags & 0x20),
                trigger=bool(flags & 0x10),
                br=bool(flags & 0x08),
                bl=bool(flags & 0x04),
                tr=bool(flags & 0x02),
                tl=bool(flags & 0x01),
            )
        )
    return blocks


def _signed_byte(value: int) -> int:
    return value - 256 if value > 127 else value


def decode_animations(chunk: bytes, header: MapHeader) -> tuple[list[int], list[Animation]]:
    """Decode an ANDT chunk into the frame sequence and the animation records.

    The records are returned lowest address first, so the END marker comes first.
    """
    size = read_chunk_size(chunk, 4)
    body = _slice(chunk, 8, size)
    lsb = header.lsb

    records_start = size
    count = 0
    while True:
        records_start -= _ANIM_RECORD_SIZE
        if records_start < 0:
            raise MapError(MapErrorCode.MAP_LOAD_ERROR, "animation data has no end marker")
        count += 1
        if body[records_start] == 255:
            break

    sequence = [read_long(body, offset, lsb) for offset in range(0, records_start - records_start % 4, 4)]
    if header.maptype == 0:
        sequence = [_cdiv(value, header.blockstrsize) for value in sequence]

    anims = []
    for index in range(count):
        base = records_start + index * _ANIM_RECORD_SIZE
        offsets = [read_long(body, base + 4 + 4 * n, lsb) for n in range(3)]
        if header.maptype == 0:
            offsets = [_cdiv(value + size, 4) for value in offsets]
        anims.append(
            Animation(
                antype=_signed_byte(body[base]),
                delay=_signed_byte(body[base + 1]),
                count=_signed_byte(body[base + 2]),
                user=_signed_byte(body[base + 3]),
                curoff=offsets[0],
                startoff=offsets[1],
                endoff=offsets[2],
            )
        )
    init_anims(anims)
    return sequence, anims


def decode_layer(chunk: bytes, header: MapHeader) -> list[int]:
    """Decode a BODY or LYRn chunk into a row-major list of cell values."""
    body = bytes(chunk[8:])
    lsb = header.lsb
    cells_total = header.width * header.height
    cells: list[int] = []
    pos = 0

    def next_short() -> int:
        nonlocal pos
        value = read_short(body, pos, lsb)
        pos += 2
        return value

    if header.maptype in (0, 1):
        for _ in range(cells_total):
            value = next_short()
            if header.maptype == 0:
                value = _cdiv(value, header.blockstrsize if value >= 0 else 16)
            cells.append(value)
        return cells

    for _ in range(header.height):
        column = 0
        while column < header.width:
            run = next_short()
            if run > 0:
                cells.extend(next_short() for _ in range(run))
                column += run
            elif run < 0:
                length = -run
                if header.maptype == 2:
                    cells.extend([next_short()] * length)
                else:
                    source = len(cells) + next_short()
                    if source < 0:
                        raise MapError(MapErrorCode.MAP_LOAD_ERROR, "layer copy reaches before the start")
                    for offset in range(length):
                        if source + offset >= len(cells):
                            raise MapError(MapErrorCode.MAP_LOAD_ERROR, "layer copy reaches past the end")
                        cells.append(cells[source + offset])
                column += length
            if len(cells) > cells_total:
                raise MapError(MapErrorCode.MAP_LOAD_ERROR, "layer holds more cells than the map")
    return cells


def parse_novc(text: str, numblockgfx: int) -> frozenset[int]:
    """Parse a NOVC list such as ``"1,3-5"`` into the graphic indices it names."""
    marked: set[int] = set()
    pos = 0
    while pos < len(text) and text[pos] != "\0":
        match = _NOVC_ITEM.match(text, pos)
        first = int(match.group(1) or 0)
        if not 0 <= first < numblockgfx:
            break
        if match.group(2) is not None:
            last = int(match.group(2) or 0)
            if last < first or last >= numblockgfx:
                break
            marked.update(range(first, last + 1))
        else:
            marked.add(first)
        if match.end() == pos:
            break
        pos = match.end()
    return frozenset(marked)


def _require(header: MapHeader | None) -> MapHeader:
    if header is None:
        raise MapError(MapErrorCode.MAP_LOAD_ERROR, "map data comes before its MPHD header")
    return header


def decode_fmp(data: bytes) -> MapData:
    """Decode a whole FMP file held in memory."""
    data = bytes(data)
    if _slice(data, 0, 4) != b"FORM":
        raise MapError(MapErrorCode.MAP_LOAD_ERROR, "not a FORM file")
    remaining = read_chunk_size(data, 4) + 8 - 12
    if _slice(data, 8, 4) != b"FMAP":
        raise MapError(MapErrorCode.MAP_LOAD_ERROR, "not an FMAP file")

    header: MapHeader | None = None
    palette = graphics = None
    blocks: list[Block] = []
    anim_seq: list[int] = []
    anims: list[Animation] = []
    novc_text = ""
    layers: list[list[int] | None] = [None] * LAYER_COUNT

    pos = 12
    while remaining > 0:
        tag = _slice(data, pos, 4)
        size = read_chunk_size(data, pos + 4)
        chunk = _slice(data, pos, 8 + size)
        pos += 8 + size
        remaining -= 8 + size

        if tag == b"MPHD":
            header = decode_header(chunk)
        elif tag == b"CMAP":
            palette = chunk[8:]
        elif tag == b"BKDT":
            blocks = decode_blocks(chunk, _require(header))
        elif tag == b"ANDT":
            anim_seq, anims = decode_animations(chunk, _require(header))
        elif tag == b"AGFX":
            raise MapError(MapErrorCode.NOT_SUPPORTED, "AGFX graphics are not supported")
        elif tag == b"BGFX":
            if graphics is None:
                graphics = chunk[8:]
        elif tag == b"NOVC":
            novc_text = chunk[8:].split(b"\0", 1)[0].decode("latin-1") if size < _NOVC_LIMIT else ""
        elif tag in _LAYER_TAGS:
            layers[_LAYER_TAGS[tag]] = decode_layer(chunk, _require(header))

    return MapData(
        header=_require(header),
        palette=palette,
        blocks=blocks,
        anim_seq=anim_seq,
        anims=anims,
        graphics=graphics,
        novc_text=novc_text,
        layers=layers,
    )


def load_fmp(path: str | PathLike[str]) -> MapData:
    """Read and decode an FMP file from disk."""
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise MapError(MapErrorCode.NO_OPEN, f"cannot open map file {path}") from exc
    return decode_fmp(data)