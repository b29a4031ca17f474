import struct

import pytest

from hedgemaze.blocks import AnimType, MapError, MapErrorCode
from hedgemaze.fmp import (
    decode_animations,
    decode_blocks,
    decode_fmp,
    decode_header,
    decode_layer,
    load_fmp,
    parse_novc,
    read_chunk_size,
    read_long,
    read_short,
)


def _short(value, lsb=True):
    return struct.pack("<h" if lsb else ">h", value)


def _long(value, lsb=True):
    return struct.pack("<i" if lsb else ">i", value)


def _chunk(tag, payload):
    return tag + struct.pack(">I", len(payload)) + payload


def _mphd(width=4, height=2, bw=8, bh=8, depth=24, strsize=32, numstr=2, numgfx=2,
          maptype=1, lsb=True, version=0, gaps=None):
    payload = bytes([version, 0, 1 if lsb else 0, maptype])
    payload += _short(width, lsb) + _short(height, lsb) + bytes(4)
    payload += b"".join(_short(v, lsb) for v in (bw, bh, depth, strsize, numstr, numgfx))
    payload += bytes(4)
    if gaps:
        payload += b"".join(_short(v, lsb) for v in gaps)
    return _chunk(b"MPHD", payload)


def _block(bg=0, fg=0, fg2=0, fg3=0, user1=0, user2=0, user3=0, user4=0,
           user5=0, user6=0, user7=0, flags=0):
    return struct.pack("<iiiiIIHHBBBB", bg, fg, fg2, fg3, user1, user2,
                       user3, user4, user5, user6, user7, flags)


def _layer(values, tag=b"BODY"):
    return _chunk(tag, b"".join(_short(v) for v in values))


def _form(*chunks):
    body = b"FMAP" + b"".join(chunks)
    return b"FORM" + struct.pack(">I", len(body)) + body


def test_read_short_both_orders_and_sign():
    assert read_short(struct.pack("<h", -1234), 0, True) == -1234
    assert read_short(struct.pack(">h", 1234), 0, False) == 1234


def test_read_long_both_orders():
    assert read_long(b"xx" + struct.pack("<i", -70000), 2, True) == -70000
    assert read_long(struct.pack(">i", 123456), 0, False) == 123456


def test_read_chunk_size_is_big_endian():
    assert read_chunk_size(struct.pack(">I", 70000), 0) == 70000


def test_reading_past_end_raises():
    with pytest.raises(MapError) as info:
        read_short(b"\x01", 0, True)
    assert info.value.code == MapErrorCode.MAP_LOAD_ERROR


def test_decode_header_defaults_gaps_to_block_size():
    header = decode_header(_mphd(width=5, height=3, bw=16, bh=24, depth=16, numstr=7, numgfx=9))
    assert (header.width, header.height) == (5, 3)
    assert (header.blockwidth, header.blockheight) == (16, 24)
    assert header.depth == 16
    assert (header.numblockstr, header.numblockgfx) == (7, 9)
    assert (header.blockgapx, header.blockgapy) == (16, 24)
    assert (header.blockstaggerx, header.blockstaggery) == (0, 0)
    assert header.lsb is True


def test_decode_header_big_endian_with_gaps():
    header = decode_header(_mphd(width=6, lsb=False, gaps=(10, 12, 5, 6)))
    assert header.lsb is False
    assert header.width == 6
    assert (header.blockgapx, header.blockgapy) == (10, 12)
    assert (header.blockstaggerx, header.blockstaggery) == (5, 6)


@pytest.mark.parametrize("kwargs", [{"version": 2}, {"maptype": 4}])
def test_decode_header_rejects_newer_maps(kwargs):
    with pytest.raises(MapError) as info:
        decode_header(_mphd(**kwargs))
    assert info.value.code == MapErrorCode.MAP_TOO_NEW


def test_decode_blocks_fields_and_flags():
    header = decode_header(_mphd(numstr=2))
    chunk = _chunk(b"BKDT", _block(bg=1, fg=2, fg2=3, fg3=4, user1=0xFFFFFFFF, user3=0xFFFF,
                                   user5=5, user6=6, user7=7, flags=0x01)
                   + _block(flags=0x80))
    first, second = decode_blocks(chunk, header)
    assert (first.bgoff, first.fgoff, first.fgoff2, first.fgoff3) == (1, 2, 3, 4)
    assert first.user1 == 0xFFFFFFFF
    assert first.user3 == 0xFFFF
    assert (first.user5, first.user6, first.user7) == (5, 6, 7)
    assert first.tl and not first.tr and not first.unused3
    assert second.unused3 and not second.tl


def test_decode_blocks_type0_divides_byte_offsets():
    header = decode_header(_mphd(bw=8, bh=8, depth=16, numstr=1, maptype=0))
    graphic = 8 * 8 * 2
    chunk = _chunk(b"BKDT", _block(bg=graphic * 3, fg=graphic * 5))
    (block,) = decode_blocks(chunk, header)
    assert (block.bgoff, block.fgoff) == (3, 5)


def test_decode_layer_raw():
    header = decode_header(_mphd(width=3, height=2, maptype=1))
    values = [0, 1, 2, -1, 5, 4]
    assert decode_layer(_layer(values), header) == values


def test_decode_layer_type0_scales_values():
    header = decode_header(_mphd(width=2, height=1, strsize=32, maptype=0))
    assert decode_layer(_layer([32 * 4, -16 * 3]), header) == [4, -3]


def test_decode_layer_run_length():
    header = decode_header(_mphd(width=4, height=2, maptype=2))
    payload = (_short(-4) + _short(7)
               + _short(2) + _short(1) + _short(2) + _short(-2) + _short(5))
    assert decode_layer(_chunk(b"BODY", payload), header) == [7, 7, 7, 7, 1, 2, 5, 5]


def test_decode_layer_back_reference():
    header = decode_header(_mphd(width=4, height=2, maptype=3))
    payload = _short(4) + b"".join(_short(v) for v in (1, 2, 3, 4)) + _short(-4) + _short(-4)
    assert decode_layer(_chunk(b"BODY", payload), header) == [1, 2, 3, 4, 1, 2, 3, 4]


def test_decode_layer_truncated_raises():
    header = decode_header(_mphd(width=4, height=2, maptype=1))
    with pytest.raises(MapError):
        decode_layer(_layer([1, 2, 3]), header)


def test_decode_animations():
    header = decode_header(_mphd(maptype=1))
    end = bytes([255, 0, 0, 0]) + _long(0) * 3
    loop = bytes([AnimType.LOOPF, 2, 0, 0]) + _long(1) + _long(0) + _long(2)
    sequence, anims = decode_animations(_chunk(b"ANDT", _long(2) + _long(3) + end + loop), header)
    assert sequence == [2, 3]
    assert [a.antype for a in anims] == [AnimType.END, AnimType.LOOPF]
    assert anims[1].curoff == anims[1].startoff
    assert anims[1].count == anims[1].delay


def test_decode_animations_without_end_marker_raises():
    header = decode_header(_mphd(maptype=1))
    with pytest.raises(MapError):
        decode_animations(_chunk(b"ANDT", bytes([1, 0, 0, 0]) + _long(0) * 3), header)


def test_parse_novc_ranges_and_singles():
    assert parse_novc("1,3-5", 10) == frozenset({1, 3, 4, 5})


@pytest.mark.parametrize("text", ["12", "5-3", ""])
def test_parse_novc_stops_at_bad_entries(text):
    assert parse_novc(text, 10) == frozenset()


def test_decode_fmp_whole_file():
    data = _form(
        _mphd(width=2, height=1, numstr=1, numgfx=1),
        _chunk(b"BKDT", _block(bg=0, flags=0x01)),
        _chunk(b"BGFX", b"\x01\x02\x03"),
        _chunk(b"BGFX", b"\x09"),
        _chunk(b"NOVC", b"0\x00"),
        _chunk(b"ZZZZ", b"ignored"),
        _layer([0, 0]),
        _layer([1, 1], tag=b"LYR3"),
    )
    result = decode_fmp(data)
    assert result.header.width == 2
    assert result.blocks[0].tl
    assert result.graphics == b"\x01\x02\x03"
    assert result.novc_text == "0"
    assert result.layers[0] == [0, 0]
    assert result.layers[3] == [1, 1]
    assert result.layers[1] is None


def test_decode_fmp_long_novc_is_dropped():
    result = decode_fmp(_form(_mphd(), _chunk(b"NOVC", b"1" * 80)))
    assert result.novc_text == ""


def test_decode_fmp_bad_magic():
    data = _form(_mphd())
    with pytest.raises(MapError) as info:
        decode_fmp(b"FROM" + data[4:])
    assert info.value.code == MapErrorCode.MAP_LOAD_ERROR


def test_decode_fmp_agfx_not_supported():
    with pytest.raises(MapError) as info:
        decode_fmp(_form(_mphd(), _chunk(b"AGFX", b"\x00")))
    assert info.value.code == MapErrorCode.NOT_SUPPORTED


def test_decode_fmp_truncated_chunk():
    data = _form(_mphd(), _chunk(b"BGFX", b"\x00" * 10))
    with pytest.raises(MapError) as info:
        decode_fmp(data[:-4])
    assert info.value.code == MapErrorCode.MAP_LOAD_ERROR


def test_decode_fmp_requires_header():
    with pytest.raises(MapError) as info:
        decode_fmp(_form(_chunk(b"BGFX", b"\x00")))
    assert info.value.code == MapErrorCode.MAP_LOAD_ERROR


def test_load_fmp_round_trip(tmp_path):
    path = tmp_path / "Maze0.FMP"
    path.write_bytes(_form(_mphd(width=3, height=1), _layer([2, 1, 0])))
    assert load_fmp(path).layers[0] == [2, 1, 0]


def test_load_fmp_missing_file(tmp_path):
    with pytest.raises(MapError) as info:
        load_fmp(tmp_path / "absent.FMP")
    assert info.value.code == MapErrorCode.NO_OPEN