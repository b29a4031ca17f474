"""Drawing of tile map layers, rows and parallax backgrounds onto pygame surfaces."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

import pygame

from hedgemaze.blocks import Block, MapError, MapErrorCode
from hedgemaze.colours import MAGIC_PINK, RGB, decode_pixels
from hedgemaze.tilemap import TileMap

_GFX_FIELDS = ("bgoff", "fgoff", "fgoff2", "fgoff3")


def _tdiv(numerator: int, denominator: int) -> int:
    """Integer division that truncates toward zero."""
    if denominator == 0:
        raise MapError(MapErrorCode.MAP_LOAD_ERROR, "division by a zero map unit")
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def _tmod(numerator: int, denominator: int) -> int:
    """Remainder matching truncating division."""
    return numerator - denominator * _tdiv(numerator, denominator)


@contextmanager
def _clipped(surface: pygame.Surface, x: int, y: int, w: int, h: int) -> Iterator[None]:
    previous = surface.get_clip()
    surface.set_clip(pygame.Rect(x, y, w, h))
    try:
        yield
    finally:
        surface.set_clip(previous)


class MapRenderer:
    """Builds tile surfaces for a map and draws its current layer."""

    def __init__(self, tilemap: TileMap, convert_magic_pink: bool = True) -> None:
        self.tilemap = tilemap
        self.convert_magic_pink = bool(convert_magic_pink)
        header = tilemap.header
        count = max(header.numblockgfx, 0)
        if count and (header.blockwidth <= 0 or header.blockheight <= 0):
            raise MapError(MapErrorCode.CVB_FAILED, "tiles have no size")
        if count and tilemap.data.graphics is None:
            raise MapError(MapErrorCode.MAP_LOAD_ERROR, "map has no tile graphics")
        per_tile = header.blockwidth * header.blockheight
        self._pixels: list[RGB] = (
            decode_pixels(
                tilemap.data.graphics, header.depth, tilemap.data.palette, per_tile * count, self.convert_magic_pink
            )
            if count
            else []
        )
        self._count = count
        self.tiles: list[pygame.Surface] = []
        self.restore()

    def _make_tile(self, pixels: list[RGB]) -> pygame.Surface:
        buffer = bytearray()
        for rgb in pixels:
            alpha = 0 if self.convert_magic_pink and rgb == MAGIC_PINK else 255
            buffer.extend((*rgb, alpha))
        size = (self.tilemap.block_width, self.tilemap.block_height)
        return pygame.image.frombuffer(bytes(buffer), size, "RGBA").copy()

    def restore(self) -> None:
        """Recreate every tile surface from the map's pixel data."""
        per_tile = self.tilemap.block_width * self.tilemap.block_height
        self.tiles = [
            self._make_tile(self._pixels[start:start + per_tile])
            for start in range(0, per_tile * self._count, per_tile)
        ]

    @property
    def _staggered(self) -> bool:
        header = self.tilemap.header
        return bool(header.blockstaggerx or header.blockstaggery)

    def _tile(self, index: int) -> pygame.Surface:
        if not 0 <= index < len(self.tiles):
            raise MapError(MapErrorCode.MAP_LOAD_ERROR, f"block refers to missing graphic {index}")
        return self.tiles[index]

    def _block_at(self, index: int) -> Block | None:
        tilemap = self.tilemap
        if not 0 <= index < tilemap.width * tilemap.height:
            return None
        return tilemap.block(index % tilemap.width, index // tilemap.width)

    def _walk(self, mapxo: int, mapyo: int, x: int, y: int, w: int, h: int) -> Iterator[tuple[int, int, int]]:
        """Yield (cell index, x, y) for every tile position covering the view."""
        header = self.tilemap.header
        width = self.tilemap.width
        gapx, gapy = header.blockgapx, header.blockgapy
        if gapx <= 0 or gapy <= 0:
            raise MapError(MapErrorCode.MAP_LOAD_ERROR, "map has no block gap")
        stagx, stagy = header.blockstaggerx, header.blockstaggery
        mapxo -= stagx
        mapyo -= stagy
        if self._staggered:
            row = _tdiv(mapxo, gapx) + _tdiv(mapyo, gapy) * width * 2
            shift_x, shift_y = gapx, gapy
        else:
            row = _tdiv(mapxo, gapx) + _tdiv(mapyo, gapy) * width
            shift_x = shift_y = 0
        vclip = _tmod(mapyo, gapy)
        hclip = _tmod(mapxo, gapx)
        left = x - hclip - shift_x
        for py in range(y - vclip - shift_y, y + h, gapy):
            for offset, px in enumerate(range(left, x + w, gapx)):
                yield row + offset, px, py
            if self._staggered:
                row += width
                for offset, px in enumerate(range(left + stagx, x + w, gapx)):
                    yield row + offset, px, py + stagy
            row += width

    def draw_bg(self, surface: pygame.Surface, mapxo: int, mapyo: int, x: int, y: int, w: int, h: int) -> None:
        """Draw the background tiles of the current layer into a view rectangle."""
        area = pygame.Rect(0, 0, self.tilemap.block_width, self.tilemap.block_height)
        with _clipped(surface, x, y, w, h):
            for index, px, py in self._walk(mapxo, mapyo, x, y, w, h):
                block = self._block_at(index)
                if block is None:
                    continue
                if self._staggered:
                    if block.bgoff != 0:
                        surface.blit(self._tile(block.bgoff), (px, py))
                else:
                    surface.blit(self._tile(block.bgoff), (px, py), area)

    def draw_fg(
        self, surface: pygame.Surface, mapxo: int, mapyo: int, x: int, y: int, w: int, h: int, layer: int = 0
    ) -> None:
        """Draw one of the three foreground tile layers (0, 1 or 2) into a view rectangle."""
        field_name = "fgoff" if not layer else "fgoff2" if layer == 1 else "fgoff3"
        with _clipped(surface, x, y, w, h):
            for index, px, py in self._walk(mapxo, mapyo, x, y, w, h):
                block = self._block_at(index)
                if block is None:
                    continue
                graphic = getattr(block, field_name)
                if graphic != 0:
                    surface.blit(self._tile(graphic), (px, py))

    def _index_of(self, block: Block) -> int | None:
        return next((index for index, candidate in enumerate(self.tilemap.blocks) if candidate is block), None)

    def _draw_stack(self, surface: pygame.Surface, block: Block, px: int, py: int) -> None:
        bw, bh = self.tilemap.block_width, self.tilemap.block_height
        blocks = self.tilemap.blocks
        position = self._index_of(block)
        first = 1
        lift = 0
        while True:
            for field_name in _GFX_FIELDS[first:]:
                graphic = getattr(block, field_name)
                if field_name == "bgoff" or graphic != 0:
                    target = (px, py - lift)
                    if block.unused2 and not block.unused3:
                        surface.blit(self._tile(block.bgoff), target, pygame.Rect(0, 0, bw // 2, bh))
                    elif not block.unused2 and block.unused3:
                        surface.blit(self._tile(block.bgoff), target, pygame.Rect(bw // 2, 0, bw // 2, bh))
                    else:
                        surface.blit(self._tile(graphic), target)
                lift += bh
            if not block.unused1 or position is None or position + 1 >= len(blocks):
                break
            position += 1
            block = blocks[position]
            first = 0

    def draw_row(
        self,
        surface: pygame.Surface,
        mapxo: int,
        mapyo: int,
        x: int,
        y: int,
        w: int,
        h: int,
        row: int,
        cellcall: Callable[[int, int, int, int], None] | None = None,
    ) -> None:
        """Draw one map row of stacked foreground tiles, calling ``cellcall`` for each cell."""
        tilemap = self.tilemap
        header = tilemap.header
        gapx, gapy = header.blockgapx, header.blockgapy
        if gapx <= 0 or gapy <= 0:
            raise MapError(MapErrorCode.MAP_LOAD_ERROR, "map has no block gap")
        if _tdiv(mapyo, gapy) + row >= tilemap.height:
            return
        if self._staggered:
            mapxo -= header.blockstaggerx
            mapyo -= header.blockstaggery
            if _tdiv(mapyo, gapy) * 2 + row >= tilemap.height - 1:
                return

        vclip = _tmod(mapyo, gapy)
        hclip = _tmod(mapxo, gapx)
        py = y - vclip
        start = 0
        cx = _tdiv(mapxo, gapx)
        if self._staggered:
            cy = _tdiv(mapyo, gapy) * 2 + row
            shift_x = gapx
            py += _tdiv(row, 2) * gapy - gapy
            if row & 1:
                py += header.blockstaggery
                start = header.blockstaggerx
        else:
            cy = _tdiv(mapyo, gapy) + row
            shift_x = 0
            py += row * gapy
        index = cx + cy * tilemap.width

        with _clipped(surface, x, y, w, h):
            for px in range(start + x - hclip - shift_x, x + w, gapx):
                if cellcall is not None:
                    cellcall(cx, cy, px, py)
                block = self._block_at(index)
                if block is not None:
                    self._draw_stack(surface, block, px, py)
                index += 1
                cx += 1

    def make_parallax(self, source: pygame.Surface) -> pygame.Surface:
        """Return ``source`` extended by one tile on the right and bottom so it wraps seamlessly."""
        _ = self.tilemap.cells
        bw, bh = self.tilemap.block_width, self.tilemap.block_height
        width, height = source.get_size()
        result = pygame.Surface((width + bw, height + bh), pygame.SRCALPHA)
        result.blit(source, (0, 0))
        result.blit(source, (0, height), pygame.Rect(0, 0, width, bh))
        column = result.subsurface(pygame.Rect(0, 0, bw, height + bh)).copy()
        result.blit(column, (width, 0))
        return result

    def draw_parallax(
        self, surface: pygame.Surface, parallax: pygame.Surface, mapxo: int, mapyo: int, x: int, y: int, w: int, h: int
    ) -> None:
        """Draw a parallax surface behind every tile whose trigger bit is set."""
        if self._staggered:
            return
        tilemap = self.tilemap
        bw, bh = tilemap.block_width, tilemap.block_height
        par_w, par_h = parallax.get_size()
        span_x, span_y = par_w - bw, par_h - bh
        if span_x <= 0 or span_y <= 0:
            raise MapError(MapErrorCode.NOT_SUPPORTED, "parallax surface is too small")

        para_x = (_tmod(mapxo - _tmod(mapxo, bw), span_x) - _tmod(_tdiv(mapxo, 2), span_x)) % span_x
        para_y = (_tmod(mapyo - _tmod(mapyo, bh), span_y) - _tmod(_tdiv(mapyo, 2), span_y)) % span_y
        row_index = _tdiv(mapxo, bw) + _tdiv(mapyo, bh) * tilemap.width
        left = x - _tmod(mapxo, bw)

        with _clipped(surface, x, y, w, h):
            for py in range(y - _tmod(mapyo, bh), y + h, bh):
                offset_x = para_x
                index = row_index
                for px in range(left, x + w, bw):
                    block = self._block_at(index)
                    if block is not None and block.trigger:
                        surface.blit(parallax, (px, py), pygame.Rect(offset_x, para_y, bw, bh))
                    offset_x += bw
                    if offset_x >= span_x:
                        offset_x -= span_x
                    index += 1
                para_y += bh
                if para_y >= span_y:
                    para_y -= span_y
                row_index += tilemap.width