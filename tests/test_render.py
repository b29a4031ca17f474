import struct

import pygame
import pytest

from hedgemaze.blocks import MapError
from hedgemaze.render import MapRenderer
from hedgemaze.tilemap import TileMap

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
YELLOW = (255, 255, 0, 255)
WHITE = (255, 255, 255, 255)


def _chunk(tag, body):
    return tag + struct.pack(">I", len(body)) + body


def _header(width, height, numblockstr, numblockgfx, bw=4, bh=4, depth=24):
    body = bytes([1, 0, 0, 1]) + struct.pack(
        ">10h", width, height, 0, 0, bw, bh, depth, 32, numblockstr, numblockgfx
    ) + bytes(4)
    return _chunk(b"MPHD", body)


def _block(bg=0, fg=0, flags=0):
    return struct.pack(">4i2I2H4B", bg, fg, 0, 0, 0, 0, 0, 0, 0, 0, 0, flags)


def _fmp(*chunks):
    body = b"".join(chunks)
    return b"FORM" + struct.pack(">I", 4 + len(body)) + b"FMAP" + body


def _map_bytes(with_graphics=True):
    graphics = bytes(3 * 16) + bytes((255, 0, 0)) * 16 + bytes((0, 255, 0)) * 16
    chunks = [
        _header(2, 2, 2, 3),
        _chunk(b"BKDT", _block(bg=1) + _block(bg=2, fg=1, flags=0x10)),
        _chunk(b"BODY", struct.pack(">4h", 0, 1, 1, 0)),
    ]
    if with_graphics:
        chunks.append(_chunk(b"BGFX", graphics))
    return _fmp(*chunks)


@pytest.fixture
def renderer():
    return MapRenderer(TileMap.from_bytes(_map_bytes()), True)


def _blue(size=(8, 8)):
    surface = pygame.Surface(size)
    surface.fill(BLUE)
    return surface


def test_tiles_are_built(renderer):
    assert len(renderer.tiles) == 3
    assert renderer.tiles[1].get_size() == (4, 4)
    assert renderer.tiles[1].get_at((0, 0)) == RED
    assert renderer.tiles[2].get_at((3, 3)) == GREEN


def test_black_becomes_transparent(renderer):
    assert renderer.tiles[0].get_at((0, 0)).a == 0


def test_black_becomes_opaque_pink_without_conversion():
    renderer = MapRenderer(TileMap.from_bytes(_map_bytes()), False)
    assert renderer.tiles[0].get_at((0, 0)) == (255, 0, 255, 255)


def test_missing_graphics_raise():
    with pytest.raises(MapError):
        MapRenderer(TileMap.from_bytes(_map_bytes(with_graphics=False)), True)


def test_restore_rebuilds_tiles(renderer):
    renderer.tiles[1].fill((0, 0, 0, 255))
    renderer.restore()
    assert renderer.tiles[1].get_at((2, 2)) == RED


def test_draw_bg_whole_map(renderer):
    surface = _blue()
    renderer.draw_bg(surface, 0, 0, 0, 0, 8, 8)
    assert surface.get_at((1, 1)) == RED
    assert surface.get_at((5, 1)) == GREEN
    assert surface.get_at((1, 5)) == GREEN
    assert surface.get_at((5, 5)) == RED


def test_draw_bg_scrolled(renderer):
    surface = _blue((4, 8))
    renderer.draw_bg(surface, 4, 0, 0, 0, 4, 8)
    assert surface.get_at((1, 1)) == GREEN
    assert surface.get_at((1, 5)) == RED


def test_draw_bg_respects_and_restores_clip(renderer):
    surface = _blue()
    renderer.draw_bg(surface, 0, 0, 0, 0, 4, 4)
    assert surface.get_at((1, 1)) == RED
    assert surface.get_at((5, 5)) == BLUE
    assert surface.get_clip() == surface.get_rect()


def test_draw_fg_skips_empty_foreground(renderer):
    surface = _blue()
    renderer.draw_fg(surface, 0, 0, 0, 0, 8, 8, 0)
    assert surface.get_at((1, 1)) == BLUE
    assert surface.get_at((5, 1)) == RED
    assert surface.get_at((1, 5)) == RED


def test_draw_fg_other_layer_is_empty(renderer):
    surface = _blue()
    renderer.draw_fg(surface, 0, 0, 0, 0, 8, 8, 1)
    assert surface.get_at((5, 1)) == BLUE


def test_draw_row_calls_back_for_each_cell(renderer):
    calls = []
    surface = _blue()
    renderer.draw_row(surface, 0, 0, 0, 0, 8, 8, 0, lambda *cell: calls.append(cell))
    assert calls == [(0, 0, 0, 0), (1, 0, 4, 0)]
    assert surface.get_at((5, 1)) == RED
    assert surface.get_at((1, 1)) == BLUE


def test_draw_row_second_row(renderer):
    calls = []
    renderer.draw_row(_blue(), 0, 0, 0, 0, 8, 8, 1, lambda *cell: calls.append(cell))
    assert [(cx, cy) for cx, cy, _, _ in calls] == [(0, 1), (1, 1)]
    assert all(dy == 4 for _, _, _, dy in calls)


def test_draw_row_past_map_does_nothing(renderer):
    calls = []
    surface = _blue()
    renderer.draw_row(surface, 0, 0, 0, 0, 8, 8, 2, lambda *cell: calls.append(cell))
    assert calls == []
    assert surface.get_at((5, 1)) == BLUE


def test_make_parallax_wraps(renderer):
    source = _blue()
    source.set_at((0, 0), WHITE)
    result = renderer.make_parallax(source)
    assert result.get_size() == (12, 12)
    assert result.get_at((8, 8)) == WHITE
    assert result.get_at((0, 8)) == WHITE
    assert result.get_at((8, 0)) == WHITE
    assert result.get_at((1, 1)) == BLUE


def test_draw_parallax_only_on_trigger_tiles(renderer):
    parallax = pygame.Surface((12, 12))
    parallax.fill(YELLOW)
    surface = _blue()
    renderer.draw_parallax(surface, parallax, 0, 0, 0, 0, 8, 8)
    assert surface.get_at((5, 1)) == YELLOW
    assert surface.get_at((1, 5)) == YELLOW
    assert surface.get_at((1, 1)) == BLUE
    assert surface.get_at((5, 5)) == BLUE


def test_draw_parallax_too_small_raises(renderer):
    with pytest.raises(MapError):
        renderer.draw_parallax(_blue(), pygame.Surface((4, 4)), 0, 0, 0, 0, 8, 8)