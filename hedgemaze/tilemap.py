"""A loaded tile map: layers, block lookup, animation playback and layer replacement."""

from __future__ import annotations

from array import array
from dataclasses import dataclass
from os import PathLike

from hedgemaze.blocks import Animation, Block, MapError, MapErrorCode
from hedgemaze.blocks import init_anims as _init_anims
from hedgemaze.blocks import update_anims as _update_anims
from hedgemaze.fmp import LAYER_COUNT, MapData, MapHeader, decode_fmp, load_fmp

_USER_FIELDS = {number: f"user{number}" for number in range(1, 8)}


def _tdiv(numerator: int, denominator: int) -> int:
    """Integer division that truncates toward zero."""
    if denominator == 0:
        raise MapError(MapErrorCode.MAP_LOAD_ERROR, "division by a zero map unit")
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def _to_short(value: int) -> int:
    return ((value + 0x8000) & 0xFFFF) - 0x8000


def _check_layer(layer: int) -> None:
    if not 0 <= layer < LAYER_COUNT:
        raise MapError(MapErrorCode.MAP_LOAD_ERROR, f"layer {layer} is out of range")


@dataclass
class TileMap:
    """A decoded map with a current layer used for block lookups."""

    data: MapData
    layer: int = 0

    @classmethod
    def from_bytes(cls, data: bytes) -> TileMap:
        """Decode a map held in memory."""
        return cls(decode_fmp(data))

    @classmethod
    def from_file(cls, path: str | PathLike[str]) -> TileMap:
        """Load and decode a map file."""
        return cls(load_fmp(path))

    @property
    def header(self) -> MapHeader:
        return self.data.header

    @property
    def blocks(self) -> list[Block]:
        return self.data.blocks

    @property
    def anims(self) -> list[Animation]:
        return self.data.anims

    @property
    def anim_seq(self) -> list[int]:
        return self.data.anim_seq

    @property
    def layers(self) -> list[list[int] | None]:
        return self.data.layers

    @property
    def width(self) -> int:
        return self.header.width

    @property
    def height(self) -> int:
        return self.header.height

    @property
    def block_width(self) -> int:
        return self.header.blockwidth

    @property
    def block_height(self) -> int:
        return self.header.blockheight

    @property
    def pixel_width(self) -> int:
        return self.width * self.block_width

    @property
    def pixel_height(self) -> int:
        return self.height * self.block_height

    @property
    def cells(self) -> list[int]:
        """Cell values of the current layer, row by row."""
        cells = self.layers[self.layer]
        if cells is None:
            raise MapError(MapErrorCode.MAP_LOAD_ERROR, f"layer {self.layer} holds no data")
        return cells

    def change_layer(self, layer: int) -> int:
        """Make ``layer`` the current layer and return it."""
        _check_layer(layer)
        if self.layers[layer] is None:
            raise MapError(MapErrorCode.MAP_LOAD_ERROR, f"layer {layer} holds no data")
        self.layer = layer
        return layer

    def init_anims(self) -> None:
        """Reset every animation to its first frame."""
        _init_anims(self.anims)

    def update_anims(self) -> None:
        """Advance every animation by one logic tick."""
        _update_anims(self.anims)

    def _staggered_point(self, xpix: int, ypix: int) -> tuple[int, int]:
        header = self.header
        if header.blockstaggerx or header.blockstaggery:
            return xpix + header.blockstaggerx, ypix + header.blockstaggery
        return xpix, ypix

    def x_offset(self, xpix: int, ypix: int) -> int:
        """Column of the tile under a pixel position, clamped to the map."""
        xpix, _ = self._staggered_point(xpix, ypix)
        column = max(_tdiv(xpix, self.header.blockgapx), 0)
        return min(column, self.width - 1)

    def y_offset(self, xpix: int, ypix: int) -> int:
        """Row of the tile under a pixel position, clamped to the map."""
        _, ypix = self._staggered_point(xpix, ypix)
        row = max(_tdiv(ypix, self.header.blockgapy), 0)
        return min(row, self.height - 1)

    def _in_pixels(self, x: int, y: int) -> bool:
        return 0 <= x < self.pixel_width and 0 <= y < self.pixel_height

    def _cell_index(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"tile ({x}, {y}) lies outside the map")
        return y * self.width + x

    def _resolve(self, value: int) -> Block:
        if value >= 0:
            return self.blocks[value]
        position = len(self.anims) + value
        if position < 0:
            raise IndexError(f"cell refers to missing animation {value}")
        anim = self.anims[position]
        return self.blocks[self.anim_seq[anim.curoff]]

    def block_at_pixel(self, x: int, y: int) -> Block | None:
        """Block under a pixel position, or None outside the map."""
        if not self._in_pixels(x, y):
            return None
        return self.block(self.x_offset(x, y), self.y_offset(x, y))

    def block(self, x: int, y: int) -> Block:
        """Block shown at tile column ``x`` and row ``y`` of the current layer."""
        return self._resolve(self.cells[self._cell_index(x, y)])

    def set_block_at_pixel(self, x: int, y: int, value: int) -> None:
        """Set the cell under a pixel position; positions outside the map are ignored."""
        if not self._in_pixels(x, y):
            return
        self.set_block(self.x_offset(x, y), self.y_offset(x, y), value)

    def set_block(self, x: int, y: int, value: int) -> None:
        """Set the cell at tile column ``x`` and row ``y`` of the current layer."""
        self.cells[self._cell_index(x, y)] = _to_short(value)

    def find_block_id(self, value: int, usernum: int) -> int | None:
        """Index of the first block whose user field ``usernum`` equals ``value``."""
        field_name = _USER_FIELDS.get(usernum)
        if field_name is None:
            raise ValueError(f"user field must be 1 to 7, not {usernum}")
        return next(
            (index for index, block in enumerate(self.blocks) if getattr(block, field_name) == value),
            None,
        )

    def decode_mar(self, data: bytes, layer: int, init_anims: bool = True) -> None:
        """Replace ``layer`` with raw native-order cell values."""
        _check_layer(layer)
        values = array("h")
        size = values.itemsize * self.width * self.height
        if len(data) < size:
            raise MapError(MapErrorCode.MAP_LOAD_ERROR, "layer data is truncated")
        values.frombytes(bytes(data[:size]))
        cells = values.tolist()
        if not any(value & 0xF for value in cells):
            cells = [_tdiv(value, 32 if value >= 0 else 16) for value in cells]
        self.layers[layer] = cells
        if init_anims:
            self.init_anims()

    def load_mar(self, path: str | PathLike[str], layer: int) -> None:
        """Replace ``layer`` with cell values read from a file."""
        _check_layer(layer)
        try:
            with open(path, "rb") as handle:
                data = handle.read()
        except OSError as exc:
            raise MapError(MapErrorCode.NO_OPEN, f"cannot open layer file {path}") from exc
        self.decode_mar(data, layer, True)