"""Conversion of raw tile pixels stored in a map into RGB triples."""

from __future__ import annotations

from collections.abc import Iterator

from hedgemaze.blocks import MapError, MapErrorCode

MAGIC_PINK = (255, 0, 255)
_BYTES_PER_PIXEL = {8: 1, 15: 2, 16: 2, 24: 3, 32: 4}

RGB = tuple[int, int, int]


def rgb_from_15(colour: int) -> RGB:
    """Split a 15-bit 5:5:5 colour into its 0-31 components."""
    return (colour & 0x7C00) >> 10, (colour & 0x03E0) >> 5, colour & 0x001F


def rgb_from_16(colour: int) -> RGB:
    """Split a 16-bit colour into its components."""
    return (colour & 0xF800) >> 11, (colour & 0x03E0) >> 5, colour & 0x001F


def _pixels(raw: bytes, size: int, count: int) -> Iterator[bytes]:
    for start in range(0, size * count, size):
        yield raw[start:start + size]


def _from_palette(pixel: bytes, palette: bytes, convert: bool) -> RGB:
    index = pixel[0] * 3
    if index + 3 > len(palette):
        raise MapError(MapErrorCode.MAP_LOAD_ERROR, "pixel refers past the end of the palette")
    if convert and index == 0:
        return MAGIC_PINK
    return palette[index], palette[index + 1], palette[index + 2]


def _from_15(pixel: bytes) -> RGB:
    high, low = pixel
    red = (high & 0x7C) << 1
    green = (((high & 0x3) << 3) | (low >> 5)) << 3
    blue = (low & 0x1F) << 3
    rgb = (red | ((red >> 5) & 0x07), green | ((green >> 5) & 0x07), blue | ((blue >> 5) & 0x07))
    return MAGIC_PINK if sum(rgb) == 0 else rgb


def _from_16(pixel: bytes) -> RGB:
    high, low = pixel
    red = high & 0xF8
    green = (((high & 0x7) << 3) | (low >> 5)) << 2
    blue = (low & 0x1F) << 3
    rgb = (red | ((red >> 5) & 0x07), green | ((green >> 6) & 0x03), blue | ((blue >> 5) & 0x07))
    return MAGIC_PINK if sum(rgb) == 0 else rgb


def _from_24(pixel: bytes) -> RGB:
    rgb = (pixel[0], pixel[1], pixel[2])
    return MAGIC_PINK if sum(rgb) == 0 else rgb


def _from_32(pixel: bytes, convert: bool) -> RGB:
    rgb = (pixel[1], pixel[2], pixel[3])
    return MAGIC_PINK if convert and sum(rgb) == 0 else rgb


def decode_pixels(
    raw: bytes, depth: int, palette: bytes | None, count: int, convert_magic_pink: bool
) -> list[RGB]:
    """Convert ``count`` pixels of map graphics at ``depth`` bits into RGB triples.

    Black pixels become magic pink, which marks transparency; at 8 and 32
    bits this happens only when ``convert_magic_pink`` is set.
    """
    size = _BYTES_PER_PIXEL.get(depth)
    if size is None:
        raise MapError(MapErrorCode.NOT_SUPPORTED, f"colour depth {depth} is not supported")
    if count < 0 or len(raw) < size * count:
        raise MapError(MapErrorCode.MAP_LOAD_ERROR, "graphics data is truncated")
    if depth == 8 and palette is None:
        raise MapError(MapErrorCode.MAP_LOAD_ERROR, "8-bit map has no palette")

    raw = bytes(raw)
    pixels = _pixels(raw, size, count)
    if depth == 8:
        return [_from_palette(pixel, palette, convert_magic_pink) for pixel in pixels]
    if depth == 15:
        return [_from_15(pixel) for pixel in pixels]
    if depth == 16:
        return [_from_16(pixel) for pixel in pixels]
    if depth == 24:
        return [_from_24(pixel) for pixel in pixels]
    return [_from_32(pixel, convert_magic_pink) for pixel in pixels]