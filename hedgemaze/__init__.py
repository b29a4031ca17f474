"""A timed hedge-maze game, with modules that read and draw Mappy FMP tile maps."""

__version__ = "1.0.0"
__all__ = ["blocks", "colours", "fmp", "game", "render", "sprite", "tilemap"]