"""Tile block records, animation records and the error types shared by the map code."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import IntEnum


class MapErrorCode(IntEnum):
    """Reasons a map can fail to load or decode."""

    NONE = 0
    OUT_OF_MEM = 1
    MAP_LOAD_ERROR = 2
    NO_OPEN = 3
    NO_SCREEN = 4
    NO_ACCELERATION = 5
    CVB_FAILED = 6
    MAP_TOO_NEW = 7
    NOT_SUPPORTED = 8


_DEFAULT_MESSAGES = {
    MapErrorCode.NONE: "no error",
    MapErrorCode.OUT_OF_MEM: "out of memory",
    MapErrorCode.MAP_LOAD_ERROR: "map data is malformed",
    MapErrorCode.NO_OPEN: "map file could not be opened",
    MapErrorCode.NO_SCREEN: "no display is available",
    MapErrorCode.NO_ACCELERATION: "no acceleration available",
    MapErrorCode.CVB_FAILED: "tile bitmap could not be created",
    MapErrorCode.MAP_TOO_NEW: "map format version is not supported",
    MapErrorCode.NOT_SUPPORTED: "map feature is not supported",
}


class MapError(Exception):
    """Raised when a map cannot be loaded, decoded or used."""

    def __init__(self, code: MapErrorCode, message: str | None = None) -> None:
        self.code = MapErrorCode(code)
        super().__init__(message or _DEFAULT_MESSAGES[self.code])


class AnimType(IntEnum):
    """Kinds of tile animation; the last three are playback-internal states."""

    END = -1
    NONE = 0
    LOOPF = 1
    LOOPR = 2
    ONCE = 3
    ONCEH = 4
    PPFF = 5
    PPRR = 6
    PPRF = 7
    PPFR = 8
    ONCES = 9


@dataclass
class Block:
    """One tile definition: graphic indices, user data and collision bits."""

    bgoff: int = 0
    fgoff: int = 0
    fgoff2: int = 0
    fgoff3: int = 0
    user1: int = 0
    user2: int = 0
    user3: int = 0
    user4: int = 0
    user5: int = 0
    user6: int = 0
    user7: int = 0
    tl: bool = False
    tr: bool = False
    bl: bool = False
    br: bool = False
    trigger: bool = False
    unused1: bool = False
    unused2: bool = False
    unused3: bool = False


@dataclass
class Animation:
    """Playback state of one animated tile.

    ``curoff``, ``startoff`` and ``endoff`` index into the animation
    sequence; ``endoff`` is one past the last frame.
    """

    antype: int = AnimType.NONE
    delay: int = 0
    count: int = 0
    user: int = 0
    curoff: int = 0
    startoff: int = 0
    endoff: int = 0

    @property
    def _has_frames(self) -> bool:
        return self.startoff != self.endoff

    def reset(self) -> None:
        """Return the animation to its starting frame and delay."""
        if self.antype == AnimType.PPFR:
            self.antype = AnimType.PPFF
        if self.antype == AnimType.PPRF:
            self.antype = AnimType.PPRR
        if self.antype == AnimType.ONCES:
            self.antype = AnimType.ONCE
        self.curoff = self.startoff
        if self.antype in (AnimType.LOOPR, AnimType.PPRR) and self._has_frames:
            self.curoff = self.endoff - 1
        self.count = self.delay

    def step(self) -> None:
        """Advance the animation by one logic tick."""
        if self.antype == AnimType.NONE:
            return
        self.count -= 1
        if self.count >= 0:
            return
        self.count = self.delay
        if not self._has_frames:
            return

        kind = self.antype
        if kind == AnimType.LOOPF:
            self.curoff += 1
            if self.curoff == self.endoff:
                self.curoff = self.startoff
        elif kind == AnimType.LOOPR:
            self.curoff -= 1
            if self.curoff == self.startoff - 1:
                self.curoff = self.endoff - 1
        elif kind == AnimType.ONCE:
            self.curoff += 1
            if self.curoff == self.endoff:
                self.antype = AnimType.ONCES
                self.curoff = self.startoff
        elif kind == AnimType.ONCEH:
            if self.curoff != self.endoff - 1:
                self.curoff += 1
        elif kind in (AnimType.PPFF, AnimType.PPRF):
            self.curoff += 1
            if self.curoff == self.endoff:
                self.curoff -= 2
                self.antype = AnimType.PPFR if kind == AnimType.PPFF else AnimType.PPRR
                if self.curoff < self.startoff:
                    self.curoff += 1
        elif kind in (AnimType.PPFR, AnimType.PPRR):
            self.curoff -= 1
            if self.curoff == self.startoff - 1:
                self.curoff += 2
                self.antype = AnimType.PPFF if kind == AnimType.PPFR else AnimType.PPRF
                if self.curoff > self.endoff:
                    self.curoff -= 1


def _active(anims: Sequence[Animation]) -> Iterable[Animation]:
    """Yield animations from the last one back to the END marker."""
    for anim in reversed(anims):
        if anim.antype == AnimType.END:
            return
        yield anim


def init_anims(anims: Sequence[Animation]) -> None:
    """Reset every animation that follows the END marker."""
    for anim in _active(anims):
        anim.reset()


def update_anims(anims: Sequence[Animation]) -> None:
    """Advance every animation that follows the END marker by one tick."""
    for anim in _active(anims):
        anim.step()