"""The player's animated sprite: walking, frame animation, edge exits and wall collision."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from os import PathLike

import pygame

from hedgemaze.colours import MAGIC_PINK


class Direction(IntEnum):
    """Directions the player can walk in."""

    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3


@dataclass(frozen=True)
class _Walk:
    first: int
    last: int
    dx: int
    dy: int


_WALKS = {
    Direction.UP: _Walk(11, 14, 0, -1),
    Direction.DOWN: _Walk(6, 9, 0, 1),
    Direction.LEFT: _Walk(1, 4, -1, 0),
    Direction.RIGHT: _Walk(1, 4, 1, 0),
}

_STANDING = {
    Direction.UP: 10,
    Direction.DOWN: 5,
    Direction.LEFT: 0,
    Direction.RIGHT: 0,
}


class Sprite:
    """The player: position, facing, animation frame and movement rules.

    ``collided`` is called with a pixel position and tells whether that
    position lies inside a wall.
    """

    START_X = 176
    START_Y = 0
    MAP_SIZE = 2560

    def __init__(self, collided: Callable[[int, int], bool]) -> None:
        self.collided = collided
        self.x = self.START_X
        self.y = self.START_Y
        self.max_frame = 14
        self.cur_frame = 5
        self.frame_count = 0
        self.frame_delay = 6
        self.frame_width = 32
        self.frame_height = 48
        self.animation_columns = 5
        self.direction = Direction.DOWN
        self.speed = 8
        self.map_size = self.MAP_SIZE

    def _corners(self) -> tuple[tuple[int, int], ...]:
        x, y, w, h = self.x, self.y, self.frame_width, self.frame_height
        return (x, y), (x + w, y + h), (x + w, y), (x, y + h)

    def _walk(self, direction: Direction) -> None:
        walk = _WALKS[direction]
        if self.direction != direction:
            self.direction = direction
            self.cur_frame = walk.first
        self.frame_count += 1
        if self.frame_count > self.frame_delay:
            self.frame_count = 0
            self.cur_frame += 1
            if self.cur_frame > walk.last:
                self.cur_frame = walk.first
        self.x += walk.dx * self.speed
        self.y += walk.dy * self.speed

    def _stand(self) -> None:
        self.frame_count = 0
        self.cur_frame = _STANDING[self.direction]

    def update(self, direction: Direction | int | None = None) -> bool:
        """Move one step in ``direction``, or stand still for None.

        Returns True when the step reached an exit edge of the map.
        """
        old = (self.x, self.y)
        if direction is None:
            self._stand()
        else:
            self._walk(Direction(direction))

        exited = False
        if self.y <= 0:
            self.x, self.y = old
        elif (
            self.x <= 0
            or self.x >= self.map_size - self.frame_width
            or self.y >= self.map_size - self.frame_height
        ):
            self.x, self.y = old
            exited = True

        if any(self.collided(cx, cy) for cx, cy in self._corners()):
            self.x, self.y = old
        return exited

    def frame_rect(self) -> pygame.Rect:
        """Area of the sprite sheet holding the current frame."""
        column = self.cur_frame % self.animation_columns
        row = self.cur_frame // self.animation_columns
        return pygame.Rect(
            column * self.frame_width, row * self.frame_height, self.frame_width, self.frame_height
        )

    def draw(self, surface: pygame.Surface, image: pygame.Surface, xoffset: int, yoffset: int) -> None:
        """Draw the current frame, mirrored when facing right, relative to the view offset."""
        frame = image.subsurface(self.frame_rect())
        if self.direction == Direction.RIGHT:
            frame = pygame.transform.flip(frame, True, False)
        surface.blit(frame, (self.x - xoffset, self.y - yoffset))


def load_sprite_sheet(path: str | PathLike[str]) -> pygame.Surface:
    """Load a sprite sheet, treating magic pink as transparent."""
    try:
        image = pygame.image.load(str(path))
    except (pygame.error, OSError) as exc:
        raise OSError(f"cannot load sprite sheet {path}") from exc
    image.set_colorkey(MAGIC_PINK)
    return image