"""The hedge maze game: three timed mazes to escape, one after another."""

from __future__ import annotations

import argparse
import sys
from os import PathLike
from pathlib import Path

import pygame

from hedgemaze.blocks import MapError
from hedgemaze.render import MapRenderer
from hedgemaze.sprite import Direction, Sprite, load_sprite_sheet
from hedgemaze.tilemap import TileMap

WIDTH = 900
HEIGHT = 900
FPS = 60
MAZE_COUNT = 3
TIME_LIMIT = 60 * FPS
END_PAUSE_MS = 5000
FONT_NAME = "PressStart2P.ttf"
SPRITE_SHEET = "SpriteSheet.png"
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)

_KEYS = {
    pygame.K_UP: Direction.UP,
    pygame.K_DOWN: Direction.DOWN,
    pygame.K_LEFT: Direction.LEFT,
    pygame.K_RIGHT: Direction.RIGHT,
}


def _floor_toward_zero(value: int, size: int) -> int:
    return value // size if value >= 0 else -(-value // size)


def collided(tilemap: TileMap, x: int, y: int) -> bool:
    """Whether the tile under pixel (x, y) is a wall."""
    block = tilemap.block(
        _floor_toward_zero(int(x), tilemap.block_width),
        _floor_toward_zero(int(y), tilemap.block_height),
    )
    return bool(block.tl)


def camera_offset(
    player_x: int,
    player_y: int,
    player_width: int,
    player_height: int,
    map_width: int,
    map_height: int,
    view_width: int,
    view_height: int,
) -> tuple[int, int]:
    """Scroll offset that centres the player while keeping the view on the map."""
    xoff = int(player_x) + player_width - view_width // 2
    yoff = int(player_y) + player_height - view_height // 2
    xoff = max(xoff, 0)
    if xoff > map_width - view_width:
        xoff = map_width - view_width
    yoff = max(yoff, 0)
    if yoff > map_height - view_height:
        yoff = map_height - view_height
    return xoff, yoff


def maze_filename(number: int) -> str:
    """File name of maze ``number``."""
    return f"Maze{number}.FMP"


class MazeGame:
    """Runs the game from a folder holding the maze maps, font and sprite sheet."""

    def __init__(self, directory: str | PathLike[str] = ".") -> None:
        self.directory = Path(directory)
        self.maze_number = 0
        self.time_left = TIME_LIMIT
        self.tilemap: TileMap | None = None
        self.renderer: MapRenderer | None = None
        self.player = Sprite(self._collided)
        self._held = dict.fromkeys(Direction, False)
        self._running = False

    def _collided(self, x: int, y: int) -> bool:
        return collided(self.tilemap, x, y)

    def _load_maze(self) -> None:
        self.tilemap = TileMap.from_file(self.directory / maze_filename(self.maze_number))
        self.renderer = MapRenderer(self.tilemap, True)

    def _held_direction(self) -> Direction | None:
        return next((direction for direction in Direction if self._held[direction]), None)

    def _handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self._running = False
        elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
            if event.key == pygame.K_ESCAPE:
                self._running = False
            elif event.key in _KEYS:
                self._held[_KEYS[event.key]] = event.type == pygame.KEYDOWN

    def _draw_world(self, screen: pygame.Surface, sheet: pygame.Surface, xoff: int, yoff: int) -> None:
        self.renderer.draw_bg(screen, xoff, yoff, 0, 0, WIDTH, HEIGHT)
        self.renderer.draw_fg(screen, xoff, yoff, 0, 0, WIDTH, HEIGHT, 0)
        self.player.draw(screen, sheet, xoff, yoff)

    def _draw_frame(self, screen: pygame.Surface, small: pygame.font.Font, sheet: pygame.Surface) -> None:
        xoff, yoff = camera_offset(
            self.player.x,
            self.player.y,
            self.player.frame_width,
            self.player.frame_height,
            self.tilemap.pixel_width,
            self.tilemap.pixel_height,
            WIDTH,
            HEIGHT,
        )
        self._draw_world(screen, sheet, xoff, yoff)
        label = small.render(f"Time Left: {self.time_left / FPS:.1f}", True, WHITE)
        screen.blit(label, (10, HEIGHT - 20))
        pygame.display.flip()
        screen.fill(BLACK)

    def _show_message(self, screen: pygame.Surface, font: pygame.font.Font, lines: list[str], top: int) -> None:
        for index, line in enumerate(lines):
            text = font.render(line, True, WHITE)
            screen.blit(text, text.get_rect(midtop=(WIDTH // 2, top + index * 100)))
        pygame.display.flip()
        pygame.time.wait(END_PAUSE_MS)

    def _advance_maze(self, screen: pygame.Surface, font: pygame.font.Font) -> None:
        self.maze_number += 1
        self.time_left = TIME_LIMIT
        if self.maze_number < MAZE_COUNT:
            self.player.x = Sprite.START_X
            self.player.y = Sprite.START_Y
            self._load_maze()
        else:
            self._show_message(
                screen, font, ["Congratulations", "You Escaped the", "Hedge Mazes!"], HEIGHT // 2 - 100
            )
            self._running = False

    def _time_out(self, screen: pygame.Surface, font: pygame.font.Font) -> None:
        self._show_message(
            screen,
            font,
            ["Game Over", "You Failed", "to Escape the", "Hedge Mazes!"],
            HEIGHT // 2 - 150,
        )
        self._running = False

    def run(self) -> int:
        """Play until the mazes are escaped, time runs out or the window closes."""
        pygame.init()
        try:
            self._load_maze()
            screen = pygame.display.set_mode((WIDTH, HEIGHT))
            pygame.display.set_caption("Hedge Mazes")
            font = pygame.font.Font(str(self.directory / FONT_NAME), 48)
            small = pygame.font.Font(str(self.directory / FONT_NAME), 16)
            sheet = load_sprite_sheet(self.directory / SPRITE_SHEET)

            self._draw_world(screen, sheet, 0, 0)
            pygame.display.flip()
            screen.fill(BLACK)

            clock = pygame.time.Clock()
            self._running = True
            while self._running:
                clock.tick(FPS)
                render = False
                # None stands for the timer tick that starts every frame.
                for event in (None, *pygame.event.get()):
                    exited = False
                    if event is None:
                        render = True
                        exited = self.player.update(self._held_direction())
                    else:
                        self._handle_event(event)
                    if exited:
                        self._advance_maze(screen, font)
                    if self._running and self.time_left == 0:
                        self._time_out(screen, font)
                    self.time_left -= 1
                    if not self._running:
                        break
                if self._running and render:
                    self._draw_frame(screen, small, sheet)
            return 0
        finally:
            pygame.quit()


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(
        prog="hedgemaze", description="Escape three hedge mazes before the time runs out."
    )
    parser.add_argument(
        "directory", nargs="?", default=".", help="folder holding the maze maps, font and sprite sheet"
    )
    args = parser.parse_args(argv)
    try:
        return MazeGame(args.directory).run()
    except MapError as exc:
        print(f"hedgemaze: {exc}", file=sys.stderr)
        return 5
    except (pygame.error, OSError) as exc:
        print(f"hedgemaze: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())