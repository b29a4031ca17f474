# hedgemaze

Guide your character out of three hedge mazes before the clock runs out.
Each maze is a Mappy FMP tile map. You get sixty seconds for each maze. To
reach the next maze, leave through the left, right or bottom edge of the
current one. The top edge has no exit. You win once all three mazes are
cleared.

## Installing

```
pip install hedgemaze
```

Installing the package also installs `pygame`, which the game needs.

## Playing

Run the game from the folder that holds the game files:

```
hedgemaze
```

You can also give the folder as an argument:

```
hedgemaze path/to/game-files
```

The folder must contain these files:

- `Maze0.FMP`, `Maze1.FMP` and `Maze2.FMP`: the three maze maps. Tiles whose
  `tl` collision bit is set act as walls.
- `SpriteSheet.png`: the player sprite sheet. Magenta (255, 0, 255) is drawn as
  transparent.
- `PressStart2P.ttf`: the font used for the timer and the messages.

Controls:

- The arrow keys move the player.
- Escape quits the game. Closing the window does the same.

The time left appears in the bottom-left corner. If you clear the last maze,
a "Congratulations" message stays on screen for five seconds and then the
game ends. If the timer reaches zero, a "Game Over" message stays on screen
for five seconds and then the game quits.

The command returns one of these exit statuses:

- 0 when the game ends normally.
- 5 when a maze map cannot be read.
- 1 when the font, the sprite sheet or the display cannot be used.

## Using the map modules

You can use the modules that read and draw the maps without the game.

```python
from hedgemaze.tilemap import TileMap

tilemap = TileMap.from_file("Maze0.FMP")
block = tilemap.block_at_pixel(100, 200)  # None outside the map
if block is not None:
    print(block.tl, block.trigger, block.user1)

tilemap.update_anims()  # advance animated tiles once per logic tick
```

What each module provides:

- `hedgemaze.fmp`: `decode_fmp` and `load_fmp` read FMP chunk data into a
  `MapData`. Helpers decode single chunks (`decode_header`, `decode_blocks`,
  `decode_animations`, `decode_layer`), and `parse_novc` parses NOVC lists.
- `hedgemaze.colours`: `decode_pixels` turns raw 8, 15, 16, 24 and 32-bit tile
  pixels into RGB triples. Black pixels become magic pink.
- `hedgemaze.blocks`: the `Block` and `Animation` records, the animation state
  machine (`init_anims`, `update_anims`), `MapError` and `MapErrorCode`.
- `hedgemaze.tilemap`: `TileMap`, which covers:
  - layers (`change_layer`)
  - block lookup by tile (`block`, `set_block`) or by pixel (`block_at_pixel`,
    `set_block_at_pixel`)
  - a search on user fields (`find_block_id`)
  - replacing a layer with raw MAR data (`decode_mar`, `load_mar`)
- `hedgemaze.render`: `MapRenderer` builds the tile surfaces. It draws
  background tiles (`draw_bg`), foreground tiles (`draw_fg`), stacked rows
  (`draw_row`) and parallax backgrounds (`make_parallax`, `draw_parallax`)
  onto pygame surfaces.
- `hedgemaze.sprite`: `Sprite` is the player, with movement, walking frames,
  edge exits and wall collision. `load_sprite_sheet` loads the sheet.
- `hedgemaze.game`: `MazeGame`, `main`, and the helpers `collided`,
  `camera_offset` and `maze_filename`.

When a map cannot be read or used, these modules raise
`hedgemaze.blocks.MapError`. Its `code` attribute holds a `MapErrorCode`.

## Limitations

- The package reads maps but never writes them. It has no map editor.
- Maps with AGFX graphics are rejected with `MapErrorCode.NOT_SUPPORTED`.
- The game treats every maze as 2560 by 2560 pixels when it decides where the
  exit edges are.