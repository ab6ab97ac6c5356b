# cubscape

cubscape is a small first-person raycasting engine. It reads a `.cub` scene
file. The file gives a resolution, floor and ceiling colours, four wall
textures and a sprite texture (all in XPM format), and a grid map. cubscape
then lets you walk through the map in a pygame window. It can also render a
single frame to a BMP file.

## Installation

```
pip install .
```

This needs Python 3.10 or later. It installs `pygame`, which the window uses.

## Running

```
cubscape maps/level.cub
```

This opens a window titled "Hello world!". If the scene's resolution is larger
than the screen, the window is clamped to the screen size. The controls are:

| Key          | Action        |
|--------------|---------------|
| W            | move forward  |
| S            | move back     |
| A            | strafe left   |
| D            | strafe right  |
| Left arrow   | turn left     |
| Right arrow  | turn right    |
| Escape       | quit          |

Closing the window also quits.

To render the view from the start position into `image.bmp` in the current
directory, without opening a window, run:

```
cubscape maps/level.cub --save
```

The snapshot uses the scene's resolution as it is written, with no clamping.
The file is a 32-bit uncompressed BMP, and its permissions are set to 0o777.

When the arguments or the scene are invalid, the command prints `Error` and
then a line that names the problem, and it exits with status 1.

## The `.cub` format

```
R 640 480
NO ./textures/north.xpm
SO ./textures/south.xpm
WE ./textures/west.xpm
EA ./textures/east.xpm
S ./textures/sprite.xpm
F 220,100,0
C 225,30,0

111111
100201
10N001
111111
```

- `R` gives the width and the height. Both must be non-zero. `R` may appear
  only once, and it must come before any texture line.
- `NO`, `SO`, `WE`, `EA` and `S` give texture paths. Each identifier may appear
  only once. A path must contain a `/`. The path is taken from its first `.`
  onwards, and only spaces may come between the identifier and that dot.
  Paths such as `./textures/north.xpm` are therefore expected.
- `F` and `C` each take three comma-separated numbers from 0 to 255. The
  number stored in `Scene.floor` and `Scene.ceiling` is the running decimal
  concatenation of all colour digits read so far across both lines, wrapped
  to 32 bits. It is not a packed RGB value.
- All identifiers and both colours must come before the map.
- The map uses `1` for walls, `0` for open floor, `2` for sprites, and exactly
  one of `N`, `S`, `E` or `W` for the player's start cell and facing. Spaces
  are treated as walls. Short rows are padded with walls. The first and last
  rows must be all walls. Every row must begin and end with a wall. Blank
  lines inside the map are rejected.

## Using it as a library

```python
from cubscape.loader import load_scene
from cubscape.game import load_textures, render_snapshot
from cubscape.bmp import write_bmp

scene = load_scene("maps/level.cub")
textures = load_textures(scene)
frame = render_snapshot(scene, textures, 320, 200)
write_bmp(frame.pixels, frame.width, frame.height, "frame.bmp")
```

- `cubscape.scene.parse_scene` parses scene text into a frozen `Scene`. It
  raises `cubscape.scene.CubError` with the reason when the scene is invalid.
- `cubscape.loader.load_scene` first checks the file name through
  `validate_scene_path`, which requires a `.cub` extension and a readable file
  that is not a directory. It then reads the file and parses it.
- `cubscape.xpm.parse_xpm` and `cubscape.xpm.load_xpm` decode XPM images into
  `cubscape.xpm.Image` objects. On failure they raise `cubscape.xpm.XpmError`.
  Colour names are resolved through `cubscape.colors.lookup_color`.
- `cubscape.raycaster` contains the engine:
  - `Player` holds the position, direction and camera plane, and `Player.move`
    applies one tick of movement.
  - `Controls` tracks which keys are held.
  - `cast_ray` computes a single wall hit.
  - `Renderer.render` draws a whole `Frame`, with ceiling, textured walls,
    floor and sprites.
- `cubscape.bmp.encode_bmp` returns the bytes of a BMP file, and `write_bmp`
  writes them to disk.
- `cubscape.game.run_window` plays a scene in a pygame window.

## What it does not do

cubscape has no sound and no minimap. Sprites cannot be interacted with: they
only block movement.