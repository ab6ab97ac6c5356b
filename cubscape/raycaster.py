"""Ray casting: player movement, wall columns and billboard sprites."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from cubscape.scene import Scene
from cubscape.xpm import TRANSPARENT, Image

KEY_ROTATE_LEFT = 65361
KEY_ROTATE_RIGHT = 65363
KEY_FORWARD = 119
KEY_BACK = 115
KEY_RIGHT = 100
KEY_LEFT = 97
KEY_ESCAPE = 65307

MOVE_SPEED = 0.1
ROTATION_SPEED = 0.033 * 1.8
PLANE_LENGTH = 0.66

FLOOR = "0"
WALL = "1"
SPRITE = "2"

# Direction and camera plane (dir_x, dir_y, plane_x, plane_y) per facing.
_FACING = {
    "N": (-1.0, 0.0, 0.0, PLANE_LENGTH),
    "S": (1.0, 0.0, 0.0, -PLANE_LENGTH),
    "E": (0.0, 1.0, PLANE_LENGTH, 0.0),
    "W": (0.0, -1.0, -PLANE_LENGTH, 0.0),
}


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def _cell(grid: Sequence[str], x: float, y: float) -> str:
    row, col = int(x), int(y)
    if 0 <= row < len(grid) and 0 <= col < len(grid[row]):
        return grid[row][col]
    return WALL


@dataclass
class Controls:
    """Which movement keys are currently held, and whether to quit."""

    forward: bool = False
    back: bool = False
    left: bool = False
    right: bool = False
    rotate_left: bool = False
    rotate_right: bool = False
    quit: bool = False

    _KEYS = {
        KEY_FORWARD: "forward",
        KEY_BACK: "back",
        KEY_LEFT: "left",
        KEY_RIGHT: "right",
        KEY_ROTATE_LEFT: "rotate_left",
        KEY_ROTATE_RIGHT: "rotate_right",
    }

    def press(self, key: int) -> None:
        """Mark a key as held; the escape key requests quitting."""
        name = self._KEYS.get(key)
        if name is not None:
            setattr(self, name, True)
        elif key == KEY_ESCAPE:
            self.quit = True

    def release(self, key: int) -> None:
        """Mark a key as released."""
        name = self._KEYS.get(key)
        if name is not None:
            setattr(self, name, False)


@dataclass
class Player:
    """Position (row, column), view direction and camera plane."""

    pos_x: float = 0.0
    pos_y: float = 0.0
    dir_x: float = 0.0
    dir_y: float = 0.0
    plane_x: float = 0.0
    plane_y: float = 0.0

    @staticmethod
    def from_scene(scene: Scene) -> Player:
        """Place the player in the centre of the scene's start cell."""
        dir_x, dir_y, plane_x, plane_y = _FACING.get(scene.facing, (0.0, 0.0, 0.0, 0.0))
        return Player(
            pos_x=scene.start_row + 0.5,
            pos_y=scene.start_col + 0.5,
            dir_x=dir_x,
            dir_y=dir_y,
            plane_x=plane_x,
            plane_y=plane_y,
        )

    def move(self, grid: Sequence[str], controls: Controls) -> None:
        """Apply one tick of the held movement and rotation keys.

        Only floor cells can be entered; walls and sprites block.
        """
        reach = MOVE_SPEED * 2
        if controls.forward:
            if _cell(grid, self.pos_x + self.dir_x * reach, self.pos_y) == FLOOR:
                self.pos_x += self.dir_x * MOVE_SPEED
            if _cell(grid, self.pos_x, self.pos_y + self.dir_y * reach) == FLOOR:
                self.pos_y += self.dir_y * MOVE_SPEED
        if controls.back:
            if _cell(grid, self.pos_x - self.dir_x * reach, self.pos_y) == FLOOR:
                self.pos_x -= self.dir_x * MOVE_SPEED
            if _cell(grid, self.pos_x, self.pos_y - self.dir_y * reach) == FLOOR:
                self.pos_y -= self.dir_y * MOVE_SPEED
        if controls.right:
            if _cell(grid, self.pos_x + self.dir_y * reach, self.pos_y) == FLOOR:
                self.pos_x += self.dir_y * MOVE_SPEED
            if _cell(grid, self.pos_x, self.pos_y - self.dir_x * reach) == FLOOR:
                self.pos_y -= self.dir_x * MOVE_SPEED
        if controls.left:
            if _cell(grid, self.pos_x - self.dir_y * reach, self.pos_y) == FLOOR:
                self.pos_x -= self.dir_y * MOVE_SPEED
            if _cell(grid, self.pos_x, self.pos_y + self.dir_x * reach) == FLOOR:
                self.pos_y += self.dir_x * MOVE_SPEED
        if controls.rotate_right:
            self._rotate(-ROTATION_SPEED / 2)
        if controls.rotate_left:
            self._rotate(ROTATION_SPEED / 2)

    def _rotate(self, angle: float) -> None:
        cos, sin = math.cos(angle), math.sin(angle)
        self.dir_x, self.dir_y = (
            self.dir_x * cos - self.dir_y * sin,
            self.dir_x * sin + self.dir_y * cos,
        )
        self.plane_x, self.plane_y = (
            self.plane_x * cos - self.plane_y * sin,
            self.plane_x * sin + self.plane_y * cos,
        )


@dataclass(frozen=True)
class RayHit:
    """Where a ray meets a wall and how tall the wall column is drawn.

    ``side`` is 0 when a row boundary was crossed last and 1 for a column
    boundary. ``texture`` selects the wall texture (0 to 3) and ``wall_x``
    is the fractional position of the hit along the wall face.
    """

    map_x: int
    map_y: int
    side: int
    ray_dir_x: float
    ray_dir_y: float
    perp_dist: float
    line_height: int
    draw_start: int
    draw_end: int
    wall_x: float
    texture: int


def _delta_distances(ray_dir_x: float, ray_dir_y: float) -> tuple[float, float]:
    if ray_dir_y == 0:
        delta_x = 0.0
    elif ray_dir_x == 0:
        delta_x = 1.0
    else:
        delta_x = math.sqrt(1 + (ray_dir_y * ray_dir_y) / (ray_dir_x * ray_dir_x))
    if ray_dir_x == 0:
        delta_y = 0.0
    elif ray_dir_y == 0:
        delta_y = 1.0
    else:
        delta_y = math.sqrt(1 + (ray_dir_x * ray_dir_x) / (ray_dir_y * ray_dir_y))
    return delta_x, delta_y


def cast_ray(grid: Sequence[str], player: Player, camera_x: float, height: int) -> RayHit:
    """Cast one ray through the camera plane at ``camera_x`` (-1 to 1)."""
    ray_dir_x = player.dir_x + player.plane_x * camera_x
    ray_dir_y = player.dir_y + player.plane_y * camera_x
    map_x, map_y = int(player.pos_x), int(player.pos_y)
    delta_x, delta_y = _delta_distances(ray_dir_x, ray_dir_y)
    if ray_dir_x < 0:
        step_x, side_x = -1, (player.pos_x - map_x) * delta_x
    else:
        step_x, side_x = 1, (map_x + 1.0 - player.pos_x) * delta_x
    if ray_dir_y < 0:
        step_y, side_y = -1, (player.pos_y - map_y) * delta_y
    else:
        step_y, side_y = 1, (map_y + 1.0 - player.pos_y) * delta_y

    side = 0
    while True:
        if side_x < side_y:
            side_x += delta_x
            map_x += step_x
            side = 0
        else:
            side_y += delta_y
            map_y += step_y
            side = 1
        if _cell(grid, map_x, map_y) == WALL:
            break

    if side == 0:
        perp = (map_x - player.pos_x + (1 - step_x) / 2) / ray_dir_x
    else:
        perp = (map_y - player.pos_y + (1 - step_y) / 2) / ray_dir_y
    line_height = int(height / perp) if perp > 0 else height
    draw_start = max(_tdiv(-line_height, 2) + _tdiv(height, 2), 0)
    draw_end = _tdiv(line_height, 2) + _tdiv(height, 2)
    if draw_end >= height or draw_end < 0:
        draw_end = height - 1

    if side == 0:
        texture = 0 if ray_dir_x < 0 else 1
        wall_x = player.pos_y + perp * ray_dir_y
    else:
        texture = 2 if ray_dir_y < 0 else 3
        wall_x = player.pos_x + perp * ray_dir_x
    wall_x -= math.floor(wall_x)

    return RayHit(
        map_x=map_x,
        map_y=map_y,
        side=side,
        ray_dir_x=ray_dir_x,
        ray_dir_y=ray_dir_y,
        perp_dist=perp,
        line_height=line_height,
        draw_start=draw_start,
        draw_end=draw_end,
        wall_x=wall_x,
        texture=texture,
    )


@dataclass
class Frame:
    """A row-major buffer of 32-bit pixels."""

    width: int
    height: int
    pixels: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("frame dimensions must be positive")
        if not self.pixels:
            self.pixels = [0] * (self.width * self.height)
        elif len(self.pixels) != self.width * self.height:
            raise ValueError(
                f"expected {self.width * self.height} pixels, got {len(self.pixels)}"
            )

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} frame")
        return y * self.width + x

    def get(self, x: int, y: int) -> int:
        """Return the pixel in column ``x`` of row ``y``."""
        return self.pixels[self._index(x, y)]

    def set(self, x: int, y: int, color: int) -> None:
        """Store ``color`` in column ``x`` of row ``y``."""
        self.pixels[self._index(x, y)] = color


class Renderer:
    """Draws frames of a map with textured walls, floor, ceiling and sprites.

    ``textures`` holds the four wall textures in the order of
    ``RayHit.texture`` followed by the sprite texture.
    """

    def __init__(
        self,
        grid: Sequence[str],
        width: int,
        height: int,
        floor: int,
        ceiling: int,
        textures: Sequence[Image],
    ) -> None:
        if len(textures) != 5:
            raise ValueError("expected four wall textures and one sprite texture")
        if width <= 0 or height <= 0:
            raise ValueError("frame dimensions must be positive")
        self.grid = tuple(grid)
        self.width = width
        self.height = height
        self.floor = floor
        self.ceiling = ceiling
        self.textures = tuple(textures)
        self.sprites = tuple(
            (row_index + 0.5, col + 0.5)
            for row_index, row in enumerate(self.grid)
            for col, ch in enumerate(row)
            if ch == SPRITE
        )

    def render(self, player: Player) -> Frame:
        """Draw the view from ``player`` into a new frame."""
        frame = Frame(self.width, self.height)
        zbuffer = []
        for x in range(self.width):
            hit = cast_ray(self.grid, player, 2 * x / self.width - 1, self.height)
            self._draw_column(frame, x, hit)
            zbuffer.append(hit.perp_dist)
        self._draw_sprites(frame, player, zbuffer)
        return frame

    def _draw_column(self, frame: Frame, x: int, hit: RayHit) -> None:
        pixels, width, height = frame.pixels, frame.width, frame.height
        start = hit.draw_start
        end = height - start
        for y in range(start):
            pixels[y * width + x] = self.ceiling
        if start <= end:
            self._draw_wall(frame, x, hit, start, end)
        for y in range(end + 1, height):
            pixels[y * width + x] = self.floor

    def _draw_wall(self, frame: Frame, x: int, hit: RayHit, start: int, end: int) -> None:
        texture = self.textures[hit.texture]
        line_height = max(hit.line_height, 1)
        step = self.textures[0].height / line_height
        tex_x = int(hit.wall_x * texture.width)
        if (hit.side == 0 and hit.ray_dir_x > 0) or (hit.side == 1 and hit.ray_dir_y < 0):
            tex_x = texture.width - tex_x - 1
        tex_pos = (start - _tdiv(self.height, 2) + _tdiv(line_height, 2)) * step
        mask = texture.height - 1
        for y in range(start, end + 1):
            tex_y = int(tex_pos) & mask
            tex_pos += step
            if y < self.height and x < self.width:
                frame.pixels[y * frame.width + x] = texture.pixels[tex_y * texture.width + tex_x]

    def _draw_sprites(self, frame: Frame, player: Player, zbuffer: list[float]) -> None:
        if not self.sprites:
            return
        determinant = player.plane_x * player.dir_y - player.dir_x * player.plane_y
        if determinant == 0:
            return
        inv_det = 1.0 / determinant
        distances = [
            (player.pos_x - sx) ** 2 + (player.pos_y - sy) ** 2 for sx, sy in self.sprites
        ]
        order = sorted(range(len(self.sprites)), key=distances.__getitem__, reverse=True)
        for index in order:
            sx, sy = self.sprites[index]
            self._draw_sprite(frame, player, inv_det, sx - player.pos_x, sy - player.pos_y, zbuffer)

    def _draw_sprite(
        self,
        frame: Frame,
        player: Player,
        inv_det: float,
        sprite_x: float,
        sprite_y: float,
        zbuffer: list[float],
    ) -> None:
        transform_x = inv_det * (player.dir_y * sprite_x - player.dir_x * sprite_y)
        transform_y = inv_det * (-player.plane_y * sprite_x + player.plane_x * sprite_y)
        if transform_y <= 0:
            return
        screen_x_f = _tdiv(self.width, 2) * (1 + transform_x / transform_y)
        size_f = self.height / transform_y
        if not (math.isfinite(screen_x_f) and math.isfinite(size_f)):
            return
        screen_x = int(screen_x_f)
        size = abs(int(size_f))
        if size == 0:
            return
        start_y = max(_tdiv(-size, 2) + _tdiv(self.height, 2), 0)
        end_y = min(_tdiv(size, 2) + _tdiv(self.height, 2), self.height)
        left = _tdiv(-size, 2) + screen_x
        start_x = max(left, 0)
        end_x = min(_tdiv(size, 2) + screen_x, self.width)
        texture = self.textures[4]
        for stripe in range(start_x, end_x):
            tex_x = _tdiv(_tdiv(256 * (stripe - left) * texture.width, size), 256)
            if transform_y < zbuffer[stripe]:
                self._draw_stripe(frame, texture, stripe, tex_x, size, start_y, end_y)

    def _draw_stripe(
        self,
        frame: Frame,
        texture: Image,
        stripe: int,
        tex_x: int,
        size: int,
        start_y: int,
        end_y: int,
    ) -> None:
        if not 0 <= tex_x < texture.width:
            return
        for y in range(start_y, end_y):
            d = y * 256 - self.height * 128 + size * 128
            tex_y = _tdiv(_tdiv(d * texture.height, size), 256)
            if not 0 <= tex_y < texture.height:
                continue
            color = texture.pixels[tex_y * texture.width + tex_x]
            if color != TRANSPARENT:
                frame.pixels[y * frame.width + stripe] = color