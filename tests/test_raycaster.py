import math

import pytest

from cubscape.raycaster import (
    KEY_BACK,
    KEY_ESCAPE,
    KEY_FORWARD,
    KEY_LEFT,
    KEY_RIGHT,
    KEY_ROTATE_LEFT,
    KEY_ROTATE_RIGHT,
    MOVE_SPEED,
    Controls,
    Frame,
    Player,
    Renderer,
    cast_ray,
)
from cubscape.scene import Scene
from cubscape.xpm import TRANSPARENT, Image

ROOM = ("11111", "10001", "10001", "10001", "11111")
WALL_COLORS = (0x110000, 0x002200, 0x000033, 0x444444)
SPRITE_COLOR = 0x00FF00
FLOOR_COLOR = 0x0A0B0C
CEILING_COLOR = 0x0D0E0F


def _scene(grid, row, col, facing):
    return Scene(
        width=64,
        height=48,
        floor=FLOOR_COLOR,
        ceiling=CEILING_COLOR,
        north="./n.xpm",
        south="./s.xpm",
        east="./e.xpm",
        west="./w.xpm",
        sprite="./sp.xpm",
        grid=tuple(grid),
        start_row=row,
        start_col=col,
        facing=facing,
    )


def _solid(color, size=4):
    return Image(width=size, height=size, pixels=(color,) * (size * size))


def _textures(sprite_color=SPRITE_COLOR):
    return [_solid(c) for c in WALL_COLORS] + [_solid(sprite_color)]


def _renderer(grid, sprite_color=SPRITE_COLOR):
    return Renderer(grid, 64, 48, FLOOR_COLOR, CEILING_COLOR, _textures(sprite_color))


@pytest.mark.parametrize(
    "key, attribute",
    [
        (KEY_FORWARD, "forward"),
        (KEY_BACK, "back"),
        (KEY_LEFT, "left"),
        (KEY_RIGHT, "right"),
        (KEY_ROTATE_LEFT, "rotate_left"),
        (KEY_ROTATE_RIGHT, "rotate_right"),
    ],
)
def test_press_and_release(key, attribute):
    controls = Controls()
    controls.press(key)
    assert getattr(controls, attribute) is True
    controls.release(key)
    assert getattr(controls, attribute) is False


def test_escape_requests_quit():
    controls = Controls()
    controls.press(KEY_ESCAPE)
    assert controls.quit is True


def test_unknown_key_changes_nothing():
    controls = Controls()
    controls.press(12345)
    controls.release(KEY_FORWARD)
    assert controls == Controls()


def test_player_from_scene_facing_north():
    player = Player.from_scene(_scene(ROOM, 3, 2, "N"))
    assert player.pos_x == 3.5
    assert player.pos_y == 2.5
    assert (player.dir_x, player.dir_y) == (-1.0, 0.0)
    assert (player.plane_x, player.plane_y) == (0.0, 0.66)


@pytest.mark.parametrize("facing", ["N", "S", "E", "W"])
def test_direction_and_plane_are_perpendicular(facing):
    player = Player.from_scene(_scene(ROOM, 2, 2, facing))
    assert math.hypot(player.dir_x, player.dir_y) == pytest.approx(1.0)
    assert player.dir_x * player.plane_x + player.dir_y * player.plane_y == pytest.approx(0.0)


def test_move_forward_and_back():
    player = Player.from_scene(_scene(ROOM, 3, 2, "N"))
    player.move(ROOM, Controls(forward=True))
    assert player.pos_x == pytest.approx(3.5 - MOVE_SPEED)
    assert player.pos_y == pytest.approx(2.5)
    player.move(ROOM, Controls(back=True))
    assert player.pos_x == pytest.approx(3.5)


def test_strafe_keeps_direction():
    player = Player.from_scene(_scene(ROOM, 2, 2, "N"))
    player.move(ROOM, Controls(right=True))
    assert player.pos_y == pytest.approx(2.5 + MOVE_SPEED)
    assert (player.dir_x, player.dir_y) == (-1.0, 0.0)
    player.move(ROOM, Controls(left=True))
    assert player.pos_y == pytest.approx(2.5)


def test_walls_block_movement():
    player = Player.from_scene(_scene(ROOM, 1, 2, "N"))
    for _ in range(20):
        player.move(ROOM, Controls(forward=True))
    assert 1.0 < player.pos_x < 1.2


def test_sprites_block_movement():
    grid = ("11111", "10001", "10201", "10001", "11111")
    player = Player.from_scene(_scene(grid, 3, 2, "N"))
    for _ in range(10):
        player.move(grid, Controls(forward=True))
    assert int(player.pos_x) == 3


def test_rotation_keeps_length_and_reverses():
    player = Player.from_scene(_scene(ROOM, 2, 2, "E"))
    player.move(ROOM, Controls(rotate_left=True))
    assert math.hypot(player.dir_x, player.dir_y) == pytest.approx(1.0)
    assert player.dir_x != pytest.approx(0.0)
    player.move(ROOM, Controls(rotate_right=True))
    assert player.dir_x == pytest.approx(0.0, abs=1e-12)
    assert player.dir_y == pytest.approx(1.0)
    assert player.plane_x == pytest.approx(0.66)


def test_both_rotations_cancel():
    player = Player.from_scene(_scene(ROOM, 2, 2, "S"))
    player.move(ROOM, Controls(rotate_left=True, rotate_right=True))
    assert player.dir_x == pytest.approx(1.0)
    assert player.plane_y == pytest.approx(-0.66)


def test_center_ray_hits_wall_ahead():
    player = Player.from_scene(_scene(ROOM, 3, 2, "N"))
    hit = cast_ray(ROOM, player, 0.0, 48)
    assert (hit.map_x, hit.map_y) == (0, 2)
    assert hit.side == 0
    assert hit.perp_dist == pytest.approx(2.5)
    assert hit.wall_x == pytest.approx(0.5)


@pytest.mark.parametrize(
    "facing, side, texture",
    [("N", 0, 0), ("S", 0, 1), ("W", 1, 2), ("E", 1, 3)],
)
def test_texture_follows_direction(facing, side, texture):
    player = Player.from_scene(_scene(ROOM, 2, 2, facing))
    hit = cast_ray(ROOM, player, 0.0, 48)
    assert hit.side == side
    assert hit.texture == texture


def test_closer_wall_is_taller():
    near = cast_ray(ROOM, Player.from_scene(_scene(ROOM, 1, 2, "N")), 0.0, 48)
    far = cast_ray(ROOM, Player.from_scene(_scene(ROOM, 3, 2, "N")), 0.0, 48)
    assert near.perp_dist < far.perp_dist
    assert near.line_height > far.line_height


def test_symmetric_rays_have_equal_distance():
    player = Player.from_scene(_scene(ROOM, 3, 2, "N"))
    left = cast_ray(ROOM, player, -0.5, 48)
    right = cast_ray(ROOM, player, 0.5, 48)
    assert left.perp_dist == pytest.approx(right.perp_dist)


@pytest.mark.parametrize("camera_x", [-1.0, -0.3, 0.0, 0.7, 0.99])
def test_ray_bounds(camera_x):
    player = Player.from_scene(_scene(ROOM, 2, 1, "E"))
    hit = cast_ray(ROOM, player, camera_x, 48)
    assert ROOM[hit.map_x][hit.map_y] == "1"
    assert 0 <= hit.draw_start <= 24 <= hit.draw_end < 48
    assert 0.0 <= hit.wall_x < 1.0


def test_frame_get_set():
    frame = Frame(3, 2)
    frame.set(2, 1, 0xABCDEF)
    assert frame.get(2, 1) == 0xABCDEF
    assert frame.pixels[5] == 0xABCDEF
    assert frame.get(0, 0) == 0


def test_frame_out_of_bounds():
    frame = Frame(3, 2)
    with pytest.raises(IndexError):
        frame.get(3, 0)
    with pytest.raises(IndexError):
        frame.set(0, -1, 1)


def test_frame_rejects_wrong_pixel_count():
    with pytest.raises(ValueError):
        Frame(2, 2, [1, 2, 3])


def test_renderer_needs_five_textures():
    with pytest.raises(ValueError):
        Renderer(ROOM, 64, 48, FLOOR_COLOR, CEILING_COLOR, _textures()[:4])


def test_render_ceiling_wall_floor():
    player = Player.from_scene(_scene(ROOM, 3, 2, "N"))
    frame = _renderer(ROOM).render(player)
    assert (frame.width, frame.height) == (64, 48)
    assert frame.get(32, 0) == CEILING_COLOR
    assert frame.get(32, 24) == WALL_COLORS[0]
    assert frame.get(32, 47) == FLOOR_COLOR


def test_render_uses_facing_texture():
    player = Player.from_scene(_scene(ROOM, 2, 2, "S"))
    frame = _renderer(ROOM).render(player)
    assert frame.get(32, 24) == WALL_COLORS[1]


def test_render_sprite_in_front():
    grid = ("11111", "10201", "10001", "10001", "11111")
    renderer = _renderer(grid)
    assert renderer.sprites == ((1.5, 2.5),)
    player = Player.from_scene(_scene(grid, 3, 2, "N"))
    frame = renderer.render(player)
    assert frame.get(32, 24) == SPRITE_COLOR


def test_transparent_sprite_shows_wall():
    grid = ("11111", "10201", "10001", "10001", "11111")
    player = Player.from_scene(_scene(grid, 3, 2, "N"))
    frame = _renderer(grid, sprite_color=TRANSPARENT).render(player)
    assert frame.get(32, 24) == WALL_COLORS[0]


def test_sprite_behind_player_not_drawn():
    grid = ("11111", "10201", "10001", "10001", "11111")
    player = Player.from_scene(_scene(grid, 3, 2, "S"))
    frame = _renderer(grid).render(player)
    assert SPRITE_COLOR not in frame.pixels
    assert frame.get(32, 24) == WALL_COLORS[1]