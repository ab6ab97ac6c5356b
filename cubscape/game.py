"""Running a scene: texture loading, snapshots and the interactive window."""

from __future__ import annotations

import sys
from collections.abc import Sequence

from cubscape.bmp import is_save_flag, write_bmp
from cubscape.loader import load_scene
from cubscape.raycaster import (
    KEY_ESCAPE,
    KEY_ROTATE_LEFT,
    KEY_ROTATE_RIGHT,
    Controls,
    Frame,
    Player,
    Renderer,
)
from cubscape.scene import CubError, Scene
from cubscape.xpm import Image, XpmError, load_xpm

SNAPSHOT_PATH = "image.bmp"
WINDOW_TITLE = "Hello world!"
BAD_ARGUMENTS = "Arguments invalides"
FRAMES_PER_SECOND = 60

# Texture slots in Renderer order, with the identifier reported on failure.
_TEXTURE_SLOTS = (
    ("south", "Texture SO"),
    ("north", "Texture NO"),
    ("east", "Texture EA"),
    ("west", "Texture WE"),
    ("sprite", "Texture S"),
)


def load_textures(scene: Scene) -> tuple[Image, ...]:
    """Load the four wall textures and the sprite texture of ``scene``.

    Raises CubError naming the texture that could not be read.
    """
    images = []
    for attribute, failure in _TEXTURE_SLOTS:
        try:
            images.append(load_xpm(getattr(scene, attribute)))
        except XpmError as exc:
            raise CubError(failure) from exc
    return tuple(images)


def render_snapshot(
    scene: Scene, textures: Sequence[Image], width: int, height: int
) -> Frame:
    """Render the view from the scene's start position at the given size."""
    renderer = Renderer(scene.grid, width, height, scene.floor, scene.ceiling, textures)
    return renderer.render(Player.from_scene(scene))


def _fit(size: int, screen: int) -> int:
    return min(size, screen) if screen > 0 else size


def _rgb_bytes(frame: Frame) -> bytes:
    pixels = frame.pixels
    data = bytearray(3 * len(pixels))
    data[0::3] = bytes((p >> 16) & 0xFF for p in pixels)
    data[1::3] = bytes((p >> 8) & 0xFF for p in pixels)
    data[2::3] = bytes(p & 0xFF for p in pixels)
    return bytes(data)


def run_window(scene: Scene, textures: Sequence[Image]) -> None:
    """Open a window and play the scene until it is closed or Escape is hit."""
    import pygame

    special_keys = {
        pygame.K_LEFT: KEY_ROTATE_LEFT,
        pygame.K_RIGHT: KEY_ROTATE_RIGHT,
        pygame.K_ESCAPE: KEY_ESCAPE,
    }
    pygame.init()
    try:
        info = pygame.display.Info()
        width = _fit(scene.width, info.current_w)
        height = _fit(scene.height, info.current_h)
        screen = pygame.display.set_mode((width, height))
        pygame.display.set_caption(WINDOW_TITLE)
        renderer = Renderer(scene.grid, width, height, scene.floor, scene.ceiling, textures)
        player = Player.from_scene(scene)
        controls = Controls()
        clock = pygame.time.Clock()
        while not controls.quit:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    controls.quit = True
                elif event.type == pygame.KEYDOWN:
                    controls.press(special_keys.get(event.key, event.key))
                elif event.type == pygame.KEYUP:
                    controls.release(special_keys.get(event.key, event.key))
            if controls.quit:
                break
            frame = renderer.render(player)
            surface = pygame.image.frombuffer(_rgb_bytes(frame), (width, height), "RGB")
            screen.blit(surface, (0, 0))
            pygame.display.flip()
            player.move(scene.grid, controls)
            clock.tick(FRAMES_PER_SECOND)
    finally:
        pygame.quit()


def _report(message: str) -> int:
    sys.stdout.write(f"Error\n{message}\n")
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Play a ``.cub`` scene, or save its first frame with ``--save``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not (len(args) == 1 or (len(args) == 2 and is_save_flag(args[1]))):
        return _report(BAD_ARGUMENTS)
    try:
        scene = load_scene(args[0])
        textures = load_textures(scene)
        if len(args) == 2:
            frame = render_snapshot(scene, textures, scene.width, scene.height)
            write_bmp(frame.pixels, frame.width, frame.height, SNAPSHOT_PATH)
        else:
            run_window(scene, textures)
    except CubError as exc:
        return _report(str(exc))
    return 0