"""Reading ``.cub`` scene files from disk."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

from cubscape.scene import CubError, Scene, parse_scene

BUFFER_SIZE = 4096

INVALID_NAME = "Nom de la map invalide"
IS_DIRECTORY = "Invalide : is a directory"
BAD_FILE = "Fichier .cub invalide"


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="surrogateescape")


def iter_lines(path: str | os.PathLike[str]) -> Iterator[str]:
    """Yield the lines of a file without their newlines.

    The text after the last newline is always yielded as a final line,
    so a file ending in a newline yields an empty last line.
    """
    pending = b""
    with open(path, "rb") as stream:
        while chunk := stream.read(BUFFER_SIZE):
            pending += chunk
            *complete, pending = pending.split(b"\n")
            for raw in complete:
                yield _decode(raw)
    yield _decode(pending)


def validate_scene_path(path: str | os.PathLike[str]) -> Path:
    """Check that ``path`` names a readable ``.cub`` file and return it.

    Raises CubError when the name has no ``.cub`` extension, names a
    directory, or cannot be opened.
    """
    name = os.fspath(path)
    dot = name.rfind(".")
    if dot <= 0 or name[dot + 1 : dot + 4] != "cub":
        raise CubError(INVALID_NAME)
    scene_path = Path(name)
    if scene_path.is_dir():
        raise CubError(IS_DIRECTORY)
    try:
        with scene_path.open("rb"):
            pass
    except OSError as exc:
        raise CubError(BAD_FILE) from exc
    return scene_path


def load_scene(path: str | os.PathLike[str]) -> Scene:
    """Validate, read and parse the scene file at ``path``."""
    scene_path = validate_scene_path(path)
    return parse_scene("\n".join(iter_lines(scene_path)))