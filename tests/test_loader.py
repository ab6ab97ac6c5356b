from pathlib import Path

import pytest

from cubscape.loader import iter_lines, load_scene, validate_scene_path
from cubscape.scene import CubError

VALID_SCENE = "\n".join(
    [
        "R 640 480",
        "NO ./textures/north.xpm",
        "SO ./textures/south.xpm",
        "WE ./textures/west.xpm",
        "EA ./textures/east.xpm",
        "S ./textures/sprite.xpm",
        "F 220,100,0",
        "C 225,30,0",
        "",
        "111111",
        "100201",
        "10N001",
        "111111",
        "",
    ]
)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text)
    return path


def test_iter_lines_keeps_trailing_empty_line(tmp_path):
    path = _write(tmp_path, "a.cub", "a\nb\n")
    assert list(iter_lines(path)) == ["a", "b", ""]


def test_iter_lines_without_final_newline(tmp_path):
    path = _write(tmp_path, "a.cub", "a\nb")
    assert list(iter_lines(path)) == ["a", "b"]


def test_iter_lines_empty_file(tmp_path):
    path = _write(tmp_path, "a.cub", "")
    assert list(iter_lines(path)) == [""]


def test_iter_lines_across_buffer_boundary(tmp_path):
    long_line = "x" * 9000
    path = _write(tmp_path, "a.cub", long_line + "\ny")
    assert list(iter_lines(path)) == [long_line, "y"]


def test_load_scene_reads_valid_file(tmp_path):
    path = _write(tmp_path, "level.cub", VALID_SCENE)
    scene = load_scene(path)
    assert (scene.width, scene.height) == (640, 480)
    assert scene.facing == "N"
    assert (scene.start_row, scene.start_col) == (2, 2)
    assert scene.grid[1] == "100201"
    assert scene.south == "./textures/south.xpm"


def test_load_scene_accepts_string_path(tmp_path):
    path = _write(tmp_path, "level.cub", VALID_SCENE)
    assert load_scene(str(path)).grid == load_scene(path).grid


def test_load_scene_reports_parse_errors(tmp_path):
    broken = VALID_SCENE.replace("10N001", "100001")
    path = _write(tmp_path, "level.cub", broken)
    with pytest.raises(CubError, match="Pas de joueur"):
        load_scene(path)


@pytest.mark.parametrize("name", ["map.txt", "noextension", ".cub", "map.cu"])
def test_validate_rejects_bad_names(tmp_path, name):
    with pytest.raises(CubError, match="Nom de la map invalide"):
        validate_scene_path(name)


def test_validate_rejects_directory(tmp_path):
    directory = tmp_path / "maps.cub"
    directory.mkdir()
    with pytest.raises(CubError, match="is a directory"):
        validate_scene_path(directory)


def test_validate_rejects_missing_file(tmp_path):
    with pytest.raises(CubError, match="Fichier .cub invalide"):
        validate_scene_path(tmp_path / "missing.cub")


def test_validate_returns_path(tmp_path):
    path = _write(tmp_path, "level.cub", VALID_SCENE)
    assert validate_scene_path(str(path)) == path