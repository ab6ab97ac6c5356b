"""Parsing and validation of ``.cub`` scene descriptions."""

from __future__ import annotations

from dataclasses import dataclass

_SEPARATORS = frozenset(" \t,\n\r\v\f")
_BLANK = frozenset("\t \n\r\v\f")
_MAP_CHARS = frozenset(" 012NSEW\n\t")
_PLAYER = frozenset("NSEW")
_HEADER_LETTERS = frozenset("NSWERFC")
_RESOLUTION_CAP = 21474636

PARSE_FAILURE = "La partie parsing detecte une erreur"
MISSING_MAP = "Map absente"
OPEN_WALLS = "Map non entouree de 1"
NO_PLAYER = "Pas de joueur"
BAD_COLOURS = "Mauvaises donnees F ou C"
MANY_PLAYERS = "Plus d'un joueur"
BLANK_IN_MAP = "Ligne vide dans la map"
BAD_MAP_CHAR = "Caractere incorrect dans la map"


class CubError(ValueError):
    """A scene description that cannot be played."""


@dataclass(frozen=True)
class Scene:
    """A validated scene: resolution, colours, texture paths and the map grid.

    Texture paths are stored under the identifier that introduced them
    (``SO`` in ``south`` and so on). Grid rows are padded with walls to the
    width of the longest map line; spaces become walls and the player's
    start cell becomes floor.
    """

    width: int
    height: int
    floor: int
    ceiling: int
    north: str
    south: str
    east: str
    west: str
    sprite: str
    grid: tuple[str, ...]
    start_row: int
    start_col: int
    facing: str


def is_blank(line: str) -> bool:
    """True when the line holds nothing but whitespace."""
    return all(ch in _BLANK for ch in line)


def is_map_line(line: str) -> bool:
    """True when the line holds a map digit and only map characters."""
    if "1" not in line and "0" not in line:
        return False
    return all(ch in _MAP_CHARS for ch in line)


def count_commas(text: str) -> int:
    """Number of commas in ``text``."""
    return text.count(",")


def _at(text: str, index: int) -> str:
    return text[index] if 0 <= index < len(text) else ""


def _is_digit(ch: str) -> bool:
    return ch != "" and "0" <= ch <= "9"


def _wrap32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


class _Header:
    """First pass over the lines: identifiers, colours and map extent."""

    def __init__(self) -> None:
        self.width = 0
        self.height = 0
        self.floor = -1
        self.ceiling = -1
        self.paths: dict[str, str | None] = dict.fromkeys(("NO", "SO", "EA", "WE", "S"))
        self.colour_total = 0
        self.colour_groups = 0
        self.map_lines = 0
        self.map_width = 0
        self.failed = False
        self._cursor = 1

    def feed(self, line: str) -> None:
        self._resolution_and_colour(line)
        self._texture(line)
        self._measure_map(line)
        if self.failed:
            raise CubError(PARSE_FAILURE)

    def _textures_missing(self) -> bool:
        return any(path is None for path in self.paths.values())

    def _any_texture(self) -> bool:
        return any(path is not None for path in self.paths.values())

    def _resolution_and_colour(self, line: str) -> None:
        self._cursor = 1
        if self.map_width > 0 and self._textures_missing():
            self.failed = True
        if self._any_texture() and (self.width == 0 or self.height == 0):
            self.failed = True
        first = _at(line, 0)
        if first == "R":
            if self.width != 0 and self.height != 0:
                self.failed = True
            self.width = self._resolution_number(line)
            self.height = self._resolution_number(line)
            if self._resolution_number(line) > 0 or self.width == 0 or self.height == 0:
                self.failed = True
        elif first == "F":
            self.floor = self._colour(line)
        elif first == "C":
            self.ceiling = self._colour(line)

    def _resolution_number(self, line: str) -> int:
        if _at(line, 1) != " " or "," in line:
            self.failed = True
        while _at(line, self._cursor) in _SEPARATORS:
            self._cursor += 1
        if _at(line, self._cursor) in ("-", "+"):
            self.failed = True
        total = 0
        while _is_digit(_at(line, self._cursor)):
            if total > _RESOLUTION_CAP:
                break
            total = total * 10 + int(line[self._cursor])
            self._cursor += 1
        while _is_digit(_at(line, self._cursor)):
            self._cursor += 1
        return total

    def _check_commas(self, line: str) -> None:
        first = line.find(",")
        if first < 0:
            self.failed = True
        else:
            index = first + 1
            commas = 1
            while _at(line, index) == " ":
                index += 1
            while _is_digit(_at(line, index)):
                index += 1
            while _at(line, index) and not _is_digit(_at(line, index)):
                if line[index] == ",":
                    commas += 1
                index += 1
            if commas != 2:
                self.failed = True
        if count_commas(line) != 2:
            self.failed = True

    def _colour(self, line: str) -> int:
        # The value is the running decimal concatenation of every colour
        # digit seen so far, over both the F and the C line.
        if _at(line, 1) != " ":
            self.failed = True
        self._check_commas(line)
        while _at(line, self._cursor) in _SEPARATORS:
            self._cursor += 1
            component = 0
            if _is_digit(_at(line, self._cursor)):
                self.colour_groups += 1
            while _is_digit(_at(line, self._cursor)):
                digit = int(line[self._cursor])
                component = component * 10 + digit
                self.colour_total = _wrap32(self.colour_total * 10 + digit)
                self._cursor += 1
            if component > 255:
                self.failed = True
        return self.colour_total

    def _texture(self, line: str) -> None:
        head = line[:2]
        if head == "SO":
            self._path(line, "SO", 2)
        elif head == "NO":
            self._path(line, "NO", 2)
        elif head == "EA":
            self._path(line, "EA", 2)
        elif head == "WE":
            self._path(line, "WE", 2)
        elif line[:1] == "S":
            self._path(line, "S", 1)
        elif line and line[0] not in _HEADER_LETTERS and 65 < ord(line[0]) < 122:
            self.failed = True

    def _path(self, line: str, key: str, start: int) -> None:
        if self.paths[key] is not None:
            self.failed = True
            return
        dot = line.find(".")
        if dot < 0 or "/" not in line or len(line) - dot <= 2:
            self.failed = True
        if dot < 0:
            return
        if any(ch != " " for ch in line[start:dot]):
            self.failed = True
        self.paths[key] = line[dot:]

    def _measure_map(self, line: str) -> None:
        if not is_map_line(line):
            return
        if self.floor == -1 or self.ceiling == -1 or self._textures_missing():
            self.failed = True
        self.map_width = max(self.map_width, len(line))
        self.map_lines += 1


class _MapReader:
    """Second pass over the lines: builds the padded grid."""

    def __init__(self, expected: int, width: int) -> None:
        self.expected = expected
        self.width = width
        self.rows: list[str] = []
        self.start = (0, 0)
        self.facing: str | None = None
        self.many_players = False
        self.blank_gap = False
        self.stray_char = False
        self.inside = False

    def feed(self, line: str) -> None:
        was_inside = self.inside
        if was_inside and is_blank(line) and len(self.rows) < self.expected:
            self.blank_gap = True
        self.inside = is_map_line(line)
        if not self.inside and was_inside and ("1" in line or "0" in line):
            self.stray_char = True
        if self.inside:
            self._copy(line)

    def _copy(self, line: str) -> None:
        row_index = len(self.rows)
        cells = []
        for col, ch in enumerate(line):
            if ch in _PLAYER:
                if self.facing is not None:
                    self.many_players = True
                self.facing = ch
                self.start = (row_index, col)
                cells.append("0")
            elif ch == " ":
                cells.append("1")
            else:
                cells.append(ch)
        self.rows.append("".join(cells).ljust(self.width, "1"))

    def _walls_open(self) -> bool:
        if any(row[0] != "1" or row[-1] != "1" for row in self.rows):
            return True
        return set(self.rows[0]) != {"1"} or set(self.rows[-1]) != {"1"}

    def verify(self, colour_groups: int) -> None:
        if self._walls_open():
            raise CubError(OPEN_WALLS)
        if self.facing is None:
            raise CubError(NO_PLAYER)
        if colour_groups != 6:
            raise CubError(BAD_COLOURS)
        if self.many_players:
            raise CubError(MANY_PLAYERS)
        if self.blank_gap:
            raise CubError(BLANK_IN_MAP)
        if self.stray_char:
            raise CubError(BAD_MAP_CHAR)


def parse_scene(text: str) -> Scene:
    """Parse and validate the text of a ``.cub`` file.

    Raises CubError with the reason when the description is not playable.
    """
    lines = text.split("\n")
    header = _Header()
    for line in lines:
        header.feed(line)
    if header.map_width == 0 or header.map_lines == 0:
        raise CubError(MISSING_MAP)
    reader = _MapReader(header.map_lines, header.map_width)
    for line in lines:
        reader.feed(line)
    reader.verify(header.colour_groups)
    paths = header.paths
    return Scene(
        width=header.width,
        height=header.height,
        floor=header.floor,
        ceiling=header.ceiling,
        north=paths["NO"] or "",
        south=paths["SO"] or "",
        east=paths["EA"] or "",
        west=paths["WE"] or "",
        sprite=paths["S"] or "",
        grid=tuple(reader.rows),
        start_row=reader.start[0],
        start_col=reader.start[1],
        facing=reader.facing or "",
    )