import pytest

from cubscape.colors import lookup_color
from cubscape.xpm import (
    TRANSPARENT,
    Image,
    XpmError,
    color_from_text,
    load_xpm,
    parse_xpm,
    strip_comments,
)

SIMPLE = """/* XPM */
static char *img[] = {
/* columns rows colors chars-per-pixel */
"2 2 2 1",
"a c #112233",
"b c #445566",
/* pixels */
"ab",
"ba"
};
"""


def test_parse_hex_colours():
    image = parse_xpm(SIMPLE)
    assert (image.width, image.height) == (2, 2)
    assert image.pixels == (0x112233, 0x445566, 0x445566, 0x112233)


def test_pixel_accessor():
    image = parse_xpm(SIMPLE)
    assert image.pixel(1, 0) == 0x445566
    assert image.pixel(0, 1) == 0x445566
    assert image.pixel(1, 1) == 0x112233


def test_pixel_out_of_range():
    image = parse_xpm(SIMPLE)
    with pytest.raises(IndexError):
        image.pixel(2, 0)
    with pytest.raises(IndexError):
        image.pixel(0, -1)


def test_named_and_none_colours():
    text = '"3 1 3 1", "r c red", "n c None", "d c dark slate", "rnd"'
    image = parse_xpm(text)
    assert image.pixels == (lookup_color("red"), TRANSPARENT, lookup_color("dark slate"))


def test_unknown_colour_name_gives_black():
    image = parse_xpm('"1 1 1 1", "x c nosuchcolour", "x"')
    assert image.pixels == (0,)


def test_two_chars_per_pixel():
    text = '"2 1 2 2", "aa c #000010", "ab c #000020", "abaa"'
    assert parse_xpm(text).pixels == (0x20, 0x10)


def test_duplicate_keys_last_wins_for_short_keys():
    text = '"1 1 2 1", "a c #000001", "a c #000002", "a"'
    assert parse_xpm(text).pixels == (0x2,)


def test_duplicate_keys_first_wins_for_long_keys():
    text = '"1 1 2 3", "abc c #000001", "abc c #000002", "abc"'
    assert parse_xpm(text).pixels == (0x1,)


def test_colour_line_with_other_keys_first():
    text = '"1 1 1 1", "a s wall c #0000FF", "a"'
    assert parse_xpm(text).pixels == (0x0000FF,)


def test_strip_comments_keeps_length_and_quoted_text():
    text = 'x /* gone */ "keep /* this */" // trailing\ny'
    result = strip_comments(text)
    assert len(result) == len(text)
    assert '"keep /* this */"' in result
    assert "gone" not in result
    assert "trailing" not in result
    assert result.endswith("y")


def test_color_from_text_hex_and_names():
    assert color_from_text("#ff8800", None) == 0xFF8800
    assert color_from_text("red", None) == lookup_color("red")
    assert color_from_text("dark", "slate") == lookup_color("dark slate")
    assert color_from_text("None", None) == lookup_color("none")


def test_color_from_text_full_hex_wraps_to_signed():
    assert color_from_text("#FFFFFFFF", None) == -1


@pytest.mark.parametrize(
    "text",
    [
        "",
        '"2 2 1"',
        '"0 1 1 1", "a c #000000", "a"',
        '"1 1 1 1", "a s wall", "a"',
        '"1 1 1 1", "a c", "a"',
        '"1 2 1 1", "a c #000000", "a"',
        '"1 1 2 1", "a c #000000", "a"',
    ],
)
def test_malformed_images_raise(text):
    with pytest.raises(XpmError):
        parse_xpm(text)


def test_load_xpm_round_trip(tmp_path):
    path = tmp_path / "wall.xpm"
    path.write_text(SIMPLE)
    image = load_xpm(path)
    assert image == parse_xpm(SIMPLE)
    assert isinstance(image, Image) and len(image.pixels) == 4


def test_load_xpm_missing_file(tmp_path):
    with pytest.raises(XpmError):
        load_xpm(tmp_path / "absent.xpm")