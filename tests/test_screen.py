import pytest

from cviewkit.screen import (
    PRIMARY_TEXT_COLOR,
    SCROLL_BAR_AREA,
    SCROLL_BAR_HANDLE,
    Align,
    Attr,
    Screen,
    ScrollBarVisibility,
    Style,
    color_hex,
    get_color,
    overlay_style,
    print_simple,
    print_style,
    print_text,
    render_scroll_bar,
    set_attributes,
)
from cviewkit.tags import escape


def test_new_screen_is_blank():
    screen = Screen(8, 3)
    assert screen.row_text(0) == " " * 8
    assert screen.get_content(2, 2).style == Style()


def test_set_and_get_content():
    screen = Screen(4, 2)
    style = Style(fg=get_color("red"))
    screen.set_content(1, 1, "x", ["\u0301"], style)
    cell = screen.get_content(1, 1)
    assert cell.main == "x"
    assert cell.comb == ("\u0301",)
    assert cell.style == style


def test_out_of_range_content_is_ignored():
    screen = Screen(3, 1)
    screen.set_content(10, 0, "z", (), Style())
    assert screen.row_text(0) == " " * 3
    assert screen.get_content(-1, 0).main == " "


def test_get_color_hex_round_trip():
    assert color_hex(get_color("#ff8800")) == "#ff8800"


def test_get_color_names():
    assert color_hex(get_color("red")) == "#ff0000"
    assert get_color("RED") == get_color("red")
    assert get_color("nosuchcolor") is None
    assert color_hex(None) == ""


def test_set_attributes_replaces_all():
    style = Style(attrs=Attr.BOLD | Attr.ITALIC)
    result = set_attributes(style, Attr.UNDERLINE)
    assert result.attrs == Attr.UNDERLINE


def test_overlay_style_colors_and_flags():
    default = Style(fg=get_color("white"), bg=None, attrs=Attr.BOLD)
    blue = get_color("blue")
    result = overlay_style(blue, default, "red", "", "bu")
    assert result.fg == get_color("red")
    assert result.bg == blue
    assert result.attrs == Attr.BOLD | Attr.UNDERLINE


def test_overlay_style_resets():
    default = Style(fg=get_color("white"), bg=get_color("navy"), attrs=Attr.ITALIC)
    result = overlay_style(get_color("lime"), default, "-", "-", "-")
    assert result == default


def test_overlay_style_background_default_kept_when_tag_empty():
    default = Style(fg=None, bg=get_color("navy"))
    result = overlay_style(get_color("lime"), default, "", "", "")
    assert result.bg == get_color("navy")


def test_print_left_plain():
    screen = Screen(20, 1)
    text = "hello"
    assert print_style(screen, text, 0, 0, 20, Align.LEFT, Style()) == (len(text), len(text))
    assert screen.row_text(0).startswith(text)


def test_print_truncates_to_max_width():
    screen = Screen(20, 1)
    text = "hello world"
    consumed, width = print_style(screen, text, 0, 0, 5, Align.LEFT, Style())
    assert width == 5
    assert screen.row_text(0).rstrip() == text[:5]


def test_print_right_fits():
    screen = Screen(10, 1)
    text = "abc"
    print_style(screen, text, 0, 0, 10, Align.RIGHT, Style())
    assert screen.row_text(0).endswith(text)
    assert screen.row_text(0).strip() == text


def test_print_right_truncated_shows_suffix():
    screen = Screen(10, 1)
    text = "abcdef"
    _, width = print_style(screen, text, 0, 0, 3, Align.RIGHT, Style())
    shown = screen.row_text(0).strip()
    assert width <= 3
    assert shown and text.endswith(shown)


def test_print_center_fits():
    screen = Screen(6, 1)
    text = "ab"
    print_style(screen, text, 0, 0, 6, Align.CENTER, Style())
    assert screen.row_text(0).index(text) == (6 - len(text)) // 2


def test_print_center_truncated_is_substring():
    screen = Screen(10, 1)
    text = "abcdefgh"
    _, width = print_style(screen, text, 0, 0, 4, Align.CENTER, Style())
    shown = screen.row_text(0).strip()
    assert width == len(shown) <= 4
    assert shown in text


def test_print_color_tag():
    screen = Screen(10, 1)
    text = "[red]hi"
    consumed, width = print_style(screen, text, 0, 0, 10, Align.LEFT, Style())
    assert screen.row_text(0).startswith("hi")
    assert (consumed, width) == (len(text), len("hi"))
    assert screen.get_content(0, 0).style.fg == get_color("red")


def test_print_escaped_text_round_trip():
    screen = Screen(10, 1)
    original = "[a]"
    print_style(screen, escape(original), 0, 0, 10, Align.LEFT, Style())
    assert screen.row_text(0).startswith(original)


def test_print_keeps_existing_background():
    screen = Screen(5, 1)
    navy = get_color("navy")
    screen.set_content(0, 0, " ", (), Style(bg=navy))
    print_text(screen, "x", 0, 0, 5, Align.LEFT, get_color("red"))
    cell = screen.get_content(0, 0)
    assert cell.main == "x"
    assert cell.style.bg == navy


def test_print_wide_character_fills_two_cells():
    screen = Screen(5, 1)
    _, width = print_style(screen, "日", 0, 0, 5, Align.LEFT, Style())
    assert width == 2
    assert screen.get_content(0, 0).main == "日"
    assert screen.get_content(1, 0).main == " "


def test_print_nothing_for_empty_or_zero_width():
    screen = Screen(5, 1)
    assert print_style(screen, "", 0, 0, 5, Align.LEFT, Style()) == (0, 0)
    assert print_style(screen, "abc", 0, 0, 0, Align.LEFT, Style()) == (0, 0)
    assert screen.row_text(0) == " " * 5


def test_print_simple_uses_primary_color():
    screen = Screen(10, 1)
    print_simple(screen, "ok", 0, 0)
    assert screen.row_text(0).startswith("ok")
    assert screen.get_content(0, 0).style.fg == PRIMARY_TEXT_COLOR


@pytest.mark.parametrize(
    "visibility,items",
    [(ScrollBarVisibility.NEVER, 50), (ScrollBarVisibility.AUTO, 5)],
)
def test_scroll_bar_hidden(visibility, items):
    screen = Screen(3, 10)
    render_scroll_bar(screen, visibility, 0, 0, 10, items, 0, 0, False, None)
    assert screen.row_text(0) == " " * 3


def test_scroll_bar_handle_and_area():
    screen = Screen(1, 10)
    color = get_color("red")
    render_scroll_bar(screen, ScrollBarVisibility.ALWAYS, 0, 0, 10, 20, 0, 0, False, color)
    render_scroll_bar(screen, ScrollBarVisibility.ALWAYS, 0, 5, 10, 20, 0, 5, False, color)
    assert screen.get_content(0, 0).main == SCROLL_BAR_HANDLE[-1]
    assert screen.get_content(0, 5).main == SCROLL_BAR_AREA[-1]
    assert screen.get_content(0, 0).style.fg == color


def test_scroll_bar_focused_handle_is_reversed():
    screen = Screen(1, 10)
    render_scroll_bar(screen, ScrollBarVisibility.ALWAYS, 0, 0, 10, 20, 0, 0, True, None)
    cell = screen.get_content(0, 0)
    assert cell.main == " "
    assert cell.style.attrs & Attr.REVERSE


def test_scroll_bar_single_item_has_no_handle():
    screen = Screen(1, 3)
    render_scroll_bar(screen, ScrollBarVisibility.ALWAYS, 0, 0, 3, 1, 0, 0, False, None)
    assert screen.get_content(0, 0).main == SCROLL_BAR_AREA[-1]