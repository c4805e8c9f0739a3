"""Styles, an in-memory cell screen and tag-aware printing.

Colours are ``0xRRGGBB`` integers; ``None`` stands for the terminal's
default colour.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace

from .tags import Cluster, decompose_text, iterate_string, iterate_string_reverse, style_from_tag

PRIMARY_TEXT_COLOR = 0xFFFFFF

SCROLL_BAR_AREA = "[-:-:-]░"
SCROLL_BAR_AREA_FOCUSED = "[-:-:-]▒"
SCROLL_BAR_HANDLE = "[-:-:-]▓"
SCROLL_BAR_HANDLE_FOCUSED = "[::r] [-:-:-]"

_MAX_WIDTH = 2**31 - 1

COLOR_NAMES: dict[str, int] = {
    "black": 0x000000,
    "maroon": 0x800000,
    "green": 0x008000,
    "olive": 0x808000,
    "navy": 0x000080,
    "purple": 0x800080,
    "teal": 0x008080,
    "silver": 0xC0C0C0,
    "gray": 0x808080,
    "grey": 0x808080,
    "red": 0xFF0000,
    "lime": 0x00FF00,
    "yellow": 0xFFFF00,
    "blue": 0x0000FF,
    "fuchsia": 0xFF00FF,
    "aqua": 0x00FFFF,
    "white": 0xFFFFFF,
    "orange": 0xFFA500,
    "pink": 0xFFC0CB,
    "brown": 0xA52A2A,
    "gold": 0xFFD700,
    "cyan": 0x00FFFF,
    "magenta": 0xFF00FF,
    "darkred": 0x8B0000,
    "darkgreen": 0x006400,
    "darkblue": 0x00008B,
    "darkcyan": 0x008B8B,
    "lightgray": 0xD3D3D3,
    "lightgrey": 0xD3D3D3,
    "darkgray": 0xA9A9A9,
    "darkgrey": 0xA9A9A9,
}


class Align(enum.IntEnum):
    LEFT = 0
    CENTER = 1
    RIGHT = 2


class VerticalAlignment(enum.IntEnum):
    TOP = 0
    MIDDLE = 1
    BOTTOM = 2


class ScrollBarVisibility(enum.IntEnum):
    NEVER = 0
    AUTO = 1
    ALWAYS = 2


class Transformation(enum.IntEnum):
    FIRST_ITEM = 1
    LAST_ITEM = 2
    PREVIOUS_ITEM = 3
    NEXT_ITEM = 4
    PREVIOUS_PAGE = 5
    NEXT_PAGE = 6


class Key(enum.Enum):
    """Special keys delivered to widgets' key handlers."""

    ESCAPE = enum.auto()
    ENTER = enum.auto()
    TAB = enum.auto()
    BACKTAB = enum.auto()
    HOME = enum.auto()
    END = enum.auto()
    UP = enum.auto()
    DOWN = enum.auto()
    LEFT = enum.auto()
    RIGHT = enum.auto()
    PAGE_UP = enum.auto()
    PAGE_DOWN = enum.auto()
    CTRL_F = enum.auto()
    CTRL_B = enum.auto()


class MouseAction(enum.Enum):
    MOVE = enum.auto()
    LEFT_DOWN = enum.auto()
    LEFT_UP = enum.auto()
    LEFT_CLICK = enum.auto()
    LEFT_DOUBLE_CLICK = enum.auto()
    MIDDLE_DOWN = enum.auto()
    MIDDLE_UP = enum.auto()
    MIDDLE_CLICK = enum.auto()
    RIGHT_DOWN = enum.auto()
    RIGHT_UP = enum.auto()
    RIGHT_CLICK = enum.auto()
    SCROLL_UP = enum.auto()
    SCROLL_DOWN = enum.auto()
    SCROLL_LEFT = enum.auto()
    SCROLL_RIGHT = enum.auto()


class Attr(enum.IntFlag):
    NONE = 0
    BOLD = 1
    BLINK = 2
    REVERSE = 4
    UNDERLINE = 8
    DIM = 16
    ITALIC = 32
    STRIKETHROUGH = 64


_ALL_ATTRS = (
    Attr.BOLD | Attr.BLINK | Attr.REVERSE | Attr.UNDERLINE | Attr.DIM | Attr.ITALIC | Attr.STRIKETHROUGH
)

_FLAG_ATTRS = {
    "b": Attr.BOLD,
    "d": Attr.DIM,
    "i": Attr.ITALIC,
    "l": Attr.BLINK,
    "r": Attr.REVERSE,
    "s": Attr.STRIKETHROUGH,
    "u": Attr.UNDERLINE,
}


@dataclass(frozen=True)
class Style:
    """Foreground, background and attributes of a screen cell."""

    fg: int | None = None
    bg: int | None = None
    attrs: Attr = Attr.NONE

    def foreground(self, color: int | None) -> Style:
        return replace(self, fg=color)

    def background(self, color: int | None) -> Style:
        return replace(self, bg=color)

    def with_attrs(self, attrs: Attr, on: bool = True) -> Style:
        new = self.attrs | attrs if on else self.attrs & ~attrs
        return replace(self, attrs=Attr(new))

    def normal(self) -> Style:
        return replace(self, attrs=Attr.NONE)


@dataclass(frozen=True)
class Cell:
    main: str = " "
    comb: tuple[str, ...] = ()
    style: Style = field(default_factory=Style)

    @property
    def text(self) -> str:
        return self.main + "".join(self.comb)


class Screen:
    """A grid of cells that widgets draw into."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._cells = [[Cell() for _ in range(width)] for _ in range(height)]

    def _inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_content(self, x: int, y: int) -> Cell:
        """Return the cell at ``(x, y)``, or a blank cell outside the screen."""
        if not self._inside(x, y):
            return Cell()
        return self._cells[y][x]

    def set_content(self, x: int, y: int, main: str, comb, style: Style) -> None:
        """Set the cell at ``(x, y)``; positions outside the screen are ignored."""
        if self._inside(x, y):
            self._cells[y][x] = Cell(main, tuple(comb or ()), style)

    def row_text(self, y: int) -> str:
        """Return the characters of row ``y`` joined together."""
        if not 0 <= y < self.height:
            return ""
        return "".join(cell.text for cell in self._cells[y])


def get_color(name: str) -> int | None:
    """Return the colour for a name or ``#rrggbb``, or ``None`` if unknown."""
    if len(name) == 7 and name.startswith("#"):
        try:
            return int(name[1:], 16)
        except ValueError:
            return None
    return COLOR_NAMES.get(name.lower())


def color_hex(color: int | None) -> str:
    """Return ``#rrggbb`` for a colour, or an empty string for none."""
    if color is None:
        return ""
    return f"#{color:06x}"


def set_attributes(style: Style, attrs: Attr) -> Style:
    """Return ``style`` with exactly the given attributes."""
    return replace(style, attrs=Attr(attrs & _ALL_ATTRS))


def overlay_style(
    background: int | None, default_style: Style, fg_color: str, bg_color: str, attributes: str
) -> Style:
    """Mix a background with tag colours and attributes over a default style.

    Empty strings mean "unchanged", a dash resets to the default style's part.
    """
    style = default_style.background(background).foreground(default_style.fg)
    if fg_color and fg_color != "-":
        style = style.foreground(get_color(fg_color))

    if bg_color == "-" or (bg_color == "" and default_style.bg is not None):
        style = style.background(default_style.bg)
    elif bg_color:
        style = style.background(get_color(bg_color))

    if attributes == "-":
        style = set_attributes(style, default_style.attrs)
    elif attributes:
        style = style.normal()
        for flag in attributes:
            if flag in _FLAG_ATTRS:
                style = style.with_attrs(_FLAG_ATTRS[flag])
    return style


def _first(clusters) -> Cluster:
    return next(iter(clusters))


def _print_right(screen, text, info, x, y, max_width, style):
    fg = bg = attrs = ""
    original_background = style.bg
    color_pos = escape_pos = tag_offset = 0
    colors, escapes = info.color_indices, info.escape_indices
    for cluster in iterate_string(info.stripped):
        pos = cluster.text_pos + tag_offset
        if color_pos < len(colors) and colors[color_pos][0] <= pos < colors[color_pos][1]:
            fg, bg, attrs = style_from_tag(fg, bg, attrs, info.colors[color_pos])
            style = overlay_style(original_background, style, fg, bg, attrs)
            tag_offset += colors[color_pos][1] - colors[color_pos][0]
            color_pos += 1
        pos = cluster.text_pos + tag_offset
        if escape_pos < len(escapes) and escapes[escape_pos][0] <= pos < escapes[escape_pos][1]:
            tag_offset += 1
            escape_pos += 1
        if info.width - cluster.screen_pos < max_width:
            pos = cluster.text_pos + tag_offset
            if escape_pos > 0 and escapes[escape_pos - 1][0] <= pos - 1 < escapes[escape_pos - 1][1]:
                char_pos = escapes[escape_pos - 1][1] - 2
                text = text[:char_pos] + text[char_pos + 1 :]
            return print_style(screen, text[pos:], x, y, max_width, Align.LEFT, style)
    return 0, 0


def _print_center_chopped(screen, text, info, x, y, max_width, style):
    stripped = info.stripped
    chopped_left = chopped_right = left_index = 0
    right_index = len(stripped)
    while right_index - 1 > left_index and info.width - chopped_left - chopped_right > max_width:
        if chopped_left < chopped_right:
            cluster = _first(iterate_string(stripped[left_index:]))
            chopped_left += cluster.screen_width
            left_index += cluster.text_width
        else:
            cluster = _first(iterate_string_reverse(stripped[left_index:right_index]))
            chopped_right += cluster.screen_width
            right_index -= cluster.text_width

    fg = bg = attrs = ""
    original_background = style.bg
    color_pos = escape_pos = tag_offset = 0
    colors, escapes = info.color_indices, info.escape_indices
    for index in range(len(stripped)):
        if index > left_index:
            pos = left_index + tag_offset
            if escape_pos > 0 and escapes[escape_pos - 1][0] <= pos - 1 < escapes[escape_pos - 1][1]:
                char_pos = escapes[escape_pos - 1][1] - 2
                text = text[:char_pos] + text[char_pos + 1 :]
            break
        pos = index + tag_offset
        if color_pos < len(colors) and colors[color_pos][0] <= pos < colors[color_pos][1]:
            fg, bg, attrs = style_from_tag(fg, bg, attrs, info.colors[color_pos])
            style = overlay_style(original_background, style, fg, bg, attrs)
            tag_offset += colors[color_pos][1] - colors[color_pos][0]
            color_pos += 1
        pos = index + tag_offset
        if escape_pos < len(escapes) and escapes[escape_pos][0] <= pos < escapes[escape_pos][1]:
            tag_offset += 1
            escape_pos += 1
    return print_style(screen, text[left_index + tag_offset :], x, y, max_width, Align.LEFT, style)


def print_style(
    screen: Screen, text: str, x: int, y: int, max_width: int, align: Align, style: Style
) -> tuple[int, int]:
    """Print tagged text into the box ``(x, y, max_width, 1)``.

    Returns the number of characters of ``text`` consumed (tags included) and
    the screen width used. The screen's background is kept.
    """
    if max_width <= 0 or not text:
        return 0, 0

    info = decompose_text(text, True, False)

    if align == Align.RIGHT:
        if info.width <= max_width:
            return print_style(
                screen, text, x + max_width - info.width, y, max_width, Align.LEFT, style
            )
        return _print_right(screen, text, info, x, y, max_width, style)
    if align == Align.CENTER:
        if info.width == max_width:
            return print_style(screen, text, x, y, max_width, Align.LEFT, style)
        if info.width < max_width:
            half = (max_width - info.width) // 2
            return print_style(screen, text, x + half, y, max_width - half, Align.LEFT, style)
        return _print_center_chopped(screen, text, info, x, y, max_width, style)

    drawn = drawn_width = color_pos = escape_pos = tag_offset = 0
    fg = bg = attrs = ""
    colors, escapes = info.color_indices, info.escape_indices
    for cluster in iterate_string(info.stripped):
        screen_width = cluster.screen_width
        if drawn_width + screen_width > max_width:
            break

        while color_pos < len(colors) and (
            colors[color_pos][0] <= cluster.text_pos + tag_offset < colors[color_pos][1]
        ):
            fg, bg, attrs = style_from_tag(fg, bg, attrs, info.colors[color_pos])
            tag_offset += colors[color_pos][1] - colors[color_pos][0]
            color_pos += 1

        pos = cluster.text_pos + tag_offset
        if escape_pos < len(escapes) and escapes[escape_pos][0] <= pos < escapes[escape_pos][1]:
            if pos == escapes[escape_pos][1] - 2:
                tag_offset += 1
                escape_pos += 1

        final_x = x + drawn_width
        existing = screen.get_content(final_x, y)
        final_style = overlay_style(existing.style.bg, style, fg, bg, attrs)
        for offset in range(screen_width - 1, -1, -1):
            if offset == 0:
                screen.set_content(final_x, y, cluster.main, cluster.comb, final_style)
            else:
                screen.set_content(final_x + offset, y, " ", (), final_style)

        drawn += cluster.text_width
        drawn_width += screen_width

    return drawn + tag_offset + len(escapes), drawn_width


def print_text(
    screen: Screen, text: str, x: int, y: int, max_width: int, align: Align, color: int | None
) -> tuple[int, int]:
    """Like :func:`print_style`, with a foreground colour instead of a style."""
    return print_style(screen, text, x, y, max_width, align, Style().foreground(color))


def print_simple(screen: Screen, text: str, x: int, y: int) -> None:
    """Print text in the primary text colour at ``(x, y)``."""
    print_text(screen, text, x, y, _MAX_WIDTH, Align.LEFT, PRIMARY_TEXT_COLOR)


def render_scroll_bar(
    screen: Screen,
    visibility: ScrollBarVisibility,
    x: int,
    y: int,
    height: int,
    items: int,
    cursor: int,
    printed: int,
    focused: bool,
    color: int | None,
) -> None:
    """Draw one cell of a vertical scroll bar."""
    if visibility == ScrollBarVisibility.NEVER or (
        visibility == ScrollBarVisibility.AUTO and items <= height
    ):
        return

    if items <= height:
        cursor = 0
    cursor = max(cursor, 0)

    if items == 1:
        handle_position = -1  # No position is defined for a single item.
    else:
        handle_position = int((height - 1) * (cursor / (items - 1)))

    if printed == handle_position:
        text = SCROLL_BAR_HANDLE_FOCUSED if focused else SCROLL_BAR_HANDLE
    else:
        text = SCROLL_BAR_AREA_FOCUSED if focused else SCROLL_BAR_AREA
    print_text(screen, text, x, y, 1, Align.LEFT, color)