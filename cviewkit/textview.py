"""A scrollable, tag-aware text widget that can be written to like a stream."""

from __future__ import annotations

import codecs
import re
import threading
from typing import Callable

from .screen import (
    PRIMARY_TEXT_COLOR,
    Align,
    Key,
    MouseAction,
    Screen,
    ScrollBarVisibility,
    Style,
    VerticalAlignment,
    overlay_style,
    render_scroll_bar,
)
from .tags import decompose_text, iterate_string, strip_tags, style_from_tag
from .textindex import IndexLine, RegionInfo, build_index, region_text

TAB_SIZE = 4
"""Number of spaces a tab character is replaced with."""

_OPEN_COLOR = re.compile(r"\[([a-zA-Z]*|#[0-9a-zA-Z]*)\Z")
_OPEN_REGION = re.compile(r'\["[a-zA-Z0-9_,;: \-\.]*"?\Z')

_WHITE = 0xFFFFFF
_BLACK = 0x000000

_DONE_KEYS = {Key.ESCAPE, Key.ENTER, Key.TAB, Key.BACKTAB}
_MOVE_FIRST = {"g", Key.HOME}
_MOVE_LAST = {"G", Key.END}
_MOVE_UP = {"k", Key.UP}
_MOVE_DOWN = {"j", Key.DOWN}
_MOVE_LEFT = {"h", Key.LEFT}
_MOVE_RIGHT = {"l", Key.RIGHT}
_PREVIOUS_PAGE = {Key.PAGE_UP, Key.CTRL_B}
_NEXT_PAGE = {Key.PAGE_DOWN, Key.CTRL_F}


def _div(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def _lightness(color: int) -> float:
    """Return the CIE lightness of an RGB colour on a 0..1 scale."""

    def linear(channel: int) -> float:
        value = channel / 255
        return value / 12.92 if value <= 0.04045 else ((value + 0.055) / 1.055) ** 2.4

    r, g, b = (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF
    luminance = 0.2126729 * linear(r) + 0.7151522 * linear(g) + 0.0721750 * linear(b)
    delta = 6 / 29
    if luminance > delta**3:
        f = luminance ** (1 / 3)
    else:
        f = luminance / (3 * delta * delta) + 4 / 29
    return 1.16 * f - 0.16


class TextView:
    """A box showing text that may carry colour and region tags.

    Text is appended with :meth:`write`; tabs become :data:`TAB_SIZE` spaces
    and ``"\\n"`` starts a new line. When scrollable, the text is kept in a
    buffer that can be navigated with the keyboard and the mouse; otherwise
    lines scrolled out of view are discarded when drawing.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

        self._rect = (0, 0, 15, 10)
        self.visible = True
        self.has_focus = False
        self.background_color: int | None = None

        self._buffer: list[str] = []
        self._recent = ""
        self._last_width = 0
        self._last_height = 0
        self._index: list[IndexLine] | None = None
        self._index_width = 0
        self._reindex = True
        self._align = Align.LEFT
        self._valign = VerticalAlignment.TOP
        self._region_infos: list[RegionInfo] = []
        self._from_highlight = -1
        self._to_highlight = -1
        self._pos_highlight = -1
        self._highlights: dict[str, None] = {}
        self._longest_line = 0
        self._line_offset = -1
        self._max_lines = 0
        self._track_end = False
        self._column_offset = 0
        self._page_size = 0
        self._scrollable = True
        self._wrap = True
        self._word_wrap = False
        self._dynamic_colors = False
        self._regions = False
        self._scroll_to_highlights = False

        self.scroll_bar_visibility = ScrollBarVisibility.AUTO
        self.scroll_bar_color: int | None = PRIMARY_TEXT_COLOR
        self.wrap_width = 0
        self.text_color: int | None = PRIMARY_TEXT_COLOR
        self.highlight_foreground: int | None = _BLACK
        self.highlight_background: int | None = PRIMARY_TEXT_COLOR
        self.toggle_highlights = False

        self.on_changed: Callable[[], None] | None = None
        self.on_done: Callable[[object], None] | None = None
        self.on_highlighted: Callable[[list[str], list[str], list[str]], None] | None = None

    # Configuration -----------------------------------------------------

    def _set_indexed(self, name: str, value) -> None:
        with self._lock:
            if getattr(self, name) != value:
                self._index = None
            setattr(self, name, value)

    @property
    def wrap(self) -> bool:
        """Whether lines wider than the view continue on the next line."""
        return self._wrap

    @wrap.setter
    def wrap(self, value: bool) -> None:
        self._set_indexed("_wrap", value)

    @property
    def word_wrap(self) -> bool:
        """Whether wrapping happens at spaces and after punctuation."""
        return self._word_wrap

    @word_wrap.setter
    def word_wrap(self, value: bool) -> None:
        self._set_indexed("_word_wrap", value)

    @property
    def text_align(self) -> Align:
        return self._align

    @text_align.setter
    def text_align(self, value: Align) -> None:
        self._set_indexed("_align", value)

    @property
    def vertical_align(self) -> VerticalAlignment:
        return self._valign

    @vertical_align.setter
    def vertical_align(self, value: VerticalAlignment) -> None:
        self._set_indexed("_valign", value)

    @property
    def dynamic_colors(self) -> bool:
        """Whether colour tags in the text are interpreted."""
        return self._dynamic_colors

    @dynamic_colors.setter
    def dynamic_colors(self, value: bool) -> None:
        self._set_indexed("_dynamic_colors", value)

    @property
    def regions(self) -> bool:
        """Whether region tags in the text are interpreted."""
        return self._regions

    @regions.setter
    def regions(self, value: bool) -> None:
        self._set_indexed("_regions", value)

    @property
    def scrollable(self) -> bool:
        return self._scrollable

    @scrollable.setter
    def scrollable(self, value: bool) -> None:
        with self._lock:
            self._scrollable = value
            if not value:
                self._track_end = True

    @property
    def reindex(self) -> bool:
        """Whether the line index is rebuilt whenever the buffer changes."""
        return self._reindex

    @reindex.setter
    def reindex(self, value: bool) -> None:
        with self._lock:
            self._reindex = value
            if value:
                self._index = None

    @property
    def max_lines(self) -> int:
        return self._max_lines

    def set_rect(self, x: int, y: int, width: int, height: int) -> None:
        """Place the view on the screen."""
        with self._lock:
            self._rect = (x, y, width, height)

    def _in_rect(self, x: int, y: int) -> bool:
        rx, ry, width, height = self._rect
        return rx <= x < rx + width and ry <= y < ry + height

    # Content -----------------------------------------------------------

    def write(self, data: str | bytes) -> int:
        """Append text and return how much of ``data`` was taken.

        Bytes are decoded as UTF-8; an incomplete trailing sequence waits for
        the next write, as do trailing unfinished colour or region tags.
        """
        if isinstance(data, (bytes, bytearray)):
            text = self._decoder.decode(bytes(data))
        else:
            text = data
        with self._lock:
            self._append(text)
            handler = self.on_changed
        if handler is not None:
            handler()
        return len(data)

    def _append(self, text: str) -> None:
        if not text:
            return
        new = self._recent + text
        self._recent = ""

        if self._dynamic_colors:
            match = _OPEN_COLOR.search(new)
            if match:
                self._recent = new[match.start() :]
                new = new[: match.start()]
        if self._regions:
            match = _OPEN_REGION.search(new)
            if match:
                self._recent = new[match.start() :]
                new = new[: match.start()]

        new = new.replace("\t", " " * TAB_SIZE)
        first, *rest = new.split("\n")
        if self._buffer:
            self._buffer[-1] += first
        else:
            self._buffer = [first]
        self._buffer.extend(rest)

        self._clip_buffer()
        if self._reindex:
            self._index = None

    def _clip_buffer(self) -> None:
        if self._max_lines > 0 and len(self._buffer) > self._max_lines:
            self._buffer = self._buffer[-self._max_lines :]

    def _clear(self) -> None:
        self._buffer = []
        self._recent = ""
        self._decoder.reset()
        if self._reindex:
            self._index = None

    def set_text(self, text: str) -> None:
        """Replace the whole text."""
        with self._lock:
            self._clear()
            self._append(text)

    def clear(self) -> None:
        """Remove all text."""
        with self._lock:
            self._clear()

    def get_text(self, strip_tags: bool) -> str:
        """Return the text, optionally without colour and region tags."""
        with self._lock:
            if not strip_tags:
                lines = self._buffer + [self._recent] if self._recent else self._buffer
                return "\n".join(lines)
            return _strip("\n".join(self._buffer), self._dynamic_colors, self._regions)

    def get_buffer_size(self) -> tuple[int, int]:
        """Return the number of buffer lines and the widest indexed line."""
        with self._lock:
            return len(self._buffer), self._longest_line

    def set_max_lines(self, max_lines: int) -> None:
        """Keep at most ``max_lines`` lines, dropping the oldest (0 = no limit)."""
        with self._lock:
            self._max_lines = max_lines
            self._clip_buffer()

    # Highlights --------------------------------------------------------

    def highlight(self, *args: str) -> None:
        """Highlight the given regions, or toggle them if toggling is on.

        Without toggling, all other regions lose their highlight. Empty IDs
        are ignored.
        """
        with self._lock:
            region_ids = list(args)
            if self.toggle_highlights:
                kept = [rid for rid in self._highlights if rid not in region_ids]
                new = [rid for rid in region_ids if rid not in self._highlights]
                region_ids = kept + new

            handler = self.on_highlighted
            added: list[str] = []
            removed: list[str] = []
            remaining: list[str] = []
            if handler is not None:
                previous = dict(self._highlights)
                for rid in region_ids:
                    if rid in previous:
                        remaining.append(rid)
                        del previous[rid]
                    else:
                        added.append(rid)
                removed = list(previous)

            self._highlights = {rid: None for rid in region_ids if rid}
            self._index = None

        if handler is not None and (added or removed):
            handler(added, removed, remaining)

    def get_highlights(self) -> list[str]:
        """Return the IDs of the highlighted regions."""
        with self._lock:
            return list(self._highlights)

    def get_region_text(self, region_id: str) -> str:
        """Return a region's text without colour tags, or "" if there is none."""
        with self._lock:
            if not self._regions or not region_id:
                return ""
            return region_text(self._buffer, region_id, self._dynamic_colors)

    # Scrolling ---------------------------------------------------------

    def scroll_to(self, row: int, column: int) -> None:
        with self._lock:
            if not self._scrollable:
                return
            self._line_offset = row
            self._column_offset = column
            self._track_end = False

    def scroll_to_beginning(self) -> None:
        with self._lock:
            if not self._scrollable:
                return
            self._track_end = False
            self._line_offset = 0
            self._column_offset = 0

    def scroll_to_end(self) -> None:
        """Scroll to the bottom and keep following new text."""
        with self._lock:
            if not self._scrollable:
                return
            self._track_end = True
            self._column_offset = 0

    def scroll_to_highlight(self) -> None:
        """Bring the highlighted regions into view on the next draw."""
        with self._lock:
            if not self._highlights or not self._scrollable or not self._regions:
                return
            self._index = None
            self._scroll_to_highlights = True
            self._track_end = False

    def get_scroll_offset(self) -> tuple[int, int]:
        """Return the skipped rows and columns at the top left."""
        with self._lock:
            return self._line_offset, self._column_offset

    # Drawing -----------------------------------------------------------

    def _reindex_buffer(self, width: int) -> None:
        if self._index is not None and (not self._wrap or width == self._index_width):
            return
        self._index = None
        self._index_width = width
        self._from_highlight = self._to_highlight = self._pos_highlight = -1
        if width < 1:
            return
        if 0 < self.wrap_width < width:
            width = self.wrap_width
        result = build_index(
            self._buffer,
            width,
            self._wrap,
            self._word_wrap,
            self._dynamic_colors,
            self._regions,
            self._highlights,
        )
        self._index = result.lines or None
        self._from_highlight = result.from_highlight
        self._to_highlight = result.to_highlight
        self._pos_highlight = result.pos_highlight
        self._longest_line = result.longest_line

    def draw(self, screen: Screen) -> None:
        """Draw the view onto ``screen``."""
        if not self.visible:
            return
        with self._lock:
            x, y, width, height = self._rect
            fill = Style(bg=self.background_color)
            for row in range(y, y + height):
                for col in range(x, x + width):
                    screen.set_content(col, row, " ", (), fill)
            if height == 0:
                return
            self._page_size = height

            if self._index is None or width != self._last_width or height != self._last_height:
                self._reindex_buffer(width)
            self._last_width, self._last_height = width, height

            show_bar = self.scroll_bar_visibility == ScrollBarVisibility.ALWAYS or (
                self.scroll_bar_visibility == ScrollBarVisibility.AUTO
                and len(self._index or ()) > height
            )
            if show_bar:
                width -= 1

            self._reindex_buffer(width)
            if self._regions:
                self._region_infos = []

            self._draw_lines(screen, x, y, width, height)
            if show_bar:
                self._draw_scroll_bar(screen, x + width, y, height)

    def _draw_scroll_bar(self, screen: Screen, x: int, y: int, height: int) -> None:
        items = len(self._index or ())
        span = items - height
        cursor = 0 if span == 0 else int(items * (self._line_offset / span))
        if self._track_end and items <= height:
            items = height + 1
            cursor = height
        for printed in range(height):
            render_scroll_bar(
                screen,
                self.scroll_bar_visibility,
                x,
                y + printed,
                height,
                items,
                cursor,
                printed,
                self.has_focus,
                self.scroll_bar_color,
            )

    def _scroll_into_highlight(self, width: int, height: int) -> None:
        if self._to_highlight - self._from_highlight + 1 < height:
            self._line_offset = _div(self._from_highlight + self._to_highlight - height, 2)
        else:
            self._line_offset = self._from_highlight
        if self._pos_highlight - self._column_offset > _div(3 * width, 4):
            self._column_offset = self._pos_highlight - _div(width, 2)
        if self._pos_highlight - self._column_offset < 0:
            self._column_offset = self._pos_highlight - _div(width, 4)

    def _adjust_column_offset(self, width: int) -> None:
        longest = self._longest_line
        if self._align == Align.LEFT:
            if self._column_offset + width > longest:
                self._column_offset = longest - width
            self._column_offset = max(self._column_offset, 0)
        elif self._align == Align.RIGHT:
            if self._column_offset - width < -longest:
                self._column_offset = width - longest
            self._column_offset = min(self._column_offset, 0)
        else:
            half = _div(longest - width, 2)
            if half > 0:
                self._column_offset = max(-half, min(self._column_offset, half))
            else:
                self._column_offset = 0

    def _draw_lines(self, screen: Screen, x: int, y: int, width: int, height: int) -> None:
        index = self._index
        if index is None:
            return

        if self._regions and self._scroll_to_highlights and self._from_highlight >= 0:
            self._scroll_into_highlight(width, height)
        self._scroll_to_highlights = False

        count = len(index)
        if self._line_offset + height > count:
            self._track_end = True
        if self._track_end:
            self._line_offset = count - height
        self._line_offset = max(self._line_offset, 0)

        self._adjust_column_offset(width)

        vertical_offset = 0
        if count < height:
            if self._valign == VerticalAlignment.MIDDLE:
                vertical_offset = _div(height - count, 2)
            elif self._valign == VerticalAlignment.BOTTOM:
                vertical_offset = height - count

        default_style = Style(fg=self.text_color, bg=self.background_color)
        for line_no in range(self._line_offset, min(count, self._line_offset + height)):
            self._draw_line(
                screen,
                index[line_no],
                x,
                y + line_no - self._line_offset,
                width,
                vertical_offset,
                default_style,
            )

        if not self._scrollable and self._line_offset > 0:
            if self._line_offset >= count:
                self._buffer = []
            else:
                self._buffer = self._buffer[index[self._line_offset].line :]
            self._index = None
            self._line_offset = 0

    def _highlight_style(self, style: Style) -> Style:
        fg = self.highlight_foreground
        bg = self.highlight_background
        if fg is None:
            fg = PRIMARY_TEXT_COLOR if PRIMARY_TEXT_COLOR is not None else _WHITE
        if bg is None:
            bg = _WHITE if _lightness(fg) < 0.5 else _BLACK
        return style.foreground(fg).background(bg)

    def _draw_line(
        self,
        screen: Screen,
        entry: IndexLine,
        x: int,
        row_y: int,
        width: int,
        vertical_offset: int,
        default_style: Style,
    ) -> None:
        text = self._buffer[entry.line][entry.pos : entry.next_pos]
        fg, bg, attrs = entry.foreground_color, entry.background_color, entry.attributes
        region_id = entry.region
        infos = self._region_infos

        if self._regions:
            if infos and infos[-1].id != region_id:
                infos[-1].to_x = x
                infos[-1].to_y = row_y
            if region_id and (not infos or infos[-1].id != region_id):
                infos.append(RegionInfo(region_id, x, row_y))

        info = decompose_text(text, self._dynamic_colors, self._regions)

        if self._align == Align.LEFT:
            pos_x = -self._column_offset
        elif self._align == Align.RIGHT:
            pos_x = width - entry.width - self._column_offset
        else:
            pos_x = _div(width - entry.width, 2) - self._column_offset
        skip = 0
        if pos_x < 0:
            skip = -pos_x
            pos_x = 0

        draw_y = row_y + vertical_offset
        if draw_y < 0:
            return

        colors, region_spans, escapes = info.color_indices, info.region_indices, info.escape_indices
        color_pos = region_pos = escape_pos = tag_offset = skipped = 0
        for cluster in iterate_string(info.stripped):
            while True:
                pos = cluster.text_pos + tag_offset
                if color_pos < len(colors) and colors[color_pos][0] <= pos < colors[color_pos][1]:
                    fg, bg, attrs = style_from_tag(fg, bg, attrs, info.colors[color_pos])
                    tag_offset += colors[color_pos][1] - colors[color_pos][0]
                    color_pos += 1
                elif region_pos < len(region_spans) and (
                    region_spans[region_pos][0] <= pos < region_spans[region_pos][1]
                ):
                    if region_id and infos and infos[-1].id == region_id:
                        infos[-1].to_x = x + pos_x
                        infos[-1].to_y = row_y
                    region_id = info.regions[region_pos]
                    if region_id:
                        infos.append(RegionInfo(region_id, x + pos_x, row_y))
                    tag_offset += region_spans[region_pos][1] - region_spans[region_pos][0]
                    region_pos += 1
                else:
                    break

            if escape_pos < len(escapes) and (
                cluster.text_pos + tag_offset == escapes[escape_pos][1] - 2
            ):
                tag_offset += 1
                escape_pos += 1

            existing = screen.get_content(x + pos_x, draw_y)
            style = overlay_style(existing.style.bg, default_style, fg, bg, attrs)
            if region_id and region_id in self._highlights:
                style = self._highlight_style(style)

            screen_width = cluster.screen_width
            if not self._wrap and skipped < skip:
                skipped += screen_width
                continue
            if pos_x + screen_width > width:
                break

            for offset in range(screen_width - 1, -1, -1):
                if offset == 0:
                    screen.set_content(x + pos_x, draw_y, cluster.main, cluster.comb, style)
                else:
                    screen.set_content(x + pos_x + offset, draw_y, " ", (), style)
            pos_x += screen_width

    # Input -------------------------------------------------------------

    def handle_key(self, key) -> None:
        """React to a key: a :class:`Key` or a one-character string."""
        if key in _DONE_KEYS:
            if self.on_done is not None:
                self.on_done(key)
            return

        with self._lock:
            if not self._scrollable:
                return
            if key in _MOVE_FIRST:
                self._track_end = False
                self._line_offset = 0
                self._column_offset = 0
            elif key in _MOVE_LAST:
                self._track_end = True
                self._column_offset = 0
            elif key in _MOVE_UP:
                self._track_end = False
                self._line_offset -= 1
            elif key in _MOVE_DOWN:
                self._line_offset += 1
            elif key in _MOVE_LEFT:
                self._column_offset -= 1
            elif key in _MOVE_RIGHT:
                self._column_offset += 1
            elif key in _PREVIOUS_PAGE:
                self._track_end = False
                self._line_offset -= self._page_size
            elif key in _NEXT_PAGE:
                self._line_offset += self._page_size

    def handle_mouse(self, action: MouseAction, x: int, y: int) -> bool:
        """React to a mouse event at ``(x, y)``; return whether it was consumed."""
        if not self._in_rect(x, y):
            return False

        if action == MouseAction.LEFT_CLICK:
            if self._regions:
                for region in list(self._region_infos):
                    if (
                        (y == region.from_y and x < region.from_x)
                        or (y == region.to_y and x >= region.to_x)
                        or (region.from_y >= 0 and y < region.from_y)
                        or (region.to_y >= 0 and y > region.to_y)
                    ):
                        continue
                    self.highlight(region.id)
                    break
            self.has_focus = True
            return True

        with self._lock:
            if action == MouseAction.SCROLL_UP and self._scrollable:
                self._track_end = False
                self._line_offset -= 1
                return True
            if action == MouseAction.SCROLL_DOWN and self._scrollable:
                self._line_offset += 1
                return True
        return False


def _strip(text: str, colors: bool, regions: bool) -> str:
    return strip_tags(text, colors, regions)