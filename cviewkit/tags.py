"""Tag-aware text measurement, decomposition and wrapping.

Text may carry colour tags such as ``[red:blue:b]``, region tags such as
``["id"]`` and escaped tags such as ``[red[]``. All positions are indices into
Python strings (code points).
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Iterator

from wcwidth import wcwidth

COLOR_PATTERN = re.compile(
    r'\[([a-zA-Z]+|#[0-9a-zA-Z]{6}|\-)?'
    r'(:([a-zA-Z]+|#[0-9a-zA-Z]{6}|\-)?(:([bdilrsu]+|\-)?)?)?\]'
)
REGION_PATTERN = re.compile(r'\["([a-zA-Z0-9_,;: \-\.]*)"\]')
ESCAPE_PATTERN = re.compile(r'\[([a-zA-Z0-9_,;: \-\."#]+)\[(\[*)\]')
NON_ESCAPE_PATTERN = re.compile(r'(\[[a-zA-Z0-9_,;: \-\."#]+\[*)\]')
BOUNDARY_PATTERN = re.compile(r'(([,\.\-:;!\?&#+]|\n)[ \t\f\r]*|([ \t\f\r]+))')
SPACE_PATTERN = re.compile(r'[\t\n\f\r ]+')

ESCAPE_REPLACEMENT = r"[\g<1>\g<2>]"

# Group numbers of the colour pattern.
COLOR_FOREGROUND_POS = 1
COLOR_BACKGROUND_POS = 3
COLOR_FLAG_POS = 5

_ZWJ = "\u200d"
_EMPTY_TAG_LENGTH = 2


@dataclass(frozen=True)
class Cluster:
    """One printed character: a main code point plus combining code points."""

    main: str
    comb: tuple[str, ...]
    text_pos: int
    text_width: int
    screen_pos: int
    screen_width: int

    @property
    def text(self) -> str:
        return self.main + "".join(self.comb)


@dataclass
class TagInfo:
    """What :func:`decompose_text` finds in a tagged string."""

    color_indices: list[tuple[int, int]] = field(default_factory=list)
    colors: list[tuple[str, ...]] = field(default_factory=list)
    region_indices: list[tuple[int, int]] = field(default_factory=list)
    regions: list[str] = field(default_factory=list)
    escape_indices: list[tuple[int, int]] = field(default_factory=list)
    stripped: str = ""
    width: int = 0


def string_width(text: str) -> int:
    """Return the number of screen cells needed to print ``text``."""
    return sum(max(wcwidth(ch), 0) for ch in text)


def _extends(ch: str) -> bool:
    if ch == _ZWJ or unicodedata.combining(ch):
        return True
    if unicodedata.category(ch) in ("Mn", "Me", "Mc"):
        return True
    code = ord(ch)
    return 0xFE00 <= code <= 0xFE0F or 0x1F3FB <= code <= 0x1F3FF


def _graphemes(text: str) -> Iterator[str]:
    current = ""
    joined = False
    for ch in text:
        if current and (joined or _extends(ch) or (current == "\r" and ch == "\n")):
            current += ch
            joined = ch == _ZWJ
            continue
        if current:
            yield current
        current = ch
        joined = False
    if current:
        yield current


def iterate_string(text: str) -> Iterator[Cluster]:
    """Yield the printed characters of ``text`` from left to right."""
    text_pos = 0
    screen_pos = 0
    for grapheme in _graphemes(text):
        width = string_width(grapheme)
        yield Cluster(
            main=grapheme[0],
            comb=tuple(grapheme[1:]),
            text_pos=text_pos,
            text_width=len(grapheme),
            screen_pos=screen_pos,
            screen_width=width,
        )
        text_pos += len(grapheme)
        screen_pos += width


def iterate_string_reverse(text: str) -> Iterator[Cluster]:
    """Yield the printed characters of ``text`` from right to left."""
    return reversed(list(iterate_string(text)))


def _groups(match: re.Match) -> tuple[str, ...]:
    return (match.group(0), *(group or "" for group in match.groups()))


def _without_empty_tags(matches: list[re.Match]) -> list[re.Match]:
    return [m for m in matches if m.end() - m.start() != _EMPTY_TAG_LENGTH]


def decompose_text(text: str, find_colors: bool, find_regions: bool) -> TagInfo:
    """Locate colour, region and escape tags and strip them from ``text``."""
    if not find_colors and not find_regions:
        return TagInfo(stripped=text, width=string_width(text))

    info = TagInfo()
    if find_colors:
        color_matches = _without_empty_tags(list(COLOR_PATTERN.finditer(text)))
        info.color_indices = [m.span() for m in color_matches]
        info.colors = [_groups(m) for m in color_matches]
    if find_regions:
        region_matches = list(REGION_PATTERN.finditer(text))
        info.region_indices = [m.span() for m in region_matches]
        info.regions = [m.group(1) for m in region_matches]
    info.escape_indices = [m.span() for m in ESCAPE_PATTERN.finditer(text)]

    all_indices = sorted(info.color_indices + info.region_indices, key=lambda span: span[0])
    pieces = []
    start = 0
    for tag_start, tag_end in all_indices:
        pieces.append(text[start:tag_start])
        start = tag_end
    pieces.append(text[start:])

    info.stripped = ESCAPE_PATTERN.sub(ESCAPE_REPLACEMENT, "".join(pieces))
    info.width = string_width(info.stripped)
    return info


def strip_tags(text: str, colors: bool, regions: bool) -> str:
    """Return ``text`` without colour and/or region tags."""
    if not colors and not regions:
        return text

    stripped = text
    source = text
    if regions:
        stripped = REGION_PATTERN.sub("", text)
        source = stripped
    if colors:
        stripped = COLOR_PATTERN.sub(
            lambda m: "" if len(m.group(0)) > _EMPTY_TAG_LENGTH else m.group(0), source
        )
    return ESCAPE_PATTERN.sub(ESCAPE_REPLACEMENT, stripped)


def escape(text: str) -> str:
    """Escape tag-like sequences so they print literally."""
    return NON_ESCAPE_PATTERN.sub(r"\g<1>[]", text)


def style_from_tag(
    fg_color: str, bg_color: str, attributes: str, groups: tuple[str, ...]
) -> tuple[str, str, str]:
    """Apply a colour tag's groups to a style.

    ``groups`` holds the whole tag followed by the colour pattern's groups, as
    found in :attr:`TagInfo.colors`. An empty string means "unchanged", a
    dash means "reset to default".
    """
    foreground = groups[COLOR_FOREGROUND_POS]
    if foreground:
        fg_color = "-" if foreground == "-" else foreground

    if groups[COLOR_BACKGROUND_POS - 1]:
        background = groups[COLOR_BACKGROUND_POS]
        if background == "-":
            bg_color = "-"
        elif background:
            bg_color = background

    if groups[COLOR_FLAG_POS - 1]:
        flags = groups[COLOR_FLAG_POS]
        if flags == "-":
            attributes = "-"
        elif flags:
            attributes = flags

    return fg_color, bg_color, attributes


def tagged_text_width(text: str) -> int:
    """Return the screen width of ``text``, not counting colour tags."""
    return decompose_text(text, True, False).width


def word_wrap(text: str, width: int) -> list[str]:
    """Split ``text`` into lines no wider than ``width``.

    Lines break after punctuation or whitespace, and always at newlines.
    Whitespace after a break point is dropped. Colour tags have no width.
    """
    info = decompose_text(text, True, False)
    color_indices = info.color_indices
    escape_indices = info.escape_indices
    breakpoints = [
        (m.start(), m.end(), m.start(3)) for m in BOUNDARY_PATTERN.finditer(info.stripped)
    ]

    def unescape(substr: str, start_index: int, escape_pos: int) -> str:
        for esc_start, esc_end in reversed(escape_indices[: escape_pos + 1]):
            if esc_start < start_index < esc_end - 1:
                pos = esc_end - 2 - start_index
                if pos < 0 or pos > len(substr):
                    return substr
                return substr[:pos] + substr[pos + 1 :]
        return substr

    lines: list[str] = []
    color_pos = escape_pos = breakpoint_pos = tag_offset = 0
    last_breakpoint = last_continuation = current_line_start = 0
    line_width = overflow = 0
    force_break = False

    for cluster in iterate_string(info.stripped):
        screen_width = cluster.screen_width

        while True:
            pos = cluster.text_pos + tag_offset
            if color_pos < len(color_indices) and (
                color_indices[color_pos][0] <= pos < color_indices[color_pos][1]
            ):
                tag_start, tag_end = color_indices[color_pos]
                tag_offset += tag_end - tag_start
                color_pos += 1
            elif escape_pos < len(escape_indices) and pos == escape_indices[escape_pos][1] - 2:
                tag_offset += 1
                escape_pos += 1
            else:
                break
        pos = cluster.text_pos + tag_offset

        if breakpoint_pos < len(breakpoints) and pos == breakpoints[breakpoint_pos][0]:
            bp_start, bp_end, space_group = breakpoints[breakpoint_pos]
            last_breakpoint = bp_start + tag_offset
            last_continuation = bp_end + tag_offset
            overflow = 0
            force_break = cluster.main == "\n"
            if space_group < 0 and not force_break:
                last_breakpoint += 1  # Keep the punctuation on this line.
            breakpoint_pos += 1

        if force_break or (line_width > 0 and line_width + screen_width > width):
            breakpoint = last_breakpoint
            continuation = last_continuation
            if force_break:
                breakpoint = pos
                continuation = pos + 1
                last_breakpoint = 0
                overflow = 0
            elif last_breakpoint <= current_line_start:
                breakpoint = pos
                continuation = pos
                overflow = 0
            lines.append(
                unescape(text[current_line_start:breakpoint], current_line_start, escape_pos)
            )
            current_line_start, line_width, force_break = continuation, overflow, False

        if last_breakpoint > 0 and last_continuation <= pos:
            overflow += screen_width

        line_width += screen_width

        if pos < current_line_start:
            line_width -= screen_width

    if current_line_start < len(text):
        lines.append(unescape(text[current_line_start:], current_line_start, escape_pos))

    return lines