"""Line index of a tagged text buffer, and region text extraction.

The index maps every screen line to the part of a buffer line it shows,
along with the colours, attributes and region in effect where it starts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .tags import (
    BOUNDARY_PATTERN,
    COLOR_PATTERN,
    ESCAPE_PATTERN,
    ESCAPE_REPLACEMENT,
    REGION_PATTERN,
    SPACE_PATTERN,
    decompose_text,
    iterate_string,
    string_width,
    style_from_tag,
)

_TRAILING_SPACE = re.compile(
    "[\t\n\v\f\r \x85\xa0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000]+$"
)

_COLOR_TAG = 0
_REGION_TAG = 1
_ESCAPE_TAG = 2


@dataclass
class IndexLine:
    """One screen line: a slice ``[pos, next_pos)`` of buffer line ``line``."""

    line: int
    pos: int
    next_pos: int = 0
    width: int = 0
    foreground_color: str = ""
    background_color: str = ""
    attributes: str = ""
    region: str = ""


@dataclass
class RegionInfo:
    """Screen extent of a region as of the last draw; negative means unknown."""

    id: str
    from_x: int
    from_y: int
    to_x: int = -1
    to_y: int = -1


@dataclass
class IndexResult:
    """The screen lines of a buffer and where the highlights are."""

    lines: list[IndexLine] = field(default_factory=list)
    from_highlight: int = -1
    to_highlight: int = -1
    pos_highlight: int = -1
    longest_line: int = 0


def _truncate(text: str, width: int) -> str:
    """Return the longest prefix of whole characters no wider than ``width``."""
    end = 0
    for cluster in iterate_string(text):
        if cluster.screen_pos + cluster.screen_width > width:
            break
        end = cluster.text_pos + cluster.text_width
    return text[:end]


def _split_line(text: str, width: int, word_wrap: bool) -> list[str]:
    pieces = []
    while text:
        extract = _truncate(text, width)
        if not extract:
            first = next(iterate_string(text))
            extract = text[: first.text_width]
        if word_wrap and len(extract) < len(text):
            spaces = SPACE_PATTERN.match(text, len(extract))
            if spaces:
                extract = text[: spaces.end()]
            boundaries = list(BOUNDARY_PATTERN.finditer(extract))
            if boundaries:
                extract = extract[: boundaries[-1].end()]
        pieces.append(extract)
        text = text[len(extract) :]
    return pieces


def build_index(
    buffer: list[str],
    width: int,
    wrap: bool,
    word_wrap: bool,
    dynamic_colors: bool,
    regions: bool,
    highlights,
) -> IndexResult:
    """Split ``buffer`` into screen lines of at most ``width`` cells."""
    result = IndexResult()
    if width < 1:
        return result

    foreground = background = attributes = ""
    region_id = ""

    for buffer_index, text in enumerate(buffer):
        info = decompose_text(text, dynamic_colors, regions)
        stripped = info.stripped
        if wrap and stripped:
            split_lines = _split_line(stripped, width, word_wrap)
        else:
            split_lines = [stripped]

        first_new = len(result.lines)
        original_pos = color_pos = region_pos = escape_pos = 0
        for split_line in split_lines:
            line = IndexLine(
                line=buffer_index,
                pos=original_pos,
                foreground_color=foreground,
                background_color=background,
                attributes=attributes,
                region=region_id,
            )

            line_length = len(split_line)
            remaining = line_length
            tag_end = original_pos
            total_tag_length = 0
            while True:
                candidates = []
                if color_pos < len(info.color_indices):
                    candidates.append((*info.color_indices[color_pos], _COLOR_TAG))
                if region_pos < len(info.region_indices):
                    candidates.append((*info.region_indices[region_pos], _REGION_TAG))
                if escape_pos < len(info.escape_indices):
                    candidates.append((*info.escape_indices[escape_pos], _ESCAPE_TAG))
                if not candidates:
                    break
                tag_start, next_end, kind = min(candidates, key=lambda tag: tag[0])
                if tag_start > tag_end + remaining:
                    break

                stripped_tag_start = tag_start - original_pos - total_tag_length
                tag_end = next_end
                tag_length = 1 if kind == _ESCAPE_TAG else tag_end - tag_start
                total_tag_length += tag_length
                remaining = line_length - (tag_end - original_pos - total_tag_length)

                if kind == _COLOR_TAG:
                    foreground, background, attributes = style_from_tag(
                        foreground, background, attributes, info.colors[color_pos]
                    )
                    color_pos += 1
                elif kind == _REGION_TAG:
                    region_id = info.regions[region_pos]
                    if region_id in highlights:
                        current = len(result.lines)
                        if result.from_highlight < 0:
                            result.from_highlight = result.to_highlight = current
                            result.pos_highlight = string_width(
                                split_line[: max(stripped_tag_start, 0)]
                            )
                        elif current > result.to_highlight:
                            result.to_highlight = current
                    region_pos += 1
                else:
                    escape_pos += 1

            original_pos += line_length + total_tag_length
            line.next_pos = original_pos
            line.width = string_width(split_line)
            result.lines.append(line)

        if wrap and word_wrap:
            for line in result.lines[first_new:]:
                shown = text[line.pos : line.next_pos]
                trailing = _TRAILING_SPACE.search(shown)
                if trailing:
                    old_next = line.next_pos
                    line.next_pos -= len(trailing.group(0))
                    line.width -= string_width(text[line.next_pos : old_next])

    result.longest_line = max((line.width for line in result.lines), default=0)
    return result


def region_text(buffer: list[str], region_id: str, dynamic_colors: bool) -> str:
    """Return the text of region ``region_id``, without colour tags.

    Lines are joined with newlines; an unknown region or an empty ID gives an
    empty string.
    """
    if not region_id:
        return ""

    out: list[str] = []
    current_id = ""
    for text in buffer:
        color_spans = [m.span() for m in COLOR_PATTERN.finditer(text)] if dynamic_colors else []
        region_matches = list(REGION_PATTERN.finditer(text))

        current_tag = current_region = 0
        for pos, ch in enumerate(text):
            if current_tag < len(color_spans) and (
                color_spans[current_tag][0] <= pos < color_spans[current_tag][1]
            ):
                if pos == color_spans[current_tag][1] - 1:
                    current_tag += 1
                    if current_tag == len(color_spans):
                        continue
                start, end = color_spans[current_tag]
                if end - start > 2:
                    continue

            if current_region < len(region_matches) and (
                region_matches[current_region].start()
                <= pos
                < region_matches[current_region].end()
            ):
                if pos == region_matches[current_region].end() - 1:
                    if current_id == region_id:
                        return "".join(out)
                    current_id = region_matches[current_region].group(1)
                    current_region += 1
                continue

            if current_id == region_id:
                out.append(ch)

        if current_id == region_id:
            out.append("\n")

    return ESCAPE_PATTERN.sub(ESCAPE_REPLACEMENT, "".join(out))