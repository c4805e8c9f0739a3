import pytest

from cviewkit.tags import (
    COLOR_PATTERN,
    Cluster,
    TagInfo,
    decompose_text,
    escape,
    iterate_string,
    iterate_string_reverse,
    strip_tags,
    string_width,
    style_from_tag,
    tagged_text_width,
    word_wrap,
)

SUFFIX = '["start"]outer[b]inner[-]outer[""]'


def test_strip_tags_colors_and_regions():
    assert strip_tags(SUFFIX, True, True) == "outerinnerouter"


def test_strip_tags_without_flags_returns_text():
    assert strip_tags(SUFFIX, False, False) == SUFFIX


def test_strip_tags_regions_only_keeps_colors():
    assert strip_tags(SUFFIX, False, True) == "outer[b]inner[-]outer"


@pytest.mark.parametrize("text", ["[red]", '["quoted"]', "[a:b:c]", "plain [x] text"])
def test_escape_round_trip(text):
    assert strip_tags(escape(text), True, True) == text


def test_escape_leaves_plain_text():
    assert escape("no tags here") == "no tags here"


def test_decompose_trivial_case():
    info = decompose_text(SUFFIX, False, False)
    assert isinstance(info, TagInfo)
    assert info.stripped == SUFFIX
    assert info.color_indices == [] and info.region_indices == []
    assert info.width == string_width(SUFFIX)


def test_decompose_removes_tag_spans():
    info = decompose_text(SUFFIX, True, True)
    assert info.stripped == "outerinnerouter"
    assert info.regions == ["start", ""]
    spans = sorted(info.color_indices + info.region_indices)
    kept = []
    start = 0
    for tag_start, tag_end in spans:
        kept.append(SUFFIX[start:tag_start])
        start = tag_end
    kept.append(SUFFIX[start:])
    assert "".join(kept) == info.stripped
    assert info.width == string_width(info.stripped)


def test_decompose_ignores_empty_color_tag():
    info = decompose_text("a[]b", True, False)
    assert info.color_indices == []
    assert info.stripped == "a[]b"


def test_decompose_color_groups_match_pattern():
    info = decompose_text("x[red:blue:b]y", True, False)
    assert len(info.colors) == 1
    start, end = info.color_indices[0]
    assert COLOR_PATTERN.fullmatch("x[red:blue:b]y"[start:end])
    assert info.colors[0][0] == "[red:blue:b]"


def test_style_from_tag_full():
    groups = decompose_text("[red:blue:b]", True, False).colors[0]
    assert style_from_tag("", "", "", groups) == ("red", "blue", "b")


def test_style_from_tag_reset():
    groups = decompose_text("[-:-:-]", True, False).colors[0]
    assert style_from_tag("red", "blue", "b", groups) == ("-", "-", "-")


def test_style_from_tag_attributes_only_keeps_colors():
    groups = decompose_text("[::u]", True, False).colors[0]
    assert style_from_tag("red", "blue", "", groups) == ("red", "blue", "u")


def test_tagged_text_width_ignores_tags():
    assert tagged_text_width("[red]abc[-]") == string_width("abc")


def test_string_width_ascii_and_wide():
    assert string_width("abc") == len("abc")
    assert string_width("日本") == 2 * string_width("日")
    assert string_width("日") > string_width("a")


def test_iterate_string_positions():
    clusters = list(iterate_string("abc"))
    assert [c.text_pos for c in clusters] == [0, 1, 2]
    assert [c.screen_pos for c in clusters] == [0, 1, 2]
    assert all(isinstance(c, Cluster) for c in clusters)


def test_iterate_string_groups_combining_marks():
    text = "e\u0301x"
    clusters = list(iterate_string(text))
    assert len(clusters) == 2
    assert clusters[0].main == "e"
    assert clusters[0].comb == ("\u0301",)
    assert clusters[0].text_width == len("e\u0301")
    assert clusters[1].text_pos == len("e\u0301")
    assert "".join(c.text for c in clusters) == text


def test_iterate_string_widths_sum():
    text = "a日本b"
    clusters = list(iterate_string(text))
    assert sum(c.screen_width for c in clusters) == string_width(text)


def test_iterate_string_reverse():
    text = "ab\u0301c"
    assert list(iterate_string_reverse(text)) == list(iterate_string(text))[::-1]


def test_word_wrap_spaces():
    assert word_wrap("hello world", 5) == ["hello", "world"]


def test_word_wrap_newline():
    assert word_wrap("ab\ncd", 10) == ["ab", "cd"]


def test_word_wrap_long_word_is_split():
    lines = word_wrap("abcdefgh", 3)
    assert "".join(lines) == "abcdefgh"
    assert all(string_width(line) <= 3 for line in lines)


def test_word_wrap_empty():
    assert word_wrap("", 10) == []


def test_word_wrap_lines_fit():
    text = "the quick brown fox jumps over the lazy dog"
    lines = word_wrap(text, 10)
    assert all(string_width(line) <= 10 for line in lines)
    assert " ".join(line.strip() for line in lines).split() == text.split()