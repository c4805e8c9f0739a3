# cviewkit

Widgets for scrollable, tagged text and collapsible trees, drawn onto an
in-memory grid of cells.

## Install

```
pip install cviewkit
```

For running the tests:

```
pip install "cviewkit[test]"
pytest
```

## Tagged text (`cviewkit.tags`)

Text may carry color tags such as `[red]`, `[yellow:blue:b]` or `[-]`, region
tags such as `["id"]` … `[""]`, and escaped tags such as `[red[]`. Tags take
no screen width.

```python
from cviewkit.tags import strip_tags, tagged_text_width, word_wrap, escape

strip_tags('["start"]outer[b]inner[-]outer[""]', True, True)   # "outerinnerouter"
tagged_text_width("[red]hello")                                 # 5
word_wrap("the quick brown fox", 10)                            # ["the quick", "brown fox"]
escape("[squarebrackets]")                                      # "[squarebrackets[]"
```

The module also offers `string_width`, `iterate_string` and
`iterate_string_reverse` (yielding `Cluster` objects, one per printed
character), `decompose_text` (returning a `TagInfo` with tag positions and the
stripped text) and `style_from_tag`.

## Input checks (`cviewkit.accept`)

`input_field_integer(text, ch)` and `input_field_float(text, ch)` accept text
that is, or is on its way to being, a 64-bit integer or a finite float
(`"-"`, `"."` and `"-."` are accepted as partial input).
`input_field_max_length(n)` returns a check accepting at most `n` characters.

## Screen and printing (`cviewkit.screen`)

`Screen(width, height)` is a grid of `Cell`s with `get_content`,
`set_content` and `row_text`. Colors are `0xRRGGBB` integers, with `None`
for the default color; `get_color` resolves names and `#rrggbb`, and
`color_hex` formats them. `Style` holds foreground, background and `Attr`
flags.

`print_style`, `print_text`, `print_simple` and `render_scroll_bar` draw onto
a screen, honouring color tags and `Align.LEFT`, `Align.CENTER` or
`Align.RIGHT`.

```python
from cviewkit.screen import Screen, Align, print_text, get_color

screen = Screen(20, 2)
print_text(screen, "[green]ok", 0, 0, 20, Align.LEFT, get_color("white"))
screen.row_text(0)   # "ok" followed by blanks
```

## TextView (`cviewkit.textview`)

```python
from cviewkit.screen import Screen
from cviewkit.textview import TextView

view = TextView()
view.set_rect(0, 0, 40, 10)
view.write(b"first line\nsecond line\n")
view.draw(Screen(40, 10))
view.get_text(False)
view.get_buffer_size()
```

`write` takes `str` or UTF-8 `bytes`; tabs become `TAB_SIZE` spaces, and an
incomplete trailing UTF-8 sequence or unfinished tag waits for the next write.
Behaviour is set through the properties `wrap`, `word_wrap`, `dynamic_colors`,
`regions`, `scrollable`, `text_align`, `vertical_align` and `reindex`, and the
attributes `wrap_width`, `toggle_highlights`, `scroll_bar_visibility` and the
color attributes. Callbacks are `on_changed`, `on_done` and `on_highlighted`.

The view keeps a line buffer (capped with `set_max_lines`), scrolls
(`scroll_to`, `scroll_to_beginning`, `scroll_to_end`, `get_scroll_offset`),
highlights regions (`highlight`, `get_highlights`, `scroll_to_highlight`,
`get_region_text`) and reacts to input through `handle_key` (a `Key` or a
one-character string such as `"j"` or `"G"`) and `handle_mouse`.

The line index behind it is available on its own in `cviewkit.textindex`
(`build_index`, `region_text`).

## TreeView (`cviewkit.treenode`, `cviewkit.treeview`)

```python
from cviewkit.screen import Screen
from cviewkit.treenode import TreeNode
from cviewkit.treeview import TreeView

root = TreeNode("Hello, world!")
root.add_child(TreeNode("Goodnight, moon!"))

tree = TreeView()
tree.set_rect(0, 0, 40, 10)
tree.root = root
tree.set_current_node(root)
tree.draw(Screen(40, 10))
tree.row_count   # 2
```

Nodes can be expanded and collapsed (`expand`, `collapse`, `expand_all`,
`collapse_all`), traversed with `walk`, and measured with `visible_length`.
The view moves its selection with `transform`, `handle_key` and
`handle_mouse`; `select_node` fires the selection callbacks. `set_prefixes`
sets per-level prefixes, and `top_level`, `align` and `graphics` control the
layout.

## What it does not do

There is no application loop, no terminal backend and no event reading: the
widgets draw into the in-memory `Screen`, and input is fed to them by calling
`handle_key` and `handle_mouse`. There are no borders, titles or window
management around the widgets.