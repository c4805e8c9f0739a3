"""A widget showing a tree of nodes with optional line graphics."""

from __future__ import annotations

import enum
import threading
from typing import Callable

from .screen import (
    Align,
    Attr,
    Key,
    MouseAction,
    Screen,
    ScrollBarVisibility,
    Style,
    Transformation,
    print_style,
    render_scroll_bar,
)
from .treenode import TreeNode

_WHITE = 0xFFFFFF

_VERTICAL = "│"
_HORIZONTAL = "─"
_TOP_LEFT = "┌"
_BOTTOM_LEFT = "└"

_UP, _DOWN, _LEFT, _RIGHT = 1, 2, 4, 8

_DIRECTIONS = {
    "│": _UP | _DOWN,
    "─": _LEFT | _RIGHT,
    "┌": _DOWN | _RIGHT,
    "┐": _DOWN | _LEFT,
    "└": _UP | _RIGHT,
    "┘": _UP | _LEFT,
    "├": _UP | _DOWN | _RIGHT,
    "┤": _UP | _DOWN | _LEFT,
    "┬": _LEFT | _RIGHT | _DOWN,
    "┴": _LEFT | _RIGHT | _UP,
    "┼": _UP | _DOWN | _LEFT | _RIGHT,
}
_JOINED = {directions: char for char, directions in _DIRECTIONS.items()}

_DONE_KEYS = {Key.ESCAPE, Key.TAB, Key.BACKTAB}
_MOVE_FIRST = {"g", Key.HOME}
_MOVE_LAST = {"G", Key.END}
_MOVE_UP = {"k", Key.UP}
_MOVE_DOWN = {"j", Key.DOWN}
_PREVIOUS_PAGE = {Key.PAGE_UP, Key.CTRL_B}
_NEXT_PAGE = {Key.PAGE_DOWN, Key.CTRL_F}
_SELECT = {Key.ENTER}


class _Movement(enum.Enum):
    NONE = enum.auto()
    HOME = enum.auto()
    END = enum.auto()
    UP = enum.auto()
    DOWN = enum.auto()
    PAGE_UP = enum.auto()
    PAGE_DOWN = enum.auto()


_TRANSFORM_MOVEMENTS = {
    Transformation.FIRST_ITEM: _Movement.HOME,
    Transformation.LAST_ITEM: _Movement.END,
    Transformation.PREVIOUS_ITEM: _Movement.UP,
    Transformation.NEXT_ITEM: _Movement.DOWN,
    Transformation.PREVIOUS_PAGE: _Movement.PAGE_UP,
    Transformation.NEXT_PAGE: _Movement.PAGE_DOWN,
}


def _print_joined(screen: Screen, x: int, y: int, char: str, color: int | None) -> None:
    """Draw a line character, merging it with a line character already there."""
    cell = screen.get_content(x, y)
    existing = _DIRECTIONS.get(cell.main)
    joined = char
    if existing is not None:
        joined = _JOINED.get(existing | _DIRECTIONS[char], char)
    screen.set_content(x, y, joined, (), cell.style.foreground(color))


class TreeView:
    """Displays a tree of :class:`TreeNode` objects, one node per row.

    Selection moves are applied when the tree is laid out, which happens on
    :meth:`draw`, :meth:`transform` and key handling. Levels above
    ``top_level`` are not shown. ``prefixes`` are drawn before node texts,
    cycling by level.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._rect = (0, 0, 15, 10)
        self.visible = True
        self.has_focus = False
        self.background_color: int | None = None

        self.root: TreeNode | None = None
        self._current: TreeNode | None = None
        self._movement = _Movement.NONE
        self.top_level = 0
        self._prefixes: list[str] = []
        self._offset_y = 0
        self.align = False
        self.graphics = True
        self.highlight_color: int | None = None
        self.selected_text_color: int | None = None
        self.selected_background_color: int | None = None
        self.graphics_color: int | None = _WHITE
        self.scroll_bar_visibility = ScrollBarVisibility.AUTO
        self.scroll_bar_color: int | None = _WHITE

        self.on_changed: Callable[[TreeNode], None] | None = None
        self.on_selected: Callable[[TreeNode], None] | None = None
        self.on_done: Callable[[object], None] | None = None

        self._nodes: list[TreeNode] = []

    # Configuration -----------------------------------------------------

    def set_rect(self, x: int, y: int, width: int, height: int) -> None:
        """Place the view on the screen."""
        with self._lock:
            self._rect = (x, y, width, height)

    def _in_rect(self, x: int, y: int) -> bool:
        rx, ry, width, height = self._rect
        return rx <= x < rx + width and ry <= y < ry + height

    @property
    def current_node(self) -> TreeNode | None:
        """The focused node, or ``None``."""
        with self._lock:
            return self._current

    @property
    def prefixes(self) -> list[str]:
        return list(self._prefixes)

    @property
    def row_count(self) -> int:
        """Number of shown rows as of the last layout, including off-screen ones."""
        with self._lock:
            return len(self._nodes)

    @property
    def scroll_offset(self) -> int:
        """Number of rows skipped at the top as of the last draw."""
        with self._lock:
            return self._offset_y

    def set_current_node(self, node: TreeNode | None) -> None:
        """Focus ``node`` (or clear focus with ``None``) without notifying ``on_changed``."""
        with self._lock:
            self._current = node
        if node is not None and node.on_focused is not None:
            node.on_focused()

    def set_prefixes(self, prefixes) -> None:
        """Set the strings drawn before node texts, one per level, cycling."""
        with self._lock:
            self._prefixes = list(prefixes)

    def transform(self, transformation: Transformation) -> None:
        """Move the selection as described by ``transformation``."""
        with self._lock:
            movement = _TRANSFORM_MOVEMENTS.get(transformation)
            if movement is not None:
                self._movement = movement
            self._process()

    # Layout ------------------------------------------------------------

    def _lay_out(self) -> int:
        """Fill the list of shown nodes and position them; return the selected row."""
        graphics_offset = 1 if self.graphics else 0
        max_text_x = 0
        selected_index = -1
        top_level_graphics_x = -1
        nodes: list[TreeNode] = []

        def visit(node: TreeNode, parent: TreeNode | None, depth: int) -> bool:
            nonlocal max_text_x, selected_index, top_level_graphics_x
            node.parent = parent
            if parent is None:
                node.level = 0
                node.graphics_x = 0
                node.text_x = 0
            else:
                node.level = parent.level + 1
                node.graphics_x = parent.text_x
                node.text_x = node.graphics_x + graphics_offset + node.indent
            if not self.graphics and self.align:
                node.text_x = 0
            if node.level == self.top_level:
                node.graphics_x = 0
                node.text_x = 0

            if node.level >= self.top_level:
                max_text_x = max(max_text_x, node.text_x)
                if node is self._current and node.selectable:
                    selected_index = len(nodes)
                if self.top_level == node.level and (
                    top_level_graphics_x < 0 or node.graphics_x < top_level_graphics_x
                ):
                    top_level_graphics_x = node.graphics_x
                nodes.append(node)
            return node.expanded

        self.root.walk(visit)
        self._nodes = nodes

        for node in nodes:
            if self.align and node.level > self.top_level:
                node.text_x = max_text_x
            if top_level_graphics_x > 0:
                node.graphics_x -= top_level_graphics_x
                node.text_x -= top_level_graphics_x
        return selected_index

    def _move(self, selected: int, height: int) -> int:
        nodes = self._nodes
        count = len(nodes)

        def first_selectable(candidates) -> int:
            return next((i for i in candidates if nodes[i].selectable), selected)

        movement = self._movement
        if movement == _Movement.UP:
            return first_selectable(range(selected - 1, -1, -1))
        if movement == _Movement.DOWN:
            return first_selectable(range(selected + 1, count))
        if movement == _Movement.HOME:
            return first_selectable(range(count))
        if movement == _Movement.END:
            return first_selectable(range(count - 1, -1, -1))
        if movement == _Movement.PAGE_DOWN:
            start = selected + height if selected + height < count else count - 1
            return first_selectable(range(start, count))
        if movement == _Movement.PAGE_UP:
            start = selected - height if selected >= height else 0
            return first_selectable(range(start, -1, -1))
        return selected

    def _process(self) -> None:
        """Lay out the tree and apply a pending selection move."""
        if self.root is None:
            self._nodes = []
            return
        height = self._rect[3]
        selected_index = self._lay_out()

        if selected_index >= 0:
            new_index = self._move(selected_index, height)
            self._current = self._nodes[new_index]
            if new_index != selected_index:
                self._movement = _Movement.NONE
                current = self._current
                if self.on_changed is not None:
                    self.on_changed(current)
                if current.on_focused is not None:
                    current.on_focused()
            selected_index = new_index

            if selected_index - self._offset_y >= height:
                self._offset_y = selected_index - height + 1
            if selected_index < self._offset_y:
                self._offset_y = selected_index
        else:
            if self._current is not None:
                for index, node in enumerate(self._nodes):
                    if node.selectable:
                        selected_index = index
                        self._current = node
                        break
            if selected_index < 0:
                self._current = None

    # Drawing -----------------------------------------------------------

    def draw(self, screen: Screen) -> None:
        """Draw the tree onto ``screen``."""
        if not self.visible:
            return
        with self._lock:
            x, y, width, height = self._rect
            fill = Style(bg=self.background_color)
            for row in range(y, y + height):
                for col in range(x, x + width):
                    screen.set_content(col, row, " ", (), fill)

            if self.root is None:
                return
            self._process()

            movement = self._movement
            if movement == _Movement.UP:
                self._offset_y -= 1
            elif movement == _Movement.DOWN:
                self._offset_y += 1
            elif movement == _Movement.HOME:
                self._offset_y = 0
            elif movement == _Movement.END:
                self._offset_y = len(self._nodes)
            elif movement == _Movement.PAGE_UP:
                self._offset_y -= height
            elif movement == _Movement.PAGE_DOWN:
                self._offset_y += height
            self._movement = _Movement.NONE

            rows = len(self._nodes)
            if self._offset_y >= rows - height:
                self._offset_y = rows - height
            self._offset_y = max(self._offset_y, 0)

            span = rows - height
            cursor = 0 if span == 0 else int(rows * (self._offset_y / span))

            pos_y = y
            for index, node in enumerate(self._nodes):
                line_style = Style(fg=self.graphics_color, bg=self.background_color)
                if node.highlighted and self.highlight_color is not None:
                    line_style = line_style.background(self.highlight_color)
                if pos_y >= y + height:
                    break
                if index < self._offset_y:
                    continue

                print_style(screen, " " * (width - 1), x, pos_y, width - 1, Align.LEFT, line_style)
                if self.graphics:
                    self._draw_graphics(screen, index, node, x, y, pos_y, width, height, line_style)
                self._draw_text(screen, node, x, y, pos_y, width, height, line_style)

                render_scroll_bar(
                    screen,
                    self.scroll_bar_visibility,
                    x + width - 1,
                    pos_y,
                    height,
                    rows,
                    cursor,
                    pos_y - y,
                    self.has_focus,
                    self.scroll_bar_color,
                )
                pos_y += 1

    def _draw_graphics(
        self,
        screen: Screen,
        index: int,
        node: TreeNode,
        x: int,
        y: int,
        pos_y: int,
        width: int,
        height: int,
        line_style: Style,
    ) -> None:
        ancestor = node.parent
        while (
            ancestor is not None
            and ancestor.parent is not None
            and ancestor.parent.level >= self.top_level
        ):
            if ancestor.graphics_x < width:
                siblings = ancestor.parent.children
                if siblings and siblings[-1] is not ancestor:
                    if pos_y - 1 >= y and ancestor.text_x > ancestor.graphics_x:
                        _print_joined(
                            screen, x + ancestor.graphics_x, pos_y - 1, _VERTICAL, self.graphics_color
                        )
                    if pos_y < y + height:
                        screen.set_content(x + ancestor.graphics_x, pos_y, _VERTICAL, (), line_style)
            ancestor = ancestor.parent

        if node.text_x > node.graphics_x and node.graphics_x < width:
            above = self._nodes[index - 1] if index > 0 else None
            if (
                pos_y - 1 >= y
                and above is not None
                and above.graphics_x <= node.graphics_x
                and above.text_x > node.graphics_x
            ):
                _print_joined(screen, x + node.graphics_x, pos_y - 1, _TOP_LEFT, self.graphics_color)
            if pos_y < y + height:
                screen.set_content(x + node.graphics_x, pos_y, _BOTTOM_LEFT, (), line_style)
                for pos in range(node.graphics_x + 1, min(node.text_x, width)):
                    screen.set_content(x + pos, pos_y, _HORIZONTAL, (), line_style)

    def _draw_text(
        self,
        screen: Screen,
        node: TreeNode,
        x: int,
        y: int,
        pos_y: int,
        width: int,
        height: int,
        line_style: Style,
    ) -> None:
        if node.text_x >= width or pos_y >= y + height:
            return

        prefix_width = 0
        if self._prefixes:
            prefix = self._prefixes[(node.level - self.top_level) % len(self._prefixes)]
            _, prefix_width = print_style(
                screen,
                prefix,
                x + node.text_x,
                pos_y,
                width - node.text_x,
                Align.LEFT,
                line_style.foreground(node.color),
            )

        if node.text_x + prefix_width >= width:
            return
        style = (
            Style()
            .foreground(node.color)
            .with_attrs(Attr.BOLD, node.bold)
            .with_attrs(Attr.UNDERLINE, node.underline)
        )
        if node is self._current:
            foreground = self.background_color
            background = node.color
            if self.selected_text_color is not None:
                foreground = self.selected_text_color
            if self.selected_background_color is not None:
                background = self.selected_background_color
            style = Style(fg=foreground, bg=background)
        print_style(
            screen,
            node.text,
            x + node.text_x + prefix_width,
            pos_y,
            width - node.text_x - prefix_width,
            Align.LEFT,
            style,
        )

    # Input -------------------------------------------------------------

    def select_node(self, node: TreeNode | None) -> None:
        """Select ``node``, notifying the view's and the node's handlers."""
        if node is None:
            return
        if self.on_selected is not None:
            self.on_selected(node)
        if node.on_focused is not None:
            node.on_focused()
        if node.on_selected is not None:
            node.on_selected()

    def handle_key(self, key) -> None:
        """React to a key: a :class:`Key` or a one-character string."""
        with self._lock:
            if key in _DONE_KEYS:
                if self.on_done is not None:
                    self.on_done(key)
            elif key in _MOVE_FIRST:
                self._movement = _Movement.HOME
            elif key in _MOVE_LAST:
                self._movement = _Movement.END
            elif key in _MOVE_UP:
                self._movement = _Movement.UP
            elif key in _MOVE_DOWN:
                self._movement = _Movement.DOWN
            elif key in _PREVIOUS_PAGE:
                self._movement = _Movement.PAGE_UP
            elif key in _NEXT_PAGE:
                self._movement = _Movement.PAGE_DOWN
            elif key in _SELECT:
                self.select_node(self._current)
            self._process()

    def handle_mouse(self, action: MouseAction, x: int, y: int) -> bool:
        """React to a mouse event at ``(x, y)``; return whether it was consumed."""
        if not self._in_rect(x, y):
            return False

        with self._lock:
            if action == MouseAction.LEFT_CLICK:
                row = y - self._rect[1]
                if 0 <= row < len(self._nodes):
                    node = self._nodes[row]
                    if node.selectable:
                        if self._current is not node and self.on_changed is not None:
                            self.on_changed(node)
                        if self.on_selected is not None:
                            self.on_selected(node)
                        self._current = node
                self.has_focus = True
                return True
            if action == MouseAction.SCROLL_UP:
                self._movement = _Movement.UP
                return True
            if action == MouseAction.SCROLL_DOWN:
                self._movement = _Movement.DOWN
                return True
        return False