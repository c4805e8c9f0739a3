"""Nodes of a tree shown by a tree view."""

from __future__ import annotations

import re
import threading
from typing import Any, Callable, Optional

from .screen import PRIMARY_TEXT_COLOR

_STYLE_TAG = re.compile(r"\[([a-zA-Z:-]*)\]")

WalkCallback = Callable[["TreeNode", Optional["TreeNode"], int], bool]


class TreeNode:
    """One node of a tree: a text, display settings and child nodes.

    ``parent``, ``level``, ``graphics_x`` and ``text_x`` are worked out when
    the tree is walked or laid out and are only meaningful afterwards.
    """

    def __init__(self, text: str) -> None:
        self._lock = threading.RLock()
        self.text = text
        self.children: list[TreeNode] = []
        self.reference: Any = None
        self.bold = False
        self.underline = False
        self.color: int | None = PRIMARY_TEXT_COLOR
        self.highlighted = False
        self.selectable = True
        self.expanded = True
        self.indent = 2
        self.on_focused: Callable[[], None] | None = None
        self.on_selected: Callable[[], None] | None = None

        self.parent: TreeNode | None = None
        self.level = 0
        self.graphics_x = 0
        self.text_x = 0

    def __repr__(self) -> str:
        return f"TreeNode({self.text!r})"

    def walk(self, callback: WalkCallback) -> None:
        """Visit this subtree depth-first in pre-order.

        ``callback`` receives each node, its parent (``None`` for this node)
        and its depth below this node. When it returns a false value the
        node's children are not visited.
        """
        with self._lock:
            self.parent = None
            stack = [self]
            while stack:
                node = stack.pop()

                level = 0
                ancestor = node.parent
                while ancestor is not None:
                    level += 1
                    ancestor = ancestor.parent
                node.level = level

                if not callback(node, node.parent, node.level):
                    continue

                for child in reversed(node.children):
                    child.parent = node
                    stack.append(child)

    def add_child(self, node: TreeNode) -> None:
        """Append ``node`` to this node's children."""
        with self._lock:
            self.children.append(node)

    def clear_children(self) -> None:
        """Remove all child nodes."""
        with self._lock:
            self.children = []

    def expand(self) -> None:
        """Show this node's children."""
        with self._lock:
            self.expanded = True

    def collapse(self) -> None:
        """Hide this node's children."""
        with self._lock:
            self.expanded = False

    def expand_all(self) -> None:
        """Expand this node and every node below it."""

        def visit(node: TreeNode, parent: TreeNode | None, depth: int) -> bool:
            node.expanded = True
            return True

        self.walk(visit)

    def collapse_all(self) -> None:
        """Collapse this node and every node below it."""

        def visit(node: TreeNode, parent: TreeNode | None, depth: int) -> bool:
            node.expanded = False
            return True

        self.walk(visit)

    def visible_length(self) -> int:
        """Return the length of the text without style tags."""
        with self._lock:
            text = self.text
        return len(_STYLE_TAG.sub("", text))