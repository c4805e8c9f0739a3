import pytest

from cviewkit.screen import Key, MouseAction, Screen, Transformation
from cviewkit.treenode import TreeNode
from cviewkit.treeview import TreeView

TEXT_A = "Hello, world!"
TEXT_B = "Goodnight, moon!"


def make_view(width=80, height=24):
    view = TreeView()
    view.set_rect(0, 0, width, height)
    return view, Screen(width, height)


def flat_tree(count):
    root = TreeNode("root")
    children = [TreeNode(f"c{i}") for i in range(count)]
    for child in children:
        root.add_child(child)
    return root, children


def test_tree_view_lifecycle():
    view, screen = make_view()
    assert view.root is None
    assert view.current_node is None
    assert view.row_count == 0

    root = TreeNode(TEXT_A)
    assert root.text == TEXT_A

    view.root = root
    view.draw(screen)
    assert view.root is root
    assert view.row_count == 1

    view.set_current_node(root)
    assert view.current_node is root

    child = TreeNode(TEXT_B)
    assert child.text == TEXT_B
    root.add_child(child)
    view.draw(screen)
    assert view.root is root
    assert view.row_count == 2


def test_draw_graphics_for_single_child():
    view, screen = make_view()
    root = TreeNode(TEXT_A)
    root.add_child(TreeNode(TEXT_B))
    view.root = root
    view.draw(screen)
    assert screen.row_text(0).startswith(TEXT_A)
    assert screen.row_text(1).startswith("└──" + TEXT_B)


def test_draw_joins_sibling_branches():
    view, screen = make_view()
    root = TreeNode("r")
    a = TreeNode("a")
    b = TreeNode("b")
    a.add_child(TreeNode("g"))
    root.add_child(a)
    root.add_child(b)
    view.root = root
    view.draw(screen)
    assert screen.row_text(1).startswith("├──a")
    assert screen.row_text(2).startswith("│  └──g")
    assert screen.row_text(3).startswith("└──b")


def test_prefixes_without_graphics():
    view, screen = make_view()
    view.graphics = False
    view.set_prefixes(["* ", "- "])
    root = TreeNode(TEXT_A)
    root.add_child(TreeNode(TEXT_B))
    view.root = root
    view.draw(screen)
    assert screen.row_text(0).startswith("* " + TEXT_A)
    assert screen.row_text(1).startswith("  - " + TEXT_B)


def test_top_level_hides_root():
    view, screen = make_view()
    root, _ = flat_tree(2)
    view.top_level = 1
    view.root = root
    view.draw(screen)
    assert view.row_count == 2
    assert screen.row_text(0).startswith("c0")
    assert screen.row_text(1).startswith("c1")


def test_collapsed_children_are_not_rows():
    view, screen = make_view()
    root, _ = flat_tree(3)
    root.collapse()
    view.root = root
    view.draw(screen)
    assert view.row_count == 1


@pytest.mark.parametrize(
    "steps, expected",
    [
        ([Transformation.NEXT_ITEM], "c0"),
        ([Transformation.LAST_ITEM], "c2"),
        ([Transformation.LAST_ITEM, Transformation.FIRST_ITEM], "root"),
        ([Transformation.LAST_ITEM, Transformation.PREVIOUS_ITEM], "c1"),
        ([Transformation.PREVIOUS_ITEM], "root"),
    ],
)
def test_transform_moves_selection(steps, expected):
    view, _ = make_view()
    root, _ = flat_tree(3)
    view.root = root
    view.set_current_node(root)
    for step in steps:
        view.transform(step)
    assert view.current_node.text == expected


def test_transform_skips_unselectable_nodes():
    view, _ = make_view()
    root, children = flat_tree(3)
    children[1].selectable = False
    view.root = root
    view.set_current_node(children[0])
    view.transform(Transformation.NEXT_ITEM)
    assert view.current_node is children[2]


def test_page_down_moves_by_height():
    view, _ = make_view(80, 2)
    root, children = flat_tree(5)
    view.root = root
    view.set_current_node(root)
    view.transform(Transformation.NEXT_PAGE)
    assert view.current_node is children[1]


def test_changed_and_focused_handlers_fire():
    view, _ = make_view()
    root, children = flat_tree(2)
    changed = []
    focused = []
    view.on_changed = changed.append
    children[0].on_focused = lambda: focused.append("c0")
    view.root = root
    view.set_current_node(root)
    view.transform(Transformation.NEXT_ITEM)
    assert changed == [children[0]]
    assert focused == ["c0"]


def test_hidden_current_node_falls_back_to_first_selectable():
    view, screen = make_view()
    root, children = flat_tree(2)
    view.root = root
    view.set_current_node(children[1])
    root.collapse()
    view.draw(screen)
    assert view.current_node is root


def test_scroll_offset_follows_selection():
    view, screen = make_view(20, 3)
    root, children = flat_tree(10)
    view.root = root
    view.set_current_node(children[9])
    view.draw(screen)
    assert view.scroll_offset == 8
    assert "c7" in screen.row_text(0)
    assert "c9" in screen.row_text(2)


def test_handle_key_moves_and_selects():
    view, _ = make_view()
    root, children = flat_tree(2)
    selected_nodes = []
    node_selected = []
    view.on_selected = selected_nodes.append
    children[0].on_selected = lambda: node_selected.append(True)
    view.root = root
    view.set_current_node(root)
    view.handle_key(Key.DOWN)
    assert view.current_node is children[0]
    view.handle_key(Key.ENTER)
    assert selected_nodes == [children[0]]
    assert node_selected == [True]


def test_handle_key_done():
    view, _ = make_view()
    view.root = TreeNode("root")
    keys = []
    view.on_done = keys.append
    view.handle_key(Key.ESCAPE)
    assert keys == [Key.ESCAPE]


def test_select_node_notifies_handlers():
    view, _ = make_view()
    node = TreeNode("n")
    calls = []
    view.on_selected = lambda n: calls.append(("view", n.text))
    node.on_focused = lambda: calls.append(("focused", "n"))
    node.on_selected = lambda: calls.append(("selected", "n"))
    view.select_node(node)
    view.select_node(None)
    assert calls == [("view", "n"), ("focused", "n"), ("selected", "n")]


def test_mouse_click_selects_row():
    view, screen = make_view()
    root, children = flat_tree(2)
    changed = []
    view.on_changed = changed.append
    view.root = root
    view.draw(screen)
    assert view.handle_mouse(MouseAction.LEFT_CLICK, 5, 2) is True
    assert view.current_node is children[1]
    assert changed == [children[1]]
    assert view.has_focus is True


def test_mouse_outside_is_not_consumed():
    view, _ = make_view(10, 5)
    view.root = TreeNode("root")
    assert view.handle_mouse(MouseAction.LEFT_CLICK, 20, 20) is False


def test_mouse_scroll_moves_selection_on_draw():
    view, screen = make_view()
    root, children = flat_tree(2)
    view.root = root
    view.set_current_node(root)
    assert view.handle_mouse(MouseAction.SCROLL_DOWN, 1, 1) is True
    view.draw(screen)
    assert view.current_node is children[0]