"""Text and tree view widgets with color tags and regions, drawn onto an in-memory screen."""

__version__ = "0.1.0"

__all__ = ["accept", "screen", "tags", "textindex", "textview", "treenode", "treeview"]