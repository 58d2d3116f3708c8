"""
treestream — streaming filesystem tree rendering.

This package renders directory structures as indented text trees, like the
Unix ``tree`` command, without building the tree in memory:

- :class:`TreeWalker` walks a hierarchy depth-first on a background thread
  and hands one :class:`Node` at a time to the caller,
- :class:`Formatter` renders each node into a display line and exposes the
  lines as a readable byte stream.

:func:`build_tree`, :func:`draw_tree` and :func:`path_tree` collect a stream
into an ``anytree`` tree when the whole structure is needed.
"""

from __future__ import annotations

from .formatter import FormatMode, Formatter, FormatterReader
from .info import FileInfo
from .node import Node, NodeMode
from .tree import build_tree, draw_tree, path_tree
from .walker import NodeStream, TreeWalker, WalkerInvariantError

__all__ = [
    "FileInfo",
    "FormatMode",
    "Formatter",
    "FormatterReader",
    "Node",
    "NodeMode",
    "NodeStream",
    "TreeWalker",
    "WalkerInvariantError",
    "build_tree",
    "draw_tree",
    "path_tree",
]
