# treestream/tree.py

"""
In-memory trees built from node streams.

The streaming formatter never holds more than one line at a time. When the
whole structure is wanted, :func:`build_tree` collects a node stream into an ``anytree`` tree and
:func:`draw_tree` renders it with anytree's ``RenderTree``, similar to the
Unix ``tree`` command.

The main entry point is :func:`path_tree`, which walks a path and returns
the rendered tree as a string.
"""


from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from anytree import ContStyle, Node as TreeNode, RenderTree

from . import filters
from .node import Node
from .walker import TreeWalker, dirs_first as dirs_first_order


def build_tree(stream: Iterable[Node]) -> TreeNode:
    """
    Collect a pre-order node stream into an ``anytree`` tree.

    Each tree node is named after the entry and carries ``fs_path``
    (:class:`pathlib.Path`), ``is_dir``, ``is_symlink`` and ``is_last``
    attributes. Children keep stream order.

    Parameters
    ----------
    stream : Iterable[Node]
        Nodes as produced by :meth:`TreeWalker.traverse`. The first node must
        be the root.

    Returns
    -------
    anytree.Node
        The root of the collected tree.

    Raises
    ------
    ValueError
        If the stream is empty, or a node arrives before its parent.
    """

    by_path: dict[str, TreeNode] = {}
    root: TreeNode | None = None

    for node in stream:
        if node.is_root:
            parent = None
        else:
            try:
                parent = by_path[node.parent]
            except KeyError:
                raise ValueError(f"node {node.full_path!r} arrived before its parent") from None

        tree_node = TreeNode(
            node.name,
            parent=parent,
            fs_path=Path(node.full_path),
            is_dir=node.is_dir,
            is_symlink=node.is_symlink,
            is_last=node.is_last,
        )
        by_path[node.full_path] = tree_node
        if root is None:
            root = tree_node

    if root is None:
        raise ValueError("empty node stream")
    return root


def draw_tree(root: TreeNode) -> str:
    """Render an ``anytree`` tree with ``├──``/``└──`` connectors, one entry per line."""
    return "\n".join(f"{pre}{node.name}" for pre, _, node in RenderTree(root, style=ContStyle()))


def path_tree(
    root: str | os.PathLike[str],
    *,
    show_hidden: bool = True,
    dirs_only: bool = False,
    exclude: Iterable[str] = (),
    dirs_first: bool = False,
) -> str:
    """
    Walk ``root`` and return its rendered tree.

    Parameters
    ----------
    root : str | os.PathLike
        Directory (or file) to display. The first line is the path as given.
    show_hidden : bool, default=True
        If ``False``, dot-entries are neither displayed nor traversed.
    dirs_only : bool, default=False
        Only display directories.
    exclude : Iterable[str], optional
        Gitignore-style patterns, relative to ``root``. Excluded directories
        are pruned with their whole subtree.
    dirs_first : bool, default=False
        List directories before files (case-insensitive), instead of plain
        name order.

    Returns
    -------
    str
        The rendered tree, without a trailing newline.
    """

    walker = TreeWalker(order=dirs_first_order) if dirs_first else TreeWalker()
    if not show_hidden:
        walker.add_filter(filters.hide_hidden)
    if dirs_only:
        walker.add_filter(filters.dirs_only)
    patterns = list(exclude)
    if patterns:
        walker.add_filter(filters.exclude(patterns, root))

    with walker.traverse(root) as stream:
        return draw_tree(build_tree(stream))
