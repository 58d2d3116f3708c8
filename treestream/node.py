# treestream/node.py

"""
Traversal nodes.

A :class:`Node` is the immutable descriptor the walker hands to the
formatter: the entry's metadata snapshot plus where it sits in the tree
(parent path, drawing prefix, root/last flags). All presentation fragments
(branch mark, decoration, symlink target, checksum) are derived on demand.

Branch glyphs come from anytree's ``ContStyle`` so streamed output and
:func:`treestream.tree.draw_tree` draw the same connectors.
"""


from __future__ import annotations

import enum
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass

from anytree import ContStyle

from .hashing import sha1_hexdigest
from .info import FileInfo

logger = logging.getLogger(__name__)

_STYLE = ContStyle()

BRANCH = _STYLE.cont
LAST_BRANCH = _STYLE.end
VERTICAL = _STYLE.vertical
BLANK = " " * len(_STYLE.end)

# Same width as a SHA-1 hex digest so checksum columns stay aligned.
CHECKSUM_PLACEHOLDER = " " * 40

BAD_LINK = " [bad link]"
NOT_SYMLINK = "[not symlink]"


class NodeMode(enum.Flag):
    """Positional flags of a node within its traversal."""

    NONE = 0
    ROOT = enum.auto()
    LAST = enum.auto()


def join_path(parent: str, name: str) -> str:
    if parent:
        return parent + os.sep + name
    return name


@dataclass(frozen=True)
class Node:
    """One filesystem entry as seen at traversal time."""

    name: str
    parent: str
    prefix: str
    mode: NodeMode
    info: FileInfo

    @property
    def full_path(self) -> str:
        return join_path(self.parent, self.name)

    @property
    def is_root(self) -> bool:
        return NodeMode.ROOT in self.mode

    @property
    def is_last(self) -> bool:
        return NodeMode.LAST in self.mode

    @property
    def is_dir(self) -> bool:
        return self.info.is_dir

    @property
    def is_regular(self) -> bool:
        return self.info.is_regular

    @property
    def is_symlink(self) -> bool:
        return self.info.is_symlink

    @property
    def mark(self) -> str:
        """Branch glyph drawn in front of the name; empty for the root."""
        if self.is_root:
            return ""
        return LAST_BRANCH if self.is_last else BRANCH

    @property
    def decoration(self) -> str:
        """
        Single-character type suffix, as ``ls -F`` prints it.

        Directory ``/``, symlink ``@``, socket ``=``, named pipe ``|``,
        executable regular file ``*``; anything else gets no suffix.
        """

        info = self.info
        if info.is_dir:
            return "/"
        if info.is_symlink:
            return "@"
        if info.is_socket:
            return "="
        if info.is_pipe:
            return "|"
        if info.is_executable:
            return "*"
        return ""

    def symlink_target(self) -> str:
        """
        Return the link target, annotated when it does not resolve.

        Callers are expected to check :attr:`is_symlink` first; a non-link
        (or a link that cannot be read) yields ``"[not symlink]"``.
        """

        if not self.is_symlink:
            return NOT_SYMLINK
        path = self.full_path
        try:
            target = os.readlink(path)
        except OSError:
            return NOT_SYMLINK
        try:
            os.stat(path)
        except OSError:
            target += BAD_LINK
        return target

    def checksum(self, digest: Callable[[str], str] = sha1_hexdigest) -> str:
        """
        Return the hex content digest of a regular file.

        Non-regular entries and unreadable files get
        :data:`CHECKSUM_PLACEHOLDER`. Read failures are logged, never raised.
        """

        if not self.is_regular:
            return CHECKSUM_PLACEHOLDER
        try:
            return digest(self.full_path)
        except OSError as exc:
            logger.warning("cannot checksum %s: %s", self.full_path, exc)
            return CHECKSUM_PLACEHOLDER
