# treestream/formatter.py

"""
Line rendering for node streams.

A :class:`Formatter` turns each :class:`~treestream.node.Node` into one text
line according to its :class:`FormatMode`. Bound to a
:class:`~treestream.walker.NodeStream`, it is an iterator of lines, and
:meth:`Formatter.new_reader` wraps it as a raw binary stream so the whole
tree can be copied to any sink without being held in memory.
"""


from __future__ import annotations

import enum
import io
from collections.abc import Callable, Iterable, Iterator

from .hashing import sha1_hexdigest
from .node import Node

SYMLINK_ARROW = " → "


class FormatMode(enum.Flag):
    """Independent display toggles."""

    NONE = 0
    SHOW_FULL_PATH = enum.auto()
    SHOW_PREFIX = enum.auto()
    SHOW_DECORATION = enum.auto()
    SHOW_SYMLINK_TARGET = enum.auto()
    SHOW_CHECKSUM = enum.auto()

    # Reserved, not rendered yet.
    SHOW_USER_GROUP = enum.auto()
    SHOW_FILE_PERMISSION = enum.auto()
    SHOW_FILE_SIZE = enum.auto()


class Formatter:
    """
    Render nodes into display lines.

    Parameters
    ----------
    mode : FormatMode, default=FormatMode.NONE
        Initial toggles. With no toggles only the entry name is shown.
    digest : Callable[[str], str], optional
        Content hash used for the checksum column; receives the entry's full
        path and returns its hex digest.
    """

    def __init__(
        self,
        mode: FormatMode = FormatMode.NONE,
        *,
        digest: Callable[[str], str] = sha1_hexdigest,
    ) -> None:
        self.mode = mode
        self._digest = digest
        self._source: Iterator[Node] | None = None

    def __repr__(self) -> str:
        return f"Formatter(mode={self.mode!r})"

    def _set(self, flag: FormatMode, cond: bool) -> None:
        if cond:
            self.mode |= flag
        else:
            self.mode &= ~flag

    def set_show_full_path(self, cond: bool) -> None:
        self._set(FormatMode.SHOW_FULL_PATH, cond)

    def set_show_prefix(self, cond: bool) -> None:
        self._set(FormatMode.SHOW_PREFIX, cond)

    def set_show_decoration(self, cond: bool) -> None:
        self._set(FormatMode.SHOW_DECORATION, cond)

    def set_show_symlink_target(self, cond: bool) -> None:
        self._set(FormatMode.SHOW_SYMLINK_TARGET, cond)

    def set_show_checksum(self, cond: bool) -> None:
        self._set(FormatMode.SHOW_CHECKSUM, cond)

    @property
    def show_full_path(self) -> bool:
        return FormatMode.SHOW_FULL_PATH in self.mode

    @property
    def show_prefix(self) -> bool:
        return FormatMode.SHOW_PREFIX in self.mode

    @property
    def show_decoration(self) -> bool:
        return FormatMode.SHOW_DECORATION in self.mode

    @property
    def show_symlink_target(self) -> bool:
        return FormatMode.SHOW_SYMLINK_TARGET in self.mode

    @property
    def show_checksum(self) -> bool:
        return FormatMode.SHOW_CHECKSUM in self.mode

    def format(self, node: Node) -> str:
        """
        Compose the display line for ``node`` (without a trailing newline).

        The checksum, when shown, replaces the name. Full path is appended
        after a space, prefix and branch mark are prepended, then the
        decoration and, for symlinks, the link target are appended.
        """

        text = node.checksum(self._digest) if self.show_checksum else node.name

        if self.show_full_path:
            text += " " + node.full_path

        if self.show_prefix:
            text = node.prefix + node.mark + text

        if self.show_decoration:
            text += node.decoration

        if self.show_symlink_target and node.is_symlink:
            text += SYMLINK_ARROW + node.symlink_target()

        return text

    def bind(self, stream: Iterable[Node]) -> Formatter:
        """Attach the node source that iteration pulls from."""
        self._source = iter(stream)
        return self

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        if self._source is None:
            raise StopIteration
        return self.format(next(self._source))

    def new_reader(self, stream: Iterable[Node]) -> FormatterReader:
        """Bind ``stream`` and return it as a readable byte stream of lines."""
        return FormatterReader(self.bind(stream))


class FormatterReader(io.RawIOBase):
    """
    Read-only binary stream of newline-terminated, UTF-8 encoded lines.

    Undecodable filename bytes (surrogate-escaped by ``os.scandir``) are
    written back out unchanged.
    """

    def __init__(
        self,
        lines: Iterator[str],
        encoding: str = "utf-8",
        errors: str = "surrogateescape",
    ) -> None:
        super().__init__()
        self._lines = lines
        self._encoding = encoding
        self._errors = errors
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if not self._pending:
            try:
                line = next(self._lines)
            except StopIteration:
                return 0
            self._pending = (line + "\n").encode(self._encoding, self._errors)

        n = min(len(buffer), len(self._pending))
        buffer[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n
