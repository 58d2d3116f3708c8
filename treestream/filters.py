# treestream/filters.py

"""
Stock filter predicates for :meth:`TreeWalker.add_filter`.

Every predicate takes a :class:`~treestream.info.FileInfo` and returns
``True`` to keep the entry. Rejecting a directory also prunes its subtree,
since the walker never descends into entries it does not emit.
"""


from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .info import FileInfo
from .walker import Filter


def hide_hidden(info: FileInfo) -> bool:
    """Reject dot-entries."""
    return not info.name.startswith(".")


def dirs_only(info: FileInfo) -> bool:
    return info.is_dir


@dataclass(frozen=True)
class IgnorePattern:
    """One parsed gitignore-style pattern."""

    pattern: str
    dir_only: bool
    anchored: bool

    @classmethod
    def parse(cls, raw: str) -> IgnorePattern | None:
        line = raw.strip().replace("\\", "/")
        if not line or line.startswith("#"):
            return None
        dir_only = line.endswith("/")
        line = line.rstrip("/")
        anchored = line.startswith("/")
        line = line.lstrip("/")
        if not line:
            return None
        return cls(pattern=line, dir_only=dir_only, anchored=anchored or "/" in line)

    def matches(self, rel: str, name: str, is_dir: bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        if self.pattern == "**":
            return True
        if self.anchored:
            return fnmatch.fnmatchcase(rel, self.pattern)
        return fnmatch.fnmatchcase(name, self.pattern)


class IgnoreMatcher:
    """
    Best-effort gitignore matcher (subset).

    Supported:
      - comments (``#``) and blank lines
      - trailing slash: directories only
      - leading slash, or any inner slash: match the root-relative path
      - bare patterns: match the entry name at any depth
      - ``**`` alone: match everything

    Parameters
    ----------
    patterns : Iterable[str]
        Raw pattern lines.
    root : str | os.PathLike
        Directory that anchored patterns are relative to.
    """

    def __init__(self, patterns: Iterable[str], root: str | os.PathLike[str]) -> None:
        self.root = Path(root)
        self.patterns = [p for p in map(IgnorePattern.parse, patterns) if p is not None]

    def rebase(self, root: str | os.PathLike[str]) -> None:
        """Make anchored patterns relative to ``root`` from now on."""
        self.root = Path(root)

    def _relposix(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def is_ignored(self, info: FileInfo) -> bool:
        rel = self._relposix(info.path)
        return any(p.matches(rel, info.name, info.is_dir) for p in self.patterns)

    def __call__(self, info: FileInfo) -> bool:
        return not self.is_ignored(info)


def exclude(patterns: Iterable[str], root: str | os.PathLike[str]) -> Filter:
    """Return a predicate rejecting entries under ``root`` that match ``patterns``."""
    return IgnoreMatcher(patterns, root)
