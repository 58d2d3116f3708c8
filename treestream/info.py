# treestream/info.py

"""
File metadata snapshots.

A :class:`FileInfo` is taken with ``lstat`` so that symbolic links are
described as links and never followed. Filter predicates and nodes only ever
see this snapshot, never a live path query.
"""


from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from pathlib import Path

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


@dataclass(frozen=True)
class FileInfo:
    """lstat snapshot of one filesystem entry."""

    name: str
    path: Path
    mode: int
    size: int

    @classmethod
    def from_path(cls, path: str | os.PathLike[str], name: str | None = None) -> FileInfo:
        """
        Snapshot ``path`` with ``os.lstat``.

        Parameters
        ----------
        path : str | os.PathLike
            Entry to describe.
        name : str | None, optional
            Display name. Defaults to the path exactly as given, which is how
            a traversal root is named.

        Raises
        ------
        OSError
            If the entry cannot be stat'ed.
        """

        st = os.lstat(path)
        return cls(
            name=os.fspath(path) if name is None else name,
            path=Path(path),
            mode=st.st_mode,
            size=st.st_size,
        )

    @classmethod
    def from_entry(cls, entry: os.DirEntry[str]) -> FileInfo:
        """Snapshot a directory-listing entry without following links."""
        st = entry.stat(follow_symlinks=False)
        return cls(name=entry.name, path=Path(entry.path), mode=st.st_mode, size=st.st_size)

    @property
    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)

    @property
    def is_regular(self) -> bool:
        return stat.S_ISREG(self.mode)

    @property
    def is_symlink(self) -> bool:
        return stat.S_ISLNK(self.mode)

    @property
    def is_socket(self) -> bool:
        return stat.S_ISSOCK(self.mode)

    @property
    def is_pipe(self) -> bool:
        return stat.S_ISFIFO(self.mode)

    @property
    def is_executable(self) -> bool:
        return self.is_regular and bool(self.mode & _EXEC_BITS)

    @property
    def perm(self) -> int:
        """Permission bits (``0o777`` mask)."""
        return stat.S_IMODE(self.mode) & 0o777
