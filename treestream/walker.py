# treestream/walker.py

"""
Depth-first filesystem traversal.

:class:`TreeWalker` walks a directory hierarchy on a background thread and
hands every accepted entry, wrapped in a :class:`~treestream.node.Node`, to
the caller through a :class:`NodeStream`. The handoff is a rendezvous: the
producer does not continue the walk until the consumer has taken the node it
just emitted, so the walker never runs ahead of rendering.

Traversal is pre-order (a directory's node precedes its children), children
follow directory-listing order (sorted by name unless another ``order`` key
is given), and only entries accepted by every registered filter are emitted.
The root itself is never filtered.
"""


from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Iterator
from typing import Any

from .info import FileInfo
from .node import BLANK, VERTICAL, Node, NodeMode, join_path

logger = logging.getLogger(__name__)

Filter = Callable[[FileInfo], bool]


class WalkerInvariantError(RuntimeError):
    """The directory listing broke its contract (e.g. produced a null entry)."""


class TraversalCancelled(Exception):
    """Raised on the producer thread once the consumer has closed the stream."""


def by_name(info: FileInfo) -> Any:
    return info.name


def dirs_first(info: FileInfo) -> Any:
    return (not info.is_dir, info.name.casefold())


class _Handoff:
    """Single-slot synchronous channel between one producer and one consumer."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        # Holds at most one node.
        self._slot: list[Node] = []
        self._closed = False
        self._cancelled = False
        self._error: BaseException | None = None

    def put(self, item: Node) -> None:
        with self._cond:
            while self._slot and not self._cancelled:
                self._cond.wait()
            if self._cancelled:
                raise TraversalCancelled
            self._slot.append(item)
            self._cond.notify_all()
            # Rendezvous: wait for the consumer to take the item.
            while self._slot and not self._cancelled:
                self._cond.wait()
            if self._slot:
                self._slot.clear()
                raise TraversalCancelled

    def get(self) -> Node:
        with self._cond:
            while not self._slot and not self._closed:
                self._cond.wait()
            if not self._slot:
                if self._error is not None:
                    error, self._error = self._error, None
                    raise error
                raise StopIteration
            item = self._slot.pop()
            self._cond.notify_all()
        return item

    def close(self, error: BaseException | None = None) -> None:
        with self._cond:
            self._closed = True
            self._error = error
            self._cond.notify_all()

    def cancel(self) -> None:
        with self._cond:
            self._cancelled = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed


class NodeStream:
    """
    Receive side of one traversal.

    Iterating yields nodes in pre-order and stops once the walk is complete.
    An exception raised on the producer thread is re-raised here, after the
    nodes emitted before it. :meth:`close` (or leaving a ``with`` block)
    cancels a traversal that has not finished yet.
    """

    def __init__(self, handoff: _Handoff, thread: threading.Thread) -> None:
        self._handoff = handoff
        self._thread = thread

    def __iter__(self) -> Iterator[Node]:
        return self

    def __next__(self) -> Node:
        return self._handoff.get()

    def __enter__(self) -> NodeStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def done(self) -> bool:
        """True once the producer has finished (normally, by error or by cancellation)."""
        return self._handoff.closed

    def close(self) -> None:
        """Stop the producer if it is still running and wait for it to exit."""
        self._handoff.cancel()
        if self._thread is not threading.current_thread():
            self._thread.join()


class TreeWalker:
    """
    Filtered, counting depth-first walker.

    A walker may be reused for several roots, one at a time; its directory
    and file counters accumulate across traversals.

    Parameters
    ----------
    order : Callable[[FileInfo], Any], optional
        Sort key applied to each directory listing. Defaults to the entry
        name, i.e. plain listing order.
    """

    def __init__(self, order: Callable[[FileInfo], Any] = by_name) -> None:
        self._filters: list[Filter] = []
        self._order = order
        self._ndirs = 0
        self._nfiles = 0
        self._stream: NodeStream | None = None

    def add_filter(self, predicate: Filter) -> None:
        """Append ``predicate`` to the chain; entries must pass every predicate."""
        self._filters.append(predicate)

    def get_counts(self) -> tuple[int, int]:
        """Return ``(directories, files)`` emitted so far."""
        return self._ndirs, self._nfiles

    def traverse(self, root: str | os.PathLike[str]) -> NodeStream:
        """
        Start walking ``root`` on a background thread.

        Returns immediately with the stream of nodes. The first node is the
        root (unfiltered), followed by every accepted descendant.

        Raises
        ------
        RuntimeError
            If a previous traversal on this walker is still in flight.
        """

        if self._stream is not None and not self._stream.done:
            raise RuntimeError("previous traversal has not finished")

        handoff = _Handoff()
        thread = threading.Thread(
            target=self._run,
            args=(os.fspath(root), handoff),
            name="treestream-walker",
            daemon=True,
        )
        self._stream = NodeStream(handoff, thread)
        thread.start()
        return self._stream

    def accepts(self, info: FileInfo) -> bool:
        return all(f(info) for f in self._filters)

    def _run(self, root: str, handoff: _Handoff) -> None:
        error: BaseException | None = None
        try:
            self._walk_root(root, handoff)
        except TraversalCancelled:
            logger.debug("traversal of %s cancelled", root)
        except BaseException as exc:
            error = exc
        finally:
            handoff.close(error)

    def _emit(self, handoff: _Handoff, node: Node) -> None:
        handoff.put(node)
        # Counted only once the consumer has actually received the node.
        if node.is_dir:
            self._ndirs += 1
        else:
            self._nfiles += 1

    def _walk_root(self, root: str, handoff: _Handoff) -> None:
        try:
            info = FileInfo.from_path(root)
        except OSError as exc:
            logger.warning("failed to stat %s: %s", root, exc)
            return
        self._process(handoff, info.name, "", "", NodeMode.ROOT, info)

    def _process(
        self, handoff: _Handoff, name: str, prefix: str, parent: str, mode: NodeMode, info: FileInfo
    ) -> None:
        self._emit(handoff, Node(name=name, parent=parent, prefix=prefix, mode=mode, info=info))
        if not info.is_dir:
            return

        if not parent:
            # Children of the root start at column zero.
            extension = ""
        elif NodeMode.LAST in mode:
            extension = BLANK
        else:
            extension = VERTICAL
        self._walk_dir(handoff, join_path(parent, name), prefix + extension)

    def _list(self, directory: str) -> list[FileInfo]:
        infos: list[FileInfo] = []
        with os.scandir(directory) as entries:
            for i, entry in enumerate(entries):
                if entry is None:
                    raise WalkerInvariantError(f"null entry at index {i} while listing {directory}")
                try:
                    infos.append(FileInfo.from_entry(entry))
                except OSError as exc:
                    # Entry vanished between listing and stat.
                    logger.warning("failed to stat %s: %s", entry.path, exc)
        infos.sort(key=self._order)
        return infos

    def _walk_dir(self, handoff: _Handoff, directory: str, prefix: str) -> None:
        try:
            listing = self._list(directory)
        except OSError as exc:
            logger.warning("failed to read %s: %s", directory, exc)
            return

        entries = [info for info in listing if self.accepts(info)]
        last_index = len(entries) - 1
        for i, info in enumerate(entries):
            mode = NodeMode.LAST if i == last_index else NodeMode.NONE
            self._process(handoff, info.name, prefix, directory, mode, info)
