# tests/test_walker.py
import os
import stat
import threading
from collections import defaultdict
from pathlib import Path

import pytest

from treestream import TreeWalker, WalkerInvariantError
from treestream.walker import dirs_first


def _make_file(p: Path, content: str = "x"):
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")


def _example_tree(root: Path) -> Path:
    # root/
    #   a.txt
    #   sub/
    #     b.txt
    (root / "sub").mkdir()
    _make_file(root / "a.txt")
    _make_file(root / "sub/b.txt")
    return root


def _nested_tree(root: Path) -> Path:
    # root/
    #   d1/
    #     x.txt
    #     y/
    #       deep.txt
    #   d2/
    #     z.txt
    #   top.txt
    _make_file(root / "d1/x.txt")
    _make_file(root / "d1/y/deep.txt")
    _make_file(root / "d2/z.txt")
    _make_file(root / "top.txt")
    return root


def test_example_sequence_and_counts(tmp_path: Path):
    _example_tree(tmp_path)
    walker = TreeWalker()

    names = [n.name for n in walker.traverse(tmp_path)]

    assert names == [str(tmp_path), "a.txt", "sub", "b.txt"]
    assert walker.get_counts() == (2, 2)


def test_root_is_first_and_unique(tmp_path: Path):
    _nested_tree(tmp_path)
    nodes = list(TreeWalker().traverse(tmp_path))

    assert nodes[0].is_root
    assert nodes[0].mark == ""
    assert nodes[0].parent == ""
    assert [n for n in nodes if n.is_root] == [nodes[0]]


def test_exactly_one_last_entry_per_listing(tmp_path: Path):
    _nested_tree(tmp_path)
    nodes = list(TreeWalker().traverse(tmp_path))

    by_parent = defaultdict(list)
    for n in nodes[1:]:
        by_parent[n.parent].append(n)

    assert by_parent
    for siblings in by_parent.values():
        assert [n.is_last for n in siblings] == [False] * (len(siblings) - 1) + [True]


def test_pre_order_children_follow_their_directory(tmp_path: Path):
    _nested_tree(tmp_path)
    paths = [n.full_path for n in TreeWalker().traverse(tmp_path)]
    rel = [os.path.relpath(p, tmp_path) for p in paths[1:]]

    assert rel == [
        "d1",
        os.path.join("d1", "x.txt"),
        os.path.join("d1", "y"),
        os.path.join("d1", "y", "deep.txt"),
        "d2",
        os.path.join("d2", "z.txt"),
        "top.txt",
    ]


def test_prefixes_accumulate_bars_and_blanks(tmp_path: Path):
    _nested_tree(tmp_path)
    prefixes = {n.name: n.prefix for n in TreeWalker().traverse(tmp_path)}

    # Children of the root start at column zero.
    assert prefixes["d1"] == ""
    assert prefixes["top.txt"] == ""
    # d1 is not last: its subtree continues the vertical bar.
    assert prefixes["x.txt"] == "│   "
    assert prefixes["y"] == "│   "
    # y is the last entry of d1, so its own subtree is blank padded.
    assert prefixes["deep.txt"] == "│       "


def test_last_directory_subtree_is_blank_padded(tmp_path: Path):
    _example_tree(tmp_path)
    prefixes = {n.name: n.prefix for n in TreeWalker().traverse(tmp_path)}
    assert prefixes["b.txt"] == "    "


def test_counts_match_emitted_nodes(tmp_path: Path):
    _nested_tree(tmp_path)
    walker = TreeWalker()
    nodes = list(walker.traverse(tmp_path))

    ndirs, nfiles = walker.get_counts()
    assert ndirs + nfiles == len(nodes)
    assert ndirs == sum(1 for n in nodes if n.is_dir)


def test_repeated_traversal_is_identical_and_counts_accumulate(tmp_path: Path):
    _nested_tree(tmp_path)
    walker = TreeWalker()

    first = [(n.name, n.parent, n.is_last) for n in walker.traverse(tmp_path)]
    counts = walker.get_counts()
    second = [(n.name, n.parent, n.is_last) for n in walker.traverse(tmp_path)]

    assert first == second
    assert walker.get_counts() == (counts[0] * 2, counts[1] * 2)


def test_filters_are_a_conjunction(tmp_path: Path):
    _nested_tree(tmp_path)
    _make_file(tmp_path / "d1/keep.md")

    def names(*predicates):
        walker = TreeWalker()
        for p in predicates:
            walker.add_filter(p)
        return {n.name for n in walker.traverse(tmp_path)}

    not_txt = lambda info: not info.name.endswith(".txt")  # noqa: E731
    not_d2 = lambda info: info.name != "d2"  # noqa: E731

    everything = names()
    one = names(not_txt)
    both = names(not_txt, not_d2)
    reversed_order = names(not_d2, not_txt)

    assert both <= one <= everything
    assert both == reversed_order
    assert "keep.md" in both
    assert "d2" not in both and "z.txt" not in both
    assert not any(n.endswith(".txt") for n in both)


def test_rejected_directory_is_pruned(tmp_path: Path):
    _nested_tree(tmp_path)
    walker = TreeWalker()
    walker.add_filter(lambda info: info.name != "d1")
    names = [n.name for n in walker.traverse(tmp_path)]

    assert "d1" not in names
    assert "x.txt" not in names and "deep.txt" not in names


def test_root_bypasses_filters(tmp_path: Path):
    _example_tree(tmp_path)
    walker = TreeWalker()
    walker.add_filter(lambda info: False)

    nodes = list(walker.traverse(tmp_path))

    assert [n.name for n in nodes] == [str(tmp_path)]
    assert walker.get_counts() == (1, 0)


def test_root_is_a_file(tmp_path: Path):
    f = tmp_path / "single.txt"
    _make_file(f)
    walker = TreeWalker()

    nodes = list(walker.traverse(f))

    assert len(nodes) == 1
    assert nodes[0].is_root and not nodes[0].is_dir
    assert walker.get_counts() == (0, 1)


def test_missing_root_yields_empty_stream(tmp_path: Path, caplog: pytest.LogCaptureFixture):
    walker = TreeWalker()
    with caplog.at_level("WARNING", logger="treestream.walker"):
        nodes = list(walker.traverse(tmp_path / "nope"))

    assert nodes == []
    assert walker.get_counts() == (0, 0)
    assert any("nope" in r.getMessage() for r in caplog.records)


@pytest.mark.skipif(os.name != "posix", reason="Permission bits test is POSIX-only")
@pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root ignores permission bits")
def test_unreadable_directory_is_skipped_safely(tmp_path: Path, caplog: pytest.LogCaptureFixture):
    secret = tmp_path / "secret"
    _make_file(secret / "hidden.txt")
    _make_file(tmp_path / "visible.txt")

    secret.chmod(0)
    try:
        with caplog.at_level("WARNING", logger="treestream.walker"):
            names = [n.name for n in TreeWalker().traverse(tmp_path)]
        # directory exists as a node, but children couldn't be listed
        assert "secret" in names
        assert "hidden.txt" not in names
        assert "visible.txt" in names
        assert any("secret" in r.getMessage() for r in caplog.records)
    finally:
        secret.chmod(stat.S_IRWXU)


def test_dirs_first_order(tmp_path: Path):
    (tmp_path / "bDir").mkdir()
    (tmp_path / "ADir").mkdir()
    _make_file(tmp_path / "z.txt")
    _make_file(tmp_path / "A.txt")

    names = [n.name for n in TreeWalker(order=dirs_first).traverse(tmp_path)][1:]
    assert names == ["ADir", "bDir", "A.txt", "z.txt"]


def test_default_order_is_by_name(tmp_path: Path):
    (tmp_path / "b").mkdir()
    _make_file(tmp_path / "a.txt")
    _make_file(tmp_path / "c.txt")

    names = [n.name for n in TreeWalker().traverse(tmp_path)][1:]
    assert names == ["a.txt", "b", "c.txt"]


def test_producer_waits_for_consumer(tmp_path: Path):
    for i in range(5):
        _make_file(tmp_path / f"f{i}.txt")
    walker = TreeWalker()
    stream = walker.traverse(tmp_path)

    next(stream)
    # Only the node handed over so far may be counted.
    assert walker.get_counts() in ((0, 0), (1, 0))
    assert not stream.done

    rest = list(stream)
    assert len(rest) == 5
    assert walker.get_counts() == (1, 5)


def test_close_cancels_unfinished_traversal(tmp_path: Path):
    _nested_tree(tmp_path)
    walker = TreeWalker()

    with walker.traverse(tmp_path) as stream:
        next(stream)
        next(stream)
    assert stream.done
    assert list(stream) == []

    # A cancelled traversal frees the walker for the next root.
    assert len(list(walker.traverse(tmp_path))) == 8


def test_overlapping_traversals_are_rejected(tmp_path: Path):
    _nested_tree(tmp_path)
    walker = TreeWalker()
    stream = walker.traverse(tmp_path)
    try:
        next(stream)
        with pytest.raises(RuntimeError):
            walker.traverse(tmp_path)
    finally:
        stream.close()


def test_traversal_runs_on_background_thread(tmp_path: Path):
    _example_tree(tmp_path)
    seen = []

    def record(info):
        seen.append(threading.current_thread().name)
        return True

    walker = TreeWalker()
    walker.add_filter(record)
    list(walker.traverse(tmp_path))

    assert seen
    assert all(name == "treestream-walker" for name in seen)


def test_filter_error_reaches_consumer(tmp_path: Path):
    _example_tree(tmp_path)

    def broken(info):
        raise ValueError("boom")

    walker = TreeWalker()
    walker.add_filter(broken)
    stream = walker.traverse(tmp_path)

    assert next(stream).is_root
    with pytest.raises(ValueError, match="boom"):
        next(stream)
    assert list(stream) == []


class _NullListing:
    def __enter__(self):
        return iter([None])

    def __exit__(self, *exc_info):
        return False


def test_null_listing_entry_is_fatal(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _example_tree(tmp_path)
    monkeypatch.setattr("treestream.walker.os.scandir", lambda directory: _NullListing())

    stream = TreeWalker().traverse(tmp_path)

    assert next(stream).is_root
    with pytest.raises(WalkerInvariantError):
        next(stream)
