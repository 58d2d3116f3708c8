# treestream/hashing.py

"""Content digests for the checksum column."""


from __future__ import annotations

import hashlib
import os

CHUNK_SIZE = 64 * 1024


def sha1_hexdigest(path: str | os.PathLike[str]) -> str:
    """
    Return the lowercase SHA-1 hex digest of a file's full contents.

    The file is read in fixed-size chunks so large files are never loaded
    into memory at once.

    Raises
    ------
    OSError
        If the file cannot be opened or read.
    """

    h = hashlib.sha1()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()
