# treestream/__main__.py

"""Module entrypoint for ``python -m treestream``."""

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
