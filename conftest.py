"""Puts the repository root on sys.path so tests can import the `src` packages without installing them."""

import os
import sys


def _add_root_to_path() -> None:
    root = os.path.abspath(os.path.dirname(__file__))
    if root not in sys.path:
        sys.path.insert(0, root)


_add_root_to_path()
