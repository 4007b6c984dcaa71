"""Orphan detection over an analyzed dependency graph."""

from pathlib import Path
from typing import Iterable, List, Set


def find_unused_files(all_files: Iterable[Path], used_files: Set[Path]) -> List[Path]:
    """
    Return the files that no entry point reaches.

    The result keeps the iteration order of ``all_files`` so reports are
    reproducible across runs.
    """
    return [path for path in all_files if path not in used_files]
