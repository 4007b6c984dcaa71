"""Dependency graph model and orphan detection."""

from .model import DependencyGraph
from .orphans import find_unused_files

__all__ = ["DependencyGraph", "find_unused_files"]
