"""Graph data model for storing file dependency relationships."""

from pathlib import Path
from typing import Dict, Iterator, List, Set, Tuple


class DependencyGraph:
    """
    A directed graph of module dependencies.

    Keys are analyzed files, and edges represent 'importer -> imported'
    relationships. Every analyzed file owns an entry, even when it imports
    nothing, so a missing key means the file was never analyzed.
    Unresolved specifiers are tracked separately for reporting.
    """

    def __init__(self):
        self._edges: Dict[Path, Set[Path]] = {}
        self._unresolved: Dict[Path, Set[str]] = {}  # source -> raw specifiers

    @property
    def files(self) -> Set[Path]:
        """Return all analyzed files."""
        return set(self._edges)

    @property
    def edges(self) -> Dict[Path, Set[Path]]:
        """Return adjacency list representation of edges."""
        return {k: v.copy() for k, v in self._edges.items()}

    @property
    def unresolved(self) -> Dict[Path, Set[str]]:
        """Return unresolved specifiers (source -> set of raw specifiers)."""
        return {k: v.copy() for k, v in self._unresolved.items()}

    def add_file(self, source: Path) -> None:
        """Register an analyzed file, keeping any edges it already has."""
        self._edges.setdefault(source, set())

    def add_edge(self, source: Path, target: Path) -> None:
        """
        Add a directed edge from source to target.

        Only the source gets an entry; the target is registered when it is
        analyzed itself.
        """
        self._edges.setdefault(source, set()).add(target)

    def add_unresolved(self, source: Path, specifier: str) -> None:
        """
        Record an import specifier that did not resolve to a file.

        Args:
            source: The file containing the import.
            specifier: The raw specifier as written in source.
        """
        self.add_file(source)
        self._unresolved.setdefault(source, set()).add(specifier)

    def get_unresolved(self, source: Path) -> Set[str]:
        """Get all unresolved specifiers of the source file."""
        return self._unresolved.get(source, set()).copy()

    def get_targets(self, source: Path) -> Set[Path]:
        """Get all files that the source file imports."""
        return self._edges.get(source, set()).copy()

    def get_sources(self, target: Path) -> Set[Path]:
        """Get all files that import the target file."""
        return {source for source, targets in self._edges.items() if target in targets}

    def iter_edges(self) -> Iterator[Tuple[Path, Path]]:
        """Iterate over all edges as (source, target) tuples."""
        for source in sorted(self._edges):
            for target in sorted(self._edges[source]):
                yield source, target

    def to_dict(self) -> Dict[str, List[str]]:
        """Absolute-path adjacency mapping with sorted dependency lists."""
        return {
            str(source): sorted(str(t) for t in targets)
            for source, targets in sorted(self._edges.items())
        }

    def __len__(self) -> int:
        """Return the number of analyzed files."""
        return len(self._edges)

    def __contains__(self, node: Path) -> bool:
        """Check if a file has been analyzed."""
        return node in self._edges

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DependencyGraph):
            return NotImplemented
        return self._edges == other._edges

    def __repr__(self) -> str:
        edge_count = sum(len(t) for t in self._edges.values())
        unresolved_count = sum(len(u) for u in self._unresolved.values())
        return f"DependencyGraph(files={len(self._edges)}, edges={edge_count}, unresolved={unresolved_count})"
