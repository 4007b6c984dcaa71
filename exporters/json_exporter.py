"""JSON exporters for analysis results (machine-friendly format)."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from graph.model import DependencyGraph
from scanner.analyzer import AnalysisResult


def to_json(
    result: AnalysisResult,
    root: Optional[Path] = None,
    indent: int = 2,
) -> str:
    """
    Convert a full analysis result to JSON with root-relative paths.

    Args:
        result: The analysis result to export.
        root: Project root for relative paths (default: the result's root).
        indent: JSON indentation level.

    Returns:
        JSON string with allFiles, usedFiles, unusedFiles, dependencyGraph,
        bundleAnalysis and bundleCorrelation.
    """
    if root is None:
        root = result.root_dir or Path.cwd()

    data: Dict[str, Any] = {
        "allFiles": _paths(result.all_files, root),
        "usedFiles": _paths(result.used_files, root),
        "unusedFiles": _paths(result.unused_files, root),
        "dependencyGraph": graph_to_dict(result.dependency_graph, root),
        "bundleAnalysis": result.bundle_analysis.to_dict() if result.bundle_analysis else None,
        "bundleCorrelation": result.bundle_correlation.to_dict() if result.bundle_correlation else None,
    }
    return json.dumps(data, indent=indent)


def unused_to_json(result: AnalysisResult, root: Optional[Path] = None, indent: int = 2) -> str:
    """The unused-file list alone, as written to unused-files.json."""
    if root is None:
        root = result.root_dir or Path.cwd()
    return json.dumps(_paths(result.unused_files, root), indent=indent)


def graph_to_dict(graph: DependencyGraph, root: Path) -> Dict[str, List[str]]:
    """Map each analyzed file to the files it depends on, all root-relative."""
    return {
        _get_path_str(source, root): sorted(_get_path_str(t, root) for t in targets)
        for source, targets in sorted(graph.edges.items())
    }


def graph_to_json(graph: DependencyGraph, root: Path, indent: int = 2) -> str:
    """Dependency-graph export, as written to dependency-graph.json."""
    return json.dumps(graph_to_dict(graph, root), indent=indent)


def _paths(paths: List[Path], root: Path) -> List[str]:
    return [_get_path_str(p, root) for p in paths]


def _get_path_str(path: Path, root: Path) -> str:
    """Get the string representation of a path."""
    try:
        rel_path = path.resolve().relative_to(root.resolve())
        return str(rel_path).replace("\\", "/")
    except ValueError:
        return str(path).replace("\\", "/")
