"""ASCII tree-style report of unused files."""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from scanner.analyzer import AnalysisResult


# Unicode tree characters
UNICODE_BRANCH = "├── "
UNICODE_LAST = "└── "
UNICODE_VERTICAL = "│   "
UNICODE_SPACE = "    "

# ASCII fallback characters
ASCII_BRANCH = "|-- "
ASCII_LAST = "\\-- "
ASCII_VERTICAL = "|   "
ASCII_SPACE = "    "

_Tree = Dict[str, "_Tree"]


def to_ascii(
    result: AnalysisResult,
    root: Optional[Path] = None,
    style: str = "tree",
) -> str:
    """
    Render the unused files of a run as a directory tree.

    Args:
        result: The analysis result to report.
        root: Project root for relative paths (default: the result's root).
        style: Output style - "tree" (Unicode) or "ascii" (pure ASCII).

    Returns:
        Report text: a summary line, the tree of unused files and, when
        bundle correlation ran, the estimated savings.
    """
    if root is None:
        root = result.root_dir or Path.cwd()

    # Select character set based on style
    if style == "ascii":
        chars = (ASCII_BRANCH, ASCII_LAST, ASCII_VERTICAL, ASCII_SPACE)
    else:
        chars = (UNICODE_BRANCH, UNICODE_LAST, UNICODE_VERTICAL, UNICODE_SPACE)

    lines: List[str] = [
        f"Scanned {len(result.all_files)} files, "
        f"{len(result.used_files)} used, {len(result.unused_files)} unused."
    ]

    if not result.unused_files:
        lines.append("No unused files found!")
    else:
        lines.append("")
        lines.append("Unused files:")
        tree: _Tree = {}
        for path in result.unused_files:
            node = tree
            for part in _get_display_path(path, root).split("/"):
                node = node.setdefault(part, {})
        _render_tree(tree, "", chars, lines)

    correlation = result.bundle_correlation
    if correlation is not None:
        impact = correlation.size_impact
        lines.append("")
        lines.append(
            f"Bundle analysis: {len(correlation.bundle_used_files)} files found in the bundle, "
            f"potential savings {impact.total_kb} KB ({impact.total_bytes} bytes)"
        )

    return "\n".join(lines)


def _render_tree(
    tree: _Tree,
    prefix: str,
    chars: Tuple[str, str, str, str],
    lines: List[str],
) -> None:
    """
    Recursively render directory levels; directories sort before files.

    Args:
        tree: Nested mapping of path components.
        prefix: Current line prefix for indentation.
        chars: Character set (branch, last, vertical, space).
        lines: Output lines list (modified in place).
    """
    branch, last, vertical, space = chars
    names = sorted(tree, key=lambda name: (not tree[name], name))
    for index, name in enumerate(names):
        is_last = index == len(names) - 1
        children = tree[name]
        label = f"{name}/" if children else name
        lines.append(f"{prefix}{last if is_last else branch}{label}")
        if children:
            _render_tree(children, prefix + (space if is_last else vertical), chars, lines)


def _get_display_path(node: Path, root: Path) -> str:
    """Get the display path for a node."""
    try:
        rel_path = node.resolve().relative_to(root.resolve())
        return str(rel_path).replace("\\", "/")
    except ValueError:
        return str(node).replace("\\", "/")
