"""File discovery utilities for scanning front-end projects."""

from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Union

import pathspec
from loguru import logger


ALL_EXTENSIONS = "ALL"

DEFAULT_EXTENSIONS = [".vue", ".js", ".ts", ".json"]
DEFAULT_IGNORE_PATTERNS = [
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.output/**",
    "**/.nuxt/**",
    "**/.vite/**",
    "**/.git/**",
]
# Never descended into, whatever the ignore rules say.
ALWAYS_SKIPPED_DIRS = {".git", "node_modules"}

Extensions = Union[str, Sequence[str]]


def matches_all_extensions(extensions: Optional[Extensions]) -> bool:
    """True when the extension filter is the "all files" sentinel or empty."""
    return extensions == ALL_EXTENSIONS or not extensions


class IgnoreRules:
    """
    Combined ignore rules for one project root.

    A path is ignored when either the glob ignore list or the project's
    ``.gitignore`` excludes it. Both sets are matched with gitignore-style
    semantics against root-relative POSIX paths.
    """

    def __init__(self, root: Path, globs: Iterable[str] = (), gitignore_lines: Iterable[str] = ()):
        self.root = root
        self.globs = list(globs)
        self._glob_spec = pathspec.GitIgnoreSpec.from_lines(self.globs)
        self._gitignore_spec = pathspec.GitIgnoreSpec.from_lines(list(gitignore_lines))

    @classmethod
    def for_root(cls, root: Path, ignore: Optional[Iterable[str]] = None) -> "IgnoreRules":
        """Build rules from explicit globs, the defaults and ``root/.gitignore``."""
        globs: List[str] = []
        for pattern in list(ignore or []) + DEFAULT_IGNORE_PATTERNS:
            if pattern not in globs:
                globs.append(pattern)

        gitignore_lines: List[str] = []
        gitignore_path = root / ".gitignore"
        if gitignore_path.is_file():
            try:
                gitignore_lines = gitignore_path.read_text(encoding="utf-8").splitlines()
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning(f"Could not read {gitignore_path}: {exc}")

        return cls(root, globs, gitignore_lines)

    def is_ignored(self, rel_path: str) -> bool:
        """Check a root-relative file path against both rule sets."""
        return self._glob_spec.match_file(rel_path) or self._gitignore_spec.match_file(rel_path)

    def is_dir_ignored(self, rel_dir: str) -> bool:
        """Check a root-relative directory, so whole subtrees can be pruned."""
        return self.is_ignored(rel_dir.rstrip("/") + "/")


def iter_files(
    root: Path,
    extensions: Optional[Extensions] = None,
    ignore: Optional[Iterable[str]] = None,
    rules: Optional[IgnoreRules] = None,
) -> Iterator[Path]:
    """
    Iterate over candidate source files in a directory tree.

    Args:
        root: Root directory to scan.
        extensions: File extensions to include (e.g., ['.vue', '.js']), or
                    ALL_EXTENSIONS for every file. If None, uses DEFAULT_EXTENSIONS.
        ignore: Extra glob patterns to exclude, relative to root.
        rules: Prebuilt ignore rules. If None, they are built from ``ignore``
               and ``root/.gitignore``.

    Yields:
        Absolute Path objects for matching files, in sorted walk order.
    """
    if extensions is None:
        extensions = DEFAULT_EXTENSIONS

    root = root.resolve()
    if not root.is_dir():
        logger.debug(f"Root directory {root} does not exist, nothing to scan")
        return

    if rules is None:
        rules = IgnoreRules.for_root(root, ignore)

    accept_all = matches_all_extensions(extensions)
    suffixes = tuple(extensions) if not accept_all else ()

    def _walk(current: Path) -> Iterator[Path]:
        try:
            entries = sorted(current.iterdir())
        except PermissionError:
            return

        for entry in entries:
            rel = entry.relative_to(root).as_posix()
            if entry.is_dir():
                # Symlinked directories can form cycles.
                if entry.is_symlink():
                    continue
                if entry.name in ALWAYS_SKIPPED_DIRS or rules.is_dir_ignored(rel):
                    continue
                yield from _walk(entry)
            elif entry.is_file():
                if not accept_all and not entry.name.endswith(suffixes):
                    continue
                if rules.is_ignored(rel):
                    continue
                yield entry

    yield from _walk(root)
