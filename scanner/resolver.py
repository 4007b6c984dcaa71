"""Path resolution utilities for mapping import specifiers to actual files."""

import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from .discovery import Extensions, matches_all_extensions


AliasTable = List[Tuple[str, str]]


def build_alias_table(alias: Optional[Mapping[str, str]]) -> AliasTable:
    """Order alias entries longest-prefix-first so the most specific alias wins."""
    return sorted((alias or {}).items(), key=lambda item: len(item[0]), reverse=True)


def match_alias(specifier: str, aliases: AliasTable) -> Optional[Tuple[str, str]]:
    """Return the (prefix, target) pair matching the specifier, if any."""
    for prefix, target in aliases:
        if specifier == prefix or specifier.startswith(prefix + "/"):
            return prefix, target
    return None


def is_package_import(specifier: str, aliases: AliasTable) -> bool:
    """
    Check whether a specifier names an external package.

    Anything that is not relative, not absolute and not behind a configured
    alias is a package dependency, e.g. ``lodash`` or ``@vue/runtime-core``.
    """
    if specifier.startswith(".") or os.path.isabs(specifier):
        return False
    return match_alias(specifier, aliases) is None


class ModuleResolver:
    """
    Resolves import specifiers to canonical project files.

    One resolver belongs to one analysis run: the existence cache and the
    resolution memo are keyed by absolute paths of that run's project root
    and are discarded with the resolver. Both caches only ever gain entries,
    so sharing them between concurrently analyzed files is safe.
    """

    def __init__(
        self,
        root: Path,
        aliases: Optional[AliasTable] = None,
        extensions: Optional[Extensions] = None,
    ):
        self.root = root.resolve()
        self.aliases: AliasTable = list(aliases or [])
        self.extensions = extensions
        self._any_extension = matches_all_extensions(extensions)
        self._suffixes: Sequence[str] = () if self._any_extension else list(extensions)
        self._exists: Dict[str, bool] = {}
        self._memo: Dict[Tuple[str, str], Optional[Path]] = {}

    def is_package(self, specifier: str) -> bool:
        return is_package_import(specifier, self.aliases)

    def resolve(self, specifier: str, containing_file: Path) -> Optional[Path]:
        """
        Resolve an import specifier written in ``containing_file``.

        Tries, in order:
        1. The path itself when it already carries a configured extension.
        2. The path with each configured extension appended.
        3. ``index<ext>`` inside the path, for each configured extension.
        4. The bare path, when it is an existing file.

        Args:
            specifier: The raw specifier, e.g. ``@/components/Foo``.
            containing_file: The file the import is written in.

        Returns:
            Canonical Path of the target, or None for packages and misses.
        """
        if not specifier or self.is_package(specifier):
            return None

        source_dir = str(containing_file.parent)
        key = (specifier, source_dir)
        if key in self._memo:
            return self._memo[key]

        base = self._substitute(specifier, source_dir)
        resolved = self._probe(base)
        if resolved is not None:
            logger.debug(f"Import '{specifier}' in '{containing_file}' resolved to '{resolved}'")
        self._memo.setdefault(key, resolved)
        return resolved

    def resolve_entry(self, entry: str) -> Optional[Path]:
        """
        Resolve a configured entry point.

        Entries are root-relative paths or alias-prefixed specifiers and go
        through the same extension and index probing as imports.
        """
        if match_alias(entry, self.aliases) is not None:
            base = self._substitute(entry, str(self.root))
        else:
            base = os.path.normpath(os.path.join(str(self.root), entry))
        return self._probe(base)

    def _substitute(self, specifier: str, source_dir: str) -> str:
        matched = match_alias(specifier, self.aliases)
        if matched is not None:
            prefix, target = matched
            rest = specifier[len(prefix):].lstrip("/")
            return os.path.normpath(os.path.join(str(self.root), target, rest))
        return os.path.normpath(os.path.join(source_dir, specifier))

    def _probe(self, base: str) -> Optional[Path]:
        if self._any_extension:
            if self._is_file(base):
                return self._canonical(base)
        elif base.endswith(tuple(self._suffixes)) and self._is_file(base):
            return self._canonical(base)

        for ext in self._suffixes:
            candidate = base + ext
            if self._is_file(candidate):
                return self._canonical(candidate)

        for ext in self._suffixes:
            candidate = os.path.join(base, "index" + ext)
            if self._is_file(candidate):
                return self._canonical(candidate)

        if self._is_file(base):
            return self._canonical(base)
        return None

    def _is_file(self, path: str) -> bool:
        cached = self._exists.get(path)
        if cached is None:
            cached = os.path.isfile(path)
            self._exists.setdefault(path, cached)
        return cached

    @staticmethod
    def _canonical(path: str) -> Path:
        return Path(path).resolve()

    def __repr__(self) -> str:
        return f"ModuleResolver(root={self.root}, aliases={len(self.aliases)}, cached={len(self._exists)})"
