"""
Bundle correlation.

Reads a build output directory, recovers the source files embedded in its
artifacts through source maps, and uses them to rescue files the static
analysis flagged as unused. Bundle evidence never flags a file by itself.
"""

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from loguru import logger

from scanner.errors import BundleDirectoryNotFoundError
from .sourcemaps import SourceMapError, SourceMapReader, decode_data_uri, find_mapping_url, is_data_uri


BUNDLE_SUFFIXES = {".js", ".mjs", ".cjs", ".css", ".map"}
SKIPPED_DIRS = {"node_modules", ".git"}
COMMON_BUNDLE_DIRS = ["dist", "build", "out", ".output", ".nuxt/dist", ".vitepress/dist"]

# webpack:///./src/App.vue, webpack://my-app/./src/App.vue, vite:///src/x.ts, ...
_BUNDLER_PREFIX = re.compile(r"^(?:webpack://[^/]*/|vite:/*|rollup:/*|file://)")


@dataclass
class BundleAnalysis:
    """What was found in the build output."""
    bundle_files: List[Path] = field(default_factory=list)
    source_files: List[Path] = field(default_factory=list)
    file_sizes: Dict[Path, int] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "bundleFiles": [str(p) for p in self.bundle_files],
            "sourceFiles": [str(p) for p in self.source_files],
            "fileSizes": {str(p): size for p, size in self.file_sizes.items()},
        }


@dataclass
class SizeImpact:
    total_bytes: int = 0
    file_sizes: Dict[Path, int] = field(default_factory=dict)

    @property
    def total_kb(self) -> int:
        return round(self.total_bytes / 1024)

    @property
    def total_mb(self) -> float:
        return round(self.total_bytes / (1024 * 1024), 2)

    def to_dict(self) -> Dict:
        return {
            "totalBytes": self.total_bytes,
            "totalKB": self.total_kb,
            "totalMB": self.total_mb,
            "fileSizes": {str(p): size for p, size in self.file_sizes.items()},
        }


@dataclass
class BundleCorrelation:
    """Static results refined with bundle evidence."""
    bundle_used_files: List[Path] = field(default_factory=list)
    bundle_unused_files: List[Path] = field(default_factory=list)
    size_impact: SizeImpact = field(default_factory=SizeImpact)

    def to_dict(self) -> Dict:
        return {
            "bundleUsedFiles": [str(p) for p in self.bundle_used_files],
            "bundleUnusedFiles": [str(p) for p in self.bundle_unused_files],
            "sizeImpact": self.size_impact.to_dict(),
        }


class BundleAnalyzer:
    """
    Collects source files embedded in build artifacts.

    Args:
        root: Project root, used to resolve map sources.
        reader: Source map capability. Without one, artifacts are still
                listed but contribute no source evidence.
    """

    def __init__(self, root: Path, reader: Optional[SourceMapReader] = None):
        self.root = root.resolve()
        self.reader = reader
        self.bundle_files: List[Path] = []
        self.source_files: Set[Path] = set()
        self.file_sizes: Dict[Path, int] = {}
        self._seen_maps: Set[Path] = set()
        if reader is None:
            logger.warning("Source map reader not available, bundle analysis will be limited")

    def analyze_bundle_directory(self, bundle_dir: Path) -> BundleAnalysis:
        """
        Analyze every artifact under ``bundle_dir``.

        Raises:
            BundleDirectoryNotFoundError: If the directory does not exist.
        """
        bundle_dir = Path(bundle_dir)
        if not bundle_dir.is_dir():
            raise BundleDirectoryNotFoundError(bundle_dir)

        self.bundle_files = self.find_bundle_files(bundle_dir)
        for file_path in self.bundle_files:
            self.analyze_bundle_file(file_path)

        logger.info(f"[Bundle Analysis] Found {len(self.source_files)} source files in bundle")
        return BundleAnalysis(
            bundle_files=list(self.bundle_files),
            source_files=sorted(self.source_files),
            file_sizes=dict(self.file_sizes),
        )

    def find_bundle_files(self, bundle_dir: Path) -> List[Path]:
        """List script, style and map artifacts, in sorted walk order."""
        found: List[Path] = []
        for current, dirs, files in os.walk(bundle_dir):
            dirs[:] = sorted(d for d in dirs if d not in SKIPPED_DIRS)
            for name in sorted(files):
                if Path(name).suffix.lower() in BUNDLE_SUFFIXES:
                    found.append(Path(current) / name)
        return found

    def analyze_bundle_file(self, file_path: Path) -> None:
        try:
            self.file_sizes[file_path] = file_path.stat().st_size
        except OSError as exc:
            logger.warning(f"Could not stat bundle file {file_path}: {exc}")
            return

        suffix = file_path.suffix.lower()
        if suffix == ".map":
            self.analyze_source_map(file_path)
        else:
            self._follow_mapping_url(file_path, is_css=suffix == ".css")

    def analyze_source_map(self, map_path: Path, content: Optional[str] = None) -> None:
        """Add the sources of one map; a malformed map is skipped with a warning."""
        if self.reader is None:
            return
        map_path = map_path.resolve()
        if content is None:
            if map_path in self._seen_maps:
                return
            self._seen_maps.add(map_path)
            try:
                content = map_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning(f"Failed to read source map {map_path}: {exc}")
                return

        try:
            sources = self.reader.read_sources(content)
        except SourceMapError as exc:
            logger.warning(f"Failed to analyze source map {map_path}: {exc}")
            return

        for source in sources:
            resolved = self.resolve_source_path(source, map_path.parent)
            if resolved is not None:
                self.source_files.add(resolved)

    def _follow_mapping_url(self, file_path: Path, is_css: bool) -> None:
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Failed to analyze bundle {file_path}: {exc}")
            return

        url = find_mapping_url(content, is_css=is_css)
        if not url:
            return
        if is_data_uri(url):
            inline = decode_data_uri(url)
            if inline is not None:
                self.analyze_source_map(file_path, content=inline)
            return

        map_path = (file_path.parent / url.split("?")[0]).resolve()
        if map_path.is_file():
            self.analyze_source_map(map_path)

    def resolve_source_path(self, source: str, map_dir: Path) -> Optional[Path]:
        """
        Map a source map entry to a project file.

        Tries the entry as an absolute path, relative to the map's directory
        and relative to the project root, first as written and then with
        bundler prefixes (``webpack://``, ``vite:``, ...) stripped. Query
        suffixes such as ``?vue&type=script`` are dropped.
        """
        cleaned = source.split("?")[0]
        stripped = _BUNDLER_PREFIX.sub("", cleaned)

        candidates: List[str] = []
        for entry in dict.fromkeys([cleaned, stripped]):
            if not entry:
                continue
            if os.path.isabs(entry):
                candidates.append(os.path.normpath(entry))
            else:
                candidates.append(os.path.normpath(os.path.join(str(map_dir), entry)))
                candidates.append(os.path.normpath(os.path.join(str(self.root), entry)))
        if stripped.startswith("/"):
            candidates.append(os.path.normpath(os.path.join(str(self.root), stripped.lstrip("/"))))

        for candidate in candidates:
            if os.path.isfile(candidate):
                return Path(candidate).resolve()
        return None

    def correlate_with_static_analysis(
        self,
        all_files: Iterable[Path],
        used_files: Iterable[Path],
    ) -> BundleCorrelation:
        """
        Refine the unused-file set with bundle evidence.

        A file stays unused only if neither the static analysis nor the
        bundle uses it.
        """
        all_files = list(all_files)
        used = set(used_files)
        bundle_used = [p for p in all_files if p in self.source_files]
        rescued = set(bundle_used)
        bundle_unused = [p for p in all_files if p not in used and p not in rescued]
        return BundleCorrelation(
            bundle_used_files=bundle_used,
            bundle_unused_files=bundle_unused,
            size_impact=self.calculate_size_impact(bundle_unused),
        )

    @staticmethod
    def calculate_size_impact(files: Iterable[Path]) -> SizeImpact:
        """On-disk size of files that could be removed."""
        impact = SizeImpact()
        for file_path in files:
            try:
                size = file_path.stat().st_size
            except OSError:
                size = 0
            impact.file_sizes[file_path] = size
            impact.total_bytes += size
        return impact


def detect_bundle_directory(root: Path) -> Path:
    """
    Guess the build output directory.

    Checks common output directories, then ``build.outDir`` in
    ``package.json``, and falls back to ``root/dist``.
    """
    root = root.resolve()
    for name in COMMON_BUNDLE_DIRS:
        candidate = root / name
        if candidate.is_dir():
            return candidate

    package_json = root / "package.json"
    if package_json.is_file():
        try:
            package = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.debug(f"Could not read {package_json}: {exc}")
        else:
            out_dir = (package.get("build") or {}).get("outDir") if isinstance(package, dict) else None
            if isinstance(out_dir, str) and out_dir:
                return (root / out_dir).resolve()

    return root / "dist"
