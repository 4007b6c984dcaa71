"""End-to-end analysis: enumerate, build the graph, detect orphans, correlate."""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from loguru import logger

from bundle.analyzer import BundleAnalysis, BundleAnalyzer, BundleCorrelation, detect_bundle_directory
from bundle.sourcemaps import SourceMapReader, detect_source_map_reader
from graph.model import DependencyGraph
from graph.orphans import find_unused_files
from .builder import AnalysisContext, build_dependency_graph
from .config import AnalysisConfig
from .discovery import iter_files
from .errors import BundleDirectoryNotFoundError
from .resolver import ModuleResolver
from .sfc import SfcSplitter, get_splitter


@dataclass
class AnalysisResult:
    """
    Outcome of one run.

    ``unused_files`` is the bundle-refined list when bundle correlation ran,
    otherwise the static one. Every file of ``all_files`` is in exactly one
    of ``used_files`` and ``unused_files``.
    """
    all_files: List[Path]
    used_files: List[Path]
    unused_files: List[Path]
    dependency_graph: DependencyGraph
    bundle_analysis: Optional[BundleAnalysis] = None
    bundle_correlation: Optional[BundleCorrelation] = None
    root_dir: Optional[Path] = None
    static_unused_files: List[Path] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allFiles": [str(p) for p in self.all_files],
            "usedFiles": [str(p) for p in self.used_files],
            "unusedFiles": [str(p) for p in self.unused_files],
            "dependencyGraph": self.dependency_graph.to_dict(),
            "bundleAnalysis": self.bundle_analysis.to_dict() if self.bundle_analysis else None,
            "bundleCorrelation": self.bundle_correlation.to_dict() if self.bundle_correlation else None,
        }


def enumerate_files(config: AnalysisConfig) -> List[Path]:
    """Canonical paths of all candidate files, deduplicated, in walk order."""
    seen: Set[Path] = set()
    files: List[Path] = []
    for path in iter_files(config.root_dir, config.extensions, config.ignore):
        canonical = path.resolve()
        if canonical not in seen:
            seen.add(canonical)
            files.append(canonical)
    return files


async def analyze_project(
    config: AnalysisConfig,
    splitter: Optional[SfcSplitter] = None,
    source_map_reader: Optional[SourceMapReader] = None,
) -> AnalysisResult:
    """
    Run the whole analysis for one project.

    Args:
        config: The run configuration.
        splitter: SFC splitter; detected from the project's Vue version if None.
        source_map_reader: Source map capability for bundle correlation;
                           detected if None.

    Raises:
        BundleDirectoryNotFoundError: If bundle correlation was requested
            for a missing directory.
    """
    root = config.root_dir
    if splitter is None:
        splitter = get_splitter(root)
    logger.debug(f"Using {splitter!r} for component files")

    bundle_dir: Optional[Path] = None
    if config.bundle:
        bundle_dir = config.bundle_dir or detect_bundle_directory(root)
        logger.info(f"[Bundle Analysis] Analyzing bundle directory: {bundle_dir}")
        if not bundle_dir.is_dir():
            raise BundleDirectoryNotFoundError(bundle_dir)

    all_files = enumerate_files(config)
    resolver = ModuleResolver(root, config.alias_table(), config.extensions)
    context = AnalysisContext(resolver, splitter, config.concurrency)
    context.seed_entries(config.entry)

    graph = await build_dependency_graph(all_files, context)
    used_files = context.used_files
    unused_files = find_unused_files(all_files, used_files)
    for unused in unused_files:
        logger.debug(f"Unused file candidate: '{unused}'")

    result = AnalysisResult(
        all_files=all_files,
        used_files=sorted(used_files),
        unused_files=unused_files,
        dependency_graph=graph,
        root_dir=root,
        static_unused_files=list(unused_files),
    )

    if bundle_dir is not None:
        if source_map_reader is None:
            source_map_reader = detect_source_map_reader()
        bundle = BundleAnalyzer(root, source_map_reader)
        result.bundle_analysis = bundle.analyze_bundle_directory(bundle_dir)
        result.bundle_correlation = bundle.correlate_with_static_analysis(all_files, used_files)
        result.unused_files = result.bundle_correlation.bundle_unused_files
        result.used_files = sorted(used_files.union(result.bundle_correlation.bundle_used_files))

    logger.info(f"Analyzed {len(all_files)} files: {len(result.unused_files)} unused")
    return result


def run_analysis(config: AnalysisConfig, **kwargs) -> AnalysisResult:
    """Synchronous wrapper around :func:`analyze_project`."""
    return asyncio.run(analyze_project(config, **kwargs))
