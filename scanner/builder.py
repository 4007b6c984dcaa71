"""Graph builder that orchestrates per-file analysis and graph construction."""

import asyncio
from pathlib import Path
from typing import Iterable, Optional, Set

from loguru import logger

from graph.model import DependencyGraph
from .markup import get_imported_components, get_template_tags, get_used_import_sources
from .parser import SCRIPT_SUFFIXES, dialect_for_lang, dialect_for_suffix, parse_script
from .resolver import ModuleResolver
from .sfc import SfcSplitter, Vue2Splitter


DEFAULT_CONCURRENCY = 20
COMPONENT_SUFFIXES = {".vue"}


class AnalysisContext:
    """
    State owned by one analysis run.

    Holds the resolver (and with it the existence and resolution caches),
    the SFC splitter, and the graph and used-file set being built. The graph
    and the used set only ever grow, so concurrently analyzed files can
    merge into them in any order.
    """

    def __init__(
        self,
        resolver: ModuleResolver,
        splitter: Optional[SfcSplitter] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        self.resolver = resolver
        self.splitter = splitter or Vue2Splitter()
        self.concurrency = max(1, concurrency)
        self.graph = DependencyGraph()
        self.used_files: Set[Path] = set()
        self.processed = 0

    def seed_entries(self, entries: Iterable[str]) -> None:
        """Mark configured entry points as used, resolved like imports."""
        for entry in entries:
            resolved = self.resolver.resolve_entry(entry)
            if resolved is None:
                logger.debug(f"Entry point '{entry}' not found, skipping")
                continue
            self.used_files.add(resolved)


def collect_specifiers(file_path: Path, code: str, splitter: SfcSplitter) -> Set[str]:
    """
    Collect the raw specifiers a file depends on.

    Component files contribute the imports of their script region, the
    imports credited by markup usage, and ``src`` references of their
    blocks. Script files contribute their imports. Other files (styles,
    JSON, assets) contribute nothing.
    """
    suffix = file_path.suffix.lower()

    if suffix in COMPONENT_SUFFIXES:
        parts = splitter.split(code)
        specifiers: Set[str] = set(parts.src_refs)
        if not parts.script.strip():
            return specifiers
        parsed = parse_script(parts.script, dialect_for_lang(parts.script_lang), file_path)
        if parsed is None:
            return specifiers
        tags = get_template_tags(parts.markup)
        components = get_imported_components(parts.script, parsed=parsed)
        specifiers.update(get_used_import_sources(tags, components))
        specifiers.update(parsed.import_specifiers())
        return specifiers

    if suffix in SCRIPT_SUFFIXES:
        parsed = parse_script(code, dialect_for_suffix(suffix), file_path)
        return parsed.import_specifiers() if parsed is not None else set()

    return set()


def _read_text(file_path: Path) -> Optional[str]:
    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug(f"Could not read {file_path}: {exc}")
        return None


def analyze_file(file_path: Path, code: Optional[str], context: AnalysisContext) -> None:
    """
    Add one file's edges to the graph.

    The file always gets an entry, even when it cannot be read or parsed.
    """
    graph = context.graph
    resolver = context.resolver
    graph.add_file(file_path)
    if code is None:
        return

    specifiers = collect_specifiers(file_path, code, context.splitter)
    for specifier in sorted(specifiers):
        if resolver.is_package(specifier):
            continue
        resolved = resolver.resolve(specifier, file_path)
        if resolved is None:
            logger.debug(f"Unresolved import '{specifier}' in {file_path}")
            graph.add_unresolved(file_path, specifier)
            continue
        # A self-import does not make a file reachable.
        if resolved == file_path:
            continue
        graph.add_edge(file_path, resolved)
        context.used_files.add(resolved)


async def build_dependency_graph(files: Iterable[Path], context: AnalysisContext) -> DependencyGraph:
    """
    Analyze every file, at most ``context.concurrency`` at a time.

    Args:
        files: Canonical paths of the enumerated files.
        context: The run's context; its graph and used set are filled in.

    Returns:
        The dependency graph, with exactly one entry per input file.
    """
    files = list(files)
    total = len(files)
    semaphore = asyncio.Semaphore(context.concurrency)
    logger.debug(f"Total files to analyze: {total}")

    async def _run(file_path: Path) -> None:
        async with semaphore:
            code = await asyncio.to_thread(_read_text, file_path)
            context.processed += 1
            logger.debug(f"[Analyzing] {file_path} ({context.processed}/{total})")
            analyze_file(file_path, code, context)

    await asyncio.gather(*(_run(file_path) for file_path in files))
    logger.info(f"Dependency graph built: {context.graph!r}")
    return context.graph
