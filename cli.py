#!/usr/bin/env python3
"""
vue-unused CLI

A tool for finding files in a Vue project that no entry point reaches,
through script imports or component usage in templates.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict

from loguru import logger

from exporters import graph_to_json, to_ascii, unused_to_json
from scanner.analyzer import run_analysis
from scanner.config import CONFIG_FILENAMES, load_config, write_default_config
from scanner.errors import AnalysisError

__version__ = "0.1.0"

DELETE_WARNING = (
    "WARNING: This will permanently delete all files reported as unused. "
    "This action cannot be undone.\nAre you absolutely sure you want to continue? (y/N): "
)


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="vue-unused",
        description="Find and remove unused Vue components and files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  vue-unused                              # Standard scan of the current project
  vue-unused ./my-app --json              # Write results to unused-files.json
  vue-unused --graph                      # Write dependency-graph.json
  vue-unused --bundle                     # Cross-check against the build output
  vue-unused --bundle --bundle-dir ./dist # Use a custom bundle directory
  vue-unused --delete                     # Delete unused files (use with caution)
  vue-unused --create-config              # Write a default configuration file
        """,
    )

    # Positional arguments
    parser.add_argument(
        "root",
        nargs="?",
        default=None,
        help="Project root directory (default: from config, else auto-detected)",
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help=f"Config file to use instead of auto-detecting one ({', '.join(CONFIG_FILENAMES)})",
    )

    # Output options
    parser.add_argument(
        "--json",
        nargs="?",
        const="unused-files.json",
        default=None,
        metavar="FILE",
        help="Write the unused file list as JSON (default file: unused-files.json)",
    )

    parser.add_argument(
        "--graph",
        nargs="?",
        const="dependency-graph.json",
        default=None,
        metavar="FILE",
        help="Write the dependency graph as JSON (default file: dependency-graph.json)",
    )

    parser.add_argument(
        "--ascii-style",
        choices=["tree", "ascii"],
        default="tree",
        help="Report style: 'tree' (Unicode) or 'ascii' (pure ASCII)",
    )

    # Analysis options
    parser.add_argument(
        "--bundle",
        action="store_true",
        help="Analyze bundle outputs and source maps to rescue files shipped in the build",
    )

    parser.add_argument(
        "--bundle-dir",
        type=str,
        default=None,
        help="Bundle directory (default: auto-detect, implies --bundle)",
    )

    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum number of files analyzed at once (default: 20)",
    )

    parser.add_argument(
        "--delete",
        action="store_true",
        help="Delete unused files after the scan (asks for confirmation on a terminal)",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) output",
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s v{__version__}",
        help="Show the installed version and exit",
    )

    parser.add_argument(
        "--create-config",
        action="store_true",
        help="Create a default vue-unused.config.yaml in the current directory and exit",
    )

    return parser.parse_args(args)


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def confirm_delete() -> bool:
    """Ask before deleting when attached to a terminal; non-interactive runs proceed."""
    if not sys.stdin.isatty():
        return True
    try:
        answer = input(DELETE_WARNING)
    except EOFError:
        answer = ""
    return answer.strip().lower().startswith("y")


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)
    configure_logging(parsed.verbose)
    cwd = Path.cwd()

    if parsed.create_config:
        try:
            path = write_default_config(cwd / "vue-unused.config.yaml")
        except AnalysisError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Configuration written to: {path}", file=sys.stderr)
        return 0

    overrides: Dict[str, Any] = {"verbose": parsed.verbose}
    search_dir = cwd
    if parsed.root:
        root = Path(parsed.root).resolve()
        if not root.is_dir():
            print(f"Error: '{parsed.root}' is not a directory", file=sys.stderr)
            return 1
        overrides["root_dir"] = root
        search_dir = root
    if parsed.bundle or parsed.bundle_dir:
        overrides["bundle"] = True
    if parsed.bundle_dir:
        overrides["bundle_dir"] = Path(parsed.bundle_dir).resolve()
    if parsed.concurrency is not None:
        overrides["concurrency"] = parsed.concurrency
    if parsed.delete:
        overrides["delete"] = True

    try:
        config = load_config(
            Path(parsed.config).resolve() if parsed.config else None,
            cwd=search_dir,
            overrides=overrides,
        )
        delete = config.delete and confirm_delete()
        if config.delete and not delete:
            print("Aborted deletion. Running scan in dry mode (no files will be removed).", file=sys.stderr)
        result = run_analysis(config)
    except AnalysisError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(to_ascii(result, config.root_dir, style=parsed.ascii_style))

    # Write output files
    try:
        if parsed.json:
            output_path = Path(parsed.json)
            output_path.write_text(unused_to_json(result, config.root_dir), encoding="utf-8")
            print(f"Output written to: {output_path}", file=sys.stderr)
        if parsed.graph:
            graph_path = Path(parsed.graph)
            graph_path.write_text(graph_to_json(result.dependency_graph, config.root_dir), encoding="utf-8")
            print(f"Dependency graph written to: {graph_path}", file=sys.stderr)
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1

    if delete:
        for path in result.unused_files:
            try:
                path.unlink()
            except OSError as e:
                print(f"Error deleting {path}: {e}", file=sys.stderr)
                return 1
        print(f"Deleted {len(result.unused_files)} unused files", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
