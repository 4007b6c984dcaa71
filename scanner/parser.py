"""Parsers for extracting import specifiers from script sources."""

from pathlib import Path
from typing import Dict, Iterator, Optional, Set, Union

import tree_sitter_typescript
from loguru import logger
from tree_sitter import Language, Node, Parser


TYPESCRIPT = "typescript"
TSX = "tsx"

_LANGUAGES = {
    TYPESCRIPT: Language(tree_sitter_typescript.language_typescript()),
    TSX: Language(tree_sitter_typescript.language_tsx()),
}

# Files whose whole text is script.
SCRIPT_SUFFIXES = {".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".mts", ".cts"}
TYPESCRIPT_SUFFIXES = {".ts", ".mts", ".cts"}


def dialect_for_suffix(suffix: str) -> str:
    """Pick the grammar for a script file extension."""
    return TYPESCRIPT if suffix.lower() in TYPESCRIPT_SUFFIXES else TSX


def dialect_for_lang(lang: Optional[str]) -> str:
    """Pick the grammar for an SFC ``<script lang="...">`` attribute."""
    return TYPESCRIPT if (lang or "").lower() in {"ts", "typescript"} else TSX


class ParsedScript:
    """
    A syntax tree of one script source.

    Plain JavaScript, TypeScript and JSX all parse with the TypeScript
    grammars; JSX needs the TSX dialect, angle-bracket type assertions need
    the plain TypeScript one.
    """

    def __init__(self, source: bytes, root: Node):
        self.source = source
        self.root = root

    def text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="ignore")

    def string_value(self, node: Optional[Node]) -> Optional[str]:
        """Return the value of a plain string literal node, else None."""
        if node is None or node.type != "string":
            return None
        raw = self.text(node)
        if len(raw) >= 2 and raw[0] in ("'", '"') and raw[-1] == raw[0]:
            return raw[1:-1]
        return None

    def walk(self) -> Iterator[Node]:
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def import_specifiers(self) -> Set[str]:
        """
        Collect specifiers from imports, re-exports, ``import()`` and ``require()``.

        Only literal string arguments count; ``import("./lazy-" + name)`` or a
        template literal contributes nothing.
        """
        specifiers: Set[str] = set()
        for node in self.walk():
            if node.type in ("import_statement", "export_statement"):
                value = self.string_value(self._declaration_source(node))
            elif node.type == "call_expression":
                value = self._call_argument(node)
            else:
                continue
            if value:
                specifiers.add(value)
        return specifiers

    def default_imports(self) -> Dict[str, str]:
        """Map default-import bindings to their specifiers."""
        bindings: Dict[str, str] = {}
        for node in self.root.named_children:
            if node.type != "import_statement":
                continue
            source = self.string_value(node.child_by_field_name("source"))
            if not source:
                continue
            for clause in node.named_children:
                if clause.type != "import_clause":
                    continue
                for child in clause.named_children:
                    if child.type == "identifier":
                        bindings[self.text(child)] = source
        return bindings

    def _declaration_source(self, node: Node) -> Optional[Node]:
        source = node.child_by_field_name("source")
        if source is None and node.type == "import_statement":
            # import foo = require("./foo")
            for child in node.named_children:
                if child.type == "import_require_clause":
                    source = child.child_by_field_name("source")
                    if source is None:
                        source = next((c for c in child.named_children if c.type == "string"), None)
        return source

    def _call_argument(self, node: Node) -> Optional[str]:
        function = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if function is None or arguments is None:
            return None
        if function.type != "import" and not (
            function.type == "identifier" and self.text(function) == "require"
        ):
            return None
        # Skip magic comments such as /* webpackChunkName: "x" */
        args = [a for a in arguments.named_children if a.type != "comment"]
        if not args:
            return None
        return self.string_value(args[0])


def parse_script(
    code: str,
    dialect: str = TSX,
    source_path: Optional[Union[str, Path]] = None,
) -> Optional[ParsedScript]:
    """
    Parse script text into a syntax tree.

    Args:
        code: The script source.
        dialect: TSX or TYPESCRIPT.
        source_path: Where the code came from, for log messages.

    Returns:
        ParsedScript, or None if the source has syntax errors or parsing fails.
    """
    label = source_path or "<script>"
    source = code.encode("utf-8", errors="ignore")
    try:
        tree = Parser(_LANGUAGES[dialect]).parse(source)
    except Exception as exc:
        logger.debug(f"Failed to parse {label}: {exc}")
        return None

    root = tree.root_node
    if root.has_error:
        line = _first_error_line(root)
        logger.debug(f"Failed to parse {label}: syntax error near line {line}")
        return None
    return ParsedScript(source, root)


def extract_imports(
    code: str,
    dialect: str = TSX,
    source_path: Optional[Union[str, Path]] = None,
) -> Set[str]:
    """
    Extract raw import specifiers from script text.

    A source that fails to parse yields an empty set.
    """
    if not code.strip():
        return set()
    parsed = parse_script(code, dialect, source_path)
    if parsed is None:
        return set()
    return parsed.import_specifiers()


def _first_error_line(root: Node) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        stack.extend(reversed(node.children))
    return root.start_point[0] + 1
