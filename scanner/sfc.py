"""Single-file component splitting for Vue 2 and Vue 3 projects."""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger


_BLOCK_OPEN = re.compile(r"<(template|script|style)\b([^>]*)>", re.IGNORECASE)
_COMMENT_OPEN = "<!--"
_COMMENT_CLOSE = "-->"
_TEMPLATE_TAG = re.compile(r"<(/?)template\b([^>]*)>", re.IGNORECASE)
_ATTRIBUTE = re.compile(r"""([^\s=/]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+)))?""")
_VERSION = re.compile(r"(\d+)")


@dataclass
class SfcBlock:
    """One top-level block of a component file."""
    kind: str
    content: str
    attrs: Dict[str, str] = field(default_factory=dict)


@dataclass
class SfcParts:
    """The script and markup regions of a component file."""
    script: str = ""
    markup: str = ""
    script_lang: Optional[str] = None
    src_refs: List[str] = field(default_factory=list)


def parse_attributes(raw: str) -> Dict[str, str]:
    """Parse a start tag's attribute text; valueless attributes map to ''."""
    attrs: Dict[str, str] = {}
    for match in _ATTRIBUTE.finditer(raw):
        name = match.group(1).lower()
        value = next((g for g in match.group(2, 3, 4) if g is not None), "")
        attrs[name] = value
    return attrs


def iter_blocks(text: str) -> List[SfcBlock]:
    """
    Find the top-level ``<template>``, ``<script>`` and ``<style>`` blocks.

    Nested ``<template>`` tags inside the markup are balanced; script and
    style bodies end at their first closing tag. Top-level HTML comments are
    skipped, so a commented-out block is not picked up.
    """
    blocks: List[SfcBlock] = []
    pos = 0
    while True:
        match = _BLOCK_OPEN.search(text, pos)
        if match is None:
            break
        comment = text.find(_COMMENT_OPEN, pos, match.start())
        if comment != -1:
            end = text.find(_COMMENT_CLOSE, comment + len(_COMMENT_OPEN))
            if end == -1:
                break
            pos = end + len(_COMMENT_CLOSE)
            continue

        kind = match.group(1).lower()
        raw_attrs = match.group(2)
        if raw_attrs.rstrip().endswith("/"):
            blocks.append(SfcBlock(kind, "", parse_attributes(raw_attrs.rstrip()[:-1])))
            pos = match.end()
            continue

        body_start = match.end()
        if kind == "template":
            body_end, close_end = _find_template_close(text, body_start)
        else:
            close = re.compile(r"</%s\s*>" % kind, re.IGNORECASE).search(text, body_start)
            if close is None:
                body_end = close_end = len(text)
            else:
                body_end, close_end = close.start(), close.end()

        blocks.append(SfcBlock(kind, text[body_start:body_end], parse_attributes(raw_attrs)))
        pos = close_end
    return blocks


def _find_template_close(text: str, start: int):
    depth = 1
    for tag in _TEMPLATE_TAG.finditer(text, start):
        if tag.group(1):
            depth -= 1
            if depth == 0:
                return tag.start(), tag.end()
        elif not tag.group(2).rstrip().endswith("/"):
            depth += 1
    return len(text), len(text)


class SfcSplitter(ABC):
    """Splits component text into ``{script, markup}``."""

    version = 0

    def split(self, text: str) -> SfcParts:
        blocks = iter_blocks(text)
        parts = SfcParts()

        template = next((b for b in blocks if b.kind == "template"), None)
        if template is not None:
            parts.markup = template.content

        scripts = self.select_scripts([b for b in blocks if b.kind == "script"])
        parts.script = "\n".join(b.content for b in scripts)
        for block in scripts:
            if block.attrs.get("lang"):
                parts.script_lang = block.attrs["lang"]
                break

        for block in blocks:
            src = block.attrs.get("src")
            if src:
                parts.src_refs.append(src)
        return parts

    @abstractmethod
    def select_scripts(self, scripts: List[SfcBlock]) -> List[SfcBlock]:
        """Pick the script blocks whose imports count."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(version={self.version})"


class Vue2Splitter(SfcSplitter):
    """Vue 2 components carry a single ``<script>`` block."""

    version = 2

    def select_scripts(self, scripts: List[SfcBlock]) -> List[SfcBlock]:
        return scripts[:1]


class Vue3Splitter(SfcSplitter):
    """Vue 3 components may pair ``<script>`` with ``<script setup>``."""

    version = 3

    def select_scripts(self, scripts: List[SfcBlock]) -> List[SfcBlock]:
        plain = next((b for b in scripts if "setup" not in b.attrs), None)
        setup = next((b for b in scripts if "setup" in b.attrs), None)
        return [b for b in (plain, setup) if b is not None]


def detect_vue_version(root: Path) -> int:
    """
    Detect the project's Vue major version.

    Looks at the installed ``node_modules/vue/package.json`` first, then at
    the dependency range in the project's ``package.json``. Falls back to 2,
    which is what legacy projects without either need.
    """
    installed = root / "node_modules" / "vue" / "package.json"
    version = _read_json(installed).get("version")
    if isinstance(version, str) and version[:1].isdigit():
        return 2 if version.startswith("2") else 3

    package = _read_json(root / "package.json")
    for section in ("dependencies", "devDependencies", "peerDependencies"):
        deps = package.get(section)
        if not isinstance(deps, dict):
            continue
        declared = deps.get("vue")
        if isinstance(declared, str):
            match = _VERSION.search(declared)
            if match:
                return 2 if match.group(1) == "2" else 3

    logger.debug(f"Could not detect the Vue version under {root}, assuming Vue 2")
    return 2


def get_splitter(root: Path, version: Optional[int] = None) -> SfcSplitter:
    """Pick the splitter variant for the project."""
    if version is None:
        version = detect_vue_version(root)
    return Vue2Splitter() if version == 2 else Vue3Splitter()


def _read_json(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}
