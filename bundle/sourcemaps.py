"""Source map reading for bundle correlation."""

import base64
import json
import re
from typing import Any, List, Optional, Union
from urllib.parse import unquote

from loguru import logger


_JS_MAPPING_URL = re.compile(r"^\s*//[#@]\s*sourceMappingURL=(\S+)\s*$", re.MULTILINE)
_CSS_MAPPING_URL = re.compile(r"/\*[#@]\s*sourceMappingURL=(\S+?)\s*\*/")
_DATA_URI = re.compile(r"^data:(?P<mime>[^,;]*)(?P<params>(?:;[^,;]*)*),(?P<payload>.*)$", re.DOTALL)


class SourceMapError(ValueError):
    """A source map could not be decoded."""


class SourceMapReader:
    """
    Reads the list of original sources out of a v3 source map.

    Supports ``sourceRoot`` and indexed maps (``sections``). Mappings
    themselves are never decoded; only the source list matters here.
    """

    def read_sources(self, data: Union[str, bytes, dict]) -> List[str]:
        """
        Args:
            data: Raw map text or an already decoded map object.

        Returns:
            Source paths in map order, with ``sourceRoot`` applied.

        Raises:
            SourceMapError: If the map is not valid JSON or lacks a source list.
        """
        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise SourceMapError(f"invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise SourceMapError("source map must be a JSON object")

        if "sections" in data:
            sources: List[str] = []
            sections = data["sections"] or []
            if not isinstance(sections, list):
                raise SourceMapError("'sections' must be a list")
            for section in sections:
                if not isinstance(section, dict):
                    raise SourceMapError("each section must be an object")
                section_map = section.get("map")
                if section_map is None:
                    # "url" sections point at other files; nothing to read inline.
                    continue
                if not isinstance(section_map, dict):
                    raise SourceMapError("section 'map' must be an object")
                sources.extend(self.read_sources(section_map))
            return sources

        raw_sources = data.get("sources")
        if not isinstance(raw_sources, list):
            raise SourceMapError("source map has no 'sources' list")
        root = data.get("sourceRoot") or ""
        if not isinstance(root, str):
            raise SourceMapError("'sourceRoot' must be a string")
        if root and not root.endswith("/"):
            root += "/"
        return [root + s for s in raw_sources if isinstance(s, str) and s]


def detect_source_map_reader(enabled: bool = True) -> Optional[SourceMapReader]:
    """
    Return the source map capability for a run.

    ``BundleAnalyzer`` accepts None and then degrades to artifact listing
    without source evidence.
    """
    if not enabled:
        return None
    return SourceMapReader()


def find_mapping_url(content: str, is_css: bool = False) -> Optional[str]:
    """Return the last ``sourceMappingURL`` in a bundle artifact, if any."""
    pattern = _CSS_MAPPING_URL if is_css else _JS_MAPPING_URL
    matches = pattern.findall(content)
    return matches[-1] if matches else None


def decode_data_uri(uri: str) -> Optional[str]:
    """Decode an inline ``data:`` source map URI to its JSON text."""
    match = _DATA_URI.match(uri)
    if match is None:
        return None
    payload = match.group("payload")
    if ";base64" in match.group("params"):
        try:
            return base64.b64decode(payload).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            logger.warning(f"Could not decode inline source map: {exc}")
            return None
    return unquote(payload)


def is_data_uri(uri: Any) -> bool:
    return isinstance(uri, str) and uri.startswith("data:")
