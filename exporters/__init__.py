"""Exporters for converting analysis results to various output formats."""

from .ascii_exporter import to_ascii
from .json_exporter import to_json, unused_to_json, graph_to_json

__all__ = ["to_ascii", "to_json", "unused_to_json", "graph_to_json"]
