"""Bundle correlation through build artifacts and their source maps."""

from .analyzer import (
    BundleAnalysis,
    BundleAnalyzer,
    BundleCorrelation,
    SizeImpact,
    detect_bundle_directory,
)
from .sourcemaps import SourceMapError, SourceMapReader, detect_source_map_reader

__all__ = [
    "BundleAnalysis",
    "BundleAnalyzer",
    "BundleCorrelation",
    "SizeImpact",
    "detect_bundle_directory",
    "SourceMapError",
    "SourceMapReader",
    "detect_source_map_reader",
]
