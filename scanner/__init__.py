"""Scanner module for file discovery, import extraction and graph construction."""

from .discovery import iter_files, IgnoreRules, ALL_EXTENSIONS
from .parser import extract_imports, parse_script
from .markup import get_template_tags, get_imported_components, get_used_import_sources
from .resolver import ModuleResolver, is_package_import
from .builder import AnalysisContext, build_dependency_graph

__all__ = [
    "iter_files",
    "IgnoreRules",
    "ALL_EXTENSIONS",
    "extract_imports",
    "parse_script",
    "get_template_tags",
    "get_imported_components",
    "get_used_import_sources",
    "ModuleResolver",
    "is_package_import",
    "AnalysisContext",
    "build_dependency_graph",
]
