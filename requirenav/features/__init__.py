"""Go-to-definition feature implementation for AMD modules."""

from requirenav.features.definition import (
    DefinitionProvider,
    ModulePathError,
    ResolvedLocation,
    SourceDocument,
    SourceRange,
    find_symbol,
    resolve_module_path,
)
from requirenav.features.dependencies import DependencyTable, extract_dependencies
from requirenav.features.resolve import IdentifierReference, resolve_at_position

__all__ = [
    "DefinitionProvider",
    "DependencyTable",
    "IdentifierReference",
    "ModulePathError",
    "ResolvedLocation",
    "SourceDocument",
    "SourceRange",
    "extract_dependencies",
    "find_symbol",
    "resolve_at_position",
    "resolve_module_path",
]
