"""
Definition finding functionality for the RequireJS Language Server.

This module provides the go-to-definition feature: it resolves the
identifier under the caret to the AMD dependency it comes from, maps the
module path to a file, and locates the matching exported symbol there.
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Hashable, Optional

from requirenav import utils
from requirenav.ast import nodes
from requirenav.ast.parser import ParseError, parse
from requirenav.ast.visitor import is_identifier, string_value, walk
from requirenav.cache import VersionedCache
from requirenav.config import Settings
from requirenav.features.dependencies import DependencyTable, extract_dependencies
from requirenav.features.resolve import resolve_at_position
from requirenav.loader_config import LoaderConfig

logger = logging.getLogger("requirenav")

JAVASCRIPT_LANGUAGE_ID = "javascript"


class ModulePathError(ValueError):
    """Raised for module paths that cannot be mapped to a file."""

    def __init__(self, message: str, best_effort_path: str):
        super().__init__(message)
        self.best_effort_path = best_effort_path


@dataclass(frozen=True)
class SourceRange:
    """A source range with 1-based lines and 0-based columns."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @classmethod
    def from_node(cls, node: nodes.BaseNode) -> "SourceRange":
        return cls(node.lineno, node.col_offset, node.end_lineno, node.end_col_offset)


@dataclass(frozen=True)
class ResolvedLocation:
    """A definition target; without a range the caller opens the file start."""

    path: str
    range: Optional[SourceRange] = None


@dataclass
class SourceDocument:
    """Text of a file together with the revision it was read at."""

    path: str
    text: str
    revision: Hashable
    language_id: Optional[str] = None

    @property
    def is_javascript(self) -> bool:
        if self.language_id:
            return self.language_id == JAVASCRIPT_LANGUAGE_ID
        return self.path.endswith(".js")


# Reads a target file for the locator; OSError signals a missing/unreadable file
DocumentLoader = Callable[[str], Awaitable[SourceDocument]]


def resolve_module_path(
    module_path: str,
    current_file_path: str,
    loader_config: LoaderConfig,
    plugin_extensions: Optional[Dict[str, str]] = None,
) -> str:
    """
    Compute the file path of a module dependency.

    Args:
        module_path: Module id from the dependency array, e.g. ``./view`` or
            ``text!./template.html``.
        current_file_path: Path of the module declaring the dependency.
        loader_config: RequireJS configuration for non-relative ids.
        plugin_extensions: Extension appended to plugin resources, by plugin.

    Raises:
        ModulePathError: If the module path is empty or names a plugin
            without a resource.
    """
    if not module_path:
        raise ModulePathError("Empty module path", loader_config.base_url)

    # Plugins, which load other files, follow the syntax "plugin!resource"
    separator = module_path.find("!")
    if separator > 0:
        plugin_name = module_path[:separator]
        file_path = module_path[separator + 1 :]
        if not file_path:
            raise ModulePathError(
                f"Plugin '{plugin_name}' has no resource",
                os.path.normpath(loader_config.to_url(plugin_name + ".js")),
            )
        extension = (plugin_extensions or {}).get(plugin_name)
        if extension and not file_path.endswith(extension):
            file_path += extension
    else:
        file_path = module_path + ".js"

    # Relative ids resolve against the declaring module, not the base URL
    if file_path.startswith(("./", "../")):
        file_path = os.path.join(os.path.dirname(current_file_path), file_path)

    return os.path.normpath(loader_config.to_url(file_path))


def _declared_name(node: nodes.BaseNode) -> Optional[nodes.BaseNode]:
    """Return the name node a declaration-like node introduces, if any."""
    if isinstance(node, nodes.FunctionBase):
        return node.id
    if isinstance(node, nodes.VariableDeclarator):
        return node.id
    if isinstance(node, nodes.Property) and not node.computed:
        return node.key
    if isinstance(node, nodes.AssignmentExpression):
        left = node.left
        # exports.name = ..., this.name = ..., Module.prototype.name = ...
        if isinstance(left, nodes.MemberExpression) and not left.computed:
            return left.property
    return None


def _has_name(node: Optional[nodes.BaseNode], name: str) -> bool:
    return is_identifier(node, name) or string_value(node) == name


def find_symbol(tree: nodes.BaseNode, name: str) -> Optional[nodes.BaseNode]:
    """
    Find where ``name`` is defined in a module.

    Declarations are preferred (functions, variables, object keys, member
    assignments), in source order; otherwise the first occurrence of the
    identifier is used.
    """
    for node in walk(tree):
        declared = _declared_name(node)
        if declared is not None and _has_name(declared, name):
            return declared
    for node in walk(tree):
        if is_identifier(node, name):
            return node
    return None


class DefinitionProvider:
    """
    Answers go-to-definition queries for AMD modules.

    Parsed trees and dependency tables are cached per file and revision.
    One provider is used by one request at a time.
    """

    def __init__(
        self,
        load_document: DocumentLoader,
        settings: Optional[Settings] = None,
        loader_config: Optional[LoaderConfig] = None,
    ):
        self.settings = settings or Settings()
        self.loader_config = loader_config or LoaderConfig()
        self._load_document = load_document
        self.parsed_module_cache: VersionedCache[nodes.Program] = VersionedCache(
            self.settings.cache_size, name="parsed modules"
        )
        self.module_dependency_cache: VersionedCache[DependencyTable] = VersionedCache(
            self.settings.cache_size, name="module dependencies"
        )

    def configure(self, settings: Settings, loader_config: LoaderConfig) -> None:
        """Apply new configuration; cached trees and tables are dropped."""
        self.settings = settings
        self.loader_config = loader_config
        self.parsed_module_cache.resize(settings.cache_size)
        self.module_dependency_cache.resize(settings.cache_size)
        self.clear_caches()

    def clear_caches(self) -> None:
        self.parsed_module_cache.clear()
        self.module_dependency_cache.clear()
        logger.debug("Cleared module caches")

    def get_parsed_module(self, path: str, revision: Hashable, text: str) -> nodes.Program:
        """
        Return the syntax tree of a file revision, parsing it on a cache miss.

        Raises:
            ParseError: If the text is not valid JavaScript.
        """
        tree = self.parsed_module_cache.get(path, revision)
        if tree is None:
            tree = parse(text)
            self.parsed_module_cache.set(path, revision, tree)
            logger.debug("Parsed module: %s (revision %s)", path, revision)
        return tree

    def get_module_dependencies(
        self, path: str, revision: Hashable, tree: nodes.Program
    ) -> DependencyTable:
        """Return the dependency table of a file revision."""
        return self.module_dependency_cache.get_or_compute(
            path, revision, lambda: extract_dependencies(tree)
        )

    async def search_module(
        self, current_file_path: str, module_path: str, search_for: Optional[str]
    ) -> ResolvedLocation:
        """
        Locate ``search_for`` inside the module ``module_path``.

        Raises:
            OSError: If the target file cannot be read.
        """
        try:
            target_path = resolve_module_path(
                module_path,
                current_file_path,
                self.loader_config,
                self.settings.plugin_extensions,
            )
        except ModulePathError as e:
            logger.warning("Cannot resolve module path '%s': %s", module_path, e)
            return ResolvedLocation(e.best_effort_path)

        document = await self._load_document(target_path)

        # Plugin resources (templates, styles, ...) need not be JavaScript
        if self.settings.only_navigate_to_file or not search_for or not document.is_javascript:
            return ResolvedLocation(target_path)

        try:
            tree = self.get_parsed_module(document.path, document.revision, document.text)
        except ParseError as e:
            logger.warning("Cannot parse %s: %s", target_path, e)
            return ResolvedLocation(target_path)

        symbol = find_symbol(tree, search_for)
        if symbol is None:
            logger.debug("'%s' not found in %s", search_for, target_path)
            return ResolvedLocation(target_path)
        return ResolvedLocation(target_path, SourceRange.from_node(symbol))

    async def provide_definition(
        self,
        path: str,
        text: str,
        revision: Hashable,
        line: int,
        column: int,
    ) -> Optional[ResolvedLocation]:
        """
        Find the definition of the identifier at a caret position.

        Args:
            path: File path of the current document (its cache identity).
            text: Current document text.
            revision: Document revision; changes on every edit.
            line: 0-based caret line.
            column: 0-based caret column.

        Returns:
            The definition location, or None when there is nothing to
            navigate to.

        Raises:
            OSError: If the target module file cannot be read.
        """
        started = time.perf_counter()
        lines = text.split("\n")
        if line < 0 or line >= len(lines):
            return None
        word_range = utils.word_range_at_position(lines[line].rstrip("\r"), column)
        if word_range is None:
            return None

        try:
            tree = self.get_parsed_module(path, revision, text)
        except ParseError as e:
            logger.warning("Cannot parse %s: %s", path, e)
            return None
        dependencies = self.get_module_dependencies(path, revision, tree)
        # Tree lines are 1-based
        reference = resolve_at_position(tree, line + 1, word_range[0], dependencies)
        resolved_at = time.perf_counter()

        if reference is None or reference.module_path is None:
            self._log_timing(path, started, resolved_at)
            return None

        location = await self.search_module(path, reference.module_path, reference.selected)
        self._log_timing(path, started, resolved_at)
        return location

    def _log_timing(self, path: str, started: float, resolved_at: float) -> None:
        if not self.settings.log_timing:
            return
        finished = time.perf_counter()
        logger.info(
            "Definition query for %s took %.1f ms (resolve %.1f ms, locate %.1f ms)",
            path,
            (finished - started) * 1000,
            (resolved_at - started) * 1000,
            (finished - resolved_at) * 1000,
        )
