"""
Shared test fixtures and utilities for requirenav tests.
"""

import asyncio
from typing import Dict, List, Optional

import pytest

from requirenav.ast.parser import parse
from requirenav.config import Settings
from requirenav.features.definition import (
    DefinitionProvider,
    ResolvedLocation,
    SourceDocument,
)
from requirenav.features.dependencies import extract_dependencies
from requirenav.features.resolve import IdentifierReference, resolve_at_position
from requirenav.loader_config import LoaderConfig

MODULE_ROOT = "/project/src"


# =============================================================================
# AMD Source Test Harness
# =============================================================================


class AmdTestHarness:
    """
    Test harness for the go-to-definition feature.

    Holds an in-memory file system standing in for the editor host, so
    definition queries run against real JavaScript sources without disk I/O.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.files: Dict[str, str] = {}
        self.language_ids: Dict[str, str] = {}
        self.revisions: Dict[str, int] = {}
        self.loaded: List[str] = []
        self.provider = DefinitionProvider(
            self.load_document,
            settings or Settings(),
            LoaderConfig(base_url=MODULE_ROOT),
        )

    def add_file(
        self, path: str, source: str, language_id: Optional[str] = None
    ) -> "AmdTestHarness":
        """Add or replace a file; replacing bumps its revision."""
        self.files[path] = source
        self.revisions[path] = self.revisions.get(path, 0) + 1
        if language_id is not None:
            self.language_ids[path] = language_id
        return self

    def configure(self, **settings) -> "AmdTestHarness":
        self.provider.configure(Settings(**settings), LoaderConfig(base_url=MODULE_ROOT))
        return self

    async def load_document(self, path: str) -> SourceDocument:
        self.loaded.append(path)
        if path not in self.files:
            raise FileNotFoundError(path)
        return SourceDocument(
            path=path,
            text=self.files[path],
            revision=self.revisions[path],
            language_id=self.language_ids.get(path),
        )

    def goto_definition(
        self, path: str, line: int, character: int
    ) -> Optional[ResolvedLocation]:
        """
        Run a definition query.

        Args:
            path: The current file.
            line: Cursor line (0-indexed).
            character: Cursor character (0-indexed).
        """
        return asyncio.run(
            self.provider.provide_definition(
                path, self.files[path], self.revisions[path], line, character
            )
        )

    def assert_definition_at(
        self,
        path: str,
        cursor_line: int,
        cursor_char: int,
        expected_path: str,
        expected_line: Optional[int],
        expected_char: int = 0,
    ) -> None:
        """
        Assert the query navigates to ``expected_path``.

        ``expected_line`` is 1-based like the tree; None expects the file start.
        """
        result = self.goto_definition(path, cursor_line, cursor_char)
        assert result is not None, "Expected a definition location, got None"
        assert result.path == expected_path
        if expected_line is None:
            assert result.range is None, f"Expected file start, got {result.range}"
            return
        assert result.range is not None, "Expected a range, got file start"
        assert result.range.start_line == expected_line, (
            f"Expected line {expected_line}, got {result.range.start_line}"
        )
        assert result.range.start_column == expected_char, (
            f"Expected char {expected_char}, got {result.range.start_column}"
        )

    def assert_no_definition(self, path: str, cursor_line: int, cursor_char: int) -> None:
        result = self.goto_definition(path, cursor_line, cursor_char)
        assert result is None, f"Expected None, got {result}"


@pytest.fixture
def amd_harness():
    """Create an AmdTestHarness instance."""
    return AmdTestHarness()


# =============================================================================
# Resolution helpers
# =============================================================================


def _resolve_source(source: str, line: int, column: int) -> Optional[IdentifierReference]:
    tree = parse(source)
    return resolve_at_position(tree, line, column, extract_dependencies(tree))


@pytest.fixture
def resolve_source():
    """Parse a source and resolve the identifier at a 1-based line/column."""
    return _resolve_source
