"""Utility functions for the RequireJS Language Server."""

import logging
import re
from typing import TYPE_CHECKING, Optional, Tuple

from lsprotocol.types import Location, Position, Range
from pygls import uris

if TYPE_CHECKING:
    from requirenav.features.definition import ResolvedLocation, SourceRange

logger = logging.getLogger("requirenav")

_WORD_START = re.compile(r"[\w$]+$")
_WORD_END = re.compile(r"^[\w$]*")


def word_range_at_position(line: str, character: int) -> Optional[Tuple[int, int]]:
    """
    Return the (start, end) columns of the identifier-like word at a caret.

    The caret may sit anywhere inside the word or right after it. Returns
    None when there is no word at the position.
    """
    if character < 0 or character > len(line):
        return None
    start_part = _WORD_START.search(line[:character])
    end_part = _WORD_END.search(line[character:])
    start = start_part.start() if start_part else character
    end = character + (end_part.end() if end_part else 0)
    if start == end:
        return None
    return start, end


def range_from_source_range(source_range: "SourceRange") -> Range:
    """Create an LSP Range from a 1-based-line source range."""
    return Range(
        start=Position(line=source_range.start_line - 1, character=source_range.start_column),
        end=Position(line=source_range.end_line - 1, character=source_range.end_column),
    )


def range_from_start() -> Range:
    """Create an LSP Range pointing to the start of a document."""
    return Range(
        start=Position(line=0, character=0),
        end=Position(line=0, character=0),
    )


def location_from_resolved(resolved: "ResolvedLocation") -> Optional[Location]:
    """Convert a resolved location to an LSP Location (file start without range)."""
    uri = uris.from_fs_path(resolved.path)
    if not uri:
        logger.debug("Cannot convert path to URI: %s", resolved.path)
        return None
    if resolved.range is None:
        return Location(uri=uri, range=range_from_start())
    return Location(uri=uri, range=range_from_source_range(resolved.range))
