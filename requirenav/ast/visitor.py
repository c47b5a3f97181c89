"""
Syntax tree traversal.

Traversal is a lazy depth-first walk in source order. Callers stop early by
breaking out of the loop or by using :func:`first_match`, so a search never
visits more of the tree than it needs.
"""

from typing import Callable, Iterable, Iterator, Optional, Tuple, TypeVar

from requirenav.ast import nodes

T = TypeVar("T")


def walk(root: nodes.BaseNode) -> Iterator[nodes.BaseNode]:
    """Yield ``root`` and all of its descendants, pre-order, in source order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(node.child_nodes())))


def walk_before(root: nodes.BaseNode, position: Tuple[int, int]) -> Iterator[nodes.BaseNode]:
    """Yield nodes of ``root`` that start strictly before ``(line, column)``."""
    for node in walk(root):
        if node.start >= position:
            return
        yield node


def first_match(
    candidates: Iterable[T], predicate: Callable[[T], bool]
) -> Optional[T]:
    """Return the first candidate satisfying ``predicate``, or None."""
    return next((candidate for candidate in candidates if predicate(candidate)), None)


def is_identifier(node: Optional[nodes.BaseNode], name: Optional[str] = None) -> bool:
    """Check for an Identifier node, optionally with the given name."""
    if not isinstance(node, nodes.Identifier):
        return False
    return name is None or node.name == name


def string_value(node: Optional[nodes.BaseNode]) -> Optional[str]:
    """Return the value of a string Literal node, or None for anything else."""
    if isinstance(node, nodes.Literal) and isinstance(node.value, str):
        return node.value
    return None
