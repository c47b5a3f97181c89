"""
AMD dependency extraction.

Finds the module's ``define``/``require`` call and pairs the factory
function's formal parameters with the module paths listed in the
dependency array::

    define(['jquery', './view'], function ($, View) { ... })
    define('name', ['jquery'], function ($) { ... })
    require(['app'], function (app) { ... })
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple

from requirenav.ast import nodes
from requirenav.ast.visitor import first_match, is_identifier, string_value, walk

logger = logging.getLogger("requirenav")

AMD_FUNCTIONS = ("define", "require", "requirejs")

_FACTORY_TYPES = (nodes.FunctionExpression, nodes.ArrowFunctionExpression)


@dataclass(frozen=True)
class DependencyTable:
    """
    Ordered (parameter name, module path) bindings of one AMD module.

    Attributes:
        bindings: Parameter/path pairs, in dependency array order.
        modules: Every string literal in the dependency array, bound or not.
    """

    bindings: Tuple[Tuple[str, str], ...] = ()
    modules: Tuple[str, ...] = field(default=())

    def __len__(self) -> int:
        return len(self.bindings)

    def __contains__(self, name: object) -> bool:
        return any(param == name for param, _ in self.bindings)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self.bindings)

    def get(self, name: str) -> Optional[str]:
        for param, path in self.bindings:
            if param == name:
                return path
        return None

    def as_dict(self) -> Dict[str, str]:
        return dict(self.bindings)


EMPTY_TABLE = DependencyTable()


def _split_arguments(
    call: nodes.CallExpression,
) -> Optional[Tuple[nodes.ArrayExpression, Optional[nodes.BaseNode]]]:
    """Return (dependency array, factory) for a recognized AMD call shape."""
    args = call.arguments
    if args and isinstance(args[0], nodes.ArrayExpression):
        return args[0], args[1] if len(args) > 1 else None
    if (
        len(args) > 1
        and string_value(args[0]) is not None
        and isinstance(args[1], nodes.ArrayExpression)
    ):
        # Named module: define('name', [...], factory)
        return args[1], args[2] if len(args) > 2 else None
    return None


def _is_amd_call(node: nodes.BaseNode) -> bool:
    if not isinstance(node, nodes.CallExpression):
        return False
    if not any(is_identifier(node.callee, name) for name in AMD_FUNCTIONS):
        return False
    return _split_arguments(node) is not None


def find_amd_call(tree: nodes.BaseNode) -> Optional[nodes.CallExpression]:
    """Return the first define/require call with a dependency array."""
    return first_match(walk(tree), _is_amd_call)


def _parameter_name(param: nodes.BaseNode) -> Optional[str]:
    if isinstance(param, nodes.Identifier):
        return param.name
    if isinstance(param, nodes.AssignmentPattern) and isinstance(
        param.left, nodes.Identifier
    ):
        return param.left.name
    # Destructuring and rest parameters do not bind a module export
    return None


def extract_dependencies(tree: nodes.BaseNode) -> DependencyTable:
    """
    Extract the dependency table from a parsed module.

    Only the first matching ``define``/``require`` call is used. Array
    entries that are not string literals produce no binding for their
    position; surplus paths or parameters stay unpaired.
    """
    call = find_amd_call(tree)
    if call is None:
        logger.debug("No define/require call found")
        return EMPTY_TABLE

    paths_array, factory = _split_arguments(call)  # type: ignore[misc]
    paths = [string_value(element) for element in paths_array.elements]
    modules = tuple(path for path in paths if path is not None)

    if not isinstance(factory, _FACTORY_TYPES):
        return DependencyTable(modules=modules)

    bindings = []
    for path, param in zip(paths, factory.params):
        name = _parameter_name(param)
        if path is None or name is None:
            continue
        bindings.append((name, path))

    logger.debug(
        "Extracted %d bindings from %s call at line %d",
        len(bindings),
        call.callee.name,
        call.lineno,
    )
    return DependencyTable(bindings=tuple(bindings), modules=modules)
