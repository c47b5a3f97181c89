"""
Identifier resolution for the go-to-definition feature.

Maps the identifier under the caret back to the AMD dependency that
introduced it. Three shapes are recognized:

- direct use of a factory parameter: ``foo``
- a member of a dependency: ``foo.bar`` (``bar`` is searched in ``foo``'s module)
- a local alias: ``var local = foo; local.bar`` or ``var x = new Foo()``
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from requirenav.ast import nodes
from requirenav.ast.visitor import is_identifier, string_value, walk, walk_before
from requirenav.features.dependencies import DependencyTable

logger = logging.getLogger("requirenav")

REQUIRE_FUNCTIONS = ("require", "requirejs")

# (kind, value): kind is "identifier" for a rename, "module" for require('path')
RenameSource = Tuple[str, str]


@dataclass
class IdentifierReference:
    """
    The identifier selected by the caret and what it refers to.

    Attributes:
        selected: Name to search for in the target module.
        imported: Name looked up in the dependency table.
        node: The selected Identifier node.
        parent: The node enclosing ``node``.
        module_path: The module the identifier comes from, or None when
            no binding was found.
    """

    selected: str
    imported: str
    node: nodes.Identifier
    parent: Optional[nodes.BaseNode] = None
    module_path: Optional[str] = None

    @property
    def is_member_access(self) -> bool:
        parent = self.parent
        return (
            isinstance(parent, nodes.MemberExpression)
            and not parent.computed
            and parent.property is self.node
        )


def find_identifier_at(
    tree: nodes.BaseNode, line: int, column: int
) -> Optional[nodes.Identifier]:
    """
    Find the Identifier node starting exactly at ``(line, column)``.

    Args:
        tree: The parsed module.
        line: 1-based line.
        column: 0-based column.
    """
    for node in walk(tree):
        # Nodes come in source order; nothing further can start on the line
        if node.lineno > line:
            break
        if isinstance(node, nodes.Identifier) and node.start == (line, column):
            return node
    return None


def require_call_path(node: Optional[nodes.BaseNode]) -> Optional[str]:
    """Return 'path' for a ``require('path')`` call with one string literal."""
    if not isinstance(node, nodes.CallExpression):
        return None
    if not any(is_identifier(node.callee, name) for name in REQUIRE_FUNCTIONS):
        return None
    if len(node.arguments) != 1:
        return None
    return string_value(node.arguments[0])


def get_identifiers_to_search_for(identifier: nodes.Identifier) -> IdentifierReference:
    """
    Determine the imported and selected names for a selected identifier.

    Selecting ``member`` in ``object.member`` looks ``object`` up as the
    import and searches for ``member`` in its module.
    """
    selected = identifier.name
    parent = identifier.parent
    reference = IdentifierReference(selected, selected, identifier, parent)

    if not reference.is_member_access:
        return reference

    member_object = parent.object
    if isinstance(member_object, nodes.Identifier):
        reference.imported = member_object.name
    else:
        reference.module_path = require_call_path(member_object)
    return reference


def _assignment(node: nodes.BaseNode) -> Optional[Tuple[str, nodes.BaseNode]]:
    """Return (target name, value) for `var name = value` and `name = value`."""
    if isinstance(node, nodes.VariableDeclarator):
        if isinstance(node.id, nodes.Identifier) and node.init is not None:
            return node.id.name, node.init
    elif isinstance(node, nodes.AssignmentExpression):
        if node.operator == "=" and isinstance(node.left, nodes.Identifier):
            return node.left.name, node.right
    return None


def _rename_source(value: nodes.BaseNode) -> Optional[RenameSource]:
    if isinstance(value, nodes.Identifier):
        return "identifier", value.name
    if isinstance(value, nodes.NewExpression) and isinstance(
        value.callee, nodes.Identifier
    ):
        return "identifier", value.callee.name
    module_path = require_call_path(value)
    if module_path is not None:
        return "module", module_path
    return None


def find_rename(
    tree: nodes.BaseNode, name: str, before: Tuple[int, int]
) -> Optional[Tuple[nodes.BaseNode, RenameSource]]:
    """Find the last assignment to ``name`` before ``before`` that aliases something."""
    found = None
    for node in walk_before(tree, before):
        assignment = _assignment(node)
        if assignment is None or assignment[0] != name:
            continue
        source = _rename_source(assignment[1])
        if source is not None:
            found = node, source
    return found


def follow_reassignments(
    tree: nodes.BaseNode,
    reference: IdentifierReference,
    dependencies: DependencyTable,
) -> Optional[str]:
    """
    Follow local aliases of ``reference.imported`` back to a dependency.

    Updates ``reference.imported`` to the last name on the chain and returns
    the module path, or None when the chain ends without a binding.
    """
    imported = reference.imported
    seen = {imported}
    position = reference.node.start

    while True:
        module_path = dependencies.get(imported)
        if module_path is not None:
            break
        rename = find_rename(tree, imported, position)
        if rename is None:
            break
        rename_node, (kind, value) = rename
        if kind == "module":
            module_path = value
            break
        if value in seen:
            logger.debug("Rename cycle on '%s' at line %d", value, rename_node.lineno)
            return None
        seen.add(value)
        imported = value
        position = rename_node.start

    reference.imported = imported
    return module_path


def resolve_at_position(
    tree: nodes.BaseNode,
    line: int,
    column: int,
    dependencies: DependencyTable,
) -> Optional[IdentifierReference]:
    """
    Resolve the identifier starting at ``(line, column)`` to its dependency.

    Returns None when there is no identifier at the position. When the
    identifier is found but does not come from a dependency, the returned
    reference has no ``module_path``.
    """
    identifier = find_identifier_at(tree, line, column)
    if identifier is None:
        return None

    reference = get_identifiers_to_search_for(identifier)
    if reference.module_path is not None:
        # require('path').member: no dependency table lookup needed
        return reference

    original = reference.imported
    reference.module_path = follow_reassignments(tree, reference, dependencies)
    if (
        reference.module_path is not None
        and reference.imported != original
        and not reference.is_member_access
    ):
        reference.selected = reference.imported
    logger.debug(
        "Resolved '%s' (imported as '%s') to module %s",
        reference.selected,
        reference.imported,
        reference.module_path,
    )
    return reference
