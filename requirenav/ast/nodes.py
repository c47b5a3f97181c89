"""
ESTree-shaped syntax tree nodes.

Only the node kinds used by dependency extraction and identifier resolution
get a dedicated class; every other construct becomes a ``Node`` whose
``body`` holds its children in source order.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterator, List, Optional, Type


@dataclass(eq=False)
class BaseNode:
    ast_type: str
    lineno: int = 0
    col_offset: int = 0
    end_lineno: int = 0
    end_col_offset: int = 0
    node_id: Optional[int] = None
    parent: Optional["BaseNode"] = field(default=None, repr=False, compare=False)

    def __hash__(self):
        return hash(self.node_id)

    def __eq__(self, other):
        return isinstance(other, BaseNode) and self.node_id == other.node_id

    @property
    def start(self) -> tuple:
        return (self.lineno, self.col_offset)

    def child_nodes(self) -> Iterator["BaseNode"]:
        """Yield direct children, in source order."""
        children: List[BaseNode] = []
        for f in fields(self):
            if f.name == "parent":
                continue
            value = getattr(self, f.name)
            if isinstance(value, BaseNode):
                children.append(value)
            elif isinstance(value, list):
                children.extend(item for item in value if isinstance(item, BaseNode))
        children.sort(key=lambda child: child.start)
        return iter(children)


@dataclass(eq=False)
class Node(BaseNode):
    """Any construct without a dedicated class (statements, operators, ...)."""

    body: List[Any] = field(default_factory=list)


@dataclass(eq=False)
class Program(BaseNode):
    body: List[Any] = field(default_factory=list)


@dataclass(eq=False)
class Identifier(BaseNode):
    name: str = ""


@dataclass(eq=False)
class Literal(BaseNode):
    value: Any = None
    raw: str = ""


@dataclass(eq=False)
class ArrayExpression(BaseNode):
    elements: List[Any] = field(default_factory=list)


@dataclass(eq=False)
class ObjectExpression(BaseNode):
    properties: List[Any] = field(default_factory=list)


@dataclass(eq=False)
class Property(BaseNode):
    key: Any = None
    value: Any = None
    computed: bool = False
    shorthand: bool = False


@dataclass(eq=False)
class MemberExpression(BaseNode):
    object: Any = None
    property: Any = None
    computed: bool = False


@dataclass(eq=False)
class CallExpression(BaseNode):
    callee: Any = None
    arguments: List[Any] = field(default_factory=list)


@dataclass(eq=False)
class NewExpression(BaseNode):
    callee: Any = None
    arguments: List[Any] = field(default_factory=list)


@dataclass(eq=False)
class VariableDeclaration(BaseNode):
    kind: str = "var"
    declarations: List[Any] = field(default_factory=list)


@dataclass(eq=False)
class VariableDeclarator(BaseNode):
    id: Any = None
    init: Any = None


@dataclass(eq=False)
class AssignmentExpression(BaseNode):
    operator: str = "="
    left: Any = None
    right: Any = None


@dataclass(eq=False)
class AssignmentPattern(BaseNode):
    left: Any = None
    right: Any = None


@dataclass(eq=False)
class FunctionBase(BaseNode):
    id: Any = None
    params: List[Any] = field(default_factory=list)
    body: Any = None


@dataclass(eq=False)
class FunctionExpression(FunctionBase):
    pass


@dataclass(eq=False)
class ArrowFunctionExpression(FunctionBase):
    pass


@dataclass(eq=False)
class FunctionDeclaration(FunctionBase):
    pass


@dataclass(eq=False)
class ExpressionStatement(BaseNode):
    expression: Any = None


AST_CLASS_MAP: Dict[str, Type[BaseNode]] = {
    cls.__name__: cls
    for cls in list(globals().values())
    if isinstance(cls, type) and issubclass(cls, BaseNode)
}
