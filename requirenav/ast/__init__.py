from requirenav.ast.nodes import AST_CLASS_MAP, BaseNode
from requirenav.ast.parser import ParseError, parse
from requirenav.ast.visitor import first_match, walk, walk_before

__all__ = [
    "AST_CLASS_MAP",
    "BaseNode",
    "ParseError",
    "first_match",
    "parse",
    "walk",
    "walk_before",
]
