import logging
from typing import Any, List, Optional

import tree_sitter_javascript
from tree_sitter import Language, Parser
from tree_sitter import Node as TSNode

from requirenav.ast.nodes import AST_CLASS_MAP, BaseNode, Node, Program

logger = logging.getLogger("requirenav")

JS_LANGUAGE = Language(tree_sitter_javascript.language())

_IDENTIFIER_TYPES = {
    "identifier",
    "property_identifier",
    "shorthand_property_identifier_pattern",
    "private_property_identifier",
}

_FUNCTION_TYPES = {
    "function": "FunctionExpression",
    "function_expression": "FunctionExpression",
    "generator_function": "FunctionExpression",
    "function_declaration": "FunctionDeclaration",
    "generator_function_declaration": "FunctionDeclaration",
    "arrow_function": "ArrowFunctionExpression",
}

_SKIPPED_TYPES = {"comment", "hash_bang_line"}

_SINGLE_ESCAPES = {"b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v"}
_LINE_TERMINATORS = ("\r\n", "\n", "\r", "\u2028", "\u2029")
_OCTAL_DIGITS = set("01234567")


class ParseError(ValueError):
    """Raised when source text is not syntactically valid JavaScript."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"Line {self.line}: {self.message}"


def parse(source: str) -> Program:
    """
    Parse JavaScript source text into an ESTree-shaped syntax tree.

    Lines are 1-based and columns are 0-based character offsets.

    Raises:
        ParseError: If the source contains a syntax error.
    """
    data = source.encode("utf-8")
    tree = Parser(JS_LANGUAGE).parse(data)
    converter = _TreeConverter(data)
    if tree.root_node.has_error:
        raise converter.error_for(tree.root_node)
    program = converter.convert(tree.root_node)
    if not isinstance(program, Program):
        raise TypeError("Expected tree root to be a Program node")
    return program


class _TreeConverter:
    """Converts a tree-sitter concrete tree into ``requirenav.ast.nodes``."""

    def __init__(self, data: bytes):
        self._lines = data.split(b"\n")
        self._next_id = 0

    # === Positions ===

    def _column(self, row: int, byte_column: int) -> int:
        prefix = self._lines[row][:byte_column] if row < len(self._lines) else b""
        if prefix.isascii():
            return byte_column
        return len(prefix.decode("utf-8", errors="replace"))

    def _make(self, ast_type: str, ts_node: TSNode, **kwargs: Any) -> BaseNode:
        cls = AST_CLASS_MAP.get(ast_type, Node)
        start_row, start_col = ts_node.start_point
        end_row, end_col = ts_node.end_point
        self._next_id += 1
        node = cls(
            ast_type=ast_type,
            lineno=start_row + 1,
            col_offset=self._column(start_row, start_col),
            end_lineno=end_row + 1,
            end_col_offset=self._column(end_row, end_col),
            node_id=self._next_id,
            **kwargs,
        )
        for child in node.child_nodes():
            child.parent = node
        return node

    def error_for(self, root: TSNode) -> ParseError:
        stack = [root]
        while stack:
            current = stack.pop()
            if current.type == "ERROR" or current.is_missing:
                row, col = current.start_point
                if current.is_missing:
                    message = f"Missing {current.type}"
                else:
                    message = "Unexpected token"
                return ParseError(message, row + 1, self._column(row, col))
            stack.extend(reversed(current.children))
        return ParseError("Invalid source")

    # === Dispatch ===

    def convert(self, ts_node: Optional[TSNode]) -> Optional[BaseNode]:
        if ts_node is None or ts_node.type in _SKIPPED_TYPES:
            return None
        if ts_node.type in _IDENTIFIER_TYPES:
            return self._make("Identifier", ts_node, name=_text(ts_node))
        if ts_node.type in _FUNCTION_TYPES:
            return self._function(_FUNCTION_TYPES[ts_node.type], ts_node)
        converter_fn = getattr(self, f"convert_{ts_node.type}", None)
        if converter_fn is not None:
            return converter_fn(ts_node)
        return self._make(ts_node.type, ts_node, body=self._convert_all(ts_node.named_children))

    def _convert_all(self, ts_nodes: List[TSNode]) -> List[BaseNode]:
        converted = (self.convert(child) for child in ts_nodes)
        return [node for node in converted if node is not None]

    def _field(self, ts_node: TSNode, name: str) -> Optional[BaseNode]:
        return self.convert(ts_node.child_by_field_name(name))

    # === Statements ===

    def convert_program(self, ts_node: TSNode) -> BaseNode:
        return self._make("Program", ts_node, body=self._convert_all(ts_node.named_children))

    def convert_expression_statement(self, ts_node: TSNode) -> BaseNode:
        expressions = self._convert_all(ts_node.named_children)
        expression = expressions[0] if len(expressions) == 1 else None
        if expression is None and expressions:
            expression = self._make("SequenceExpression", ts_node, body=expressions)
        return self._make("ExpressionStatement", ts_node, expression=expression)

    def convert_variable_declaration(self, ts_node: TSNode) -> BaseNode:
        return self._declaration(ts_node, "var")

    def convert_lexical_declaration(self, ts_node: TSNode) -> BaseNode:
        kind_node = ts_node.child_by_field_name("kind")
        return self._declaration(ts_node, _text(kind_node) if kind_node else "let")

    def _declaration(self, ts_node: TSNode, kind: str) -> BaseNode:
        declarators = [
            self.convert(child)
            for child in ts_node.named_children
            if child.type == "variable_declarator"
        ]
        return self._make("VariableDeclaration", ts_node, kind=kind, declarations=declarators)

    def convert_variable_declarator(self, ts_node: TSNode) -> BaseNode:
        return self._make(
            "VariableDeclarator",
            ts_node,
            id=self._field(ts_node, "name"),
            init=self._field(ts_node, "value"),
        )

    # === Functions ===

    def _function(self, ast_type: str, ts_node: TSNode) -> BaseNode:
        parameters = ts_node.child_by_field_name("parameters")
        if parameters is not None:
            params = self._convert_all(parameters.named_children)
        else:
            # Arrow functions with a single bare parameter: `x => x`
            single = self._field(ts_node, "parameter")
            params = [single] if single is not None else []
        return self._make(
            ast_type,
            ts_node,
            id=self._field(ts_node, "name"),
            params=params,
            body=self._field(ts_node, "body"),
        )

    def convert_assignment_pattern(self, ts_node: TSNode) -> BaseNode:
        return self._make(
            "AssignmentPattern",
            ts_node,
            left=self._field(ts_node, "left"),
            right=self._field(ts_node, "right"),
        )

    # === Expressions ===

    def convert_parenthesized_expression(self, ts_node: TSNode) -> Optional[BaseNode]:
        inner = self._convert_all(ts_node.named_children)
        if len(inner) == 1:
            return inner[0]
        return self._make("SequenceExpression", ts_node, body=inner)

    def convert_call_expression(self, ts_node: TSNode) -> BaseNode:
        return self._make(
            "CallExpression",
            ts_node,
            callee=self._field(ts_node, "function"),
            arguments=self._arguments(ts_node),
        )

    def convert_new_expression(self, ts_node: TSNode) -> BaseNode:
        return self._make(
            "NewExpression",
            ts_node,
            callee=self._field(ts_node, "constructor"),
            arguments=self._arguments(ts_node),
        )

    def _arguments(self, ts_node: TSNode) -> List[BaseNode]:
        arguments = ts_node.child_by_field_name("arguments")
        if arguments is None:
            return []
        if arguments.type != "arguments":
            # Tagged template: the template itself is the only argument
            converted = self.convert(arguments)
            return [converted] if converted is not None else []
        return self._convert_all(arguments.named_children)

    def convert_member_expression(self, ts_node: TSNode) -> BaseNode:
        return self._make(
            "MemberExpression",
            ts_node,
            object=self._field(ts_node, "object"),
            property=self._field(ts_node, "property"),
            computed=False,
        )

    def convert_subscript_expression(self, ts_node: TSNode) -> BaseNode:
        return self._make(
            "MemberExpression",
            ts_node,
            object=self._field(ts_node, "object"),
            property=self._field(ts_node, "index"),
            computed=True,
        )

    def convert_assignment_expression(self, ts_node: TSNode) -> BaseNode:
        return self._make(
            "AssignmentExpression",
            ts_node,
            operator="=",
            left=self._field(ts_node, "left"),
            right=self._field(ts_node, "right"),
        )

    def convert_augmented_assignment_expression(self, ts_node: TSNode) -> BaseNode:
        operator_node = ts_node.child_by_field_name("operator")
        return self._make(
            "AssignmentExpression",
            ts_node,
            operator=_text(operator_node) if operator_node else "",
            left=self._field(ts_node, "left"),
            right=self._field(ts_node, "right"),
        )

    def convert_array(self, ts_node: TSNode) -> BaseNode:
        return self._make("ArrayExpression", ts_node, elements=self._convert_all(ts_node.named_children))

    def convert_object(self, ts_node: TSNode) -> BaseNode:
        return self._make(
            "ObjectExpression", ts_node, properties=self._convert_all(ts_node.named_children)
        )

    def convert_pair(self, ts_node: TSNode) -> BaseNode:
        key_node = ts_node.child_by_field_name("key")
        computed = key_node is not None and key_node.type == "computed_property_name"
        if computed:
            key = self._convert_all(key_node.named_children)[0]
        else:
            key = self.convert(key_node)
        return self._make(
            "Property",
            ts_node,
            key=key,
            value=self._field(ts_node, "value"),
            computed=computed,
        )

    def convert_shorthand_property_identifier(self, ts_node: TSNode) -> BaseNode:
        key = self._make("Identifier", ts_node, name=_text(ts_node))
        return self._make("Property", ts_node, key=key, shorthand=True)

    # === Literals ===

    def convert_string(self, ts_node: TSNode) -> BaseNode:
        parts = []
        escaped = False
        for child in ts_node.named_children:
            if child.type == "escape_sequence":
                parts.append(decode_escape(_text(child)))
                escaped = True
            else:
                parts.append(_text(child))
        value = "".join(parts)
        if escaped:
            # A surrogate pair written as two \uXXXX escapes is one character
            value = value.encode("utf-16-le", "surrogatepass").decode(
                "utf-16-le", "surrogatepass"
            )
        return self._make("Literal", ts_node, value=value, raw=_text(ts_node))

    def convert_number(self, ts_node: TSNode) -> BaseNode:
        raw = _text(ts_node)
        try:
            value: Any = int(raw.replace("_", ""), 0)
        except ValueError:
            try:
                value = float(raw.replace("_", ""))
            except ValueError:
                value = raw
        return self._make("Literal", ts_node, value=value, raw=raw)

    def convert_true(self, ts_node: TSNode) -> BaseNode:
        return self._make("Literal", ts_node, value=True, raw="true")

    def convert_false(self, ts_node: TSNode) -> BaseNode:
        return self._make("Literal", ts_node, value=False, raw="false")

    def convert_null(self, ts_node: TSNode) -> BaseNode:
        return self._make("Literal", ts_node, value=None, raw="null")


def _text(ts_node: TSNode) -> str:
    return ts_node.text.decode("utf-8") if ts_node.text is not None else ""


def decode_escape(sequence: str) -> str:
    """
    Decode one JavaScript escape sequence, backslash included.

    Covers ``\\u{...}``, ``\\uXXXX``, ``\\xXX``, legacy octal escapes, the
    single-character escapes and line continuations. Any other ``\\c``
    stands for ``c`` itself.
    """
    body = sequence[1:]
    if not body or body in _LINE_TERMINATORS:
        return ""
    if body.startswith("u{") and body.endswith("}"):
        digits, base = body[2:-1], 16
    elif body[0] in "ux" and len(body) > 1:
        digits, base = body[1:], 16
    elif _OCTAL_DIGITS.issuperset(body):
        digits, base = body, 8
    else:
        return _SINGLE_ESCAPES.get(body, body)
    try:
        return chr(int(digits, base))
    except ValueError:
        # Out of range code points
        return "\ufffd"
