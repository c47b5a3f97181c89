"""Tests for the syntax tree builder."""

import pytest

from requirenav.ast import nodes
from requirenav.ast.parser import ParseError, parse
from requirenav.ast.visitor import walk, walk_before


def _first(tree, cls):
    return next(node for node in walk(tree) if isinstance(node, cls))


def test_parses_program():
    tree = parse("var a = 1;")
    assert isinstance(tree, nodes.Program)
    assert len(tree.body) == 1
    declaration = tree.body[0]
    assert isinstance(declaration, nodes.VariableDeclaration)
    assert declaration.kind == "var"


def test_identifier_locations_are_one_based_lines():
    tree = parse("var a = 1;\nvar b = a;")
    names = [(n.name, n.lineno, n.col_offset) for n in walk(tree) if isinstance(n, nodes.Identifier)]
    assert names == [("a", 1, 4), ("b", 2, 4), ("a", 2, 8)]


def test_end_positions():
    tree = parse("foo.bar();")
    member = _first(tree, nodes.MemberExpression)
    assert (member.lineno, member.col_offset) == (1, 0)
    assert (member.end_lineno, member.end_col_offset) == (1, 7)


def test_non_ascii_columns_count_characters():
    tree = parse("var ü = 1; var b = ü;")
    used = [n for n in walk(tree) if isinstance(n, nodes.Identifier) and n.name == "ü"]
    assert [n.col_offset for n in used] == [4, 19]


def test_member_expression():
    tree = parse("foo.bar;")
    member = _first(tree, nodes.MemberExpression)
    assert member.computed is False
    assert member.object.name == "foo"
    assert isinstance(member.property, nodes.Identifier)
    assert member.property.name == "bar"
    assert member.property.parent is member


def test_subscript_is_computed_member():
    tree = parse("foo[bar];")
    member = _first(tree, nodes.MemberExpression)
    assert member.computed is True
    assert member.property.name == "bar"


def test_call_expression_arguments():
    tree = parse("define('name', ['a', 'b'], function (x, y) {});")
    call = _first(tree, nodes.CallExpression)
    assert call.callee.name == "define"
    assert [type(arg).__name__ for arg in call.arguments] == [
        "Literal",
        "ArrayExpression",
        "FunctionExpression",
    ]
    factory = call.arguments[2]
    assert [param.name for param in factory.params] == ["x", "y"]


def test_string_literals():
    tree = parse("var s = 'it\\'s';\nvar t = \"a/b\";")
    literals = [n for n in walk(tree) if isinstance(n, nodes.Literal)]
    assert [lit.value for lit in literals] == ["it's", "a/b"]
    assert literals[1].raw == '"a/b"'


def test_code_point_escapes():
    tree = parse(r"var a = '\u{1F600}'; var b = '\u{41}B\x43';")
    literals = [n for n in walk(tree) if isinstance(n, nodes.Literal)]
    assert [lit.value for lit in literals] == ["\U0001F600", "ABC"]


def test_surrogate_pair_escape():
    tree = parse(r"var a = '\uD83D\uDE00';")
    assert _first(tree, nodes.Literal).value == "\U0001F600"


def test_identity_escapes():
    tree = parse(r"var a = '.\/util'; var b = '\q\$';")
    literals = [n for n in walk(tree) if isinstance(n, nodes.Literal)]
    assert [lit.value for lit in literals] == ["./util", "q$"]


def test_control_and_octal_escapes():
    tree = parse(r"var a = 'a\tb\n\0\101';")
    assert _first(tree, nodes.Literal).value == "a\tb\n\x00A"


def test_line_continuation():
    tree = parse("var a = 'lib/\\\nutil';")
    assert _first(tree, nodes.Literal).value == "lib/util"


def test_other_literals():
    tree = parse("var a = [1, 2.5, true, null];")
    array = _first(tree, nodes.ArrayExpression)
    assert [element.value for element in array.elements] == [1, 2.5, True, None]


def test_new_expression():
    tree = parse("var w = new Widget(1);")
    new = _first(tree, nodes.NewExpression)
    assert new.callee.name == "Widget"
    assert len(new.arguments) == 1


def test_object_properties():
    tree = parse("var o = { foo: 1, 'bar': 2, baz };")
    obj = _first(tree, nodes.ObjectExpression)
    keys = [prop.key for prop in obj.properties]
    assert keys[0].name == "foo"
    assert keys[1].value == "bar"
    assert keys[2].name == "baz"
    assert obj.properties[2].shorthand is True


def test_arrow_functions():
    tree = parse("var f = x => x; var g = (a, b = 1) => a;")
    arrows = [n for n in walk(tree) if isinstance(n, nodes.ArrowFunctionExpression)]
    assert [p.name for p in arrows[0].params] == ["x"]
    assert isinstance(arrows[1].params[1], nodes.AssignmentPattern)


def test_let_and_const_declarations():
    tree = parse("let a = 1; const b = 2;")
    assert [d.kind for d in tree.body] == ["let", "const"]


def test_assignment_expression():
    tree = parse("a = b; a += 1;")
    assignments = [n for n in walk(tree) if isinstance(n, nodes.AssignmentExpression)]
    assert [a.operator for a in assignments] == ["=", "+="]
    assert assignments[0].right.name == "b"


def test_comments_are_skipped():
    tree = parse("// header\nvar a = 1; /* trailing */")
    assert len(tree.body) == 1


def test_parenthesized_expression_is_unwrapped():
    tree = parse("(foo).bar;")
    member = _first(tree, nodes.MemberExpression)
    assert isinstance(member.object, nodes.Identifier)


def test_walk_is_in_source_order():
    tree = parse("define(['a'], function (a) {\n  a.b();\n  c.d();\n});")
    starts = [node.start for node in walk(tree)]
    assert starts == sorted(starts)


def test_walk_before_stops_at_position():
    tree = parse("var a = 1;\nvar b = 2;")
    names = [n.name for n in walk_before(tree, (2, 0)) if isinstance(n, nodes.Identifier)]
    assert names == ["a"]


def test_syntax_error_raises_parse_error():
    with pytest.raises(ParseError) as exc_info:
        parse("define(['a'], function (a) {\n  var = ;\n});")
    assert exc_info.value.line is not None
    assert "Line" in str(exc_info.value)


def test_parse_error_is_value_error():
    with pytest.raises(ValueError):
        parse("function (")
