"""
Tests for AST printing: canonical source and the debug dump.
"""

import textwrap

import pytest
from treelox import (
    tokenize, parse, format_source, dump_ast, Interpreter,
    If, Print, Literal, Variable, number_val, bool_val,
)


def parse_source(source: str):
    return parse(tokenize(textwrap.dedent(source)))


def run_output(statements, capsys) -> str:
    errors = []
    Interpreter(reporters=[errors.append]).interpret(statements)
    assert errors == []
    return capsys.readouterr().out


class TestCanonicalSource:
    """Test rendering nodes back to source."""

    def test_expression_statement(self):
        """Binary expressions are parenthesized."""
        assert format_source(parse_source("1 + 2 * 3;")) == "(1 + (2 * 3));"

    def test_str_uses_source_form(self):
        """str() of any node is its source form."""
        statement = parse_source("-x;")[0]
        assert str(statement) == "(-x);"
        assert str(statement.expression) == "(-x)"

    def test_literals(self):
        """Literals print as they would be written."""
        source = 'print "hi"; print 2.5; print 10; print true; print nil;'
        assert format_source(parse_source(source)).split("\n") == [
            'print "hi";', "print 2.5;", "print 10;", "print true;", "print nil;",
        ]

    def test_declarations_and_grouping(self):
        """var and grouping keep their shape."""
        assert format_source(parse_source("var a = (1);")) == "var a = (1);"
        assert format_source(parse_source("var b;")) == "var b;"

    def test_assignment(self):
        """Chained assignment prints right to left."""
        assert format_source(parse_source("a = b = 1;")) == "a = b = 1;"

    def test_block_indentation(self):
        """Blocks are printed one statement per line."""
        text = format_source(parse_source("{ var a = 1; { print a; } }"))
        assert text == "{\n    var a = 1;\n    {\n        print a;\n    }\n}"

    def test_empty_block(self):
        """An empty block prints as {}."""
        assert format_source(parse_source("{}")) == "{}"

    def test_if_and_while(self):
        """Control flow statements."""
        assert format_source(parse_source("if (a) print 1; else print 2;")) == \
            "if (a) print 1; else print 2;"
        assert format_source(parse_source("while (a < 3) a = a + 1;")) == \
            "while ((a < 3)) a = (a + 1);"

    def test_else_stays_with_outer_if(self):
        """An outer else after an inner if is protected with braces."""
        a = parse_source("a;")[0].expression
        b = parse_source("b;")[0].expression
        node = If(a, If(b, Print(Literal(number_val(1)))), Print(Literal(number_val(2))))

        reparsed = parse(tokenize(format_source(node)))[0]
        assert isinstance(reparsed, If)
        assert reparsed.else_branch == Print(Literal(number_val(2)))

    def test_negative_number_literal(self):
        """Negative literal values print as negation."""
        assert format_source(Literal(number_val(-4))) == "(-4)"

    @pytest.mark.parametrize("source", [
        "var a = 1; a = a + 1; print a;",
        'var s = "x"; print 1 + s; print s + true;',
        "for (var i = 0; i < 3; i = i + 1) { print i * 2; }",
        "var n = 5; while (n > 0) { if (n == 2) print \"two\"; else print n; n = n - 1; }",
        "var a = 1; { var a = 2; { var a = 3; print a; } print a; } print a;",
        "print !nil == !false; print --7; print (1 + 2) * 3 / 4;",
        "if (true) if (false) print 1; else print 2;",
    ])
    def test_reparse_has_same_effects(self, source, capsys):
        """Printed programs re-parse and behave the same."""
        original = parse_source(source)
        expected = run_output(original, capsys)

        reparsed = parse(tokenize(format_source(original)))
        assert run_output(reparsed, capsys) == expected


class TestDebugDump:
    """Test the debug tree dump."""

    def test_dump_lists_nodes(self):
        """The dump names each node and its fields."""
        text = dump_ast(parse_source("1 + 2;"))
        lines = text.split("\n")
        assert lines[0] == "ExpressionStatement"
        assert "Binary" in text
        assert "operator: '+' @ 1:3" in text
        assert "Value(1.0, NUMBER)" in text

    def test_dump_tokens(self):
        """Name tokens show their position."""
        text = dump_ast(parse_source("var answer = 42;"))
        assert "name: IDENTIFIER('answer') @ 1:10" in text

    def test_dump_nested_lists(self):
        """Block statements are listed."""
        text = dump_ast(parse_source("{ print 1; print 2; }"))
        assert text.count("Print") == 2
        assert "statements: [" in text

    def test_dump_single_node(self):
        """A single node dumps too."""
        assert dump_ast(Variable(tokenize("x")[0])).startswith("Variable")
        assert dump_ast(Literal(bool_val(True))).split("\n")[0] == "Literal"
