"""
Tests for the tree-walking interpreter.
"""

import io
import textwrap

import pytest
from treelox import (
    tokenize, parse, interpret, run_source,
    Interpreter, DiagnosticReporter, StreamReporter, ErrorReporter,
    LoxRuntimeError, LoxError,
    Assign, Binary, Literal, Operator, OperatorType,
    number_val, string_val, bool_val,
)
from treelox.runtime import GlobalScopeExit


def run(source: str, interpreter: Interpreter = None):
    """Run source, returning the interpreter and the reported errors."""
    errors = []
    if interpreter is None:
        interpreter = Interpreter()
    interpreter.add_reporter(errors.append)
    interpreter.interpret(parse(tokenize(textwrap.dedent(source))))
    return interpreter, errors


def output_of(source: str, capsys) -> str:
    _, errors = run(source)
    assert errors == []
    return capsys.readouterr().out


def evaluate(source: str):
    """Evaluate a single expression."""
    statement = parse(tokenize(source + ";"))[0]
    return Interpreter().evaluate(statement.expression)


class TestStatements:
    """Test statement execution."""

    def test_assignment_and_print(self, capsys):
        """var a = 1; a = a + 1; print a; prints 2."""
        assert output_of("var a = 1; a = a + 1; print a;", capsys) == "2\n"

    def test_uninitialized_variable_is_nil(self, capsys):
        """var without initializer holds nil."""
        assert output_of("var a; print a;", capsys) == "nil\n"

    def test_if_else(self, capsys):
        """if picks a branch by truthiness."""
        source = """
            if (0) print "zero"; else print "nonzero";
            if ("") print "empty string is true";
            if (nil) print "never";
        """
        assert output_of(source, capsys) == "nonzero\nempty string is true\n"

    def test_while(self, capsys):
        """while repeats while the condition is truthy."""
        source = """
            var i = 0;
            while (i < 3) {
                print i;
                i = i + 1;
            }
        """
        assert output_of(source, capsys) == "0\n1\n2\n"

    def test_for(self, capsys):
        """for loops run the increment after each pass."""
        assert output_of("for (var i = 0; i < 3; i = i + 1) print i;", capsys) == "0\n1\n2\n"

    def test_for_variable_is_scoped(self, capsys):
        """The loop variable lives in the loop's block."""
        interpreter, errors = run("for (var i = 0; i < 1; i = i + 1) print i; print i;")
        assert [e.code for e in errors] == ["E402"]
        assert capsys.readouterr().out == "0\n"

    def test_fibonacci(self, capsys):
        """A small program."""
        source = """
            var a = 0;
            var b = 1;
            for (var n = 0; n < 8; n = n + 1) {
                print a;
                var next = a + b;
                a = b;
                b = next;
            }
        """
        assert output_of(source, capsys).split() == ["0", "1", "1", "2", "3", "5", "8", "13"]


class TestScoping:
    """Test block scoping."""

    def test_shadowing(self, capsys):
        """Inner declarations shadow outer ones until the block ends."""
        source = "var a = 1; { var a = 2; print a; } print a;"
        assert output_of(source, capsys) == "2\n1\n"

    def test_assignment_reaches_outer_scope(self, capsys):
        """Assignment inside a block updates the enclosing variable."""
        assert output_of("var a = 1; { a = 3; } print a;", capsys) == "3\n"

    def test_redefinition_in_block(self):
        """Declaring a name twice in one block is an error."""
        interpreter, errors = run("{ var a = 1; var a = 2; }")
        assert [e.code for e in errors] == ["E401"]
        assert errors[0].name == "a"

    def test_redefinition_in_nested_block(self):
        """A nested block may redeclare the name."""
        _, errors = run("{ var a = 1; { var a = 2; } }")
        assert errors == []

    def test_global_redefinition(self):
        """Globals are unique too."""
        _, errors = run("var a = 1; var a = 2;")
        assert [e.code for e in errors] == ["E401"]

    def test_block_scope_popped_after_error(self):
        """A failing statement inside nested blocks leaves no frames behind."""
        interpreter, errors = run("{ var a = 1; { print b; } }")
        assert [e.code for e in errors] == ["E402"]
        assert interpreter.environment.depth == 1
        assert not interpreter.environment.contains("a")

    def test_state_persists_between_calls(self, capsys):
        """Globals survive across interpret calls."""
        interpreter, _ = run("var count = 1;")
        run("count = count + 1; print count;", interpreter)
        assert capsys.readouterr().out == "2\n"


class TestExpressions:
    """Test expression evaluation."""

    def test_arithmetic(self):
        """Number operators."""
        assert evaluate("1 + 2 * 3") == number_val(7)
        assert evaluate("(1 + 2) * 3") == number_val(9)
        assert evaluate("10 - 4 - 3") == number_val(3)
        assert evaluate("7 / 2") == number_val(3.5)

    def test_string_concatenation(self):
        """+ on two strings concatenates."""
        assert evaluate('"foo" + "bar"') == string_val("foobar")

    def test_implicit_string_coercion(self):
        """+ with any non-number stringifies both sides."""
        assert evaluate('1 + "x"') == string_val("1x")
        assert evaluate('"x" + 2.5') == string_val("x2.5")
        assert evaluate('true + nil') == string_val("truenil")

    def test_comparison(self):
        """Comparisons on numbers."""
        assert evaluate("1 < 2") == bool_val(True)
        assert evaluate("2 <= 2") == bool_val(True)
        assert evaluate("1 > 2") == bool_val(False)
        assert evaluate("3 >= 4") == bool_val(False)

    def test_equality(self):
        """== and != compare type and value and never fail."""
        assert evaluate("1 == 1") == bool_val(True)
        assert evaluate('"a" == "a"') == bool_val(True)
        assert evaluate("nil == nil") == bool_val(True)
        assert evaluate("nil == false") == bool_val(False)
        assert evaluate('1 == "1"') == bool_val(False)
        assert evaluate("1 != 2") == bool_val(True)

    def test_unary_minus(self):
        """Negation, including nested."""
        assert evaluate("-3") == number_val(-3)
        assert evaluate("--3") == number_val(3)

    def test_logical_not(self):
        """! negates truthiness."""
        assert evaluate("!true") == bool_val(False)
        assert evaluate("!nil") == bool_val(True)
        assert evaluate("!0") == bool_val(True)
        assert evaluate("!1") == bool_val(False)
        assert evaluate('!""') == bool_val(False)
        assert evaluate("!!nil") == bool_val(False)

    def test_assignment_is_an_expression(self, capsys):
        """Assignment yields the assigned value."""
        assert output_of("var a; var b; a = b = 3; print a; print b;", capsys) == "3\n3\n"
        assert output_of("var c = 1; print c = 5;", capsys) == "5\n"

    def test_division_by_zero(self, capsys):
        """Division follows IEEE 754."""
        assert output_of("print 1 / 0; print -1 / 0; print 0 / 0;", capsys) == "inf\n-inf\nNaN\n"

    def test_nan_is_not_equal_to_itself(self):
        """Structural equality uses float equality."""
        assert evaluate("0 / 0 == 0 / 0") == bool_val(False)

    def test_print_formats(self, capsys):
        """Numbers print without a trailing .0; strings print raw."""
        source = 'print 2; print 2.5; print 0.1 + 0.2; print "hi"; print true; print nil;'
        assert output_of(source, capsys) == "2\n2.5\n0.30000000000000004\nhi\ntrue\nnil\n"


class TestRuntimeErrors:
    """Test runtime error reporting."""

    def test_invalid_operands(self, capsys):
        """Arithmetic needs two numbers."""
        _, errors = run('print 1 - "x";')
        assert len(errors) == 1
        error = errors[0]
        assert isinstance(error, LoxRuntimeError)
        assert error.code == "E404"
        assert error.expected == "two numbers"
        assert error.operator.type == OperatorType.MINUS
        assert (error.line, error.column) == (1, 9)
        assert capsys.readouterr().out == ""

    def test_comparison_needs_numbers(self):
        """Strings cannot be ordered."""
        _, errors = run('print "a" < "b";')
        assert [e.code for e in errors] == ["E404"]

    def test_negate_non_number(self):
        """Unary minus needs a number."""
        _, errors = run('print -"x";')
        assert [e.code for e in errors] == ["E406"]
        assert errors[0].value == string_val("x")

    def test_undefined_variable(self):
        """Reading an unknown name."""
        _, errors = run("print missing;")
        assert [e.code for e in errors] == ["E402"]
        assert errors[0].name == "missing"

    def test_assign_undefined_variable(self):
        """Assignment does not declare."""
        _, errors = run("b = 1;")
        assert [e.code for e in errors] == ["E402"]

    def test_execution_continues_after_error(self, capsys):
        """Only the failing statement is skipped."""
        _, errors = run("print 1; print x; print 3;")
        assert len(errors) == 1
        assert capsys.readouterr().out == "1\n3\n"

    def test_each_reporter_called_once(self):
        """Every reporter sees each error exactly once."""
        first, second = [], []
        interpreter = Interpreter(reporters=[first.append, second.append])
        interpreter.interpret(parse(tokenize("print x; print y;")))
        assert [e.name for e in first] == ["x", "y"]
        assert [e.name for e in second] == ["x", "y"]

    def test_invalid_unary_operator(self):
        """Only - and ! are prefix operators."""
        from treelox import Unary
        interpreter = Interpreter()
        expr = Unary(Operator(OperatorType.PLUS, 1, 1), Literal(number_val(1)))
        with pytest.raises(LoxRuntimeError) as exc_info:
            interpreter.evaluate(expr)
        assert exc_info.value.code == "E405"

    def test_invalid_assign_target(self):
        """Only identifiers can be assigned to."""
        target = tokenize("nil")[0]
        expr = Assign(target, Literal(number_val(1)))
        with pytest.raises(LoxRuntimeError) as exc_info:
            Interpreter().evaluate(expr)
        assert exc_info.value.code == "E403"
        assert exc_info.value.token is target

    def test_invalid_assign_target_is_reported(self):
        """A bad target fails only its own statement."""
        from treelox import ExpressionStatement, Print
        errors = []
        interpreter = Interpreter(reporters=[errors.append], output=io.StringIO())
        bad = ExpressionStatement(Assign(tokenize("true")[0], Literal(number_val(1))))
        interpreter.interpret([bad, Print(Literal(number_val(2)))])
        assert [e.code for e in errors] == ["E403"]
        assert interpreter.output.getvalue() == "2\n"


class TestInternalErrors:
    """Test failures that are not user-facing errors."""

    def test_dot_operator_is_not_evaluated(self):
        """Property access is not part of the language yet."""
        expr = Binary(Literal(number_val(1)), Operator(OperatorType.DOT, 1, 2), Literal(number_val(2)))
        with pytest.raises(NotImplementedError):
            Interpreter().evaluate(expr)

    def test_internal_errors_are_not_reported(self):
        """Internal failures propagate instead of reaching reporters."""
        errors = []
        interpreter = Interpreter(reporters=[errors.append])
        with pytest.raises(GlobalScopeExit):
            interpreter.environment.exit_current_scope()
        assert errors == []
        assert not issubclass(GlobalScopeExit, LoxError)


class TestReporters:
    """Test the bundled error reporters."""

    def test_diagnostic_reporter(self):
        """DiagnosticReporter collects diagnostics."""
        reporter = DiagnosticReporter()
        interpreter = Interpreter(reporters=[reporter])
        interpreter.interpret(parse(tokenize("print a; print b;")))
        assert reporter.collector.error_count == 2
        assert [d.code for d in reporter.collector.diagnostics] == ["E402", "E402"]

    def test_stream_reporter(self):
        """StreamReporter writes formatted diagnostics."""
        stream = io.StringIO()
        interpreter = Interpreter(reporters=[StreamReporter(stream)])
        source = "var a = 1;\nprint a + b;"
        interpreter.set_source(source)
        interpreter.interpret(parse(tokenize(source)))
        text = stream.getvalue()
        assert "2:11: error[E402]: undefined variable 'b'" in text
        assert "print a + b;" in text

    def test_custom_reporter_class(self):
        """ErrorReporter subclasses receive errors."""
        class Recorder(ErrorReporter):
            def __init__(self):
                self.codes = []

            def report_error(self, error):
                self.codes.append(error.code)

        recorder = Recorder()
        interpret(parse(tokenize('print 1 * nil;')), reporters=[recorder])
        assert recorder.codes == ["E404"]

    def test_call_reporters_do_not_accumulate(self):
        """Reporters passed to interpret() last for that call only."""
        seen = []
        interpreter = Interpreter()
        interpret(parse(tokenize("print x;")), [seen.append], interpreter=interpreter)
        interpret(parse(tokenize("print y;")), [seen.append], interpreter=interpreter)
        assert [e.name for e in seen] == ["x", "y"]
        assert interpreter.reporters == []

    def test_call_reporters_keep_registered_ones(self):
        """Reporters already on the interpreter stay registered."""
        registered, extra = [], []
        interpreter = Interpreter(reporters=[registered.append])
        interpret(parse(tokenize("print x;")), [extra.append], interpreter=interpreter)
        interpreter.interpret(parse(tokenize("print y;")))
        assert [e.name for e in registered] == ["x", "y"]
        assert [e.name for e in extra] == ["x"]

    def test_output_stream(self):
        """print writes to the configured output."""
        output = io.StringIO()
        interpreter = Interpreter(output=output)
        interpreter.interpret(parse(tokenize('print "to stream";')))
        assert output.getvalue() == "to stream\n"


class TestRunSource:
    """Test the lex-parse-run helper."""

    def test_runs_source(self, capsys):
        """A valid unit runs and returns True."""
        interpreter = Interpreter()
        assert run_source("print 40 + 2;", interpreter) is True
        assert capsys.readouterr().out == "42\n"

    def test_lexer_errors_stop_the_unit(self, capsys):
        """Nothing runs when lexing fails."""
        errors = []
        interpreter = Interpreter(reporters=[errors.append])
        assert run_source("print 1; @", interpreter) is False
        assert [e.code for e in errors] == ["E001"]
        assert capsys.readouterr().out == ""

    def test_parser_errors_stop_the_unit(self, capsys):
        """Nothing runs when parsing fails; every parse error is reported."""
        errors = []
        interpreter = Interpreter(reporters=[errors.append])
        assert run_source("print 1; var = 2; 1 2;", interpreter) is False
        assert [e.code for e in errors] == ["E105", "E105"]
        assert capsys.readouterr().out == ""

    def test_units_share_state(self, capsys):
        """Consecutive units see each other's globals."""
        interpreter = Interpreter()
        run_source("var greeting = \"hi\";", interpreter)
        run_source("print greeting + \" there\";", interpreter)
        assert capsys.readouterr().out == "hi there\n"
