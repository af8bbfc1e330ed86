"""
Tree-walking interpreter for treelox.

Executes statements directly from the AST against a persistent
Environment. A runtime error aborts only the top-level statement that
raised it; the error is handed to every registered reporter and
execution continues with the next statement.
"""

import logging
import math
import operator as op
import sys
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional, TextIO, Union

from ..values import Value, bool_val, number_val, string_val, NIL
from ..tokens import Token, TokenType
from ..ast import (
    Operator, OperatorType,
    Statement, Block, ExpressionStatement, Print, VariableDeclaration, If, While,
    Expression, Assign, Binary, Grouping, Literal, Unary, Variable,
)
from ..errors import (
    LoxError,
    LoxRuntimeError,
    DiagnosticCollector,
    error_variable_already_defined,
    error_undefined_variable,
    error_invalid_assign_target,
    error_invalid_operands,
    error_invalid_unary_operator,
    error_invalid_unary_operator_for_value,
)
from .environment import Environment, ScopeError, VariableAlreadyDefined

logger = logging.getLogger("treelox.interpreter")


# =============================================================================
# Error Reporters
# =============================================================================

class ErrorReporter(ABC):
    """Receives each error raised while running an input unit."""

    @abstractmethod
    def report_error(self, error: LoxError) -> None:
        pass


class DiagnosticReporter(ErrorReporter):
    """Collects runtime errors as diagnostics."""

    def __init__(self, collector: Optional[DiagnosticCollector] = None):
        self.collector = collector if collector is not None else DiagnosticCollector()

    def report_error(self, error: LoxError) -> None:
        self.collector.add_error(error)


class StreamReporter(ErrorReporter):
    """Writes formatted diagnostics to a text stream (stderr by default)."""

    def __init__(self, stream: Optional[TextIO] = None, show_source: bool = True):
        self.stream = stream
        self.show_source = show_source

    def report_error(self, error: LoxError) -> None:
        stream = self.stream if self.stream is not None else sys.stderr
        print(error.diagnostic.format(self.show_source), file=stream)


Reporter = Union[ErrorReporter, Callable[[LoxError], None]]


# =============================================================================
# Operator Tables
# =============================================================================

def _divide(lhs: float, rhs: float) -> float:
    """IEEE 754 division: x/0 is a signed infinity, 0/0 is NaN."""
    if rhs == 0.0:
        if lhs == 0.0 or math.isnan(lhs):
            return math.nan
        return math.copysign(math.inf, lhs) * math.copysign(1.0, rhs)
    return lhs / rhs


ARITHMETIC = {
    OperatorType.MINUS: op.sub,
    OperatorType.STAR: op.mul,
    OperatorType.SLASH: _divide,
}

COMPARISON = {
    OperatorType.GREATER: op.gt,
    OperatorType.GREATER_EQUAL: op.ge,
    OperatorType.LESS: op.lt,
    OperatorType.LESS_EQUAL: op.le,
}


def values_equal(left: Value, right: Value) -> bool:
    """Structural equality: same type and equal data (NaN never equals itself)."""
    return left.type == right.type and left.data == right.data


# =============================================================================
# Interpreter
# =============================================================================

class Interpreter:
    """
    Tree-walking interpreter.

    Usage:
        interpreter = Interpreter(reporters=[StreamReporter()])
        interpreter.interpret(statements)

    Global variables persist across calls to `interpret`, so one
    interpreter can serve a whole REPL session.
    """

    def __init__(self, reporters: Iterable[Reporter] = (), output: Optional[TextIO] = None):
        """
        Initialize the interpreter.

        Args:
            reporters: ErrorReporter instances or plain callables taking the error
            output: Stream that `print` writes to (stdout by default)
        """
        self.environment = Environment()
        self.reporters: List[Reporter] = list(reporters)
        self.output = output
        self.source_lines: List[str] = []

    def add_reporter(self, reporter: Reporter) -> None:
        self.reporters.append(reporter)

    def set_source(self, source: str) -> None:
        """Remember the source being run so diagnostics can quote it."""
        self.source_lines = [line.rstrip('\r') for line in source.split('\n')]

    def report(self, error: LoxError) -> None:
        """Pass an error to every registered reporter."""
        diagnostic = error.diagnostic
        if diagnostic.source_line is None:
            line = diagnostic.span.start.line
            if 1 <= line <= len(self.source_lines):
                diagnostic.source_line = self.source_lines[line - 1]
        for reporter in self.reporters:
            if isinstance(reporter, ErrorReporter):
                reporter.report_error(error)
            else:
                reporter(error)

    def interpret(self, statements: Iterable[Statement]) -> None:
        """Execute top-level statements, reporting and skipping the ones that fail."""
        for stmt in statements:
            try:
                self.execute(stmt)
            except LoxRuntimeError as error:
                logger.debug("runtime error %s: %s", error.code, error.diagnostic.message)
                self.report(error)

    # =========================================================================
    # Statement Execution
    # =========================================================================

    def execute(self, stmt: Statement) -> None:
        """Execute a statement."""
        if isinstance(stmt, Block):
            self._execute_block(stmt)
        elif isinstance(stmt, ExpressionStatement):
            self.evaluate(stmt.expression)
        elif isinstance(stmt, Print):
            self._execute_print(stmt)
        elif isinstance(stmt, VariableDeclaration):
            self._execute_var(stmt)
        elif isinstance(stmt, If):
            self._execute_if(stmt)
        elif isinstance(stmt, While):
            self._execute_while(stmt)
        else:
            raise RuntimeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_block(self, stmt: Block) -> None:
        with self.environment.scope():
            for inner in stmt.statements:
                self.execute(inner)

    def _execute_print(self, stmt: Print) -> None:
        value = self.evaluate(stmt.expression)
        output = self.output if self.output is not None else sys.stdout
        output.write(value.stringify() + "\n")

    def _execute_var(self, stmt: VariableDeclaration) -> None:
        """Define a variable; uninitialized variables are nil."""
        value = NIL
        if stmt.initializer is not None:
            value = self.evaluate(stmt.initializer)
        try:
            self.environment.define(stmt.name.lexeme, value)
        except ScopeError as e:
            raise self._scope_error(e, stmt.name)

    def _execute_if(self, stmt: If) -> None:
        if self.evaluate(stmt.condition).is_truthy():
            self.execute(stmt.then_branch)
        elif stmt.else_branch is not None:
            self.execute(stmt.else_branch)

    def _execute_while(self, stmt: While) -> None:
        while self.evaluate(stmt.condition).is_truthy():
            self.execute(stmt.body)

    # =========================================================================
    # Expression Evaluation
    # =========================================================================

    def evaluate(self, expr: Expression) -> Value:
        """Evaluate an expression to a value."""
        if isinstance(expr, Literal):
            return expr.value
        elif isinstance(expr, Grouping):
            return self.evaluate(expr.inner)
        elif isinstance(expr, Variable):
            return self._evaluate_variable(expr)
        elif isinstance(expr, Assign):
            return self._evaluate_assign(expr)
        elif isinstance(expr, Unary):
            return self._evaluate_unary(expr)
        elif isinstance(expr, Binary):
            left = self.evaluate(expr.left)
            right = self.evaluate(expr.right)
            return self._evaluate_binary(left, expr.operator, right)
        else:
            raise RuntimeError(f"Unknown expression type: {type(expr).__name__}")

    def _evaluate_variable(self, expr: Variable) -> Value:
        try:
            return self.environment.get(expr.name.lexeme)
        except ScopeError as e:
            raise self._scope_error(e, expr.name)

    def _evaluate_assign(self, expr: Assign) -> Value:
        """Assign to the nearest existing variable; the expression's value is the assigned value."""
        if expr.name.type != TokenType.IDENTIFIER:
            raise error_invalid_assign_target(expr.name)
        value = self.evaluate(expr.value)
        try:
            self.environment.assign(expr.name.lexeme, value)
        except ScopeError as e:
            raise self._scope_error(e, expr.name)
        return value

    def _evaluate_unary(self, expr: Unary) -> Value:
        operator = expr.operator
        if operator.type == OperatorType.MINUS:
            operand = self.evaluate(expr.operand)
            if not operand.is_number:
                raise error_invalid_unary_operator_for_value(operator, operand)
            return number_val(-operand.data)
        if operator.type == OperatorType.BANG:
            operand = self.evaluate(expr.operand)
            return bool_val(not operand.is_truthy())
        raise error_invalid_unary_operator(operator)

    def _evaluate_binary(self, left: Value, operator: Operator, right: Value) -> Value:
        kind = operator.type

        if kind == OperatorType.PLUS:
            if left.is_number and right.is_number:
                return number_val(left.data + right.data)
            # Anything else concatenates the printed forms
            return string_val(left.stringify() + right.stringify())

        if kind in ARITHMETIC:
            if not (left.is_number and right.is_number):
                raise error_invalid_operands(operator)
            return number_val(ARITHMETIC[kind](left.data, right.data))

        if kind in COMPARISON:
            if not (left.is_number and right.is_number):
                raise error_invalid_operands(operator)
            return bool_val(COMPARISON[kind](left.data, right.data))

        if kind == OperatorType.EQUAL_EQUAL:
            return bool_val(values_equal(left, right))
        if kind == OperatorType.BANG_EQUAL:
            return bool_val(not values_equal(left, right))

        if kind == OperatorType.DOT:
            raise NotImplementedError("property access is not supported")
        raise RuntimeError(f"'{operator}' cannot join two values")

    @staticmethod
    def _scope_error(error: ScopeError, token: Token) -> LoxRuntimeError:
        """Attach the source token to an environment failure."""
        if isinstance(error, VariableAlreadyDefined):
            return error_variable_already_defined(error.name, token)
        return error_undefined_variable(error.name, token)
