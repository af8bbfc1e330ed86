"""
Abstract Syntax Tree (AST) node definitions for treelox.

The parser produces a list of Statement nodes; the interpreter walks them
directly. `for` loops have no node of their own, the parser desugars them
into a Block holding the initializer and a While.

Two printers live here as well:
- SourcePrinter renders a tree back to canonical, re-parseable source
  (also used by ``str()`` on any node)
- PrintVisitor dumps the node structure for debugging (``print_ast``)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Union
from abc import ABC

from .tokens import Token, TokenType
from .values import Value, ValueType, format_number
from .errors import error_invalid_operator_token


# =============================================================================
# Operators
# =============================================================================

class OperatorType(Enum):
    """Operator-shaped token kinds, valued by their spelling."""
    DOT = "."
    MINUS = "-"
    PLUS = "+"
    SLASH = "/"
    STAR = "*"
    BANG = "!"
    BANG_EQUAL = "!="
    EQUAL = "="
    EQUAL_EQUAL = "=="
    GREATER = ">"
    GREATER_EQUAL = ">="
    LESS = "<"
    LESS_EQUAL = "<="


_OPERATOR_TOKENS = {
    TokenType.DOT: OperatorType.DOT,
    TokenType.MINUS: OperatorType.MINUS,
    TokenType.PLUS: OperatorType.PLUS,
    TokenType.SLASH: OperatorType.SLASH,
    TokenType.STAR: OperatorType.STAR,
    TokenType.BANG: OperatorType.BANG,
    TokenType.BANG_EQUAL: OperatorType.BANG_EQUAL,
    TokenType.EQUAL: OperatorType.EQUAL,
    TokenType.EQUAL_EQUAL: OperatorType.EQUAL_EQUAL,
    TokenType.GREATER: OperatorType.GREATER,
    TokenType.GREATER_EQUAL: OperatorType.GREATER_EQUAL,
    TokenType.LESS: OperatorType.LESS,
    TokenType.LESS_EQUAL: OperatorType.LESS_EQUAL,
}


@dataclass(frozen=True)
class Operator:
    """An operator together with its source position."""
    type: OperatorType
    line: int
    column: int

    @classmethod
    def from_token(cls, token: Token) -> "Operator":
        """Narrow an operator token; raises ParserError (E102) for anything else."""
        operator_type = _OPERATOR_TOKENS.get(token.type)
        if operator_type is None:
            raise error_invalid_operator_token(token)
        return cls(operator_type, token.line, token.column)

    def __str__(self) -> str:
        return self.type.value


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)

    def __str__(self) -> str:
        return SourcePrinter().format(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Assign(Expression):
    """Assignment to an existing variable (e.g., a = 1). Evaluates to the value."""
    name: Token
    value: Expression


@dataclass
class Binary(Expression):
    """A binary operation (e.g., a + b)."""
    left: Expression
    operator: Operator
    right: Expression


@dataclass
class Grouping(Expression):
    """A parenthesized expression."""
    inner: Expression


@dataclass
class Literal(Expression):
    """A literal value (number, string, boolean, nil)."""
    value: Value


@dataclass
class Unary(Expression):
    """A prefix operation (e.g., -n, !x)."""
    operator: Operator
    operand: Expression


@dataclass
class Variable(Expression):
    """A variable reference."""
    name: Token


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class Block(Statement):
    """A brace-delimited block; opens a new scope when executed."""
    statements: List[Statement] = field(default_factory=list)


@dataclass
class ExpressionStatement(Statement):
    """An expression evaluated for its side effects."""
    expression: Expression


@dataclass
class Print(Statement):
    """print <expression>;"""
    expression: Expression


@dataclass
class VariableDeclaration(Statement):
    """var <name> [= <initializer>];"""
    name: Token
    initializer: Optional[Expression] = None


@dataclass
class If(Statement):
    """if (<condition>) <then_branch> [else <else_branch>]"""
    condition: Expression
    then_branch: Statement
    else_branch: Optional[Statement] = None


@dataclass
class While(Statement):
    """while (<condition>) <body>"""
    condition: Expression
    body: Statement


# =============================================================================
# Visitor Helpers
# =============================================================================

class SourcePrinter(AstVisitor):
    """
    Renders nodes back to source text that parses to an equivalent tree.

    Binary and unary expressions are fully parenthesized, so the re-parsed
    tree gains Grouping nodes but evaluates identically.
    """

    INDENT = "    "

    def __init__(self):
        self.level = 0

    def format(self, node: AstNode) -> str:
        return node.accept(self)

    def format_program(self, statements: List[Statement]) -> str:
        return "\n".join(self.format(stmt) for stmt in statements)

    def _pad(self) -> str:
        return self.INDENT * self.level

    # --- expressions ---

    def visit_Assign(self, node: Assign) -> str:
        return f"{node.name.lexeme} = {self.format(node.value)}"

    def visit_Binary(self, node: Binary) -> str:
        return f"({self.format(node.left)} {node.operator} {self.format(node.right)})"

    def visit_Grouping(self, node: Grouping) -> str:
        return f"({self.format(node.inner)})"

    def visit_Literal(self, node: Literal) -> str:
        value = node.value
        if value.type == ValueType.STRING:
            return f'"{value.data}"'
        if value.type == ValueType.NUMBER:
            return _number_source(value.data)
        return value.stringify()

    def visit_Unary(self, node: Unary) -> str:
        return f"({node.operator}{self.format(node.operand)})"

    def visit_Variable(self, node: Variable) -> str:
        return node.name.lexeme

    # --- statements ---

    def visit_Block(self, node: Block) -> str:
        if not node.statements:
            return "{}"
        self.level += 1
        try:
            lines = [self._pad() + self.format(stmt) for stmt in node.statements]
        finally:
            self.level -= 1
        return "{\n" + "\n".join(lines) + "\n" + self._pad() + "}"

    def visit_ExpressionStatement(self, node: ExpressionStatement) -> str:
        return f"{self.format(node.expression)};"

    def visit_Print(self, node: Print) -> str:
        return f"print {self.format(node.expression)};"

    def visit_VariableDeclaration(self, node: VariableDeclaration) -> str:
        if node.initializer is None:
            return f"var {node.name.lexeme};"
        return f"var {node.name.lexeme} = {self.format(node.initializer)};"

    def visit_If(self, node: If) -> str:
        then_branch = node.then_branch
        if node.else_branch is not None and isinstance(then_branch, If):
            # Braces keep the else attached to this if when re-parsed
            then_branch = Block([then_branch])
        text = f"if ({self.format(node.condition)}) {self.format(then_branch)}"
        if node.else_branch is not None:
            text += f" else {self.format(node.else_branch)}"
        return text

    def visit_While(self, node: While) -> str:
        return f"while ({self.format(node.condition)}) {self.format(node.body)}"


def _number_source(x: float) -> str:
    if x != x:
        return "(0 / 0)"
    if x in (float("inf"), float("-inf")):
        return "(1 / 0)" if x > 0 else "(-1 / 0)"
    if x < 0 or (x == 0.0 and str(x).startswith("-")):
        return f"(-{format_number(-x)})"
    return format_number(x)


def format_source(node: Union[AstNode, List[Statement]]) -> str:
    """Render a node or a whole program as canonical source."""
    if isinstance(node, list):
        return SourcePrinter().format_program(node)
    return SourcePrinter().format(node)


class PrintVisitor(AstVisitor):
    """Debug visitor that dumps the AST structure."""

    def __init__(self, indent: int = 0, lines: Optional[List[str]] = None):
        self.indent = indent
        self.lines = lines if lines is not None else []

    def _print(self, text: str) -> None:
        self.lines.append("  " * self.indent + text)

    def _child(self) -> "PrintVisitor":
        return PrintVisitor(self.indent + 2, self.lines)

    def generic_visit(self, node: AstNode) -> None:
        self._print(f"{node.__class__.__name__}")
        for name, value in node.__dict__.items():
            if isinstance(value, AstNode):
                self._print(f"  {name}:")
                self._child().generic_visit(value)
            elif isinstance(value, list):
                self._print(f"  {name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        self._child().generic_visit(item)
                    else:
                        self._print(f"    {item!r}")
                self._print("  ]")
            elif isinstance(value, Token):
                self._print(f"  {name}: {value} @ {value.line}:{value.column}")
            elif isinstance(value, Operator):
                self._print(f"  {name}: '{value}' @ {value.line}:{value.column}")
            else:
                self._print(f"  {name}: {value!r}")


def dump_ast(node: Union[AstNode, List[Statement]]) -> str:
    """Debug dump of a node or a whole program."""
    visitor = PrintVisitor()
    nodes = node if isinstance(node, list) else [node]
    for item in nodes:
        visitor.generic_visit(item)
    return "\n".join(visitor.lines)


def print_ast(node: Union[AstNode, List[Statement]]) -> None:
    """Print an AST node for debugging."""
    print(dump_ast(node))
