"""
treelox runtime - tree-walking evaluation.

This module provides:
- Interpreter: Executes parsed statements
- Environment: Scope chain of variable frames
- ErrorReporter and its implementations: receive runtime errors
"""

from .environment import (
    Environment,
    Frame,
    ScopeError,
    VariableAlreadyDefined,
    UndefinedVariable,
    GlobalScopeExit,
)

from .interpreter import (
    Interpreter,
    ErrorReporter,
    DiagnosticReporter,
    StreamReporter,
    values_equal,
)

__all__ = [
    "Environment",
    "Frame",
    "ScopeError",
    "VariableAlreadyDefined",
    "UndefinedVariable",
    "GlobalScopeExit",
    "Interpreter",
    "ErrorReporter",
    "DiagnosticReporter",
    "StreamReporter",
    "values_equal",
]
