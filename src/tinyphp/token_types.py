"""
Token Types for the tinyphp Parser

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Literals
    INT = auto()
    STRING = auto()
    IDENT = auto()

    # Keywords
    FUNCTION = auto()
    IF = auto()
    ELSE = auto()
    FOREACH = auto()
    AS = auto()
    USE = auto()
    NAMESPACE = auto()

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    MOD = auto()
    DOT = auto()  # . (concatenation)

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()

    # Logical
    AND = auto()
    OR = auto()
    NOT = auto()  # !

    # Assignment
    ASSIGN = auto()

    # Member access
    ARROW = auto()  # ->

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    COMMA = auto()
    SEMI = auto()
    COLON = auto()
    DOLLAR = auto()  # $
    RANGE = auto()  # ..
    DOUBLE_ARROW = auto()  # =>
    BACKSLASH = auto()  # namespace separator

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Tok:
    """Token with position info"""

    type: TT
    value: Any
    line: int = 0
    column: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
