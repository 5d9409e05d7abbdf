"""
Vira Token Definitions

Defines all token types and the Token class for lexical analysis.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any


class TokenType(Enum):
    """All token types in Vira."""

    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENTIFIER = auto()

    # Keywords
    LET = auto()
    DEF = auto()
    WRITE = auto()

    # Operators
    PLUS = auto()          # +
    MINUS = auto()         # -
    STAR = auto()          # *
    SLASH = auto()         # /
    ASSIGN = auto()        # =

    # Delimiters
    LPAREN = auto()        # (
    RPAREN = auto()        # )
    LBRACE = auto()        # {
    RBRACE = auto()        # }
    COMMA = auto()         # ,
    COLON = auto()         # :
    SEMICOLON = auto()     # ;

    # Special
    IMPORT = auto()        # :name:
    COMMENT = auto()       # < ... end of line
    UNKNOWN = auto()
    EOF = auto()


# Keyword mapping
KEYWORDS = {
    'let': TokenType.LET,
    'def': TokenType.DEF,
    'write': TokenType.WRITE,
}


# Single-character tokens
PUNCTUATION = {
    '=': TokenType.ASSIGN,
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    ';': TokenType.SEMICOLON,
    ',': TokenType.COMMA,
}


@dataclass(frozen=True)
class Token:
    """Represents a single token from the source code."""

    type: TokenType
    lexeme: str
    value: Any
    line: int
    column: int

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.lexeme!r}, {self.value!r}, line={self.line})"
        return f"Token({self.type.name}, {self.lexeme!r}, line={self.line})"

    @property
    def length(self) -> int:
        """Source length of the token, at least one column."""
        return max(1, len(self.lexeme))
