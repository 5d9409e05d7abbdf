"""
Vira Lexer

Tokenizes Vira source code into a stream of positioned tokens.
"""

from typing import Any, List
from .tokens import Token, TokenType, KEYWORDS, PUNCTUATION
from .errors import LexicalError


def _is_digit(c: str) -> bool:
    return '0' <= c <= '9'


def _is_name_start(c: str) -> bool:
    return c.isalpha() or c == '_'


def _is_name_part(c: str) -> bool:
    return c.isalnum() or c == '_'


class Lexer:
    """Lexical analyzer for Vira source code."""

    def __init__(self, source: str):
        """
        Initialize the lexer.

        Args:
            source: Vira source code to tokenize
        """
        self.source = source
        self.start = 0          # Start of current token
        self.current = 0        # Current position
        self.line = 1           # Current line number
        self.column = 1         # Current column number
        self.start_line = 1
        self.start_column = 1

    def tokenize(self) -> List[Token]:
        """
        Tokenize the entire source code for the parser.

        Comments are dropped; the first unrecognised character is a
        lexical failure.

        Returns:
            List of tokens ending with EOF

        Raises:
            LexicalError: On an unknown character or unterminated string
        """
        tokens = []

        while True:
            token = self.next_token()
            if token.type == TokenType.COMMENT:
                continue
            if token.type == TokenType.UNKNOWN:
                raise LexicalError(
                    f"Unexpected character: {token.lexeme!r}",
                    token.line, token.column, token.length
                )
            tokens.append(token)
            if token.type == TokenType.EOF:
                return tokens

    def next_token(self) -> Token:
        """Scan and return the next token, including comments."""
        self.skip_whitespace()

        self.start = self.current
        self.start_line = self.line
        self.start_column = self.column

        if self.is_at_end():
            return self.make_token(TokenType.EOF)

        c = self.advance()

        if _is_digit(c):
            return self.number()
        if _is_name_start(c):
            return self.identifier()
        if c == '"':
            return self.string()
        if c == '<':
            return self.comment()
        if c == ':':
            return self.colon_or_import()
        if c in PUNCTUATION:
            return self.make_token(PUNCTUATION[c])

        return self.make_token(TokenType.UNKNOWN)

    def advance(self) -> str:
        """Consume and return the current character."""
        c = self.source[self.current]
        self.current += 1
        if c == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return c

    def peek(self) -> str:
        """Return the current character without consuming it."""
        if self.is_at_end():
            return '\0'
        return self.source[self.current]

    def is_at_end(self) -> bool:
        """Check if we've reached the end of the source."""
        return self.current >= len(self.source)

    def skip_whitespace(self) -> None:
        while not self.is_at_end() and self.peek() in ' \t\r\n':
            self.advance()

    def make_token(self, type: TokenType, value: Any = None) -> Token:
        """Build a token spanning from the token start to the cursor."""
        lexeme = self.source[self.start:self.current]
        return Token(type, lexeme, value, self.start_line, self.start_column)

    def number(self) -> Token:
        """Scan a run of decimal digits."""
        while _is_digit(self.peek()):
            self.advance()

        value = float(self.source[self.start:self.current])
        return self.make_token(TokenType.NUMBER, value)

    def identifier(self) -> Token:
        """Scan an identifier or keyword."""
        while _is_name_part(self.peek()):
            self.advance()

        text = self.source[self.start:self.current]
        return self.make_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    def string(self) -> Token:
        """Scan a string literal; a backslash takes the next character as is."""
        value = []

        while True:
            if self.is_at_end():
                raise LexicalError(
                    "Unterminated string", self.start_line, self.start_column,
                    self.current - self.start
                )
            c = self.advance()
            if c == '"':
                break
            if c == '\\':
                if self.is_at_end():
                    continue
                c = self.advance()
            value.append(c)

        return self.make_token(TokenType.STRING, ''.join(value))

    def comment(self) -> Token:
        """Scan a comment running to the end of the line."""
        while self.peek() != '\n' and not self.is_at_end():
            self.advance()

        return self.make_token(TokenType.COMMENT, self.source[self.start + 1:self.current])

    def colon_or_import(self) -> Token:
        """Scan ':name:' as an import marker, otherwise a lone colon."""
        if not _is_name_start(self.peek()):
            return self.make_token(TokenType.COLON)

        saved = (self.current, self.line, self.column)
        while _is_name_part(self.peek()):
            self.advance()

        if self.peek() == ':':
            name = self.source[self.start + 1:self.current]
            self.advance()
            return self.make_token(TokenType.IMPORT, name)

        # Not a marker: rescan the name as ordinary tokens.
        self.current, self.line, self.column = saved
        return self.make_token(TokenType.COLON)
