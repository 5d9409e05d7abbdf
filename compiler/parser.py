"""
Vira Parser

Recursive descent parser that produces an AST from tokens.
"""

from typing import List
from .tokens import Token, TokenType
from .ast import *
from .errors import SyntaxError


# Deepest nesting of groups, calls, unary minus and function bodies
MAX_NESTING = 100


class Parser:
    """Recursive descent parser for Vira."""

    def __init__(self, tokens: List[Token]):
        """
        Initialize the parser.

        Args:
            tokens: Filtered token list from Lexer.tokenize(), ending in EOF
        """
        self.tokens = tokens
        self.current = 0
        self.depth = 0

    def parse(self) -> Program:
        """
        Parse the token stream into an AST.

        Returns:
            Program AST node

        Raises:
            SyntaxError: At the first unexpected or missing token
        """
        statements = []

        while not self.is_at_end():
            statements.append(self.declaration())

        return Program(tuple(statements))

    # =========================================================================
    # Declarations
    # =========================================================================

    def declaration(self) -> Statement:
        """Parse a declaration or statement."""
        if self.match(TokenType.LET):
            return self.var_declaration()
        if self.match(TokenType.DEF):
            return self.function_declaration()
        if self.match(TokenType.IMPORT):
            return self.import_statement()
        return self.statement()

    def var_declaration(self) -> VarDeclStmt:
        """Parse a variable declaration."""
        name = self.consume(TokenType.IDENTIFIER, "Expected variable name")

        initializer = None
        if self.match(TokenType.ASSIGN):
            initializer = self.expression()

        self.consume(TokenType.SEMICOLON, "Expected ';' after variable declaration")
        return VarDeclStmt(name, initializer)

    def function_declaration(self) -> FunctionDeclStmt:
        """Parse a function declaration."""
        name = self.consume(TokenType.IDENTIFIER, "Expected function name")

        self.consume(TokenType.LPAREN, "Expected '(' after function name")
        params = self.parameters()
        self.consume(TokenType.RPAREN, "Expected ')' after parameters")

        self.consume(TokenType.LBRACE, "Expected '{' before function body")
        self.enter()
        body = []
        while not self.check(TokenType.RBRACE) and not self.is_at_end():
            body.append(self.declaration())
        self.depth -= 1
        self.consume(TokenType.RBRACE, "Expected '}' after function body")

        return FunctionDeclStmt(name, tuple(params), tuple(body))

    def parameters(self) -> List[Token]:
        """Parse function parameters."""
        params = []

        if not self.check(TokenType.RPAREN):
            params.append(self.consume(TokenType.IDENTIFIER, "Expected parameter name"))

            while self.match(TokenType.COMMA):
                params.append(self.consume(TokenType.IDENTIFIER, "Expected parameter name"))

        return params

    def import_statement(self) -> ImportStmt:
        """Parse an import marker statement."""
        marker = self.previous()
        self.consume(TokenType.SEMICOLON, "Expected ';' after import")
        return ImportStmt(marker.value, marker)

    # =========================================================================
    # Statements
    # =========================================================================

    def statement(self) -> Statement:
        """Parse a statement."""
        if self.match(TokenType.WRITE):
            return self.write_statement()

        return self.expression_statement()

    def write_statement(self) -> WriteStmt:
        """Parse a write statement."""
        keyword = self.previous()
        expr = self.expression()
        self.consume(TokenType.SEMICOLON, "Expected ';' after write")
        return WriteStmt(keyword, expr)

    def expression_statement(self) -> ExpressionStmt:
        """Parse an expression statement."""
        expr = self.expression()
        self.consume(TokenType.SEMICOLON, "Expected ';' after expression")
        return ExpressionStmt(expr)

    # =========================================================================
    # Expressions
    # =========================================================================

    def expression(self) -> Expression:
        """Parse an expression."""
        self.enter()
        expr = self.term()
        self.depth -= 1
        return expr

    def term(self) -> Expression:
        """Parse addition/subtraction."""
        expr = self.factor()

        while self.match(TokenType.PLUS, TokenType.MINUS):
            operator = self.previous()
            right = self.factor()
            expr = BinaryExpr(expr, operator, right)

        return expr

    def factor(self) -> Expression:
        """Parse multiplication/division."""
        expr = self.unary()

        while self.match(TokenType.STAR, TokenType.SLASH):
            operator = self.previous()
            right = self.unary()
            expr = BinaryExpr(expr, operator, right)

        return expr

    def unary(self) -> Expression:
        """Parse unary minus as `0 - operand`."""
        if self.match(TokenType.MINUS):
            operator = self.previous()
            self.enter()
            operand = self.unary()
            self.depth -= 1
            return BinaryExpr(NumberExpr(0.0, operator), operator, operand)

        return self.primary()

    def primary(self) -> Expression:
        """Parse primary expressions."""
        if self.match(TokenType.NUMBER):
            return NumberExpr(self.previous().value, self.previous())
        if self.match(TokenType.STRING):
            return StringExpr(self.previous().value, self.previous())

        # Identifier or call
        if self.match(TokenType.IDENTIFIER):
            identifier = IdentifierExpr(self.previous().lexeme, self.previous())
            if self.match(TokenType.LPAREN):
                return self.finish_call(identifier)
            return identifier

        # Grouped expression
        if self.match(TokenType.LPAREN):
            expr = self.expression()
            self.consume(TokenType.RPAREN, "Expected ')' after expression")
            return expr

        token = self.peek()
        raise SyntaxError(
            f"Expected expression, got {self.describe(token)}",
            token.line, token.column, token.length
        )

    def finish_call(self, callee: IdentifierExpr) -> CallExpr:
        """Parse function call arguments."""
        paren = self.previous()
        arguments = []

        if not self.check(TokenType.RPAREN):
            arguments.append(self.expression())
            while self.match(TokenType.COMMA):
                arguments.append(self.expression())

        self.consume(TokenType.RPAREN, "Expected ')' after arguments")
        return CallExpr(callee, tuple(arguments), paren)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def match(self, *types: TokenType) -> bool:
        """Check if current token matches any of the given types and advance."""
        for type in types:
            if self.check(type):
                self.advance()
                return True
        return False

    def check(self, type: TokenType) -> bool:
        """Check if current token is of given type."""
        if self.is_at_end():
            return False
        return self.peek().type == type

    def advance(self) -> Token:
        """Consume and return the current token."""
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def is_at_end(self) -> bool:
        """Check if we've reached the end of tokens."""
        return self.peek().type == TokenType.EOF

    def peek(self) -> Token:
        """Return the current token."""
        return self.tokens[self.current]

    def previous(self) -> Token:
        """Return the previous token."""
        return self.tokens[self.current - 1]

    def enter(self) -> None:
        """Open one nesting level, rejecting input nested too deeply to lower."""
        self.depth += 1
        if self.depth > MAX_NESTING:
            token = self.peek()
            raise SyntaxError(
                f"Nesting exceeds {MAX_NESTING} levels",
                token.line, token.column, token.length
            )

    def consume(self, type: TokenType, message: str) -> Token:
        """Consume a token of the expected type or raise an error."""
        if self.check(type):
            return self.advance()

        token = self.peek()
        raise SyntaxError(
            f"{message}, got {self.describe(token)}",
            token.line, token.column, token.length
        )

    @staticmethod
    def describe(token: Token) -> str:
        if token.type == TokenType.EOF:
            return "end of input"
        return repr(token.lexeme)
