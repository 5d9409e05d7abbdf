"""
Vira Abstract Syntax Tree

Defines AST node classes for the Vira language.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Any, Tuple
from .tokens import Token


# =============================================================================
# Base Classes
# =============================================================================

class ASTNode(ABC):
    """Base class for all AST nodes."""

    @abstractmethod
    def accept(self, visitor: 'ASTVisitor') -> Any:
        """Accept a visitor for traversal."""
        pass


class Expression(ASTNode):
    """Base class for expression nodes."""
    pass


class Statement(ASTNode):
    """Base class for statement nodes."""
    pass


# =============================================================================
# Expressions
# =============================================================================

@dataclass(frozen=True)
class NumberExpr(Expression):
    """Number literal."""
    value: float
    token: Token

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_number(self)


@dataclass(frozen=True)
class StringExpr(Expression):
    """String literal."""
    value: str
    token: Token

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_string(self)


@dataclass(frozen=True)
class IdentifierExpr(Expression):
    """Variable or function name reference."""
    name: str
    token: Token

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_identifier(self)


@dataclass(frozen=True)
class BinaryExpr(Expression):
    """Binary arithmetic expression. Unary minus is `0 - operand`."""
    left: Expression
    operator: Token
    right: Expression

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_binary(self)


@dataclass(frozen=True)
class CallExpr(Expression):
    """Function call expression."""
    callee: IdentifierExpr
    arguments: Tuple[Expression, ...]
    paren: Token  # For error reporting

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_call(self)


# =============================================================================
# Statements
# =============================================================================

@dataclass(frozen=True)
class ExpressionStmt(Statement):
    """Expression evaluated for its side effects."""
    expression: Expression

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_expression_stmt(self)


@dataclass(frozen=True)
class VarDeclStmt(Statement):
    """Variable declaration statement."""
    name: Token
    initializer: Optional[Expression]

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_var_decl(self)


@dataclass(frozen=True)
class FunctionDeclStmt(Statement):
    """Function declaration statement."""
    name: Token
    params: Tuple[Token, ...]
    body: Tuple[Statement, ...]

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_function_decl(self)


@dataclass(frozen=True)
class WriteStmt(Statement):
    """Write a value to standard output."""
    keyword: Token
    expression: Expression

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_write(self)


@dataclass(frozen=True)
class ImportStmt(Statement):
    """Library import marker (`:name:;`)."""
    library: str
    token: Token

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_import(self)


@dataclass(frozen=True)
class Program(ASTNode):
    """Root node of the AST."""
    statements: Tuple[Statement, ...]

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_program(self)


# =============================================================================
# Visitor Interface
# =============================================================================

class ASTVisitor(ABC):
    """Visitor interface for AST traversal."""

    # Expressions
    @abstractmethod
    def visit_number(self, node: NumberExpr) -> Any:
        pass

    @abstractmethod
    def visit_string(self, node: StringExpr) -> Any:
        pass

    @abstractmethod
    def visit_identifier(self, node: IdentifierExpr) -> Any:
        pass

    @abstractmethod
    def visit_binary(self, node: BinaryExpr) -> Any:
        pass

    @abstractmethod
    def visit_call(self, node: CallExpr) -> Any:
        pass

    # Statements
    @abstractmethod
    def visit_expression_stmt(self, node: ExpressionStmt) -> Any:
        pass

    @abstractmethod
    def visit_var_decl(self, node: VarDeclStmt) -> Any:
        pass

    @abstractmethod
    def visit_function_decl(self, node: FunctionDeclStmt) -> Any:
        pass

    @abstractmethod
    def visit_write(self, node: WriteStmt) -> Any:
        pass

    @abstractmethod
    def visit_import(self, node: ImportStmt) -> Any:
        pass

    @abstractmethod
    def visit_program(self, node: Program) -> Any:
        pass
