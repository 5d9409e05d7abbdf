"""
Vira Code Generator

Generates bytecode from an AST in a single pass.
"""

import logging
from typing import Optional

from .tokens import TokenType
from .ast import *
from .bytecode import Bytecode, OpCode
from .config import CompilerOptions
from .errors import CompileError

logger = logging.getLogger(__name__)


BINARY_OPS = {
    TokenType.PLUS: OpCode.ADD,
    TokenType.MINUS: OpCode.SUB,
    TokenType.STAR: OpCode.MUL,
    TokenType.SLASH: OpCode.DIV,
}


class CodeGenerator(ASTVisitor):
    """Generates bytecode from an AST."""

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()
        self.bytecode = Bytecode()

    def generate(self, program: Program) -> Bytecode:
        """
        Generate bytecode from a program AST.

        Raises:
            CompileError: For nodes the generator cannot lower
        """
        if not isinstance(program, Program):
            raise CompileError(f"Expected a Program, got {type(program).__name__}")

        self.bytecode = Bytecode()

        program.accept(self)

        # Add halt instruction
        self.bytecode.emit(OpCode.HALT)

        logger.debug(
            "Generated %d instructions (%d bytes), %d declared names",
            len(self.bytecode.instructions), self.bytecode.code_size,
            len(self.bytecode.globals)
        )
        return self.bytecode

    def compile_node(self, node: ASTNode) -> None:
        if not isinstance(node, ASTNode):
            raise CompileError(f"Unsupported AST node: {type(node).__name__}")
        node.accept(self)

    # =========================================================================
    # Expression Visitors
    # =========================================================================

    def visit_number(self, node: NumberExpr) -> None:
        self.bytecode.emit(OpCode.PUSH_NUM, float(node.value), node.token.line)

    def visit_string(self, node: StringExpr) -> None:
        self.bytecode.emit(OpCode.PUSH_STR, node.value, node.token.line)

    def visit_identifier(self, node: IdentifierExpr) -> None:
        self.bytecode.emit(OpCode.LOAD, node.name, node.token.line)

    def visit_binary(self, node: BinaryExpr) -> None:
        """
        Generate code for binary expression: left, right, operator.

        The left spine is walked iteratively, so long left-associative
        chains such as `1 + 1 + ... + 1` do not recurse per operator.
        """
        chain = []
        while isinstance(node, BinaryExpr):
            op = node.operator
            if op.type not in BINARY_OPS:
                raise CompileError(
                    f"Unknown binary operator: {op.lexeme!r}", op.line, op.column, op.length
                )
            chain.append(node)
            node = node.left

        self.compile_node(node)
        for binary in reversed(chain):
            self.compile_node(binary.right)
            self.bytecode.emit(BINARY_OPS[binary.operator.type], line=binary.operator.line)

    def visit_call(self, node: CallExpr) -> None:
        """Generate code for function call: callee, arguments in order, CALL."""
        if not isinstance(node.callee, IdentifierExpr):
            raise CompileError(
                "Only named functions can be called",
                node.paren.line, node.paren.column, node.paren.length
            )

        self.compile_node(node.callee)
        for arg in node.arguments:
            self.compile_node(arg)

        self.bytecode.emit(OpCode.CALL, len(node.arguments), node.paren.line)

    # =========================================================================
    # Statement Visitors
    # =========================================================================

    def visit_expression_stmt(self, node: ExpressionStmt) -> None:
        """Generate code for expression statement, discarding its value."""
        self.compile_node(node.expression)
        self.bytecode.emit(OpCode.POP)

    def visit_var_decl(self, node: VarDeclStmt) -> None:
        """Generate code for variable declaration."""
        line = node.name.line

        if node.initializer is not None:
            self.compile_node(node.initializer)
        else:
            self.bytecode.emit(OpCode.PUSH_NUM, 0.0, line)

        self.bytecode.add_global(node.name.lexeme)
        self.bytecode.emit(OpCode.STORE, node.name.lexeme, line)

    def visit_function_decl(self, node: FunctionDeclStmt) -> None:
        """
        Generate code for function declaration.

        The body follows the FUNCTION header inline and ends in RETURN. A
        trailing expression statement supplies the return value, otherwise
        the function returns 0.
        """
        line = node.name.line
        func_name = node.name.lexeme

        seen = set()
        for param in node.params:
            if param.lexeme in seen:
                raise CompileError(
                    f"Duplicate parameter {param.lexeme!r} in function {func_name!r}",
                    param.line, param.column, param.length
                )
            seen.add(param.lexeme)

        self.bytecode.add_global(func_name)
        header = self.bytecode.emit_function(
            func_name, tuple(param.lexeme for param in node.params), line
        )

        body = node.body
        for stmt in body[:-1]:
            self.compile_node(stmt)

        if body and isinstance(body[-1], ExpressionStmt):
            self.compile_node(body[-1].expression)
        else:
            if body:
                self.compile_node(body[-1])
            self.bytecode.emit(OpCode.PUSH_NUM, 0.0, line)

        self.bytecode.emit(OpCode.RETURN, line=line)
        self.bytecode.patch_function(header)

        logger.debug("Compiled function %s/%d", func_name, len(node.params))

    def visit_write(self, node: WriteStmt) -> None:
        self.compile_node(node.expression)
        self.bytecode.emit(OpCode.WRITE, line=node.keyword.line)

    def visit_import(self, node: ImportStmt) -> None:
        """Validate an import marker; imports emit no code."""
        if not self.options.accepts_library(node.library):
            token = node.token
            raise CompileError(
                f"Unknown library: {node.library!r}", token.line, token.column, token.length
            )
        logger.debug("Import of %r accepted", node.library)

    def visit_program(self, node: Program) -> None:
        for stmt in node.statements:
            self.compile_node(stmt)
