"""
Vira Compiler Package

A Python-based compiler for the Vira scripting language.
Compiles Vira source code to bytecode artifacts for the stack VM.
"""

from typing import Optional

from .tokens import Token, TokenType
from .lexer import Lexer
from .ast import *
from .parser import Parser
from .bytecode import Bytecode, OpCode, Instruction, FunctionInfo
from .codegen import CodeGenerator
from .config import CompilerOptions, DEFAULT_EXTENSION
from .diagnostics import render_report, render_error
from .errors import (
    ViraError, LexicalError, SyntaxError, CompileError, ArtifactError,
)

__version__ = "0.1.0"
__all__ = [
    "Token",
    "TokenType",
    "Lexer",
    "Parser",
    "Bytecode",
    "OpCode",
    "Instruction",
    "FunctionInfo",
    "CodeGenerator",
    "CompilerOptions",
    "DEFAULT_EXTENSION",
    "render_report",
    "render_error",
    "ViraError",
    "LexicalError",
    "SyntaxError",
    "CompileError",
    "ArtifactError",
    "compile_source",
    "compile_file",
]


def compile_source(source: str, options: Optional[CompilerOptions] = None) -> Bytecode:
    """
    Compile Vira source code to bytecode.

    Args:
        source: Vira source code string
        options: Code generation options

    Returns:
        Bytecode object ready for serialization or execution

    Raises:
        LexicalError, SyntaxError, CompileError: If compilation fails
    """
    lexer = Lexer(source)
    tokens = lexer.tokenize()

    parser = Parser(tokens)
    ast = parser.parse()

    codegen = CodeGenerator(options)
    bytecode = codegen.generate(ast)

    return bytecode


def compile_file(filepath: str, options: Optional[CompilerOptions] = None) -> Bytecode:
    """
    Compile Vira source file to bytecode.

    Args:
        filepath: Path to .vira source file

    Returns:
        Bytecode object ready for serialization or execution
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        source = f.read()
    try:
        return compile_source(source, options)
    except ViraError as e:
        raise e.with_filename(str(filepath))
