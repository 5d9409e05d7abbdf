"""
Vira Errors

Exception classes shared by the compiler, the artifact codec and the VM.
"""

from typing import Optional


class ViraError(Exception):
    """Base exception for all Vira errors."""

    def __init__(self, message: str, line: Optional[int] = None,
                 column: Optional[int] = None, length: int = 1,
                 filename: Optional[str] = None, offset: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        self.length = max(1, length)
        self.filename = filename
        self.offset = offset
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with location information."""
        parts = []

        if self.filename:
            parts.append(self.filename)

        if self.line is not None:
            if parts:
                parts.append(f"{self.line}")
            else:
                parts.append(f"line {self.line}")

            if self.column is not None:
                parts.append(f"{self.column}")
        elif self.offset is not None:
            parts.append(f"offset {self.offset:#06x}")

        if parts:
            return f"{':'.join(parts)}: {self.message}"
        return self.message

    def with_filename(self, filename: str) -> 'ViraError':
        """Attach a filename, returning self for re-raising."""
        self.filename = filename
        self.args = (self._format_message(),)
        return self


class LexicalError(ViraError):
    """Raised for unterminated strings and unrecognised characters."""
    pass


class SyntaxError(ViraError):
    """Raised for unexpected or missing tokens during parsing."""
    pass


class CompileError(ViraError):
    """Raised for AST shapes the code generator rejects."""
    pass


class ArtifactError(ViraError):
    """Raised for truncated or malformed bytecode artifacts."""
    pass


class RuntimeError(ViraError):
    """Raised for faults during bytecode execution."""
    pass


class TypeError(RuntimeError):
    """Raised when an operator is applied to incompatible values."""
    pass


class NameError(RuntimeError):
    """Raised when loading a name that was never bound."""
    pass


class ArgumentError(RuntimeError):
    """Raised for function argument count mismatches."""
    pass
