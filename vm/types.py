"""
Vira Runtime Types

Values held on the operand stack and in variable bindings.
"""

from typing import Any, Tuple
from dataclasses import dataclass
import math
import numpy as np


# Value kinds
TYPE_NUMBER = 0
TYPE_STRING = 1
TYPE_FUNCTION = 2

TYPE_NAMES = ['number', 'string', 'function']


@dataclass(frozen=True)
class Function:
    """A function defined by the running program."""

    name: str
    params: Tuple[str, ...]
    code_offset: int        # Byte offset of the body in the artifact

    @property
    def arity(self) -> int:
        return len(self.params)

    def __repr__(self) -> str:
        return f"Function({self.name}, arity={self.arity}, offset={self.code_offset})"


@dataclass(frozen=True)
class Value:
    """
    A Vira runtime value.

    Numbers are stored as numpy.float64 so arithmetic follows IEEE-754,
    including inf/NaN on division by zero. Values are immutable, so pushing
    or loading one never aliases mutable state.
    """

    type: int
    data: Any

    @classmethod
    def number(cls, value: float) -> 'Value':
        """Create a number value."""
        return cls(TYPE_NUMBER, np.float64(value))

    @classmethod
    def string(cls, value: str) -> 'Value':
        """Create a string value."""
        return cls(TYPE_STRING, value)

    @classmethod
    def function(cls, value: Function) -> 'Value':
        """Create a function value."""
        return cls(TYPE_FUNCTION, value)

    def to_python(self) -> Any:
        """Convert Value to a Python value."""
        if self.type == TYPE_NUMBER:
            return float(self.data)
        return self.data

    @property
    def type_name(self) -> str:
        return TYPE_NAMES[self.type]

    def is_number(self) -> bool:
        return self.type == TYPE_NUMBER

    def is_string(self) -> bool:
        return self.type == TYPE_STRING

    def is_function(self) -> bool:
        return self.type == TYPE_FUNCTION

    def __str__(self) -> str:
        if self.type == TYPE_NUMBER:
            return format_number(self.data)
        if self.type == TYPE_FUNCTION:
            return f"<function {self.data.name}>"
        return self.data

    def __repr__(self) -> str:
        return f"Value({self.type_name}, {self.data!r})"


def format_number(value: float) -> str:
    """
    Render a number the way WRITE prints it.

    Finite values print in positional notation with the shortest digits
    that round-trip, without a trailing fractional part when integral.
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    return np.format_float_positional(value, unique=True, trim='-')
