"""
Vira Compiler Configuration
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional


# File extension of compiled artifacts
DEFAULT_EXTENSION = ".object"

# Libraries an import marker may name
KNOWN_LIBRARIES = frozenset({"std"})


@dataclass
class CompilerOptions:
    """Options controlling code generation."""

    # None accepts any library name
    known_libraries: Optional[FrozenSet[str]] = field(default_factory=lambda: KNOWN_LIBRARIES)
    default_extension: str = DEFAULT_EXTENSION

    def accepts_library(self, name: str) -> bool:
        return self.known_libraries is None or name in self.known_libraries
