"""
Vira Bytecode Format

Defines bytecode instructions, the compiled bytecode container and the
binary artifact codec shared by the compiler and the VM.
"""

from enum import IntEnum
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple
import struct

from .errors import ArtifactError


# Artifact header
MAGIC = b'VIRA'
VERSION = 1
HEADER_SIZE = len(MAGIC) + 1


class OpCode(IntEnum):
    """Vira VM opcodes."""

    PUSH_NUM = 0         # operand: f64
    PUSH_STR = 1         # operand: u32 length + utf-8 bytes
    ADD = 2
    SUB = 3
    MUL = 4
    DIV = 5
    STORE = 6            # operand: u32 length + name
    LOAD = 7             # operand: u32 length + name
    CALL = 8             # operand: argument count (u64)
    WRITE = 9
    HALT = 10
    POP = 11
    FUNCTION = 12        # operand: name, params, body length (u32)
    RETURN = 13


# Fixed payload sizes; None marks length-prefixed payloads
PAYLOAD_SIZES = {
    OpCode.PUSH_NUM: 8,
    OpCode.PUSH_STR: None,
    OpCode.ADD: 0,
    OpCode.SUB: 0,
    OpCode.MUL: 0,
    OpCode.DIV: 0,
    OpCode.STORE: None,
    OpCode.LOAD: None,
    OpCode.CALL: 8,
    OpCode.WRITE: 0,
    OpCode.HALT: 0,
    OpCode.POP: 0,
    OpCode.FUNCTION: None,
    OpCode.RETURN: 0,
}

TEXT_OPERANDS = (OpCode.PUSH_STR, OpCode.STORE, OpCode.LOAD)


@dataclass(frozen=True)
class FunctionInfo:
    """Header of a function whose body follows inline."""

    name: str
    params: Tuple[str, ...]
    code_length: int        # Length of the body in bytes

    @property
    def arity(self) -> int:
        return len(self.params)


@dataclass(frozen=True)
class Instruction:
    """A single abstract VM instruction."""

    opcode: OpCode
    operand: Any = None

    def __str__(self) -> str:
        if self.opcode == OpCode.FUNCTION:
            info = self.operand
            return f"{self.opcode.name:16s} {info.name}({', '.join(info.params)}) [{info.code_length} bytes]"
        if self.opcode in TEXT_OPERANDS:
            return f"{self.opcode.name:16s} {self.operand!r}"
        if self.operand is not None:
            return f"{self.opcode.name:16s} {self.operand}"
        return self.opcode.name


# =============================================================================
# Encoding
# =============================================================================

def _encode_text(text: str) -> bytes:
    encoded = text.encode('utf-8')
    return struct.pack('<I', len(encoded)) + encoded


def encode_instruction(instruction: Instruction) -> bytes:
    """Encode one instruction as its tag byte followed by its payload."""
    opcode = instruction.opcode
    output = bytearray([opcode])

    if opcode == OpCode.PUSH_NUM:
        output.extend(struct.pack('<d', instruction.operand))
    elif opcode in TEXT_OPERANDS:
        output.extend(_encode_text(instruction.operand))
    elif opcode == OpCode.CALL:
        output.extend(struct.pack('<Q', instruction.operand))
    elif opcode == OpCode.FUNCTION:
        info = instruction.operand
        output.extend(_encode_text(info.name))
        output.extend(struct.pack('<I', len(info.params)))
        for param in info.params:
            output.extend(_encode_text(param))
        output.extend(struct.pack('<I', info.code_length))

    return bytes(output)


def instruction_size(instruction: Instruction) -> int:
    """Encoded size of an instruction in bytes."""
    return len(encode_instruction(instruction))


# =============================================================================
# Decoding
# =============================================================================

class _Reader:
    """Bounds-checked reads over an artifact for one instruction."""

    def __init__(self, data: bytes, offset: int, start: int):
        self.data = data
        self.offset = offset
        self.start = start  # Offset of the instruction being decoded

    def take(self, size: int, what: str) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise ArtifactError(
                f"Truncated {what}: need {size} bytes, {len(self.data) - self.offset} left",
                offset=self.start
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def u32(self, what: str) -> int:
        return struct.unpack('<I', self.take(4, what))[0]

    def text(self, what: str) -> str:
        length = self.u32(f"{what} length")
        raw = self.take(length, what)
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ArtifactError(f"Invalid UTF-8 in {what}: {e.reason}", offset=self.start) from e


def decode_instruction(data: bytes, offset: int) -> Tuple[Instruction, int]:
    """
    Decode the instruction starting at offset.

    Args:
        data: Artifact bytes
        offset: Byte offset of the opcode tag

    Returns:
        The instruction and the offset just past it

    Raises:
        ArtifactError: On an unknown tag or a payload running past the buffer
    """
    if offset >= len(data):
        raise ArtifactError("Unexpected end of bytecode", offset=offset)

    tag = data[offset]
    try:
        opcode = OpCode(tag)
    except ValueError:
        raise ArtifactError(f"Unknown opcode: {tag}", offset=offset) from None

    reader = _Reader(data, offset + 1, offset)
    name = opcode.name

    if opcode == OpCode.PUSH_NUM:
        operand = struct.unpack('<d', reader.take(8, name))[0]
    elif opcode in TEXT_OPERANDS:
        operand = reader.text(name)
    elif opcode == OpCode.CALL:
        operand = struct.unpack('<Q', reader.take(8, name))[0]
    elif opcode == OpCode.FUNCTION:
        func_name = reader.text("function name")
        param_count = reader.u32("parameter count")
        params = tuple(reader.text("parameter name") for _ in range(param_count))
        code_length = reader.u32("function body length")
        operand = FunctionInfo(func_name, params, code_length)
    else:
        operand = None

    return Instruction(opcode, operand), reader.offset


def check_header(data: bytes) -> int:
    """Validate the artifact header, returning the offset of the first instruction."""
    if len(data) < HEADER_SIZE or data[:len(MAGIC)] != MAGIC:
        raise ArtifactError("Invalid bytecode magic number", offset=0)

    version = data[len(MAGIC)]
    if version != VERSION:
        raise ArtifactError(f"Unsupported bytecode version: {version}", offset=len(MAGIC))

    return HEADER_SIZE


# =============================================================================
# Container
# =============================================================================

@dataclass
class Bytecode:
    """Container for a compiled Vira program."""

    instructions: List[Instruction] = field(default_factory=list)
    globals: Dict[str, int] = field(default_factory=dict)

    # Debug information, not serialized
    line_numbers: List[int] = field(default_factory=list)  # Source line per instruction, 0 if unknown
    offsets: List[int] = field(default_factory=list)       # Byte offset per instruction
    code_size: int = 0

    def add_global(self, name: str) -> int:
        """Record a declared name, returning its index."""
        if name not in self.globals:
            self.globals[name] = len(self.globals)
        return self.globals[name]

    def emit(self, opcode: OpCode, operand: Any = None, line: int = 0) -> int:
        """Append an instruction, returning its index."""
        instruction = Instruction(opcode, operand)
        index = len(self.instructions)
        self.instructions.append(instruction)
        self.line_numbers.append(line)
        self.offsets.append(self.code_size)
        self.code_size += instruction_size(instruction)
        return index

    def emit_function(self, name: str, params: Tuple[str, ...], line: int = 0) -> int:
        """Emit a function header with a placeholder body length."""
        return self.emit(OpCode.FUNCTION, FunctionInfo(name, params, 0), line)

    def patch_function(self, index: int) -> None:
        """Patch a function header so its body ends at the current offset."""
        header = self.instructions[index]
        body_start = self.offsets[index] + instruction_size(header)
        info = header.operand
        self.instructions[index] = Instruction(
            OpCode.FUNCTION, FunctionInfo(info.name, info.params, self.code_size - body_start)
        )

    def serialize(self) -> bytes:
        """Serialize bytecode to the binary artifact format."""
        output = bytearray(MAGIC)
        output.append(VERSION)

        for instruction in self.instructions:
            output.extend(encode_instruction(instruction))

        return bytes(output)

    @classmethod
    def deserialize(cls, data: bytes) -> 'Bytecode':
        """
        Deserialize and validate a binary artifact.

        Raises:
            ArtifactError: On a bad header, truncated or unknown instructions,
                function bodies that overrun or lack RETURN, or a stream
                whose final instruction is not HALT
        """
        offset = check_header(data)
        bc = cls()
        body_ends: List[int] = []

        while offset < len(data):
            instruction, next_offset = decode_instruction(data, offset)

            if body_ends and next_offset > body_ends[-1]:
                raise ArtifactError("Instruction crosses function body boundary", offset=offset)

            bc.instructions.append(instruction)
            bc.offsets.append(offset - HEADER_SIZE)
            bc.line_numbers.append(0)

            if instruction.opcode == OpCode.FUNCTION:
                end = next_offset + instruction.operand.code_length
                if end > len(data) or (body_ends and end > body_ends[-1]):
                    raise ArtifactError(
                        f"Function body of {instruction.operand.name!r} overruns its container",
                        offset=offset
                    )
                body_ends.append(end)

            offset = next_offset
            if body_ends and offset == body_ends[-1]:
                body_ends.pop()
                if instruction.opcode != OpCode.RETURN or (body_ends and offset == body_ends[-1]):
                    raise ArtifactError("Function body does not end with RETURN", offset=offset)

        bc.code_size = len(data) - HEADER_SIZE

        if not bc.instructions or bc.instructions[-1].opcode != OpCode.HALT:
            raise ArtifactError("Bytecode does not end with HALT", offset=len(data))

        return bc

    def disassemble(self) -> str:
        """Disassemble bytecode to human-readable format."""
        lines = []
        lines.append("=== Vira Bytecode ===")
        lines.append("")

        lines.append("Globals:")
        for name, idx in self.globals.items():
            lines.append(f"  [{idx:4d}] {name}")
        lines.append("")

        lines.append("Code:")
        depth = 0
        body_ends: List[int] = []
        for offset, line, instruction in zip(self.offsets, self.line_numbers, self.instructions):
            while body_ends and offset >= body_ends[-1]:
                body_ends.pop()
                depth -= 1
            source_line = f"{line:4d}" if line else "   -"
            lines.append(f"  {offset:04x} {source_line}  {'  ' * depth}{instruction}")
            if instruction.opcode == OpCode.FUNCTION:
                body_ends.append(offset + instruction_size(instruction) + instruction.operand.code_length)
                depth += 1

        return "\n".join(lines)
