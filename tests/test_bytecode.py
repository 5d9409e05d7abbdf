"""
Vira Bytecode Tests

Tests for the binary artifact codec and the disassembler.
"""

import struct
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from compiler import compile_source
from compiler.bytecode import (
    Bytecode, OpCode, Instruction, FunctionInfo, MAGIC, VERSION, HEADER_SIZE,
    encode_instruction, decode_instruction, check_header,
)
from compiler.errors import ArtifactError


HEADER = MAGIC + bytes([VERSION])


def text(s):
    raw = s.encode('utf-8')
    return struct.pack('<I', len(raw)) + raw


class TestEncoding:
    """Exact byte layout of encoded instructions."""

    def test_push_num(self):
        assert encode_instruction(Instruction(OpCode.PUSH_NUM, 2.5)) == b'\x00' + struct.pack('<d', 2.5)

    def test_push_str(self):
        assert encode_instruction(Instruction(OpCode.PUSH_STR, "hé")) == b'\x01' + struct.pack('<I', 3) + "hé".encode('utf-8')

    def test_store_and_load(self):
        assert encode_instruction(Instruction(OpCode.STORE, "x")) == b'\x06\x01\x00\x00\x00x'
        assert encode_instruction(Instruction(OpCode.LOAD, "x")) == b'\x07\x01\x00\x00\x00x'

    def test_call(self):
        assert encode_instruction(Instruction(OpCode.CALL, 2)) == b'\x08' + struct.pack('<Q', 2)

    @pytest.mark.parametrize("opcode,tag", [
        (OpCode.ADD, 2),
        (OpCode.SUB, 3),
        (OpCode.MUL, 4),
        (OpCode.DIV, 5),
        (OpCode.WRITE, 9),
        (OpCode.HALT, 10),
        (OpCode.POP, 11),
        (OpCode.RETURN, 13),
    ])
    def test_bare_opcodes(self, opcode, tag):
        assert encode_instruction(Instruction(opcode)) == bytes([tag])

    def test_function_header(self):
        info = FunctionInfo("f", ("a",), 7)
        expected = b'\x0c' + text("f") + struct.pack('<I', 1) + text("a") + struct.pack('<I', 7)
        assert encode_instruction(Instruction(OpCode.FUNCTION, info)) == expected

    def test_serialized_program(self):
        data = compile_source('let x = 1; write x;').serialize()
        assert data == (
            HEADER
            + b'\x00' + struct.pack('<d', 1.0)
            + b'\x06' + text("x")
            + b'\x07' + text("x")
            + b'\x09'
            + b'\x0a'
        )

    def test_offsets_track_encoded_size(self):
        bytecode = compile_source('let x = 1; write x;')
        assert bytecode.offsets == [0, 9, 15, 21, 22]
        assert bytecode.code_size == len(bytecode.serialize()) - HEADER_SIZE


class TestDecoding:
    """Decoding instructions and whole artifacts."""

    def test_decode_instruction(self):
        data = b'\x00' + struct.pack('<d', -4.0) + b'\x0a'
        instruction, offset = decode_instruction(data, 0)
        assert instruction == Instruction(OpCode.PUSH_NUM, -4.0)
        assert offset == 9
        assert decode_instruction(data, offset) == (Instruction(OpCode.HALT), 10)

    def test_round_trip(self):
        source = 'def add(a, b) { a + b; } let s = "x" + "y"; write add(1, 2); write s;'
        bytecode = compile_source(source)
        decoded = Bytecode.deserialize(bytecode.serialize())
        assert decoded.instructions == bytecode.instructions
        assert decoded.offsets == bytecode.offsets
        assert decoded.code_size == bytecode.code_size

    def test_check_header(self):
        assert check_header(HEADER + b'\x0a') == HEADER_SIZE


class TestMalformedArtifacts:
    """Every malformed artifact is rejected with an ArtifactError."""

    def test_truncated_payload_reports_instruction_offset(self):
        data = HEADER + b'\x01' + struct.pack('<I', 10) + b'abc'
        with pytest.raises(ArtifactError) as exc:
            Bytecode.deserialize(data)
        assert exc.value.offset == 5

    def test_truncated_number(self):
        with pytest.raises(ArtifactError):
            Bytecode.deserialize(HEADER + b'\x00\x00\x00')

    def test_unknown_opcode(self):
        with pytest.raises(ArtifactError) as exc:
            Bytecode.deserialize(HEADER + b'\xff')
        assert "Unknown opcode" in exc.value.message
        assert exc.value.offset == 5

    def test_invalid_utf8(self):
        with pytest.raises(ArtifactError) as exc:
            Bytecode.deserialize(HEADER + b'\x01' + struct.pack('<I', 1) + b'\xff\x0a')
        assert "UTF-8" in exc.value.message

    def test_missing_halt(self):
        with pytest.raises(ArtifactError):
            Bytecode.deserialize(HEADER + b'\x09')

    def test_header_only(self):
        with pytest.raises(ArtifactError):
            Bytecode.deserialize(HEADER)

    def test_bad_magic(self):
        with pytest.raises(ArtifactError) as exc:
            Bytecode.deserialize(b'NOPE\x01\x0a')
        assert exc.value.offset == 0

    def test_bad_version(self):
        with pytest.raises(ArtifactError) as exc:
            Bytecode.deserialize(MAGIC + b'\x09\x0a')
        assert "version" in exc.value.message

    def test_empty(self):
        with pytest.raises(ArtifactError):
            Bytecode.deserialize(b'')

    def test_function_body_overrun(self):
        header = encode_instruction(Instruction(OpCode.FUNCTION, FunctionInfo("f", (), 50)))
        with pytest.raises(ArtifactError):
            Bytecode.deserialize(HEADER + header + b'\x0d\x0a')

    def test_function_body_without_return(self):
        header = encode_instruction(Instruction(OpCode.FUNCTION, FunctionInfo("f", (), 1)))
        with pytest.raises(ArtifactError) as exc:
            Bytecode.deserialize(HEADER + header + b'\x0b\x0a')
        assert "RETURN" in exc.value.message

    def test_empty_function_body(self):
        header = encode_instruction(Instruction(OpCode.FUNCTION, FunctionInfo("f", (), 0)))
        with pytest.raises(ArtifactError):
            Bytecode.deserialize(HEADER + header + b'\x0a')

    def test_error_message_includes_offset(self):
        with pytest.raises(ArtifactError) as exc:
            Bytecode.deserialize(HEADER + b'\xff')
        assert str(exc.value) == "offset 0x0005: Unknown opcode: 255"


class TestDisassembly:
    """Human-readable listing."""

    def test_listing(self):
        listing = compile_source('let x = 2; write x * 3;').disassemble()
        assert listing.startswith("=== Vira Bytecode ===")
        assert "Globals:" in listing
        assert "[   0] x" in listing
        assert "PUSH_NUM" in listing
        assert any("STORE" in line and "'x'" in line for line in listing.splitlines())
        assert listing.rstrip().endswith("HALT")

    def test_source_lines(self):
        listing = compile_source("let x = 1;\nwrite x;").disassemble()
        write = next(line for line in listing.splitlines() if "WRITE" in line)
        assert write.split()[1] == "2"

    def test_source_lines_unknown_after_decoding(self):
        data = compile_source("write 1;").serialize()
        listing = Bytecode.deserialize(data).disassemble()
        write = next(line for line in listing.splitlines() if "WRITE" in line)
        assert write.split()[1] == "-"

    def test_function_body_is_indented(self):
        listing = compile_source('def f(a) { a; }').disassemble()
        lines = listing.splitlines()
        header = next(line for line in lines if "FUNCTION" in line)
        body = next(line for line in lines if "LOAD" in line)
        halt = next(line for line in lines if line.endswith("HALT"))
        assert "f(a)" in header
        assert body.index("LOAD") > header.index("FUNCTION")
        assert halt.index("HALT") == header.index("FUNCTION")
