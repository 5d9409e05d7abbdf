"""
Vira Virtual Machine

A stack-based interpreter for Vira bytecode artifacts. Instructions are
decoded on demand from the artifact bytes; the program counter is a byte
offset into the artifact.
"""

import logging
import sys
from typing import Dict, List, Optional, TextIO
from dataclasses import dataclass, field

import numpy as np

from .types import Value, Function, TYPE_NUMBER, TYPE_STRING
from compiler import errors
from compiler.bytecode import (
    Bytecode, OpCode, Instruction, HEADER_SIZE, check_header, decode_instruction,
)

logger = logging.getLogger(__name__)


ARITHMETIC = {
    OpCode.ADD: np.add,
    OpCode.SUB: np.subtract,
    OpCode.MUL: np.multiply,
    OpCode.DIV: np.divide,
}


@dataclass
class VMOptions:
    """Limits applied while executing bytecode."""

    max_call_depth: int = 256
    max_steps: Optional[int] = None


@dataclass
class CallFrame:
    """A function call frame."""
    function: Function
    return_pc: int
    stack_base: int
    locals: Dict[str, Value] = field(default_factory=dict)


class VirtualMachine:
    """
    Interpreter for Vira bytecode.

    Each instance owns its operand stack, globals and frames; nothing is
    shared between instances.
    """

    def __init__(self, options: Optional[VMOptions] = None,
                 output: Optional[TextIO] = None):
        """
        Initialize the virtual machine.

        Args:
            options: Execution limits
            output: Stream receiving WRITE output (defaults to sys.stdout)
        """
        self.options = options or VMOptions()
        self.output = output
        self.reset()

    def reset(self) -> None:
        """Return to the initial state: empty stack, globals and frames."""
        self.data = b''
        self.stack: List[Value] = []
        self.globals: Dict[str, Value] = {}
        self.call_stack: List[CallFrame] = []
        self.pc = 0
        self.instruction_offset = 0
        self.steps = 0
        self.halted = False

    def execute(self, bytecode: Bytecode) -> None:
        """Execute an in-memory compiled program."""
        self.run(bytecode.serialize())

    def run(self, data: bytes) -> None:
        """
        Execute a bytecode artifact until HALT.

        Args:
            data: Artifact bytes, header included

        Raises:
            ArtifactError: On a bad header, a malformed instruction, or
                running off the end of the buffer without HALT
            RuntimeError: On stack underflow, type, reference, argument or
                limit errors (see compiler.errors)
        """
        self.reset()
        self.data = bytes(data)
        self.pc = check_header(self.data)

        logger.debug("Executing %d bytes of bytecode", len(self.data) - HEADER_SIZE)

        while not self.halted:
            self.step()

        logger.debug("Halted after %d steps, %d globals", self.steps, len(self.globals))

    def step(self) -> None:
        """Decode and execute one instruction."""
        if self.pc >= len(self.data):
            raise errors.ArtifactError("Reached end of bytecode without HALT", offset=self.pc)

        max_steps = self.options.max_steps
        if max_steps is not None and self.steps >= max_steps:
            raise errors.RuntimeError(
                f"Step limit of {max_steps} exceeded", offset=self.pc
            )

        self.instruction_offset = self.pc
        instruction, self.pc = decode_instruction(self.data, self.pc)
        self.steps += 1
        self.dispatch(instruction)

    def dispatch(self, instruction: Instruction) -> None:
        opcode = instruction.opcode
        operand = instruction.operand

        # Stack operations
        if opcode == OpCode.PUSH_NUM:
            self.push(Value.number(operand))

        elif opcode == OpCode.PUSH_STR:
            self.push(Value.string(operand))

        elif opcode == OpCode.POP:
            self.pop()

        # Arithmetic
        elif opcode in ARITHMETIC:
            b = self.pop()
            a = self.pop()
            self.push(self._binary_op(opcode, a, b))

        # Variables
        elif opcode == OpCode.STORE:
            value = self.pop()
            self.scope()[operand] = value

        elif opcode == OpCode.LOAD:
            self.push(self.lookup(operand))

        # Functions
        elif opcode == OpCode.FUNCTION:
            body_start = self.pc
            body_end = body_start + operand.code_length
            if body_end > len(self.data):
                raise self.artifact_error(f"Function body of {operand.name!r} overruns the bytecode")
            func = Function(operand.name, operand.params, body_start)
            self.scope()[operand.name] = Value.function(func)
            logger.debug("Defined %r", func)
            self.pc = body_end

        elif opcode == OpCode.CALL:
            self._call(operand)

        elif opcode == OpCode.RETURN:
            if not self.call_stack:
                raise self.runtime_error(errors.RuntimeError, "RETURN outside of a function")
            result = self.pop()
            frame = self.call_stack.pop()
            del self.stack[frame.stack_base:]
            self.pc = frame.return_pc
            self.push(result)

        # Output
        elif opcode == OpCode.WRITE:
            value = self.pop()
            out = self.output or sys.stdout
            out.write(f"{value}\n")
            out.flush()

        # Special
        elif opcode == OpCode.HALT:
            self.halted = True

        else:
            raise self.artifact_error(f"Unsupported opcode: {opcode.name}")

    # =========================================================================
    # Stack and scope
    # =========================================================================

    def stack_base(self) -> int:
        return self.call_stack[-1].stack_base if self.call_stack else 0

    def push(self, value: Value) -> None:
        """Push a value onto the stack."""
        self.stack.append(value)

    def pop(self) -> Value:
        """Pop a value from the stack."""
        if len(self.stack) <= self.stack_base():
            raise self.runtime_error(errors.RuntimeError, "Stack underflow")
        return self.stack.pop()

    def scope(self) -> Dict[str, Value]:
        """Bindings that STORE and FUNCTION write to."""
        if self.call_stack:
            return self.call_stack[-1].locals
        return self.globals

    def lookup(self, name: str) -> Value:
        """Resolve a name in the current frame, then in globals."""
        if self.call_stack:
            local = self.call_stack[-1].locals.get(name)
            if local is not None:
                return local

        value = self.globals.get(name)
        if value is None:
            raise self.runtime_error(errors.NameError, f"Undefined variable: {name!r}")
        return value

    # =========================================================================
    # Helpers
    # =========================================================================

    def _call(self, arg_count: int) -> None:
        """Call the function below arg_count arguments on the stack."""
        if arg_count + 1 > len(self.stack) - self.stack_base():
            raise self.runtime_error(errors.RuntimeError, "Stack underflow")

        args = self.stack[len(self.stack) - arg_count:]
        del self.stack[len(self.stack) - arg_count:]
        callee = self.pop()

        if not callee.is_function():
            raise self.runtime_error(
                errors.TypeError, f"Value of type {callee.type_name} is not callable"
            )

        func = callee.data
        if arg_count != func.arity:
            raise self.runtime_error(
                errors.ArgumentError,
                f"{func.name}() expects {func.arity} argument(s), got {arg_count}"
            )

        if len(self.call_stack) >= self.options.max_call_depth:
            raise self.runtime_error(
                errors.RuntimeError,
                f"Maximum call depth of {self.options.max_call_depth} exceeded"
            )

        frame = CallFrame(
            function=func,
            return_pc=self.pc,
            stack_base=len(self.stack),
            locals=dict(zip(func.params, args)),
        )
        self.call_stack.append(frame)
        self.pc = func.code_offset

    def _binary_op(self, opcode: OpCode, a: Value, b: Value) -> Value:
        """Apply an arithmetic opcode; only ADD accepts two strings."""
        if a.type == TYPE_NUMBER and b.type == TYPE_NUMBER:
            with np.errstate(all='ignore'):
                return Value.number(ARITHMETIC[opcode](a.data, b.data))

        if opcode == OpCode.ADD and a.type == TYPE_STRING and b.type == TYPE_STRING:
            return Value.string(a.data + b.data)

        raise self.runtime_error(
            errors.TypeError,
            f"Unsupported operand types for {opcode.name}: {a.type_name} and {b.type_name}"
        )

    def runtime_error(self, kind: type, message: str) -> errors.ViraError:
        return kind(message, offset=self.instruction_offset)

    def artifact_error(self, message: str) -> errors.ArtifactError:
        return errors.ArtifactError(message, offset=self.instruction_offset)
