"""
Vira Virtual Machine Package

Loads bytecode artifacts and executes them on a stack machine.
"""

from typing import Optional, TextIO

from compiler import compile_source

from .types import Value, Function, format_number, TYPE_NUMBER, TYPE_STRING, TYPE_FUNCTION
from .interpreter import VirtualMachine, VMOptions, CallFrame

__all__ = [
    'Value',
    'Function',
    'format_number',
    'TYPE_NUMBER',
    'TYPE_STRING',
    'TYPE_FUNCTION',
    'VirtualMachine',
    'VMOptions',
    'CallFrame',
    'run_file',
    'run_source',
]


def run_file(path: str, options: Optional[VMOptions] = None,
             output: Optional[TextIO] = None) -> VirtualMachine:
    """
    Execute a bytecode artifact file.

    Returns:
        The virtual machine after HALT, for inspecting globals
    """
    with open(path, 'rb') as f:
        data = f.read()

    vm = VirtualMachine(options, output)
    vm.run(data)
    return vm


def run_source(source: str, options: Optional[VMOptions] = None,
               output: Optional[TextIO] = None) -> VirtualMachine:
    """Compile Vira source and execute it in a fresh virtual machine."""
    vm = VirtualMachine(options, output)
    vm.execute(compile_source(source))
    return vm
