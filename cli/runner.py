"""
VM CLI: `vira-vm ARTIFACT`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from compiler import __version__, ViraError
from vm import VirtualMachine, VMOptions
from cli import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vira-vm", description="Execute a Vira bytecode artifact")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("artifact", type=Path, help="Bytecode artifact produced by virac")
    parser.add_argument("--max-steps", type=int, default=None,
                        help="Abort after executing this many instructions")
    parser.add_argument("--max-call-depth", type=int, default=VMOptions.max_call_depth,
                        help="Maximum nesting of function calls (default: %(default)s)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    VM entry point.

    Returns:
        int: 0 after HALT, 1 on unreadable or ill-formed artifacts and runtime errors.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        data = args.artifact.read_bytes()
    except OSError as e:
        print(f"error: cannot read {args.artifact}: {e.strerror}", file=sys.stderr)
        return 1

    vm = VirtualMachine(VMOptions(max_call_depth=args.max_call_depth, max_steps=args.max_steps))
    try:
        vm.run(data)
    except ViraError as e:
        e.with_filename(str(args.artifact))
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
