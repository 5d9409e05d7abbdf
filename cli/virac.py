"""
Compiler CLI: `virac SOURCE [-o OUTPUT]`.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from compiler import __version__, compile_source, CompilerOptions, ViraError, render_error
from cli import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="virac", description="Compile Vira source to a bytecode artifact")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("source", type=Path, help="Vira source file")
    parser.add_argument("-o", "--output", type=Path, default=None,
                        help="Output artifact (default: source stem with .object)")
    parser.add_argument("--disassemble", action="store_true",
                        help="Print a bytecode listing to stdout after compiling")
    parser.add_argument("--allow-any-import", action="store_true",
                        help="Accept import markers naming unknown libraries")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Compiler entry point.

    Returns:
        int: 0 on success, 1 on read or compile failure.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    options = CompilerOptions()
    if args.allow_any_import:
        options.known_libraries = None

    try:
        source = args.source.read_text(encoding="utf-8")
    except OSError as e:
        print(f"error: cannot read {args.source}: {e.strerror}", file=sys.stderr)
        return 1

    try:
        bytecode = compile_source(source, options)
    except ViraError as e:
        e.with_filename(str(args.source))
        print(render_error(e, source), file=sys.stderr)
        return 1

    output = args.output or args.source.with_suffix(options.default_extension)
    data = bytecode.serialize()
    try:
        output.write_bytes(data)
    except OSError as e:
        print(f"error: cannot write {output}: {e.strerror}", file=sys.stderr)
        return 1

    logger.info("Wrote %d bytes to %s", len(data), output)

    if args.disassemble:
        print(bytecode.disassemble())

    return 0


if __name__ == "__main__":
    sys.exit(main())
