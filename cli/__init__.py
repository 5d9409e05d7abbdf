"""
Vira Command-Line Front Ends

`virac` compiles source files to bytecode artifacts; `vira-vm` executes them.
"""

import logging

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """Send diagnostics logging to stderr; program output stays on stdout."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)
