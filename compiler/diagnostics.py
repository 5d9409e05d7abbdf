"""
Vira Diagnostics

Renders an error location in source text as a human-readable report.
"""

from typing import Optional

from .errors import ViraError


def render_report(source: str, message: str, line: int, column: int,
                  length: int = 1, filename: Optional[str] = None) -> str:
    """
    Render a report pointing at a span of the source.

    Args:
        source: Full source text
        message: Error message
        line: 1-based line of the span
        column: 1-based column of the span
        length: Span length in characters
        filename: Optional name shown in the location header

    Returns:
        Multi-line report with the offending line and a caret underline
    """
    lines = source.splitlines()
    location = f"{filename or '<source>'}:{line}:{column}"
    report = [f"error: {message}", f"  --> {location}"]

    if 1 <= line <= len(lines):
        text = lines[line - 1].expandtabs(1)
        gutter = str(line)
        pad = ' ' * len(gutter)
        start = min(max(column, 1), len(text) + 1)
        width = max(1, min(length, len(text) - start + 1))
        report.append(f" {pad} |")
        report.append(f" {gutter} | {text}")
        report.append(f" {pad} | {' ' * (start - 1)}{'^' * width} here")

    return "\n".join(report)


def render_error(error: ViraError, source: str) -> str:
    """Render a located error, falling back to its plain message."""
    if error.line is None or error.column is None:
        return f"error: {error}"
    return render_report(source, error.message, error.line, error.column,
                         error.length, error.filename)
