"""
Row transformation steps.

Steps are pure functions of a row; they never touch the source or the sink.
"""

from sql2store.steps.line_formatter import (
    DEFAULT_SEPARATOR,
    LineFormatter,
    clean_field,
    format_line,
)

__all__ = [
    "DEFAULT_SEPARATOR",
    "LineFormatter",
    "clean_field",
    "format_line",
]
