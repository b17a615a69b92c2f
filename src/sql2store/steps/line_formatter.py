"""
Row to line serialization.

Turns one row of nullable text fields into a single separator-delimited,
newline-terminated line. The output format has no quoting or escaping, so
field contents are cleaned instead: separator occurrences are removed and
newlines become spaces.
"""

from typing import Optional, Sequence

DEFAULT_SEPARATOR = "~~"


def clean_field(value: Optional[str], separator: str) -> str:
    """
    Make a field value safe to place between separators on a single line.

    Args:
        value: Field text, or None for a SQL NULL
        separator: Column separator (may be empty)

    Returns:
        Text with each "\\n" replaced by one space, then every separator
        occurrence removed. None becomes "".

    Example:
        >>> clean_field("c,d", ",")
        'cd'
        >>> clean_field("line1\\nline2", "~~")
        'line1 line2'
        >>> clean_field(None, "~~")
        ''
    """
    if value is None:
        return ""

    # Newlines first so the inserted spaces cannot complete a separator like " | "
    value = value.replace("\n", " ")

    if separator:
        # Repeat until stable: removing "ab" from "aabb" leaves "ab"
        while separator in value:
            value = value.replace(separator, "")

    return value


def format_line(row: Sequence[Optional[str]], separator: str = DEFAULT_SEPARATOR) -> str:
    """
    Serialize a row into one output line.

    Args:
        row: Field values in column order
        separator: Column separator

    Returns:
        Cleaned fields joined by the separator, terminated by "\\n"

    Example:
        >>> format_line(["a", "b"], ",")
        'a,b\\n'
        >>> format_line([None, "f"], ",")
        ',f\\n'
    """
    return separator.join(clean_field(value, separator) for value in row) + "\n"


class LineFormatter:
    """
    Callable holding the separator for a pipeline run.

    Example:
        >>> formatter = LineFormatter(",")
        >>> formatter(["c,d", "e"])
        'cd,e\\n'
    """

    def __init__(self, separator: str = DEFAULT_SEPARATOR):
        if separator is None:
            raise ValueError("separator must not be None")
        self.separator = separator

    def __call__(self, row: Sequence[Optional[str]]) -> str:
        return format_line(row, self.separator)

    def __repr__(self) -> str:
        return f"LineFormatter(separator={self.separator!r})"
