"""
Tests for row to line serialization.

Validates:
- Separator occurrences are removed from field values
- Newlines inside fields become single spaces
- NULL fields serialize as empty strings
- Every line is newline-terminated with exactly N-1 separators
"""

import pytest

from sql2store.steps.line_formatter import (
    DEFAULT_SEPARATOR,
    LineFormatter,
    clean_field,
    format_line,
)


def test_plain_row_is_joined_with_separator():
    """Test that clean fields are joined in order and newline-terminated."""
    assert format_line(["a", "b"], ",") == "a,b\n"


def test_separator_inside_field_is_removed():
    """Test that a field containing the separator loses it rather than splitting the line."""
    assert format_line(["c,d", "e"], ",") == "cd,e\n"


def test_null_field_becomes_empty():
    """Test that None fields serialize as empty strings between separators."""
    assert format_line([None, "f"], ",") == ",f\n"
    assert format_line(["a", None], ",") == "a,\n"
    assert format_line([None, None, None], "~~") == "~~~~\n"


def test_newline_inside_field_becomes_space():
    """Test that embedded newlines are replaced one-for-one by spaces."""
    assert format_line(["line1\nline2", "x"], "~~") == "line1 line2~~x\n"
    assert clean_field("a\n\nb", "~~") == "a  b"


def test_default_separator():
    """Test that the default separator is '~~'."""
    assert DEFAULT_SEPARATOR == "~~"
    assert format_line(["a", "b"]) == "a~~b\n"


def test_multi_character_separator_removed_until_stable():
    """Test that removing the separator cannot leave a new occurrence behind."""
    assert clean_field("aabb", "ab") == ""
    assert clean_field("x~~~~y", "~~") == "xy"
    assert clean_field("x~~~y", "~~") == "x~y"


def test_newline_cannot_complete_separator_with_spaces():
    """Test that a replaced newline never rebuilds a separator containing spaces."""
    separator = " | "

    assert separator not in clean_field("x\n| y", separator)
    assert clean_field("x\n| y", separator) == "xy"

    line = format_line(["x\n| y", "z"], separator)
    assert line == "xy | z\n"
    assert line.count(separator) == 1


def test_empty_separator_concatenates_fields():
    """Test that an empty separator joins fields directly and leaves values intact."""
    assert format_line(["ab", "cd"], "") == "abcd\n"
    assert clean_field("a~~b", "") == "a~~b"


def test_separator_count_matches_column_count():
    """Test that a line has exactly N-1 separators for N columns, whatever the content."""
    rows = [
        ["plain", "with,comma", None, "multi\nline", ",,,"],
        [None, None, None, None, None],
        ["", "", "", "", ""],
    ]
    for row in rows:
        line = format_line(row, ",")
        assert line.endswith("\n")
        assert line.count("\n") == 1
        assert line[:-1].count(",") == len(row) - 1


def test_empty_row_is_just_newline():
    """Test that a zero-column row serializes to a bare newline."""
    assert format_line([], ",") == "\n"


def test_line_formatter_is_callable():
    """Test that LineFormatter applies its configured separator."""
    formatter = LineFormatter("|")

    assert formatter(["a|b", None, "c"]) == "ab||c\n"
    assert repr(formatter) == "LineFormatter(separator='|')"


def test_line_formatter_rejects_none_separator():
    """Test that a missing separator must be resolved before building a formatter."""
    with pytest.raises(ValueError, match="separator"):
        LineFormatter(None)
