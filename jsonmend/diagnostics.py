"""Structural validation and parse-error location."""

from __future__ import annotations

import json
import re
from typing import Any

from jsonmend.config import CONTEXT_RADIUS
from jsonmend.types import ErrorLocation

_LINE_COLUMN = re.compile(r"line (\d+) column (\d+)")
_POSITION = re.compile(r"(?:position|char) (\d+)")


def parse_strict(text: str) -> Any:
    """Parse ``text`` as standard JSON.

    Unlike plain json.loads, NaN and Infinity are rejected so that anything
    accepted here is accepted by every conforming JSON parser.
    """

    def reject_constant(name: str) -> Any:
        raise json.JSONDecodeError(f"Invalid constant {name}", text, max(text.find(name), 0))

    return json.loads(text, parse_constant=reject_constant)


def parse_error(text: str) -> Exception | None:
    """Return the exception parse_strict raises for ``text``, or None if it parses."""
    try:
        parse_strict(text)
    except (ValueError, RecursionError) as exc:
        return exc
    return None


def is_valid_structure(text: str) -> bool:
    """True iff ``text`` parses as JSON. No repair is attempted."""
    return parse_error(text) is None


def describe_error(exc: Exception) -> str:
    if isinstance(exc, RecursionError):
        return "Maximum nesting depth exceeded"
    return str(exc)


def _offset_from_line_column(text: str, line: int, column: int) -> int:
    offset = 0
    for _ in range(line - 1):
        newline = text.find("\n", offset)
        if newline == -1:
            return len(text)
        offset = newline + 1
    return min(offset + max(column - 1, 0), len(text))


def locate_error(message: str, text: str) -> ErrorLocation:
    """Build an ErrorLocation from a parser message such as
    ``Expecting ',' delimiter: line 3 column 5 (char 27)``.

    Line and column are 1-based. When the message carries only an offset,
    line and column are derived by counting newlines up to it. Both are 0
    when the message carries no position at all.
    """
    line = column = 0
    offset: int | None = None

    position_match = _POSITION.search(message)
    line_column_match = _LINE_COLUMN.search(message)

    if position_match:
        offset = min(int(position_match.group(1)), len(text))

    if line_column_match:
        line = int(line_column_match.group(1))
        column = int(line_column_match.group(2))
        if offset is None:
            offset = _offset_from_line_column(text, line, column)
    elif offset is not None:
        line = text.count("\n", 0, offset) + 1
        column = offset - (text.rfind("\n", 0, offset) + 1) + 1

    context = None
    if offset is not None:
        context = text[max(0, offset - CONTEXT_RADIUS):offset + CONTEXT_RADIUS]

    return ErrorLocation(line=line, column=column, message=message, context=context, offset=offset)


def analyze_error(text: str) -> ErrorLocation | None:
    """Locate why ``text`` does not parse. Returns None if it does."""
    exc = parse_error(text)
    if exc is None:
        return None
    return locate_error(describe_error(exc), text)
