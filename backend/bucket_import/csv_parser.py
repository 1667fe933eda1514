"""
CSV parsing utilities for uploaded bank exports.

This module provides separator detection and a small quote-aware parser that
turns raw CSV text into header-keyed rows. Both functions are total: malformed
input degrades to fewer rows, never to an exception.

Quotes are handled with a simple toggle: every `"` flips the "inside quotes"
state, with `""` inside a quoted field standing for a literal quote. This is
what most bank exports need and is deliberately not a full RFC 4180 parser.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

QUOTE = '"'
NEWLINE = "\n"
DETECTION_LINES = 3


class Separator(str, Enum):
    COMMA = ","
    SEMICOLON = ";"


@dataclass(frozen=True)
class ParsedTable:
    """Headers and data rows of a parsed CSV document."""

    headers: List[str]
    rows: List[Dict[str, str]]
    # 1-based data row numbers whose field count differed from the header count
    arity_mismatches: List[int] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rows


def detect_separator(text: str) -> Separator:
    """
    Guess whether a CSV document is comma or semicolon separated.

    Counts both characters outside of quoted fields in the first three lines.
    Semicolon wins only with a strictly higher count; ties and empty text
    fall back to comma.

    Args:
        text: Raw CSV content

    Returns:
        The detected separator
    """
    comma_count = 0
    semicolon_count = 0

    for line in text.split(NEWLINE)[:DETECTION_LINES]:
        in_quotes = False
        for char in line:
            if char == QUOTE:
                in_quotes = not in_quotes
            elif not in_quotes:
                if char == ",":
                    comma_count += 1
                elif char == ";":
                    semicolon_count += 1

    if semicolon_count > comma_count:
        return Separator.SEMICOLON
    return Separator.COMMA


def split_rows(text: str) -> List[str]:
    """
    Split CSV text into raw rows, keeping newlines inside quoted fields.

    Rows that are blank after trimming are dropped. Quote characters are kept
    in the returned rows so that parse_row can interpret them.
    """
    rows = []
    current = []
    in_quotes = False

    for char in text:
        if char == QUOTE:
            in_quotes = not in_quotes
        elif char == NEWLINE and not in_quotes:
            row = "".join(current)
            if row.strip():
                rows.append(row)
            current = []
            continue
        current.append(char)

    # Last row without a trailing newline
    row = "".join(current)
    if row.strip():
        rows.append(row)

    return rows


def parse_row(row: str, separator: str) -> List[str]:
    """
    Split a single raw row into trimmed field values.

    Args:
        row: One row as returned by split_rows
        separator: Field separator character

    Returns:
        Field values with quotes removed and `""` unescaped
    """
    separator = Separator(separator).value
    fields = []
    current = []
    in_quotes = False
    i = 0

    while i < len(row):
        char = row[i]
        if char == QUOTE:
            if in_quotes and i + 1 < len(row) and row[i + 1] == QUOTE:
                current.append(QUOTE)
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == separator and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current).strip())
    return fields


def parse_csv(text: str, separator: str) -> ParsedTable:
    """
    Parse CSV text into header-keyed rows.

    The first non-blank row is the header row. Every other row is matched to
    the headers by position: missing trailing values become empty strings and
    surplus values are ignored. With duplicate header names the last column
    of that name provides the value.

    Args:
        text: Raw CSV content
        separator: Field separator character (comma or semicolon)

    Returns:
        ParsedTable with the distinct headers in order and one dict per row
    """
    raw_rows = split_rows(text)
    if not raw_rows:
        return ParsedTable(headers=[], rows=[])

    header_cells = parse_row(raw_rows[0], separator)
    headers = list(dict.fromkeys(header_cells))

    rows = []
    mismatches = []
    for number, raw_row in enumerate(raw_rows[1:], start=1):
        values = parse_row(raw_row, separator)
        if len(values) != len(header_cells):
            mismatches.append(number)

        record = {}
        for idx, header in enumerate(header_cells):
            record[header] = values[idx] if idx < len(values) else ""
        rows.append(record)

    return ParsedTable(headers=headers, rows=rows, arity_mismatches=mismatches)
