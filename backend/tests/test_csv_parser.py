"""
Tests for separator detection and CSV parsing.

Inputs mimic German and US bank exports.
"""

import pytest
from bucket_import.csv_parser import (
    ParsedTable,
    Separator,
    detect_separator,
    parse_csv,
    parse_row,
    split_rows,
)


def serialize(headers, rows, separator):
    lines = [separator.join(headers)]
    for row in rows:
        lines.append(separator.join(row[h] for h in headers))
    return "\n".join(lines)


class TestDetectSeparator:
    """Test cases for detect_separator."""

    def test_semicolon_export(self):
        text = "Date;Amount;Note\n01.01.2024;-50,00;Groceries\n"
        assert detect_separator(text) == Separator.SEMICOLON

    def test_comma_export(self):
        text = "Date,Amount,Note\n2024-01-01,-50.00,Groceries\n"
        assert detect_separator(text) == Separator.COMMA

    def test_empty_text_defaults_to_comma(self):
        assert detect_separator("") == Separator.COMMA

    def test_tie_goes_to_comma(self):
        # two of each across the first three lines
        text = "a,b;c\nd;e,f\n"
        assert detect_separator(text) == Separator.COMMA

    def test_separators_inside_quotes_are_ignored(self):
        text = 'Note;Amount\n"a, b, c, d";1\n'
        assert detect_separator(text) == Separator.SEMICOLON

    def test_only_first_three_lines_count(self):
        text = "a;b\nc;d\ne;f\n" + "1,2,3,4,5,6,7,8\n" * 10
        assert detect_separator(text) == Separator.SEMICOLON

    def test_single_line(self):
        assert detect_separator("a;b;c") == Separator.SEMICOLON

    def test_is_deterministic(self):
        text = 'x;"y,z";w\n1,2;3\n'
        assert detect_separator(text) == detect_separator(text)


class TestSplitRows:
    """Test cases for split_rows."""

    def test_skips_blank_lines(self):
        assert split_rows("a,b\n\n1,2\n   \n3,4") == ["a,b", "1,2", "3,4"]

    def test_keeps_newline_inside_quotes(self):
        rows = split_rows('a,b\n"line one\nline two",2\n')
        assert rows == ["a,b", '"line one\nline two",2']

    def test_last_row_without_trailing_newline(self):
        assert split_rows("a\n1") == ["a", "1"]

    def test_empty_text(self):
        assert split_rows("") == []


class TestParseRow:
    """Test cases for parse_row."""

    def test_quoted_separator(self):
        assert parse_row('"a,b",c', ",") == ["a,b", "c"]

    def test_escaped_quotes(self):
        assert parse_row('"say ""hi"""', ",") == ['say "hi"']

    def test_fields_are_trimmed(self):
        assert parse_row("  a ;  b  ; c", ";") == ["a", "b", "c"]

    def test_trailing_separator_gives_empty_field(self):
        assert parse_row("a;b;", ";") == ["a", "b", ""]

    def test_carriage_return_is_trimmed(self):
        assert parse_row("a,b\r", ",") == ["a", "b"]

    def test_stray_quote_toggles_state(self):
        # an unbalanced quote swallows the rest of the row into one field
        assert parse_row('ab"c,d', ",") == ["abc,d"]


class TestParseCsv:
    """Test cases for parse_csv."""

    def test_end_to_end_semicolon_export(self):
        text = (
            "Date;Amount;Note\n"
            '01.01.2024;"1.234,56";"Rent, monthly"\n'
            "02.01.2024;-50,00;Groceries\n"
        )
        table = parse_csv(text, detect_separator(text))

        assert table.headers == ["Date", "Amount", "Note"]
        assert table.rows == [
            {"Date": "01.01.2024", "Amount": "1.234,56", "Note": "Rent, monthly"},
            {"Date": "02.01.2024", "Amount": "-50,00", "Note": "Groceries"},
        ]

    def test_key_order_follows_header_row(self):
        table = parse_csv("b,a,c\n1,2,3", ",")
        assert list(table.rows[0].keys()) == ["b", "a", "c"]

    def test_round_trip_simple_data(self):
        headers = ["Date", "Amount", "Note"]
        rows = [
            {"Date": "2024-01-01", "Amount": "10.00", "Note": "Coffee"},
            {"Date": "2024-01-02", "Amount": "-3.50", "Note": "Bus"},
            {"Date": "2024-01-03", "Amount": "7", "Note": "Refund"},
        ]
        for sep in (",", ";"):
            table = parse_csv(serialize(headers, rows, sep), sep)
            assert table.rows == rows

    def test_embedded_newline_does_not_add_row(self):
        text = 'Date,Note\n2024-01-01,"first line\nsecond line"\n2024-01-02,plain\n'
        table = parse_csv(text, ",")

        assert len(table.rows) == 2
        assert table.rows[0]["Note"] == "first line\nsecond line"

    def test_blank_lines_are_skipped(self):
        text = "Date,Amount\n2024-01-01,1\n\n2024-01-02,2\n\n"
        table = parse_csv(text, ",")
        assert len(table.rows) == 2

    def test_short_row_is_padded(self):
        table = parse_csv("a,b,c\n1", ",")

        assert table.rows == [{"a": "1", "b": "", "c": ""}]
        assert table.arity_mismatches == [1]

    def test_extra_values_are_ignored(self):
        table = parse_csv("a,b\n1,2,3,4\n5,6", ",")

        assert table.rows == [{"a": "1", "b": "2"}, {"a": "5", "b": "6"}]
        assert table.arity_mismatches == [1]

    def test_duplicate_headers_last_value_wins(self):
        table = parse_csv("Amount,Note,Amount\n1,x,2", ",")

        assert table.headers == ["Amount", "Note"]
        assert table.rows == [{"Amount": "2", "Note": "x"}]
        assert list(table.rows[0].keys()) == ["Amount", "Note"]

    def test_header_only_file(self):
        table = parse_csv("Date;Amount\n", ";")

        assert table.headers == ["Date", "Amount"]
        assert table.rows == []
        assert table.is_empty is True

    @pytest.mark.parametrize("text", ["", "\n\n", "   \n \t \n"])
    def test_blank_documents_are_empty(self, text):
        assert parse_csv(text, ",") == ParsedTable(headers=[], rows=[])

    def test_windows_line_endings(self):
        table = parse_csv("a;b\r\n1;2\r\n", ";")
        assert table.headers == ["a", "b"]
        assert table.rows == [{"a": "1", "b": "2"}]

    def test_accepts_separator_enum(self):
        table = parse_csv("a;b\n1;2", Separator.SEMICOLON)
        assert table.rows == [{"a": "1", "b": "2"}]
