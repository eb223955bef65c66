"""Unit tests for startup_dashboard.csv_parser."""

import pytest

from startup_dashboard.csv_parser import parse_rows


def _render(grid: list[list[str]]) -> str:
    return "".join(",".join(row) + "\n" for row in grid)


# ---------------------------------------------------------------------------
# Basic splitting
# ---------------------------------------------------------------------------

class TestBasicRows:
    def test_simple_grid(self):
        assert parse_rows("a,b\nc,d\n") == [["a", "b"], ["c", "d"]]

    def test_no_trailing_newline(self):
        assert parse_rows("a,b\nc,d") == [["a", "b"], ["c", "d"]]

    def test_fields_trimmed(self):
        assert parse_rows("  a  , b \n") == [["a", "b"]]

    def test_trailing_delimiter_gives_empty_field(self):
        assert parse_rows("a,b,\n") == [["a", "b", ""]]

    def test_empty_input(self):
        assert parse_rows("") == []

    def test_crlf_input(self):
        assert parse_rows("a,b\r\nc,d\r\n") == [["a", "b"], ["c", "d"]]

    def test_bom_input(self):
        assert parse_rows("\ufeffName,Score\nX,1\n") == [["Name", "Score"], ["X", "1"]]


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------

class TestRoundTrip:
    @pytest.mark.parametrize("grid", [
        [["Submission ID", "Name of the startup", "Scores"], ["SUB001", "TechCorp", "95"]],
        [["a"], ["b"], ["c"]],
        [["x", "y", "z"], ["1", "2", "3"], ["four", "five", "six"]],
    ])
    def test_plain_grid_round_trips(self, grid):
        assert parse_rows(_render(grid)) == grid


# ---------------------------------------------------------------------------
# Quoting
# ---------------------------------------------------------------------------

class TestQuoting:
    def test_escaped_quote_and_delimiter(self):
        assert parse_rows('"a,b""c"') == [['a,b"c']]

    def test_quoted_field_with_newline_delimiter_and_quote(self):
        text = 'x,"line1\nline2, ""q""",y\n'
        assert parse_rows(text) == [["x", 'line1\nline2, "q"', "y"]]

    def test_multiline_field_does_not_split_row(self):
        text = 'id,desc\n1,"first\nsecond"\n2,plain\n'
        assert parse_rows(text) == [["id", "desc"], ["1", "first\nsecond"], ["2", "plain"]]

    def test_quote_mid_field_toggles_state(self):
        assert parse_rows('ab"c,d"e\n') == [["abc,de"]]

    def test_empty_quoted_field(self):
        assert parse_rows('a,"",c\n') == [["a", "", "c"]]

    def test_unterminated_quote_closed_at_eof(self):
        assert parse_rows('a,"open field\nmore') == [["a", "open field\nmore"]]


# ---------------------------------------------------------------------------
# Blank and ragged rows
# ---------------------------------------------------------------------------

class TestBlankAndRagged:
    def test_blank_rows_dropped(self):
        assert parse_rows("a,b\n , \n\nc,d\n") == [["a", "b"], ["c", "d"]]

    def test_quoted_blank_row_dropped(self):
        assert parse_rows('a\n"  ",""\nb\n') == [["a"], ["b"]]

    def test_ragged_rows_preserved(self):
        text = "h1,h2,h3\n1\n1,2,3,4\n"
        assert parse_rows(text) == [["h1", "h2", "h3"], ["1"], ["1", "2", "3", "4"]]
