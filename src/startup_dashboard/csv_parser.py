"""startup_dashboard.csv_parser

Character-level CSV reader for spreadsheet exports.

The stdlib csv module rejects or silently reshapes some of the feeds we see
(stray quotes mid-field, unterminated quotes at EOF), so the grid is built
with an explicit two-state machine instead:

  unquoted  '"'            -> enter quoted (quote not emitted)
            ','            -> end field
            '\\n'           -> end row
  quoted    '""'           -> literal '"'
            '"'            -> leave quoted
            ',' / '\\n'     -> literal

Fields are trimmed when they end.  Rows whose every field is blank are
dropped.  Ragged rows are returned as-is; the row mapper reconciles them.
"""

from __future__ import annotations

from startup_dashboard.normalize import normalize_text

DELIMITER = ","
QUOTE = '"'
NEWLINE = "\n"


def _is_blank_row(row: list[str]) -> bool:
    return all(not cell.strip() for cell in row)


def parse_rows(text: str) -> list[list[str]]:
    """Parse CSV text into an ordered list of rows (lists of trimmed fields).

    Input is normalized first, so CRLF / CR / BOM quirks are irrelevant here.
    An unterminated quoted field is closed implicitly at end of input.
    """
    text = normalize_text(text)
    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False
    i = 0
    n = len(text)

    def end_field() -> None:
        row.append("".join(field).strip())
        field.clear()

    def end_row() -> None:
        end_field()
        if not _is_blank_row(row):
            rows.append(list(row))
        row.clear()

    while i < n:
        ch = text[i]
        if in_quotes:
            if ch == QUOTE:
                if i + 1 < n and text[i + 1] == QUOTE:
                    field.append(QUOTE)
                    i += 2
                    continue
                in_quotes = False
            else:
                field.append(ch)
        elif ch == QUOTE:
            in_quotes = True
        elif ch == DELIMITER:
            end_field()
        elif ch == NEWLINE:
            end_row()
        else:
            field.append(ch)
        i += 1

    # Flush whatever is pending; an open quote is treated as closed.
    if field or row:
        end_row()

    return rows
