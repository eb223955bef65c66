"""startup_dashboard.row_mapper

Turns the parsed grid into Entries: header row -> field keys, data rows ->
read-only key/value mappings.

Keys are derived from whatever headers the current feed has, so consumers
must not treat them as fixed constants.  The ones the pipeline itself reads
are listed below.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType

from startup_dashboard.csv_parser import parse_rows
from startup_dashboard.normalize import clean_cell, field_key

log = logging.getLogger(__name__)

Entry = Mapping[str, str]

# Keys produced by the standard submission-form headers
STARTUP_NAME_KEY = "name_of_the_startup"
SUBMISSION_ID_KEYS = ("submission_id", "submission__id")
SCORE_KEY = "scores"


def make_entry(values: Mapping[str, str]) -> Entry:
    """Freeze a key/value dict into an Entry."""
    return MappingProxyType(dict(values))


def header_keys(header: Sequence[object]) -> list[str]:
    return [field_key(cell, idx) for idx, cell in enumerate(header)]


def _is_blank(cell: object) -> bool:
    if cell is None:
        return True
    return isinstance(cell, str) and not cell.strip()


def _cell_value(row: Sequence[object], idx: int) -> str:
    if idx >= len(row):
        return ""
    cell = row[idx]
    if cell is None:
        return ""
    try:
        return clean_cell(cell if isinstance(cell, str) else str(cell))
    except Exception as exc:  # noqa: BLE001
        log.warning("Cell %d could not be read (%s); using empty value.", idx, exc)
        return ""


def map_rows(rows: Sequence[Sequence[object]]) -> list[Entry]:
    """Zip every data row against the header row.

    The first row is the header.  Blank data rows are skipped, short rows are
    padded with '', cells past the header width are ignored.  When two headers
    normalize to the same key the later column wins.
    """
    if not rows:
        return []

    keys = header_keys(rows[0])
    entries: list[Entry] = []
    for row_number, row in enumerate(rows[1:], start=2):
        if all(_is_blank(cell) for cell in row):
            continue
        if len(row) != len(keys):
            log.debug(
                "Row %d has %d cells, header has %d; reconciling.",
                row_number, len(row), len(keys),
            )
        values = {key: _cell_value(row, idx) for idx, key in enumerate(keys)}
        entries.append(make_entry(values))
    return entries


def parse_entries(text: str) -> list[Entry]:
    """Raw feed text -> Entries (normalize, parse, map)."""
    return map_rows(parse_rows(text))
