"""Normalization functions for spreadsheet CSV ingestion.

All value helpers accept str | None and return the appropriate type or None.
"""

from __future__ import annotations

import math
import re

_BOM = "\ufeff"
_LINE_BREAK_RE = re.compile("\r\n|\r|\u2028|\u2029")
_KEY_SEP_RE = re.compile(r"[^a-z0-9]+")
_OUTER_QUOTES = ('"', "'")
_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


# ---------------------------------------------------------------------------
# Rule 1: normalize_text  (raw feed text, before parsing)
# ---------------------------------------------------------------------------

def normalize_text(text: str) -> str:
    """Drop a leading byte-order mark and fold every line terminator to '\\n'.

    CRLF, lone CR and the Unicode line/paragraph separators all become a
    single LF. Anything else passes through untouched.
    """
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    return _LINE_BREAK_RE.sub("\n", text)


# ---------------------------------------------------------------------------
# Rule 2: trim
# ---------------------------------------------------------------------------

def trim(value: str | None) -> str | None:
    """Strip leading/trailing whitespace; treat empty string as None."""
    if value is None:
        return None
    v = value.strip()
    return v if v else None


# ---------------------------------------------------------------------------
# Rule 3: field_key  (header cell -> Entry key)
# ---------------------------------------------------------------------------

def field_key(header: object, index: int) -> str:
    """Return the normalized key for a header cell.

    Lowercase, runs of non-alphanumerics collapsed to '_', outer '_' trimmed.
    'Name of the startup' -> 'name_of_the_startup'.  Empty or non-string
    headers fall back to 'column_<index>'.
    """
    if isinstance(header, str):
        key = _KEY_SEP_RE.sub("_", header.lower()).strip("_")
        if key:
            return key
    return f"column_{index}"


# ---------------------------------------------------------------------------
# Rule 4: clean_cell
# ---------------------------------------------------------------------------

def strip_outer_quotes(value: str) -> str:
    """Remove one layer of matching outer quote characters."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _OUTER_QUOTES:
        return value[1:-1]
    return value


def clean_cell(value: str) -> str:
    """Trim, strip one layer of matching outer quotes, trim again."""
    return strip_outer_quotes(value.strip()).strip()


# ---------------------------------------------------------------------------
# Rule 5: parse_score
# ---------------------------------------------------------------------------

def parse_score(value: str | None) -> float | None:
    """Parse a plain decimal number, returning None on failure.

    The whole trimmed value must be the number: '85%', '85/100', '1_0' and
    'inf' are all None.
    """
    v = trim(value)
    if v is None or not _DECIMAL_RE.match(v):
        return None
    score = float(v)
    return score if math.isfinite(score) else None


# ---------------------------------------------------------------------------
# Helper: is_meaningful
# ---------------------------------------------------------------------------

def is_meaningful(value: object) -> bool:
    """True when value is present, non-blank and not the 'n/a' placeholder."""
    if value is None:
        return False
    text = str(value).strip()
    return bool(text) and text.lower() != "n/a"
