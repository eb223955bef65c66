"""startup_dashboard.validation

Decides whether a mapped row is a genuine submission.

Policy: a valid startup name is REQUIRED.  A valid submission id on its own
does not rescue a row; spreadsheet exports regularly contain rows where the
id column is filled but the rest of the row is a wrapped fragment of some
other submission's long-form answer.  The submission id is still checked so
it can serve as the entry's identity.

On top of the name, an entry needs at least two meaningful values overall.

Everything here is total: any input, including None or non-mappings, yields
a bool / reason code and never raises.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from startup_dashboard.normalize import is_meaningful
from startup_dashboard.row_mapper import STARTUP_NAME_KEY, SUBMISSION_ID_KEYS

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PLACEHOLDER_NAMES = ("n/a", "no name", "unnamed startup")

# Tails of long-form answers that spill into the name column
JUNK_FRAGMENTS = (
    "and eldercare",
    "and guided explanations",
    "and we are focused",
    "in the future",
    "alongside student learning",
    "our platform works",
)

SUBMISSION_ID_RE = re.compile(r"^[A-Za-z0-9]{5,15}$")

NAME_MIN_EXCLUSIVE = 2
NAME_MAX_EXCLUSIVE = 100
MIN_MEANINGFUL_FIELDS = 2

# Rejection reason codes
REASON_NOT_A_MAPPING = "not_a_mapping"
REASON_INVALID_STARTUP_NAME = "invalid_startup_name"
REASON_INSUFFICIENT_FIELDS = "insufficient_fields"


@dataclass(frozen=True)
class ValidationRules:
    """Deny-lists used by the validator; overridable from config."""

    placeholder_names: tuple[str, ...] = PLACEHOLDER_NAMES
    junk_fragments: tuple[str, ...] = JUNK_FRAGMENTS
    min_meaningful_fields: int = MIN_MEANINGFUL_FIELDS
    _placeholders_lower: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "_placeholders_lower",
            frozenset(p.strip().lower() for p in self.placeholder_names),
        )

    def is_placeholder(self, name: str) -> bool:
        return name.strip().lower() in self._placeholders_lower

    def has_junk_fragment(self, name: str) -> bool:
        lowered = name.lower()
        return any(frag.lower() in lowered for frag in self.junk_fragments)


DEFAULT_RULES = ValidationRules()


# ---------------------------------------------------------------------------
# Identifier helpers
# ---------------------------------------------------------------------------

def startup_name(entry: Mapping) -> object:
    return entry.get(STARTUP_NAME_KEY)


def submission_id(entry: Mapping) -> object:
    """Value of the first known submission-id spelling that holds a valid id,
    else the first non-empty one."""
    values = [entry.get(key) for key in SUBMISSION_ID_KEYS]
    for value in values:
        if is_valid_submission_id(value):
            return value
    return next((v for v in values if v), None)


def is_valid_startup_name(value: object, rules: ValidationRules = DEFAULT_RULES) -> bool:
    if not isinstance(value, str):
        return False
    name = value.strip()
    if not name or rules.is_placeholder(name) or rules.has_junk_fragment(name):
        return False
    return NAME_MIN_EXCLUSIVE < len(name) < NAME_MAX_EXCLUSIVE


def is_valid_submission_id(value: object) -> bool:
    if not isinstance(value, str):
        return False
    sid = value.strip()
    if not sid or sid.lower() == "n/a":
        return False
    return SUBMISSION_ID_RE.match(sid) is not None


def entry_identity(entry: Mapping) -> str | None:
    """Diff identity: submission id when valid, else the trimmed startup name."""
    sid = submission_id(entry)
    if is_valid_submission_id(sid):
        return sid.strip()  # type: ignore[union-attr]
    name = startup_name(entry)
    if isinstance(name, str) and name.strip():
        return name.strip()
    return None


def count_meaningful(entry: Mapping) -> int:
    return sum(1 for value in entry.values() if is_meaningful(value))


# ---------------------------------------------------------------------------
# Decision
# ---------------------------------------------------------------------------

def rejection_reason(entry: object, rules: ValidationRules = DEFAULT_RULES) -> str | None:
    """Return None when the entry is accepted, else a reason code."""
    if not isinstance(entry, Mapping):
        return REASON_NOT_A_MAPPING
    try:
        if not is_valid_startup_name(startup_name(entry), rules):
            return REASON_INVALID_STARTUP_NAME
        if count_meaningful(entry) < rules.min_meaningful_fields:
            return REASON_INSUFFICIENT_FIELDS
    except Exception:  # noqa: BLE001
        # A hostile mapping (e.g. a value whose __str__ raises) is just junk.
        return REASON_NOT_A_MAPPING
    return None


def validate_entry(entry: object, rules: ValidationRules = DEFAULT_RULES) -> bool:
    return rejection_reason(entry, rules) is None
