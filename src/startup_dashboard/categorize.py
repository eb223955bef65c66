"""startup_dashboard.categorize

Score -> tier mapping.

  score >= 85        platinum
  70 <= score < 85   gold
  0 < score < 70     silver
  score == 0         unreviewed
  blank / non-numeric / outside [0, 100]  unreviewed

Entries that fail validation get no tier at all (None) and must be dropped
by the caller.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping

from startup_dashboard.normalize import parse_score, trim
from startup_dashboard.row_mapper import SCORE_KEY
from startup_dashboard.validation import (
    DEFAULT_RULES,
    ValidationRules,
    entry_identity,
    validate_entry,
)

log = logging.getLogger(__name__)

SCORE_MIN = 0.0
SCORE_MAX = 100.0
PLATINUM_THRESHOLD = 85.0
GOLD_THRESHOLD = 70.0


class Tier(str, enum.Enum):
    PLATINUM = "platinum"
    GOLD = "gold"
    SILVER = "silver"
    UNREVIEWED = "unreviewed"


# Display / serialization order
TIERS = (Tier.PLATINUM, Tier.GOLD, Tier.SILVER, Tier.UNREVIEWED)


def tier_for_score(score: float) -> Tier:
    """Map an in-range score to its tier."""
    if score >= PLATINUM_THRESHOLD:
        return Tier.PLATINUM
    if score >= GOLD_THRESHOLD:
        return Tier.GOLD
    if score > SCORE_MIN:
        return Tier.SILVER
    return Tier.UNREVIEWED


def score_tier(entry: Mapping) -> tuple[Tier, str | None]:
    """Return (tier, anomaly) for an already-validated entry.

    anomaly is None for clean scores and blank scores, otherwise
    'invalid_score' or 'score_out_of_bounds'.
    """
    raw = entry.get(SCORE_KEY)
    if not isinstance(raw, str):
        raw = None if raw is None else str(raw)
    if trim(raw) is None:
        return Tier.UNREVIEWED, None

    score = parse_score(raw)
    if score is None:
        log.warning("Invalid score format %r for entry %s", raw, entry_identity(entry))
        return Tier.UNREVIEWED, "invalid_score"

    if score < SCORE_MIN or score > SCORE_MAX:
        log.warning("Score out of bounds (0-100): %s for entry %s", score, entry_identity(entry))
        return Tier.UNREVIEWED, "score_out_of_bounds"

    return tier_for_score(score), None


def categorize(entry: object, rules: ValidationRules = DEFAULT_RULES) -> Tier | None:
    """Tier for entry, or None when the entry is not a valid submission."""
    if not validate_entry(entry, rules):
        return None
    tier, _anomaly = score_tier(entry)  # type: ignore[arg-type]
    return tier
