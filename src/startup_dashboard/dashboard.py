"""startup_dashboard.dashboard

Owns the authoritative tiered record set.

Each refresh builds a brand-new DashboardState from the candidate rows and,
if it differs structurally from the current one, swaps the single state
reference.  Readers grab `manager.state` once and get an immutable snapshot;
they can never observe a mix of two cycles.

There is no internal locking.  Only one refresh may be in flight at a time;
callers serialize refresh() (the `poll` command runs cycles in one loop).

Usage:
    manager = DashboardStateManager()
    changed = manager.refresh(parse_entries(csv_text))
    if changed:
        publish(manager.state.to_dict())
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from startup_dashboard.categorize import TIERS, Tier, score_tier
from startup_dashboard.row_mapper import Entry, make_entry
from startup_dashboard.shared import RejectWriter
from startup_dashboard.validation import (
    DEFAULT_RULES,
    ValidationRules,
    entry_identity,
    rejection_reason,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DashboardState:
    """One refresh cycle's categorized entries, per tier, in input order."""

    platinum: tuple[Entry, ...] = ()
    gold: tuple[Entry, ...] = ()
    silver: tuple[Entry, ...] = ()
    unreviewed: tuple[Entry, ...] = ()

    def entries(self, tier: Tier) -> tuple[Entry, ...]:
        return getattr(self, tier.value)

    def counts(self) -> dict[str, int]:
        return {tier.value: len(self.entries(tier)) for tier in TIERS}

    def __len__(self) -> int:
        return sum(len(self.entries(tier)) for tier in TIERS)

    def identities(self) -> set[str]:
        ids: set[str] = set()
        for tier in TIERS:
            for entry in self.entries(tier):
                ident = entry_identity(entry)
                if ident:
                    ids.add(ident)
        return ids

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        """Plain JSON-ready structure: {tier: [entry dict, ...]}."""
        return {
            tier.value: [dict(entry) for entry in self.entries(tier)]
            for tier in TIERS
        }


EMPTY_STATE = DashboardState()


# ---------------------------------------------------------------------------
# Counters / result
# ---------------------------------------------------------------------------

@dataclass
class RefreshCounters:
    candidates_read: int = 0
    rows_accepted: int = 0
    rows_rejected: int = 0
    rejected_by_reason: dict[str, int] = field(default_factory=dict)
    score_anomalies: dict[str, int] = field(default_factory=dict)
    tier_counts: dict[str, int] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def reject(self, reason: str) -> None:
        self.rows_rejected += 1
        self.rejected_by_reason[reason] = self.rejected_by_reason.get(reason, 0) + 1

    def anomaly(self, kind: str) -> None:
        self.score_anomalies[kind] = self.score_anomalies.get(kind, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidates_read": self.candidates_read,
            "rows_accepted": self.rows_accepted,
            "rows_rejected": self.rows_rejected,
            "rejected_by_reason": dict(self.rejected_by_reason),
            "score_anomalies": dict(self.score_anomalies),
            "tier_counts": dict(self.tier_counts),
            "warnings": self.warnings[:50],
        }


@dataclass(frozen=True)
class RefreshResult:
    changed: bool
    added_ids: frozenset[str]
    removed_ids: frozenset[str]
    counters: RefreshCounters


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------

def build_state(
    candidates: Iterable[object] | None,
    counters: RefreshCounters,
    rules: ValidationRules = DEFAULT_RULES,
    rejects: RejectWriter | None = None,
) -> DashboardState:
    """Validate + categorize candidates into a fresh DashboardState."""
    buckets: dict[Tier, list[Entry]] = {tier: [] for tier in TIERS}

    for idx, candidate in enumerate(candidates or ()):
        counters.candidates_read += 1
        reason = rejection_reason(candidate, rules)
        if reason is not None:
            counters.reject(reason)
            log.debug("Filtering out candidate %d: %s", idx + 1, reason)
            if rejects is not None:
                rejects.write(_reject_row(candidate), reason)
            continue

        entry = make_entry(candidate)  # type: ignore[arg-type]
        tier, anomaly = score_tier(entry)
        if anomaly:
            counters.anomaly(anomaly)
            counters.warnings.append(f"{anomaly}: {entry_identity(entry)}")
        buckets[tier].append(entry)
        counters.rows_accepted += 1

    state = DashboardState(**{tier.value: tuple(buckets[tier]) for tier in TIERS})
    counters.tier_counts = state.counts()
    return state


def _reject_row(candidate: object) -> dict[str, str]:
    if isinstance(candidate, Mapping):
        return {str(k): "" if v is None else str(v) for k, v in candidate.items()}
    return {"_raw": repr(candidate)}


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------

class DashboardStateManager:
    """Single-writer holder of the current DashboardState."""

    def __init__(
        self,
        rules: ValidationRules = DEFAULT_RULES,
        initial: DashboardState = EMPTY_STATE,
    ) -> None:
        self._rules = rules
        self._state = initial
        self._last_result: RefreshResult | None = None

    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def last_result(self) -> RefreshResult | None:
        return self._last_result

    def refresh(
        self,
        candidates: Iterable[object] | None,
        rejects: RejectWriter | None = None,
    ) -> bool:
        """Run one refresh cycle; True when the published state changed."""
        counters = RefreshCounters()
        previous = self._state
        new_state = build_state(candidates, counters, self._rules, rejects)

        previous_ids = previous.identities()
        current_ids = new_state.identities()
        added = frozenset(current_ids - previous_ids)
        removed = frozenset(previous_ids - current_ids)
        for ident in sorted(removed):
            log.info("Removed entry: %s", ident)
        for ident in sorted(added):
            log.info("Added entry: %s", ident)

        log.info(
            "Refresh: %d read, %d accepted, %d rejected; tiers %s",
            counters.candidates_read, counters.rows_accepted,
            counters.rows_rejected, counters.tier_counts,
        )

        changed = new_state.to_dict() != previous.to_dict()
        if changed:
            self._state = new_state
        else:
            log.info("No changes detected in dashboard data")

        self._last_result = RefreshResult(
            changed=changed,
            added_ids=added,
            removed_ids=removed,
            counters=counters,
        )
        return changed


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

def build_refresh_report(result: RefreshResult, state: DashboardState) -> str:
    c = result.counters
    lines = [
        "=== Dashboard Refresh Report ===",
        f"changed          : {result.changed}",
        "",
        "--- Input ---",
        f"candidates_read  : {c.candidates_read}",
        f"rows_accepted    : {c.rows_accepted}",
        f"rows_rejected    : {c.rows_rejected}",
    ]
    for reason, count in sorted(c.rejected_by_reason.items()):
        lines.append(f"  {reason:<15}: {count}")
    lines += ["", "--- Tiers ---"]
    for tier, count in state.counts().items():
        lines.append(f"{tier:<17}: {count}")
    lines += [
        "",
        "--- Sync ---",
        f"added            : {len(result.added_ids)}",
        f"removed          : {len(result.removed_ids)}",
    ]
    if c.score_anomalies:
        lines += ["", "--- Score anomalies ---"]
        lines += [f"  {kind}: {count}" for kind, count in sorted(c.score_anomalies.items())]
    if c.warnings:
        lines += ["", "--- Warnings (first 10) ---"]
        lines += [f"  {w}" for w in c.warnings[:10]]
    return "\n".join(lines)
