"""startup_dashboard.shared

Shared run utilities used by the CLI commands: RejectWriter for rejected
candidates and JSON run-report writing.
"""

from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

REPORTS_DIR = Path("./artifacts/reports")


# ---------------------------------------------------------------------------
# RejectWriter
# ---------------------------------------------------------------------------

REJECT_REASON_COLUMN = "_reject_reason"


class RejectWriter:
    """Collects one refresh cycle's rejected candidates and writes them as CSV.

    Rows are buffered until close(), so the header is the union of every
    rejected row's keys in first-seen order, followed by _reject_reason.
    Rows lacking a column get an empty cell.  Each close() rewrites the file,
    so it always describes the latest cycle; a cycle with no rejects removes
    a file left by an earlier one.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._rows: list[dict[str, str]] = []
        self._fieldnames: dict[str, None] = {}
        self.rows_written = 0

    def write(self, row: dict[str, str], reason: str) -> None:
        for key in row:
            self._fieldnames.setdefault(key, None)
        out = dict(row)
        out[REJECT_REASON_COLUMN] = reason
        self._rows.append(out)

    def close(self) -> None:
        if not self._rows:
            self._path.unlink(missing_ok=True)
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fieldnames = [k for k in self._fieldnames if k != REJECT_REASON_COLUMN]
        with open(self._path, "w", newline="", encoding="utf-8") as fh:
            writer = csv.DictWriter(fh, fieldnames=fieldnames + [REJECT_REASON_COLUMN], restval="")
            writer.writeheader()
            writer.writerows(self._rows)
        self.rows_written = len(self._rows)
        self._rows = []
        self._fieldnames = {}


# ---------------------------------------------------------------------------
# Run report
# ---------------------------------------------------------------------------

def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def write_run_report(
    run_id: str,
    started_at: str,
    mode: str,
    source: str,
    changed: bool,
    counters: dict[str, Any],
    reports_dir: Path = REPORTS_DIR,
) -> Path:
    report = {
        "run_id": run_id,
        "mode": mode,
        "started_at": started_at,
        "finished_at": utc_now_iso(),
        "source": source,
        "changed": changed,
        "counters": counters,
    }
    report_path = reports_dir / f"{run_id}.json"
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(json.dumps(report, indent=2, default=str))
    return report_path
