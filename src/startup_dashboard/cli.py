"""startup_dashboard.cli

CLI entrypoint for the submission dashboard pipeline.

Modes (--mode):
  refresh  - run one refresh cycle and print the report (default)
  poll     - run refresh cycles back to back in a single loop

Usage (refresh from a local export):
    python -m startup_dashboard.cli \\
        --mode refresh \\
        --csv-path "exports/submissions.csv" \\
        --output "artifacts/dashboard.json" \\
        --rejects-path "artifacts/rejects/submissions_rejects.csv"

Usage (poll the live sheet):
    GOOGLE_SHEET_ID=1AbC... python -m startup_dashboard.cli \\
        --mode poll \\
        --config config/dashboard.yml
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
import uuid
from dataclasses import replace
from pathlib import Path

import click
import requests

from startup_dashboard.config import (
    ConfigValidationError,
    DashboardConfig,
    load_config,
)
from startup_dashboard.dashboard import (
    DashboardState,
    DashboardStateManager,
    build_refresh_report,
)
from startup_dashboard.fetch import (
    FetchCounters,
    export_urls,
    fetch_sheet_csv,
    make_session,
)
from startup_dashboard.row_mapper import parse_entries
from startup_dashboard.shared import (
    REPORTS_DIR,
    RejectWriter,
    utc_now_iso,
    write_run_report,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_source(
    csv_path: str | None,
    config: DashboardConfig,
    session: requests.Session | None,
    fetch_counters: FetchCounters,
) -> str | None:
    """Return raw CSV text from the local file or the sheet; None on failure."""
    if csv_path:
        try:
            return Path(csv_path).read_text(encoding="utf-8-sig", errors="replace")
        except OSError as exc:
            fetch_counters.warnings.append(f"cannot read {csv_path}: {exc}")
            return None
    return fetch_sheet_csv(
        session,
        export_urls(config.sheet_id, config.gid),
        fetch_counters,
        max_attempts=config.max_attempts,
        timeout=config.request_timeout_seconds,
    )


def _write_state(output: str, state: DashboardState) -> None:
    out_path = Path(output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(state.to_dict(), indent=2, default=str), encoding="utf-8")


def _run_cycle(
    run_id: str,
    manager: DashboardStateManager,
    csv_path: str | None,
    config: DashboardConfig,
    session: requests.Session | None,
    rejects_path: str | None,
) -> tuple[bool | None, FetchCounters]:
    """One fetch -> refresh cycle.  Returns (changed, fetch counters).

    changed is None when no usable input arrived; the previous state and the
    previous reject file stay.  Otherwise the reject file is rewritten with
    this cycle's rejects only.
    """
    fetch_counters = FetchCounters()
    text = _read_source(csv_path, config, session, fetch_counters)
    if text is None:
        click.echo(f"[{run_id}] WARN: no usable input; keeping previous dashboard state", err=True)
        for w in fetch_counters.warnings[:5]:
            click.echo(f"[{run_id}]   {w}", err=True)
        return None, fetch_counters
    rejects = RejectWriter(Path(rejects_path)) if rejects_path else None
    try:
        changed = manager.refresh(parse_entries(text), rejects=rejects)
    finally:
        if rejects is not None:
            rejects.close()
    return changed, fetch_counters


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

@click.command()
@click.option(
    "--mode",
    default="refresh",
    type=click.Choice(["refresh", "poll"]),
    show_default=True,
    help="Run mode",
)
@click.option("--config", "config_path", default=None, type=click.Path(), help="YAML config file")
@click.option("--csv-path", default=None, type=click.Path(), help="Read a local CSV export instead of the sheet")
@click.option("--sheet-id", default=None, help="Spreadsheet id (overrides config)")
@click.option(
    "--sheet-id-env",
    default="GOOGLE_SHEET_ID",
    show_default=True,
    help="Env var name holding the spreadsheet id",
)
@click.option("--output", default=None, type=click.Path(), help="Write the dashboard state JSON here")
@click.option("--rejects-path", default=None, type=click.Path(), help="Write the latest cycle's rejected rows to this CSV")
@click.option(
    "--reports-dir",
    default=str(REPORTS_DIR),
    show_default=True,
    type=click.Path(),
    help="[refresh] Directory for the JSON run report",
)
@click.option("--no-report", is_flag=True, default=False, help="[refresh] Skip the JSON run report")
@click.option("--max-cycles", default=None, type=click.IntRange(min=1), help="[poll] Stop after this many cycles")
@click.option(
    "--interval",
    default=None,
    type=click.FloatRange(min=0, min_open=True),
    help="[poll] Seconds between cycles, > 0 (overrides config)",
)
@click.option("--run-id", default=None, help="Override UUID for log correlation")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    show_default=True,
)
def main(
    mode: str,
    config_path: str | None,
    csv_path: str | None,
    sheet_id: str | None,
    sheet_id_env: str,
    output: str | None,
    rejects_path: str | None,
    reports_dir: str,
    no_report: bool,
    max_cycles: int | None,
    interval: float | None,
    run_id: str | None,
    log_level: str,
) -> None:
    """Submission dashboard refresh CLI."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_id = run_id or str(uuid.uuid4())
    started_at = utc_now_iso()

    try:
        config = load_config(Path(config_path)) if config_path else DashboardConfig()
    except (ConfigValidationError, FileNotFoundError) as exc:
        click.echo(f"[{run_id}] FATAL: config error: {exc}", err=True)
        sys.exit(1)

    sheet_id = sheet_id or config.sheet_id or os.environ.get(sheet_id_env) or None
    config = replace(config, sheet_id=sheet_id)
    if interval is not None:
        config = replace(config, poll_interval_seconds=interval)

    if not csv_path and not config.sheet_id:
        click.echo(
            f"[{run_id}] FATAL: provide --csv-path, --sheet-id, a config sheet_id, "
            f"or set {sheet_id_env}",
            err=True,
        )
        sys.exit(1)

    source = csv_path or f"sheet:{config.sheet_id}"
    session = None if csv_path else make_session()
    manager = DashboardStateManager(rules=config.rules)

    click.echo(f"[{run_id}] Starting {mode} run (source={source})")

    try:
        if mode == "refresh":
            changed, fetch_counters = _run_cycle(run_id, manager, csv_path, config, session, rejects_path)
            if changed is None:
                sys.exit(1)
            result = manager.last_result
            click.echo(build_refresh_report(result, manager.state))
            if output:
                _write_state(output, manager.state)
                click.echo(f"[{run_id}] Dashboard state written to {output}")
            if not no_report:
                counters = result.counters.to_dict()
                counters["fetch"] = fetch_counters.to_dict()
                report_path = write_run_report(
                    run_id, started_at, mode, source, changed, counters,
                    reports_dir=Path(reports_dir),
                )
                click.echo(f"[{run_id}] Run report: {report_path}")
            return

        cycle = 0
        while max_cycles is None or cycle < max_cycles:
            if cycle > 0:
                time.sleep(config.poll_interval_seconds)
            cycle += 1
            changed, _ = _run_cycle(run_id, manager, csv_path, config, session, rejects_path)
            if changed:
                counts = manager.state.counts()
                click.echo(f"[{run_id}] cycle {cycle}: dashboard updated {counts}")
                if output:
                    _write_state(output, manager.state)
            elif changed is False:
                click.echo(f"[{run_id}] cycle {cycle}: no changes")
    except KeyboardInterrupt:
        click.echo(f"[{run_id}] Interrupted; stopping.")


if __name__ == "__main__":
    main()
