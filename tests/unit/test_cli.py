"""Unit tests for the startup_dashboard CLI (local CSV and mocked fetch)."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from startup_dashboard.cli import main

CSV_TEXT = (
    "Submission ID,Name of the startup,Founder(s) Name,Scores\n"
    "SUB001,TechCorp,John Doe,95\n"
    "SUB002,InnovateLab,Jane Smith,75\n"
    "SUB003,StartupX,Bob Wilson,45\n"
    "SUB004,NewVenture,Alice Brown,\n"
    "SUB005,N/A,Nobody,99\n"
)


@pytest.fixture
def csv_path(tmp_path: Path) -> Path:
    p = tmp_path / "submissions.csv"
    p.write_text(CSV_TEXT, encoding="utf-8")
    return p


class TestRefreshMode:
    def test_local_csv_refresh(self, csv_path: Path, tmp_path: Path):
        output = tmp_path / "out" / "dashboard.json"
        rejects = tmp_path / "rejects.csv"
        reports = tmp_path / "reports"
        result = CliRunner().invoke(main, [
            "--csv-path", str(csv_path),
            "--output", str(output),
            "--rejects-path", str(rejects),
            "--reports-dir", str(reports),
            "--run-id", "test-run",
        ])
        assert result.exit_code == 0, result.output
        assert "=== Dashboard Refresh Report ===" in result.output
        assert "changed          : True" in result.output

        state = json.loads(output.read_text())
        assert [e["name_of_the_startup"] for e in state["platinum"]] == ["TechCorp"]
        assert [e["name_of_the_startup"] for e in state["unreviewed"]] == ["NewVenture"]
        assert "SUB005" in rejects.read_text()

        report = json.loads((reports / "test-run.json").read_text())
        assert report["changed"] is True
        assert report["counters"]["rows_rejected"] == 1
        assert "fetch" in report["counters"]

    def test_no_report_flag(self, csv_path: Path, tmp_path: Path):
        reports = tmp_path / "reports"
        result = CliRunner().invoke(main, [
            "--csv-path", str(csv_path),
            "--reports-dir", str(reports),
            "--no-report",
        ])
        assert result.exit_code == 0, result.output
        assert not reports.exists()

    def test_missing_source_is_fatal(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEET_ID", raising=False)
        result = CliRunner().invoke(main, ["--run-id", "r"])
        assert result.exit_code == 1
        assert "FATAL" in result.output

    def test_unreadable_csv_exits_nonzero(self, tmp_path: Path):
        result = CliRunner().invoke(main, [
            "--csv-path", str(tmp_path / "missing.csv"),
            "--no-report",
        ])
        assert result.exit_code == 1
        assert "no usable input" in result.output

    def test_bad_config_is_fatal(self, tmp_path: Path):
        cfg = tmp_path / "bad.yml"
        cfg.write_text("max_attempts: 0\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["--config", str(cfg), "--csv-path", "x.csv"])
        assert result.exit_code == 1
        assert "config error" in result.output

    def test_sheet_fetch_uses_env_sheet_id(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("GOOGLE_SHEET_ID", "ENVSHEET")
        with patch("startup_dashboard.cli.fetch_sheet_csv", return_value=CSV_TEXT) as fetch:
            result = CliRunner().invoke(main, [
                "--reports-dir", str(tmp_path / "reports"),
            ])
        assert result.exit_code == 0, result.output
        urls = fetch.call_args[0][1]
        assert all("/d/ENVSHEET/" in u for u in urls)
        assert "source=sheet:ENVSHEET" in result.output


class TestPollMode:
    def test_second_identical_cycle_reports_no_changes(self, csv_path: Path):
        result = CliRunner().invoke(main, [
            "--mode", "poll",
            "--csv-path", str(csv_path),
            "--max-cycles", "2",
            "--interval", "0.001",
        ])
        assert result.exit_code == 0, result.output
        assert "cycle 1: dashboard updated" in result.output
        assert "cycle 2: no changes" in result.output

    def test_failed_fetch_keeps_previous_state(self, tmp_path: Path):
        output = tmp_path / "dashboard.json"
        with patch(
            "startup_dashboard.cli.fetch_sheet_csv",
            side_effect=[CSV_TEXT, None, CSV_TEXT],
        ):
            result = CliRunner().invoke(main, [
                "--mode", "poll",
                "--sheet-id", "SHEET",
                "--max-cycles", "3",
                "--interval", "0.001",
                "--output", str(output),
            ])
        assert result.exit_code == 0, result.output
        assert "cycle 1: dashboard updated" in result.output
        assert "no usable input" in result.output
        assert "cycle 3: no changes" in result.output
        state = json.loads(output.read_text())
        assert len(state["platinum"]) == 1

    def test_rejects_file_holds_latest_cycle_only(self, csv_path: Path, tmp_path: Path):
        rejects = tmp_path / "rejects.csv"
        result = CliRunner().invoke(main, [
            "--mode", "poll",
            "--csv-path", str(csv_path),
            "--max-cycles", "3",
            "--interval", "0.001",
            "--rejects-path", str(rejects),
        ])
        assert result.exit_code == 0, result.output
        with rejects.open(newline="", encoding="utf-8") as fh:
            rows = list(csv.DictReader(fh))
        assert [r["submission_id"] for r in rows] == ["SUB005"]

    @pytest.mark.parametrize("interval", ["-1", "0"])
    def test_non_positive_interval_rejected(self, csv_path: Path, interval: str):
        result = CliRunner().invoke(main, [
            "--mode", "poll",
            "--csv-path", str(csv_path),
            "--max-cycles", "2",
            "--interval", interval,
        ])
        assert result.exit_code == 2
        assert "Invalid value for '--interval'" in result.output
        assert "cycle 1" not in result.output
