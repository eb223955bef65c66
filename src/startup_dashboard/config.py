"""startup_dashboard.config

YAML configuration for the dashboard runner.

Example (config/dashboard.yml):

    sheet_id: "1AbCdEf..."
    gid: "0"
    poll_interval_seconds: 10
    request_timeout_seconds: 30
    max_attempts: 3
    validation:
      placeholder_names: ["n/a", "no name", "unnamed startup"]
      junk_fragments: ["and eldercare", "in the future"]

Every key is optional.  Missing validation lists fall back to the built-in
deny-lists in startup_dashboard.validation.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from startup_dashboard.validation import DEFAULT_RULES, ValidationRules

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

KNOWN_KEYS = frozenset({
    "sheet_id",
    "gid",
    "poll_interval_seconds",
    "request_timeout_seconds",
    "max_attempts",
    "validation",
})

KNOWN_VALIDATION_KEYS = frozenset({"placeholder_names", "junk_fragments"})

DEFAULT_GID = "0"
DEFAULT_POLL_INTERVAL_SECONDS = 10.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_ATTEMPTS = 3


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigValidationError(ValueError):
    """Raised when a YAML config file fails schema validation."""


# ---------------------------------------------------------------------------
# DashboardConfig dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DashboardConfig:
    sheet_id: str | None = None
    gid: str = DEFAULT_GID
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    rules: ValidationRules = DEFAULT_RULES
    config_hash: str | None = field(default=None, compare=False)


# ---------------------------------------------------------------------------
# Loader + validator
# ---------------------------------------------------------------------------

def load_config(yaml_path: Path) -> DashboardConfig:
    """Load, validate, and return a DashboardConfig from a YAML file.

    Raises:
        ConfigValidationError: If the YAML is malformed or a field is invalid.
        FileNotFoundError: If the YAML file does not exist.
    """
    raw = yaml_path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML: {exc}") from exc
    if data is None:
        data = {}
    validate_config(data)
    return config_from_dict(data, hashlib.sha256(raw.encode("utf-8")).hexdigest())


def config_from_dict(data: dict[str, Any], config_hash: str | None = None) -> DashboardConfig:
    validation = data.get("validation") or {}
    rules = ValidationRules(
        placeholder_names=tuple(
            validation.get("placeholder_names", DEFAULT_RULES.placeholder_names)
        ),
        junk_fragments=tuple(
            validation.get("junk_fragments", DEFAULT_RULES.junk_fragments)
        ),
    )
    sheet_id = data.get("sheet_id")
    return DashboardConfig(
        sheet_id=str(sheet_id) if sheet_id is not None else None,
        gid=str(data.get("gid", DEFAULT_GID)),
        poll_interval_seconds=float(
            data.get("poll_interval_seconds", DEFAULT_POLL_INTERVAL_SECONDS)
        ),
        request_timeout_seconds=float(
            data.get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS)
        ),
        max_attempts=int(data.get("max_attempts", DEFAULT_MAX_ATTEMPTS)),
        rules=rules,
        config_hash=config_hash,
    )


def _require_positive(data: dict[str, Any], key: str) -> None:
    if key not in data:
        return
    val = data[key]
    if isinstance(val, bool):
        raise ConfigValidationError(f"'{key}' value '{val}' is not numeric.")
    try:
        fval = float(val)
    except (TypeError, ValueError):
        raise ConfigValidationError(f"'{key}' value '{val}' is not numeric.")
    if fval <= 0:
        raise ConfigValidationError(f"'{key}' value {fval} must be > 0.")


def _require_string_list(section: dict[str, Any], key: str) -> None:
    if key not in section:
        return
    val = section[key]
    if not isinstance(val, list) or not all(isinstance(v, str) for v in val):
        raise ConfigValidationError(f"'validation.{key}' must be a list of strings.")


def validate_config(data: Any) -> None:
    """Raise ConfigValidationError if data does not match the config schema."""
    if not isinstance(data, dict):
        raise ConfigValidationError("YAML root must be a mapping.")

    unknown = set(data.keys()) - KNOWN_KEYS
    if unknown:
        raise ConfigValidationError(f"Unknown config keys: {sorted(unknown)}")

    for key in ("sheet_id", "gid"):
        if key in data and not isinstance(data[key], (str, int)):
            raise ConfigValidationError(f"'{key}' must be a string.")

    _require_positive(data, "poll_interval_seconds")
    _require_positive(data, "request_timeout_seconds")

    if "max_attempts" in data:
        attempts = data["max_attempts"]
        if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
            raise ConfigValidationError(
                f"'max_attempts' value '{attempts}' must be an integer >= 1."
            )

    validation = data.get("validation")
    if validation is None:
        return
    if not isinstance(validation, dict):
        raise ConfigValidationError("'validation' must be a mapping.")
    unknown = set(validation.keys()) - KNOWN_VALIDATION_KEYS
    if unknown:
        raise ConfigValidationError(f"Unknown validation keys: {sorted(unknown)}")
    _require_string_list(validation, "placeholder_names")
    _require_string_list(validation, "junk_fragments")
