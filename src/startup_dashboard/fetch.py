"""startup_dashboard.fetch

Upstream fetch for the published spreadsheet.

Tries the spreadsheet export endpoints in order and returns the first
non-blank CSV body.  Transport errors and 429/5xx responses are retried with
exponential backoff; other HTTP errors move on to the next endpoint.  When
every endpoint fails the result is None and the caller keeps its previous
dashboard state.
"""

from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass, field
from typing import Any

import requests

log = logging.getLogger(__name__)

EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid={gid}"
GVIZ_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:csv&gid={gid}&headers=1"
USER_AGENT = "startup-dashboard/0.1 (sheet poller)"


# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------

@dataclass
class FetchCounters:
    attempts: int = 0
    network_errors: int = 0
    http_errors: int = 0
    rate_limit_hits: int = 0
    empty_bodies: int = 0
    sources_exhausted: int = 0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = {k: v for k, v in self.__dict__.items() if k != "warnings"}
        d["warnings"] = self.warnings[:50]
        return d


# ---------------------------------------------------------------------------
# Backoff
# ---------------------------------------------------------------------------

@dataclass
class Backoff:
    """Exponential backoff with jitter between retries of one endpoint."""

    base_delay: float = 1.0
    jitter: float = 0.5
    max_multiplier: float = 16.0
    _multiplier: float = field(default=1.0, init=False, repr=False)

    def sleep(self) -> None:
        delay = self.base_delay * self._multiplier
        delay += random.uniform(-self.jitter, self.jitter)
        time.sleep(max(0.0, delay))
        self._multiplier = min(self._multiplier * 2.0, self.max_multiplier)

    def reset(self) -> None:
        self._multiplier = 1.0


# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------

def _cache_buster() -> str:
    token = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"cachebust={int(time.time() * 1000)}&rand={token}"


def export_urls(sheet_id: str, gid: str = "0", cache_bust: bool = True) -> list[str]:
    """Candidate CSV URLs, most reliable first."""
    urls = [
        EXPORT_URL.format(sheet_id=sheet_id, gid=gid),
        GVIZ_URL.format(sheet_id=sheet_id, gid=gid),
    ]
    if cache_bust:
        urls = [f"{url}&{_cache_buster()}" for url in urls]
    return urls


# ---------------------------------------------------------------------------
# Fetch
# ---------------------------------------------------------------------------

def _fetch_one(
    session: requests.Session,
    url: str,
    counters: FetchCounters,
    backoff: Backoff,
    max_attempts: int,
    timeout: float,
) -> str | None:
    backoff.reset()
    last_status: int | None = None
    for attempt in range(max_attempts):
        if attempt > 0:
            backoff.sleep()
        counters.attempts += 1

        try:
            resp = session.get(url, timeout=timeout)
        except requests.RequestException as exc:
            counters.network_errors += 1
            last_status = None
            counters.warnings.append(f"network error fetching {url}: {exc}")
            continue

        if resp.status_code == 429 or resp.status_code >= 500:
            counters.rate_limit_hits += 1
            last_status = resp.status_code
            continue

        if resp.status_code != 200:
            counters.http_errors += 1
            counters.warnings.append(f"HTTP {resp.status_code} from {url}")
            return None

        if not resp.text.strip():
            counters.empty_bodies += 1
            return None

        return resp.text

    if last_status is not None:
        counters.warnings.append(f"HTTP {last_status} from {url} (retries exhausted)")
    return None


def fetch_sheet_csv(
    session: requests.Session,
    urls: list[str],
    counters: FetchCounters,
    max_attempts: int = 3,
    timeout: float = 30.0,
    backoff: Backoff | None = None,
) -> str | None:
    """Return the first non-blank CSV body from urls, or None if all fail."""
    backoff = backoff or Backoff()
    for url in urls:
        text = _fetch_one(session, url, counters, backoff, max_attempts, timeout)
        if text is not None:
            log.info("CSV data received from %s (%d chars)", url.split("?")[0], len(text))
            return text
        log.warning("CSV source failed: %s", url.split("?")[0])

    counters.sources_exhausted += 1
    log.error("All data fetching methods failed")
    return None


def make_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT, "Cache-Control": "no-cache"})
    return session
