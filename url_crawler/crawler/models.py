# url_crawler/crawler/models.py
"""
Data models for the url_crawler scheduler.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

UNKNOWN_URL = "<unknown>"


class FetchStatus(str, Enum):
    OK = "OK"
    TIMEOUT = "TIMEOUT"
    FAILED = "FAILED"


class FailureKind(str, Enum):
    TIMEOUT = "TIMEOUT"
    FAILED = "FAILED"
    SAVE_FAILED = "SAVE_FAILED"
    CRASHED = "CRASHED"
    REJECTED = "REJECTED"


@dataclass(slots=True, frozen=True)
class PageOutcome:
    """Result of one fetch attempt. ``links`` holds raw hrefs and is empty unless status is OK."""

    url: str
    depth: int
    status: FetchStatus
    links: Tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class FailureRecord:
    """One row of failures.csv."""

    depth: int
    url: str
    kind: FailureKind
    message: str = ""

    def as_row(self) -> List[str]:
        return [str(self.depth), self.url, self.kind.value, self.message]


class RunCounters:
    """Outcome counters shared by the scheduler; increments are serialized by a lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Dict[FetchStatus, int] = {status: 0 for status in FetchStatus}

    def record(self, status: FetchStatus) -> None:
        with self._lock:
            self._counts[status] += 1

    @property
    def ok(self) -> int:
        return self._counts[FetchStatus.OK]

    @property
    def timeout(self) -> int:
        return self._counts[FetchStatus.TIMEOUT]

    @property
    def failed(self) -> int:
        return self._counts[FetchStatus.FAILED]


@dataclass(slots=True)
class CrawlSummary:
    """Everything the CLI needs to report once a run is over."""

    run_dir: Path
    ok: int = 0
    timeout: int = 0
    failed: int = 0
    failures: int = 0
    failures_file: Optional[Path] = None
    cancelled: bool = False
    pages_per_depth: Dict[int, int] = field(default_factory=dict)

    def lines(self) -> List[str]:
        out = [
            "==== Run summary ====",
            f"Saved output under: {self.run_dir}",
            f"Fetched OK: {self.ok}",
            f"Timeouts : {self.timeout}",
            f"Failed   : {self.failed}",
        ]
        if self.failures and self.failures_file is not None:
            out.append(f"Failures details: {self.failures_file}")
        if self.cancelled:
            out.append("Crawl was cancelled before completion.")
        return out
