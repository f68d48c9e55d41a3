# url_crawler/crawler/failures.py
"""
Failure collector: any thread appends, the finalization step drains once.
"""
from __future__ import annotations

import threading
from typing import List

from url_crawler.crawler.models import FailureKind, FailureRecord
from url_crawler.logger import get_logger

log = get_logger("failures")


class FailureLog:
    """Append-only, thread-safe list of FailureRecord."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: List[FailureRecord] = []

    def add(self, record: FailureRecord) -> None:
        log.debug("%s at depth %d: %s (%s)", record.kind.value, record.depth, record.url, record.message)
        with self._lock:
            self._records.append(record)

    def record(self, depth: int, url: str, kind: FailureKind, message: object = "") -> None:
        self.add(FailureRecord(depth=depth, url=url, kind=kind, message="" if message is None else str(message)))

    def snapshot(self) -> List[FailureRecord]:
        with self._lock:
            return list(self._records)

    def drain(self) -> List[FailureRecord]:
        """Return every record collected so far and clear the log."""
        with self._lock:
            records, self._records = self._records, []
        return records
