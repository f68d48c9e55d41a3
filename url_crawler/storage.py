# File: url_crawler/storage.py
"""url_crawler.storage: the per-run output tree.

Layout::

    <output_root>/<run_id>/
        failures.csv
        0/<name>.html
        0/<name>.children.txt
        1/...

Distinct URLs fetched at the same depth never share a file, while the same
URL fetched twice at one depth always maps to the same file.
"""

from __future__ import annotations

import csv
import hashlib
import re
import threading
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Set, Union

from url_crawler.crawler.failures import FailureLog
from url_crawler.crawler.models import FailureKind, FailureRecord
from url_crawler.logger import get_logger

__all__: Sequence[str] = ("OutputManager", "safe_base_name", "hashed_name", "FAILURES_FILE")

PAGE_SUFFIX = ".html"
CHILDREN_SUFFIX = ".children.txt"
FAILURES_FILE = "failures.csv"
FAILURES_HEADER = ("depth", "url", "type", "message")

MAX_BASE_LEN = 120
MAX_HASHED_PREFIX_LEN = 80
HASH_LEN = 12

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9]+")

log = get_logger("storage")


def safe_base_name(url: str, limit: int = MAX_BASE_LEN) -> str:
    """Readable but lossy file stem: non-alphanumeric runs become ``_``."""
    return _UNSAFE_RE.sub("_", url)[:limit] or "_"


def hashed_name(url: str) -> str:
    """Base name capped short, plus a SHA-256 prefix of the full URL."""
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:HASH_LEN]
    return f"{safe_base_name(url, MAX_HASHED_PREFIX_LEN)}__{digest}"


class _DepthNamespace:
    """Filename reservations for one depth directory.

    ``used`` holds casefolded names so two URLs differing only in case never
    share a file on a case-insensitive filesystem.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.by_url: Dict[str, str] = {}
        self.used: Set[str] = set()

    def reserve(self, url: str) -> str:
        with self.lock:
            name = self.by_url.get(url)
            if name is not None:
                return name

            name = safe_base_name(url)
            if name.casefold() in self.used:
                name = hashed_name(url)
            if name.casefold() in self.used:
                stem, n = name, 2
                while f"{stem}_{n}".casefold() in self.used:
                    n += 1
                name = f"{stem}_{n}"

            self.used.add(name.casefold())
            self.by_url[url] = name
            return name


class OutputManager:
    """Writes pages, children lists and failures.csv under one run directory."""

    def __init__(self, run_dir: Union[str, Path], failures: FailureLog) -> None:
        self.run_dir = Path(run_dir)
        self.failures = failures
        self._namespaces: Dict[int, _DepthNamespace] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ names

    def _namespace(self, depth: int) -> _DepthNamespace:
        with self._lock:
            ns = self._namespaces.get(depth)
            if ns is None:
                ns = self._namespaces[depth] = _DepthNamespace()
            return ns

    def reserve_name(self, depth: int, url: str) -> str:
        """Stem reserved for *url* at *depth*; stable for the whole run."""
        return self._namespace(depth).reserve(url)

    def depth_dir(self, depth: int) -> Path:
        return self.run_dir / str(depth)

    def page_path(self, depth: int, url: str) -> Path:
        return self.depth_dir(depth) / (self.reserve_name(depth, url) + PAGE_SUFFIX)

    def children_path(self, depth: int, url: str) -> Path:
        return self.depth_dir(depth) / (self.reserve_name(depth, url) + CHILDREN_SUFFIX)

    # ----------------------------------------------------------------- writes

    def prepare(self) -> Path:
        """Create the run directory; OSError propagates, nothing can be saved without it."""
        self.run_dir.mkdir(parents=True, exist_ok=True)
        return self.run_dir

    def save_page(self, depth: int, url: str, content: Union[str, bytes, None]) -> Optional[Path]:
        """Write a page body. Errors become SAVE_FAILED records and None is returned."""
        path = self.page_path(depth, url)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content or "", encoding="utf-8")
        except OSError as exc:
            log.warning("Could not save %s: %s", url, exc)
            self.failures.record(depth, url, FailureKind.SAVE_FAILED, exc)
            return None
        return path

    def save_children(self, depth: int, parent_url: str, children: Iterable[str]) -> Optional[Path]:
        """Write the accepted children of *parent_url*, one per line (empty file if none)."""
        path = self.children_path(depth, parent_url)
        body = "".join(f"{child}\n" for child in children)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(body, encoding="utf-8")
        except OSError as exc:
            log.warning("Could not save children of %s: %s", parent_url, exc)
            self.failures.record(depth, parent_url, FailureKind.SAVE_FAILED, exc)
            return None
        return path

    def write_failures(self, records: Iterable[FailureRecord]) -> Optional[Path]:
        """Write failures.csv (header always present); None if the file cannot be written."""
        out = self.run_dir / FAILURES_FILE
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            with out.open("w", encoding="utf-8", newline="") as fh:
                writer = csv.writer(fh, quoting=csv.QUOTE_ALL, lineterminator="\n")
                writer.writerow(FAILURES_HEADER)
                for record in records:
                    writer.writerow(record.as_row())
        except OSError as exc:
            log.error("Could not write failures file %s: %s", out, exc)
            return None
        return out
