# url_crawler/crawler/scheduler.py
"""
Depth-synchronous crawl scheduler.

Each depth is one batch: every frontier URL is submitted to a thread pool
and the scheduler waits for the whole batch. Children are then selected page
by page in frontier order, so first-seen-wins dedup does not depend on the
order in which fetches complete.
"""
from __future__ import annotations

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from url_crawler.config import CrawlConfig
from url_crawler.crawler.failures import FailureLog
from url_crawler.crawler.fetcher import FetchedPage, FetchError, FetchTimeout
from url_crawler.crawler.models import (
    UNKNOWN_URL,
    CrawlSummary,
    FailureKind,
    FetchStatus,
    PageOutcome,
    RunCounters,
)
from url_crawler.crawler.seen import SeenRegistry
from url_crawler.logger import get_logger
from url_crawler.storage import OutputManager
from url_crawler.utils import clean_raw_href, is_fetchable, normalize_url, resolve_url

__all__ = ("CrawlScheduler", "FetchClient", "select_children", "placeholder_body")

#: how often the scheduler wakes up to check the shutdown flag while waiting
POLL_INTERVAL = 0.2


class FetchClient(Protocol):
    def fetch(self, url: str, timeout: float) -> FetchedPage: ...


def placeholder_body(status: FetchStatus, message: str = "") -> str:
    """HTML comment saved in place of a page that could not be fetched."""
    if status is FetchStatus.TIMEOUT:
        return "<!-- timeout -->"
    return f"<!-- failed: {message.replace('--', '__')} -->"


def select_children(
    page_url: str,
    raw_links: Sequence[str],
    limit: int,
    seen: SeenRegistry,
    child_depth: int,
) -> List[str]:
    """
    Pick at most *limit* children of one page, in extraction order.

    Each raw link is cleaned, resolved against *page_url*, normalized and
    checked for an http(s) scheme. A link repeated within the page counts
    once, and links already claimed under the run's uniqueness policy are
    skipped without using up the cap.
    """
    children: List[str] = []
    on_page: set[str] = set()
    for raw in raw_links:
        if len(children) >= limit:
            break
        href = clean_raw_href(raw)
        if href is None:
            continue
        resolved = resolve_url(page_url, href)
        if resolved is None or not is_fetchable(resolved):
            continue
        if resolved in on_page:
            continue
        on_page.add(resolved)
        if not seen.claim(resolved, child_depth):
            continue
        children.append(resolved)
    return children


class CrawlScheduler:
    """Owns the frontier, the seen-sets, the counters and the worker pool for one run."""

    def __init__(
        self,
        config: CrawlConfig,
        fetcher: FetchClient,
        output: OutputManager,
        failures: Optional[FailureLog] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.output = output
        self.failures = failures if failures is not None else output.failures
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.counters = RunCounters()
        self.seen = SeenRegistry(config.cross_level_uniqueness)
        self.pages_per_depth: Dict[int, int] = {}
        self.logger = get_logger("scheduler")
        self._pool: Optional[ThreadPoolExecutor] = None

    # ------------------------------------------------------------------ public

    @property
    def cancelled(self) -> bool:
        return self.stop_event.is_set()

    def run(self) -> CrawlSummary:
        """Crawl from the start URL down to max_depth and return the run summary."""
        cfg = self.config
        root = normalize_url(cfg.start_url)
        self.seen.seed(root)

        self.logger.info(
            "Crawl %s: start=%s max_depth=%d max_urls_per_page=%d cross_level_uniqueness=%s",
            cfg.run_id, root, cfg.max_depth, cfg.max_urls_per_page, cfg.cross_level_uniqueness,
        )
        started = time.monotonic()
        self._pool = ThreadPoolExecutor(max_workers=cfg.workers, thread_name_prefix="fetch")
        try:
            frontier: List[str] = [root]
            depth = 0
            while frontier and depth <= cfg.max_depth and not self.cancelled:
                self.logger.info("Depth %d: %d URL(s)", depth, len(frontier))
                outcomes = self._run_level(frontier, depth)
                self.pages_per_depth[depth] = len(outcomes)
                if depth >= cfg.max_depth:
                    break
                frontier = self._next_frontier(outcomes, depth)
                depth += 1
        finally:
            self._shutdown_pool()
            records = self.failures.drain()
            failures_file = self.output.write_failures(records)

        summary = CrawlSummary(
            run_dir=self.output.run_dir,
            ok=self.counters.ok,
            timeout=self.counters.timeout,
            failed=self.counters.failed,
            failures=len(records),
            failures_file=failures_file,
            cancelled=self.cancelled,
            pages_per_depth=dict(self.pages_per_depth),
        )
        self.logger.info(
            "Crawl %s finished in %.2f s: ok=%d timeout=%d failed=%d",
            cfg.run_id, time.monotonic() - started, summary.ok, summary.timeout, summary.failed,
        )
        return summary

    # ----------------------------------------------------------------- helpers

    def _run_level(self, frontier: Sequence[str], depth: int) -> List[PageOutcome]:
        """Fetch one depth and return its outcomes in frontier order."""
        futures: Dict[Future, Tuple[int, str]] = {}
        for index, url in enumerate(frontier):
            future = self._submit(url, depth)
            if future is not None:
                futures[future] = (index, url)

        results: Dict[int, PageOutcome] = {}
        pending = set(futures)
        while pending:
            if self.cancelled:
                for future in self._drain(pending, depth, futures):
                    self._collect(future, depth, futures, results)
                break
            done, pending = wait(pending, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED)
            for future in done:
                self._collect(future, depth, futures, results)

        return [results[i] for i in sorted(results)]

    def _submit(self, url: str, depth: int) -> Optional[Future]:
        if self.cancelled or self._pool is None:
            self.failures.record(depth, url, FailureKind.REJECTED, "crawl is shutting down")
            return None
        try:
            return self._pool.submit(self._fetch_task, url, depth)
        except RuntimeError as exc:
            self.failures.record(depth, url, FailureKind.REJECTED, exc)
            return None

    def _drain(self, pending: set, depth: int, futures: Dict[Future, Tuple[int, str]]) -> set:
        """Give in-flight tasks the grace period, cancel the rest; returns the finished ones."""
        for future in pending:
            if future.cancel():
                self.failures.record(depth, futures[future][1], FailureKind.REJECTED, "cancelled before start")
        still_running = {f for f in pending if not f.cancelled()}
        done, not_done = wait(still_running, timeout=self.config.shutdown_grace)
        if not_done:
            self.logger.warning("%d fetch(es) still running after %.1f s grace period", len(not_done), self.config.shutdown_grace)
        return done

    def _collect(
        self,
        future: Future,
        depth: int,
        futures: Dict[Future, Tuple[int, str]],
        results: Dict[int, PageOutcome],
    ) -> None:
        """Consume one finished future; counters move exactly once per fetch outcome."""
        if future.cancelled():
            return
        try:
            outcome = future.result()
        except Exception as exc:
            self.logger.debug("Fetch task crashed at depth %d", depth, exc_info=True)
            self.failures.record(depth, UNKNOWN_URL, FailureKind.CRASHED, repr(exc))
            return
        if outcome is None:
            return
        self.counters.record(outcome.status)
        results[futures[future][0]] = outcome

    def _fetch_task(self, url: str, depth: int) -> Optional[PageOutcome]:
        """Runs on a worker thread: fetch, persist, report."""
        if self.cancelled:
            self.failures.record(depth, url, FailureKind.REJECTED, "crawl is shutting down")
            return None

        try:
            page = self.fetcher.fetch(url, self.config.request_timeout)
        except FetchTimeout as exc:
            self.failures.record(depth, url, FailureKind.TIMEOUT, exc)
            self.output.save_page(depth, url, placeholder_body(FetchStatus.TIMEOUT))
            return PageOutcome(url=url, depth=depth, status=FetchStatus.TIMEOUT)
        except FetchError as exc:
            self.failures.record(depth, url, FailureKind.FAILED, exc)
            self.output.save_page(depth, url, placeholder_body(FetchStatus.FAILED, str(exc)))
            return PageOutcome(url=url, depth=depth, status=FetchStatus.FAILED)

        self.output.save_page(depth, url, page.content)
        return PageOutcome(url=url, depth=depth, status=FetchStatus.OK, links=tuple(page.links))

    def _next_frontier(self, outcomes: Sequence[PageOutcome], depth: int) -> List[str]:
        child_depth = depth + 1
        frontier: List[str] = []
        for outcome in outcomes:
            children = select_children(
                outcome.url,
                outcome.links,
                self.config.max_urls_per_page,
                self.seen,
                child_depth,
            )
            self.output.save_children(depth, outcome.url, children)
            frontier.extend(children)
        return frontier

    def _shutdown_pool(self) -> None:
        pool, self._pool = self._pool, None
        if pool is None:
            return
        pool.shutdown(wait=not self.cancelled, cancel_futures=True)
