# File: url_crawler/engine.py
"""url_crawler.engine: wires the fetcher, output tree and scheduler for one run."""

from __future__ import annotations

import signal
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from url_crawler.config import CrawlConfig
from url_crawler.crawler.failures import FailureLog
from url_crawler.crawler.fetcher import PageFetcher
from url_crawler.crawler.models import CrawlSummary
from url_crawler.crawler.scheduler import CrawlScheduler, FetchClient
from url_crawler.logger import logger
from url_crawler.storage import OutputManager

__all__ = ["run_crawl", "shutdown_on_signals"]


@contextmanager
def shutdown_on_signals(stop_event: threading.Event) -> Iterator[None]:
    """Set *stop_event* on SIGINT/SIGTERM for the duration of the block (main thread only)."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, frame):
        logger.info("Received signal %s, initiating shutdown…", signum)
        stop_event.set()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _handler)
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def run_crawl(
    config: CrawlConfig,
    fetcher: Optional[FetchClient] = None,
    stop_event: Optional[threading.Event] = None,
) -> CrawlSummary:
    """Run one crawl described by *config* and return its summary.

    The run directory is created up front; an OSError there propagates and
    no page is fetched.
    """
    stop_event = stop_event if stop_event is not None else threading.Event()
    failures = FailureLog()
    output = OutputManager(config.run_dir, failures)
    output.prepare()

    own_fetcher = PageFetcher() if fetcher is None else None
    client: FetchClient = fetcher if fetcher is not None else own_fetcher
    scheduler = CrawlScheduler(config, client, output, failures=failures, stop_event=stop_event)
    try:
        with shutdown_on_signals(stop_event):
            return scheduler.run()
    finally:
        if own_fetcher is not None:
            own_fetcher.close()
