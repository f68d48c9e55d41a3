# url_crawler/crawler/fetcher.py
"""
Fetcher module: retrieves a page over HTTP and lists the raw links it contains.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import requests
from urllib3.exceptions import ConnectTimeoutError, ReadTimeoutError

from url_crawler.config import DEFAULT_REQUEST_TIMEOUT
from url_crawler.crawler.link_extractor import extract_raw_links

DEFAULT_HEADERS: Mapping[str, str] = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36",
    "Referer": "https://www.google.com/",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class FetchError(Exception):
    """Any transport-level failure other than a timeout."""


class FetchTimeout(FetchError):
    """The request did not complete within its deadline."""


def _is_stalled_read(exc: requests.RequestException) -> bool:
    """A body read that hit the deadline surfaces as ConnectionError wrapping a urllib3 timeout."""
    return isinstance(exc, requests.ConnectionError) and bool(exc.args) and isinstance(
        exc.args[0], (ReadTimeoutError, ConnectTimeoutError)
    )


@dataclass(slots=True)
class FetchedPage:
    """Body of a retrieved page plus the raw hrefs found in it."""

    url: str
    content: str
    links: List[str] = field(default_factory=list)


class PageFetcher:
    """Blocking HTTP client; safe to share between worker threads (one Session per thread)."""

    def __init__(self, headers: Optional[Mapping[str, str]] = None) -> None:
        self.headers: Dict[str, str] = dict(DEFAULT_HEADERS if headers is None else headers)
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self.headers)
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def fetch(self, url: str, timeout: float = DEFAULT_REQUEST_TIMEOUT) -> FetchedPage:
        """
        GET *url*, following redirects, and extract its links.

        Raises FetchTimeout when the deadline is exceeded and FetchError for
        every other transport failure, HTTP error statuses included.
        """
        try:
            resp = self._session().get(url, timeout=timeout, allow_redirects=True)
            resp.raise_for_status()
            text = resp.text
        except requests.exceptions.Timeout as exc:
            raise FetchTimeout(str(exc) or "timed out") from exc
        except requests.RequestException as exc:
            if _is_stalled_read(exc):
                raise FetchTimeout(str(exc) or "timed out") from exc
            raise FetchError(str(exc) or exc.__class__.__name__) from exc
        return FetchedPage(url=url, content=text, links=extract_raw_links(text))

    def close(self) -> None:
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    def __enter__(self) -> PageFetcher:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
