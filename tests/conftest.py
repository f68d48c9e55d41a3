# File: tests/conftest.py
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Dict, Iterator, List, Union

import pytest

from url_crawler.config import CrawlConfig
from url_crawler.crawler.fetcher import FetchedPage, FetchError, FetchTimeout
from url_crawler.crawler.link_extractor import extract_raw_links


class FakeFetcher:
    """
    In-memory fetch client.

    ``pages`` maps a URL to either an HTML string or an exception instance
    to raise. Unknown URLs raise FetchError, like a 404 would.
    """

    def __init__(self, pages: Dict[str, Union[str, Exception]], delay: float = 0.0) -> None:
        self.pages = pages
        self.delay = delay
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def fetch(self, url: str, timeout: float) -> FetchedPage:
        with self._lock:
            self.calls.append(url)
        if self.delay:
            time.sleep(self.delay)
        body = self.pages.get(url)
        if body is None:
            raise FetchError(f"404 Client Error: Not Found for url: {url}")
        if isinstance(body, Exception):
            raise body
        return FetchedPage(url=url, content=body, links=extract_raw_links(body))


def links_page(*hrefs: str) -> str:
    """Minimal HTML page with one anchor per href."""
    anchors = "".join(f'<a href="{h}">{h}</a>' for h in hrefs)
    return f"<html><body>{anchors}</body></html>"


@pytest.fixture()
def make_config(tmp_path) -> Callable[..., CrawlConfig]:
    """
    Factory for CrawlConfig writing into tmp_path.
    """

    def _make(start_url="https://x.test/root", max_urls_per_page=5, max_depth=1,
              cross_level_uniqueness=True, **kw) -> CrawlConfig:
        kw.setdefault("run_id", "test-run")
        kw.setdefault("output_root", tmp_path / "output")
        kw.setdefault("workers", 4)
        return CrawlConfig(
            start_url=start_url,
            max_urls_per_page=max_urls_per_page,
            max_depth=max_depth,
            cross_level_uniqueness=cross_level_uniqueness,
            **kw,
        )

    return _make


@pytest.fixture()
def fake_fetcher_cls():
    return FakeFetcher


@pytest.fixture()
def page():
    return links_page


@pytest.fixture()
def timeout_error():
    return FetchTimeout("Read timed out. (read timeout=15)")


@pytest.fixture()
def local_site() -> Iterator[str]:
    """
    Serve a tiny site from a background thread and yield its base URL.

    /      -> links to /a, /a (again), /b, /c, mailto
    /a     -> links back to / and to /b
    /b     -> no links
    /c     -> 500
    /slow  -> sleeps longer than the client timeout used in tests
    /stall -> sends headers and part of the body, then stalls
    """
    routes = {
        "/": links_page("/a", "/a", "/b", "/c", "mailto:someone@example.com"),
        "/a": links_page("/", "/b"),
        "/b": "<html><body>leaf</body></html>",
    }

    class Handler(BaseHTTPRequestHandler):
        def do_GET(self):  # noqa: N802
            if self.path == "/slow":
                time.sleep(1.0)
            if self.path == "/stall":
                self.send_response(200)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.send_header("Content-Length", "1000")
                self.end_headers()
                self.wfile.write(b"<html>")
                self.wfile.flush()
                time.sleep(1.0)
                return
            body = routes.get(self.path)
            if body is None:
                status = 404 if self.path != "/c" else 500
                self.send_response(status)
                self.end_headers()
                return
            data = body.encode("utf-8")
            self.send_response(200)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

        def log_message(self, format, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
