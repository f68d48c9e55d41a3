# File: url_crawler/utils.py
"""url_crawler.utils: URL canonicalisation and link-validity helpers.

Only two things matter for deduplication: the fragment is dropped and the
path has its ``.``/``..`` segments resolved. Query strings, trailing slashes
and letter case are left alone, so ``/a`` and ``/a/`` stay distinct URLs.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence
from urllib.parse import urljoin, urlsplit, urlunsplit

from url_crawler.logger import get_logger

__all__: Sequence[str] = (
    "FETCHABLE_SCHEMES",
    "normalize_url",
    "is_fetchable",
    "resolve_url",
    "clean_raw_href",
    "remove_dot_segments",
)

FETCHABLE_SCHEMES = frozenset({"http", "https"})

_QUOTES = "\"'"
_TRAILING_JUNK = "\"'>"
_WHITESPACE_RE = re.compile(r"\s")

log = get_logger("utils")


def remove_dot_segments(path: str) -> str:
    """Resolve ``.`` and ``..`` segments of an absolute path (RFC 3986, 5.2.4)."""
    if not path.startswith("/") or "." not in path:
        return path

    output: list[str] = []
    segments = path.split("/")[1:]
    for i, segment in enumerate(segments):
        last = i == len(segments) - 1
        if segment == ".":
            if last:
                output.append("")
        elif segment == "..":
            if output:
                output.pop()
            if last:
                output.append("")
        else:
            output.append(segment)
    return "/" + "/".join(output)


def normalize_url(url: str) -> str:
    """Return the canonical form of *url*: dot segments resolved, fragment removed.

    Malformed input is returned unchanged; one bad URL never stops a crawl.
    """
    try:
        parts = urlsplit(url)
        # accessing .port validates the netloc
        parts.port
    except ValueError:
        log.debug("Cannot normalize %r, keeping it as is", url)
        return url
    path = remove_dot_segments(parts.path)
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, ""))


def is_fetchable(url: str) -> bool:
    """True iff the scheme of *url* is http or https (case-insensitive)."""
    try:
        scheme = urlsplit(url).scheme
    except ValueError:
        return False
    return scheme.lower() in FETCHABLE_SCHEMES


def resolve_url(base_url: str, href: str) -> Optional[str]:
    """Resolve *href* against *base_url* and normalize it; None if either cannot be parsed."""
    try:
        absolute = urljoin(base_url, href)
        urlsplit(absolute).port
    except ValueError:
        log.debug("Dropping unresolvable href %r on %s", href, base_url)
        return None
    if not absolute:
        return None
    return normalize_url(absolute)


def clean_raw_href(href: Optional[str]) -> Optional[str]:
    """Trim a raw ``href`` attribute value that may carry markup debris.

    Surrounding quotes are removed, everything after the first whitespace is
    discarded (stray attributes such as ``target="_blank"``), and trailing
    quote or ``>`` characters are stripped.
    """
    if href is None:
        return None
    s = href.strip()
    if not s:
        return None

    if len(s) >= 2 and s[0] in _QUOTES and s[-1] == s[0]:
        s = s[1:-1].strip()

    s = _WHITESPACE_RE.split(s, maxsplit=1)[0]

    while s and s[-1] in _TRAILING_JUNK:
        s = s[:-1].rstrip()

    return s or None
