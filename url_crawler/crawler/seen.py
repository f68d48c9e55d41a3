# url_crawler/crawler/seen.py
"""
Seen-sets enforcing the two uniqueness policies.

Every membership test is a single ``claim`` call that checks and inserts
under one lock, so two threads can never both win the same URL.
"""
from __future__ import annotations

import threading
from typing import Dict, Iterable, Set


class SeenSet:
    """Thread-safe set with an atomic insert-if-absent."""

    def __init__(self, initial: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._items: Set[str] = set(initial)

    def claim(self, url: str) -> bool:
        """Insert *url*; True if it was not present before."""
        with self._lock:
            if url in self._items:
                return False
            self._items.add(url)
            return True


class SeenRegistry:
    """
    Dedup state for a whole run.

    With ``cross_level=True`` one global SeenSet is shared by all depths;
    otherwise each target depth gets its own SeenSet, so a URL can recur at
    different depths but not twice at the same one.
    """

    def __init__(self, cross_level: bool) -> None:
        self.cross_level = cross_level
        self._global = SeenSet()
        self._per_depth: Dict[int, SeenSet] = {}
        self._lock = threading.Lock()

    def seed(self, url: str) -> None:
        """Pre-register the start URL (global mode only)."""
        if self.cross_level:
            self._global.claim(url)

    def for_depth(self, depth: int) -> SeenSet:
        if self.cross_level:
            return self._global
        with self._lock:
            seen = self._per_depth.get(depth)
            if seen is None:
                seen = self._per_depth[depth] = SeenSet()
            return seen

    def claim(self, url: str, depth: int) -> bool:
        """Atomically claim *url* for *depth*; False if the policy says it was already taken."""
        return self.for_depth(depth).claim(url)
