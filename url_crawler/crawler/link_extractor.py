# url_crawler/crawler/link_extractor.py
"""
Raw link extraction for url_crawler.
"""
from __future__ import annotations

from typing import List, Union

from bs4 import BeautifulSoup
from bs4.element import Tag


def extract_raw_links(html: Union[str, bytes]) -> List[str]:
    """
    Return the href value of every <a href> element, in document order.

    Values are returned untouched: cleaning, resolving and filtering are the
    scheduler's job.
    """
    soup = BeautifulSoup(html, "html.parser")
    links: List[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if isinstance(href_val, list):
            href_val = " ".join(href_val)
        if isinstance(href_val, str):
            links.append(href_val)
    return links
