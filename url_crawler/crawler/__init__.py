# url_crawler/crawler/__init__.py
"""Crawl scheduling, fetching and the data models they exchange."""
