# url_crawler/__init__.py
"""
url_crawler package initializer.
Defines package version and exposes CLI.
"""
__version__ = "0.1.0"

from url_crawler.cli import cli

# Expose CLI entry point
main_cli = cli

__all__ = ["__version__", "cli", "main_cli"]
