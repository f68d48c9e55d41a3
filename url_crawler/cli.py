# === FILE: url_crawler/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point for url_crawler.

Arguments:
  START_URL                 http(s) URL fetched at depth 0
  MAX_URLS_PER_PAGE         children accepted per page (>= 0)
  MAX_DEPTH                 deepest level crawled, zero-based (>= 0)
  CROSS_LEVEL_UNIQUENESS    true | false (any case)

Options:
  --output-dir DIR    Root of the output tree (default: output)
  --timeout SEC       Per-request timeout (default: 15)
  --workers N         Fetch threads (default: max(4, CPU count))
  --log-level LEVEL   DEBUG, INFO, WARNING, ...
  --log-file PATH     Also write logs to this file
  --version, -v       Show the version

Example:
  url-crawler https://www.ynetnews.com 5 2 true
"""
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from url_crawler import __version__
from url_crawler.config import build_config
from url_crawler.engine import run_crawl
from url_crawler.logger import init_logging

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])

#: exit status after an operator-cancelled crawl (128 + SIGINT)
EXIT_CANCELLED = 130


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "input"
        parts.append(f"{field}: {err.get('msg')}")
    return "Invalid arguments: " + "; ".join(parts)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='url_crawler, version %(version)s')
@click.argument('start_url')
@click.argument('max_urls_per_page', type=click.IntRange(min=0))
@click.argument('max_depth', type=click.IntRange(min=0))
@click.argument('cross_level_uniqueness', type=click.Choice(['true', 'false'], case_sensitive=False))
@click.option(
    '--output-dir', 'output_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Root of the output tree (default: output)'
)
@click.option(
    '--timeout', 'timeout',
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help='Per-request timeout in seconds (default: 15)'
)
@click.option(
    '--workers', 'workers',
    type=click.IntRange(min=1),
    default=None,
    help='Number of fetch threads (default: max(4, CPU count))'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Also write logs to this file'
)
def cli(start_url, max_urls_per_page, max_depth, cross_level_uniqueness,
        output_dir, timeout, workers, log_level, log_file):
    """Crawl START_URL breadth-first down to MAX_DEPTH, keeping at most
    MAX_URLS_PER_PAGE children per page."""
    init_logging(level=log_level.upper(), log_file=log_file)

    try:
        cfg = build_config(
            start_url,
            max_urls_per_page,
            max_depth,
            cross_level_uniqueness,
            output_root=output_dir,
            request_timeout=timeout,
            workers=workers,
        )
    except ValidationError as e:
        print_error(f"{_validation_message(e)}\n{click.get_current_context().get_usage()}")

    try:
        summary = run_crawl(cfg)
    except OSError as e:
        print_error(f'Could not create output dir: {cfg.run_dir} ({e})')

    for line in summary.lines():
        click.echo(line)

    if summary.cancelled:
        sys.exit(EXIT_CANCELLED)


if __name__ == "__main__":
    cli()
