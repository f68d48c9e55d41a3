# === FILE: url_crawler/config.py ===
"""
Run configuration for url_crawler.

Built once from validated command-line input and never mutated afterwards.
Pydantic describes the schema and performs the validation.
"""
from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from url_crawler.utils import is_fetchable

DEFAULT_REQUEST_TIMEOUT = 15.0
DEFAULT_SHUTDOWN_GRACE = 10.0
DEFAULT_OUTPUT_ROOT = Path("output")
RUN_ID_FORMAT = "%Y-%m-%d_%H-%M-%S"

_BOOL_TOKENS = {"true": True, "false": False}


def default_workers() -> int:
    """Worker pool size: at least 4, otherwise one per available CPU."""
    return max(4, os.cpu_count() or 1)


def new_run_id(now: Optional[datetime] = None) -> str:
    """Timestamp-derived run identifier, e.g. ``2025-12-25_15-30-12``."""
    return (now or datetime.now()).strftime(RUN_ID_FORMAT)


def parse_bool_token(value: Any) -> bool:
    """Accept a real bool or the literal ``true``/``false`` (any case); reject everything else."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _BOOL_TOKENS:
            return _BOOL_TOKENS[token]
    raise ValueError(f"expected 'true' or 'false', got {value!r}")


class CrawlConfig(BaseModel):
    """Configuration for a single crawl run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    start_url: str = Field(..., min_length=1, description="URL fetched at depth 0.")
    max_urls_per_page: int = Field(..., ge=0, description="Hard cap on children accepted per page.")
    max_depth: int = Field(..., ge=0, description="Deepest level crawled; 0 means the start URL only.")
    cross_level_uniqueness: bool = Field(
        ..., description="Fetch every URL at most once per run instead of once per depth."
    )
    run_id: str = Field(default_factory=new_run_id, min_length=1, description="Output namespace.")

    request_timeout: float = Field(DEFAULT_REQUEST_TIMEOUT, gt=0, description="Per-request timeout (seconds).")
    shutdown_grace: float = Field(DEFAULT_SHUTDOWN_GRACE, ge=0, description="Drain period on cancel (seconds).")
    workers: int = Field(default_factory=default_workers, ge=1, description="Fetch worker threads.")
    output_root: Path = Field(DEFAULT_OUTPUT_ROOT, description="Directory holding one folder per run.")

    @field_validator("start_url", mode="before")
    def _strip_start_url(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("start_url")
    def _check_scheme(cls, v: str) -> str:
        if not is_fetchable(v):
            raise ValueError("start URL must use http or https")
        return v

    @field_validator("cross_level_uniqueness", mode="before")
    def _strict_bool(cls, v: Any) -> bool:
        return parse_bool_token(v)

    @property
    def run_dir(self) -> Path:
        return self.output_root / self.run_id


def build_config(
    start_url: str,
    max_urls_per_page: int,
    max_depth: int,
    cross_level_uniqueness: Any,
    **overrides: Any,
) -> CrawlConfig:
    """
    Build a validated CrawlConfig from raw command-line values.
    Options left as None fall back to the model defaults.
    Raises pydantic.ValidationError on bad input.
    """
    extra = {k: v for k, v in overrides.items() if v is not None}
    return CrawlConfig(
        start_url=start_url,
        max_urls_per_page=max_urls_per_page,
        max_depth=max_depth,
        cross_level_uniqueness=cross_level_uniqueness,
        **extra,
    )
