"""Configuration system using pydantic-settings with environment variable loading.

Chain targets are not a fixed settings schema: any number of chains is
configured through ``V4_SUBGRAPH_URL_<NAME>`` / ``<NAME>_POOL`` pairs, so they
are discovered separately by :func:`load_chain_targets`.
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from uniswap_volume.logging import get_logger
from uniswap_volume.models import ChainTarget

logger = get_logger(__name__)

SUBGRAPH_URL_PREFIX = "V4_SUBGRAPH_URL_"
POOL_SUFFIX = "_POOL"
ENV_FILE = ".env"


class FetchSettings(BaseSettings):
    """Swap pagination, concurrency and retry parameters."""

    model_config = SettingsConfigDict(
        env_prefix="FETCH_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    lookback_weeks: int = 8
    page_size: int = 1000  # subgraph `first` hard cap
    chunk_size: int = 50  # page requests issued per wave
    max_waves: int = 10
    max_concurrent_pages: int = 10
    empty_page_limit: int = 5

    max_retries: int = 2  # additional attempts after the first request
    retry_delay: float = 2.0  # seconds, transport failures
    transient_retry_delay: float = 3.0  # seconds, "bad indexers" style errors
    exponential_backoff: bool = False
    transient_error_patterns: list[str] = ["bad indexers"]

    request_timeout: float = 30.0
    chain_timeout: float | None = None  # wall-clock budget per chain, off by default


class OutputSettings(BaseSettings):
    """Snapshot artifact location."""

    model_config = SettingsConfigDict(
        env_prefix="OUTPUT_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    path: str = "public/uniswap_data.json"
    indent: int = 2


class DashboardSettings(BaseSettings):
    """Read-only API server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DASHBOARD_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 8080
    snapshot_path: str = "public/uniswap_data.json"


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    # Sections are built per load, never at import time
    fetch: FetchSettings = Field(default_factory=FetchSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)


def _merged_environ(env_file: str | None) -> dict[str, str]:
    """Process environment layered over the optional .env file."""
    merged: dict[str, str] = {}
    if env_file and Path(env_file).is_file():
        merged.update(
            {k: v for k, v in dotenv_values(env_file).items() if v is not None}
        )
    merged.update(os.environ)
    return merged


def load_chain_targets(
    environ: Mapping[str, str] | None = None,
    env_file: str | None = ENV_FILE,
) -> list[ChainTarget]:
    """Discover (chain, endpoint, pool) triples from environment-style pairs.

    ``V4_SUBGRAPH_URL_BASE=https://...`` together with ``BASE_POOL=0xabc...``
    yields ``ChainTarget(name="BASE", ...)``. URLs without a matching pool are
    skipped. An empty result is valid and produces an empty snapshot.

    Args:
        environ: Key/value source. Defaults to os.environ merged over env_file.
        env_file: Optional dotenv file read only when environ is None.

    Returns:
        Chain targets sorted by chain name.
    """
    source = dict(environ) if environ is not None else _merged_environ(env_file)

    targets: list[ChainTarget] = []
    for key, url in source.items():
        if not key.startswith(SUBGRAPH_URL_PREFIX):
            continue
        name = key[len(SUBGRAPH_URL_PREFIX):]
        pool_id = (source.get(f"{name}{POOL_SUFFIX}") or "").strip()
        url = (url or "").strip()
        if not name or not url or not pool_id:
            logger.warning("chain_config_incomplete", chain=name, has_url=bool(url))
            continue
        targets.append(ChainTarget(name=name, endpoint_url=url, pool_id=pool_id))

    return sorted(targets, key=lambda t: t.name)
