"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "streamfuse",
    "environment": "dev",
    "http": {
        "timeout_seconds": 20.0,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "filter": {
        "min_size_movie_bytes": 200 * 1024 * 1024,
        "min_size_episode_bytes": 50 * 1024 * 1024,
        "max_size_bytes": 10 * 1024 * 1024 * 1024,
        "exclude_patterns": [],
    },
    "providers": {
        "enabled": ["tpb", "knaben", "zilean"],
        "per_provider_timeout_ms": 10_000,
        "max_concurrent": 8,
    },
    "extractors": {
        "concurrency_limit": 5,
        "timeout_seconds": 15.0,
        "resolve_inline": False,
    },
    "debrid": {
        "service": None,
        "batch_delay_seconds": 0.5,
    },
}
