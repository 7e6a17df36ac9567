"""Shared fixtures for integration tests.

These tests exercise real infrastructure components (config loading from
YAML files, .env files and the process environment).
"""

from __future__ import annotations

import pytest

_ENV_KEYS = (
    "STREAMFUSE_APP_NAME",
    "STREAMFUSE_ENVIRONMENT",
    "STREAMFUSE_LOG_LEVEL",
    "STREAMFUSE_LOG_FORMAT",
    "STREAMFUSE_HTTP_TIMEOUT_SECONDS",
    "STREAMFUSE_MIN_SIZE_MOVIE_BYTES",
    "STREAMFUSE_EXCLUDE_PATTERNS",
    "STREAMFUSE_PROVIDERS_ENABLED",
    "STREAMFUSE_DEBRID_SERVICE",
    "STREAMFUSE_DEBRID_API_KEY",
    "STREAMFUSE_TMDB_API_KEY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start from an environment without STREAMFUSE_* overrides.

    setenv before delenv makes monkeypatch restore the variable's original
    state, including values a .env file writes during the test.
    """
    for key in _ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
