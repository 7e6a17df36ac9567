"""Tests for the structlog/stdlib logging configuration."""

from __future__ import annotations

from streamfuse.infrastructure.config import AppConfig
from streamfuse.infrastructure.logging.setup import build_logging_config


class TestBuildLoggingConfig:
    def test_applies_level_except_httpx(self) -> None:
        cfg = build_logging_config(AppConfig(log_level="WARNING"))
        assert cfg["root"]["level"] == "WARNING"
        assert cfg["loggers"]["uvicorn"]["level"] == "WARNING"
        assert cfg["loggers"]["httpx"]["level"] == "WARNING"

    def test_debug_unpins_httpx(self) -> None:
        cfg = build_logging_config(AppConfig(log_level="DEBUG"))
        assert cfg["loggers"]["httpx"]["level"] == "DEBUG"

    def test_json_renderer_in_prod(self) -> None:
        config = AppConfig(environment="prod")
        assert config.log_format == "json"
        cfg = build_logging_config(config)
        assert "structlog" in cfg["formatters"]

    def test_does_not_mutate_base(self) -> None:
        build_logging_config(AppConfig(log_level="ERROR"))
        again = build_logging_config(AppConfig(log_level="INFO"))
        assert again["loggers"]["uvicorn"]["level"] == "INFO"
