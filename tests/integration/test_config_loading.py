"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, and CLI overrides to verify precedence: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from streamfuse.domain.entities.streams import MIB
from streamfuse.domain.exceptions import ConfigError
from streamfuse.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "streamfuse-test",
        "environment": "test",
        "http": {
            "timeout_seconds": 15.0,
            "user_agent": "TestAgent/1.0",
        },
        "logging": {"level": "DEBUG", "format": "console"},
        "filter": {"min_size_movie_bytes": 300 * MIB, "exclude_patterns": ["cam"]},
        "providers": {"enabled": ["tpb", "zilean"], "per_provider_timeout_ms": 2500},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    """Load with no YAML, no ENV, no CLI: pure defaults."""

    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "streamfuse"
        assert config.environment == "dev"
        assert config.http_timeout_seconds == 20.0
        assert config.log_level == "INFO"
        assert config.log_format == "console"
        assert config.providers.enabled == ["tpb", "knaben", "zilean"]
        assert config.per_provider_timeout_seconds == 10.0
        assert config.debrid.service is None

    def test_default_filter_policy(self) -> None:
        policy = load_config().filter_policy()
        assert policy.min_size_movie_bytes == 200 * MIB
        assert policy.min_size_episode_bytes == 50 * MIB

    def test_defaults_derive_log_format_from_environment(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"


class TestYamlOverrides:
    """YAML values override defaults."""

    def test_yaml_overrides_defaults(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "streamfuse-test"
        assert config.environment == "test"
        assert config.http_timeout_seconds == 15.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.log_level == "DEBUG"
        assert config.filter.min_size_movie_bytes == 300 * MIB
        assert config.filter.exclude_patterns == ["cam"]
        assert config.providers.enabled == ["tpb", "zilean"]
        assert config.per_provider_timeout_seconds == 2.5

    def test_yaml_partial_section_keeps_section_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.dump({"filter": {"max_size_bytes": 0}}), encoding="utf-8")

        config = load_config(config_path=path)
        assert config.filter.max_size_bytes == 0
        assert config.filter.min_size_episode_bytes == 50 * MIB

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_empty_yaml_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).app_name == "streamfuse"

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)

    def test_invalid_value_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(
            yaml.dump({"providers": {"per_provider_timeout_ms": 0}}), encoding="utf-8"
        )
        with pytest.raises(ValidationError):
            load_config(config_path=path)


class TestEnvOverrides:
    """Environment variables override YAML and defaults."""

    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STREAMFUSE_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("STREAMFUSE_HTTP_TIMEOUT_SECONDS", "60.0")
        monkeypatch.setenv("STREAMFUSE_PROVIDERS_ENABLED", '["knaben"]')

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.http_timeout_seconds == 60.0
        assert config.providers.enabled == ["knaben"]
        # YAML values not overridden by ENV stay
        assert config.app_name == "streamfuse-test"
        assert config.filter.exclude_patterns == ["cam"]

    def test_env_debrid_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STREAMFUSE_DEBRID_SERVICE", "torbox")
        monkeypatch.setenv("STREAMFUSE_DEBRID_API_KEY", "secret")

        config = load_config()
        assert config.debrid.service == "torbox"
        assert config.debrid.api_key == "secret"
        assert "api_key" not in config.to_sectioned_dict()["debrid"]

    def test_dotenv_file_feeds_env_layer(self, tmp_path: Path) -> None:
        dotenv = tmp_path / ".env"
        dotenv.write_text("STREAMFUSE_TMDB_API_KEY=from-dotenv\n", encoding="utf-8")

        config = load_config(dotenv_path=dotenv)
        assert config.tmdb_api_key == "from-dotenv"

    def test_missing_dotenv_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    """CLI overrides beat everything (highest precedence)."""

    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STREAMFUSE_LOG_LEVEL", "WARNING")

        config = load_config(
            config_path=yaml_config,
            cli_overrides={"log_level": "ERROR", "providers_enabled": ["knaben"]},
        )
        assert config.log_level == "ERROR"
        assert config.providers.enabled == ["knaben"]

    def test_cli_overrides_with_sectioned_format(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"http": {"timeout_seconds": 5.0}},
        )
        assert config.http_timeout_seconds == 5.0


class TestFilterPolicyFromConfig:
    def test_inconsistent_sizes_raise_config_error(self) -> None:
        config = load_config(
            cli_overrides={"filter": {"min_size_movie_bytes": 2000, "max_size_bytes": 1000}}
        )
        with pytest.raises(ConfigError):
            config.filter_policy()

    def test_bad_exclude_pattern_raises_config_error(self) -> None:
        config = load_config(cli_overrides={"exclude_patterns": ["(unclosed"]})
        with pytest.raises(ConfigError):
            config.filter_policy()
