"""Tests for configuration validation with Pydantic."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from form3.domain.config import AppConfig, ClientConfig, RetryConfig
from form3.infrastructure.config.config_manager import ConfigManager, ConfigurationError


class TestRetryConfigValidation:
    """Tests for RetryConfig validation."""

    def test_defaults(self):
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.initial_delay == 1.0
        assert config.timeout == 60.0
        assert config.jitter == pytest.approx(1 / 3)

    def test_zero_attempts_allowed(self):
        assert RetryConfig(max_attempts=0).max_attempts == 0

    def test_negative_attempts(self):
        with pytest.raises(ValidationError, match="max_attempts"):
            RetryConfig(max_attempts=-1)

    def test_negative_initial_delay(self):
        with pytest.raises(ValidationError, match="initial_delay"):
            RetryConfig(initial_delay=-0.5)

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError, match="timeout"):
            RetryConfig(timeout=0)

    def test_jitter_above_one(self):
        with pytest.raises(ValidationError, match="jitter"):
            RetryConfig(jitter=1.5)

    def test_immutable(self):
        config = RetryConfig()
        with pytest.raises(ValidationError):
            config.max_attempts = 10


class TestAppConfigValidation:
    """Tests for AppConfig validation."""

    def test_defaults(self):
        config = AppConfig()
        assert config.client == ClientConfig()
        assert config.retry == RetryConfig()

    def test_unknown_section_rejected(self):
        with pytest.raises(ValidationError):
            AppConfig(logging={"level": "debug"})

    def test_empty_base_url_rejected(self):
        with pytest.raises(ValidationError, match="base_url"):
            AppConfig(client={"base_url": ""})


class TestConfigManager:
    """Tests for ConfigManager loading."""

    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch):
        for name in (
            "FORM3_BASE_URL",
            "FORM3_USER_AGENT",
            "FORM3_DEBUG",
            "FORM3_RETRY_MAX_ATTEMPTS",
            "FORM3_RETRY_INITIAL_DELAY",
            "FORM3_RETRY_TIMEOUT",
        ):
            monkeypatch.delenv(name, raising=False)

    def _write(self, path: Path, data: dict) -> Path:
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        manager = ConfigManager()

        assert manager.config_path is None
        assert manager.get_client_config().base_url == "http://accountapi:8080"
        assert manager.get_retry_config().max_attempts == 3

    def test_load_from_file(self, tmp_path):
        config_file = self._write(
            tmp_path / ".form3.yml",
            {"client": {"base_url": "http://localhost:8080", "debug": True}, "retry": {"max_attempts": 5}},
        )

        manager = ConfigManager(config_file)

        assert manager.get_client_config().base_url == "http://localhost:8080"
        assert manager.get_client_config().debug is True
        assert manager.get_retry_config().max_attempts == 5
        assert manager.get_retry_config().timeout == 60.0

    def test_config_file_found_in_parent(self, tmp_path, monkeypatch):
        self._write(tmp_path / ".form3.yml", {"retry": {"timeout": 10}})
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        manager = ConfigManager()

        assert manager.config_path == tmp_path / ".form3.yml"
        assert manager.get_retry_config().timeout == 10.0

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        config_file = self._write(tmp_path / ".form3.yml", {"client": {"base_url": "http://file:8080"}})
        monkeypatch.setenv("FORM3_BASE_URL", "http://env:8080")
        monkeypatch.setenv("FORM3_RETRY_MAX_ATTEMPTS", "7")
        monkeypatch.setenv("FORM3_DEBUG", "true")

        manager = ConfigManager(str(config_file))

        assert manager.get_client_config().base_url == "http://env:8080"
        assert manager.get_client_config().debug is True
        assert manager.get_retry_config().max_attempts == 7

    def test_invalid_values_raise_configuration_error(self, tmp_path):
        config_file = self._write(tmp_path / ".form3.yml", {"retry": {"max_attempts": -2, "timeout": 0}})

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_file)

        assert "retry.max_attempts" in str(exc_info.value)
        assert "retry.timeout" in str(exc_info.value)

    def test_unparseable_file(self, tmp_path):
        config_file = tmp_path / ".form3.yml"
        config_file.write_text("retry: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Failed to load config"):
            ConfigManager(config_file)

    def test_non_mapping_file(self, tmp_path):
        config_file = tmp_path / ".form3.yml"
        config_file.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            ConfigManager(config_file)
