"""Configuration manager for loading and validating .form3.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from form3.domain.config import AppConfig, ClientConfig, RetryConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".form3.yml"

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "FORM3_BASE_URL": ("client", "base_url"),
    "FORM3_USER_AGENT": ("client", "user_agent"),
    "FORM3_DEBUG": ("client", "debug"),
    "FORM3_RETRY_MAX_ATTEMPTS": ("retry", "max_attempts"),
    "FORM3_RETRY_INITIAL_DELAY": ("retry", "initial_delay"),
    "FORM3_RETRY_TIMEOUT": ("retry", "timeout"),
}


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .form3.yml and environment variables

    Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .form3.yml file (searched from current directory upwards)
    3. Environment variables (FORM3_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "client": {
            "base_url": "http://accountapi:8080",
            "user_agent": "form3-client-python",
            "debug": False,
        },
        "retry": {
            "max_attempts": 3,
            "initial_delay": 1.0,
            "timeout": 60.0,
            "jitter": 1.0 / 3.0,
        },
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .form3.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                errors.append(f"  - {field}: {error['msg']}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .form3.yml starting from current directory"""
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and environment, then validate

        Raises:
            ValidationError: If configuration is invalid
            ConfigurationError: If the file cannot be parsed
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(f"Config file {self.config_path} must contain a mapping")
            config_dict = self._merge_config(config_dict, file_config)
            logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)
        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply FORM3_* environment variable overrides

        Values are passed as strings, pydantic coerces them to the field types.
        """
        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                config.setdefault(section, {})[key] = value
        return config

    def get_client_config(self) -> ClientConfig:
        return self.config.client

    def get_retry_config(self) -> RetryConfig:
        return self.config.retry
