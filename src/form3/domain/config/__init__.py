"""Configuration models with Pydantic validation."""

from form3.domain.config.app import AppConfig
from form3.domain.config.client import ClientConfig
from form3.domain.config.retry import RetryConfig

__all__ = [
    "AppConfig",
    "ClientConfig",
    "RetryConfig",
]
