"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from form3.domain.config.client import ClientConfig
from form3.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        client: API client configuration
        retry: Retry policy configuration
    """

    client: ClientConfig = Field(default_factory=ClientConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "client": {
                    "base_url": "http://accountapi:8080",
                    "user_agent": "form3-client-python",
                    "debug": False,
                },
                "retry": {
                    "max_attempts": 3,
                    "initial_delay": 1.0,
                    "timeout": 60.0,
                    "jitter": 0.33,
                },
            }
        },
    )
