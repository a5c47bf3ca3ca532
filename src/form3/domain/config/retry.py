"""Retry policy configuration model."""

from pydantic import BaseModel, ConfigDict, Field


class RetryConfig(BaseModel):
    """Configuration for the resilient request executor.

    Attributes:
        max_attempts: Number of retries after the first attempt (0 disables retries)
        initial_delay: Starting wait in seconds, doubled before every retry.
            0 disables backoff: retries are sent back-to-back with no wait
        timeout: Overall time budget in seconds for one logical operation
        jitter: Upper bound of the random jitter as a fraction of the current wait
    """

    max_attempts: int = Field(3, ge=0)
    initial_delay: float = Field(1.0, ge=0.0, description="Starting wait in seconds; 0 disables backoff")
    timeout: float = Field(60.0, gt=0.0)
    jitter: float = Field(1.0 / 3.0, ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True)
