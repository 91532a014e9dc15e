"""Retry policy for unreliable external calls."""

from pydantic import BaseModel, ConfigDict, Field

from centrifuge.core.config import RetryConfig


class RetryPolicy(BaseModel):
    """How many times to try and how long to wait between attempts.

    Defaults reproduce a fixed 5s delay over 3 attempts.
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=5.0, ge=0.0)
    backoff_factor: float = Field(default=1.0, ge=1.0)

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            base_delay=config.base_delay,
            backoff_factor=config.backoff_factor,
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed ``attempt`` (1-based)."""
        return self.base_delay * (self.backoff_factor ** (attempt - 1))

    def should_retry(self, attempt: int) -> bool:
        return attempt < self.max_attempts
