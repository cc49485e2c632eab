from typing import Self

from pydantic import BaseModel, Field, model_validator


class RetryPolicy(BaseModel, frozen=True):
    """Bounded exponential backoff with jitter for transient API failures.

    The delay before retry ``n`` (1-based) is
    ``min(base_delay * 2 ** (n - 1) + uniform(0, jitter), max_delay)``.
    Keeping ``jitter <= base_delay`` makes consecutive delays non-decreasing.
    """

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=0.5, gt=0)
    max_delay: float = Field(default=8.0, gt=0)
    jitter: float = Field(default=0.25, ge=0)

    @model_validator(mode="after")
    def check_bounds(self) -> Self:
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.jitter > self.base_delay:
            raise ValueError("jitter must be <= base_delay")
        return self
