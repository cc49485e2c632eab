from datetime import UTC, datetime

from pydantic import BaseModel, Field


class ModelUsed(BaseModel, frozen=True):
    """Model name and sampling temperature that produced an artifact."""

    name: str
    temperature: float


class TokenUsage(BaseModel, frozen=True):
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


def as_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC; a naive timestamp is taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
