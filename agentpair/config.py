"""Environment-based configuration."""

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from agentpair.domain.value_objects.retry_policy import RetryPolicy

ENV_PREFIX = "DEEPSEEK_"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when the environment does not describe a usable configuration."""


class AppConfig(BaseModel, frozen=True):
    api_key: str = Field(min_length=1, repr=False)
    base_url: str = "https://api.deepseek.com"
    model: str = "deepseek-chat"
    auditor_model: str = "deepseek-reasoner"
    max_tokens: int = Field(default=4096, gt=0)
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    timeout: float = Field(default=60.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    json_mode: bool = True

    @field_validator("api_key", "model", "auditor_model")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("base_url")
    @classmethod
    def check_base_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("must start with http:// or https://")
        return v

    @field_validator("json_mode", mode="before")
    @classmethod
    def parse_flag(cls, v: object) -> object:
        if isinstance(v, str):
            lowered = v.strip().lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(f"expected a boolean flag, got '{v}'")
        return v

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_attempts)


def load_config(environ: Mapping[str, str] | None = None) -> AppConfig:
    """Build AppConfig from ``DEEPSEEK_*`` environment variables.

    Unset or empty variables fall back to defaults; only
    ``DEEPSEEK_API_KEY`` is required.
    """
    env = os.environ if environ is None else environ

    if not env.get(f"{ENV_PREFIX}API_KEY", "").strip():
        raise ConfigError(f"{ENV_PREFIX}API_KEY is not set")

    values: dict[str, str] = {}
    for name in AppConfig.model_fields:
        raw = env.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw.strip():
            values[name] = raw

    try:
        return AppConfig.model_validate(values)
    except ValidationError as e:
        problems = "; ".join(
            f"{ENV_PREFIX}{str(err['loc'][0]).upper()}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from e
