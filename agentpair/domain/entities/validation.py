import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agentpair.domain.value_objects.audit_enums import Severity, Verdict
from agentpair.domain.value_objects.provenance import ModelUsed, as_utc

VALIDATION_SCHEMA_VERSION = "validation_v1"


class CheckResult(BaseModel):
    """Outcome of auditing one acceptance criterion."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    criterion: str
    passed: bool = Field(alias="pass")
    reason: str
    severity: Severity
    suggested_fix: str | None = None


class Validation(BaseModel, frozen=True):
    """Structured verdict produced by the Auditor agent."""

    schema_version: str = VALIDATION_SCHEMA_VERSION
    task_id: str = Field(min_length=1)
    solution_id: str = Field(min_length=1)
    verdict: Verdict
    score: float = Field(ge=0.0, le=1.0)
    checks: list[CheckResult]
    suggested_rewrite: str | None = None
    model_used: ModelUsed
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("suggested_rewrite", mode="before")
    @classmethod
    def stringify_rewrite(cls, v: object) -> object:
        # Models sometimes return a structured rewrite; keep it as JSON text
        if isinstance(v, dict | list):
            return json.dumps(v, ensure_ascii=False)
        return v

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return as_utc(v)

    @property
    def failed_checks(self) -> list[CheckResult]:
        return [c for c in self.checks if not c.passed]

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def dump_json(self) -> str:
        return self.model_dump_json(indent=2, by_alias=True, exclude_none=True)
