from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from agentpair.domain.value_objects.deliverable_type import DeliverableType
from agentpair.domain.value_objects.provenance import ModelUsed, TokenUsage, as_utc

SOLUTION_SCHEMA_VERSION = "solution_v1"


class CodeArtifact(BaseModel, frozen=True):
    language: str
    content: str


class TextDeliverable(BaseModel, frozen=True):
    text: str

    @property
    def kind(self) -> DeliverableType:
        return DeliverableType.TEXT


class JsonDeliverable(BaseModel):
    # Serialized as {"json": ...}; always dump with by_alias=True
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    value: Any = Field(alias="json")

    @property
    def kind(self) -> DeliverableType:
        return DeliverableType.JSON


class CodeDeliverable(BaseModel, frozen=True):
    code: CodeArtifact

    @property
    def kind(self) -> DeliverableType:
        return DeliverableType.CODE


Deliverable = TextDeliverable | JsonDeliverable | CodeDeliverable


def parse_deliverable(deliverable_type: DeliverableType, raw: object) -> Deliverable:
    """Build the deliverable variant selected by ``deliverable_type``.

    The wire object carries one key named after the deliverable type
    (``text``, ``json`` or ``code``). Keys for other types are ignored.
    """
    if isinstance(raw, TextDeliverable | JsonDeliverable | CodeDeliverable):
        if raw.kind != deliverable_type:
            raise ValueError(
                f"deliverable is '{raw.kind.value}' but deliverable_type is "
                f"'{deliverable_type.value}'"
            )
        return raw

    if not isinstance(raw, dict):
        raise ValueError("deliverable must be a JSON object")

    key = deliverable_type.value
    if raw.get(key) is None:
        raise ValueError(f"deliverable.{key} is required when deliverable_type is '{key}'")

    match deliverable_type:
        case DeliverableType.TEXT:
            if not isinstance(raw[key], str):
                raise ValueError("deliverable.text must be a string")
            return TextDeliverable(text=raw[key])
        case DeliverableType.JSON:
            return JsonDeliverable(value=raw[key])
        case DeliverableType.CODE:
            return CodeDeliverable(code=CodeArtifact.model_validate(raw[key]))


class Evidence(BaseModel, frozen=True):
    system_prompt: str
    usage_note: str | None = None


class Solution(BaseModel, frozen=True):
    """Structured deliverable produced by the Producer agent."""

    schema_version: str = SOLUTION_SCHEMA_VERSION
    task_id: str = Field(min_length=1)
    solution_id: str = Field(min_length=1)
    model_used: ModelUsed
    deliverable_type: DeliverableType
    deliverable: Deliverable
    evidence: Evidence
    usage: TokenUsage = Field(default_factory=TokenUsage)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("deliverable", mode="before")
    @classmethod
    def select_deliverable_variant(cls, v: object, info: ValidationInfo) -> Deliverable:
        deliverable_type = info.data.get("deliverable_type")
        if deliverable_type is None:
            raise ValueError("deliverable cannot be parsed without a valid deliverable_type")
        return parse_deliverable(DeliverableType(deliverable_type), v)

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return as_utc(v)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def dump_json(self) -> str:
        return self.model_dump_json(indent=2, by_alias=True, exclude_none=True)
