from agentpair.domain.value_objects.agent_role import AgentRole
from agentpair.domain.value_objects.audit_enums import Severity, Verdict
from agentpair.domain.value_objects.deliverable_type import DeliverableType
from agentpair.domain.value_objects.error_kind import ErrorKind
from agentpair.domain.value_objects.pipeline_state import (
    PIPELINE_TRANSITIONS,
    PipelineState,
)
from agentpair.domain.value_objects.provenance import ModelUsed, TokenUsage
from agentpair.domain.value_objects.retry_policy import RetryPolicy

__all__ = [
    "AgentRole",
    "DeliverableType",
    "ErrorKind",
    "ModelUsed",
    "PIPELINE_TRANSITIONS",
    "PipelineState",
    "RetryPolicy",
    "Severity",
    "TokenUsage",
    "Verdict",
]
