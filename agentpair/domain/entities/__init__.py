from agentpair.domain.entities.solution import (
    SOLUTION_SCHEMA_VERSION,
    CodeArtifact,
    CodeDeliverable,
    Deliverable,
    Evidence,
    JsonDeliverable,
    Solution,
    TextDeliverable,
    parse_deliverable,
)
from agentpair.domain.entities.task_spec import TaskSpec
from agentpair.domain.entities.validation import (
    VALIDATION_SCHEMA_VERSION,
    CheckResult,
    Validation,
)

__all__ = [
    "CheckResult",
    "CodeArtifact",
    "CodeDeliverable",
    "Deliverable",
    "Evidence",
    "JsonDeliverable",
    "SOLUTION_SCHEMA_VERSION",
    "Solution",
    "TaskSpec",
    "TextDeliverable",
    "VALIDATION_SCHEMA_VERSION",
    "Validation",
    "parse_deliverable",
]
