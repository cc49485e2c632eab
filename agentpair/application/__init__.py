from agentpair.application.orchestrator import (
    InvalidTransitionError,
    Orchestrator,
    PipelineCallbacks,
    PipelineFailure,
    PipelineResult,
)

__all__ = [
    "InvalidTransitionError",
    "Orchestrator",
    "PipelineCallbacks",
    "PipelineFailure",
    "PipelineResult",
]
