from enum import Enum


class PipelineState(str, Enum):
    IDLE = "idle"
    PRODUCING = "producing"
    PRODUCED = "produced"
    AUDITING = "auditing"
    COMPLETED = "completed"
    FAILED = "failed"


# Allowed transitions of a single pipeline run
PIPELINE_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.PRODUCING}),
    PipelineState.PRODUCING: frozenset({PipelineState.PRODUCED, PipelineState.FAILED}),
    PipelineState.PRODUCED: frozenset({PipelineState.AUDITING}),
    PipelineState.AUDITING: frozenset({PipelineState.COMPLETED, PipelineState.FAILED}),
    PipelineState.COMPLETED: frozenset(),
    PipelineState.FAILED: frozenset(),
}
