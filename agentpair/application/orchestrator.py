from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, Field

from agentpair.application.agents.agent import Agent, AgentError, AuditInput
from agentpair.domain.cancellation import CancellationToken
from agentpair.domain.entities.solution import Solution
from agentpair.domain.entities.task_spec import TaskSpec
from agentpair.domain.entities.validation import Validation
from agentpair.domain.ports.artifact_store_port import ArtifactStorePort
from agentpair.domain.services.criteria_coverage import find_uncovered_criteria
from agentpair.domain.value_objects.agent_role import AgentRole
from agentpair.domain.value_objects.error_kind import ErrorKind
from agentpair.domain.value_objects.pipeline_state import (
    PIPELINE_TRANSITIONS,
    PipelineState,
)


class InvalidTransitionError(Exception):
    """Raised on a pipeline state change the state machine does not allow."""

    def __init__(self, current: PipelineState, target: PipelineState) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid pipeline transition: {current.value} -> {target.value}")


class ArtifactWriteError(OSError):
    """Persisting a stage's artifact failed; the run ends in FAILED."""

    def __init__(self, stage: AgentRole, error: OSError) -> None:
        self.stage = stage
        super().__init__(f"Could not save the {stage.value} artifact: {error}")


class PipelineFailure(BaseModel, frozen=True):
    stage: AgentRole
    kind: ErrorKind
    message: str
    raw_text: str | None = None
    status_code: int | None = None


class PipelineResult(BaseModel):
    state: PipelineState
    solution: Solution | None = None
    validation: Validation | None = None
    failure: PipelineFailure | None = None
    uncovered_criteria: list[str] = Field(default_factory=list)
    artifact_paths: list[Path] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state in (PipelineState.COMPLETED, PipelineState.PRODUCED)


@dataclass
class PipelineCallbacks:
    """Rendering hooks; each is called synchronously as the pipeline advances."""

    on_stage: Callable[[PipelineState], None] | None = None
    on_task: Callable[[TaskSpec], None] | None = None
    on_solution: Callable[[Solution], None] | None = None
    on_validation: Callable[[Validation], None] | None = None
    on_failure: Callable[[PipelineFailure], None] | None = None


class Orchestrator:
    """Runs Producer then Auditor as one pipeline.

    States: IDLE -> PRODUCING -> PRODUCED -> AUDITING -> COMPLETED, with
    FAILED reachable from PRODUCING and AUDITING. Each artifact is persisted
    before the next stage starts; a failed stage writes nothing. Saving a new
    Solution first removes any stored Validation.
    """

    def __init__(
        self,
        producer: Agent,
        auditor: Agent,
        store: ArtifactStorePort | None = None,
        callbacks: PipelineCallbacks | None = None,
    ) -> None:
        if producer.role != AgentRole.PRODUCER:
            raise ValueError(f"producer agent has role {producer.role.value}")
        if auditor.role != AgentRole.AUDITOR:
            raise ValueError(f"auditor agent has role {auditor.role.value}")
        self.producer = producer
        self.auditor = auditor
        self.store = store
        self.callbacks = callbacks or PipelineCallbacks()
        self._state = PipelineState.IDLE
        self._running = False

    @property
    def state(self) -> PipelineState:
        return self._state

    def _transition(self, target: PipelineState) -> None:
        if target not in PIPELINE_TRANSITIONS[self._state]:
            raise InvalidTransitionError(self._state, target)
        logger.debug(f"[PIPELINE] {self._state.value} -> {target.value}")
        self._state = target
        if self.callbacks.on_stage:
            self.callbacks.on_stage(target)

    def _fail(self, result: PipelineResult, failure: PipelineFailure) -> PipelineResult:
        self._transition(PipelineState.FAILED)
        logger.error(
            f"[PIPELINE] {failure.stage.value} failed ({failure.kind.value}): {failure.message}"
        )
        if self.callbacks.on_failure:
            self.callbacks.on_failure(failure)
        return result.model_copy(update={"state": self._state, "failure": failure})

    def _cancelled(self, stage: AgentRole, cancel: CancellationToken) -> PipelineFailure:
        return PipelineFailure(
            stage=stage,
            kind=ErrorKind.CANCELLED,
            message=cancel.reason or "cancelled",
        )

    async def run(
        self,
        task: TaskSpec,
        producer_only: bool = False,
        cancel: CancellationToken | None = None,
    ) -> PipelineResult:
        """Run the pipeline for ``task``.

        Args:
            task: Work description for the Producer.
            producer_only: Stop at PRODUCED without auditing.
            cancel: Token that aborts the current stage.

        Returns:
            PipelineResult in state COMPLETED, PRODUCED or FAILED. Agent
            failures are reported on ``failure`` rather than raised.

        Raises:
            InvalidTransitionError: If a run is already in progress.
            ArtifactWriteError: If an artifact cannot be written to the store.
        """
        if self._running:
            raise InvalidTransitionError(self._state, PipelineState.PRODUCING)
        # Any finished run, producer-only included, may be followed by another
        self._state = PipelineState.IDLE
        self._running = True

        try:
            return await self._run(task, producer_only, cancel)
        except BaseException:
            # Persistence errors and native task cancellation still end the run
            if self._state in (PipelineState.PRODUCING, PipelineState.AUDITING):
                self._transition(PipelineState.FAILED)
            raise
        finally:
            self._running = False

    async def _run(
        self,
        task: TaskSpec,
        producer_only: bool,
        cancel: CancellationToken | None,
    ) -> PipelineResult:
        logger.info(
            f"[PIPELINE] Task {task.task_id}: {task.goal[:80]} "
            f"({task.deliverable_type.value}, {len(task.acceptance_criteria)} criteria)"
        )
        if self.callbacks.on_task:
            self.callbacks.on_task(task)

        result = PipelineResult(state=self._state)

        # Producer
        self._transition(PipelineState.PRODUCING)
        if cancel is not None and cancel.is_cancelled:
            return self._fail(result, self._cancelled(AgentRole.PRODUCER, cancel))
        try:
            solution = await self.producer.generate(task, cancel)
        except AgentError as e:
            return self._fail(result, self._failure_from(e))
        assert isinstance(solution, Solution)

        paths = list(result.artifact_paths)
        if self.store is not None:
            try:
                # A validation.json left by an earlier run audits another solution_id
                await self.store.discard_validation()
                paths.append(await self.store.save_solution(solution))
            except OSError as e:
                raise ArtifactWriteError(AgentRole.PRODUCER, e) from e
        self._transition(PipelineState.PRODUCED)
        if self.callbacks.on_solution:
            self.callbacks.on_solution(solution)
        result = result.model_copy(
            update={"state": self._state, "solution": solution, "artifact_paths": paths}
        )

        if producer_only:
            logger.info(f"[PIPELINE] Producer-only run finished with {solution.solution_id}")
            return result

        # Auditor
        self._transition(PipelineState.AUDITING)
        if cancel is not None and cancel.is_cancelled:
            return self._fail(result, self._cancelled(AgentRole.AUDITOR, cancel))
        try:
            validation = await self.auditor.generate(AuditInput(task=task, solution=solution), cancel)
        except AgentError as e:
            return self._fail(result, self._failure_from(e))
        assert isinstance(validation, Validation)

        if self.store is not None:
            try:
                paths.append(await self.store.save_validation(validation))
            except OSError as e:
                raise ArtifactWriteError(AgentRole.AUDITOR, e) from e
        uncovered = find_uncovered_criteria(task.acceptance_criteria, validation.checks)
        self._transition(PipelineState.COMPLETED)
        if self.callbacks.on_validation:
            self.callbacks.on_validation(validation)

        logger.info(
            f"[PIPELINE] Completed: verdict={validation.verdict.value}, "
            f"score={validation.score:.2f}"
        )
        return result.model_copy(
            update={
                "state": self._state,
                "validation": validation,
                "uncovered_criteria": uncovered,
                "artifact_paths": paths,
            }
        )

    @staticmethod
    def _failure_from(error: AgentError) -> PipelineFailure:
        return PipelineFailure(
            stage=error.stage,
            kind=error.kind,
            message=error.message,
            raw_text=error.raw_text,
            status_code=error.status_code,
        )
