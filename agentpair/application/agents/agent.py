from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from loguru import logger
from pydantic import ValidationError

from agentpair.application.agents.profiles import AgentProfile, build_profile
from agentpair.application.prompts import (
    auditor_user_message,
    producer_user_message,
    repair_message,
    truncate_prompt,
)
from agentpair.config import AppConfig
from agentpair.domain.cancellation import CancellationToken
from agentpair.domain.entities.solution import SOLUTION_SCHEMA_VERSION, Solution
from agentpair.domain.entities.task_spec import TaskSpec
from agentpair.domain.entities.validation import VALIDATION_SCHEMA_VERSION, Validation
from agentpair.domain.ports.chat_client_port import (
    ChatClientError,
    ChatClientPort,
    ChatMessage,
    RawCompletion,
)
from agentpair.domain.services.criteria_coverage import find_uncovered_criteria
from agentpair.domain.value_objects.agent_role import AgentRole
from agentpair.domain.value_objects.error_kind import ErrorKind
from agentpair.infrastructure.utils.json_extractor import extract_json_object


class AgentError(Exception):
    """Agent stage failed; ``kind`` classifies the cause."""

    def __init__(
        self,
        stage: AgentRole,
        kind: ErrorKind,
        message: str,
        raw_text: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.stage = stage
        self.kind = kind
        self.message = message
        self.raw_text = raw_text
        self.status_code = status_code
        super().__init__(f"{stage.value} failed ({kind.value}): {message}")


class SchemaViolationError(AgentError):
    """Model output stayed invalid after the repair retry."""

    def __init__(self, stage: AgentRole, message: str, raw_text: str) -> None:
        super().__init__(stage, ErrorKind.SCHEMA_VIOLATION, message, raw_text=raw_text)


@dataclass(frozen=True)
class AuditInput:
    task: TaskSpec
    solution: Solution


def _describe_parse_error(e: ValueError) -> str:
    if isinstance(e, ValidationError):
        parts = []
        for err in e.errors()[:5]:
            loc = ".".join(str(p) for p in err["loc"]) or "<root>"
            parts.append(f"{loc}: {err['msg']}")
        return "; ".join(parts)
    return str(e)


def _without_blank_timestamp(data: dict[str, Any]) -> dict[str, Any]:
    created_at = data.get("created_at")
    if created_at is None or (isinstance(created_at, str) and not created_at.strip()):
        data = {k: v for k, v in data.items() if k != "created_at"}
    return data


class Agent:
    """One LLM exchange that turns a typed input into a typed artifact.

    Behavior differs only by ``profile``: the Producer turns a TaskSpec into a
    Solution, the Auditor turns an AuditInput into a Validation. A reply that
    fails to parse gets exactly one repair retry before SchemaViolationError.
    """

    def __init__(self, profile: AgentProfile, client: ChatClientPort) -> None:
        self.profile = profile
        self.client = client

    @property
    def role(self) -> AgentRole:
        return self.profile.role

    async def generate(
        self,
        input: TaskSpec | AuditInput,
        cancel: CancellationToken | None = None,
    ) -> Solution | Validation:
        match self.profile.role:
            case AgentRole.PRODUCER:
                if not isinstance(input, TaskSpec):
                    raise TypeError(f"Producer expects TaskSpec, got {type(input).__name__}")
                return await self._produce(input, cancel)
            case AgentRole.AUDITOR:
                if not isinstance(input, AuditInput):
                    raise TypeError(f"Auditor expects AuditInput, got {type(input).__name__}")
                return await self._audit(input, cancel)
            case _:
                raise ValueError(f"Unsupported agent role: {self.profile.role}")

    async def _produce(self, task: TaskSpec, cancel: CancellationToken | None) -> Solution:
        solution_id = str(uuid4())
        logger.info(f"[PRODUCER] Sending task {task.task_id} to {self.profile.model}")

        messages = [
            ChatMessage(role="system", content=self.profile.system_prompt),
            ChatMessage(role="user", content=producer_user_message(task, solution_id)),
        ]

        def fields(completion: RawCompletion) -> dict[str, Any]:
            data = extract_json_object(completion.content)
            enforced: dict[str, Any] = {
                "schema_version": SOLUTION_SCHEMA_VERSION,
                "task_id": task.task_id,
                "solution_id": solution_id,
                "deliverable_type": task.deliverable_type.value,
                "model_used": self.profile.model_used.model_dump(),
                "usage": completion.usage.model_dump(),
            }
            self._warn_overrides(data, enforced)

            evidence = data.get("evidence")
            evidence = dict(evidence) if isinstance(evidence, dict) else {}
            evidence["system_prompt"] = truncate_prompt(self.profile.system_prompt)

            return _without_blank_timestamp({**data, **enforced, "evidence": evidence})

        solution = await self._complete_with_repair(messages, fields, cancel)
        assert isinstance(solution, Solution)
        logger.info(
            f"[PRODUCER] Solution {solution.solution_id} "
            f"({solution.deliverable_type.value}, {solution.usage.total_tokens} tokens)"
        )
        return solution

    async def _audit(self, audit: AuditInput, cancel: CancellationToken | None) -> Validation:
        task, solution = audit.task, audit.solution
        logger.info(
            f"[AUDITOR] Auditing solution {solution.solution_id} for task {task.task_id} "
            f"with {self.profile.model}"
        )

        messages = [
            ChatMessage(role="system", content=self.profile.system_prompt),
            ChatMessage(role="user", content=auditor_user_message(task, solution)),
        ]

        def fields(completion: RawCompletion) -> dict[str, Any]:
            data = extract_json_object(completion.content)
            enforced: dict[str, Any] = {
                "schema_version": VALIDATION_SCHEMA_VERSION,
                "task_id": task.task_id,
                "solution_id": solution.solution_id,
                "model_used": self.profile.model_used.model_dump(),
            }
            self._warn_overrides(data, enforced)
            return _without_blank_timestamp({**data, **enforced})

        validation = await self._complete_with_repair(messages, fields, cancel)
        assert isinstance(validation, Validation)

        uncovered = find_uncovered_criteria(task.acceptance_criteria, validation.checks)
        if uncovered:
            logger.warning(f"[AUDITOR] No check covers criteria: {uncovered}")

        logger.info(
            f"[AUDITOR] Verdict {validation.verdict.value} (score {validation.score:.2f}, "
            f"{len(validation.checks)} checks)"
        )
        return validation

    async def _complete_with_repair(
        self,
        messages: list[ChatMessage],
        fields: Callable[[RawCompletion], dict[str, Any]],
        cancel: CancellationToken | None,
    ) -> Solution | Validation:
        completion = await self._send(messages, cancel)
        try:
            return self.profile.artifact.model_validate(fields(completion))
        except ValueError as e:
            error = _describe_parse_error(e)
            logger.warning(f"{self.profile.tag} Invalid output, requesting repair: {error}")

        repair = [
            *messages,
            ChatMessage(role="assistant", content=completion.content),
            ChatMessage(role="user", content=repair_message(error)),
        ]
        completion = await self._send(repair, cancel)
        try:
            return self.profile.artifact.model_validate(fields(completion))
        except ValueError as e:
            error = _describe_parse_error(e)
            logger.error(f"{self.profile.tag} Output still invalid after repair: {error}")
            raise SchemaViolationError(self.role, error, raw_text=completion.content) from e

    async def _send(
        self,
        messages: list[ChatMessage],
        cancel: CancellationToken | None,
    ) -> RawCompletion:
        try:
            return await self.client.send_messages_raw(
                messages,
                model=self.profile.model,
                max_tokens=self.profile.max_tokens,
                temperature=self.profile.temperature,
                timeout=self.profile.timeout,
                cancel=cancel,
            )
        except ChatClientError as e:
            logger.error(f"{self.profile.tag} Request failed ({e.kind.value}): {e.message}")
            raise AgentError(self.role, e.kind, e.message, status_code=e.status_code) from e

    def _warn_overrides(self, data: dict[str, Any], enforced: dict[str, Any]) -> None:
        for key, value in enforced.items():
            if key in data and data[key] != value:
                logger.warning(
                    f"{self.profile.tag} Overriding model-supplied {key}={data[key]!r} with {value!r}"
                )


def create_agent(role: AgentRole, client: ChatClientPort, config: AppConfig) -> Agent:
    """Create an agent for ``role`` from configuration.

    Args:
        role: Producer or Auditor
        client: Chat client shared by both agents
        config: Models, sampling and limits

    Returns:
        An Agent bound to the role's profile
    """
    return Agent(build_profile(role, config), client)
