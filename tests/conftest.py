import json
from collections.abc import Callable
from typing import Any

import pytest

from agentpair.config import AppConfig
from agentpair.domain.cancellation import CancellationToken
from agentpair.domain.entities.solution import Solution
from agentpair.domain.entities.task_spec import TaskSpec
from agentpair.domain.entities.validation import Validation
from agentpair.domain.ports.chat_client_port import ChatClientPort, ChatMessage, RawCompletion
from agentpair.domain.value_objects.deliverable_type import DeliverableType
from agentpair.domain.value_objects.provenance import TokenUsage

THREE_BULLETS = (
    "- Two agents split the work: one produces, one audits\n"
    "- The auditor grades output against acceptance criteria\n"
    "- Both steps exchange strict JSON"
)


class FakeChatClient(ChatClientPort):
    """Scripted chat client: returns (or raises) queued replies in order."""

    def __init__(
        self,
        replies: list[str | Exception] | None = None,
        usage: TokenUsage | None = None,
    ) -> None:
        self.replies: list[str | Exception] = list(replies or [])
        self.usage = usage or TokenUsage(prompt_tokens=120, completion_tokens=45)
        self.calls: list[list[ChatMessage]] = []
        self.models: list[str] = []

    async def send_messages_raw(
        self,
        messages: list[ChatMessage],
        model: str,
        max_tokens: int,
        temperature: float,
        timeout: float,
        cancel: CancellationToken | None = None,
    ) -> RawCompletion:
        self.calls.append(list(messages))
        self.models.append(model)
        if not self.replies:
            raise AssertionError("FakeChatClient has no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return RawCompletion(content=reply, usage=self.usage)


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(api_key="sk-test-0123456789abcdef0123", timeout=5.0)


@pytest.fixture
def task_spec() -> TaskSpec:
    return TaskSpec(
        task_id="task-001",
        goal="Summarize the input text into exactly 3 crisp bullet points",
        input="Two agents: the first produces a deliverable, the second audits it.",
        acceptance_criteria=["exactly 3 bullets", "<= 80 words total", "no marketing fluff"],
        deliverable_type=DeliverableType.TEXT,
        hints="Be concise",
    )


@pytest.fixture
def solution_reply() -> Callable[..., str]:
    """Build a Producer reply body as the model would send it."""

    def _build(task: TaskSpec, solution_id: str = "model-picked-id", **overrides: Any) -> str:
        data: dict[str, Any] = {
            "schema_version": "solution_v1",
            "task_id": task.task_id,
            "solution_id": solution_id,
            "model_used": {"name": "deepseek-chat", "temperature": 0.2},
            "deliverable_type": task.deliverable_type.value,
            "deliverable": {"text": THREE_BULLETS},
            "evidence": {"system_prompt": "You are the Producer.", "usage_note": "short input"},
            "usage": {"prompt_tokens": 1, "completion_tokens": 1},
            "created_at": "2026-01-01T12:00:00Z",
        }
        data.update(overrides)
        return json.dumps(data)

    return _build


@pytest.fixture
def validation_reply() -> Callable[..., str]:
    """Build an Auditor reply body covering every criterion of ``task``."""

    def _build(task: TaskSpec, solution_id: str, **overrides: Any) -> str:
        data: dict[str, Any] = {
            "schema_version": "validation_v1",
            "task_id": task.task_id,
            "solution_id": solution_id,
            "verdict": "pass",
            "score": 0.92,
            "checks": [
                {"criterion": c, "pass": True, "reason": "satisfied", "severity": "minor"}
                for c in task.acceptance_criteria
            ],
            "model_used": {"name": "deepseek-reasoner", "temperature": 0.2},
            "created_at": "2026-01-01T12:00:05Z",
        }
        data.update(overrides)
        return json.dumps(data)

    return _build


@pytest.fixture
def make_solution(task_spec: TaskSpec) -> Callable[..., Solution]:
    def _build(**overrides: Any) -> Solution:
        data: dict[str, Any] = {
            "task_id": task_spec.task_id,
            "solution_id": "sol-001",
            "model_used": {"name": "deepseek-chat", "temperature": 0.2},
            "deliverable_type": "text",
            "deliverable": {"text": THREE_BULLETS},
            "evidence": {"system_prompt": "You are the Producer."},
            "usage": {"prompt_tokens": 120, "completion_tokens": 45},
        }
        data.update(overrides)
        return Solution.model_validate(data)

    return _build


@pytest.fixture
def make_validation(task_spec: TaskSpec) -> Callable[..., Validation]:
    def _build(**overrides: Any) -> Validation:
        data: dict[str, Any] = {
            "task_id": task_spec.task_id,
            "solution_id": "sol-001",
            "verdict": "needs_revision",
            "score": 0.6,
            "checks": [
                {"criterion": "exactly 3 bullets", "pass": True, "reason": "3 bullets", "severity": "minor"},
                {
                    "criterion": "<= 80 words total",
                    "pass": False,
                    "reason": "92 words",
                    "severity": "major",
                    "suggested_fix": "Trim the second bullet",
                },
            ],
            "model_used": {"name": "deepseek-reasoner", "temperature": 0.2},
        }
        data.update(overrides)
        return Validation.model_validate(data)

    return _build


@pytest.fixture
def fake_client() -> type[FakeChatClient]:
    """The scripted client class; call it with the replies to queue."""
    return FakeChatClient
