"""CLI utility functions."""

import json
from pathlib import Path
from uuid import uuid4

from agentpair.domain.entities.task_spec import TaskSpec
from agentpair.domain.value_objects.deliverable_type import DeliverableType

DELIVERABLE_CHOICES: dict[str, DeliverableType] = {
    "1": DeliverableType.TEXT,
    "2": DeliverableType.JSON,
    "3": DeliverableType.CODE,
}


def sanitize_terminal_input(text: str) -> str:
    """Remove surrogate characters that can't be encoded as UTF-8.

    Terminal input can sometimes contain surrogate characters (U+D800 to U+DFFF)
    due to encoding issues. These characters are invalid in UTF-8 and cause
    errors when sent to APIs.
    """
    return text.encode("utf-8", "ignore").decode("utf-8")


def split_criteria(text: str) -> list[str]:
    """Split a comma- or semicolon-separated criteria line, dropping blanks."""
    parts = text.replace(";", ",").split(",")
    return [p.strip() for p in parts if p.strip()]


def parse_deliverable_choice(choice: str) -> DeliverableType | None:
    """Map ``1/2/3`` or a type name to a DeliverableType; None if unknown."""
    key = choice.strip().lower()
    if key in DELIVERABLE_CHOICES:
        return DELIVERABLE_CHOICES[key]
    try:
        return DeliverableType(key)
    except ValueError:
        return None


def load_task_spec(path: Path) -> TaskSpec:
    """Load a TaskSpec JSON file; a missing ``task_id`` gets a fresh UUID.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content is not a valid TaskSpec (pydantic's
            ValidationError included)
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("TaskSpec file must contain a JSON object")
    if not data.get("task_id"):
        data = {**data, "task_id": str(uuid4())}
    return TaskSpec.model_validate(data)


def demo_task_spec() -> TaskSpec:
    return TaskSpec.new(
        goal="Summarize the input text into exactly 3 crisp bullet points",
        input=(
            "DeepSeek Agents demo: we need two agents where the first produces a "
            "deliverable and the second audits it against acceptance criteria."
        ),
        acceptance_criteria=["exactly 3 bullets", "<= 80 words total", "no marketing fluff"],
        deliverable_type=DeliverableType.TEXT,
        hints="Be concise",
    )
