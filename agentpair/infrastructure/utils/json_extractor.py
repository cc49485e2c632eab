import json
from typing import Any


class JsonExtractionError(ValueError):
    """Model reply is not exactly one JSON object."""


def _strip_code_fence(response: str) -> str:
    """Unwrap a reply that is a single markdown code block (```json ... ```)."""
    if not (response.startswith("```") and response.endswith("```")):
        return response

    lines = response.split("\n")
    if len(lines) < 2:
        raise JsonExtractionError("unterminated code fence")
    # First line is the opening fence with an optional language tag
    inner = lines[1:]
    inner[-1] = inner[-1].removesuffix("```")
    body = "\n".join(inner).strip()
    if "```" in body:
        raise JsonExtractionError("reply contains more than one code block")
    return body


def extract_json_object(response: str) -> dict[str, Any]:
    """Parse a model reply that must be exactly one JSON object.

    A single surrounding markdown code fence is accepted. Prose before or
    after the object is rejected rather than trimmed away.
    """
    text = _strip_code_fence(response.strip())
    if not text:
        raise JsonExtractionError("reply is empty")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise JsonExtractionError(f"reply is not valid JSON: {e.msg} at position {e.pos}") from e

    if not isinstance(data, dict):
        raise JsonExtractionError(f"expected a JSON object, got {type(data).__name__}")
    return data
