"""Prompt templates for the Producer and Auditor agents."""

import json

from agentpair.domain.entities.solution import Solution
from agentpair.domain.entities.task_spec import TaskSpec

PRODUCER_SYSTEM_PROMPT = """You are the Producer. Solve the task you are given and answer with \
exactly one JSON object matching the SolutionV1 schema below. Do not add commentary, \
markdown or any text outside the object.

Descriptions in the schema indicate expected data and type; replace them with actual values.

Schema (SolutionV1):
{
  "schema_version": "must be 'solution_v1' (string)",
  "task_id": "task_id from the TaskSpec (string)",
  "solution_id": "solution_id given in the request (string)",
  "model_used": {"name": "model name (string)", "temperature": "sampling temperature (number)"},
  "deliverable_type": "deliverable_type from the TaskSpec: 'text' | 'json' | 'code' (string)",
  "deliverable": {
    "text": "plain text content when deliverable_type is 'text' (string)",
    "json": "JSON content when deliverable_type is 'json' (any non-null JSON value)",
    "code": {"language": "e.g. 'py', 'rs' (string)", "content": "source code (string)"}
  },
  "evidence": {
    "system_prompt": "short copy of these instructions (string)",
    "usage_note": "optional notes about the generation (string or null)"
  },
  "usage": {"prompt_tokens": "integer", "completion_tokens": "integer"},
  "created_at": "RFC 3339 UTC timestamp (string)"
}

Include only the deliverable key that matches deliverable_type."""

AUDITOR_SYSTEM_PROMPT = """You are the Auditor. Grade the given solution strictly against \
every acceptance criterion of the task and answer with exactly one JSON object matching \
the ValidationV1 schema below. Do not add commentary, markdown or any text outside the object.

Descriptions in the schema indicate expected data and type; replace them with actual values.

Schema (ValidationV1):
{
  "schema_version": "must be 'validation_v1' (string)",
  "task_id": "task_id from the TaskSpec (string)",
  "solution_id": "solution_id of the solution under review (string)",
  "verdict": "'pass' | 'fail' | 'needs_revision' (string)",
  "score": "quality and compliance in [0.0, 1.0] (number)",
  "checks": [
    {
      "criterion": "the acceptance criterion, quoted verbatim (string)",
      "pass": "whether the criterion is met (boolean)",
      "reason": "explanation of the outcome (string)",
      "severity": "impact if failing: 'minor' | 'major' | 'critical' (string)",
      "suggested_fix": "optional remediation (string or null)"
    }
  ],
  "suggested_rewrite": "optional corrected deliverable (string or null)",
  "model_used": {"name": "model name (string)", "temperature": "sampling temperature (number)"},
  "created_at": "RFC 3339 UTC timestamp (string)"
}"""

PRODUCER_INSTRUCTIONS = (
    "Use the deliverable_type from the TaskSpec and the solution_id given here. "
    "Satisfy every acceptance criterion. Populate created_at with the current time."
)

AUDITOR_INSTRUCTIONS = (
    "Include at least one check per acceptance criterion, quoting the criterion verbatim. "
    "Set verdict and a score in [0.0, 1.0]."
)

REPAIR_TEMPLATE = """Your previous reply could not be accepted: {error}

Reply again with ONLY the corrected JSON object. No markdown, no explanations, \
no text before or after the object."""

# Evidence carries a prefix of the real prompt, not the whole schema
EVIDENCE_PROMPT_CHARS = 200


def truncate_prompt(prompt: str, limit: int = EVIDENCE_PROMPT_CHARS) -> str:
    if len(prompt) <= limit:
        return prompt
    return prompt[:limit].rstrip() + "..."


def producer_user_message(task: TaskSpec, solution_id: str) -> str:
    payload = {
        "task_spec": task.to_wire(),
        "solution_id": solution_id,
        "instructions": PRODUCER_INSTRUCTIONS,
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def auditor_user_message(task: TaskSpec, solution: Solution) -> str:
    """Task, criteria and deliverable are passed verbatim for grading."""
    payload = {
        "task_spec": task.to_wire(),
        "acceptance_criteria": task.acceptance_criteria,
        "solution": solution.to_wire(),
        "instructions": AUDITOR_INSTRUCTIONS,
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def repair_message(error: str) -> str:
    return REPAIR_TEMPLATE.format(error=error)
