from agentpair.cli.formatters.artifact_formatter import (
    failure_hint,
    format_failure,
    format_result,
    format_solution,
    format_stage,
    format_task,
    format_task_json,
    format_validation,
)

__all__ = [
    "failure_hint",
    "format_failure",
    "format_result",
    "format_solution",
    "format_stage",
    "format_task",
    "format_task_json",
    "format_validation",
]
