import json

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from agentpair.application.orchestrator import PipelineFailure, PipelineResult
from agentpair.cli.theme import theme
from agentpair.domain.entities.solution import (
    CodeDeliverable,
    JsonDeliverable,
    Solution,
    TextDeliverable,
)
from agentpair.domain.entities.task_spec import TaskSpec
from agentpair.domain.entities.validation import Validation
from agentpair.domain.value_objects.audit_enums import Severity, Verdict
from agentpair.domain.value_objects.error_kind import ErrorKind
from agentpair.domain.value_objects.pipeline_state import PipelineState

VERDICT_STYLES: dict[Verdict, str] = {
    Verdict.PASS: theme.VERDICT_PASS,
    Verdict.FAIL: theme.VERDICT_FAIL,
    Verdict.NEEDS_REVISION: theme.VERDICT_NEEDS_REVISION,
}

SEVERITY_STYLES: dict[Severity, str] = {
    Severity.MINOR: theme.SEVERITY_MINOR,
    Severity.MAJOR: theme.SEVERITY_MAJOR,
    Severity.CRITICAL: theme.SEVERITY_CRITICAL,
}

STAGE_LABELS: dict[PipelineState, tuple[str, str]] = {
    PipelineState.PRODUCING: ("Producer is working on the task...", theme.STAGE_PRODUCING),
    PipelineState.AUDITING: ("Auditor is grading the solution...", theme.STAGE_AUDITING),
}

FAILURE_HINTS: dict[ErrorKind, str] = {
    ErrorKind.TRANSPORT: "Check your internet connection and firewall settings.",
    ErrorKind.RATE_LIMITED: "You've hit the rate limit. Wait before trying again.",
    ErrorKind.INVALID_RESPONSE: "The server answered in an unexpected format. Try again later.",
    ErrorKind.SCHEMA_VIOLATION: "The model kept answering off-schema. Try rephrasing the task.",
    ErrorKind.CANCELLED: "Run was cancelled; artifacts of finished stages were kept.",
}

HTTP_STATUS_HINTS: dict[int, str] = {
    401: "Check your DEEPSEEK_API_KEY environment variable.",
    403: "Your API key may not have sufficient permissions.",
    429: "You've hit the rate limit. Wait before trying again.",
}


def failure_hint(failure: PipelineFailure) -> str:
    if failure.status_code in HTTP_STATUS_HINTS:
        return HTTP_STATUS_HINTS[failure.status_code]
    if failure.kind == ErrorKind.HTTP:
        return "Check the API documentation for this status code."
    return FAILURE_HINTS.get(failure.kind, "Please try again.")


def format_stage(console: Console, state: PipelineState) -> None:
    label = STAGE_LABELS.get(state)
    if label:
        text, style = label
        console.print(f"[{style}]{text}[/]")


def format_task(console: Console, task: TaskSpec) -> None:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Field", style=theme.TABLE_LABEL)
    table.add_column("Value", style=theme.TEXT)

    table.add_row("Task", f"[{theme.TABLE_ID}]{task.task_id}[/]")
    table.add_row("Goal", escape(task.goal))
    if task.input:
        table.add_row("Input", escape(task.input))
    table.add_row("Type", task.deliverable_type.value)
    if task.acceptance_criteria:
        table.add_row("Criteria", "\n".join(f"• {escape(c)}" for c in task.acceptance_criteria))
    if task.hints:
        table.add_row("Hints", escape(task.hints))

    console.print(Panel(table, title="[bold]Task[/]", border_style=theme.BORDER_TASK))


def format_task_json(console: Console, task: TaskSpec) -> None:
    body = json.dumps(task.to_wire(), indent=2, ensure_ascii=False)
    console.print(Syntax(body, "json", theme="monokai", line_numbers=False))


def format_solution(console: Console, solution: Solution) -> None:
    deliverable = solution.deliverable
    match deliverable:
        case TextDeliverable():
            body: Text | Syntax = Text(deliverable.text)
        case JsonDeliverable():
            body = Syntax(
                json.dumps(deliverable.value, indent=2, ensure_ascii=False),
                "json",
                theme="monokai",
            )
        case CodeDeliverable():
            body = Syntax(deliverable.code.content, deliverable.code.language or "text", theme="monokai")

    console.print(
        Panel(
            body,
            title=f"[bold]Solution[/] [{theme.DIM}]{solution.solution_id}[/]",
            subtitle=(
                f"{solution.model_used.name} | "
                f"{solution.usage.prompt_tokens}+{solution.usage.completion_tokens} tokens"
            ),
            border_style=theme.BORDER_SOLUTION,
        )
    )
    if solution.evidence.usage_note:
        console.print(f"[{theme.DIM_ITALIC}]Note: {escape(solution.evidence.usage_note)}[/]")


def format_validation(console: Console, validation: Validation) -> None:
    verdict_style = VERDICT_STYLES[validation.verdict]
    console.print(
        f"\n[{verdict_style}]Verdict: {validation.verdict.value.upper()}[/] "
        f"[{theme.DIM}](score {validation.score:.2f})[/]"
    )

    if validation.checks:
        table = Table(show_header=True, header_style=theme.HEADER, box=None, padding=(0, 1))
        table.add_column("", width=2)
        table.add_column("Criterion")
        table.add_column("Severity")
        table.add_column("Reason", style=theme.TABLE_LABEL)
        for check in validation.checks:
            mark = f"[{theme.SUCCESS}]✓[/]" if check.passed else f"[{theme.ERROR}]✗[/]"
            severity = f"[{SEVERITY_STYLES[check.severity]}]{check.severity.value}[/]"
            reason = escape(check.reason)
            if not check.passed and check.suggested_fix:
                reason += f"\nFix: {escape(check.suggested_fix)}"
            table.add_row(mark, escape(check.criterion), severity, reason)
        console.print(table)

        failed = validation.failed_checks
        if failed:
            console.print(f"[{theme.WARNING}]{len(failed)} of {len(validation.checks)} checks failed[/]")
        else:
            console.print(f"[{theme.SUCCESS}]All {len(validation.checks)} checks passed[/]")

    if validation.suggested_rewrite:
        console.print(
            Panel(
                Text(validation.suggested_rewrite),
                title="[bold]Suggested rewrite[/]",
                border_style=theme.BORDER_VALIDATION,
            )
        )


def format_failure(console: Console, failure: PipelineFailure) -> None:
    lines = [
        f"[bold]{failure.stage.value.capitalize()} failed[/] ({failure.kind.value})",
        "",
        escape(failure.message),
        "",
        f"[{theme.DIM}]Tip: {failure_hint(failure)}[/]",
    ]
    if failure.raw_text:
        preview = failure.raw_text if len(failure.raw_text) <= 400 else failure.raw_text[:400] + "..."
        lines += ["", f"[{theme.DIM}]Last model output:[/]", escape(preview)]

    console.print(
        Panel("\n".join(lines), title="[bold]Error[/]", border_style=theme.BORDER_ERROR)
    )


def format_result(console: Console, result: PipelineResult) -> None:
    if result.state == PipelineState.COMPLETED:
        console.print(f"\n[{theme.SUCCESS_BOLD}]Pipeline complete[/]")
    elif result.state == PipelineState.PRODUCED:
        console.print(f"\n[{theme.SUCCESS_BOLD}]Solution produced[/] [{theme.DIM}](audit skipped)[/]")
    else:
        console.print(f"\n[{theme.ERROR_BOLD}]Pipeline failed[/]")

    if result.uncovered_criteria:
        console.print(f"[{theme.WARNING}]No audit check covers:[/]")
        for criterion in result.uncovered_criteria:
            console.print(f"  • {escape(criterion)}")

    if result.artifact_paths:
        console.print("[bold]Artifacts:[/]")
        for path in result.artifact_paths:
            console.print(f"  [{theme.DIM}]{escape(str(path))}[/]")
