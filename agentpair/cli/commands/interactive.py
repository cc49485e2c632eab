import asyncio
from pathlib import Path

import typer
from rich.console import Console

from agentpair.application.orchestrator import ArtifactWriteError
from agentpair.cli.commands.run import report_config_error, report_write_error
from agentpair.cli.formatters.artifact_formatter import format_task_json
from agentpair.cli.runner import run_pipeline_async
from agentpair.cli.theme import theme
from agentpair.cli.utils import parse_deliverable_choice, sanitize_terminal_input, split_criteria
from agentpair.config import ConfigError, load_config
from agentpair.domain.entities.task_spec import TaskSpec
from agentpair.domain.value_objects.deliverable_type import DeliverableType

console = Console()


def _ask(label: str) -> str:
    return sanitize_terminal_input(console.input(f"[{theme.PROMPT}]{label}:[/] ")).strip()


def collect_task_spec() -> TaskSpec:
    """Prompt for the TaskSpec fields on the terminal."""
    console.print(f"\n[{theme.INFO_BOLD}]New task for the Producer[/]\n")

    goal = _ask("Goal")
    while not goal:
        console.print(f"[{theme.WARNING}]Goal cannot be empty.[/]")
        goal = _ask("Goal")

    input_text = _ask("Input / context")
    criteria = split_criteria(_ask("Acceptance criteria (comma or semicolon separated)"))

    console.print(f"[{theme.DIM}]Deliverable type: 1) text  2) json  3) code[/]")
    raw_type = _ask("Type [1]") or "1"
    deliverable_type = parse_deliverable_choice(raw_type)
    if deliverable_type is None:
        console.print(f"[{theme.WARNING}]Unknown deliverable type '{raw_type}', using text.[/]")
        deliverable_type = DeliverableType.TEXT

    hints = _ask("Hints (optional)") or None

    return TaskSpec.new(
        goal=goal,
        input=input_text,
        acceptance_criteria=criteria,
        deliverable_type=deliverable_type,
        hints=hints,
    )


def interactive(
    out_dir: Path = typer.Option(Path("out"), "--out-dir", "-o", help="Output directory"),
) -> None:
    """Enter a task on the terminal and run the Producer on it."""
    try:
        config = load_config()
    except ConfigError as e:
        report_config_error(e)
        raise typer.Exit(1) from None

    task = collect_task_spec()
    console.print(f"\n[{theme.HEADER}]TaskSpec:[/]")
    format_task_json(console, task)

    try:
        result = asyncio.run(run_pipeline_async(task, out_dir, config, producer_only=True))
    except ArtifactWriteError as e:
        report_write_error(e, out_dir)
        raise typer.Exit(1) from None
    if not result.succeeded:
        raise typer.Exit(1)
