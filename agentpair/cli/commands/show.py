import asyncio
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from agentpair.cli.formatters.artifact_formatter import format_solution, format_validation
from agentpair.cli.theme import theme
from agentpair.infrastructure.persistence.json_artifact_store import JsonArtifactStore

console = Console()


async def _show(out_dir: Path) -> bool:
    store = JsonArtifactStore(out_dir)
    solution = await store.load_solution()
    validation = await store.load_validation()

    if solution is None and validation is None:
        console.print(f"[{theme.WARNING}]No artifacts found in {out_dir}[/]")
        return False

    if solution is not None:
        format_solution(console, solution)
    if validation is not None:
        if solution is not None and validation.solution_id != solution.solution_id:
            console.print(
                f"[{theme.WARNING}]validation.json audits solution {validation.solution_id}, "
                f"not {solution.solution_id}[/]"
            )
        format_validation(console, validation)
    return True


def show(
    out_dir: Path = typer.Argument(Path("out"), help="Directory holding solution.json / validation.json"),
) -> None:
    """Render artifacts saved by a previous run."""
    try:
        found = asyncio.run(_show(out_dir))
    except ValidationError as e:
        console.print(f"[{theme.ERROR_BOLD}]Invalid artifact:[/] {e.error_count()} problem(s)")
        raise typer.Exit(1) from None
    if not found:
        raise typer.Exit(1)
