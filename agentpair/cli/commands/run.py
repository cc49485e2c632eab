import asyncio
from pathlib import Path

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from agentpair.application.orchestrator import ArtifactWriteError
from agentpair.cli.runner import run_pipeline_async
from agentpair.cli.theme import theme
from agentpair.cli.utils import demo_task_spec, load_task_spec
from agentpair.config import ConfigError, load_config

err_console = Console(stderr=True)


def report_config_error(e: ConfigError) -> None:
    err_console.print(f"\n[{theme.ERROR_BOLD}]Configuration error:[/] {e}")
    err_console.print(f"[{theme.DIM}]Set DEEPSEEK_API_KEY and check the DEEPSEEK_* variables.[/]\n")


def report_write_error(e: ArtifactWriteError, out_dir: Path) -> None:
    err_console.print(f"\n[{theme.ERROR_BOLD}]{e.stage.value.capitalize()} stage failed:[/] {escape(str(e))}")
    err_console.print(f"[{theme.DIM}]Check that {escape(str(out_dir))} is a writable directory.[/]\n")


def run_pipeline(
    task_file: Path | None = typer.Option(
        None,
        "--task",
        help="Path to a TaskSpec JSON file. If omitted, a demo task is used",
    ),
    out_dir: Path = typer.Option(Path("out"), "--out-dir", "-o", help="Output directory"),
    producer_only: bool = typer.Option(
        False, "--producer-only", help="Stop after the Producer; skip the audit"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Run Producer then Auditor on a task and save both artifacts."""
    if verbose:
        from agentpair.cli.main import enable_console_logging

        enable_console_logging()

    try:
        config = load_config()
    except ConfigError as e:
        report_config_error(e)
        raise typer.Exit(1) from None

    if task_file is None:
        task = demo_task_spec()
    else:
        try:
            task = load_task_spec(task_file)
        except ValidationError as e:
            for error in e.errors():
                loc = ".".join(str(p) for p in error.get("loc", ()))
                msg = error.get("msg", str(error))
                # Clean up Pydantic message format
                if msg.startswith("Value error, "):
                    msg = msg[13:]
                typer.echo(f"Error: {task_file}: {loc}: {msg}" if loc else f"Error: {msg}", err=True)
            raise typer.Exit(1) from None
        except (OSError, ValueError) as e:
            typer.echo(f"Error: cannot load task from {task_file}: {e}", err=True)
            raise typer.Exit(1) from None

    try:
        result = asyncio.run(run_pipeline_async(task, out_dir, config, producer_only=producer_only))
    except ArtifactWriteError as e:
        report_write_error(e, out_dir)
        raise typer.Exit(1) from None
    if not result.succeeded:
        logger.debug(f"Pipeline failed: {result.failure}")
        raise typer.Exit(1)
