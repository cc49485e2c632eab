import sys
from datetime import datetime
from pathlib import Path

import typer
from loguru import logger

from agentpair.cli.commands import interactive, run, show


def get_log_dir() -> Path:
    """Return the directory for log files, creating it if needed."""
    log_dir = Path.home() / ".agentpair" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


_console_sink: int | None = None


def enable_console_logging() -> None:
    """Mirror log records to stderr; a second call adds nothing."""
    global _console_sink
    if _console_sink is None:
        _console_sink = logger.add(
            sys.stderr,
            format="{time:HH:mm:ss} | {level: <8} | {message}",
            level="DEBUG",
        )


def setup_logging(verbose: bool = False) -> Path:
    """Configure loguru logging and return the log file path."""
    global _console_sink
    logger.remove()
    _console_sink = None

    log_file = get_log_dir() / f"{datetime.now():%Y%m%d_%H%M%S}.log"
    logger.add(
        log_file,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
        rotation="10 MB",
        encoding="utf-8",
    )

    if verbose:
        enable_console_logging()

    return log_file


app = typer.Typer(
    name="agentpair",
    help="agentpair - a Producer and an Auditor LLM agent working on one task",
    no_args_is_help=True,
)

# Register commands
app.command(name="run")(run.run_pipeline)
app.command(name="interactive")(interactive.interactive)
app.command(name="show")(show.show)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output", is_eager=True),
) -> None:
    """agentpair - a Producer and an Auditor LLM agent working on one task."""
    setup_logging(verbose=verbose)


if __name__ == "__main__":
    app()
