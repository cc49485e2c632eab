import asyncio
import contextlib
import signal
from collections.abc import Iterator
from pathlib import Path

from loguru import logger
from rich.console import Console

from agentpair.application.agents.agent import create_agent
from agentpair.application.orchestrator import Orchestrator, PipelineCallbacks, PipelineResult
from agentpair.cli.formatters.artifact_formatter import (
    format_failure,
    format_result,
    format_solution,
    format_stage,
    format_task,
    format_validation,
)
from agentpair.config import AppConfig
from agentpair.domain.cancellation import CancellationToken
from agentpair.domain.entities.task_spec import TaskSpec
from agentpair.domain.value_objects.agent_role import AgentRole
from agentpair.infrastructure.llm.chat_completions_client import ChatCompletionsClient
from agentpair.infrastructure.persistence.json_artifact_store import JsonArtifactStore

console = Console()


def build_callbacks(out: Console) -> PipelineCallbacks:
    return PipelineCallbacks(
        on_stage=lambda state: format_stage(out, state),
        on_task=lambda task: format_task(out, task),
        on_solution=lambda solution: format_solution(out, solution),
        on_validation=lambda validation: format_validation(out, validation),
        on_failure=lambda failure: format_failure(out, failure),
    )


@contextlib.contextmanager
def cancel_on_sigint(token: CancellationToken) -> Iterator[None]:
    """Route Ctrl+C to ``token`` while the pipeline runs."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel, "interrupted by user")
        installed = True
    except (NotImplementedError, RuntimeError):
        # No loop signal handlers on this platform; KeyboardInterrupt applies
        installed = False
    try:
        yield
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


async def run_pipeline_async(
    task: TaskSpec,
    out_dir: Path,
    config: AppConfig,
    producer_only: bool = False,
) -> PipelineResult:
    """Run Producer (and Auditor unless ``producer_only``) and render progress."""
    token = CancellationToken()

    async with ChatCompletionsClient(
        api_key=config.api_key,
        base_url=config.base_url,
        retry_policy=config.retry_policy,
        json_mode=config.json_mode,
    ) as client:
        orchestrator = Orchestrator(
            producer=create_agent(AgentRole.PRODUCER, client, config),
            auditor=create_agent(AgentRole.AUDITOR, client, config),
            store=JsonArtifactStore(out_dir),
            callbacks=build_callbacks(console),
        )
        with cancel_on_sigint(token):
            result = await orchestrator.run(task, producer_only=producer_only, cancel=token)

    logger.info(f"[PIPELINE] Finished in state {result.state.value}")
    format_result(console, result)
    return result
