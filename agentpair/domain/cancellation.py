"""Cooperative cancellation for a single pipeline run."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class OperationCancelledError(Exception):
    """Raised when a CancellationToken fires while an operation is pending."""


class CancellationToken:
    """One-shot signal shared by the orchestrator, agents and chat client.

    Cancelling is idempotent; the first reason wins.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled by caller") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError(self.reason or "cancelled")


async def race_cancellation(awaitable: Awaitable[T], token: CancellationToken | None) -> T:
    """Await ``awaitable`` unless ``token`` fires first.

    On cancellation the pending work is cancelled and awaited before
    OperationCancelledError is raised, so no request is left running.
    """
    if token is None:
        return await awaitable

    work = asyncio.ensure_future(awaitable)
    if token.is_cancelled:
        work.cancel()
        await asyncio.wait({work})
        raise OperationCancelledError(token.reason or "cancelled")

    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        waiter.cancel()
        raise

    if work in done:
        waiter.cancel()
        await asyncio.wait({waiter})
        return work.result()

    work.cancel()
    await asyncio.wait({work})
    if not work.cancelled():
        # Finished concurrently with the cancel; its outcome is discarded
        work.exception()
    raise OperationCancelledError(token.reason or "cancelled")
