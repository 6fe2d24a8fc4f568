"""Cooperative cancellation for an in-flight pipeline run."""

import asyncio
from typing import Awaitable, TypeVar

from campaignpipe.errors import PipelineCancelledError

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal shared by the orchestrator and its stages."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelledError()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await a coroutine, abandoning it as soon as the token fires.

        Raises:
            PipelineCancelledError: If the token fires before the awaitable
                completes (the awaitable's task is cancelled).
        """
        self.raise_if_cancelled()
        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # Let the work unwind before the caller sees the cancellation
            work.cancel()
            await asyncio.gather(work, return_exceptions=True)
            raise
        finally:
            waiter.cancel()

        if work.done():
            return work.result()

        work.cancel()
        try:
            await work
        except asyncio.CancelledError:
            pass
        raise PipelineCancelledError()
