"""Polling loop for long-running remote operations.

PollingOperation drives a submitted operation to completion:
- Submit once, then refresh on a fixed interval until the remote reports done
- Publish a distinct progress message per poll so observers can tell a
  slow operation from a stuck one
- Optional ceiling on the number of polls
- Wait through an injected Clock so tests run without wall-clock delays and
  cancellation interrupts the wait
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, Protocol, TypeVar

from campaignpipe.errors import PollingTimeoutError
from campaignpipe.orchestrator.cancellation import CancellationToken
from campaignpipe.orchestrator.progress import ProgressChannel

logger = logging.getLogger(__name__)

OpT = TypeVar("OpT")
ResultT = TypeVar("ResultT")

SUBMITTED_MESSAGE = "Video request sent. Awaiting processing..."
PROCESSED_MESSAGE = "Video processed. Fetching data..."
READY_MESSAGE = "Video ready!"


def poll_message(poll_count: int) -> str:
    return f"Processing... (check {poll_count})"


class Clock(Protocol):
    """Delay capability used between polls."""

    async def sleep(
        self, seconds: float, cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        ...


class AsyncioClock:
    """Real-time clock backed by asyncio.sleep.

    When a cancellation token is supplied the sleep returns as soon as the
    token fires.
    """

    async def sleep(
        self, seconds: float, cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        if cancel_token is None:
            await asyncio.sleep(seconds)
            return

        sleeper = asyncio.ensure_future(asyncio.sleep(seconds))
        waiter = asyncio.ensure_future(cancel_token.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            waiter.cancel()


class PollState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    RESOLVED = "resolved"
    FAILED = "failed"


class PollingOperation(Generic[OpT, ResultT]):
    """Submit-then-poll state machine: submitted -> polling -> resolved | failed.

    Args:
        refresh: Re-fetch the operation's latest state
        is_done: Return True once the operation reports completion
        resolve: Turn a finished operation into the final result; raises on
            terminal failures (missing artifact, failed download, ...)
        progress: Channel receiving human-readable progress messages
        clock: Delay capability between polls (defaults to AsyncioClock)
        interval: Seconds between polls
        max_polls: Give up after this many polls; None polls until done
        cancel_token: Optional token checked before every poll and during waits
    """

    def __init__(
        self,
        *,
        refresh: Callable[[OpT], Awaitable[OpT]],
        is_done: Callable[[OpT], bool],
        resolve: Callable[[OpT], Awaitable[ResultT]],
        progress: ProgressChannel,
        clock: Optional[Clock] = None,
        interval: float = 10.0,
        max_polls: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        self._refresh = refresh
        self._is_done = is_done
        self._resolve = resolve
        self._progress = progress
        self._clock = clock or AsyncioClock()
        self._interval = interval
        self._max_polls = max_polls
        self._cancel_token = cancel_token
        self.state: Optional[PollState] = None
        self.poll_count = 0

    def _check_cancelled(self) -> None:
        if self._cancel_token is not None:
            self._cancel_token.raise_if_cancelled()

    async def run(self, submit: Callable[[], Awaitable[OpT]]) -> ResultT:
        """Submit the operation and poll it to a terminal state.

        Raises:
            PollingTimeoutError: max_polls reached without completion
            PipelineCancelledError: cancellation token fired
            Exception: Whatever submit/refresh/resolve raise
        """
        try:
            self._check_cancelled()
            operation = await submit()
            self.state = PollState.SUBMITTED
            self._progress.publish(SUBMITTED_MESSAGE)

            self.state = PollState.POLLING
            while not self._is_done(operation):
                if self._max_polls is not None and self.poll_count >= self._max_polls:
                    raise PollingTimeoutError(
                        f"Operation did not complete after "
                        f"{self._max_polls * self._interval:g} seconds"
                    )
                self._check_cancelled()
                self.poll_count += 1
                self._progress.publish(poll_message(self.poll_count))
                await self._clock.sleep(self._interval, self._cancel_token)
                self._check_cancelled()
                operation = await self._refresh(operation)
                logger.debug("Poll %d: done=%s", self.poll_count, self._is_done(operation))

            self._progress.publish(PROCESSED_MESSAGE)
            result = await self._resolve(operation)
        except BaseException:
            self.state = PollState.FAILED
            raise

        self.state = PollState.RESOLVED
        self._progress.publish(READY_MESSAGE)
        logger.info("Operation resolved after %d poll(s)", self.poll_count)
        return result
