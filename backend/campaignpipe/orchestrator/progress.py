"""Async stream of human-readable progress events.

Long-running capabilities publish into a ProgressChannel; consumers read it
with ``async for``. The channel keeps every message it has seen so tests
can inspect the full sequence after the fact.
"""

import asyncio
from typing import AsyncIterator, Optional

_CLOSED = object()


class ProgressChannel:
    """Single-consumer async channel of progress messages."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self.messages: list[str] = []

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def latest(self) -> Optional[str]:
        return self.messages[-1] if self.messages else None

    def publish(self, message: str) -> None:
        """Emit a progress message. Publishing after close is an error."""
        if self._closed:
            raise RuntimeError("Progress channel is closed")
        self.messages.append(message)
        self._queue.put_nowait(message)

    def close(self) -> None:
        """Signal end of stream; pending messages are still delivered."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item
