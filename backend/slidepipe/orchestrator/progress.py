"""One-way progress stream from a run to its caller.

Delivery is coalescing but monotonic: a consumer that falls behind skips
intermediate checkpoints and receives the newest one, and percentages never
go down. The final event published before ``close()`` is always delivered.
Callers that need every checkpoint pass a progress callback to
``Orchestrator.run`` instead.
"""

import asyncio
from typing import Optional

from slidepipe.schemas.run import ProgressEvent


class ProgressStream:
    """Single-consumer async iterator of ProgressEvent."""

    def __init__(self) -> None:
        self._latest: Optional[ProgressEvent] = None
        self._last_percentage = -1
        self._pending = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: ProgressEvent) -> None:
        """Replace any undelivered event with ``event``. Never blocks.

        Raises:
            ValueError: If the percentage is lower than the last published one.
            RuntimeError: If the stream is closed.
        """
        if self._closed:
            raise RuntimeError("Progress stream is closed")
        if event.percentage < self._last_percentage:
            raise ValueError(
                f"Progress must not decrease: {event.percentage} < {self._last_percentage}"
            )
        self._last_percentage = event.percentage
        self._latest = event
        self._pending.set()

    def close(self) -> None:
        self._closed = True
        self._pending.set()

    def __aiter__(self) -> "ProgressStream":
        return self

    async def __anext__(self) -> ProgressEvent:
        while True:
            if self._latest is not None:
                event, self._latest = self._latest, None
                if not self._closed:
                    self._pending.clear()
                return event
            if self._closed:
                raise StopAsyncIteration
            await self._pending.wait()
