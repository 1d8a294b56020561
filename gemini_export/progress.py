"""One-directional progress channel.

The converger and the export entry point push events; a consumer drains
them in emission order with ``async for``.
"""

import asyncio
from dataclasses import dataclass

STARTING = "starting"
SCROLLING_UP = "scrolling_up"
DONE = "done"

PHASES = (STARTING, SCROLLING_UP, DONE)


@dataclass(frozen=True)
class ProgressEvent:
    phase: str
    collected: int

    def __post_init__(self):
        if self.phase not in PHASES:
            raise ValueError(f"Unknown progress phase: {self.phase}")


_CLOSED = object()


class ProgressChannel:
    def __init__(self):
        self._queue = asyncio.Queue()
        self._closed = False
        self.history: list[ProgressEvent] = []

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, phase: str, collected: int):
        if self._closed:
            return
        event = ProgressEvent(phase, collected)
        self.history.append(event)
        self._queue.put_nowait(event)

    def close(self):
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> ProgressEvent:
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep the sentinel so later iterations stop too
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item


def progress_text(event: ProgressEvent) -> str:
    if event.phase == SCROLLING_UP:
        return f"Loading full history... {event.collected} turns found"
    if event.phase == DONE:
        return f"Exporting {event.collected} messages..."
    return "Scanning chat history..."
