"""Per-run progress events: callback listeners and async-iterator streams."""

import asyncio
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    type: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: int = 0  # epoch milliseconds

    def to_json(self) -> str:
        """Serialize as a single NDJSON line (without the trailing newline)."""
        return json.dumps(
            {"type": self.type, "data": self.data, "timestamp": self.timestamp},
            ensure_ascii=False,
        )


Listener = Callable[[ProgressEvent], None]

_CLOSED = object()


class EventStream:
    """Async iterator over the events of one run. Ends when the emitter closes."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()

    def _put(self, item: object) -> None:
        self._queue.put_nowait(item)

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> ProgressEvent:
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep the sentinel so repeated iteration also terminates.
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item


class EventEmitter:
    """Fan-out of progress events to listeners and streams, in emission order.

    Delivery is best-effort: a listener that raises is logged and skipped,
    and the run carries on.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._streams: list[EventStream] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def stream(self) -> EventStream:
        """Open a new stream that receives every event emitted from now on."""
        stream = EventStream()
        if self._closed:
            stream._put(_CLOSED)
        else:
            self._streams.append(stream)
        return stream

    def emit(self, event_type: str, data: dict[str, Any] | None = None) -> ProgressEvent:
        event = ProgressEvent(
            type=event_type,
            data=dict(data or {}),
            timestamp=int(time.time() * 1000),
        )
        if self._closed:
            logger.warning("Event %s emitted after close, dropped", event_type)
            return event

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                logger.warning("Event listener failed on %s: %s", event_type, exc)
        for stream in self._streams:
            stream._put(event)
        return event

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for stream in self._streams:
            stream._put(_CLOSED)
        self._streams.clear()
