"""In-memory notifications of session progress.

The session publishes a ``SessionEvent`` on every state change and the
report dispatcher publishes one when a stop report lands or fails.
Consumers subscribe to a queue; ``EventLogger`` is the one the CLI runs,
writing each event to the debug log from a background thread.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionEvent:
    type: str
    title: str = ""
    detail: str = ""
    item_id: str | None = None
    timestamp: float = field(default_factory=time.time)

    def describe(self) -> str:
        text = f"{self.type}: {self.title}" if self.title else self.type
        if self.detail:
            text += f" ({self.detail})"
        return text


class EventBus:
    """Fans events out to subscriber queues.

    A subscriber whose queue is full has stopped reading and is dropped
    rather than holding up the session.
    """

    def __init__(self, maxsize: int = 50):
        self._maxsize = maxsize
        self._subscribers: list[queue.Queue] = []
        self._lock = threading.Lock()

    def emit(
        self,
        event_type: str,
        title: str = "",
        detail: str = "",
        item_id: str | None = None,
    ) -> SessionEvent:
        event = SessionEvent(event_type, title, detail, item_id)
        self.publish(event)
        return event

    def publish(self, event: SessionEvent):
        with self._lock:
            stalled = []
            for q in self._subscribers:
                try:
                    q.put_nowait(event)
                except queue.Full:
                    stalled.append(q)
            for q in stalled:
                self._subscribers.remove(q)
        if stalled:
            logger.warning("Dropped %d stalled event subscriber(s)", len(stalled))

    def subscribe(self) -> queue.Queue:
        """Return a queue that receives every SessionEvent from now on."""
        q: queue.Queue = queue.Queue(maxsize=self._maxsize)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue):
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)


class EventLogger:
    """Writes bus events to the debug log until stopped.

    Usage:
        events = EventLogger(bus)
        events.start()
        ...
        events.stop()
    """

    def __init__(self, bus: EventBus, log: logging.Logger = logger):
        self.bus = bus
        self.log = log
        self._queue: queue.Queue | None = None
        self._thread: threading.Thread | None = None

    def start(self):
        self._queue = self.bus.subscribe()
        self._thread = threading.Thread(
            target=self._run, args=(self._queue,), daemon=True, name="extplay-events"
        )
        self._thread.start()

    def _run(self, q: queue.Queue):
        # None marks the end of the stream
        for event in iter(q.get, None):
            self.log.debug("Session event %s", event.describe())

    def stop(self, timeout: float | None = 1.0):
        """Drain pending events and join the logging thread."""
        if self._thread is None:
            return
        self.bus.unsubscribe(self._queue)
        self._queue.put(None)
        self._thread.join(timeout)
        self._thread = None
        self._queue = None
