"""Queue controller: applies resolved outcomes to the playback queue.

Owns the only piece of mutable state shared across hand-offs, the index of
the current queue entry. Each reported outcome triggers a best-effort
playback-stopped report on a background thread; the queue decision never
waits for it to succeed.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import TYPE_CHECKING

from extplay.jellyfin_client import JellyfinAPIError
from extplay.models import PlaybackContext, timedelta_to_ticks
from extplay.outcome import Reported

if TYPE_CHECKING:
    from datetime import timedelta

    from extplay.events import EventBus
    from extplay.jellyfin_client import JellyfinClient
    from extplay.refresh import DataRefreshService

logger = logging.getLogger(__name__)


class SessionCommand(enum.Enum):
    ADVANCE_AND_CONTINUE = "advance_and_continue"
    STOP = "stop"


class VideoQueue:
    """Ordered list of item ids queued for external playback."""

    def __init__(self, item_ids: list[str] | None = None):
        self._item_ids = list(item_ids or [])

    def __len__(self) -> int:
        return len(self._item_ids)

    def get(self, index: int) -> str | None:
        if 0 <= index < len(self._item_ids):
            return self._item_ids[index]
        return None


class QueueController:
    """Applies outcomes to the queue and dispatches stop reports."""

    def __init__(
        self,
        queue: VideoQueue,
        reporter: "JellyfinClient",
        refresh: "DataRefreshService | None" = None,
        event_bus: "EventBus | None" = None,
        start_index: int = 0,
    ):
        self.queue = queue
        self.reporter = reporter
        self.refresh = refresh
        self.event_bus = event_bus
        self._index = start_index
        self._lock = threading.Lock()
        self._report_threads: list[threading.Thread] = []

    @property
    def index(self) -> int:
        with self._lock:
            return self._index

    def current_item_id(self) -> str | None:
        with self._lock:
            return self.queue.get(self._index)

    def has_next(self) -> bool:
        with self._lock:
            return self.queue.get(self._index + 1) is not None

    # --- User confirmation ---

    def on_user_confirmed_watched(self, ctx: PlaybackContext) -> Reported:
        """The user says they finished the item despite the short playback."""
        return Reported(position=ctx.runtime, advance=True)

    def on_user_declined_watched(self, ctx: PlaybackContext, short_duration: "timedelta") -> Reported:
        """The user stopped partway; report where they got to."""
        return Reported(position=short_duration, advance=False)

    # --- Applying outcomes ---

    def apply(self, ctx: PlaybackContext, outcome: Reported) -> SessionCommand:
        """Report the outcome and decide whether the session moves on.

        The index only moves when the outcome asks to advance and another
        item is queued.
        """
        if not isinstance(outcome, Reported):
            raise TypeError(f"Cannot apply unresolved outcome {outcome!r}")

        self._dispatch_report(ctx, outcome)

        with self._lock:
            if outcome.advance and self.queue.get(self._index + 1) is not None:
                self._index += 1
                command = SessionCommand.ADVANCE_AND_CONTINUE
            else:
                command = SessionCommand.STOP

        logger.info(
            "Applied outcome for %s (position=%s, advance=%s): %s",
            ctx.item.id, outcome.position, outcome.advance, command.value,
        )
        return command

    def _dispatch_report(self, ctx: PlaybackContext, outcome: Reported):
        thread = threading.Thread(
            target=self._report,
            args=(ctx, outcome),
            daemon=True,
            name=f"report-{ctx.item.id}",
        )
        with self._lock:
            self._report_threads = [t for t in self._report_threads if t.is_alive()]
            self._report_threads.append(thread)
        thread.start()

    def _report(self, ctx: PlaybackContext, outcome: Reported):
        try:
            self.reporter.report_playback_stopped(
                item_id=ctx.item.id,
                media_source_id=ctx.source.id,
                position_ticks=timedelta_to_ticks(outcome.position),
                failed=False,
            )
            self._emit("report", f"Reported stop: {ctx.item.name or ctx.item.id}", "", ctx.item.id)
        except JellyfinAPIError as e:
            logger.warning("Failed to report playback stop event: %s", e)
            self._emit("error", "Failed to report playback stop", str(e), ctx.item.id)
        finally:
            if self.refresh is not None:
                self.refresh.mark_played(ctx.item.kind)

    def wait_for_reports(self, timeout: float | None = None):
        """Block until dispatched reports have finished (used at shutdown)."""
        with self._lock:
            threads = list(self._report_threads)
        for thread in threads:
            thread.join(timeout)
        with self._lock:
            self._report_threads = [t for t in self._report_threads if t.is_alive()]

    def _emit(self, event_type: str, title: str, detail: str = "", item_id: str | None = None):
        if self.event_bus:
            self.event_bus.emit(event_type, title, detail, item_id)
