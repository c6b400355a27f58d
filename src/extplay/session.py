"""Playback session: drives queued items through the external player.

One hand-off is in flight at a time. The session moves through

    Idle -> AwaitingResult -> [AwaitingUserChoice] -> Reporting -> Idle (next item)
                                                               -> Terminal
    AwaitingResult -> Aborted

``run`` wires the steps together for a blocking caller. UIs that cannot
block call ``play_next``, launch the request themselves, and feed the result
back through ``on_result`` and ``confirm_watched``/``decline_watched``.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable

from extplay.handoff import HandoffBuilder, PlaybackRequest
from extplay.jellyfin_client import JellyfinAPIError
from extplay.launcher import LaunchFailure
from extplay.models import PlaybackContext, PlayerResult
from extplay.outcome import (
    ImmediateFailure,
    NeedsConfirmation,
    PlaybackAborted,
    Reported,
    resolve,
)
from extplay.queue_controller import SessionCommand
from extplay.vendors import is_vimu_error

if TYPE_CHECKING:
    from extplay.events import EventBus
    from extplay.jellyfin_client import JellyfinClient
    from extplay.launcher import SubprocessLauncher
    from extplay.queue_controller import QueueController

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    IDLE = "idle"
    AWAITING_RESULT = "awaiting_result"
    AWAITING_USER_CHOICE = "awaiting_user_choice"
    REPORTING = "reporting"
    TERMINAL = "terminal"
    ABORTED = "aborted"


class VendorErrorSignal(PlaybackAborted):
    """The player explicitly reported a playback error."""


class MissingMediaSource(PlaybackAborted):
    """The current item has no playable media source."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlaybackSession:
    """State machine for a run of hand-offs over the queue."""

    def __init__(
        self,
        client: "JellyfinClient",
        launcher: "SubprocessLauncher",
        controller: "QueueController",
        builder: HandoffBuilder | None = None,
        event_bus: "EventBus | None" = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.client = client
        self.launcher = launcher
        self.controller = controller
        self.builder = builder or HandoffBuilder(client)
        self.event_bus = event_bus
        self._clock = clock
        self._state = SessionState.IDLE
        self._context: PlaybackContext | None = None
        self._pending: NeedsConfirmation | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def context(self) -> PlaybackContext | None:
        return self._context

    @property
    def is_finished(self) -> bool:
        return self._state in (SessionState.TERMINAL, SessionState.ABORTED)

    def _set_state(self, state: SessionState, detail: str = ""):
        self._state = state
        item_id = self._context.item.id if self._context else None
        self._emit("state", state.value, detail, item_id)

    def _emit(self, event_type: str, title: str, detail: str = "", item_id: str | None = None):
        if self.event_bus:
            self.event_bus.emit(event_type, title, detail, item_id)

    def _expect(self, *states: SessionState):
        if self._state not in states:
            raise RuntimeError(f"Session is {self._state.value}, expected one of "
                               f"{', '.join(s.value for s in states)}")

    def _abort(self, error: Exception):
        logger.warning("Session aborted: %s", error)
        self._set_state(SessionState.ABORTED, str(error))
        self._context = None
        self._pending = None
        raise error

    # --- Steps ---

    def play_next(self, position: timedelta = timedelta(0)) -> PlaybackRequest | None:
        """Prepare the current queue item for hand-off.

        Returns the request to launch, or None when the queue is exhausted
        (the session is then terminal).
        """
        self._expect(SessionState.IDLE)
        item_id = self.controller.current_item_id()
        if item_id is None:
            self._set_state(SessionState.TERMINAL, "queue exhausted")
            return None

        try:
            item = self.client.get_item(item_id)
        except JellyfinAPIError as e:
            self._abort(e)

        source = item.find_source()
        if source is None:
            self._abort(MissingMediaSource(f"No playable source for item {item.id}"))

        request = self.builder.build(item, source, position)
        self._context = PlaybackContext(
            item=item,
            source=source,
            start_time=self._clock(),
            requested_start_position=position,
        )
        self._set_state(SessionState.AWAITING_RESULT, request.title)
        return request

    def launch(self, request: PlaybackRequest) -> PlayerResult:
        """Run the external player for a prepared request."""
        self._expect(SessionState.AWAITING_RESULT)
        try:
            return self.launcher.launch(request)
        except LaunchFailure as e:
            self._abort(e)

    def on_result(self, result: PlayerResult, finished_at: datetime) -> SessionCommand | NeedsConfirmation:
        """Resolve the player's result.

        Returns the queue command, or a NeedsConfirmation when the user must
        be asked first.

        Raises:
            VendorErrorSignal, ImmediateFailure: the session is aborted.
        """
        self._expect(SessionState.AWAITING_RESULT)
        ctx = self._context

        if is_vimu_error(result):
            self._abort(VendorErrorSignal(f"Player reported an error (code {result.result_code})"))

        try:
            outcome = resolve(ctx, result, finished_at)
        except ImmediateFailure as e:
            self._abort(e)

        if isinstance(outcome, NeedsConfirmation):
            self._pending = outcome
            self._set_state(SessionState.AWAITING_USER_CHOICE, str(outcome.short_duration))
            return outcome
        if isinstance(outcome, Reported):
            return self._finish(outcome)
        raise TypeError(f"Unknown outcome {outcome!r}")

    def confirm_watched(self) -> SessionCommand:
        self._expect(SessionState.AWAITING_USER_CHOICE)
        return self._finish(self.controller.on_user_confirmed_watched(self._context))

    def decline_watched(self) -> SessionCommand:
        self._expect(SessionState.AWAITING_USER_CHOICE)
        return self._finish(
            self.controller.on_user_declined_watched(self._context, self._pending.short_duration)
        )

    def cancel(self):
        """Drop an in-flight hand-off without reporting anything."""
        if self.is_finished:
            return
        logger.info("Session cancelled")
        self._set_state(SessionState.ABORTED, "cancelled")
        self._context = None
        self._pending = None

    def _finish(self, outcome: Reported) -> SessionCommand:
        self._pending = None
        self._set_state(SessionState.REPORTING)
        command = self.controller.apply(self._context, outcome)
        self._context = None
        if command is SessionCommand.ADVANCE_AND_CONTINUE:
            self._set_state(SessionState.IDLE, "next item")
        else:
            self._set_state(SessionState.TERMINAL)
        return command

    # --- Blocking driver ---

    def run(
        self,
        confirm: Callable[[PlaybackContext, timedelta], bool],
        position: timedelta = timedelta(0),
    ) -> SessionState:
        """Play through the queue until the session stops.

        ``confirm(ctx, short_duration)`` is asked whether a short playback
        was in fact watched to the end.
        """
        while not self.is_finished:
            request = self.play_next(position)
            if request is None:
                break
            position = timedelta(0)

            result = self.launch(request)
            step = self.on_result(result, self._clock())

            if isinstance(step, NeedsConfirmation):
                if confirm(self._context, step.short_duration):
                    self.confirm_watched()
                else:
                    self.decline_watched()
        return self._state
