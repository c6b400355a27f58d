"""Outcome resolution for a finished external playback.

The external player returns an untrusted envelope. Three independent and
often absent signals are reconciled here, in strict precedence:

1. an explicit end position in the result extras
2. a vendor-specific "played to completion" result
3. wall-clock time spent in the player versus the known runtime

When none of them can be trusted the caller is asked to confirm with the
user. ``resolve`` is a pure function: the finish time is supplied by the
caller, never sampled here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from extplay.models import PlaybackContext, PlayerResult
from extplay.vendors import RESULT_POSITION_KEYS, match_profile

logger = logging.getLogger(__name__)

# Less time than this in the player means it never really played
IMMEDIATE_FAILURE_THRESHOLD = timedelta(seconds=1)
# Fraction of the runtime that counts as watched
COMPLETION_RATIO = 0.9


class PlaybackAborted(Exception):
    """The session cannot continue; nothing is reported for the item."""


class ImmediateFailure(PlaybackAborted):
    """The external player returned too quickly to have played anything."""

    def __init__(self, elapsed: timedelta):
        super().__init__(f"Player returned after {elapsed.total_seconds():.3f}s")
        self.elapsed = elapsed


@dataclass(frozen=True)
class Reported:
    """Final verdict: report ``position`` and optionally move on."""

    position: timedelta | None
    advance: bool


@dataclass(frozen=True)
class NeedsConfirmation:
    """Ambiguous short playback: ask the user whether it was watched."""

    short_duration: timedelta


Outcome = Reported | NeedsConfirmation


def explicit_end_position(result: PlayerResult) -> timedelta | None:
    """First numeric position extra, in priority order, as a duration."""
    for key in RESULT_POSITION_KEYS:
        value = result.get_number(key)
        if value is None:
            continue
        try:
            return timedelta(milliseconds=int(value))
        except OverflowError:
            logger.debug("Ignoring out of range %s extra: %r", key, value)
    return None


def is_completed(position: timedelta, runtime: timedelta) -> bool:
    return position >= runtime * COMPLETION_RATIO


def resolve(ctx: PlaybackContext, result: PlayerResult, finished_at: datetime) -> Outcome:
    """Decide what happened during a hand-off.

    Raises:
        ImmediateFailure: the player spent under a second, whatever it says.
    """
    runtime = ctx.runtime
    elapsed = max(finished_at - ctx.start_time, timedelta(0))

    if elapsed < IMMEDIATE_FAILURE_THRESHOLD:
        logger.info("Playback took less than a second - assuming it failed")
        raise ImmediateFailure(elapsed)

    end_position = explicit_end_position(result)

    if end_position is None and runtime is not None:
        profile = match_profile(result.action)
        if profile is not None and profile.is_completed(result):
            end_position = runtime
            logger.info("Detected playback completion for %s.", profile.name)

    if end_position is None and runtime is not None and is_completed(elapsed, runtime):
        logger.info(
            "Player returned no position, but playback duration (%s) suggests completion (runtime: %s)",
            elapsed, runtime,
        )
        return Reported(position=runtime, advance=True)

    if runtime is None:
        if end_position is None:
            return Reported(position=elapsed, advance=False)
        return Reported(position=end_position, advance=True)

    if end_position is None:
        return NeedsConfirmation(short_duration=elapsed)

    return Reported(position=end_position, advance=is_completed(end_position, runtime))
