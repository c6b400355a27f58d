"""Data model shared by the hand-off, resolver and queue components.

Items and sources mirror the media server's JSON (PascalCase keys) and are
immutable for a session. Durations are ``timedelta`` and instants are
``datetime``; the server speaks in ticks (100 ns units).
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

TICKS_PER_MICROSECOND = 10


def ticks_to_timedelta(ticks: int | None) -> timedelta | None:
    """Convert server ticks to a timedelta, passing None through."""
    if ticks is None:
        return None
    return timedelta(microseconds=ticks // TICKS_PER_MICROSECOND)


def timedelta_to_ticks(value: timedelta | None) -> int | None:
    """Convert a timedelta to whole server ticks, passing None through."""
    if value is None:
        return None
    return (value // timedelta(microseconds=1)) * TICKS_PER_MICROSECOND


def same_id(a: str | None, b: str | None) -> bool:
    """Compare two server ids, tolerating dashed and undashed UUID forms."""
    if a is None or b is None:
        return False
    try:
        return uuid.UUID(a) == uuid.UUID(b)
    except ValueError:
        return a == b


@dataclass(frozen=True)
class MediaStream:
    """One stream (video, audio or subtitle track) of a media source."""

    index: int
    type: str = ""
    codec: str | None = None
    language: str | None = None
    title: str | None = None
    display_title: str | None = None
    path: str | None = None
    is_external: bool = False
    is_default: bool = False

    @property
    def is_external_subtitle(self) -> bool:
        return self.type == "Subtitle" and self.is_external

    @classmethod
    def from_dict(cls, data: dict) -> "MediaStream":
        return cls(
            index=data.get("Index", 0),
            type=data.get("Type", ""),
            codec=data.get("Codec"),
            language=data.get("Language"),
            title=data.get("Title"),
            display_title=data.get("DisplayTitle"),
            path=data.get("Path"),
            is_external=bool(data.get("IsExternal", False)),
            is_default=bool(data.get("IsDefault", False)),
        )


@dataclass(frozen=True)
class MediaSource:
    """A playable source of an item, optionally overriding its runtime."""

    id: str
    runtime: timedelta | None = None
    path: str | None = None
    streams: tuple[MediaStream, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "MediaSource":
        return cls(
            id=data.get("Id", ""),
            runtime=ticks_to_timedelta(data.get("RunTimeTicks")),
            path=data.get("Path"),
            streams=tuple(MediaStream.from_dict(s) for s in data.get("MediaStreams") or []),
        )


@dataclass(frozen=True)
class MediaItem:
    """A queued media item as described by the server."""

    id: str
    kind: str = "Other"  # Movie, Episode, ...
    name: str = ""
    runtime: timedelta | None = None
    media_type: str | None = None  # Video, Audio
    series_name: str | None = None
    season_number: int | None = None
    episode_number: int | None = None
    sources: tuple[MediaSource, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "MediaItem":
        return cls(
            id=data.get("Id", ""),
            kind=data.get("Type", "Other"),
            name=data.get("Name", ""),
            runtime=ticks_to_timedelta(data.get("RunTimeTicks")),
            media_type=data.get("MediaType"),
            series_name=data.get("SeriesName"),
            season_number=data.get("ParentIndexNumber"),
            episode_number=data.get("IndexNumber"),
            sources=tuple(MediaSource.from_dict(s) for s in data.get("MediaSources") or []),
        )

    def find_source(self) -> MediaSource | None:
        """Return the source sharing the item's id, if any."""
        for source in self.sources:
            if same_id(source.id, self.id):
                return source
        return None


@dataclass(frozen=True)
class PlaybackContext:
    """Everything known about one hand-off while its result is awaited."""

    item: MediaItem
    source: MediaSource
    start_time: datetime
    requested_start_position: timedelta = timedelta(0)

    @property
    def runtime(self) -> timedelta | None:
        if self.source.runtime is not None:
            return self.source.runtime
        return self.item.runtime


@dataclass(frozen=True)
class PlayerResult:
    """Opaque result envelope returned by the external player.

    Nothing in here is trusted: the accessors narrow types and return None
    on absent or mistyped values instead of raising.
    """

    result_code: int
    action: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    def get_number(self, key: str) -> int | float | None:
        value = self.extras.get(key)
        # bool is an int subclass but never a position
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value

    def get_string(self, key: str) -> str | None:
        value = self.extras.get(key)
        return value if isinstance(value, str) else None
