"""Build the launch request handed to an external player.

The request carries every vendor's parameters at once: players ignore keys
they do not know, so one request works whichever player picks it up.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from extplay.models import MediaItem, MediaSource, MediaStream

if TYPE_CHECKING:
    from extplay.jellyfin_client import JellyfinClient

logger = logging.getLogger(__name__)

# MX Player
API_MX_TITLE = "title"
API_MX_SEEK_POSITION = "position"
API_MX_FILENAME = "filename"
API_MX_SECURE_URI = "secure_uri"
API_MX_RETURN_RESULT = "return_result"
API_MX_SUBS = "subs"
API_MX_SUBS_NAME = "subs.name"
API_MX_SUBS_FILENAME = "subs.filename"

# VLC
API_VLC_SUBTITLES = "subtitles_location"

# Vimu
API_VIMU_TITLE = "forcename"
API_VIMU_SEEK_POSITION = "startfrom"
API_VIMU_RESUME = "forceresume"

MIME_TYPES = {
    "Video": "video/*",
    "Audio": "audio/*",
}


@dataclass(frozen=True)
class PlaybackRequest:
    """A launchable hand-off: target URI, mime hint and vendor parameters."""

    uri: str
    title: str
    mime_type: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)


def get_display_name(item: MediaItem) -> str:
    """Human readable title, with series and episode numbers for episodes."""
    if item.kind == "Episode" and item.series_name:
        if item.season_number is not None and item.episode_number is not None:
            return (
                f"{item.series_name} - "
                f"S{item.season_number:02d}E{item.episode_number:02d} - {item.name}"
            )
        return f"{item.series_name} - {item.name}"
    return item.name


def external_subtitles(source: MediaSource) -> list[MediaStream]:
    """External subtitle streams, non-default first, then by index."""
    streams = [s for s in source.streams if s.is_external_subtitle]
    return sorted(streams, key=lambda s: (s.is_default, s.index))


def subtitle_format(stream: MediaStream) -> str:
    """Infer the subtitle format from the stream path, as the server does."""
    if stream.path is None:
        return "srt"
    if "." not in stream.path:
        return stream.codec or ""
    return stream.path.rsplit(".", 1)[1]


class HandoffBuilder:
    """Turns an item, its source and a start position into a PlaybackRequest."""

    def __init__(self, client: "JellyfinClient"):
        self.client = client

    def build(
        self,
        item: MediaItem,
        source: MediaSource,
        position: timedelta = timedelta(0),
    ) -> PlaybackRequest:
        url = self.client.video_stream_url(item.id, source.id, static=True)
        title = get_display_name(item)
        filename = os.path.basename(source.path) if source.path else None

        subtitles = external_subtitles(source)
        subtitle_urls = [
            self.client.subtitle_url(item.id, source.id, s.index, subtitle_format(s))
            for s in subtitles
        ]
        subtitle_names = [s.display_title or s.title or "" for s in subtitles]
        subtitle_languages = [s.language or "" for s in subtitles]

        logger.info(
            "Starting item %s from %s with %d external subtitles: %s",
            item.id, position, len(subtitle_urls), ", ".join([url] + subtitle_urls),
        )

        position_ms = position // timedelta(milliseconds=1)
        extras: dict[str, Any] = {
            API_MX_SEEK_POSITION: position_ms,
            API_MX_RETURN_RESULT: True,
            API_MX_TITLE: title,
            API_MX_FILENAME: filename,
            API_MX_SECURE_URI: True,
            API_MX_SUBS: subtitle_urls,
            API_MX_SUBS_NAME: subtitle_names,
            API_MX_SUBS_FILENAME: subtitle_languages,
            API_VIMU_SEEK_POSITION: position_ms,
            API_VIMU_RESUME: False,
            API_VIMU_TITLE: title,
        }
        if subtitle_urls:
            extras[API_VLC_SUBTITLES] = subtitle_urls[0]

        return PlaybackRequest(
            uri=url,
            title=title,
            mime_type=MIME_TYPES.get(item.media_type or ""),
            extras=extras,
        )
