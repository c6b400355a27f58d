"""Shared test fixtures for the extplay test suite."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from extplay.events import EventBus
from extplay.models import MediaItem, MediaSource, MediaStream, PlaybackContext
from extplay.queue_controller import QueueController, VideoQueue
from extplay.refresh import DataRefreshService

ITEM_ID = "4f1c7a9e2b3d4e5f8a9b0c1d2e3f4a5b"
START = datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc)
HOUR = timedelta(seconds=3600)


def make_item(
    item_id: str = ITEM_ID,
    runtime: timedelta | None = HOUR,
    source_runtime: timedelta | None = None,
    kind: str = "Movie",
    streams: tuple = (),
) -> MediaItem:
    source = MediaSource(id=item_id, runtime=source_runtime, path="/media/movies/Heat (1995).mkv",
                         streams=streams)
    return MediaItem(id=item_id, kind=kind, name="Heat", runtime=runtime,
                     media_type="Video", sources=(source,))


def make_context(runtime: timedelta | None = HOUR, **kwargs) -> PlaybackContext:
    item = make_item(runtime=runtime, **kwargs)
    return PlaybackContext(item=item, source=item.sources[0], start_time=START)


@pytest.fixture
def ctx():
    """A context for a one-hour movie started at START."""
    return make_context()


@pytest.fixture
def subtitle_streams():
    return (
        MediaStream(index=0, type="Video", codec="h264"),
        MediaStream(index=3, type="Subtitle", codec="subrip", language="eng",
                    display_title="English - Default", path="/media/movies/Heat.en.srt",
                    is_external=True, is_default=True),
        MediaStream(index=2, type="Subtitle", codec="ass", language="fre",
                    title="French", path="/media/movies/Heat.fr.ass", is_external=True),
        MediaStream(index=1, type="Subtitle", codec="pgssub", language="ger", is_external=False),
    )


@pytest.fixture
def reporter():
    """Stands in for JellyfinClient.report_playback_stopped."""
    return MagicMock()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def refresh():
    return DataRefreshService()


@pytest.fixture
def controller(reporter, refresh, event_bus):
    """Controller over a two-item queue."""
    return QueueController(
        VideoQueue([ITEM_ID, "9a8b7c6d5e4f40312a1b2c3d4e5f6a7b"]),
        reporter, refresh=refresh, event_bus=event_bus,
    )
