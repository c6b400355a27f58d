"""Tests for the data model helpers."""

from datetime import timedelta

from extplay.models import (
    MediaItem,
    PlayerResult,
    same_id,
    ticks_to_timedelta,
    timedelta_to_ticks,
)
from extplay.vendors import is_vimu_error, match_profile, RESULT_POSITION_KEYS

ITEM_JSON = {
    "Id": "4f1c7a9e2b3d4e5f8a9b0c1d2e3f4a5b",
    "Name": "Pilot",
    "Type": "Episode",
    "MediaType": "Video",
    "SeriesName": "Twin Peaks",
    "ParentIndexNumber": 1,
    "IndexNumber": 1,
    "RunTimeTicks": 56_400_000_000,
    "MediaSources": [
        {
            "Id": "0a0a0a0a0a0a0a0a0a0a0a0a0a0a0a0a",
            "Path": "/media/tv/other.mkv",
        },
        {
            "Id": "4f1c7a9e-2b3d-4e5f-8a9b-0c1d2e3f4a5b",
            "Path": "/media/tv/Twin Peaks/S01E01.mkv",
            "RunTimeTicks": 56_000_000_000,
            "MediaStreams": [
                {"Index": 2, "Type": "Subtitle", "IsExternal": True, "Codec": "srt"},
            ],
        },
    ],
}


class TestTicks:
    def test_ticks_to_timedelta(self):
        assert ticks_to_timedelta(36_000_000_000) == timedelta(hours=1)

    def test_timedelta_to_ticks(self):
        assert timedelta_to_ticks(timedelta(seconds=1200)) == 12_000_000_000

    def test_none_passes_through(self):
        assert ticks_to_timedelta(None) is None
        assert timedelta_to_ticks(None) is None


class TestSameId:
    def test_dashed_and_undashed(self):
        assert same_id("4f1c7a9e2b3d4e5f8a9b0c1d2e3f4a5b", "4f1c7a9e-2b3d-4e5f-8a9b-0c1d2e3f4a5b")

    def test_non_uuid_compares_as_string(self):
        assert same_id("abc", "abc")
        assert not same_id("abc", "abd")

    def test_none_never_matches(self):
        assert not same_id(None, None)


class TestMediaItem:
    def test_from_dict(self):
        item = MediaItem.from_dict(ITEM_JSON)
        assert item.kind == "Episode"
        assert item.runtime == timedelta(seconds=5640)
        assert len(item.sources) == 2
        assert item.sources[1].streams[0].is_external_subtitle

    def test_find_source_matches_item_id(self):
        source = MediaItem.from_dict(ITEM_JSON).find_source()
        assert source.path == "/media/tv/Twin Peaks/S01E01.mkv"
        assert source.runtime == timedelta(seconds=5600)

    def test_find_source_missing(self):
        item = MediaItem.from_dict({"Id": "abc", "MediaSources": [{"Id": "def"}]})
        assert item.find_source() is None

    def test_from_dict_without_sources(self):
        item = MediaItem.from_dict({"Id": "abc", "MediaSources": None})
        assert item.sources == ()
        assert item.runtime is None


class TestPlayerResult:
    def test_get_number(self):
        result = PlayerResult(0, None, {"a": 5, "b": 2.5, "c": "7", "d": None, "e": False})
        assert result.get_number("a") == 5
        assert result.get_number("b") == 2.5
        assert result.get_number("c") is None
        assert result.get_number("d") is None
        assert result.get_number("e") is None
        assert result.get_number("missing") is None

    def test_get_string(self):
        result = PlayerResult(0, None, {"end_by": "user", "n": 3})
        assert result.get_string("end_by") == "user"
        assert result.get_string("n") is None


class TestVendors:
    def test_position_key_priority(self):
        assert RESULT_POSITION_KEYS == ("position", "extra_position")

    def test_match_profile(self):
        assert match_profile("org.videolan.vlc.player.result").name == "VLC"
        assert match_profile("something.else") is None
        assert match_profile(None) is None

    def test_vimu_error(self):
        assert is_vimu_error(PlayerResult(4, "net.gtvbox.videoplayer.result"))
        assert not is_vimu_error(PlayerResult(4, "org.videolan.vlc.player.result"))
        assert not is_vimu_error(PlayerResult(1, "net.gtvbox.videoplayer.result"))
