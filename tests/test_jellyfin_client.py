"""Tests for the media server HTTP client."""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from extplay.jellyfin_client import JellyfinAPIError, JellyfinClient, ReportTransportFailure


def _response(status: int = 200, json_data=None) -> httpx.Response:
    request = httpx.Request("GET", "http://jf.local:8096/")
    return httpx.Response(status, json=json_data if json_data is not None else {}, request=request)


@pytest.fixture
def client():
    c = JellyfinClient("http://jf.local:8096", api_key="secret", user_id="user1")
    yield c
    c.close()


class TestUrls:
    def test_trailing_slash_handled(self):
        c = JellyfinClient("http://jf.local:8096/")
        assert c.video_stream_url("i", "s") == "http://jf.local:8096/Videos/i/stream?static=true&mediaSourceId=s"
        c.close()

    def test_subtitle_url(self, client):
        assert client.subtitle_url("i", "s", 4, "vtt") == (
            "http://jf.local:8096/Videos/i/s/Subtitles/4/Stream.vtt?api_key=secret"
        )

    def test_auth_header(self, client):
        assert 'Token="secret"' in client._client.headers["Authorization"]


class TestGetItem:
    def test_user_scoped_path(self, client):
        data = {"Id": "abc", "Name": "Heat", "Type": "Movie", "RunTimeTicks": 36_000_000_000}
        with patch.object(client._client, "request", return_value=_response(200, data)) as req:
            item = client.get_item("abc")
        assert req.call_args[0] == ("GET", "/Users/user1/Items/abc")
        assert item.name == "Heat"
        assert item.kind == "Movie"

    def test_not_found(self, client):
        with patch.object(client._client, "request", return_value=_response(404)):
            with pytest.raises(JellyfinAPIError) as exc:
                client.get_item("missing")
        assert exc.value.status_code == 404

    def test_connect_error(self, client):
        with patch.object(client._client, "request", side_effect=httpx.ConnectError("refused")):
            with pytest.raises(JellyfinAPIError, match="Cannot connect"):
                client.get_item("abc")


class TestReportPlaybackStopped:
    def test_payload(self, client):
        with patch.object(client._client, "request", return_value=_response(204)) as req:
            client.report_playback_stopped("item", "source", position_ticks=1234)
        method, path = req.call_args[0]
        assert (method, path) == ("POST", "/Sessions/Playing/Stopped")
        assert req.call_args.kwargs["json"] == {
            "ItemId": "item",
            "MediaSourceId": "source",
            "PositionTicks": 1234,
            "Failed": False,
        }

    def test_unknown_position_sent_as_null(self, client):
        with patch.object(client._client, "request", return_value=_response(204)) as req:
            client.report_playback_stopped("item", "source")
        assert req.call_args.kwargs["json"]["PositionTicks"] is None

    def test_timeout_raises_transport_failure(self, client):
        with patch.object(client._client, "request", side_effect=httpx.ReadTimeout("slow")):
            with pytest.raises(ReportTransportFailure):
                client.report_playback_stopped("item", "source", 0)

    def test_server_error_keeps_status(self, client):
        with patch.object(client._client, "request", return_value=_response(500)):
            with pytest.raises(ReportTransportFailure) as exc:
                client.report_playback_stopped("item", "source", 0)
        assert exc.value.status_code == 500

    def test_dropped_connection_raises_transport_failure(self, client):
        with patch.object(client._client, "request", side_effect=httpx.ReadError("connection reset")):
            with pytest.raises(ReportTransportFailure, match="connection reset") as exc:
                client.report_playback_stopped("item", "source", 0)
        assert exc.value.status_code is None

    def test_protocol_error_on_lookup_raises_api_error(self, client):
        with patch.object(client._client, "request",
                          side_effect=httpx.RemoteProtocolError("peer closed connection")):
            with pytest.raises(JellyfinAPIError, match="peer closed"):
                client.get_item("abc")
