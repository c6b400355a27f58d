"""HTTP client for the media server (Jellyfin REST API).

Covers the handful of endpoints a hand-off needs: item lookup, static
stream and subtitle URLs, and the playback-stopped report.
"""

import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from extplay.models import MediaItem

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
CLIENT_NAME = "extplay"


class JellyfinAPIError(Exception):
    """Error communicating with the media server."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ReportTransportFailure(JellyfinAPIError):
    """The playback-stopped report could not be delivered."""


class JellyfinClient:
    """HTTP client for the Jellyfin REST API.

    Usage:
        client = JellyfinClient("http://jellyfin.local:8096", api_key, user_id)
        item = client.get_item("4f1c...")
        client.report_playback_stopped(item.id, source_id, position_ticks=0)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        user_id: str = "",
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.user_id = user_id
        headers = {}
        if api_key:
            headers["Authorization"] = f'MediaBrowser Client="{CLIENT_NAME}", Token="{api_key}"'
        self._client = httpx.Client(base_url=self.base_url, headers=headers, timeout=timeout)

    def close(self):
        self._client.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = self._client.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise JellyfinAPIError(f"Cannot connect to {self.base_url}")
        except httpx.TimeoutException:
            raise JellyfinAPIError("Request timed out")
        except httpx.HTTPStatusError as e:
            raise JellyfinAPIError(str(e), e.response.status_code)
        except httpx.RequestError as e:
            raise JellyfinAPIError(f"Request to {self.base_url} failed: {e}")

    def _get(self, path: str, params: dict | None = None) -> Any:
        return self._request("GET", path, params=params).json()

    # --- Items ---

    def get_item(self, item_id: str) -> MediaItem:
        """Fetch an item with its media sources and streams."""
        if self.user_id:
            path = f"/Users/{self.user_id}/Items/{item_id}"
        else:
            path = f"/Items/{item_id}"
        return MediaItem.from_dict(self._get(path, {"fields": "MediaSources,MediaStreams"}))

    # --- URLs ---

    def _url(self, path: str, params: dict | None = None) -> str:
        query = dict(params or {})
        if self.api_key:
            query["api_key"] = self.api_key
        suffix = f"?{urlencode(query)}" if query else ""
        return f"{self.base_url}{path}{suffix}"

    def video_stream_url(self, item_id: str, media_source_id: str, static: bool = True) -> str:
        return self._url(
            f"/Videos/{item_id}/stream",
            {"static": "true" if static else "false", "mediaSourceId": media_source_id},
        )

    def subtitle_url(self, item_id: str, media_source_id: str, index: int, fmt: str) -> str:
        return self._url(f"/Videos/{item_id}/{media_source_id}/Subtitles/{index}/Stream.{fmt}")

    # --- Play state ---

    def report_playback_stopped(
        self,
        item_id: str,
        media_source_id: str,
        position_ticks: int | None = None,
        failed: bool = False,
    ):
        """Tell the server playback of an item stopped.

        A None position is sent as-is: the server then keeps its own idea
        of where playback ended.

        Raises:
            ReportTransportFailure: the report could not be delivered.
        """
        payload = {
            "ItemId": item_id,
            "MediaSourceId": media_source_id,
            "PositionTicks": position_ticks,
            "Failed": failed,
        }
        try:
            self._request("POST", "/Sessions/Playing/Stopped", json=payload)
        except JellyfinAPIError as e:
            raise ReportTransportFailure(str(e), e.status_code) from e
        logger.debug("Reported playback stop for %s at %s ticks", item_id, position_ticks)
