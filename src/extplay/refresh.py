"""Last-playback markers used to decide when cached rows need a refresh."""

import threading
import time


class DataRefreshService:
    """Remembers when something was last played, per item kind.

    Home-screen rows (resume, next up, latest) compare these timestamps with
    their own load time to know they are stale. Nothing is persisted.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.last_playback: float | None = None
        self.last_movie_playback: float | None = None
        self.last_tv_playback: float | None = None

    def mark_played(self, kind: str, now: float | None = None):
        now = time.time() if now is None else now
        with self._lock:
            self.last_playback = now
            if kind == "Movie":
                self.last_movie_playback = now
            elif kind == "Episode":
                self.last_tv_playback = now
