"""Launch the external player and collect its result envelope.

The player (or a small wrapper script around it) receives the request as
JSON in ``EXTPLAY_REQUEST`` and may write ``{"action": ..., "extras": {...}}``
to the path given in ``EXTPLAY_RESULT`` (another variable name can be set
with ``[player] result_file_env``). Its exit code becomes the result code.
Waiting for the player has no timeout: the user may watch for hours.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import tempfile

from extplay.handoff import PlaybackRequest
from extplay.models import PlayerResult
from extplay.outcome import PlaybackAborted

logger = logging.getLogger(__name__)

REQUEST_ENV = "EXTPLAY_REQUEST"
RESULT_ENV = "EXTPLAY_RESULT"


class LaunchFailure(PlaybackAborted):
    """No external player is available to handle the hand-off."""


def read_result_file(path: str, result_code: int) -> PlayerResult:
    """Build a PlayerResult from a result file, tolerating anything in it."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except OSError:
        return PlayerResult(result_code=result_code)
    if not raw.strip():
        return PlayerResult(result_code=result_code)

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring unreadable player result file %s: %s", path, e)
        return PlayerResult(result_code=result_code)
    if not isinstance(data, dict):
        return PlayerResult(result_code=result_code)

    action = data.get("action")
    extras = data.get("extras")
    return PlayerResult(
        result_code=result_code,
        action=action if isinstance(action, str) else None,
        extras=extras if isinstance(extras, dict) else {},
    )


class SubprocessLauncher:
    """Runs a player command with the request URI appended.

    Usage:
        launcher = SubprocessLauncher(["mpv", "--fullscreen"])
        result = launcher.launch(request)
    """

    def __init__(self, command: list[str], result_env: str = RESULT_ENV):
        self.command = list(command)
        self.result_env = result_env

    def launch(self, request: PlaybackRequest) -> PlayerResult:
        """Run the player until it exits.

        Raises:
            LaunchFailure: the player executable could not be started.
        """
        cmd = self.command + [request.uri]
        fd, result_path = tempfile.mkstemp(prefix="extplay-", suffix=".json")
        os.close(fd)

        env = os.environ.copy()
        env[REQUEST_ENV] = json.dumps({
            "uri": request.uri,
            "title": request.title,
            "mime_type": request.mime_type,
            "extras": request.extras,
        })
        env[self.result_env] = result_path

        try:
            logger.info("Launching player: %s", cmd[0])
            try:
                proc = subprocess.run(cmd, env=env)
            except (FileNotFoundError, PermissionError) as e:
                raise LaunchFailure(f"No player available: {e}") from e
            logger.info("Playback finished with result code %d", proc.returncode)
            return read_result_file(result_path, proc.returncode)
        finally:
            try:
                os.remove(result_path)
            except OSError as e:
                logger.debug("Could not remove result file %s: %s", result_path, e)
