"""Configuration loader for extplay."""

from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python 3.10 fallback


@dataclass
class ServerConfig:
    """Connection to the media server."""

    url: str = "http://localhost:8096"
    api_key: str = ""
    user_id: str = ""
    timeout: float = 10.0


@dataclass
class PlayerConfig:
    """External player invocation."""

    command: list[str] = field(default_factory=lambda: ["mpv", "--fullscreen"])
    result_file_env: str = "EXTPLAY_RESULT"


@dataclass
class Config:
    """Top-level extplay configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)


def load_config(path: str | None = None) -> Config:
    """Load configuration from extplay.toml.

    Search order:
    1. Explicit path argument
    2. ./extplay.toml
    3. ~/.config/extplay/extplay.toml
    4. Defaults
    """
    search_paths = []
    if path:
        search_paths.append(Path(path))
    search_paths.extend([
        Path("extplay.toml"),
        Path.home() / ".config" / "extplay" / "extplay.toml",
    ])

    for p in search_paths:
        if p.exists():
            with open(p, "rb") as f:
                data = tomllib.load(f)
            return _parse_config(data)

    return Config()


def _parse_config(data: dict) -> Config:
    """Parse a TOML dict into Config."""
    config = Config()

    if "server" in data:
        s = data["server"]
        config.server = ServerConfig(
            url=s.get("url", config.server.url),
            api_key=s.get("api_key", config.server.api_key),
            user_id=s.get("user_id", config.server.user_id),
            timeout=float(s.get("timeout", config.server.timeout)),
        )

    if "player" in data:
        p = data["player"]
        command = p.get("command", config.player.command)
        # Accept a plain string for single-word commands
        if isinstance(command, str):
            command = command.split()
        config.player = PlayerConfig(
            command=list(command),
            result_file_env=p.get("result_file_env", config.player.result_file_env),
        )

    return config
