"""CLI entry point for extplay.

extplay: plays queued media server items in an external player, one after
the other, and reports each stop back to the server.
"""

import argparse
import logging
import os
import sys
from datetime import timedelta

logger = logging.getLogger("extplay")


def _prompt_yn(question: str, default: bool = False) -> bool:
    """Yes/no prompt with default."""
    suffix = "[Y/n]" if default else "[y/N]"
    try:
        raw = input(f"  {question} {suffix}: ").strip().lower()
    except EOFError:
        return default
    if not raw:
        return default
    return raw in ("y", "yes")


def confirm_watched(ctx, short_duration: timedelta) -> bool:
    """Ask on the console whether a short playback was watched to the end."""
    minutes = int(short_duration.total_seconds() // 60)
    print(f"\nMark watched? {ctx.item.name or ctx.item.id} was only open for {minutes} min.")
    return _prompt_yn("Did you finish watching it?")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="extplay - play media server items in an external player"
    )
    parser.add_argument(
        "item_ids", nargs="+", metavar="ITEM_ID", help="Item ids to queue, in order"
    )
    parser.add_argument(
        "--config", default=None, help="Path to extplay.toml config file"
    )
    parser.add_argument(
        "--server", default=None, help="Media server URL (overrides config)"
    )
    parser.add_argument(
        "--player", default=None, help="Player command (overrides config), e.g. 'vlc --fullscreen'"
    )
    parser.add_argument(
        "--start-ms", type=int, default=0, help="Start position of the first item in milliseconds"
    )
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the extplay command."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    from extplay.config import load_config
    from extplay.events import EventBus, EventLogger
    from extplay.jellyfin_client import JellyfinAPIError, JellyfinClient
    from extplay.launcher import LaunchFailure, SubprocessLauncher
    from extplay.outcome import PlaybackAborted
    from extplay.queue_controller import QueueController, VideoQueue
    from extplay.refresh import DataRefreshService
    from extplay.session import PlaybackSession

    config = load_config(args.config)

    # CLI args override config file
    if args.server:
        config.server.url = args.server
    if args.player:
        config.player.command = args.player.split()
    api_key = config.server.api_key or os.environ.get("EXTPLAY_API_KEY", "")

    client = JellyfinClient(
        config.server.url, api_key=api_key,
        user_id=config.server.user_id, timeout=config.server.timeout,
    )
    event_bus = EventBus()
    controller = QueueController(
        VideoQueue(args.item_ids), client,
        refresh=DataRefreshService(), event_bus=event_bus,
    )
    launcher = SubprocessLauncher(config.player.command, config.player.result_file_env)
    session = PlaybackSession(client, launcher, controller, event_bus=event_bus)
    event_log = EventLogger(event_bus)
    event_log.start()

    try:
        state = session.run(confirm_watched, position=timedelta(milliseconds=max(args.start_ms, 0)))
        logger.info("Session ended: %s", state.value)
        return 0
    except LaunchFailure:
        print("No external player found. Install one or set [player] command.", file=sys.stderr)
        return 1
    except (PlaybackAborted, JellyfinAPIError) as e:
        logger.debug("Abort reason: %s", e)
        print("Could not play this item.", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        session.cancel()
        return 130
    finally:
        controller.wait_for_reports(timeout=config.server.timeout + 1.0)
        event_log.stop()
        client.close()


if __name__ == "__main__":
    sys.exit(main())
