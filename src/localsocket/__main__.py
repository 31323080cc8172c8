"""Replay entrypoint. Loads config, registers configured trains, replays an event file."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from localsocket import __version__
from localsocket.config import Config, TrainSpec, load_config_with_env
from localsocket.core.errors import LocalSocketConfigurationError, LocalSocketError
from localsocket.hub import Hub


def _intercept_logging(level: str) -> None:
    """Route stdlib logging records to loguru."""

    class InterceptHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            try:
                log_level = logger.level(record.levelname).name
            except ValueError:
                log_level = str(record.levelno)
            msg = record.getMessage()
            logger.patch(
                lambda r: r.update(
                    name=record.name,
                    function=record.funcName,
                    line=record.lineno,
                ),
            ).opt(exception=record.exc_info).log(log_level, msg)

    logging.basicConfig(handlers=[InterceptHandler()], level=level, force=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure loguru. Replace default logging.
    Level: verbose=True or LOG_LEVEL=DEBUG enables DEBUG; otherwise INFO."""
    level = "INFO"
    if verbose:
        level = "DEBUG"
    else:
        env_level = (os.environ.get("LOG_LEVEL") or "").upper()
        if env_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
            level = env_level

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=("<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"),
    )
    _intercept_logging(level)


def load_events(path: str | Path) -> list[tuple[str, Any]]:
    """Read ``[{event: name, payload: ...}, ...]`` (or ``{events: [...]}``) from YAML."""
    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f)
    if isinstance(data, dict):
        data = data.get("events")
    if not isinstance(data, list):
        raise LocalSocketConfigurationError(
            f"Event file {path} must contain a list of events",
            code="invalid_events_file",
            details={"path": str(path)},
        )
    result = []
    for i, item in enumerate(data):
        if isinstance(item, str):
            result.append((item, None))
        elif isinstance(item, dict) and item.get("event"):
            result.append((str(item["event"]), item.get("payload")))
        else:
            raise LocalSocketConfigurationError(
                f"events[{i}] missing event name",
                code="missing_event_name",
                details={"index": i},
            )
    return result


def register_trains(hub: Hub, trains: list[TrainSpec]) -> dict[str, TrainSpec]:
    """Register each train with a callback that logs its match. Returns key -> train."""
    registered: dict[str, TrainSpec] = {}
    for train in trains:

        def on_match(payload: Any, train: TrainSpec = train) -> None:
            logger.info("Matched {}: {}", train.display, payload)

        if train.once:
            register = hub.register_once_ordered if train.ordered else hub.register_once
        else:
            register = hub.register_ordered if train.ordered else hub.register
        key = register(train.pattern, on_match)
        if key is not None:
            registered[key] = train
    return registered


def replay(hub: Hub, announcements: list[tuple[str, Any]]) -> None:
    """Announce each ``(event, payload)`` in order."""
    for name, payload in announcements:
        logger.debug("Announcing {}", name)
        hub.announce(name, payload)


def reload_config(config_path: Path) -> Config:
    """Load config from path into a validated Config."""
    config = Config()
    config.reload(load_config_with_env(config_path))
    return config


def main(argv: list[str] | None = None) -> int:
    """Main entrypoint."""
    parser = argparse.ArgumentParser(description="LocalSocket: replay announcements through configured trains")
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("localsocket.yaml"),
        help="Path to config file (default: localsocket.yaml)",
    )
    parser.add_argument(
        "--events",
        "-e",
        type=Path,
        required=True,
        help="YAML file listing events to announce",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        config = reload_config(args.config)
        hub = Hub.from_config(config)
        registered = register_trains(hub, config.trains)
        announcements = load_events(args.events)
    except (LocalSocketError, yaml.YAMLError, OSError) as exc:
        logger.error("Failed to set up replay: {}", exc)
        return 1

    logger.info("{} ready with {} trains, replaying {} events", hub.display_name, len(registered), len(announcements))
    try:
        replay(hub, announcements)
    except Exception as exc:
        logger.exception("Replay aborted by listener error: {}", exc)
        return 1

    for key, train in registered.items():
        listener = hub.get_listener(key)
        count = listener.invocation_count if listener else 0
        logger.info("{}: {} invocation(s)", train.display, count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
