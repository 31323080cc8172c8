"""Config schema and accessor."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from loguru import logger

from localsocket.core.constants import DEFAULT_WARN_THRESHOLD
from localsocket.core.errors import LocalSocketConfigurationError
from localsocket.events import parse_pattern_key

# Env keys that override config (loaded once per reload)
_ENV_OVERRIDE_KEYS = (
    "LOCALSOCKET_MAX_LISTENERS",
    "LOCALSOCKET_WARN_THRESHOLD",
    "LOCALSOCKET_PROPAGATE_ERRORS",
)


def _load_env_overrides() -> dict[str, str]:
    """Load env overrides once per reload."""
    return {k: os.environ.get(k, "") for k in _ENV_OVERRIDE_KEYS}


def _parse_bool_env(val: str) -> bool | None:
    """Parse env string to bool; None if not a recognized bool."""
    v = val.lower()
    if v in ("1", "true", "yes"):
        return True
    if v in ("0", "false", "no"):
        return False
    return None


def _parse_int_env(val: str) -> int | None:
    try:
        return int(val)
    except ValueError:
        return None


@dataclass
class TrainSpec:
    """A listener definition from the ``trains`` section."""

    pattern: list[str]
    ordered: bool = False
    once: bool = False
    label: str = ""

    @property
    def display(self) -> str:
        return self.label or " ".join(self.pattern)


class Config:
    """Typed accessor over the raw config mapping, with env overrides."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = data or {}
        self._env: dict[str, str] = _load_env_overrides()

    def reload(self, data: dict[str, Any], *, validate: bool = True) -> None:
        """Replace config data."""
        self._data = data or {}
        self._env = _load_env_overrides()
        if validate:
            self._validate()
        logger.debug("Config reloaded: {} trains", len(self.trains))

    def _validate(self) -> None:
        """Validate config structure; raise LocalSocketConfigurationError on failure."""
        value = self._data.get("max_listeners")
        if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value <= 0):
            raise LocalSocketConfigurationError(
                "max_listeners must be a positive integer",
                code="invalid_max_listeners",
                details={"value": value},
            )
        value = self._data.get("warn_threshold")
        if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
            raise LocalSocketConfigurationError(
                "warn_threshold must be a non-negative integer",
                code="invalid_warn_threshold",
                details={"value": value},
            )
        limits = self._data.get("event_max_listeners")
        if limits is not None:
            if not isinstance(limits, dict):
                raise LocalSocketConfigurationError(
                    "event_max_listeners must be a mapping",
                    code="invalid_event_max_listeners",
                    details={"type": type(limits).__name__},
                )
            for pattern, limit in limits.items():
                if not str(pattern).split():
                    raise LocalSocketConfigurationError(
                        "event_max_listeners keys must name at least one event",
                        code="empty_event_max_listener_pattern",
                        details={"pattern": pattern},
                    )
                if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
                    raise LocalSocketConfigurationError(
                        f"event_max_listeners[{pattern}] must be a positive integer",
                        code="invalid_event_max_listener",
                        details={"pattern": pattern, "value": limit},
                    )
        trains = self._data.get("trains")
        if trains is not None and not isinstance(trains, list):
            raise LocalSocketConfigurationError(
                "trains must be a list",
                code="invalid_trains",
                details={"type": type(trains).__name__},
            )
        for i, item in enumerate(trains or []):
            if not isinstance(item, dict):
                raise LocalSocketConfigurationError(
                    f"trains[{i}] must be a dict",
                    code="invalid_train_item",
                    details={"index": i},
                )
            pattern = item.get("pattern")
            if not pattern or not isinstance(pattern, (str, list)):
                raise LocalSocketConfigurationError(
                    f"trains[{i}] missing pattern",
                    code="missing_pattern",
                    details={"index": i},
                )

    @property
    def name(self) -> str | None:
        val = self._data.get("name")
        if val and isinstance(val, str) and val.strip():
            return val.strip()
        return None

    @property
    def max_listeners(self) -> int | None:
        parsed = _parse_int_env(self._env.get("LOCALSOCKET_MAX_LISTENERS", ""))
        if parsed is not None and parsed > 0:
            return parsed
        val = self._data.get("max_listeners")
        return int(val) if val else None

    @property
    def warn_threshold(self) -> int:
        parsed = _parse_int_env(self._env.get("LOCALSOCKET_WARN_THRESHOLD", ""))
        if parsed is not None and parsed >= 0:
            return parsed
        return int(self._data.get("warn_threshold", DEFAULT_WARN_THRESHOLD))

    @property
    def start_connected(self) -> bool:
        return bool(self._data.get("start_connected", True))

    @property
    def propagate_errors(self) -> bool:
        parsed = _parse_bool_env(self._env.get("LOCALSOCKET_PROPAGATE_ERRORS", ""))
        if parsed is not None:
            return parsed
        return bool(self._data.get("propagate_errors", False))

    @property
    def event_max_listeners(self) -> dict[str, int]:
        val = self._data.get("event_max_listeners")
        if isinstance(val, dict):
            return {parse_pattern_key(k): int(v) for k, v in val.items() if str(k).split()}
        return {}

    @property
    def trains(self) -> list[TrainSpec]:
        val = self._data.get("trains")
        if not isinstance(val, list):
            return []
        result = []
        for item in val:
            if not isinstance(item, dict) or not item.get("pattern"):
                continue
            pattern = item["pattern"]
            names = pattern.split() if isinstance(pattern, str) else [str(p) for p in pattern]
            result.append(
                TrainSpec(
                    pattern=names,
                    ordered=bool(item.get("ordered", False)),
                    once=bool(item.get("once", False)),
                    label=str(item.get("label", "")),
                )
            )
        return result
