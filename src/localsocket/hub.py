"""Hub: public facade over the dispatcher, with connect/disconnect gating."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from loguru import logger

from localsocket import events
from localsocket.core.constants import DEFAULT_HUB_NAME, DEFAULT_WARN_THRESHOLD, Mode, Ordering
from localsocket.core.errors import ConstructionMisuse, InvalidArgument
from localsocket.engine import Dispatcher
from localsocket.engine.quota import validate_limit
from localsocket.events import Listener, QuotaEntry, parse_pattern_key

if TYPE_CHECKING:
    from localsocket.config import Config

__all__ = ["Hub"]

_INTERNAL_ATTRS = ("_dispatcher", "_name", "_connected", "_connection_id", "_connections")


class Hub:
    """In-process publish/subscribe hub.

    Listeners register interest in a single event name or in a train of names
    and receive synchronous callbacks when :meth:`announce` completes a match.
    Trains registered with :meth:`register` / :meth:`register_once` match in
    any order; :meth:`register_ordered` / :meth:`register_once_ordered` require
    the declared order. A disconnected hub drops announcements and refuses
    registrations.
    """

    def __init__(
        self,
        name: str | None = None,
        *,
        max_listeners: int | None = None,
        warn_threshold: int = DEFAULT_WARN_THRESHOLD,
        event_max_listeners: dict[str, int] | None = None,
        connected: bool = True,
        propagate_errors: bool = False,
    ) -> None:
        if name is not None and not isinstance(name, str):
            raise ConstructionMisuse(
                "Failed to construct Hub: name must be a string",
                code="invalid_name",
                details={"type": type(name).__name__},
            )
        if isinstance(warn_threshold, bool) or not isinstance(warn_threshold, int) or warn_threshold < 0:
            raise ConstructionMisuse(
                "Failed to construct Hub: warn_threshold must be a non-negative integer",
                code="invalid_warn_threshold",
                details={"value": warn_threshold},
            )
        try:
            ceiling = validate_limit(max_listeners) if max_listeners is not None else None
            presets = {
                parse_pattern_key(pattern): validate_limit(limit)
                for pattern, limit in (event_max_listeners or {}).items()
            }
        except InvalidArgument as exc:
            raise ConstructionMisuse(
                f"Failed to construct Hub: {exc}",
                code="invalid_limits",
                details=exc.details,
                original_error=exc,
            ) from exc

        self._name = name
        self._connected = bool(connected)
        self._connection_id = uuid.uuid4().hex
        self._connections: list[str] = []
        self._dispatcher = Dispatcher(
            max_listeners=ceiling,
            warn_threshold=warn_threshold,
            event_max_listeners=presets,
            propagate_errors=propagate_errors,
        )

    def __getattr__(self, item: str) -> Any:
        # Only reached when normal lookup fails, i.e. __init__ never ran
        if item in _INTERNAL_ATTRS:
            raise ConstructionMisuse(
                "Hub used before construction: instantiate it with Hub(...)",
                code="not_constructed",
            )
        raise AttributeError(item)

    @classmethod
    def from_config(cls, config: Config) -> Hub:
        """Build a hub from a :class:`~localsocket.config.Config`."""
        return cls(
            config.name,
            max_listeners=config.max_listeners,
            warn_threshold=config.warn_threshold,
            event_max_listeners=config.event_max_listeners,
            connected=config.start_connected,
            propagate_errors=config.propagate_errors,
        )

    def __repr__(self) -> str:
        state = "connected" if self._connected else "disconnected"
        return f"<Hub {self.display_name!r} {state} listeners={len(self._dispatcher)}>"

    def __len__(self) -> int:
        return len(self._dispatcher)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._dispatcher.is_live(key)

    # -- readable state -------------------------------------------------

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def display_name(self) -> str:
        return self._name or DEFAULT_HUB_NAME

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def connections(self) -> list[str]:
        return self._connections

    @property
    def max_listeners(self) -> int | None:
        return self._dispatcher.quotas.max_listeners

    @property
    def listeners(self) -> tuple[Listener, ...]:
        """Live listeners in registration order."""
        return self._dispatcher.listeners

    @property
    def quotas(self) -> dict[str, QuotaEntry]:
        """Copy of the per-pattern quota table."""
        return self._dispatcher.quotas.snapshot()

    def get_listener(self, key: str) -> Listener | None:
        """Listener issued under ``key`` (live or removed), if any."""
        return self._dispatcher.get(key)

    # -- ceilings --------------------------------------------------------

    def set_max_listeners(self, limit: int) -> None:
        """Set the global listener ceiling."""
        self._dispatcher.quotas.max_listeners = validate_limit(limit)

    limit_connections = set_max_listeners

    def set_event_max_listener(self, event_name: str, limit: int) -> None:
        """Set the ceiling for one registered pattern (names joined by spaces)."""
        if not isinstance(event_name, str):
            raise InvalidArgument(
                "Expects event name to be a string and value to be a number",
                code="invalid_event_name_type",
                details={"type": type(event_name).__name__},
            )
        joined = parse_pattern_key(event_name)
        self._dispatcher.quotas.set_limit(joined, limit)

    # -- registration ----------------------------------------------------

    def _register(self, pattern: str | Iterable[str], callback: Any, mode: Mode, ordering: Ordering) -> str | None:
        if not self._connected:
            logger.warning("{} instance is disconnected, not registering {}", self.display_name, pattern)
            return None
        return self._dispatcher.register(pattern, callback, mode=mode, ordering=ordering)

    def register(self, pattern: str | Iterable[str], callback: Any) -> str | None:
        """Fire every time the pattern's events are all observed, in any order."""
        return self._register(pattern, callback, "persistent", "loose")

    def register_ordered(self, pattern: str | Iterable[str], callback: Any) -> str | None:
        """Fire every time the pattern's events are observed in declared order."""
        return self._register(pattern, callback, "persistent", "strict")

    def register_once(self, pattern: str | Iterable[str], callback: Any) -> str | None:
        """Fire at most once, when the pattern's events are all observed in any order."""
        return self._register(pattern, callback, "once", "loose")

    def register_once_ordered(self, pattern: str | Iterable[str], callback: Any) -> str | None:
        """Fire at most once, when the pattern's events are observed in declared order."""
        return self._register(pattern, callback, "once", "strict")

    on = register
    on_order_of = register_ordered
    once = register_once
    once_order_of = register_once_ordered

    # -- dispatch --------------------------------------------------------

    def announce(self, event: str, payload: Any = None) -> None:
        """Publish ``event`` with ``payload`` to every matching listener."""
        if not self._connected:
            logger.warning("Discarding {}, {} instance is disconnected", event, self.display_name)
            return
        self._dispatcher.dispatch(event, payload)

    emit = announce

    # -- listener management ---------------------------------------------

    def remove(self, key: str) -> None:
        """Stop delivering to the listener behind ``key``; :meth:`reconnect` resumes it."""
        self._dispatcher.remove(key)

    disconnect_listener = remove
    off = remove

    def reconnect(self, key: str) -> None:
        """Resume a removed listener under its original key, keeping its progress."""
        self._dispatcher.reconnect(key)

    re_on = reconnect

    def drop_all(self) -> None:
        """Forget every listener and quota entry. The global ceiling is kept."""
        self._dispatcher.drop()

    drop = drop_all

    # -- lifecycle -------------------------------------------------------

    def connect(self) -> None:
        """Mark the hub connected and announce ``connect``."""
        self._connected = True
        name, evt = events.connect(self._connection_id, self._connections)
        self._dispatcher.dispatch(name, evt)

    def disconnect(self) -> None:
        """Mark the hub disconnected and announce ``disconnect``. No-op when already disconnected."""
        if not self._connected:
            return
        self._connected = False
        name, evt = events.disconnect(self._connection_id, self._connections)
        # Delivered past the gate so disconnect subscribers hear it
        self._dispatcher.dispatch(name, evt)
