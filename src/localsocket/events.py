"""Listener records, quota entries and lifecycle event types."""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from localsocket.core.constants import CONNECT_EVENT, DISCONNECT_EVENT, Mode, Ordering
from localsocket.core.errors import InvalidArgument

Callback = Callable[[Any], Any]


def _noop(*_args: Any, **_kwargs: Any) -> None:
    return None


def coerce_callback(cb: Any) -> Callback:
    """Return ``cb`` if callable, otherwise a no-op."""
    return cb if callable(cb) else _noop


def normalize_pattern(pattern: str | Iterable[str]) -> tuple[str, ...]:
    """Normalize a scalar or list of event names to a tuple of trimmed names."""
    names = [pattern] if isinstance(pattern, str) else list(pattern)
    result = tuple(str(name).strip() for name in names)
    if not result or any(not name for name in result):
        raise InvalidArgument(
            "Pattern must contain at least one non-empty event name",
            code="empty_pattern",
            details={"pattern": names},
        )
    return result


def pattern_key(pattern: tuple[str, ...]) -> str:
    """Joined pattern string used as the quota table key."""
    return " ".join(pattern)


def parse_pattern_key(text: str) -> str:
    """Quota key for a space-separated pattern string, whitespace collapsed."""
    return pattern_key(normalize_pattern(str(text).split()))


@dataclass
class Progress:
    """In-progress train match: names matched so far and their payloads."""

    matched: list[str] = field(default_factory=list)
    payloads: dict[str, Any] = field(default_factory=dict)

    def reset(self) -> None:
        self.matched.clear()
        self.payloads.clear()

    def restart(self, name: str, payload: Any) -> None:
        self.matched[:] = [name]
        self.payloads.clear()
        self.payloads[name] = payload


@dataclass(eq=False)
class Listener:
    """Fields shared by both listener variants."""

    key: str
    callback: Callback
    mode: Mode
    invocation_count: int = 0
    fired: bool = False

    @property
    def pattern(self) -> tuple[str, ...]:
        raise NotImplementedError

    @property
    def pattern_key(self) -> str:
        return pattern_key(self.pattern)

    @property
    def exhausted(self) -> bool:
        """True once a one-shot listener has used its single invocation."""
        return self.mode == "once" and self.fired


@dataclass(eq=False)
class SingleListener(Listener):
    """Interest in one event name; payload is passed through untouched."""

    name: str = ""

    @property
    def pattern(self) -> tuple[str, ...]:
        return (self.name,)


@dataclass(eq=False)
class SequenceListener(Listener):
    """Interest in a train of event names."""

    names: tuple[str, ...] = ()
    ordering: Ordering = "loose"
    progress: Progress = field(default_factory=Progress)

    @property
    def pattern(self) -> tuple[str, ...]:
        return self.names


@dataclass
class QuotaEntry:
    """Live listener count and optional ceiling for one pattern string."""

    count: int = 0
    max_listeners: int | None = None


@dataclass
class LifecycleEvent:
    """Payload of the synthetic connect/disconnect announcements."""

    connection_id: str
    connections: list[str] = field(default_factory=list)
    connected: bool = True


def event(type_name: str):
    """Decorator to mark a factory as producing an event with a given type."""

    def decorator(f: Any) -> Any:
        @functools.wraps(f)
        def wrapper(*args: Any, **kwargs: Any) -> tuple[str, object]:
            evt = f(*args, **kwargs)
            return (type_name, evt)

        wrapper.TYPE = type_name  # type: ignore[attr-defined]
        return wrapper

    return decorator


@event(CONNECT_EVENT)
def connect(connection_id: str, connections: list[str]) -> LifecycleEvent:
    return LifecycleEvent(connection_id=connection_id, connections=list(connections), connected=True)


@event(DISCONNECT_EVENT)
def disconnect(connection_id: str, connections: list[str]) -> LifecycleEvent:
    return LifecycleEvent(connection_id=connection_id, connections=list(connections), connected=False)
