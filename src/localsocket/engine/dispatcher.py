"""Listener registry and announcement dispatch."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Any

from loguru import logger

from localsocket.core.constants import DEFAULT_WARN_THRESHOLD, Mode, Ordering
from localsocket.engine.matcher import advance
from localsocket.engine.quota import QuotaTable
from localsocket.events import (
    Listener,
    SequenceListener,
    SingleListener,
    coerce_callback,
    normalize_pattern,
    pattern_key,
)


def new_key() -> str:
    """Collision-resistant listener reference key."""
    return uuid.uuid4().hex


class Dispatcher:
    """Owns listeners and feeds announcements through the matcher in registration order."""

    def __init__(
        self,
        *,
        max_listeners: int | None = None,
        warn_threshold: int = DEFAULT_WARN_THRESHOLD,
        event_max_listeners: dict[str, int] | None = None,
        propagate_errors: bool = False,
    ) -> None:
        self._listeners: list[Listener] = []
        # Every listener issued since the last drop, live or parked
        self._keys: dict[str, Listener] = {}
        self.quotas = QuotaTable(
            max_listeners=max_listeners,
            warn_threshold=warn_threshold,
            presets=event_max_listeners,
        )
        self.propagate_errors = propagate_errors

    @property
    def listeners(self) -> tuple[Listener, ...]:
        """Live listeners in registration order."""
        return tuple(self._listeners)

    def __len__(self) -> int:
        return len(self._listeners)

    def get(self, key: str) -> Listener | None:
        return self._keys.get(key)

    def is_live(self, key: str) -> bool:
        listener = self._keys.get(key)
        return listener is not None and any(item is listener for item in self._listeners)

    def register(
        self,
        pattern: str | Iterable[str],
        callback: Any,
        *,
        mode: Mode = "persistent",
        ordering: Ordering = "loose",
    ) -> str:
        """Validate ceilings, create a listener and return its key."""
        names = normalize_pattern(pattern)
        joined = pattern_key(names)
        self.quotas.check(joined, len(self._listeners))

        key = new_key()
        cb = coerce_callback(callback)
        listener: Listener
        if len(names) == 1:
            listener = SingleListener(key=key, callback=cb, mode=mode, name=names[0])
        else:
            listener = SequenceListener(key=key, callback=cb, mode=mode, names=names, ordering=ordering)

        self._listeners.append(listener)
        self._keys[key] = listener
        self.quotas.increment(joined)
        logger.debug("Registered {} listener {} for '{}'", mode, key, joined)
        return key

    def remove(self, key: str) -> bool:
        """Take a listener out of the registry. It stays known for :meth:`reconnect`."""
        if not key or not self.is_live(key):
            logger.debug("Remove ignored, no live listener for key {}", key)
            return False
        listener = self._keys[key]
        self._listeners = [item for item in self._listeners if item is not listener]
        self.quotas.decrement(listener.pattern_key)
        return True

    def reconnect(self, key: str) -> bool:
        """Put a previously removed listener back, progress included."""
        listener = self._keys.get(key) if key else None
        if listener is None:
            logger.debug("Reconnect ignored, unknown key {}", key)
            return False
        if self.is_live(key):
            logger.debug("Reconnect ignored, listener {} is already live", key)
            return False
        self.quotas.check(listener.pattern_key, len(self._listeners))
        self._listeners = self._listeners + [listener]
        self.quotas.increment(listener.pattern_key)
        return True

    def drop(self) -> None:
        """Forget every listener and quota entry. Ceilings are kept."""
        self._listeners = []
        self._keys = {}
        self.quotas.clear()

    def dispatch(self, name: str, payload: Any = None) -> int:
        """Feed one announcement to every live listener. Returns the number of callbacks invoked."""
        name = str(name).strip()
        invoked = 0
        # Snapshot: callbacks may register/remove listeners mid-dispatch
        for listener in tuple(self._listeners):
            result = advance(listener, name, payload)
            if not result.matched:
                continue
            listener.invocation_count += 1
            if listener.mode == "once":
                listener.fired = True
            invoked += 1
            try:
                listener.callback(result.payload)
            except Exception as exc:
                if self.propagate_errors:
                    raise
                logger.exception("Listener {} failed handling '{}': {}", listener.key, name, exc)
        return invoked
