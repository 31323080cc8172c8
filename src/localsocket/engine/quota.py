"""Listener ceilings: global limit and per-pattern quota table."""

from __future__ import annotations

from dataclasses import replace
from numbers import Real
from typing import Any

from loguru import logger

from localsocket.core.constants import DEFAULT_WARN_THRESHOLD
from localsocket.core.errors import CapacityExceeded, InvalidArgument
from localsocket.events import QuotaEntry


def validate_limit(value: Any) -> int:
    """Return ``value`` as an int ceiling; raise InvalidArgument unless positive."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidArgument(
            "Expects value to be a number",
            code="invalid_limit_type",
            details={"type": type(value).__name__},
        )
    limit = int(value)
    if limit <= 0:
        raise InvalidArgument(
            "Max listeners must be greater than zero",
            code="invalid_limit_value",
            details={"value": value},
        )
    return limit


class QuotaTable:
    """Per joined-pattern listener counts plus global and per-pattern ceilings."""

    def __init__(
        self,
        *,
        max_listeners: int | None = None,
        warn_threshold: int = DEFAULT_WARN_THRESHOLD,
        presets: dict[str, int] | None = None,
    ) -> None:
        self.max_listeners = max_listeners
        self.warn_threshold = warn_threshold
        self._entries: dict[str, QuotaEntry] = {}
        # Ceilings to apply when a pattern's entry is first created
        self._presets: dict[str, int] = dict(presets or {})

    def __contains__(self, pattern: str) -> bool:
        return pattern in self._entries

    def __getitem__(self, pattern: str) -> QuotaEntry:
        return self._entries[pattern]

    def snapshot(self) -> dict[str, QuotaEntry]:
        """Copy of the quota table."""
        return {pattern: replace(entry) for pattern, entry in self._entries.items()}

    def check(self, pattern: str, live_count: int) -> None:
        """Raise CapacityExceeded if registering another ``pattern`` listener would break a ceiling."""
        if self.max_listeners:
            if live_count >= self.max_listeners:
                raise CapacityExceeded(
                    "Max listener limit reached",
                    code="max_listeners",
                    details={"limit": self.max_listeners, "count": live_count},
                )
            if self.max_listeners - live_count < self.warn_threshold:
                logger.warning(
                    "Listeners approaching limit: {}/{}",
                    live_count,
                    self.max_listeners,
                )

        entry = self._entries.get(pattern)
        ceiling = entry.max_listeners if entry else self._presets.get(pattern)
        if not ceiling:
            return
        count = entry.count if entry else 0
        if count >= ceiling:
            raise CapacityExceeded(
                f"Max listener limit reached for {pattern}",
                code="event_max_listeners",
                details={"pattern": pattern, "limit": ceiling, "count": count},
            )
        if ceiling - count < self.warn_threshold:
            logger.warning("Listeners approaching limit for {}: {}/{}", pattern, count, ceiling)

    def increment(self, pattern: str) -> QuotaEntry:
        entry = self._entries.get(pattern)
        if entry is None:
            entry = QuotaEntry(count=0, max_listeners=self._presets.get(pattern))
            self._entries[pattern] = entry
        entry.count += 1
        return entry

    def decrement(self, pattern: str) -> None:
        entry = self._entries.get(pattern)
        if entry is not None and entry.count > 0:
            entry.count -= 1

    def set_limit(self, pattern: str, value: Any) -> bool:
        """Set the ceiling for a registered pattern. Returns False if it was never registered."""
        limit = validate_limit(value)
        entry = self._entries.get(pattern)
        if entry is None:
            logger.warning("Event was never registered: {}", pattern)
            return False
        entry.max_listeners = limit
        return True

    def clear(self) -> None:
        """Forget all entries. Ceilings and presets are kept."""
        self._entries.clear()
