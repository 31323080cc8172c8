"""LocalSocket domain exceptions."""

from __future__ import annotations


class LocalSocketError(Exception):
    """Base for hub errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, object] | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_error = original_error


class CapacityExceeded(LocalSocketError):
    """Global or per-pattern listener ceiling reached."""


class InvalidArgument(LocalSocketError):
    """Wrong type or out-of-range value passed to a hub operation."""


class ConstructionMisuse(LocalSocketError):
    """Hub constructed or used without going through ``__init__``."""


class LocalSocketConfigurationError(LocalSocketError):
    """Config validation or load failure."""
