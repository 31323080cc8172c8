"""Re-export from core.errors."""

from localsocket.core.errors import (
    CapacityExceeded,
    ConstructionMisuse,
    InvalidArgument,
    LocalSocketConfigurationError,
    LocalSocketError,
)

__all__ = [
    "CapacityExceeded",
    "ConstructionMisuse",
    "InvalidArgument",
    "LocalSocketConfigurationError",
    "LocalSocketError",
]
