"""LocalSocket: in-process publish/subscribe hub with event train matching."""

from localsocket.core.errors import (
    CapacityExceeded,
    ConstructionMisuse,
    InvalidArgument,
    LocalSocketConfigurationError,
    LocalSocketError,
)
from localsocket.events import LifecycleEvent, Listener, QuotaEntry, SequenceListener, SingleListener
from localsocket.hub import Hub

__version__ = "0.1.0"

__all__ = [
    "CapacityExceeded",
    "ConstructionMisuse",
    "Hub",
    "InvalidArgument",
    "LifecycleEvent",
    "Listener",
    "LocalSocketConfigurationError",
    "LocalSocketError",
    "QuotaEntry",
    "SequenceListener",
    "SingleListener",
    "__version__",
]
