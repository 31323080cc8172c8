"""Hub constants."""

from __future__ import annotations

from typing import Literal

Mode = Literal["persistent", "once"]
Ordering = Literal["strict", "loose"]

DEFAULT_HUB_NAME = "LocalSocket"
DEFAULT_WARN_THRESHOLD = 5

# Lifecycle announcements emitted by Hub.connect / Hub.disconnect
CONNECT_EVENT = "connect"
DISCONNECT_EVENT = "disconnect"
