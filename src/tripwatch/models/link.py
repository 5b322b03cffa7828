"""Stream link state."""

from __future__ import annotations

from enum import StrEnum


class LinkState(StrEnum):
    """Connectivity phase of the stream connection manager."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
