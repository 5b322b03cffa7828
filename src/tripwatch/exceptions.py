"""Custom exception hierarchy for tripwatch."""

from __future__ import annotations


class TripwatchError(Exception):
    """Base exception for all tripwatch errors."""


class TripwatchConfigError(TripwatchError):
    """Invalid or missing configuration."""


class TripwatchTransportError(TripwatchError):
    """HTTP or stream level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class TripwatchStorageError(TripwatchError):
    """Durable key/value storage could not be written."""


class TripwatchPlaybackError(TripwatchError):
    """Alert sound could not be played.

    Raised by sound players and tone synthesizers.  The alert controller
    catches it; an alert is never dropped because audio failed.
    """
