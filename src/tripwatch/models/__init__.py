"""Data models for tracking stream payloads."""

from tripwatch.models.alert import AlertEvent, Banner
from tripwatch.models.link import LinkState
from tripwatch.models.position import PositionRecord

__all__ = [
    "AlertEvent",
    "Banner",
    "LinkState",
    "PositionRecord",
]
