"""Stream frame decoding.

Frames are untyped JSON objects with no shared envelope. Decoding is a
tagged-variant step: try the alert shape, else the position shape, else
discard. Nothing in here raises on bad input.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError, field_validator

from tripwatch._constants import DEFAULT_ALERT_MESSAGE
from tripwatch.models.alert import AlertEvent
from tripwatch.models.position import PositionRecord


class _AlertPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    trip_id: StrictStr
    message: Any = None


class _AlertEnvelope(BaseModel):
    """``{"type": "alert", "payload": {"trip_id": ..., "message": ...}}``"""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: Literal["alert"]
    payload: _AlertPayload


class _PositionFrame(BaseModel):
    """``{"trip_id": ..., "lat": ..., "lng": ..., "timestamp": ...}``"""

    model_config = ConfigDict(extra="ignore", frozen=True)

    trip_id: StrictStr
    lat: float
    lng: float
    timestamp: Any

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def _require_number(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("coordinate must be a number")
        return value


@dataclass(frozen=True)
class AlertFrame:
    event: AlertEvent


@dataclass(frozen=True)
class PositionFrame:
    record: PositionRecord


DecodedFrame = AlertFrame | PositionFrame


def parse_frame_json(raw: str | bytes | bytearray) -> dict[str, Any] | None:
    """Parse frame text into a JSON object, or ``None`` if it is not one."""
    try:
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        parsed = json.loads(text)
    except (UnicodeDecodeError, ValueError, TypeError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _as_alert(obj: dict[str, Any]) -> AlertFrame | None:
    if obj.get("type") != "alert":
        return None
    try:
        envelope = _AlertEnvelope.model_validate(obj)
    except ValidationError:
        return None
    message = envelope.payload.message
    if not isinstance(message, str) or not message:
        message = DEFAULT_ALERT_MESSAGE
    return AlertFrame(AlertEvent(trip_id=envelope.payload.trip_id, message=message))


def _as_position(obj: dict[str, Any]) -> PositionFrame | None:
    if not isinstance(obj.get("trip_id"), str):
        return None
    try:
        frame = _PositionFrame.model_validate(obj)
    except ValidationError:
        return None
    return PositionFrame(
        PositionRecord(
            trip_id=frame.trip_id,
            lat=frame.lat,
            lng=frame.lng,
            updated_at=frame.timestamp,
        )
    )


def decode_frame(raw: str | bytes | bytearray | dict[str, Any]) -> DecodedFrame | None:
    """Classify one inbound frame.

    A frame is an alert iff ``type == "alert"`` and ``payload.trip_id`` is a
    string. Otherwise it is a position iff its top-level ``trip_id`` is a
    string and it carries numeric ``lat``/``lng`` and a ``timestamp``.
    Anything else returns ``None``.
    """
    obj = raw if isinstance(raw, dict) else parse_frame_json(raw)
    if obj is None:
        return None
    alert = _as_alert(obj)
    if alert is not None:
        return alert
    return _as_position(obj)
