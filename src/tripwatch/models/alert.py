"""Operator alert models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from tripwatch._constants import DEFAULT_ALERT_MESSAGE


class AlertEvent(BaseModel):
    """A trip that needs operator attention."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    trip_id: StrictStr
    message: str = DEFAULT_ALERT_MESSAGE


class Banner(BaseModel):
    """Dismissible banner shown for one alert."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    trip_id: str
    message: str
    action_label: str = Field(default="Open trip")

    @classmethod
    def from_alert(cls, event: AlertEvent) -> Banner:
        return cls(trip_id=event.trip_id, message=event.message)

    @property
    def text(self) -> str:
        return f"Intervention required: trip {self.trip_id} is unassigned. Reason: {self.message}"
