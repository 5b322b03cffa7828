"""Carrier position model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictStr


class PositionRecord(BaseModel):
    """Last known position of one trip's carrier.

    Parameters
    ----------
    trip_id : str
        Trip identifier; the key of the location store.
    lat : float
        Latitude in degrees.
    lng : float
        Longitude in degrees.
    updated_at : Any
        The frame's ``timestamp`` exactly as received. It is never parsed
        and plays no part in merge decisions.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    trip_id: StrictStr
    lat: float
    lng: float
    updated_at: Any = Field(..., validation_alias=AliasChoices("updated_at", "timestamp"))

    @property
    def label(self) -> str:
        """Pin label for the rendering surface."""
        return f"Trip {self.trip_id} (updated {self.updated_at})"
