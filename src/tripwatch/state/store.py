"""Location merge store.

Keyed table of the last known position per trip. Written only by the
stream connection manager (and the initial snapshot), read by the
rendering surface.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from tripwatch.models.position import PositionRecord


class LocationStore:
    """In-memory ``trip_id -> PositionRecord`` table.

    The most recently *received* record always wins; ``updated_at`` is not
    compared. New keys keep insertion order and overwritten keys keep their
    place, so pin order is stable across updates. Nothing is evicted.
    """

    def __init__(self, records: Iterable[PositionRecord] = ()) -> None:
        self._records: dict[str, PositionRecord] = {}
        self.upsert_many(records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, trip_id: object) -> bool:
        return trip_id in self._records

    def __iter__(self) -> Iterator[PositionRecord]:
        return iter(self.snapshot())

    def upsert(self, record: PositionRecord) -> None:
        """Insert *record*, or replace the existing one for its trip."""
        self._records[record.trip_id] = record

    def upsert_many(self, records: Iterable[PositionRecord]) -> None:
        for record in records:
            self.upsert(record)

    def add_missing(self, records: Iterable[PositionRecord]) -> None:
        """Insert only records whose trip has not been seen yet."""
        for record in records:
            self._records.setdefault(record.trip_id, record)

    def get(self, trip_id: str) -> PositionRecord | None:
        return self._records.get(trip_id)

    def snapshot(self) -> list[PositionRecord]:
        """Current full set, in stable pin order."""
        return list(self._records.values())

    def clear(self) -> None:
        self._records.clear()
