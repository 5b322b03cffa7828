from __future__ import annotations

from tripwatch.ingestion.frames import PositionFrame, decode_frame
from tripwatch.models.position import PositionRecord
from tripwatch.state.store import LocationStore


def _rec(trip_id: str, lat: float, lng: float, ts: str) -> PositionRecord:
    return PositionRecord(trip_id=trip_id, lat=lat, lng=lng, updated_at=ts)


def test_last_received_wins_for_same_trip() -> None:
    store = LocationStore()
    for raw in (
        '{"trip_id":"t1","lat":53.9,"lng":27.5,"timestamp":"T0"}',
        '{"trip_id":"t1","lat":54.0,"lng":27.6,"timestamp":"T1"}',
    ):
        frame = decode_frame(raw)
        assert isinstance(frame, PositionFrame)
        store.upsert(frame.record)

    snapshot = store.snapshot()
    assert len(snapshot) == 1
    assert snapshot[0].trip_id == "t1"
    assert (snapshot[0].lat, snapshot[0].lng) == (54.0, 27.6)


def test_older_timestamp_still_overwrites() -> None:
    store = LocationStore()
    store.upsert(_rec("t1", 1.0, 1.0, "2024-05-01T12:00:00Z"))
    store.upsert(_rec("t1", 2.0, 2.0, "2024-05-01T08:00:00Z"))

    record = store.get("t1")
    assert record is not None
    assert record.lat == 2.0
    assert record.updated_at == "2024-05-01T08:00:00Z"


def test_one_record_per_trip_with_last_values() -> None:
    frames = [
        _rec("a", 1.0, 1.0, "T3"),
        _rec("b", 2.0, 2.0, "T1"),
        _rec("a", 3.0, 3.0, "T0"),
        _rec("c", 4.0, 4.0, "T9"),
        _rec("b", 5.0, 5.0, "T2"),
        _rec("a", 6.0, 6.0, "T5"),
    ]
    store = LocationStore()
    store.upsert_many(frames)

    last_by_trip: dict[str, PositionRecord] = {}
    for frame in frames:
        last_by_trip[frame.trip_id] = frame
    assert len(store) == len(last_by_trip)
    for trip_id, expected in last_by_trip.items():
        assert store.get(trip_id) == expected


def test_pin_order_is_stable_across_updates() -> None:
    store = LocationStore([_rec("a", 0, 0, "T"), _rec("b", 0, 0, "T"), _rec("c", 0, 0, "T")])
    store.upsert(_rec("b", 9, 9, "T2"))
    store.upsert(_rec("d", 1, 1, "T2"))

    assert [r.trip_id for r in store.snapshot()] == ["a", "b", "c", "d"]
    assert store.get("b") == _rec("b", 9, 9, "T2")


def test_snapshot_is_a_copy() -> None:
    store = LocationStore([_rec("a", 0, 0, "T")])
    snapshot = store.snapshot()
    store.upsert(_rec("b", 1, 1, "T"))
    assert [r.trip_id for r in snapshot] == ["a"]
    assert "b" in store


def test_add_missing_keeps_existing_records() -> None:
    store = LocationStore([_rec("a", 5, 5, "stream")])
    store.add_missing([_rec("a", 0, 0, "snapshot"), _rec("z", 1, 1, "snapshot")])

    assert store.get("a") == _rec("a", 5, 5, "stream")
    assert store.get("z") == _rec("z", 1, 1, "snapshot")
