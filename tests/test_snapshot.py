from __future__ import annotations

from typing import Any

import aiohttp
import pytest

from tripwatch._snapshot import fetch_locations, parse_locations
from tripwatch.config import TripwatchConfig
from tripwatch.exceptions import TripwatchTransportError


class _FakeResponse:
    def __init__(self, status: int, text: str) -> None:
        self.status = status
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeSession:
    def __init__(self, *, status: int = 200, text: str = "[]", error: Exception | None = None) -> None:
        self.status = status
        self.text = text
        self.error = error
        self.urls: list[str] = []

    def get(self, url: str, **_kwargs: Any) -> _FakeResponse:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return _FakeResponse(self.status, self.text)


def test_parse_locations_skips_unusable_items() -> None:
    body = [
        {"trip_id": "a", "lat": 1.0, "lng": 2.0, "updated_at": "T0"},
        {"trip_id": "b", "lat": "x", "lng": 2.0, "updated_at": "T0"},
        "garbage",
        {"trip_id": "c", "lat": 3, "lng": 4, "timestamp": "T1"},
    ]

    records = parse_locations(body)

    assert [r.trip_id for r in records] == ["a", "c"]
    assert records[1].updated_at == "T1"


def test_parse_locations_non_list_body_is_empty() -> None:
    assert parse_locations({"items": []}) == []


@pytest.mark.asyncio
async def test_fetch_locations_reads_base_url() -> None:
    session = _FakeSession(text='[{"trip_id": "t1", "lat": 53.9, "lng": 27.5, "updated_at": "T0"}]')
    config = TripwatchConfig(tracking_base_url="http://tracking.test/")

    records = await fetch_locations(session, config)  # type: ignore[arg-type]

    assert session.urls == ["http://tracking.test/locations"]
    assert [r.trip_id for r in records] == ["t1"]


@pytest.mark.asyncio
async def test_fetch_locations_non_200_raises() -> None:
    session = _FakeSession(status=503, text="unavailable")

    with pytest.raises(TripwatchTransportError) as excinfo:
        await fetch_locations(session, TripwatchConfig())  # type: ignore[arg-type]

    assert excinfo.value.status_code == 503
    assert excinfo.value.endpoint == "/locations"


@pytest.mark.asyncio
async def test_fetch_locations_invalid_json_raises() -> None:
    session = _FakeSession(text="<html>")

    with pytest.raises(TripwatchTransportError):
        await fetch_locations(session, TripwatchConfig())  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_fetch_locations_network_error_raises() -> None:
    session = _FakeSession(error=aiohttp.ClientConnectionError("refused"))

    with pytest.raises(TripwatchTransportError) as excinfo:
        await fetch_locations(session, TripwatchConfig())  # type: ignore[arg-type]

    assert excinfo.value.status_code is None
