"""One-shot snapshot of current carrier positions over HTTP."""

from __future__ import annotations

import json
import logging
from typing import Any

import aiohttp
from pydantic import ValidationError

from tripwatch._constants import LOCATIONS_PATH
from tripwatch._logfmt import frame_preview
from tripwatch.config import TripwatchConfig
from tripwatch.exceptions import TripwatchTransportError
from tripwatch.models.position import PositionRecord

_logger = logging.getLogger(__name__)


def parse_locations(body: Any) -> list[PositionRecord]:
    """Turn a ``/locations`` body into records, skipping unusable items."""
    if not isinstance(body, list):
        return []
    records: list[PositionRecord] = []
    for item in body:
        if not isinstance(item, dict):
            continue
        try:
            records.append(PositionRecord.model_validate(item))
        except ValidationError:
            _logger.debug("Skipping snapshot item %s", frame_preview(item))
    return records


async def fetch_locations(http_session: aiohttp.ClientSession, config: TripwatchConfig) -> list[PositionRecord]:
    """GET the current position set from the tracking service."""
    url = config.locations_url
    timeout = aiohttp.ClientTimeout(total=config.snapshot_timeout)

    _logger.debug("GET %s", url)

    try:
        async with http_session.get(url, timeout=timeout) as resp:
            text = await resp.text()
            if resp.status != 200:
                raise TripwatchTransportError(
                    f"HTTP {resp.status} from {LOCATIONS_PATH}: {text[:200]}",
                    status_code=resp.status,
                    endpoint=LOCATIONS_PATH,
                )
    except TripwatchTransportError:
        raise
    except (aiohttp.ClientError, TimeoutError) as exc:
        raise TripwatchTransportError(
            f"Request to {LOCATIONS_PATH} failed: {exc}",
            endpoint=LOCATIONS_PATH,
        ) from exc

    try:
        body = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TripwatchTransportError(
            f"Invalid JSON from {LOCATIONS_PATH}: {text[:200]}",
            endpoint=LOCATIONS_PATH,
        ) from exc

    return parse_locations(body)
