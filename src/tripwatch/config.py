"""Client configuration for tripwatch."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from tripwatch._constants import (
    BANNER_TIMEOUT_SECONDS,
    DEFAULT_SOUND_PATH,
    RECONNECT_DELAY_SECONDS,
    STREAM_PATH,
    TRACKING_BASE_URL,
)
from tripwatch.exceptions import TripwatchConfigError
from tripwatch.models.position import PositionRecord

_STREAM_SCHEMES: dict[str, str] = {"http": "ws", "https": "wss", "ws": "ws", "wss": "wss"}


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env: Mapping[str, str], key: str) -> float | None:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise TripwatchConfigError(f"{key} must be a number, got {raw!r}") from exc


def derive_stream_url(base_url: str) -> str:
    """Rewrite a tracking base address into its streaming endpoint.

    ``http`` becomes ``ws`` and ``https`` becomes ``wss``; the fixed
    ``/ws/locations`` suffix is appended to whatever path the base carries.
    """
    parts = urlsplit(base_url.strip())
    scheme = _STREAM_SCHEMES.get(parts.scheme.lower())
    if scheme is None or not parts.netloc:
        raise TripwatchConfigError(f"Unsupported tracking base URL: {base_url!r}")
    path = parts.path.rstrip("/") + STREAM_PATH
    return urlunsplit((scheme, parts.netloc, path, parts.query, ""))


@dataclasses.dataclass(frozen=True)
class TripwatchConfig:
    """Client configuration.

    Parameters
    ----------
    tracking_base_url : str
        HTTP base address of the tracking service. The snapshot is read
        from ``<base>/locations``.
    tracking_ws_url : str or None
        Explicit streaming endpoint. When ``None`` it is derived from
        ``tracking_base_url`` (scheme rewritten, ``/ws/locations`` appended).
    reconnect_delay : float
        Fixed delay in seconds between a stream close and the next
        connection attempt. There is no backoff growth and no retry limit.
    banner_timeout : float
        Seconds before an alert banner auto-dismisses.
    sound_path : str
        Sound file played on every alert when sound is enabled.
    storage_path : str or None
        JSON file holding the durable alert counter and sound flag.
        ``None`` keeps them in memory for the lifetime of the process.
    ws_heartbeat : float or None
        WebSocket ping interval in seconds (``None`` disables pings).
    snapshot_timeout : float
        Total timeout in seconds for the one-shot snapshot request.
    fallback_positions : tuple of PositionRecord
        Positions shown when the snapshot request fails.
    """

    tracking_base_url: str = TRACKING_BASE_URL
    tracking_ws_url: str | None = None
    reconnect_delay: float = RECONNECT_DELAY_SECONDS
    banner_timeout: float = BANNER_TIMEOUT_SECONDS
    sound_path: str = DEFAULT_SOUND_PATH
    storage_path: str | None = None
    ws_heartbeat: float | None = 30.0
    snapshot_timeout: float = 10.0
    fallback_positions: tuple[PositionRecord, ...] = ()

    def __post_init__(self) -> None:
        if self.reconnect_delay < 0:
            raise TripwatchConfigError("reconnect_delay must be >= 0")
        if self.banner_timeout <= 0:
            raise TripwatchConfigError("banner_timeout must be > 0")
        if self.snapshot_timeout <= 0:
            raise TripwatchConfigError("snapshot_timeout must be > 0")
        # Fail fast on an unusable base address.
        derive_stream_url(self.tracking_base_url)

    @property
    def stream_url(self) -> str:
        """Streaming endpoint the connection manager dials."""
        if self.tracking_ws_url:
            return self.tracking_ws_url
        return derive_stream_url(self.tracking_base_url)

    @property
    def locations_url(self) -> str:
        return f"{self.tracking_base_url.rstrip('/')}/locations"

    @classmethod
    def from_env(cls, **overrides: Any) -> TripwatchConfig:
        """Create configuration from environment variables.

        Reads optional ``TRIPWATCH_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        TripwatchConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "TRIPWATCH_TRACKING_BASE_URL": "tracking_base_url",
            "TRIPWATCH_TRACKING_WS_URL": "tracking_ws_url",
            "TRIPWATCH_SOUND_PATH": "sound_path",
            "TRIPWATCH_STORAGE_PATH": "storage_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None and val.strip():
                config_kwargs[field_name] = val.strip()

        _ENV_FLOAT_MAP = {
            "TRIPWATCH_RECONNECT_DELAY": "reconnect_delay",
            "TRIPWATCH_BANNER_TIMEOUT": "banner_timeout",
            "TRIPWATCH_SNAPSHOT_TIMEOUT": "snapshot_timeout",
            "TRIPWATCH_WS_HEARTBEAT": "ws_heartbeat",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            if field_name in overrides:
                continue
            parsed = _env_float(env, env_key)
            if parsed is not None:
                config_kwargs[field_name] = parsed

        # A zero heartbeat means "no pings".
        if config_kwargs.get("ws_heartbeat") == 0:
            config_kwargs["ws_heartbeat"] = None

        if "storage_path" not in overrides and not _env_bool(env.get("TRIPWATCH_PERSIST"), True):
            config_kwargs.pop("storage_path", None)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
