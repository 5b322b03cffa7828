"""High-level async client for the live tracking & alert stream."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from tripwatch._snapshot import fetch_locations
from tripwatch._stream import AiohttpStreamConnector, StreamConnectionManager, StreamConnector
from tripwatch.alerts.audio import CommandSoundPlayer, SineToneSynthesizer, SoundPlayer, ToneSynthesizer
from tripwatch.alerts.controller import AlertPresentationController, BannerPresenter
from tripwatch.config import TripwatchConfig
from tripwatch.exceptions import TripwatchError
from tripwatch.models.alert import Banner
from tripwatch.models.link import LinkState
from tripwatch.models.position import PositionRecord
from tripwatch.state.notifier import AlertCountView, CounterNotifier, default_notifier
from tripwatch.state.storage import AlertCounterStore, JsonFileStorage, KeyValueStorage, default_storage
from tripwatch.state.store import LocationStore

_logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[], Awaitable[list[PositionRecord]]]


class TrackingClient:
    """Live map of carrier positions plus operator alerts.

    One activated client corresponds to one mounted map view: it loads the
    position snapshot, keeps the stream open, merges updates into its
    :class:`LocationStore` and routes alerts to the presentation
    controller. The alert counter and sound flag live in the shared
    durable store, so several clients (views) can coexist.

    Usage::

        async with TrackingClient(config) as client:
            await client.activate()
            pins = client.locations()
    """

    def __init__(
        self,
        config: TripwatchConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        storage: KeyValueStorage | None = None,
        notifier: CounterNotifier | None = None,
        connector: StreamConnector | None = None,
        snapshot_loader: SnapshotLoader | None = None,
        player: SoundPlayer | None = None,
        synth: ToneSynthesizer | None = None,
        presenter: BannerPresenter | None = None,
        navigate: Callable[[str], None] | None = None,
        on_update: Callable[[], None] | None = None,
    ) -> None:
        self._config = config or TripwatchConfig()
        self._external_session = session is not None
        self._http_session = session
        if storage is None:
            storage = JsonFileStorage(self._config.storage_path) if self._config.storage_path else default_storage()
        self._counter = AlertCounterStore(storage)
        self._notifier = notifier if notifier is not None else default_notifier()
        self._connector = connector
        self._snapshot_loader = snapshot_loader
        self._on_update = on_update
        self._locations = LocationStore()
        self._manager: StreamConnectionManager | None = None
        self._alerts = AlertPresentationController(
            self._counter,
            self._notifier,
            player=player if player is not None else CommandSoundPlayer(),
            synth=synth if synth is not None else SineToneSynthesizer(),
            presenter=presenter,
            navigate=navigate,
            sound_path=self._config.sound_path,
            banner_timeout=self._config.banner_timeout,
        )

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TrackingClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def config(self) -> TripwatchConfig:
        return self._config

    @property
    def counter(self) -> AlertCounterStore:
        return self._counter

    @property
    def notifier(self) -> CounterNotifier:
        return self._notifier

    @property
    def location_store(self) -> LocationStore:
        return self._locations

    @property
    def alerts(self) -> AlertPresentationController:
        return self._alerts

    @property
    def link_state(self) -> LinkState:
        if self._manager is None:
            return LinkState.CONNECTING
        return self._manager.link_state

    @property
    def is_online(self) -> bool:
        return self.link_state == LinkState.OPEN

    @property
    def is_active(self) -> bool:
        return self._manager is not None and self._manager.is_active

    @property
    def alert_count(self) -> int:
        return self._counter.get_alert_count()

    @property
    def sound_enabled(self) -> bool:
        return self._counter.get_sound_enabled()

    @property
    def banner(self) -> Banner | None:
        return self._alerts.banner

    def locations(self) -> list[PositionRecord]:
        """Pins to render, in stable order."""
        return self._locations.snapshot()

    def create_count_view(self, on_change: Callable[[int], None] | None = None) -> AlertCountView:
        """A badge-style view of the shared alert count."""
        return AlertCountView(self._counter, self._notifier, on_change=on_change)

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            raise TripwatchError("Client not initialized. Use 'async with TrackingClient(...) as client:'")
        return self._http_session

    def _build_manager(self) -> StreamConnectionManager:
        connector = self._connector
        if connector is None:
            connector = AiohttpStreamConnector(self._require_session(), heartbeat=self._config.ws_heartbeat)
        return StreamConnectionManager(
            self._config.stream_url,
            connector=connector,
            on_position=self._on_position,
            on_alert=self._alerts.handle_alert,
            on_link_state=self._on_link_state,
            reconnect_delay=self._config.reconnect_delay,
            logger=_logger,
        )

    async def activate(self) -> None:
        """Open the stream and load the position snapshot."""
        if self.is_active:
            return
        self._locations.clear()
        self._manager = self._build_manager()
        self._manager.start()

        records = await self._load_snapshot()
        if self._manager is None or not self._manager.is_active:
            return
        # Stream updates received meanwhile are newer than the snapshot.
        self._locations.add_missing(records)
        self._notify_update()

    async def _load_snapshot(self) -> list[PositionRecord]:
        try:
            if self._snapshot_loader is not None:
                return await self._snapshot_loader()
            return await fetch_locations(self._require_session(), self._config)
        except Exception as exc:
            _logger.warning("Position snapshot unavailable, using fallback set: %s", exc)
            _logger.debug("Snapshot failure", exc_info=True)
            return list(self._config.fallback_positions)

    def deactivate(self) -> None:
        """Stop streaming now; cancels any pending reconnect."""
        if self._manager is not None:
            self._manager.stop()
        self._alerts.close()

    async def close(self) -> None:
        manager = self._manager
        if manager is not None:
            await manager.close()
        self._alerts.close()

    # ------------------------------------------------------------------
    # Stream callbacks
    # ------------------------------------------------------------------

    def _notify_update(self) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update()
        except Exception:
            _logger.debug("on_update callback failed", exc_info=True)

    def _on_position(self, record: PositionRecord) -> None:
        self._locations.upsert(record)
        self._notify_update()

    def _on_link_state(self, _state: LinkState) -> None:
        self._notify_update()

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def acknowledge_alerts(self) -> None:
        """Reset the unacknowledged alert count to zero."""
        self._alerts.acknowledge()

    def set_sound_enabled(self, enabled: bool) -> None:
        self._counter.set_sound_enabled(enabled)

    def toggle_sound(self) -> bool:
        enabled = not self._counter.get_sound_enabled()
        self._counter.set_sound_enabled(enabled)
        return enabled

    def dismiss_banner(self) -> None:
        self._alerts.dismiss()

    def open_alerted_trip(self) -> str | None:
        return self._alerts.open_trip()
