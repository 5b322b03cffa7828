"""Alert presentation: sound, durable counter, banner."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from tripwatch._constants import (
    BANNER_TIMEOUT_SECONDS,
    DEFAULT_SOUND_PATH,
    TONE_DURATION_SECONDS,
    TONE_FREQUENCY_HZ,
    TONE_GAIN,
)
from tripwatch.alerts.audio import SoundPlayer, ToneSynthesizer
from tripwatch.models.alert import AlertEvent, Banner
from tripwatch.state.notifier import CounterNotifier
from tripwatch.state.storage import AlertCounterStore

_logger = logging.getLogger(__name__)


class BannerPresenter(Protocol):
    """Surface that displays the alert banner."""

    def show(self, banner: Banner) -> None:
        ...

    def hide(self, banner: Banner) -> None:
        ...


class LoggingBannerPresenter:
    """Presents banners as log records."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _logger

    def show(self, banner: Banner) -> None:
        self._logger.warning("%s", banner.text)

    def hide(self, banner: Banner) -> None:
        self._logger.debug("Banner for trip %s dismissed", banner.trip_id)


class AlertPresentationController:
    """React to classified alert events.

    For every alert, in order: attempt a sound (if enabled), bump the
    durable unacknowledged count and broadcast it, then show a banner that
    auto-dismisses after ``banner_timeout`` seconds. Each step is
    best-effort; a failing step never blocks the following ones.
    """

    def __init__(
        self,
        counter: AlertCounterStore,
        notifier: CounterNotifier,
        *,
        player: SoundPlayer | None = None,
        synth: ToneSynthesizer | None = None,
        presenter: BannerPresenter | None = None,
        navigate: Callable[[str], None] | None = None,
        sound_path: str = DEFAULT_SOUND_PATH,
        banner_timeout: float = BANNER_TIMEOUT_SECONDS,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._counter = counter
        self._notifier = notifier
        self._player = player
        self._synth = synth
        self._presenter: BannerPresenter = presenter or LoggingBannerPresenter()
        self._navigate = navigate
        self._sound_path = sound_path
        self._banner_timeout = banner_timeout
        self._loop = loop
        self._banner: Banner | None = None
        self._banner_handle: asyncio.TimerHandle | None = None
        self._audio_tasks: set[asyncio.Task[None]] = set()

    @property
    def banner(self) -> Banner | None:
        """Banner currently on screen, if any."""
        return self._banner

    @property
    def pending_audio(self) -> int:
        return len(self._audio_tasks)

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    # ------------------------------------------------------------------
    # Alert pipeline
    # ------------------------------------------------------------------

    def handle_alert(self, event: AlertEvent) -> None:
        _logger.debug("Alert for trip %s: %s", event.trip_id, event.message)

        try:
            self._start_sound()
        except Exception:
            _logger.debug("Alert sound could not be started", exc_info=True)

        count: int | None
        try:
            count = self._counter.increment_alert_count()
        except Exception:
            _logger.warning("Could not persist alert count", exc_info=True)
            count = None
        self._notifier.publish(count)

        try:
            self._present(Banner.from_alert(event))
        except Exception:
            _logger.debug("Alert banner could not be presented", exc_info=True)

    def _start_sound(self) -> None:
        if not self._counter.get_sound_enabled():
            return
        if self._player is None and self._synth is None:
            return
        task = self._get_loop().create_task(self._play_sound())
        self._audio_tasks.add(task)
        task.add_done_callback(self._audio_tasks.discard)

    async def _play_sound(self) -> None:
        if self._player is not None:
            try:
                await self._player.play(self._sound_path)
                return
            except Exception:
                _logger.debug("Alert sound playback failed, trying tone", exc_info=True)
        if self._synth is not None:
            try:
                await self._synth.tone(TONE_FREQUENCY_HZ, TONE_GAIN, TONE_DURATION_SECONDS)
                return
            except Exception:
                _logger.debug("Alert tone failed", exc_info=True)
        _logger.debug("Alert presented without sound")

    def _present(self, banner: Banner) -> None:
        self._cancel_banner_timer()
        self._banner = banner
        self._presenter.show(banner)
        self._banner_handle = self._get_loop().call_later(self._banner_timeout, self._auto_dismiss, banner)

    def _auto_dismiss(self, banner: Banner) -> None:
        self._banner_handle = None
        if self._banner is banner:
            self.dismiss()

    def _cancel_banner_timer(self) -> None:
        handle = self._banner_handle
        self._banner_handle = None
        if handle is not None:
            handle.cancel()

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def dismiss(self) -> None:
        banner = self._banner
        self._cancel_banner_timer()
        if banner is None:
            return
        self._banner = None
        self._presenter.hide(banner)

    def open_trip(self) -> str | None:
        """Banner action: go to the alerted trip's detail view."""
        banner = self._banner
        if banner is None:
            return None
        self.dismiss()
        if self._navigate is not None:
            self._navigate(banner.trip_id)
        return banner.trip_id

    def acknowledge(self) -> None:
        """Mark all alerts as seen; there is no per-alert acknowledgment."""
        self._counter.set_alert_count(0)
        self._notifier.publish(0)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def drain(self) -> None:
        """Wait for in-flight sound attempts."""
        if self._audio_tasks:
            await asyncio.gather(*list(self._audio_tasks), return_exceptions=True)

    def close(self) -> None:
        """Hide the banner and drop pending sounds; counted alerts stay counted."""
        self.dismiss()
        for task in list(self._audio_tasks):
            task.cancel()
        self._audio_tasks.clear()
