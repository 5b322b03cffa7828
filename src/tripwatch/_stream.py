"""Stream connection manager: WebSocket lifecycle, frame classification, reconnects."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any, Protocol

import aiohttp

from tripwatch._constants import RECONNECT_DELAY_SECONDS
from tripwatch._logfmt import frame_preview
from tripwatch.exceptions import TripwatchTransportError
from tripwatch.ingestion.frames import AlertFrame, decode_frame
from tripwatch.models.alert import AlertEvent
from tripwatch.models.link import LinkState
from tripwatch.models.position import PositionRecord

_END_OF_STREAM = frozenset(
    {
        aiohttp.WSMsgType.CLOSE,
        aiohttp.WSMsgType.CLOSING,
        aiohttp.WSMsgType.CLOSED,
        aiohttp.WSMsgType.ERROR,
    }
)


class FrameSource(Protocol):
    """An open streaming connection.

    ``aiohttp.ClientWebSocketResponse`` satisfies this; tests pass fakes.
    """

    def __aiter__(self) -> AsyncIterator[Any]:
        ...

    async def close(self) -> Any:
        ...


class StreamConnector(Protocol):
    """Opens one streaming connection to *url* (the handshake)."""

    async def __call__(self, url: str) -> FrameSource:
        ...


class AiohttpStreamConnector:
    """Production connector built on ``aiohttp.ClientSession.ws_connect``."""

    def __init__(self, http_session: aiohttp.ClientSession, *, heartbeat: float | None = None) -> None:
        self._http = http_session
        self._heartbeat = heartbeat

    async def __call__(self, url: str) -> FrameSource:
        try:
            return await self._http.ws_connect(url, heartbeat=self._heartbeat)
        except aiohttp.ClientError as exc:
            raise TripwatchTransportError(
                f"Stream handshake with {url} failed: {exc}",
                status_code=getattr(exc, "status", None),
                endpoint=url,
            ) from exc


class StreamConnectionManager:
    """Keeps one streaming connection alive for as long as it is active.

    Link state moves ``CONNECTING -> OPEN`` on handshake, ``-> CLOSED`` on
    any close or error, and back to ``CONNECTING`` after a fixed
    ``reconnect_delay``. Retries never stop while active.

    :meth:`stop` is the deactivation contract: it stops event delivery
    immediately, cancels the pending reconnect timer and the in-flight
    connection task.
    """

    def __init__(
        self,
        url: str,
        *,
        connector: StreamConnector,
        on_position: Callable[[PositionRecord], None],
        on_alert: Callable[[AlertEvent], None],
        on_link_state: Callable[[LinkState], None] | None = None,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
        loop: asyncio.AbstractEventLoop | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._url = url
        self._connector = connector
        self._on_position = on_position
        self._on_alert = on_alert
        self._on_link_state = on_link_state
        self._reconnect_delay = reconnect_delay
        self._loop = loop
        self._logger = logger or logging.getLogger(__name__)
        self._link_state = LinkState.CONNECTING
        self._active = False
        self._task: asyncio.Task[None] | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._attempts = 0
        self._generation = 0

    @property
    def url(self) -> str:
        return self._url

    @property
    def link_state(self) -> LinkState:
        return self._link_state

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def attempts(self) -> int:
        """Number of connection attempts started since construction."""
        return self._attempts

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Activate: open the stream and keep it open."""
        if self._active:
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._active = True
        self._generation += 1
        self._logger.debug("Stream manager start url=%s", self._url)
        self._connect()

    def stop(self) -> None:
        """Deactivate synchronously; no further events are delivered."""
        if not self._active:
            return
        self._active = False
        handle = self._reconnect_handle
        self._reconnect_handle = None
        if handle is not None:
            handle.cancel()
            self._logger.debug("Pending stream reconnect cancelled")
        task = self._task
        if task is not None and not task.done():
            task.cancel()
        self._set_link_state(LinkState.CLOSED)

    async def close(self) -> None:
        """Deactivate and wait for the connection task to finish."""
        self.stop()
        task = self._task
        self._task = None
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # ------------------------------------------------------------------
    # Connection cycle
    # ------------------------------------------------------------------

    def _set_link_state(self, state: LinkState) -> None:
        if state == self._link_state:
            return
        self._link_state = state
        self._logger.debug("Stream link state -> %s", state)
        if self._on_link_state is not None:
            try:
                self._on_link_state(state)
            except Exception:
                self._logger.debug("on_link_state callback failed", exc_info=True)

    def _connect(self) -> None:
        self._reconnect_handle = None
        if not self._active:
            return
        assert self._loop is not None  # noqa: S101
        self._set_link_state(LinkState.CONNECTING)
        self._attempts += 1
        self._task = self._loop.create_task(self._run_connection(self._generation))

    def _schedule_reconnect(self) -> None:
        if not self._active:
            return
        assert self._loop is not None  # noqa: S101
        self._reconnect_handle = self._loop.call_later(self._reconnect_delay, self._connect)

    def _is_current(self, generation: int) -> bool:
        return self._active and generation == self._generation

    async def _run_connection(self, generation: int) -> None:
        source: FrameSource | None = None
        try:
            source = await self._connector(self._url)
            if not self._is_current(generation):
                return
            self._set_link_state(LinkState.OPEN)
            async for message in source:
                if not self._is_current(generation) or not self._handle_message(message):
                    break
        except asyncio.CancelledError:
            raise
        except Exception:
            self._logger.debug("Stream connection to %s failed", self._url, exc_info=True)
        finally:
            if source is not None:
                try:
                    await source.close()
                except Exception:
                    self._logger.debug("Stream close failed", exc_info=True)
            if self._is_current(generation):
                self._set_link_state(LinkState.CLOSED)
                self._schedule_reconnect()

    def _handle_message(self, message: Any) -> bool:
        """Process one inbound message; returns ``False`` at end of stream."""
        if isinstance(message, (str, bytes, bytearray)):
            data: Any = message
        else:
            msg_type = getattr(message, "type", None)
            if msg_type in _END_OF_STREAM:
                return False
            if msg_type not in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                return True
            data = message.data

        frame = decode_frame(data)
        if frame is None:
            self._logger.debug("Discarding unrecognized frame: %s", frame_preview(data))
            return True

        try:
            if isinstance(frame, AlertFrame):
                self._logger.debug("Alert frame trip_id=%s", frame.event.trip_id)
                self._on_alert(frame.event)
            else:
                self._on_position(frame.record)
        except Exception:
            self._logger.debug("Stream event callback failed", exc_info=True)
        return True
