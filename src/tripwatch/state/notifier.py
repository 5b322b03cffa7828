"""In-process broadcast of alert counter changes.

Any number of views may hold a cached copy of the unacknowledged alert
count. The notifier tells them when it changed so nobody has to re-read
storage on a timer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from tripwatch._constants import ALERT_SIGNAL
from tripwatch.state.storage import AlertCounterStore

_logger = logging.getLogger(__name__)

CountListener = Callable[[int | None], None]


class CounterNotifier:
    """Deliver the ``alert:new`` signal to every live subscriber.

    Delivery is synchronous and follows subscription order. The payload is
    the new count when the publisher knows it, otherwise ``None``.
    """

    signal: str = ALERT_SIGNAL

    def __init__(self) -> None:
        self._listeners: list[CountListener] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: CountListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def publish(self, count: int | None = None, *, origin: CountListener | None = None) -> None:
        """Broadcast a change to all subscribers except *origin*."""
        for listener in list(self._listeners):
            if origin is not None and listener == origin:
                continue
            try:
                listener(count)
            except Exception:
                _logger.debug("%s listener failed", self.signal, exc_info=True)


_DEFAULT_NOTIFIER = CounterNotifier()


def default_notifier() -> CounterNotifier:
    """Process-wide notifier shared by clients that are given none."""
    return _DEFAULT_NOTIFIER


class AlertCountView:
    """A view's cached copy of the alert count (e.g. a header badge).

    The cache is refreshed from the notifier. A signal without a usable
    count makes the view re-read the durable store instead of trusting
    the payload. The sound flag is not cached; it is read from the store.
    """

    def __init__(
        self,
        counter: AlertCounterStore,
        notifier: CounterNotifier,
        *,
        on_change: Callable[[int], None] | None = None,
    ) -> None:
        self._counter = counter
        self._notifier = notifier
        self._on_change = on_change
        self._count = counter.get_alert_count()
        self._unsubscribe: Callable[[], None] | None = notifier.subscribe(self._on_signal)

    @property
    def count(self) -> int:
        return self._count

    @property
    def sound_enabled(self) -> bool:
        return self._counter.get_sound_enabled()

    def _set_count(self, count: int) -> None:
        self._count = count
        if self._on_change is not None:
            self._on_change(count)

    def _on_signal(self, count: int | None) -> None:
        if isinstance(count, int) and not isinstance(count, bool) and count >= 0:
            self._set_count(count)
        else:
            self._set_count(self._counter.get_alert_count())

    def acknowledge(self) -> None:
        """Mark all alerts as seen and tell the other views."""
        self._counter.set_alert_count(0)
        self._set_count(0)
        self._notifier.publish(0, origin=self._on_signal)

    def toggle_sound(self) -> bool:
        enabled = not self._counter.get_sound_enabled()
        self._counter.set_sound_enabled(enabled)
        return enabled

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
