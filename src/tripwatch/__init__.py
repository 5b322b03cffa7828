"""tripwatch - Async client for live trip tracking and operator alerts."""

from importlib.metadata import PackageNotFoundError, version

from tripwatch.alerts import (
    AlertPresentationController,
    BannerPresenter,
    CommandSoundPlayer,
    LoggingBannerPresenter,
    SineToneSynthesizer,
)
from tripwatch.client import TrackingClient
from tripwatch.config import TripwatchConfig
from tripwatch.exceptions import (
    TripwatchConfigError,
    TripwatchError,
    TripwatchPlaybackError,
    TripwatchStorageError,
    TripwatchTransportError,
)
from tripwatch.ingestion.frames import AlertFrame, PositionFrame, decode_frame
from tripwatch.models import AlertEvent, Banner, LinkState, PositionRecord
from tripwatch.state.notifier import AlertCountView, CounterNotifier
from tripwatch.state.storage import AlertCounterStore, JsonFileStorage, KeyValueStorage, MemoryStorage
from tripwatch.state.store import LocationStore

try:
    __version__ = version("tripwatch")
except PackageNotFoundError:
    __version__ = "0+local"

__all__ = [
    "__version__",
    "AlertCountView",
    "AlertCounterStore",
    "AlertEvent",
    "AlertFrame",
    "AlertPresentationController",
    "Banner",
    "BannerPresenter",
    "CommandSoundPlayer",
    "CounterNotifier",
    "JsonFileStorage",
    "KeyValueStorage",
    "LinkState",
    "LocationStore",
    "LoggingBannerPresenter",
    "MemoryStorage",
    "PositionFrame",
    "PositionRecord",
    "SineToneSynthesizer",
    "TrackingClient",
    "TripwatchConfig",
    "TripwatchConfigError",
    "TripwatchError",
    "TripwatchPlaybackError",
    "TripwatchStorageError",
    "TripwatchTransportError",
    "decode_frame",
]
