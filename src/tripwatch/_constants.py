"""Internal constants shared across the library."""

TRACKING_BASE_URL = "http://localhost:8087"
STREAM_PATH = "/ws/locations"
LOCATIONS_PATH = "/locations"

#: Seconds between a stream close and the next connection attempt.
RECONNECT_DELAY_SECONDS = 2.0
#: Seconds an alert banner stays up unless dismissed or acted upon.
BANNER_TIMEOUT_SECONDS = 6.0

DEFAULT_ALERT_MESSAGE = "Trip requires manual assignment"
DEFAULT_SOUND_PATH = "alert.wav"

# ------------------------------------------------------------------
# Durable storage keys
# ------------------------------------------------------------------

ALERT_COUNT_KEY = "alert_count"
SOUND_ENABLED_KEY = "sound_enabled"
STORAGE_KEYS: frozenset[str] = frozenset({ALERT_COUNT_KEY, SOUND_ENABLED_KEY})

#: Name of the in-process broadcast carrying alert counter changes.
ALERT_SIGNAL = "alert:new"

# ------------------------------------------------------------------
# Fallback tone (played when the alert sound cannot be played)
# ------------------------------------------------------------------

TONE_FREQUENCY_HZ = 880.0
TONE_GAIN = 0.05
TONE_DURATION_SECONDS = 0.2
TONE_SAMPLE_RATE = 22050
