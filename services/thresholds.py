"""Water-level thresholds and timing constants shared by the engine and the API."""

from __future__ import annotations

from datetime import timedelta

CRITICAL_THRESHOLD_CM = 700
WARNING_FLOOR_CM = 650
FLOOD_THRESHOLD_CM = 800
HIGH_BAND_FLOOR_CM = 800
PEAK_CM = 900
RELIEF_FLOOR_CM = 820
RELIEF_CEIL_CM = 850
FLUCTUATION_RANGE_CM = 15
SEED_FLOOR_CM = 620
SEED_CEIL_CM = 700

ALERT_STEP_CM = 50
ALERT_TTL = timedelta(milliseconds=6000)
DEFAULT_ALERTS_THRESHOLD_CM = 750

BASE_INTERVAL_MS = 5000
MIN_INTERVAL_MS = 50
POLL_INTERVAL_MS = 15000
RECOMMENDATION_INTERVAL_MS = 30000
SPEED_OPTIONS = (1, 10, 50)

HISTORY_RETENTION = timedelta(hours=24)
HISTORY_WINDOWS = {
    "1h": timedelta(hours=1),
    "6h": timedelta(hours=6),
    "12h": timedelta(hours=12),
    "24h": timedelta(hours=24),
}
DEFAULT_HISTORY_WINDOW = "24h"

ADVISORY_CAP = 15
STREAM_LOG_CAP = 24
MAX_LEVELS_PER_SENSOR = 720
MAX_STORED_RECOMMENDATIONS = 500
