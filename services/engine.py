"""Simulated telemetry engine: one tick produces readings, history, advisories and alerts."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from threading import Lock
from typing import Dict, Iterable, List, Optional, Sequence

from app.schemas import WaterLevel
from models.records import AdvisoryEvent, AlertNotification, HistoryPoint, Reading, Sensor
from models.sensors import KEY_SENSORS
from services.advisory import AdvisoryEngine
from services.aggregator import Aggregator, DashboardSummary
from services.alerts import AlertThrottler
from services.generator import ReadingGenerator
from services.history import HistoryAggregator
from services.thresholds import BASE_INTERVAL_MS, STREAM_LOG_CAP
from settings import get_settings


@dataclass
class TickResult:
    """Everything a single tick changed."""

    readings: List[Reading]
    advisories: List[AdvisoryEvent]
    alerts: List[AlertNotification]
    history_point: HistoryPoint
    log_lines: List[str] = field(default_factory=list)


def format_log_line(reading: Reading, name: str) -> str:
    eta = (
        f"{reading.forecast_time_minutes} min"
        if reading.forecast_time_minutes is not None
        else "—"
    )
    stamp = reading.created_at.strftime("%H:%M:%S")
    return (
        f"[{stamp}] {name} | {reading.level_cm} cm | "
        f"vel: {reading.velocity} cm/5s | ETA: {eta}"
    )


class TelemetryEngine:
    """Owns the per-sensor simulation state for one dashboard session."""

    def __init__(
        self,
        sensors: Sequence[Sensor] = KEY_SENSORS,
        rng: Optional[random.Random] = None,
        lang: str = "kz",
        interval_ms: int = BASE_INTERVAL_MS,
        generator: Optional[ReadingGenerator] = None,
        history: Optional[HistoryAggregator] = None,
        advisory: Optional[AdvisoryEngine] = None,
        throttler: Optional[AlertThrottler] = None,
        aggregator: Optional[Aggregator] = None,
    ) -> None:
        self.sensors = tuple(sensors)
        self.lang = lang
        self.rng = rng or random.Random()
        self.generator = generator or ReadingGenerator(self.rng, interval_ms)
        self.history = history or HistoryAggregator()
        self.advisory = advisory or AdvisoryEngine(self.rng)
        self.throttler = throttler or AlertThrottler()
        self.aggregator = aggregator or Aggregator()
        self._latest: Dict[str, Reading] = {}
        self._remote: Dict[str, WaterLevel] = {}
        self._stream_log: List[str] = []
        self._lock = Lock()

    def _name(self, sensor_id: str) -> str:
        for sensor in self.sensors:
            if sensor.id == sensor_id:
                return sensor.display_name(self.lang)
        remote = self._remote.get(sensor_id)
        if remote is not None and remote.name:
            return remote.name
        return sensor_id

    def tick(self, now: datetime) -> TickResult:
        with self._lock:
            previous_levels = {
                sensor_id: reading.level_cm for sensor_id, reading in self._latest.items()
            }
            readings = [
                self.generator.generate(sensor, previous_levels.get(sensor.id), now)
                for sensor in self.sensors
            ]

            advisories = self.advisory.process(readings, previous_levels, now)

            for reading in readings:
                self._latest[reading.sensor_id] = reading

            point = self.history.append(
                now, {reading.sensor_id: reading.level_cm for reading in readings}
            )

            alerts: List[AlertNotification] = []
            self.throttler.expire(now)
            for level in self._merged_levels():
                if level.level_cm is None:
                    continue
                alert = self.throttler.observe(
                    level.sensor_id,
                    self._name(level.sensor_id),
                    round(level.level_cm),
                    now,
                )
                if alert is not None:
                    alerts.append(alert)

            lines = [format_log_line(reading, self._name(reading.sensor_id)) for reading in readings]
            lines.reverse()
            self._stream_log = (lines + self._stream_log)[:STREAM_LOG_CAP]

        return TickResult(
            readings=readings,
            advisories=advisories,
            alerts=alerts,
            history_point=point,
            log_lines=lines,
        )

    def merge_remote(self, levels: Iterable[WaterLevel]) -> None:
        """Replace the provider levels; simulated readings still take precedence."""
        with self._lock:
            self._remote = {level.sensor_id: level for level in levels}

    def _to_water_level(self, reading: Reading) -> WaterLevel:
        sensor = next((item for item in self.sensors if item.id == reading.sensor_id), None)
        return WaterLevel(
            sensor_id=reading.sensor_id,
            level_cm=reading.level_cm,
            velocity=reading.velocity,
            forecast_time_minutes=reading.forecast_time_minutes,
            created_at=reading.created_at,
            name=self._name(reading.sensor_id),
            lat=sensor.lat if sensor else None,
            lng=sensor.lng if sensor else None,
            simulated=True,
        )

    def _merged_levels(self) -> List[WaterLevel]:
        merged: Dict[str, WaterLevel] = dict(self._remote)
        for sensor_id, reading in self._latest.items():
            merged[sensor_id] = self._to_water_level(reading)
        return list(merged.values())

    def merged_levels(self) -> List[WaterLevel]:
        with self._lock:
            return self._merged_levels()

    def latest_readings(self) -> List[Reading]:
        with self._lock:
            return list(self._latest.values())

    def history_window(self, name: Optional[str] = None, now: Optional[datetime] = None) -> List[HistoryPoint]:
        with self._lock:
            return self.history.window(name, now)

    def advisories(self) -> List[AdvisoryEvent]:
        with self._lock:
            return self.advisory.events

    def active_alerts(self, now: Optional[datetime] = None) -> List[AlertNotification]:
        with self._lock:
            return self.throttler.active(now)

    def dismiss_alert(self, alert_id: str) -> bool:
        with self._lock:
            return self.throttler.dismiss(alert_id)

    def stream_log(self) -> List[str]:
        with self._lock:
            return list(self._stream_log)

    def summary(self) -> DashboardSummary:
        with self._lock:
            return self.aggregator.summarize(self._merged_levels())


@lru_cache
def build_default_engine(seed: Optional[int] = None) -> TelemetryEngine:
    """Factory that wires the engine from environment settings."""
    settings = get_settings()
    chosen_seed = settings.random_seed if seed is None else seed
    return TelemetryEngine(
        sensors=KEY_SENSORS,
        rng=random.Random(chosen_seed),
        lang=settings.lang,
        interval_ms=settings.tick_interval_ms,
    )
