"""Server-side simulation that keeps the flood table populated."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from app.schemas import WaterLevelRecord
from datastore.readings_table import MockFloodTable
from models.messages import advice_text, recommendation_prompt
from models.records import Reading
from services.chat import ChatResponder
from services.engine import TelemetryEngine, TickResult
from services.scheduler import TickScheduler
from services.thresholds import FLOOD_THRESHOLD_CM, RECOMMENDATION_INTERVAL_MS

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def describe_levels(readings: Iterable[Reading], names: dict[str, str]) -> str:
    """One ``name: level, velocity, ETA`` clause per sensor, joined by semicolons."""
    parts = []
    for reading in readings:
        eta = (
            "—"
            if reading.forecast_time_minutes is None
            else f"{reading.forecast_time_minutes:.1f} mins"
        )
        parts.append(
            f"{names.get(reading.sensor_id, reading.sensor_id)}: {reading.level_cm} cm, "
            f"velocity {reading.velocity} cm/interval, ETA {eta}"
        )
    return "; ".join(parts)


class SimulationFeeder:
    """Writes simulated ticks into the table and, with a model, periodic AI directives."""

    def __init__(
        self,
        engine: TelemetryEngine,
        table: MockFloodTable,
        interval_ms: int,
        responder: Optional[ChatResponder] = None,
        recommendation_interval_ms: int = RECOMMENDATION_INTERVAL_MS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.engine = engine
        self.table = table
        self.responder = responder
        self.clock = clock
        self.scheduler = TickScheduler(
            self.feed_once, interval_ms, speed_options=None, name="feeder"
        )
        self.recommender = TickScheduler(
            self.recommend_once,
            recommendation_interval_ms,
            speed_options=None,
            name="recommendation",
        )

    @property
    def sensor_names(self) -> dict[str, str]:
        return {sensor.id: sensor.display_name(self.engine.lang) for sensor in self.engine.sensors}

    def feed_once(self) -> TickResult:
        result = self.engine.tick(self.clock())
        for reading in result.readings:
            self.table.insert_level(
                WaterLevelRecord(
                    sensor_id=reading.sensor_id,
                    level_cm=reading.level_cm,
                    velocity=reading.velocity,
                    forecast_time_minutes=reading.forecast_time_minutes,
                    created_at=reading.created_at,
                )
            )
            if reading.level_cm > FLOOD_THRESHOLD_CM:
                logger.warning(
                    "Water level exceeds flood threshold",
                    extra={"sensor_id": reading.sensor_id, "level_cm": reading.level_cm},
                )

        names = self.sensor_names
        for event in result.advisories:
            location = names.get(event.sensor_id, event.sensor_id)
            self.table.insert_recommendation(
                advice_text(event.advice_type, location), created_at=event.created_at
            )
        return result

    def recommend_once(self) -> Optional[str]:
        """Ask the model for a directive on the latest levels and store it."""
        if self.responder is None or not self.responder.has_model:
            return None
        readings = self.engine.latest_readings()
        if not readings:
            return None

        directive = self.responder.complete(
            recommendation_prompt(describe_levels(readings, self.sensor_names))
        )
        if not directive:
            return None
        self.table.insert_recommendation(directive, created_at=self.clock())
        logger.info("AI recommendation stored", extra={"status": "generated"})
        return directive

    def start(self) -> None:
        self.scheduler.start()
        if self.responder is not None and self.responder.has_model:
            self.recommender.start()

    def stop(self) -> None:
        self.recommender.stop()
        self.scheduler.stop()
