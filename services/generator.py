"""Synthetic water-level generation."""

from __future__ import annotations

import math
import random
from datetime import datetime
from typing import Optional

from models.records import Reading, Sensor
from services.thresholds import (
    BASE_INTERVAL_MS,
    FLOOD_THRESHOLD_CM,
    FLUCTUATION_RANGE_CM,
    HIGH_BAND_FLOOR_CM,
    PEAK_CM,
    RELIEF_CEIL_CM,
    RELIEF_FLOOR_CM,
    SEED_CEIL_CM,
    SEED_FLOOR_CM,
)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class ReadingGenerator:
    """Produce the next level for a sensor using a three-regime model.

    Below the high band the level drifts upward with a multiplicative trend
    plus noise. Inside the high band it performs a bounded random walk. Once
    the peak is reached a pump intervention drops it into the relief band.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        interval_ms: int = BASE_INTERVAL_MS,
    ) -> None:
        self.rng = rng or random.Random()
        self.interval_ms = interval_ms

    def seed_level(self) -> float:
        return self.rng.uniform(SEED_FLOOR_CM, SEED_CEIL_CM)

    def next_level(self, previous: float) -> int:
        if previous >= PEAK_CM:
            return self.rng.randint(RELIEF_FLOOR_CM, RELIEF_CEIL_CM)

        if previous >= HIGH_BAND_FLOOR_CM:
            delta = self.rng.uniform(-FLUCTUATION_RANGE_CM, FLUCTUATION_RANGE_CM)
            bounded = max(HIGH_BAND_FLOOR_CM, min(PEAK_CM, previous + delta))
            return round_half_up(bounded)

        trend = self.rng.uniform(1.0, 1.015)
        noise = self.rng.uniform(-6.0, 6.0)
        return round_half_up(max(0.0, min(PEAK_CM, previous * trend + noise)))

    def forecast_minutes(self, level: int, velocity: int) -> Optional[float]:
        """Minutes until the flood threshold at the current velocity, if rising below it."""
        if velocity <= 0 or level >= FLOOD_THRESHOLD_CM:
            return None
        minutes = (FLOOD_THRESHOLD_CM - level) / velocity * (self.interval_ms / 60000)
        return round_half_up(minutes * 10) / 10

    def generate(
        self,
        sensor: Sensor,
        previous_level: Optional[float],
        now: datetime,
    ) -> Reading:
        previous = previous_level if previous_level is not None else self.seed_level()
        level = self.next_level(previous)
        velocity = round_half_up(level - previous)
        return Reading(
            sensor_id=sensor.id,
            level_cm=level,
            velocity=velocity,
            forecast_time_minutes=self.forecast_minutes(level, velocity),
            created_at=now,
        )
