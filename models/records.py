"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional


@dataclass(frozen=True, slots=True)
class Sensor:
    """A water-level sensor at a fixed location."""

    id: str
    name_kz: str
    name_ru: str
    lat: float
    lng: float

    def display_name(self, lang: str) -> str:
        return self.name_ru if lang == "ru" else self.name_kz


@dataclass(frozen=True, slots=True)
class Reading:
    """One generated sample for a sensor."""

    sensor_id: str
    level_cm: int
    velocity: int
    forecast_time_minutes: Optional[float]
    created_at: datetime


@dataclass(slots=True)
class HistoryPoint:
    """Per-sensor level snapshot taken at a single tick."""

    time: datetime
    levels: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class AdvisoryEvent:
    """A rule-derived recommendation tied to a sensor."""

    id: str
    sensor_id: str
    advice_type: str
    created_at: datetime

    @property
    def category(self) -> str:
        return self.advice_type.rsplit("_", 1)[0]


@dataclass(frozen=True, slots=True)
class AlertNotification:
    """A short-lived critical-level toast."""

    id: str
    sensor_id: str
    level_cm: int
    milestone: int
    message: str
    created_at: datetime
    ttl: timedelta

    @property
    def expires_at(self) -> datetime:
        return self.created_at + self.ttl

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
