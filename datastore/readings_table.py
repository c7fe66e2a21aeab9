from __future__ import annotations
import json
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, List, Optional

from app.schemas import AiRecommendation, ChatRule, SensorRecord, WaterLevelRecord
from models.sensors import KEY_SENSORS
from services.thresholds import (
    HISTORY_RETENTION,
    MAX_LEVELS_PER_SENSOR,
    MAX_STORED_RECOMMENDATIONS,
)
from settings import get_settings


class MockFloodTable:
    """In-memory stand-in for the hosted flood database, optionally mirrored to JSON."""

    def __init__(
        self,
        name: str,
        persistence_path: Optional[Path] = None,
        retention: timedelta = HISTORY_RETENTION,
        max_levels_per_sensor: int = MAX_LEVELS_PER_SENSOR,
        max_recommendations: int = MAX_STORED_RECOMMENDATIONS,
    ) -> None:
        self.name = name
        self.retention = retention
        self.max_levels_per_sensor = max_levels_per_sensor
        self.max_recommendations = max_recommendations
        self._sensors: Dict[str, SensorRecord] = {}
        self._levels: List[WaterLevelRecord] = []
        self._recommendations: List[AiRecommendation] = []
        self._chat_rules: List[ChatRule] = []
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put_sensor(self, sensor: SensorRecord) -> None:
        with self._lock:
            self._sensors[sensor.id] = sensor.model_copy(deep=True)
            self._persist()

    def list_sensors(self) -> list[SensorRecord]:
        with self._lock:
            return [
                self._sensors[key].model_copy(deep=True) for key in sorted(self._sensors)
            ]

    def insert_level(self, record: WaterLevelRecord) -> None:
        with self._lock:
            self._levels.append(record.model_copy(deep=True))
            self._prune_levels(record.created_at)
            self._persist()

    def _prune_levels(self, reference: datetime) -> None:
        """Drop rows older than the retention window and beyond the per-sensor cap."""
        cutoff = reference - self.retention
        kept: List[WaterLevelRecord] = []
        counts: Dict[str, int] = {}
        for row in sorted(self._levels, key=lambda item: item.created_at, reverse=True):
            if row.created_at < cutoff:
                continue
            count = counts.get(row.sensor_id, 0)
            if count >= self.max_levels_per_sensor:
                continue
            counts[row.sensor_id] = count + 1
            kept.append(row)
        kept.reverse()
        self._levels = kept

    def scan_levels(self, min_level: Optional[float] = None) -> list[WaterLevelRecord]:
        """Return stored levels newest first, optionally only those at or above ``min_level``."""

        with self._lock:
            rows = [
                row.model_copy(deep=True)
                for row in self._levels
                if min_level is None or (row.level_cm is not None and row.level_cm >= min_level)
            ]
        rows.sort(key=lambda row: row.created_at, reverse=True)
        return rows

    def latest_levels(self, min_level: Optional[float] = None) -> list[WaterLevelRecord]:
        seen: set[str] = set()
        latest: list[WaterLevelRecord] = []
        for row in self.scan_levels(min_level):
            if row.sensor_id in seen:
                continue
            seen.add(row.sensor_id)
            latest.append(row)
        return latest

    def insert_recommendation(
        self, advice_text: str, created_at: Optional[datetime] = None
    ) -> AiRecommendation:
        with self._lock:
            next_id = max((item.id for item in self._recommendations), default=0) + 1
            record = AiRecommendation(
                id=next_id,
                advice_text=advice_text,
                created_at=created_at or datetime.now(timezone.utc),
            )
            self._recommendations.append(record)
            del self._recommendations[: -self.max_recommendations]
            self._persist()
            return record.model_copy(deep=True)

    def recent_recommendations(self, limit: int) -> list[AiRecommendation]:
        with self._lock:
            rows = [item.model_copy(deep=True) for item in self._recommendations]
        rows.sort(key=lambda item: item.created_at, reverse=True)
        return rows[:limit]

    def put_chat_rule(self, rule: ChatRule) -> None:
        with self._lock:
            self._chat_rules.append(rule.model_copy(deep=True))
            self._persist()

    def chat_rules(self) -> list[ChatRule]:
        with self._lock:
            return [rule.model_copy(deep=True) for rule in self._chat_rules]

    def seed_sensors(self, sensors: Iterable[SensorRecord]) -> None:
        with self._lock:
            for sensor in sensors:
                self._sensors.setdefault(sensor.id, sensor.model_copy(deep=True))
            self._persist()

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            "sensors": [item.model_dump(mode="json") for item in self._sensors.values()],
            "water_levels": [item.model_dump(mode="json") for item in self._levels],
            "ai_recommendations": [
                item.model_dump(mode="json") for item in self._recommendations
            ],
            "chat_responses": [item.model_dump(mode="json") for item in self._chat_rules],
        }
        self.persistence_path.parent.mkdir(parents=True, exist_ok=True)
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = {}

        for payload in data.get("sensors", []):
            sensor = SensorRecord.model_validate(payload)
            self._sensors[sensor.id] = sensor
        self._levels = [
            WaterLevelRecord.model_validate(payload) for payload in data.get("water_levels", [])
        ]
        self._recommendations = [
            AiRecommendation.model_validate(payload)
            for payload in data.get("ai_recommendations", [])
        ]
        self._chat_rules = [
            ChatRule.model_validate(payload) for payload in data.get("chat_responses", [])
        ]


def default_sensor_records(lang: str = "kz") -> list[SensorRecord]:
    return [
        SensorRecord(id=sensor.id, name=sensor.display_name(lang), lat=sensor.lat, lng=sensor.lng)
        for sensor in KEY_SENSORS
    ]


@lru_cache
def build_default_table(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> MockFloodTable:
    settings = get_settings()
    table_name = "flood" if name is None else name
    table_path = settings.table_persistence_path if path is None else path
    persistence = Path(table_path) if table_path else None
    table = MockFloodTable(name=table_name, persistence_path=persistence)
    table.seed_sensors(default_sensor_records(settings.lang))
    return table
