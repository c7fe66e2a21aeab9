from __future__ import annotations

import random
from typing import Callable, Dict, List, Sequence

import pytest

from models.records import Sensor
from services.engine import TelemetryEngine
from services.generator import ReadingGenerator


class ScriptedGenerator(ReadingGenerator):
    """Generator whose levels come from a fixed script per sensor."""

    def __init__(self, script: Dict[str, Sequence[int]]) -> None:
        super().__init__(random.Random(0))
        self._script = {sensor_id: list(levels) for sensor_id, levels in script.items()}
        self._current: str | None = None

    def generate(self, sensor, previous_level, now):  # type: ignore[override]
        self._current = sensor.id
        return super().generate(sensor, previous_level, now)

    def next_level(self, previous: float) -> int:
        assert self._current is not None
        return self._script[self._current].pop(0)


@pytest.fixture
def river() -> Sensor:
    return Sensor(id="ishim_river", name_kz="Есіл өзені", name_ru="Река Ишим", lat=54.885, lng=69.112)


@pytest.fixture
def scripted_engine(river: Sensor) -> Callable[[List[int]], TelemetryEngine]:
    def factory(levels: List[int]) -> TelemetryEngine:
        return TelemetryEngine(
            sensors=[river],
            rng=random.Random(7),
            lang="ru",
            generator=ScriptedGenerator({river.id: levels}),
        )

    return factory

