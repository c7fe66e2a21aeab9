"""Rule-based advisories derived from level transitions."""

from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Iterable, List, Mapping, Optional

from models.messages import ADVICE_VARIANTS
from models.records import AdvisoryEvent, Reading
from services.thresholds import ADVISORY_CAP, CRITICAL_THRESHOLD_CM, WARNING_FLOOR_CM

logger = logging.getLogger(__name__)


class AdvisoryEngine:
    """Turns each batch of readings into advisories and keeps the newest ones.

    Critical advisories are edge-triggered: one on entry above the critical
    threshold, none while the level stays there. Warning advisories repeat on
    every tick inside the warning band. The first batch after start-up is only
    used to establish previous levels and never produces advisories.
    """

    def __init__(self, rng: Optional[random.Random] = None, cap: int = ADVISORY_CAP) -> None:
        self.rng = rng or random.Random()
        self.cap = cap
        self._events: List[AdvisoryEvent] = []
        self._primed = False

    @property
    def events(self) -> List[AdvisoryEvent]:
        return list(self._events)

    def _variant(self, category: str) -> str:
        return f"{category}_{self.rng.randrange(ADVICE_VARIANTS[category])}"

    def evaluate(self, reading: Reading, previous_level: Optional[int]) -> Optional[str]:
        level = reading.level_cm

        if level > CRITICAL_THRESHOLD_CM:
            if previous_level is None or previous_level <= CRITICAL_THRESHOLD_CM:
                return self._variant("critical")
            return None

        if level >= WARNING_FLOOR_CM:
            return self._variant("warning")

        rising = previous_level is not None and level > previous_level
        if rising and reading.velocity > 0:
            return self._variant("rising")

        return None

    def process(
        self,
        readings: Iterable[Reading],
        previous_levels: Mapping[str, int],
        now: datetime,
    ) -> List[AdvisoryEvent]:
        cold_start = not self._primed
        self._primed = True

        created: List[AdvisoryEvent] = []
        stamp = int(now.timestamp() * 1000)
        for reading in readings:
            advice_type = self.evaluate(reading, previous_levels.get(reading.sensor_id))
            if advice_type is None or cold_start:
                continue
            event = AdvisoryEvent(
                id=f"{reading.sensor_id}-{stamp}-{len(created)}",
                sensor_id=reading.sensor_id,
                advice_type=advice_type,
                created_at=now,
            )
            created.append(event)
            logger.debug(
                "Advisory issued",
                extra={
                    "sensor_id": reading.sensor_id,
                    "level_cm": reading.level_cm,
                    "advice_type": advice_type,
                },
            )

        if created:
            merged = created + self._events
            merged.sort(key=lambda event: event.created_at, reverse=True)
            self._events = merged[: self.cap]
        return created
