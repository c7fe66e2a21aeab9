"""Rolling per-sensor level history for charting."""

from __future__ import annotations

import bisect
from dataclasses import replace
from datetime import datetime, timedelta
from typing import List, Mapping, Optional, Tuple

from models.records import HistoryPoint
from services.thresholds import DEFAULT_HISTORY_WINDOW, HISTORY_RETENTION, HISTORY_WINDOWS


def resolve_window(name: Optional[str]) -> timedelta:
    """Map a window label to its duration, falling back to the full retention window."""
    if name is not None and name in HISTORY_WINDOWS:
        return HISTORY_WINDOWS[name]
    return HISTORY_WINDOWS[DEFAULT_HISTORY_WINDOW]


class HistoryAggregator:
    """Keeps one point per tick, pruned to the retention window, oldest first."""

    def __init__(self, retention: timedelta = HISTORY_RETENTION) -> None:
        self.retention = retention
        self._points: List[HistoryPoint] = []

    def __len__(self) -> int:
        return len(self._points)

    def append(self, now: datetime, levels: Mapping[str, int]) -> HistoryPoint:
        point = HistoryPoint(time=now, levels=dict(levels))
        times = [existing.time for existing in self._points]
        self._points.insert(bisect.bisect_right(times, now), point)
        self.prune(now)
        return point

    def prune(self, now: datetime) -> None:
        cutoff = now - self.retention
        self._points = [point for point in self._points if point.time >= cutoff]

    def points(self) -> List[HistoryPoint]:
        return [replace(point, levels=dict(point.levels)) for point in self._points]

    def window(self, name: Optional[str] = None, now: Optional[datetime] = None) -> List[HistoryPoint]:
        if not self._points:
            return []
        reference = now if now is not None else self._points[-1].time
        cutoff = reference - resolve_window(name)
        return [
            replace(point, levels=dict(point.levels))
            for point in self._points
            if point.time >= cutoff
        ]

    def series(
        self,
        sensor_id: str,
        name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[Tuple[datetime, int]]:
        return [
            (point.time, point.levels[sensor_id])
            for point in self.window(name, now)
            if sensor_id in point.levels
        ]
