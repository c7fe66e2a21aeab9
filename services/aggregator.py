"""Dashboard analytics derived from the current water levels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from app.schemas import WaterLevel
from services.thresholds import CRITICAL_THRESHOLD_CM, WARNING_FLOOR_CM


@dataclass
class DashboardSummary:
    """Headline figures for the status panel."""

    sensor_count: int = 0
    critical_count: int = 0
    max_level: Optional[float] = None
    status: str = "unknown"
    time_to_impact: Optional[float] = None
    rising_velocity: Optional[float] = None


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def summarize(self, levels: Iterable[WaterLevel]) -> DashboardSummary:
        summary = DashboardSummary()
        velocity_peak = 0.0

        for level in levels:
            summary.sensor_count += 1
            value = level.level_cm or 0.0

            if value > CRITICAL_THRESHOLD_CM:
                summary.critical_count += 1
            if summary.max_level is None or value > summary.max_level:
                summary.max_level = value

            forecast = level.forecast_time_minutes
            if forecast is not None and forecast > 0:
                if summary.time_to_impact is None or forecast < summary.time_to_impact:
                    summary.time_to_impact = forecast

            velocity_peak = max(velocity_peak, level.velocity or 0.0)

        if summary.sensor_count:
            summary.rising_velocity = velocity_peak
            summary.status = self.classify(summary.max_level)

        return summary

    @staticmethod
    def classify(level: Optional[float]) -> str:
        if level is None:
            return "unknown"
        if level > CRITICAL_THRESHOLD_CM:
            return "critical"
        if level >= WARNING_FLOOR_CM:
            return "warning"
        return "stable"
