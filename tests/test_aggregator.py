"""Unit tests for the dashboard summary."""

from __future__ import annotations

from typing import Optional

from app.schemas import WaterLevel
from services.aggregator import Aggregator


def _level(
    sensor_id: str,
    level: float,
    velocity: Optional[float] = None,
    forecast: Optional[float] = None,
) -> WaterLevel:
    """Helper to build deterministic water levels."""

    return WaterLevel(
        sensor_id=sensor_id,
        level_cm=level,
        velocity=velocity,
        forecast_time_minutes=forecast,
    )


def test_summarize_empty_iterable_returns_default_summary() -> None:
    aggregator = Aggregator()

    summary = aggregator.summarize([])

    assert summary.sensor_count == 0
    assert summary.critical_count == 0
    assert summary.max_level is None
    assert summary.status == "unknown"
    assert summary.time_to_impact is None
    assert summary.rising_velocity is None


def test_summarize_computes_statistics() -> None:
    aggregator = Aggregator()
    levels = [
        _level("lake_pestroye", 701.0, velocity=-3),
        _level("ishim_river", 640.0, velocity=6, forecast=13.3),
        _level("zarechny", 690.0, velocity=2, forecast=9.2),
    ]

    summary = aggregator.summarize(levels)

    assert summary.sensor_count == 3
    assert summary.critical_count == 1
    assert summary.max_level == 701.0
    assert summary.status == "critical"
    assert summary.time_to_impact == 9.2
    assert summary.rising_velocity == 6


def test_rising_velocity_is_never_negative() -> None:
    summary = Aggregator().summarize([_level("a", 600.0, velocity=-8)])

    assert summary.rising_velocity == 0
    assert summary.status == "stable"


def test_classify_boundaries() -> None:
    assert Aggregator.classify(700) == "warning"
    assert Aggregator.classify(650) == "warning"
    assert Aggregator.classify(649) == "stable"
    assert Aggregator.classify(700.5) == "critical"
