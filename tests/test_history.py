from __future__ import annotations

from datetime import datetime, timedelta, timezone

from services.history import HistoryAggregator, resolve_window

START = datetime(2024, 4, 1, tzinfo=timezone.utc)


def _filled(hours: int) -> HistoryAggregator:
    history = HistoryAggregator(retention=timedelta(hours=48))
    for hour in range(hours + 1):
        history.append(START + timedelta(hours=hour), {"ishim_river": 600 + hour})
    return history


def test_window_24h_returns_last_24_hours_in_ascending_order() -> None:
    history = _filled(30)
    now = START + timedelta(hours=30)

    points = history.window("24h", now)

    assert [point.time for point in points] == [
        START + timedelta(hours=hour) for hour in range(6, 31)
    ]
    assert len(history) == 31


def test_window_defaults_to_latest_point_and_unknown_name_falls_back() -> None:
    history = _filled(30)

    assert len(history.window("1h")) == 2
    assert len(history.window("6h")) == 7
    assert len(history.window("bogus")) == len(history.window("24h")) == 25
    assert resolve_window(None) == timedelta(hours=24)


def test_window_query_does_not_mutate_history() -> None:
    history = _filled(3)

    points = history.window("1h")
    points[0].levels["ishim_river"] = -1

    assert history.points()[-2].levels["ishim_river"] == 602


def test_append_prunes_points_outside_retention() -> None:
    history = HistoryAggregator()
    for hour in range(30):
        history.append(START + timedelta(hours=hour), {"zarechny": hour})

    stored = history.points()
    assert stored[0].time == START + timedelta(hours=5)
    assert stored[-1].time == START + timedelta(hours=29)
    assert all(a.time < b.time for a, b in zip(stored, stored[1:]))


def test_out_of_order_append_keeps_ascending_order() -> None:
    history = HistoryAggregator()
    history.append(START + timedelta(minutes=10), {"a": 1})
    history.append(START, {"a": 0})

    assert [point.levels["a"] for point in history.points()] == [0, 1]


def test_series_skips_points_without_sensor() -> None:
    history = HistoryAggregator()
    history.append(START, {"a": 1})
    history.append(START + timedelta(minutes=5), {"b": 2})
    history.append(START + timedelta(minutes=10), {"a": 3, "b": 4})

    assert history.series("a") == [(START, 1), (START + timedelta(minutes=10), 3)]
    assert HistoryAggregator().window("24h") == []
