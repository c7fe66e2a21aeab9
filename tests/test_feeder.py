from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import List

from datastore.readings_table import MockFloodTable
from models.records import Reading
from services.chat import ChatResponder
from services.feeder import SimulationFeeder, describe_levels

START = datetime(2024, 4, 1, 6, 0, tzinfo=timezone.utc)


def _clock(step_seconds: int = 5):
    ticks = iter(range(1000))

    def clock() -> datetime:
        return START + timedelta(seconds=step_seconds * next(ticks))

    return clock


def test_feed_once_writes_levels_and_recommendations(scripted_engine) -> None:
    table = MockFloodTable(name="feeder")
    feeder = SimulationFeeder(scripted_engine([660, 665]), table, interval_ms=5000, clock=_clock())

    first = feeder.feed_once()
    second = feeder.feed_once()

    assert first.advisories == []
    assert len(second.advisories) == 1
    levels = table.scan_levels()
    assert [row.level_cm for row in levels] == [665, 660]
    assert levels[0].velocity == 5
    recommendations = table.recent_recommendations(10)
    assert len(recommendations) == 1
    assert recommendations[0].advice_text.startswith("Река Ишим:")
    assert recommendations[0].created_at == START + timedelta(seconds=5)


def test_levels_above_flood_threshold_are_logged(scripted_engine, caplog) -> None:
    table = MockFloodTable(name="feeder")
    feeder = SimulationFeeder(scripted_engine([810]), table, interval_ms=5000, clock=_clock())

    feeder.feed_once()

    assert "Water level exceeds flood threshold" in caplog.text
    assert table.latest_levels(min_level=800)[0].sensor_id == "ishim_river"


def test_feeder_scheduler_uses_configured_interval(scripted_engine) -> None:
    feeder = SimulationFeeder(scripted_engine([]), MockFloodTable(name="feeder"), interval_ms=2000)

    assert feeder.scheduler.interval_ms == 2000
    assert feeder.scheduler.running is False


class DirectiveModels:
    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.prompts: List[str] = []

    def generate_content(self, model: str, contents: str) -> SimpleNamespace:
        self.prompts.append(contents)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def _feeder_with_model(engine, models: DirectiveModels | None) -> SimulationFeeder:
    table = MockFloodTable(name="feeder")
    client = SimpleNamespace(models=models) if models is not None else None
    responder = ChatResponder(table, model_client=client, model_name="test-model")
    return SimulationFeeder(engine, table, interval_ms=5000, responder=responder, clock=_clock())


def test_recommend_once_stores_trimmed_directive(scripted_engine) -> None:
    models = DirectiveModels(text="  Deploy pumps to Zarechny now.\n")
    feeder = _feeder_with_model(scripted_engine([760]), models)
    feeder.feed_once()

    directive = feeder.recommend_once()

    assert directive == "Deploy pumps to Zarechny now."
    assert feeder.table.recent_recommendations(1)[0].advice_text == directive
    assert "Река Ишим: 760 cm" in models.prompts[0]
    assert "tactical directive for MCHS" in models.prompts[0]


def test_recommend_once_skips_without_model_or_data(scripted_engine) -> None:
    without_model = _feeder_with_model(scripted_engine([700]), None)
    without_model.feed_once()
    models = DirectiveModels(text="Hold position.")
    without_data = _feeder_with_model(scripted_engine([]), models)

    assert without_model.recommend_once() is None
    assert without_data.recommend_once() is None
    assert models.prompts == []
    assert without_model.table.recent_recommendations(10) == []


def test_model_errors_are_logged_and_nothing_is_stored(scripted_engine, caplog) -> None:
    feeder = _feeder_with_model(scripted_engine([700]), DirectiveModels(error=RuntimeError("quota")))
    feeder.feed_once()

    assert feeder.recommend_once() is None
    assert "Model request failed" in caplog.text
    assert feeder.table.recent_recommendations(10) == []


def test_describe_levels_marks_missing_forecast(river) -> None:
    reading = Reading(
        sensor_id=river.id, level_cm=810, velocity=-3, forecast_time_minutes=None, created_at=START
    )

    assert describe_levels([reading], {river.id: "Есіл өзені"}) == (
        "Есіл өзені: 810 cm, velocity -3 cm/interval, ETA —"
    )
