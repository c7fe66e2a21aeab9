"""Unit tests for the mocked hosted flood table."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

from app.schemas import ChatRule, SensorRecord, WaterLevelRecord
from datastore.readings_table import MockFloodTable, default_sensor_records

START = datetime(2024, 4, 1, tzinfo=timezone.utc)


def _level(sensor_id: str, level: float, minutes: int) -> WaterLevelRecord:
    return WaterLevelRecord(
        sensor_id=sensor_id,
        level_cm=level,
        velocity=1.0,
        forecast_time_minutes=None,
        created_at=START + timedelta(minutes=minutes),
    )


def test_latest_levels_keep_newest_row_per_sensor() -> None:
    table = MockFloodTable(name="flood")
    table.insert_level(_level("a", 600, 0))
    table.insert_level(_level("a", 650, 5))
    table.insert_level(_level("b", 760, 1))

    latest = table.latest_levels()

    assert [(row.sensor_id, row.level_cm) for row in latest] == [("a", 650), ("b", 760)]
    assert [row.sensor_id for row in table.latest_levels(min_level=750)] == ["b"]


def test_returned_rows_are_deep_copies() -> None:
    table = MockFloodTable(name="flood")
    table.put_sensor(SensorRecord(id="a", name="A", lat=1.0, lng=2.0))

    fetched = table.list_sensors()[0]
    fetched.name = "changed"

    assert table.list_sensors()[0].name == "A"


def test_seed_sensors_does_not_overwrite_existing() -> None:
    table = MockFloodTable(name="flood")
    table.put_sensor(SensorRecord(id="zarechny", name="custom"))

    table.seed_sensors(default_sensor_records("ru"))

    names = {sensor.id: sensor.name for sensor in table.list_sensors()}
    assert names["zarechny"] == "custom"
    assert names["ishim_river"] == "Река Ишим"


def test_recommendations_get_sequential_ids_newest_first() -> None:
    table = MockFloodTable(name="flood")
    first = table.insert_recommendation("first", created_at=START)
    second = table.insert_recommendation("second", created_at=START + timedelta(minutes=1))

    assert (first.id, second.id) == (1, 2)
    assert [item.advice_text for item in table.recent_recommendations(5)] == ["second", "first"]
    assert len(table.recent_recommendations(1)) == 1


def test_persists_to_disk_and_reloads(tmp_path) -> None:
    path = tmp_path / "flood_db.json"
    table = MockFloodTable(name="flood", persistence_path=path)
    table.put_sensor(SensorRecord(id="a", name="A", lat=1.0, lng=2.0))
    table.insert_level(_level("a", 705, 0))
    table.insert_recommendation("Evacuate", created_at=START)
    table.put_chat_rule(ChatRule(keywords="pump, насос", reply="Pumps are running."))

    payload = json.loads(path.read_text())
    assert payload["water_levels"][0]["level_cm"] == 705

    reloaded = MockFloodTable(name="flood", persistence_path=path)
    assert reloaded.list_sensors() == table.list_sensors()
    assert reloaded.latest_levels() == table.latest_levels()
    assert reloaded.recent_recommendations(10)[0].advice_text == "Evacuate"
    assert reloaded.chat_rules()[0].keyword_list() == ["pump", "насос"]


def test_corrupt_persistence_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "flood_db.json"
    path.write_text("{not json")

    table = MockFloodTable(name="flood", persistence_path=path)

    assert table.list_sensors() == []


def test_levels_are_capped_per_sensor_keeping_newest() -> None:
    table = MockFloodTable(name="flood", max_levels_per_sensor=3)
    for minute in range(5):
        table.insert_level(_level("a", 600 + minute, minute))
    table.insert_level(_level("b", 700, 5))

    rows = table.scan_levels()

    assert [row.level_cm for row in rows if row.sensor_id == "a"] == [604, 603, 602]
    assert [row.sensor_id for row in rows].count("b") == 1


def test_levels_older_than_retention_are_pruned() -> None:
    table = MockFloodTable(name="flood", retention=timedelta(minutes=10))
    table.insert_level(_level("a", 600, 0))
    table.insert_level(_level("b", 610, 5))
    table.insert_level(_level("a", 620, 12))

    rows = table.scan_levels()

    assert [(row.sensor_id, row.level_cm) for row in rows] == [("a", 620), ("b", 610)]


def test_recommendations_keep_only_newest_rows() -> None:
    table = MockFloodTable(name="flood", max_recommendations=2)
    for index in range(4):
        table.insert_recommendation(f"advice {index}", created_at=START + timedelta(minutes=index))

    kept = table.recent_recommendations(10)

    assert [item.advice_text for item in kept] == ["advice 3", "advice 2"]
    assert kept[0].id == 4
