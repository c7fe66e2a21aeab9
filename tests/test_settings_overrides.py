from __future__ import annotations

from typing import Iterable

from datastore.readings_table import build_default_table
from services.chat import build_default_responder
from services.engine import build_default_engine
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


CACHES = (get_settings, build_default_table, build_default_engine, build_default_responder)


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    table_path = tmp_path / "db.json"

    monkeypatch.setenv("FLOOD_TICK_INTERVAL_MS", "1000")
    monkeypatch.setenv("FLOOD_SIMULATION_SPEED", "10")
    monkeypatch.setenv("FLOOD_RECOMMENDATION_INTERVAL_MS", "60000")
    monkeypatch.setenv("FLOOD_LANG", "RU")
    monkeypatch.setenv("FLOOD_RANDOM_SEED", "42")
    monkeypatch.setenv("FLOOD_TABLE_PERSISTENCE_PATH", str(table_path))
    monkeypatch.setenv("FLOOD_FEEDER_ENABLED", "yes")
    monkeypatch.setenv("GEMINI_MODEL", "custom-model")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    _clear_caches(CACHES)

    try:
        settings = get_settings()
        table = build_default_table()
        engine = build_default_engine()
        responder = build_default_responder()

        assert settings.tick_interval_ms == 1000
        assert settings.simulation_speed == 10
        assert settings.recommendation_interval_ms == 60000
        assert settings.random_seed == 42
        assert settings.feeder_enabled is True
        assert table.persistence_path == table_path
        assert {sensor.name for sensor in table.list_sensors()} >= {"Река Ишим"}
        assert engine.lang == "ru"
        assert engine.generator.interval_ms == 1000
        assert responder.model_client is None
        assert responder.model_name == "custom-model"
        assert responder.table is table
    finally:
        _clear_caches(CACHES)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("FLOOD_TICK_INTERVAL_MS", "-5")
    monkeypatch.setenv("FLOOD_POLL_INTERVAL_MS", "soon")
    monkeypatch.setenv("FLOOD_LANG", "en")
    monkeypatch.setenv("FLOOD_RANDOM_SEED", "abc")
    monkeypatch.setenv("FLOOD_FEEDER_ENABLED", "maybe")
    monkeypatch.setenv("FLOOD_TABLE_PERSISTENCE_PATH", "  ")
    get_settings.cache_clear()

    try:
        settings = get_settings()

        assert settings.tick_interval_ms == 5000
        assert settings.poll_interval_ms == 15000
        assert settings.lang == "kz"
        assert settings.random_seed is None
        assert settings.feeder_enabled is False
        assert settings.table_persistence_path is None
    finally:
        get_settings.cache_clear()
