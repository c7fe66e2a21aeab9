"""Sensors installed on the water bodies around Petropavl."""

from __future__ import annotations

from typing import Tuple

from models.records import Sensor

KEY_SENSORS: Tuple[Sensor, ...] = (
    Sensor(
        id="lake_pestroye",
        name_kz="Пестрое көлі",
        name_ru="Озеро Пестрое",
        lat=54.8365,
        lng=69.1285,
    ),
    Sensor(
        id="ishim_river",
        name_kz="Есіл өзені",
        name_ru="Река Ишим",
        lat=54.885,
        lng=69.112,
    ),
    Sensor(
        id="zarechny",
        name_kz="Заречный",
        name_ru="Заречный",
        lat=54.9085,
        lng=69.145,
    ),
)
