"""HTTP route definitions for the data-provider API."""

from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas import (
    AiRecommendation,
    ChatReply,
    ChatRequest,
    FloodZone,
    NotifyRequest,
    NotifyResponse,
    SensorRecord,
    WaterLevel,
    WaterLevelRecord,
)
from datastore.readings_table import MockFloodTable, build_default_table
from models.messages import DEFAULT_NOTIFY_MESSAGE
from services.chat import ChatResponder, build_default_responder
from services.thresholds import DEFAULT_ALERTS_THRESHOLD_CM

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")
health_router = APIRouter()

MAX_RECOMMENDATIONS = 50


def get_table() -> MockFloodTable:
    return build_default_table()


def get_responder() -> ChatResponder:
    return build_default_responder()


def _join_sensor(
    row: WaterLevelRecord, sensors: Dict[str, SensorRecord]
) -> WaterLevel:
    sensor = sensors.get(row.sensor_id)
    return WaterLevel(
        sensor_id=row.sensor_id,
        level_cm=row.level_cm,
        velocity=row.velocity,
        forecast_time_minutes=row.forecast_time_minutes,
        created_at=row.created_at,
        name=(sensor.name if sensor and sensor.name else row.sensor_id),
        lat=sensor.lat if sensor else None,
        lng=sensor.lng if sensor else None,
    )


@router.get(
    "/sensors",
    response_model=List[SensorRecord],
    summary="List all sensors for map markers.",
)
async def list_sensors(table: MockFloodTable = Depends(get_table)) -> List[SensorRecord]:
    return table.list_sensors()


@router.get(
    "/water-levels",
    response_model=List[WaterLevel],
    summary="Latest reading per sensor joined with sensor metadata.",
)
async def latest_water_levels(table: MockFloodTable = Depends(get_table)) -> List[WaterLevel]:
    sensors = {sensor.id: sensor for sensor in table.list_sensors()}
    return [_join_sensor(row, sensors) for row in table.latest_levels()]


@router.get(
    "/flood-zones",
    response_model=List[FloodZone],
    summary="Latest level of every sensor that has coordinates.",
)
async def flood_zones(table: MockFloodTable = Depends(get_table)) -> List[FloodZone]:
    sensors = {sensor.id: sensor for sensor in table.list_sensors()}
    zones: List[FloodZone] = []
    for row in table.latest_levels():
        sensor = sensors.get(row.sensor_id)
        if sensor is None or sensor.lat is None or sensor.lng is None:
            continue
        zones.append(
            FloodZone(
                sensor_id=row.sensor_id,
                name=sensor.name,
                level_cm=row.level_cm,
                lat=sensor.lat,
                lng=sensor.lng,
            )
        )
    return zones


@router.get(
    "/ai-recommendations",
    response_model=List[AiRecommendation],
    summary="Most recent flood-risk recommendations, newest first.",
)
async def ai_recommendations(
    limit: str = Query("20", description="Maximum number of rows (capped at 50)."),
    table: MockFloodTable = Depends(get_table),
) -> List[AiRecommendation]:
    try:
        parsed = int(limit)
    except ValueError:
        parsed = 0
    effective = min(parsed or 20, MAX_RECOMMENDATIONS)
    if effective < 1:
        effective = 20
    return table.recent_recommendations(effective)


@router.get(
    "/alerts",
    response_model=List[WaterLevel],
    summary="Latest readings at or above a threshold.",
)
async def active_alerts(
    threshold: str = Query(str(DEFAULT_ALERTS_THRESHOLD_CM)),
    table: MockFloodTable = Depends(get_table),
) -> List[WaterLevel]:
    try:
        minimum = int(threshold) or DEFAULT_ALERTS_THRESHOLD_CM
    except ValueError:
        minimum = DEFAULT_ALERTS_THRESHOLD_CM
    sensors = {sensor.id: sensor for sensor in table.list_sensors()}
    return [_join_sensor(row, sensors) for row in table.latest_levels(min_level=minimum)]


@router.post(
    "/notify",
    response_model=NotifyResponse,
    summary="Simulate sending a messenger alert.",
)
async def notify(payload: NotifyRequest | None = None) -> NotifyResponse:
    text = (payload.message if payload else None) or DEFAULT_NOTIFY_MESSAGE
    logger.info("Simulated notification sent: %s", text)
    return NotifyResponse(ok=True, simulated=True, message=text)


@router.post(
    "/chat",
    response_model=ChatReply,
    summary="Ask the flood assistant a question.",
)
def chat(
    payload: ChatRequest,
    responder: ChatResponder = Depends(get_responder),
) -> ChatReply:
    message = payload.message if isinstance(payload.message, str) else ""
    try:
        reply = responder.reply(message)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return ChatReply(reply=reply)


@health_router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
