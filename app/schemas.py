"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SensorRecord(BaseModel):
    """A sensor row as stored in the hosted table."""

    id: str
    name: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


class WaterLevelRecord(BaseModel):
    """One stored water-level measurement."""

    sensor_id: str
    level_cm: Optional[float] = None
    velocity: Optional[float] = None
    forecast_time_minutes: Optional[float] = None
    created_at: datetime


class WaterLevel(BaseModel):
    """Latest reading for a sensor, joined with its name and position."""

    sensor_id: str
    level_cm: Optional[float] = None
    velocity: Optional[float] = None
    forecast_time_minutes: Optional[float] = None
    created_at: Optional[datetime] = None
    name: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    simulated: bool = Field(
        default=False, description="True when produced by the local telemetry simulation."
    )


class FloodZone(BaseModel):
    """Map polygon anchor derived from the latest level of a located sensor."""

    sensor_id: str
    name: Optional[str] = None
    level_cm: Optional[float] = None
    lat: float
    lng: float


class AiRecommendation(BaseModel):
    id: int
    advice_text: str
    created_at: datetime


class ChatRule(BaseModel):
    """Canned chat reply selected when any keyword appears in the message."""

    keywords: str = ""
    reply: str = ""

    def keyword_list(self) -> List[str]:
        return [part.strip().lower() for part in self.keywords.split(",") if part.strip()]


class NotifyRequest(BaseModel):
    message: Optional[str] = None


class NotifyResponse(BaseModel):
    ok: bool = True
    simulated: bool = True
    message: str


class ChatRequest(BaseModel):
    message: Optional[str] = None


class ChatReply(BaseModel):
    reply: str
