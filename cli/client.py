from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
import typer

from app.schemas import AiRecommendation, FloodZone, NotifyResponse, SensorRecord, WaterLevel
from cli.config import CLIConfig
from models.messages import CHAT_CONNECTION_ERROR, CHAT_ERROR

logger = logging.getLogger(__name__)


@dataclass
class DashboardData:
    """One polling round of the data-provider API; failed panels stay empty."""

    sensors: List[SensorRecord] = field(default_factory=list)
    water_levels: List[WaterLevel] = field(default_factory=list)
    flood_zones: List[FloodZone] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def banner(self) -> Optional[str]:
        if not self.errors:
            return None
        return "; ".join(f"{endpoint}: {reason}" for endpoint, reason in self.errors.items())


def extract_error_detail(response: httpx.Response) -> str:
    """Best-effort message from an error response body."""
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        for key in ("error", "message", "detail"):
            value = data.get(key)
            if value:
                return str(value)
    return response.text.strip() or f"HTTP {response.status_code}"


class ApiClient:
    """Minimal HTTP client for the data-provider API."""

    def __init__(self, config: CLIConfig, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._config = config
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.request_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = self._client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    def get_sensors(self) -> List[SensorRecord]:
        return [SensorRecord.model_validate(item) for item in self._get_json("/api/sensors")]

    def get_water_levels(self) -> List[WaterLevel]:
        return [WaterLevel.model_validate(item) for item in self._get_json("/api/water-levels")]

    def get_flood_zones(self) -> List[FloodZone]:
        return [FloodZone.model_validate(item) for item in self._get_json("/api/flood-zones")]

    def get_ai_recommendations(self, limit: int = 20) -> List[AiRecommendation]:
        payload = self._get_json("/api/ai-recommendations", params={"limit": limit})
        return [AiRecommendation.model_validate(item) for item in payload]

    def get_alerts(self, threshold: int = 750) -> List[WaterLevel]:
        payload = self._get_json("/api/alerts", params={"threshold": threshold})
        return [WaterLevel.model_validate(item) for item in payload]

    def send_notify(self, message: Optional[str] = None) -> NotifyResponse:
        body = {"message": message} if message else {}
        response = self._client.post("/api/notify", json=body)
        response.raise_for_status()
        return NotifyResponse.model_validate(response.json())

    def chat(self, message: str) -> str:
        response = self._client.post("/api/chat", json={"message": message})
        if response.is_error:
            raise httpx.HTTPStatusError(
                extract_error_detail(response),
                request=response.request,
                response=response,
            )
        data = response.json()
        if isinstance(data, dict):
            for key in ("reply", "answer", "message"):
                if data.get(key) is not None:
                    return str(data[key])
        return str(data)

    def fetch_dashboard(self) -> DashboardData:
        """Poll every panel independently so one failing endpoint does not blank the rest."""
        data = DashboardData()
        panels = (
            ("sensors", self.get_sensors),
            ("water_levels", self.get_water_levels),
            ("flood_zones", self.get_flood_zones),
        )
        for endpoint, fetch in panels:
            try:
                setattr(data, endpoint, fetch())
            except (httpx.HTTPError, ValueError) as exc:
                reason = (
                    extract_error_detail(exc.response)
                    if isinstance(exc, httpx.HTTPStatusError)
                    else str(exc) or exc.__class__.__name__
                )
                data.errors[endpoint] = reason
                logger.warning(
                    "Data provider request failed",
                    extra={"endpoint": endpoint, "reason": reason},
                )
        return data


def exit_on_http_error(exc: httpx.HTTPError) -> None:
    """Print a red failure line and exit the CLI with status 1."""
    if isinstance(exc, httpx.HTTPStatusError):
        detail = extract_error_detail(exc.response)
        message = f"Request failed with status {exc.response.status_code}: {detail}"
    else:
        message = f"Request failed: {exc}"
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@dataclass
class ChatMessage:
    role: str
    content: str


class ChatSession:
    """Conversation with the assistant; the transcript survives failed requests."""

    def __init__(self, client: ApiClient) -> None:
        self.client = client
        self.messages: List[ChatMessage] = []

    def send(self, text: str) -> Optional[str]:
        message = text.strip()
        if not message:
            return None

        self.messages.append(ChatMessage(role="user", content=message))
        try:
            reply = self.client.chat(message)
        except httpx.TransportError:
            reply = CHAT_CONNECTION_ERROR
        except (httpx.HTTPStatusError, ValueError) as exc:
            reply = f"{CHAT_ERROR} ({str(exc) or CHAT_CONNECTION_ERROR})"
        self.messages.append(ChatMessage(role="assistant", content=reply))
        return reply
