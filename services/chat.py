"""Chat replies for the flood assistant."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Any, Optional

from google import genai

from datastore.readings_table import MockFloodTable, build_default_table
from models.messages import (
    CHAT_DANGER_REPLY,
    CHAT_DEFAULT_REPLY,
    CHAT_EVACUATION_REPLY,
    CHAT_SENSOR_REPLY,
)
from settings import get_settings

logger = logging.getLogger(__name__)

_EVACUATION_PATTERN = re.compile(r"эвакуация|evacuation|эвакуациялау", re.IGNORECASE)
_DANGER_PATTERN = re.compile(r"опасно|danger|қауіп|тәуекел", re.IGNORECASE)

_PROMPT = (
    "You are a flood control assistant for Petropavl, Kazakhstan. Answer briefly "
    "and helpfully in the same language as the user. User question: {question}"
)


class ChatResponder:
    """Answers with the generative model when configured, else with keyword rules."""

    def __init__(
        self,
        table: MockFloodTable,
        model_client: Optional[Any] = None,
        model_name: str = "gemini-2.5-flash-lite",
    ) -> None:
        self.table = table
        self.model_client = model_client
        self.model_name = model_name

    def reply(self, message: str) -> str:
        text = message.strip()
        if not text:
            raise ValueError("Missing or empty message")

        generated = self.complete(_PROMPT.format(question=text))
        if generated:
            return generated
        return self._fallback(text.lower())

    @property
    def has_model(self) -> bool:
        return self.model_client is not None

    def complete(self, contents: str) -> Optional[str]:
        """Send a prompt to the model; ``None`` when unconfigured, failing or blank."""
        if self.model_client is None:
            return None
        try:
            response = self.model_client.models.generate_content(
                model=self.model_name,
                contents=contents,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Model request failed", extra={"reason": str(exc)})
            return None
        reply = (getattr(response, "text", None) or "").strip()
        return reply or None

    def _fallback(self, normalized: str) -> str:
        for rule in self.table.chat_rules():
            if any(keyword in normalized for keyword in rule.keyword_list()):
                if rule.reply:
                    return rule.reply
                break

        names = [
            (sensor.name or "").lower() for sensor in self.table.list_sensors() if sensor.name
        ]
        if any(name in normalized for name in names):
            return CHAT_SENSOR_REPLY
        if _EVACUATION_PATTERN.search(normalized):
            return CHAT_EVACUATION_REPLY
        if _DANGER_PATTERN.search(normalized):
            return CHAT_DANGER_REPLY
        return CHAT_DEFAULT_REPLY


@lru_cache
def build_default_responder() -> ChatResponder:
    settings = get_settings()
    client = None
    if settings.gemini_api_key:
        client = genai.Client(api_key=settings.gemini_api_key)
    return ChatResponder(
        table=build_default_table(),
        model_client=client,
        model_name=settings.gemini_model,
    )
