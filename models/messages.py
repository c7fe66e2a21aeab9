"""Text catalog for advisories, critical toasts and chat replies."""

from __future__ import annotations

from typing import Dict

ADVICE_VARIANTS: Dict[str, int] = {"rising": 4, "warning": 4, "critical": 4}

ADVICE_TEXT: Dict[str, str] = {
    "rising_0": "{location}: water is rising. Keep monitoring the level.",
    "rising_1": "{location}: steady rise detected. Check drainage channels.",
    "rising_2": "{location}: level trending up. Notify district duty officers.",
    "rising_3": "{location}: upward trend. Prepare sandbags near low-lying streets.",
    "warning_0": "{location}: approaching critical level. Put pumping crews on standby.",
    "warning_1": "{location}: warning band reached. Warn residents of nearby houses.",
    "warning_2": "{location}: high water. Check evacuation routes and shelters.",
    "warning_3": "{location}: level near 700 cm. Restrict access to the embankment.",
    "critical_0": "{location}: CRITICAL level. Start evacuation of the flood zone.",
    "critical_1": "{location}: CRITICAL level. Deploy mobile pumps immediately.",
    "critical_2": "{location}: CRITICAL level. Close roads along the shore.",
    "critical_3": "{location}: CRITICAL level. Send emergency alerts to residents.",
}

TOAST_CRITICAL = "{sensor_name}: water level {level} cm. Critical threshold exceeded!"

CHAT_CONNECTION_ERROR = "Unable to reach the assistant. Check your connection and try again."
CHAT_ERROR = "Chat error"

DEFAULT_NOTIFY_MESSAGE = "Flood risk alert: check Akimat dashboard."

CHAT_DEFAULT_REPLY = (
    "Ask about evacuation, the water level or name a sensor. "
    "Current data is on the map and in the AI recommendations."
)
CHAT_SENSOR_REPLY = (
    "Current sensor data and water levels are shown on the map and in the "
    "AI recommendations block. Check the dashboard and the map."
)
CHAT_EVACUATION_REPLY = (
    "Evacuation: follow the routes on the map to the safe zones. Addresses of "
    "aid points and shelters are marked on the map."
)
CHAT_DANGER_REPLY = (
    "With high water, follow the AI recommendations on the dashboard and stay "
    "away from flood zones. Evacuation routes are marked on the map."
)


def advice_text(advice_type: str, location: str) -> str:
    template = ADVICE_TEXT.get(advice_type)
    if template is None:
        return f"{location}: {advice_type}"
    return template.format(location=location)


def critical_toast(sensor_name: str, level: int) -> str:
    return TOAST_CRITICAL.format(sensor_name=sensor_name, level=level)



RECOMMENDATION_PROMPT = (
    "Persona: Lead Disaster Response AI for Petropavl, Kazakhstan. Context: Protect "
    "Podgora, Zarechny, Kozhzavod. Task: Analyze levels: {levels}. Provide a "
    "1-sentence tactical directive for MCHS (under 15 words)."
)


def recommendation_prompt(levels: str) -> str:
    return RECOMMENDATION_PROMPT.format(levels=levels)
