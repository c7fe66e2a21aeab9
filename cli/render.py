from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

import typer

from app.schemas import AiRecommendation, WaterLevel
from models.messages import advice_text
from models.records import AdvisoryEvent, AlertNotification, HistoryPoint
from services.aggregator import DashboardSummary

_STATUS_COLORS = {
    "critical": typer.colors.RED,
    "warning": typer.colors.YELLOW,
    "stable": typer.colors.CYAN,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _dash(value: Optional[Any], suffix: str = "") -> str:
    return "—" if value is None else f"{value}{suffix}"


def render_banner(message: Optional[str]) -> None:
    if message:
        typer.secho(f"API error: {message}", fg=typer.colors.YELLOW, err=True)


def render_summary(summary: DashboardSummary) -> None:
    echo_heading("Current Status")
    echo_key_values(
        [
            ("sensors", summary.sensor_count),
            ("critical_sensors", summary.critical_count),
            ("max_level", _dash(summary.max_level, " cm")),
            ("time_to_impact", _dash(summary.time_to_impact, " min")),
            ("rising_velocity", _dash(summary.rising_velocity, " cm/5s")),
        ]
    )
    typer.secho(
        f"status: {summary.status}",
        fg=_STATUS_COLORS.get(summary.status),
        bold=summary.status == "critical",
    )


def render_stream_lines(lines: Sequence[str]) -> None:
    for line in lines:
        typer.echo(line)


def render_alert(alert: AlertNotification) -> None:
    typer.secho(f"!! {alert.message}", fg=typer.colors.RED, bold=True)


def render_advisories(
    events: Iterable[AdvisoryEvent], names: Mapping[str, str]
) -> None:
    for event in events:
        location = names.get(event.sensor_id, event.sensor_id)
        stamp = event.created_at.strftime("%H:%M:%S")
        typer.echo(f"[{stamp}] AI: {advice_text(event.advice_type, location)}")


def render_water_levels(levels: Iterable[WaterLevel]) -> None:
    echo_heading("Water Levels")
    rows = list(levels)
    if not rows:
        typer.echo("No readings available.")
        return
    for row in rows:
        typer.echo(
            f"  - {row.name or row.sensor_id}: {_dash(row.level_cm, ' cm')}"
            f" | vel: {_dash(row.velocity)}"
            f" | ETA: {_dash(row.forecast_time_minutes, ' min')}"
        )


def render_recommendations(items: Iterable[AiRecommendation]) -> None:
    echo_heading("AI Recommendations")
    rows = list(items)
    if not rows:
        typer.echo("No recommendations yet.")
        return
    for item in rows:
        typer.echo(f"  - [{item.created_at.isoformat()}] {item.advice_text}")


def render_history(
    points: Sequence[HistoryPoint], names: Mapping[str, str], window: str
) -> None:
    echo_heading(f"History ({window})")
    if not points:
        typer.echo("No history recorded.")
        return
    for sensor_id, name in names.items():
        values = [point.levels[sensor_id] for point in points if sensor_id in point.levels]
        if not values:
            continue
        typer.echo(
            f"  - {name}: points={len(values)} min={min(values)} "
            f"max={max(values)} last={values[-1]}"
        )
