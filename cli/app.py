from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, List, Optional, TypeVar

import httpx
import typer

from cli.client import ApiClient, ChatSession, exit_on_http_error
from cli.config import CLIConfig, load_config
from cli.console import DashboardConsole
from cli.render import (
    render_history,
    render_recommendations,
    render_summary,
    render_water_levels,
)
from logging_config import configure_logging
from models.sensors import KEY_SENSORS
from services.engine import TelemetryEngine
from services.thresholds import DEFAULT_HISTORY_WINDOW, HISTORY_WINDOWS, SPEED_OPTIONS
from settings import SUPPORTED_LANGS, get_settings

T = TypeVar("T")


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Flood monitoring console for the Petropavl water-level sensors.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _call(request: Callable[[], T]) -> T:
    try:
        return request()
    except httpx.HTTPError as exc:
        exit_on_http_error(exc)
        raise


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Data-provider API base URL (defaults to API_BASE_URL env or http://localhost:3001).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds before an API request is abandoned.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging()
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    speed: Optional[int] = typer.Option(
        None, "--speed", "-s", help="Simulation speed multiplier (1, 10 or 50)."
    ),
    ticks: Optional[int] = typer.Option(None, "--ticks", "-n", min=1, help="Stop after this many ticks."),
    duration: Optional[float] = typer.Option(None, "--duration", help="Stop after this many seconds."),
    lang: Optional[str] = typer.Option(None, "--lang", help="Sensor name language (kz or ru)."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible simulations."),
    window: str = typer.Option(DEFAULT_HISTORY_WINDOW, "--window", help="History window shown on exit."),
    poll: bool = typer.Option(True, "--poll/--offline", help="Poll the data-provider API every 15s."),
) -> None:
    """Run the simulated telemetry stream with alerts and advisories."""
    state = _get_state(ctx)
    settings = get_settings()
    if speed is None:
        speed = settings.simulation_speed
    if speed not in SPEED_OPTIONS:
        raise typer.BadParameter(f"Speed must be one of {', '.join(map(str, SPEED_OPTIONS))}.")
    if window not in HISTORY_WINDOWS:
        raise typer.BadParameter(f"Window must be one of {', '.join(HISTORY_WINDOWS)}.")
    chosen_lang = (lang or settings.lang).lower()
    if chosen_lang not in SUPPORTED_LANGS:
        raise typer.BadParameter(f"Language must be one of {', '.join(SUPPORTED_LANGS)}.")

    engine = TelemetryEngine(
        sensors=KEY_SENSORS,
        rng=random.Random(seed if seed is not None else settings.random_seed),
        lang=chosen_lang,
        interval_ms=settings.tick_interval_ms,
    )
    console = DashboardConsole(
        engine,
        client=state.client if poll else None,
        speed=speed,
        base_interval_ms=settings.tick_interval_ms,
        poll_interval_ms=settings.poll_interval_ms,
    )
    typer.echo(f"Streaming at {speed}x (every {console.ticker.interval_ms} ms). Ctrl+C to stop.")
    console.run(ticks=ticks, duration=duration)

    typer.echo()
    render_summary(engine.summary())
    typer.echo()
    render_history(engine.history_window(window), console.sensor_names, window)


@app.command("levels")
def levels_command(ctx: typer.Context) -> None:
    """Show the latest stored reading per sensor."""
    state = _get_state(ctx)
    render_water_levels(_call(state.client.get_water_levels))


@app.command("alerts")
def alerts_command(
    ctx: typer.Context,
    threshold: int = typer.Option(750, "--threshold", help="Minimum level in cm."),
) -> None:
    """List sensors whose latest level is at or above a threshold."""
    state = _get_state(ctx)
    render_water_levels(_call(lambda: state.client.get_alerts(threshold)))


@app.command("recommendations")
def recommendations_command(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-l", min=1, max=50, help="Number of rows."),
) -> None:
    """Show the most recent AI recommendations."""
    state = _get_state(ctx)
    render_recommendations(_call(lambda: state.client.get_ai_recommendations(limit)))


@app.command("notify")
def notify_command(
    ctx: typer.Context,
    message: Optional[str] = typer.Argument(None, help="Alert text; the server default is used when omitted."),
) -> None:
    """Send a simulated messenger alert."""
    state = _get_state(ctx)
    response = _call(lambda: state.client.send_notify(message))
    typer.secho(f"Notification sent (simulated={response.simulated}): {response.message}", fg=typer.colors.GREEN)


@app.command("chat")
def chat_command(
    ctx: typer.Context,
    message: List[str] = typer.Argument(None, help="Question; starts an interactive session when omitted."),
) -> None:
    """Ask the flood assistant a question."""
    state = _get_state(ctx)
    session = ChatSession(state.client)

    if message:
        typer.echo(session.send(" ".join(message)))
        return

    typer.echo("Ask about evacuation, water levels or a sensor. Empty line to quit.")
    while True:
        text = typer.prompt("you", default="", show_default=False)
        if not text.strip():
            break
        typer.echo(f"assistant: {session.send(text)}")
