"""Live dashboard loop: simulation ticks plus periodic data-provider polling."""

from __future__ import annotations

import logging
from datetime import datetime
from threading import Event, Lock
from typing import Callable, Dict, Optional

from cli.client import ApiClient, DashboardData
from cli.render import (
    render_advisories,
    render_alert,
    render_banner,
    render_stream_lines,
)
from services.engine import TelemetryEngine, TickResult
from services.scheduler import TickScheduler
from services.thresholds import BASE_INTERVAL_MS, POLL_INTERVAL_MS

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class DashboardConsole:
    """Drives a telemetry engine on a tick scheduler and merges polled provider data."""

    def __init__(
        self,
        engine: TelemetryEngine,
        client: Optional[ApiClient] = None,
        speed: int = 1,
        base_interval_ms: int = BASE_INTERVAL_MS,
        poll_interval_ms: int = POLL_INTERVAL_MS,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.engine = engine
        self.client = client
        self.clock = clock
        self.tick_count = 0
        self.banner: Optional[str] = None
        self._tick_target: Optional[int] = None
        self._done = Event()
        self._count_lock = Lock()
        self.ticker = TickScheduler(self.on_tick, base_interval_ms, speed=speed, name="simulation")
        self.poller: Optional[TickScheduler] = None
        if client is not None:
            self.poller = TickScheduler(
                self.poll, poll_interval_ms, speed_options=None, name="provider-poll"
            )

    @property
    def sensor_names(self) -> Dict[str, str]:
        return {sensor.id: sensor.display_name(self.engine.lang) for sensor in self.engine.sensors}

    def on_tick(self) -> TickResult:
        result = self.engine.tick(self.clock())
        render_stream_lines(result.log_lines)
        for alert in result.alerts:
            render_alert(alert)
        render_advisories(result.advisories, self.sensor_names)

        with self._count_lock:
            self.tick_count += 1
            if self._tick_target is not None and self.tick_count >= self._tick_target:
                self._done.set()
        return result

    def poll(self) -> DashboardData:
        if self.client is None:
            raise RuntimeError("Polling needs a data-provider client.")
        data = self.client.fetch_dashboard()
        if "water_levels" not in data.errors:
            self.engine.merge_remote(data.water_levels)
        self.banner = data.banner
        render_banner(self.banner)
        return data

    def set_speed(self, speed: int) -> None:
        self.ticker.set_speed(speed)

    def run(self, ticks: Optional[int] = None, duration: Optional[float] = None) -> None:
        """Block until ``ticks`` ticks ran, ``duration`` seconds passed, or Ctrl+C."""
        self._tick_target = ticks
        self._done.clear()
        if self.poller is not None:
            self.poller.start()
        self.ticker.start()
        try:
            self._done.wait(duration)
        except KeyboardInterrupt:
            logger.info("Dashboard interrupted", extra={"status": "stopped"})
        finally:
            self.stop()

    def stop(self) -> None:
        self.ticker.stop()
        if self.poller is not None:
            self.poller.stop()
