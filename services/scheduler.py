"""Periodic tick scheduling decoupled from rendering."""

from __future__ import annotations

import logging
from threading import Event, Lock, Thread
from typing import Callable, Optional, Sequence

from services.thresholds import MIN_INTERVAL_MS, SPEED_OPTIONS

logger = logging.getLogger(__name__)


def compute_interval_ms(base_interval_ms: int, speed: int, minimum_ms: int = MIN_INTERVAL_MS) -> int:
    return max(minimum_ms, base_interval_ms // max(1, speed))


class TickScheduler:
    """Runs a callback immediately and then once per interval on a single worker thread.

    Ticks never overlap: the next wait only starts once the callback returns.
    Changing the speed cuts the current wait short, ticks, and continues at
    the new interval.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        base_interval_ms: int,
        speed: int = 1,
        speed_options: Optional[Sequence[int]] = SPEED_OPTIONS,
        name: str = "tick",
    ) -> None:
        self.callback = callback
        self.base_interval_ms = base_interval_ms
        self.speed_options = tuple(speed_options) if speed_options else None
        self.name = name
        self._speed = self._validate_speed(speed)
        self._stop = Event()
        self._wake = Event()
        self._thread: Optional[Thread] = None
        self._tick_lock = Lock()

    def _validate_speed(self, speed: int) -> int:
        if self.speed_options is not None and speed not in self.speed_options:
            options = ", ".join(str(option) for option in self.speed_options)
            raise ValueError(f"Unsupported speed {speed}; choose one of {options}.")
        if speed < 1:
            raise ValueError("Speed must be a positive integer.")
        return speed

    @property
    def speed(self) -> int:
        return self._speed

    @property
    def interval_ms(self) -> int:
        return compute_interval_ms(self.base_interval_ms, self._speed)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def set_speed(self, speed: int) -> None:
        self._speed = self._validate_speed(speed)
        logger.info(
            "Scheduler speed changed",
            extra={"speed": self._speed, "interval_ms": self.interval_ms},
        )
        self._wake.set()

    def tick_once(self) -> None:
        """Invoke the callback synchronously, serialized with the worker thread."""
        with self._tick_lock:
            try:
                self.callback()
            except Exception:  # noqa: BLE001
                logger.exception("Scheduled %s callback failed", self.name)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._wake.clear()
        self._thread = Thread(target=self._run, name=f"{self.name}-scheduler", daemon=True)
        self._thread.start()
        logger.info(
            "Scheduler started",
            extra={"speed": self._speed, "interval_ms": self.interval_ms},
        )

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return
        self._stop.set()
        self._wake.set()
        thread.join(timeout)
        self._thread = None
        logger.info("Scheduler stopped", extra={"status": self.name})

    def _run(self) -> None:
        while not self._stop.is_set():
            self._wake.clear()
            self.tick_once()
            if self._stop.is_set():
                break
            self._wake.wait(self.interval_ms / 1000)
