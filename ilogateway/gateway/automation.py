"""Automation loop: periodic fan-speed tiering from live temperatures.

The loop does not implement a control law; it picks one of three fixed
duty cycles from the mean temperature and writes it to every fan. The
controller's own PID bank keeps running underneath.
"""

from __future__ import annotations

import threading
from statistics import fmean

from loguru import logger

from ilogateway.gateway.config import AutomationThresholds
from ilogateway.gateway.exceptions import GatewayError
from ilogateway.gateway.models.thermal import SensorReading
from ilogateway.gateway.thermal import ThermalManager

BASELINE_SPEED = 32
MID_SPEED = 60
HIGH_SPEED = 90

DEFAULT_INTERVAL = 60.0


def select_fan_speed(mean: float, thresholds: AutomationThresholds) -> int:
    """Map a mean temperature to a fan speed tier.

    ``mean <= low`` gives the baseline, ``low < mean <= med`` the mid speed and
    anything above ``med`` the high speed.
    """
    if mean <= thresholds.low:
        return BASELINE_SPEED
    if mean <= thresholds.med:
        return MID_SPEED
    return HIGH_SPEED


def mean_reading(sensors: list[SensorReading]) -> float | None:
    """Arithmetic mean of numeric readings; None if there are none."""
    readings = [
        s.reading
        for s in sensors
        if isinstance(s.reading, (int, float)) and not isinstance(s.reading, bool) and s.reading == s.reading
    ]
    if not readings:
        return None
    return fmean(readings)


class AutomationLoop:
    """Background thread that applies :func:`select_fan_speed` every *interval* seconds.

    Sensor data is read live from the controller, not from any cache.
    At most one loop runs at a time; :meth:`start` replaces a running loop.
    """

    def __init__(self, thermal: ThermalManager, interval: float = DEFAULT_INTERVAL):
        self._thermal = thermal
        self.interval = interval
        self.thresholds = AutomationThresholds()
        self.last_speed: int | None = None
        self.last_mean: float | None = None

        self._lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    def start(self, thresholds: AutomationThresholds | None = None) -> None:
        """Start the loop, stopping any loop already running."""
        with self._lock:
            previous = self._detach_locked()
            self.thresholds = thresholds or AutomationThresholds()
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=self._run, args=(stop_event,), name="ilogateway-automation", daemon=True
            )
            self._thread.start()
        self._join(previous)
        logger.info(
            f"[Automation] started (low={self.thresholds.low:g}, med={self.thresholds.med:g}, "
            f"every {self.interval:g}s)"
        )

    def stop(self) -> None:
        """Stop the loop; does nothing when it is not running."""
        with self._lock:
            previous = self._detach_locked()
        if previous is None:
            return
        self._join(previous)
        logger.info("[Automation] stopped")

    def _detach_locked(self) -> threading.Thread | None:
        """Signal the running loop to exit and forget it; returns its thread."""
        if self._stop_event is None:
            return None
        self._stop_event.set()
        thread = self._thread
        self._stop_event = None
        self._thread = None
        return thread

    def _join(self, thread: threading.Thread | None) -> None:
        # called without the lock held so is_running() never waits on a tick
        if thread is not None and thread is not threading.current_thread():
            thread.join(max(self.interval, 1.0))

    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            self._tick()

    def _tick(self) -> None:
        try:
            self.run_once()
        except GatewayError as e:
            logger.error(f"[Automation] Error: {e}")
        except Exception:
            logger.exception("[Automation] Unexpected error")

    def run_once(self) -> int | None:
        """Read sensors, pick a speed and write it. Returns the speed, or None
        if no numeric reading was available."""
        sensors = self._thermal.get_sensors(live=True)
        mean = mean_reading(sensors)
        if mean is None:
            logger.warning("[Automation] No numeric sensor readings, skipping tick")
            return None

        speed = select_fan_speed(mean, self.thresholds)
        self._thermal.set_all_fans(speed)
        self.last_mean = mean
        self.last_speed = speed
        logger.info(f"[Automation] Set fan speed to {speed}% (avgTemp: {mean:.1f})")
        return speed
