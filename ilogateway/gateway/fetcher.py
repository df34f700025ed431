"""Centralized fetch scheduler: periodic refresh of every cached domain.

One cycle fetches identity, power, logs and PID data in that order, with a
short pause between domains so the controller's SSH daemon is not flooded.
Each domain succeeds or fails on its own; a failure records the error on
that domain's cache entry and keeps its last good data.

Cycles never overlap. A manual :meth:`DataFetcher.refresh` issued while a
cycle is in flight waits for that cycle to commit instead of starting a new
one.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable

from loguru import logger

from ilogateway.gateway.config import GatewaySettings
from ilogateway.gateway.exceptions import GatewayError, TransportError, is_connection_reset
from ilogateway.gateway.models.cache import CacheEntry, Domain, DomainCache
from ilogateway.gateway.models.logs import LogRecordWindow, SystemLogRecord, sort_records_newest_first
from ilogateway.gateway.models.system import PowerSnapshot, SystemIdentity
from ilogateway.gateway.models.thermal import ActuatorControllerEntry
from ilogateway.gateway.parsing import (
    PID_HEADER_MARKERS,
    extract_record_numbers,
    find_header,
    parse_log_record,
    parse_pid_table,
    parse_power_snapshot,
    parse_system_identity,
)
from ilogateway.gateway.transport.ssh import SSHCommandChannel

SYSTEM_COMMAND = "show system1"
CONTROLLER_FIRMWARE_COMMAND = "show /map1/firmware1"
HOST_FIRMWARE_COMMAND = "show system1/firmware1"
POWER_COMMAND = "show /system1/oemhp_power1"
LOG_LIST_COMMAND = "show system1/log1"
LOG_RECORD_COMMAND = "show system1/log1/record{number}"
PID_COMMAND = "fan info a"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DataFetcher:
    """Owns the domain cache and refreshes it on a fixed interval."""

    def __init__(
        self,
        channel: SSHCommandChannel,
        settings: GatewaySettings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._channel = channel
        self.settings = settings or GatewaySettings()
        self._clock = clock

        self.cache = DomainCache()
        self.log_window = LogRecordWindow(self.settings.log_window_size)

        self._state = threading.Condition()
        self._fetching = False
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._started = False
        self.cycles_completed = 0

    # ── lifecycle ─────────────────────────────────────────────────────

    def start(self) -> None:
        """Run one cycle immediately, then every ``fetch_interval`` seconds."""
        if self._thread is not None:
            self.stop()

        stop_event = threading.Event()
        self._stop_event = stop_event
        self._started = True
        self._thread = threading.Thread(target=self._run, args=(stop_event,), name="ilogateway-fetcher", daemon=True)
        self._thread.start()
        logger.info(f"DataFetcher started - fetching every {self.settings.fetch_interval:g}s")

    def stop(self, timeout: float | None = None) -> None:
        """Stop the periodic schedule. An in-flight cycle runs to completion."""
        if self._stop_event is not None:
            self._stop_event.set()
            self._stop_event = None
        thread, self._thread = self._thread, None
        self._started = False
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("DataFetcher stopped")

    def is_running(self) -> bool:
        return self._started and self._thread is not None and self._thread.is_alive()

    def is_fetching(self) -> bool:
        with self._state:
            return self._fetching

    def _run(self, stop_event: threading.Event) -> None:
        self._scheduled_cycle()
        while not stop_event.wait(self.settings.fetch_interval):
            self._scheduled_cycle()

    def _scheduled_cycle(self) -> None:
        try:
            self.fetch_all()
        except Exception:
            logger.exception("Unexpected error in fetch cycle")

    # ── cycle control ─────────────────────────────────────────────────

    def _begin_cycle(self) -> bool:
        with self._state:
            if self._fetching:
                return False
            self._fetching = True
            return True

    def _end_cycle(self) -> None:
        with self._state:
            self._fetching = False
            self._state.notify_all()

    def fetch_all(self) -> bool:
        """Run one cycle unless one is already in flight.

        Returns False when the cycle was skipped because another is running.
        """
        if not self._begin_cycle():
            logger.info("Already fetching data, skipping this cycle")
            return False
        try:
            self._run_cycle()
        finally:
            self._end_cycle()
        return True

    def refresh(self) -> None:
        """Fetch now, or wait for the in-flight cycle to commit."""
        with self._state:
            if self._fetching:
                logger.info("Data fetch already in progress, waiting for completion...")
                while self._fetching:
                    self._state.wait()
                return
            self._fetching = True
        try:
            self._run_cycle()
        finally:
            self._end_cycle()

    def _run_cycle(self) -> None:
        if not self._channel.is_configured():
            logger.info("Controller not configured, skipping data fetch")
            return

        logger.info("Starting data fetch cycle")
        steps: list[tuple[Domain, Callable[[], None]]] = [
            (Domain.IDENTITY, self._fetch_identity),
            (Domain.POWER, self._fetch_power),
            (Domain.LOGS, self._fetch_logs),
            (Domain.PID, self._fetch_pid),
        ]
        for index, (domain, step) in enumerate(steps):
            if index:
                time.sleep(self.settings.domain_delay)
            self._guarded(domain, step)

        self.cache.touch_all(self._clock())
        self.cycles_completed += 1
        logger.info("Data fetch cycle completed")

    def _guarded(self, domain: Domain, step: Callable[[], None]) -> None:
        try:
            step()
        except GatewayError as e:
            logger.error(f"Error fetching {domain.value}: {e}")
            self.cache.fail(domain, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error fetching {domain.value}")
            self.cache.fail(domain, f"{type(e).__name__}: {e}")

    # ── domains ───────────────────────────────────────────────────────

    def _fetch_identity(self) -> None:
        system_output = self._channel.execute(SYSTEM_COMMAND)
        controller_fw = self._channel.execute(CONTROLLER_FIRMWARE_COMMAND)
        host_fw = self._channel.execute(HOST_FIRMWARE_COMMAND)

        identity = parse_system_identity(system_output, controller_fw, host_fw)
        if identity is None:
            self.cache.fail(Domain.IDENTITY, "No system identity found in controller output")
            return
        self.cache.succeed(Domain.IDENTITY, identity)
        logger.debug(f"System identity: {identity.model} / {identity.serial_number}")

    def _fetch_power(self) -> None:
        retries = 0
        max_retries = self.settings.power_max_retries
        while True:
            try:
                output = self._channel.execute(POWER_COMMAND)
                break
            except TransportError as e:
                if retries >= max_retries or not is_connection_reset(e):
                    raise
                retries += 1
                logger.warning(f"SSH connection reset, retrying power fetch ({retries}/{max_retries})...")
                time.sleep(self.settings.power_retry_backoff)

        snapshot = parse_power_snapshot(output)
        if snapshot is None:
            self.cache.fail(Domain.POWER, "No power information found in controller output")
            return
        self.cache.succeed(Domain.POWER, snapshot)

    def _fetch_logs(self) -> None:
        listing = self._channel.execute(LOG_LIST_COMMAND)
        numbers = extract_record_numbers(listing)
        if not numbers:
            logger.warning("No log records found in system log")
            self.log_window.clear()
            self.cache.succeed(Domain.LOGS, [])
            return

        recent = self.log_window.select(numbers)
        if self.log_window.is_unchanged(recent):
            logger.debug("Log record numbers unchanged, using cached records")
            self.cache.succeed(Domain.LOGS, sort_records_newest_first(self.log_window.records()))
            return

        logger.info(f"Log records changed from {self.log_window.numbers} to {recent}")
        evicted = self.log_window.shift(recent)
        if evicted:
            logger.debug(f"Evicted cached log records {evicted}")

        missing = self.log_window.missing(recent)
        for index, number in enumerate(missing):
            if index:
                time.sleep(self.settings.record_delay)
            try:
                output = self._channel.execute(LOG_RECORD_COMMAND.format(number=number))
            except TransportError as e:
                logger.warning(f"Failed to fetch log record {number}: {e}")
                continue
            record = parse_log_record(output, number)
            if record is None:
                logger.warning(f"Log record {number} could not be parsed, skipping")
                continue
            self.log_window.store(number, record)

        records = sort_records_newest_first(self.log_window.records())
        self.cache.succeed(Domain.LOGS, records)
        logger.info(
            f"Processed {len(records)} log records ({len(missing)} fetched, {len(recent) - len(missing)} from cache)"
        )

    def _fetch_pid(self) -> None:
        output = self._channel.execute(PID_COMMAND)
        if find_header(output, PID_HEADER_MARKERS) == -1:
            self.cache.fail(Domain.PID, "PID table header not found in fan info output")
            return
        entries = parse_pid_table(output)
        self.cache.succeed(Domain.PID, entries)
        logger.debug(f"Fetched {len(entries)} PID entries")

    # ── accessors ─────────────────────────────────────────────────────

    def get(self, domain: Domain) -> CacheEntry[Any]:
        return self.cache.get(domain)

    def get_system_identity(self) -> CacheEntry[SystemIdentity]:
        return self.cache.get(Domain.IDENTITY)

    def get_power(self) -> CacheEntry[PowerSnapshot]:
        return self.cache.get(Domain.POWER)

    def get_system_logs(self) -> CacheEntry[list[SystemLogRecord]]:
        return self.cache.get(Domain.LOGS)

    def get_pid_data(self) -> CacheEntry[list[ActuatorControllerEntry]]:
        return self.cache.get(Domain.PID)
