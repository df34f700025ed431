"""Shared fixtures for the ilogateway test suite."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ilogateway.gateway.config import GatewaySettings, ManagementCredentials
from ilogateway.gateway.exceptions import CommandError
from ilogateway.gateway.fetcher import (
    CONTROLLER_FIRMWARE_COMMAND,
    HOST_FIRMWARE_COMMAND,
    LOG_LIST_COMMAND,
    PID_COMMAND,
    POWER_COMMAND,
    SYSTEM_COMMAND,
)

# ── sample controller output ──────────────────────────────────────────

SYSTEM1_OUTPUT = """status=0
status_tag=COMMAND COMPLETED
Mon Oct 19 12:00:00 2026



/system1
  Targets
    firmware1
    bootconfig1
    log1
  Properties
    name=ProLiant ML350e Gen8 v2
    number=AUD4250GTV
    oemhp_server_name=host.example
    enabled_state=enabled
  Verbs
    cd version exit show reset start stop
"""

MAP_FIRMWARE_OUTPUT = """/map1/firmware1
  Targets
  Properties
    version=2.77
    date=Dec 07 2020
    name=iLO 4
"""

SYSTEM_FIRMWARE_OUTPUT = """/system1/firmware1
  Targets
  Properties
    version=J02
    date=05/24/2019
"""

POWER_OUTPUT = """/system1/oemhp_power1
  Targets
  Properties
    oemhp_powerreg=dynamic
    oemhp_pwrcap=0
    oemhp_PresentPower=120 Watts
    oemhp_AvgPower=118 Watts
    oemhp_MaxPower=190 Watts
    oemhp_MinPower=95 Watts
    oemhp_powersupplycapacity=460 Watts
    oemhp_servermaxpower=349 Watts
    oemhp_serverminpower=62 Watts
    warning_type=disabled
    warning_threshold=0 Watts
    warning_duration=0 Minutes
    oemhp_power_micro_ver=3.3
    oemhp_auto_pwr=ON
"""

PID_OUTPUT = """PID Algorithms
No.  state     prev_drive  setpoint  reading  error  output  lo  hi
---  ------    ----------  --------  -------  -----  ------  --  --
0    Active    32          45.00     38.00    -7.00  36.00   16  100
1    Inactive  32          60.00     0.00     0.00   0.00    16  100
bad  row       x           y         z        w      v       u   t
2    Active    40          50.00     52.00    2.00   55.00
===============================================================
"""


def log_listing(numbers: list[int]) -> str:
    """``show system1/log1`` output listing *numbers* as targets."""
    targets = "\n".join(f"    record{n}" for n in numbers)
    return f"/system1/log1\n  Targets\n{targets}\n  Properties\n  Verbs\n    cd version exit show\n"


def log_record(number: int, date: str = "10/18/2026", time: str = "09:15", severity: str = "Informational") -> str:
    """``show system1/log1/record<N>`` output."""
    return (
        f"/system1/log1/record{number}\n"
        "  Targets\n"
        "  Properties\n"
        f"    number={number}\n"
        f"    severity={severity}\n"
        f"    date={date}\n"
        f"    time={time}\n"
        f"    description=Event {number} occurred\n"
    )


def record_responses(numbers: list[int], base_hour: int = 0) -> dict[str, str]:
    """Record detail responses; higher numbers get later times."""
    return {
        f"show system1/log1/record{n}": log_record(n, time=f"{(base_hour + n) % 24:02d}:00")
        for n in numbers
    }


def record_fetches(channel: MagicMock) -> list[str]:
    """Record-detail commands sent through *channel*, in order."""
    return [c.args[0] for c in channel.execute.call_args_list if c.args[0].startswith("show system1/log1/record")]


def default_responses(numbers: list[int] | None = None) -> dict[str, object]:
    numbers = [13, 14, 15, 16, 17] if numbers is None else numbers
    responses: dict[str, object] = {
        SYSTEM_COMMAND: SYSTEM1_OUTPUT,
        CONTROLLER_FIRMWARE_COMMAND: MAP_FIRMWARE_OUTPUT,
        HOST_FIRMWARE_COMMAND: SYSTEM_FIRMWARE_OUTPUT,
        POWER_COMMAND: POWER_OUTPUT,
        LOG_LIST_COMMAND: log_listing(numbers),
        PID_COMMAND: PID_OUTPUT,
    }
    responses.update(record_responses(list(range(1, 40))))
    return responses


# ── fixtures ──────────────────────────────────────────────────────────


@pytest.fixture()
def credentials():
    return ManagementCredentials(host="10.0.0.5", username="admin", password="secret")


@pytest.fixture()
def fast_settings():
    """Settings with every delay and backoff set to zero."""
    return GatewaySettings(domain_delay=0, record_delay=0, power_retry_backoff=0)


@pytest.fixture()
def make_channel():
    """Factory for a MagicMock SSHCommandChannel answering from a response map.

    A response may be a string, an exception instance (raised) or a list
    consumed one item per call (the last item repeats). Unknown commands
    raise CommandError. ``channel.responses`` can be edited between calls.
    """

    def _make(responses: dict[str, object] | None = None, configured: bool = True) -> MagicMock:
        channel = MagicMock()
        channel.is_configured.return_value = configured
        channel.responses = dict(default_responses() if responses is None else responses)

        def _execute(command: str) -> str:
            value = channel.responses.get(command)
            if value is None:
                raise CommandError(f"Invalid command: {command}", command=command)
            if isinstance(value, list):
                value = value.pop(0) if len(value) > 1 else value[0]
            if isinstance(value, BaseException):
                raise value
            return value  # type: ignore[return-value]

        channel.execute.side_effect = _execute
        return channel

    return _make


@pytest.fixture()
def thermal_payload():
    """Redfish thermal resource with enabled, disabled and absent entries."""
    return {
        "Temperatures": [
            {
                "Name": "01-Inlet Ambient",
                "PhysicalContext": "Intake",
                "ReadingCelsius": 22,
                "Status": {"State": "Enabled", "Health": "OK"},
                "UpperThresholdCritical": 42,
                "UpperThresholdFatal": 46,
            },
            {
                "Name": "02-CPU 1",
                "PhysicalContext": "CPU",
                "ReadingCelsius": 40,
                "Status": {"State": "Enabled", "Health": "OK"},
                "UpperThresholdCritical": 70,
            },
            {
                "Name": "03-P1 DIMM 1-4",
                "PhysicalContext": "SystemBoard",
                "ReadingCelsius": 0,
                "Status": {"State": "Absent"},
            },
        ],
        "Fans": [
            {"FanName": "Fan 1", "CurrentReading": 23, "Status": {"State": "Enabled", "Health": "OK"}},
            {"FanName": "Fan 2", "CurrentReading": 25, "Status": {"State": "Enabled", "Health": "OK"}},
            {"FanName": "Fan 3", "CurrentReading": 0, "Status": {"State": "Absent"}},
            {"FanName": "Fan 4", "CurrentReading": 30, "Status": {"State": "Enabled", "Health": "OK"}},
        ],
    }


@pytest.fixture()
def mock_redfish(thermal_payload):
    """MagicMock RedfishClient returning *thermal_payload*."""
    client = MagicMock()
    client.get_thermal.return_value = thermal_payload
    return client
