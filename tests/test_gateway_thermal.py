"""Tests for thermal reads and fan control."""

from __future__ import annotations

from unittest.mock import MagicMock, call, patch

import pytest

from ilogateway.gateway.exceptions import CommandError, TransportError
from ilogateway.gateway.thermal import ThermalManager, percent_to_pwm


@pytest.fixture()
def ssh_channel():
    return MagicMock()


@pytest.fixture()
def thermal(ssh_channel, mock_redfish):
    return ThermalManager(ssh_channel, mock_redfish, cache_ttl=30)


class TestPercentToPwm:
    """Test duty cycle to PWM conversion."""

    @pytest.mark.parametrize(
        "percent,pwm",
        [(0, 25), (5, 25), (10, 26), (32, 82), (50, 128), (60, 153), (90, 230), (100, 255)],
    )
    def test_conversion(self, percent, pwm):
        assert percent_to_pwm(percent) == pwm

    @pytest.mark.parametrize("percent", [-1, 100.5, 250])
    def test_out_of_range(self, percent):
        with pytest.raises(ValueError):
            percent_to_pwm(percent)


class TestThermalReads:
    """Test Redfish-backed sensor and fan reads."""

    def test_sensors_and_fans(self, thermal):
        assert [s.name for s in thermal.get_sensors()] == ["01-Inlet Ambient", "02-CPU 1"]
        assert [f.name for f in thermal.get_fans()] == ["Fan 1", "Fan 2", "Fan 4"]

    def test_cached_within_ttl(self, thermal, mock_redfish):
        thermal.get_sensors()
        thermal.get_fans()
        assert mock_redfish.get_thermal.call_count == 1

    @patch("ilogateway.gateway.thermal.time.monotonic")
    def test_refetch_after_ttl(self, mock_monotonic, thermal, mock_redfish):
        mock_monotonic.return_value = 1000.0
        thermal.get_sensors()
        mock_monotonic.return_value = 1031.0
        thermal.get_sensors()
        assert mock_redfish.get_thermal.call_count == 2

    def test_live_bypasses_cache(self, thermal, mock_redfish):
        thermal.get_sensors()
        thermal.get_sensors(live=True)
        assert mock_redfish.get_thermal.call_count == 2

    def test_invalidate(self, thermal, mock_redfish):
        thermal.get_fans()
        thermal.invalidate()
        thermal.get_fans()
        assert mock_redfish.get_thermal.call_count == 2

    @patch("ilogateway.gateway.thermal.time.monotonic")
    def test_falls_back_to_cached_copy(self, mock_monotonic, thermal, mock_redfish):
        mock_monotonic.return_value = 1000.0
        thermal.get_sensors()
        mock_redfish.get_thermal.side_effect = TransportError("GET failed: HTTP 503")
        mock_monotonic.return_value = 2000.0

        assert len(thermal.get_sensors()) == 2

    def test_error_without_cache_propagates(self, thermal, mock_redfish):
        mock_redfish.get_thermal.side_effect = TransportError("GET failed: HTTP 503")
        with pytest.raises(TransportError):
            thermal.get_sensors()

    def test_live_read_never_falls_back(self, thermal, mock_redfish):
        thermal.get_sensors()
        mock_redfish.get_thermal.side_effect = TransportError("down")
        with pytest.raises(TransportError):
            thermal.get_sensors(live=True)


class TestOverrides:
    """Test display overrides."""

    def test_sensor_override(self, thermal):
        thermal.override_sensor("02-CPU 1", 55.0)
        readings = {s.name: s.reading for s in thermal.get_sensors()}
        assert readings["02-CPU 1"] == 55.0
        assert readings["01-Inlet Ambient"] == 22.0

    def test_overrides_not_applied_to_live_reads(self, thermal):
        thermal.override_sensor("02-CPU 1", 55.0)
        readings = {s.name: s.reading for s in thermal.get_sensors(live=True)}
        assert readings["02-CPU 1"] == 40.0

    def test_fan_override_and_reset(self, thermal):
        thermal.override_fan("Fan 2", 70)
        assert {f.name: f.speed for f in thermal.get_fans()}["Fan 2"] == 70
        thermal.reset_fan_overrides()
        assert {f.name: f.speed for f in thermal.get_fans()}["Fan 2"] == 25.0

    def test_reset_sensor_overrides(self, thermal):
        thermal.override_sensor("x", 1)
        thermal.reset_sensor_overrides()
        assert thermal.sensor_overrides == {}


class TestFanWrites:
    """Test fan control commands sent over SSH."""

    def test_unlock(self, thermal, ssh_channel):
        thermal.unlock_fans()
        ssh_channel.execute.assert_called_once_with("fan p global unlock")

    def test_lock_fan(self, thermal, ssh_channel):
        assert thermal.lock_fan(2, 50) == 128
        ssh_channel.execute.assert_called_once_with("fan p 2 lock 128")

    def test_lock_fan_rejects_bad_speed(self, thermal, ssh_channel):
        with pytest.raises(ValueError):
            thermal.lock_fan(0, 120)
        ssh_channel.execute.assert_not_called()

    def test_write_invalidates_cache(self, thermal, mock_redfish):
        thermal.get_fans()
        thermal.lock_fan(0, 40)
        thermal.get_fans()
        assert mock_redfish.get_thermal.call_count == 2

    def test_set_all_fans(self, thermal, ssh_channel):
        """Unlock, then lock each present fan in order."""
        thermal.set_all_fans(60)

        assert ssh_channel.execute.call_args_list == [
            call("fan p global unlock"),
            call("fan p 0 lock 153"),
            call("fan p 1 lock 153"),
            call("fan p 2 lock 153"),
        ]

    def test_set_all_fans_failure_records_overrides(self, thermal, ssh_channel):
        """A failed write records the target speed as a display override and re-raises."""
        ssh_channel.execute.side_effect = [None, CommandError("Fan locked by another session", command="fan p 0")]

        with pytest.raises(CommandError):
            thermal.set_all_fans(90)

        assert thermal.fan_overrides == {"Fan 1": 90, "Fan 2": 90, "Fan 4": 90}
        assert all(f.speed == 90 for f in thermal.get_fans())

    def test_set_all_fans_validates_first(self, thermal, ssh_channel, mock_redfish):
        with pytest.raises(ValueError):
            thermal.set_all_fans(-5)
        ssh_channel.execute.assert_not_called()
        mock_redfish.get_thermal.assert_not_called()

    def test_pid_low_limit(self, thermal, ssh_channel):
        thermal.set_pid_low_limit(3, 20)
        ssh_channel.execute.assert_called_once_with("fan pid 3 lo 2000")

    def test_pid_low_limit_validation(self, thermal):
        with pytest.raises(ValueError):
            thermal.set_pid_low_limit(3, 101)


class TestRawDumps:
    """Test raw fan dump commands."""

    def test_dumps(self, thermal, ssh_channel):
        ssh_channel.execute.return_value = "raw"
        assert thermal.fan_info() == "raw"
        assert thermal.pid_info() == "raw"
        assert thermal.group_info() == "raw"
        assert [c.args[0] for c in ssh_channel.execute.call_args_list] == ["fan info", "fan info a", "fan info g"]
