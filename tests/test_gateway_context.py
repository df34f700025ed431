"""Tests for GatewayContext wiring and lifecycle."""

from __future__ import annotations

import time
from unittest.mock import MagicMock

from loguru import logger

from ilogateway.gateway.config import AutomationThresholds, GatewaySettings, static_credentials_provider
from ilogateway.gateway.context import GatewayContext

NOT_CONFIGURED = "Controller not configured, skipping data fetch"


class TestGatewayContext:
    """Test component construction and start/stop."""

    def test_components_share_settings(self, credentials):
        settings = GatewaySettings(connect_timeout=3, command_timeout=12, http_timeout=4, automation_interval=15)
        ctx = GatewayContext(settings, static_credentials_provider(credentials))

        assert ctx.channel.connect_timeout == 3
        assert ctx.channel.timeout == 12
        assert ctx.redfish.timeout == 4
        assert ctx.automation.interval == 15
        assert ctx.fetcher.settings is settings
        assert ctx.is_configured()

    def test_default_provider_reads_config_file(self, tmp_path, monkeypatch):
        for var in ("ILO_HOST", "ILO_USERNAME", "ILO_PASSWORD"):
            monkeypatch.delenv(var, raising=False)
        ctx = GatewayContext(GatewaySettings(config_file=tmp_path / "missing.json"))
        assert ctx.is_configured() is False

    def test_start_without_automation(self, credentials):
        ctx = GatewayContext(credentials_provider=static_credentials_provider(credentials))
        ctx.fetcher = MagicMock()
        ctx.automation = MagicMock()

        ctx.start()
        ctx.stop()

        ctx.fetcher.start.assert_called_once()
        ctx.automation.start.assert_not_called()

    def test_start_with_automation(self, credentials):
        ctx = GatewayContext(credentials_provider=static_credentials_provider(credentials))
        ctx.fetcher = MagicMock()
        ctx.automation = MagicMock()
        thresholds = AutomationThresholds(low=28, med=38)

        ctx.start(thresholds=thresholds, automation=True)
        ctx.stop()

        ctx.automation.start.assert_called_once_with(thresholds)

    def test_context_manager_stops(self, credentials):
        with GatewayContext(credentials_provider=static_credentials_provider(credentials)) as ctx:
            ctx.fetcher = MagicMock()
            ctx.automation = MagicMock()
        ctx.automation.stop.assert_called_once()
        ctx.fetcher.stop.assert_called_once()

    def test_log_buffer_captures_gateway_logs(self, fast_settings):
        """Messages emitted by gateway modules reach the buffer while the context runs."""
        logger.disable("ilogateway")
        ctx = GatewayContext(fast_settings.model_copy(update={"fetch_interval": 60}), static_credentials_provider(None))

        ctx.start()
        try:
            deadline = time.monotonic() + 5
            while NOT_CONFIGURED not in _messages(ctx) and time.monotonic() < deadline:
                time.sleep(0.01)
        finally:
            ctx.stop()
        logger.info("after stop")

        messages = _messages(ctx)
        assert NOT_CONFIGURED in messages
        assert "after stop" not in messages


def _messages(ctx: GatewayContext) -> list[str]:
    return [e["message"] for e in ctx.log_buffer.entries()]
