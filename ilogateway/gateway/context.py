"""Process-level context that owns every gateway component."""

from __future__ import annotations

from types import TracebackType
from typing import Self

from ilogateway.gateway.automation import AutomationLoop
from ilogateway.gateway.config import AutomationThresholds, CredentialsProvider, GatewaySettings, file_credentials_provider
from ilogateway.gateway.fetcher import DataFetcher
from ilogateway.gateway.logbuffer import RecentLogBuffer
from ilogateway.gateway.thermal import ThermalManager
from ilogateway.gateway.transport.redfish import RedfishClient
from ilogateway.gateway.transport.ssh import SSHCommandChannel


class GatewayContext:
    """One fetcher, one automation loop, their transports and the recent-log buffer.

    Created by the process entry point and handed to whatever serves
    requests; there is no module-level singleton.

    Usage::

        with GatewayContext() as ctx:
            ctx.fetcher.refresh()
            print(ctx.fetcher.get_power().data)
    """

    def __init__(
        self,
        settings: GatewaySettings | None = None,
        credentials_provider: CredentialsProvider | None = None,
    ) -> None:
        self.settings = settings or GatewaySettings()
        self.credentials_provider = credentials_provider or file_credentials_provider(self.settings.config_file)

        self.channel = SSHCommandChannel(
            self.credentials_provider,
            connect_timeout=self.settings.connect_timeout,
            command_timeout=self.settings.command_timeout,
        )
        self.redfish = RedfishClient(self.credentials_provider, timeout=self.settings.http_timeout)
        self.fetcher = DataFetcher(self.channel, self.settings)
        self.thermal = ThermalManager(self.channel, self.redfish, cache_ttl=self.settings.thermal_cache_ttl)
        self.automation = AutomationLoop(self.thermal, interval=self.settings.automation_interval)
        self.log_buffer = RecentLogBuffer()

    def is_configured(self) -> bool:
        return self.channel.is_configured()

    def start(self, thresholds: AutomationThresholds | None = None, automation: bool = False) -> None:
        """Start log capture, the fetcher and, if requested, the automation loop."""
        self.log_buffer.install()
        self.fetcher.start()
        if automation:
            self.automation.start(thresholds)

    def stop(self) -> None:
        self.automation.stop()
        self.fetcher.stop()
        self.log_buffer.uninstall()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None
    ) -> None:
        self.stop()
