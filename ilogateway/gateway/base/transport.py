"""Abstract base transport for management-controller communication."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ilogateway.gateway.config import CredentialsProvider, ManagementCredentials
from ilogateway.gateway.exceptions import ConfigurationError


class BaseTransport(ABC):
    """Abstract base class for controller transports.

    Transports hold no connection state between calls. Credentials are
    resolved through *credentials_provider* on every request so that a
    configuration change takes effect without rebuilding the transport.
    """

    def __init__(self, credentials_provider: CredentialsProvider, timeout: float):
        self._credentials_provider = credentials_provider
        self.timeout = timeout

    def credentials(self) -> ManagementCredentials:
        """Return the current credentials or raise ConfigurationError."""
        creds = self._credentials_provider()
        if creds is None or not creds.is_complete():
            raise ConfigurationError("Management controller not configured. Set host, username and password.")
        return creds

    def is_configured(self) -> bool:
        creds = self._credentials_provider()
        return creds is not None and creds.is_complete()

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable description of the endpoint."""
