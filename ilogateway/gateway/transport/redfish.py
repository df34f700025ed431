"""Redfish (JSON status API) client for the controller."""

from __future__ import annotations

from typing import Any

import requests
from loguru import logger

from ilogateway.gateway.base.transport import BaseTransport
from ilogateway.gateway.config import CredentialsProvider
from ilogateway.gateway.exceptions import AuthenticationError, TransportError

THERMAL_PATH = "redfish/v1/chassis/1/Thermal/"
USER_AGENT = "ilogateway"
DEFAULT_TIMEOUT = 10.0


class RedfishClient(BaseTransport):
    """HTTPS GET client using Basic Auth against the controller's Redfish API.

    Controllers ship self-signed certificates, so ``verify_ssl`` defaults to
    False. Each request uses its own session; there is no retry at this layer.
    """

    def __init__(
        self,
        credentials_provider: CredentialsProvider,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = False,
    ):
        super().__init__(credentials_provider, timeout=timeout)
        self.verify_ssl = verify_ssl

    def describe(self) -> str:
        creds = self._credentials_provider()
        return f"https://{creds.host}:{creds.https_port}" if creds else "https://<not configured>"

    def fetch_status(self, path: str) -> Any:
        """GET *path* (relative to the controller root) and return parsed JSON.

        Raises:
            ConfigurationError: No credentials.
            AuthenticationError: HTTP 401.
            TransportError: Network error, non-2xx status, or non-JSON body.
        """
        creds = self.credentials()
        url = f"https://{creds.host}:{creds.https_port}/{path.lstrip('/')}"

        with requests.Session() as session:
            session.verify = self.verify_ssl
            session.auth = (creds.username, creds.password)
            session.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})
            try:
                resp = session.get(url, timeout=self.timeout)
            except requests.RequestException as e:
                raise TransportError(f"GET {path} failed: {e}") from e

        if resp.status_code == 401:
            raise AuthenticationError(f"GET {path} rejected credentials", status_code=401)
        if not resp.ok:
            raise TransportError(f"GET {path} failed: HTTP {resp.status_code} {resp.reason}", status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"GET {path} returned invalid JSON: {e}", status_code=resp.status_code) from e

    def get_thermal(self) -> dict[str, Any]:
        """Fetch the thermal resource (Temperatures[] and Fans[])."""
        data = self.fetch_status(THERMAL_PATH)
        if not isinstance(data, dict):
            logger.warning(f"Unexpected thermal payload type {type(data).__name__}")
            return {}
        return data
