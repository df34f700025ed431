"""Pydantic configuration models and credential resolution."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Callable, Mapping, Optional

from loguru import logger
from pydantic import BaseModel, Field, ValidationError, model_validator

DEFAULT_CONFIG_FILE = Path("config") / "ilo-config.json"

ENV_HOST = "ILO_HOST"
ENV_USERNAME = "ILO_USERNAME"
ENV_PASSWORD = "ILO_PASSWORD"
ENV_SETTINGS_PREFIX = "ILOGW_"


class ManagementCredentials(BaseModel):
    """Host and login for the management controller."""

    host: str
    username: str
    password: str = Field(repr=False)
    ssh_port: int = 22
    https_port: int = 443

    def is_complete(self) -> bool:
        return bool(self.host and self.username and self.password)


CredentialsProvider = Callable[[], Optional[ManagementCredentials]]


class AutomationThresholds(BaseModel):
    """Temperature thresholds for the three fan-speed tiers."""

    low: float = 30.0
    med: float = 40.0

    @model_validator(mode="after")
    def _check_order(self) -> "AutomationThresholds":
        if not self.low < self.med:
            raise ValueError(f"low threshold ({self.low}) must be below med threshold ({self.med})")
        return self


class GatewaySettings(BaseModel):
    """Timing, retry and window settings for the gateway core.

    Every field can be overridden from the environment with the ``ILOGW_``
    prefix, e.g. ``ILOGW_FETCH_INTERVAL=60``.
    """

    fetch_interval: float = 180.0
    domain_delay: float = 1.0
    record_delay: float = 0.5
    power_max_retries: int = 2
    power_retry_backoff: float = 2.0
    log_window_size: int = Field(default=5, ge=1)

    automation_interval: float = 60.0

    connect_timeout: float = 10.0
    command_timeout: float = 30.0
    http_timeout: float = 10.0
    thermal_cache_ttl: float = 30.0

    initializing_grace: float = 30.0

    config_file: Path = DEFAULT_CONFIG_FILE

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GatewaySettings":
        env = os.environ if environ is None else environ
        overrides: dict[str, str] = {}
        for name in cls.model_fields:
            value = env.get(f"{ENV_SETTINGS_PREFIX}{name.upper()}")
            if value is not None:
                overrides[name] = value
        return cls.model_validate(overrides)


def load_credentials(
    config_file: Path | str = DEFAULT_CONFIG_FILE,
    environ: Mapping[str, str] | None = None,
) -> ManagementCredentials | None:
    """Resolve credentials from the JSON config file, then the environment.

    Returns None when neither source yields a complete set.
    """
    path = Path(config_file)
    if path.is_file():
        try:
            creds = ManagementCredentials.model_validate(json.loads(path.read_text(encoding="utf-8")))
            if creds.is_complete():
                return creds
            logger.warning(f"Credentials in {path} are incomplete, falling back to environment")
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Could not read credentials from {path}: {e}")

    env = os.environ if environ is None else environ
    host = env.get(ENV_HOST, "")
    username = env.get(ENV_USERNAME, "")
    password = env.get(ENV_PASSWORD, "")
    if host and username and password:
        return ManagementCredentials(host=host, username=username, password=password)
    return None


def save_credentials(creds: ManagementCredentials, config_file: Path | str = DEFAULT_CONFIG_FILE) -> None:
    """Write credentials to the JSON config file, creating its directory."""
    path = Path(config_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(creds.model_dump(), indent=2), encoding="utf-8")
    logger.info(f"Saved controller credentials for {creds.host} to {path}")


def file_credentials_provider(
    config_file: Path | str = DEFAULT_CONFIG_FILE,
    environ: Mapping[str, str] | None = None,
) -> CredentialsProvider:
    """Return a provider that re-reads the credential sources on every call."""

    def _provider() -> ManagementCredentials | None:
        return load_credentials(config_file, environ)

    return _provider


def static_credentials_provider(creds: ManagementCredentials | None) -> CredentialsProvider:
    """Return a provider that always yields *creds*."""
    return lambda: creds
