"""One-shot SSH command channel for the controller CLI."""

from __future__ import annotations

import socket

import paramiko
from loguru import logger

from ilogateway.gateway.base.transport import BaseTransport
from ilogateway.gateway.config import CredentialsProvider
from ilogateway.gateway.exceptions import AuthenticationError, CommandError, GatewayError, TransportError

DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_COMMAND_TIMEOUT = 30.0


class SSHCommandChannel(BaseTransport):
    """Runs exactly one CLI command per SSH session.

    Every call to :meth:`execute` opens a fresh authenticated connection,
    runs the command via ``exec_command`` and closes the connection again,
    whatever the outcome. Nothing is pooled, so a hung or broken session can
    only affect the call that owns it.
    """

    def __init__(
        self,
        credentials_provider: CredentialsProvider,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
    ):
        super().__init__(credentials_provider, timeout=command_timeout)
        self.connect_timeout = connect_timeout

    def describe(self) -> str:
        creds = self._credentials_provider()
        return f"ssh://{creds.host}:{creds.ssh_port}" if creds else "ssh://<not configured>"

    def execute(self, command: str) -> str:
        """Run *command* and return its stdout.

        Raises:
            ConfigurationError: No credentials; no connection is attempted.
            AuthenticationError: The controller rejected the login.
            CommandError: The command wrote to stderr.
            TransportError: Connection failure or timeout.
        """
        creds = self.credentials()
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        try:
            try:
                client.connect(
                    hostname=creds.host,
                    port=creds.ssh_port,
                    username=creds.username,
                    password=creds.password,
                    look_for_keys=False,
                    allow_agent=False,
                    timeout=self.connect_timeout,
                    banner_timeout=self.connect_timeout,
                    auth_timeout=self.connect_timeout,
                )
            except paramiko.AuthenticationException as e:
                raise AuthenticationError(f"SSH authentication failed: {e}") from e
            except (paramiko.SSHException, OSError) as e:
                raise TransportError(f"SSH connection to {creds.host} failed: {e}") from e

            logger.debug(f"{creds.host}: {command}")
            try:
                _stdin, stdout, stderr = client.exec_command(command, timeout=self.timeout)
                out = stdout.read().decode("utf-8", errors="replace")
                err = stderr.read().decode("utf-8", errors="replace")
            except socket.timeout as e:
                raise TransportError(f"Command '{command}' timed out after {self.timeout}s") from e
            except (paramiko.SSHException, OSError) as e:
                raise TransportError(f"Command '{command}' failed: {e}") from e

            if err.strip():
                raise CommandError(err, command=command)
            return out
        finally:
            client.close()

    def test_connection(self) -> bool:
        """Run ``version`` and report whether the controller answered."""
        try:
            return bool(self.execute("version").strip())
        except GatewayError as e:
            logger.warning(f"Controller connection test failed: {e}")
            return False
