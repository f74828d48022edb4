"""
Radar-IP SSH Client - paramiko transport for a single probe.

Path: radar_ip/ssh/client.py

Opens one authenticated session, runs one command, and maps every
transport problem onto the probe error taxonomy:

    connect / handshake / timeout  -> ConnectionFailure
    rejected credentials, bad key  -> AuthenticationFailure
    exec / read / non-zero exit    -> CommandExecutionFailure

Usage:
    with SSHClient("192.168.1.10", config) as client:
        output = client.execute_command("ip link show")
"""

import logging
import socket
from typing import Optional, Dict, Any

import paramiko
from paramiko.ssh_exception import NoValidConnectionsError

from ..errors import (
    AuthenticationFailure,
    CommandExecutionFailure,
    ConnectionFailure,
)
from ..models import ConnectionConfig, PasswordAuth, KeyFileAuth, KeyMemoryAuth
from .keys import load_auth_key

logger = logging.getLogger(__name__)


class SSHClient:
    """
    Blocking SSH session against one host.

    Intended to run on a worker thread; every network wait is bounded by
    config.timeout.
    """

    def __init__(self, host: str, config: ConnectionConfig, pkey: Optional[paramiko.PKey] = None):
        """
        Args:
            host: Address to connect to.
            config: Shared connection settings.
            pkey: Already-parsed private key; skips loading the key from
                config.auth on every connect.
        """
        self.host = host
        self.config = config
        self.pkey = pkey
        self._client: Optional[paramiko.SSHClient] = None

    def __enter__(self) -> 'SSHClient':
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @property
    def is_connected(self) -> bool:
        if self._client is None:
            return False
        transport = self._client.get_transport()
        return transport is not None and transport.is_active()

    def _auth_kwargs(self) -> Dict[str, Any]:
        """Build the credential part of paramiko.SSHClient.connect() kwargs."""
        auth = self.config.auth

        if isinstance(auth, PasswordAuth):
            return {"password": auth.password}

        if self.pkey is not None:
            return {"pkey": self.pkey}

        if not isinstance(auth, (KeyMemoryAuth, KeyFileAuth)):
            raise AuthenticationFailure(self.host, f"unsupported auth method {auth.kind}")

        try:
            pkey = load_auth_key(auth)
        except (OSError, paramiko.SSHException, ValueError) as e:
            raise AuthenticationFailure(self.host, f"Private key error: {e}")

        return {"pkey": pkey}

    def connect(self) -> None:
        """
        Open and authenticate the session.

        Raises:
            ConnectionFailure: Host unreachable, refused, or too slow.
            AuthenticationFailure: Credentials rejected or key unusable.
        """
        timeout = self.config.timeout
        connect_kwargs = {
            "hostname": self.host,
            "port": self.config.port,
            "username": self.config.username,
            "timeout": timeout,
            "banner_timeout": timeout,
            "auth_timeout": timeout,
            "allow_agent": False,
            "look_for_keys": False,
        }
        connect_kwargs.update(self._auth_kwargs())

        client = paramiko.SSHClient()
        # Devices are reimaged and rotate host keys; there is no known_hosts to trust.
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        try:
            client.connect(**connect_kwargs)
        except paramiko.AuthenticationException as e:
            client.close()
            raise AuthenticationFailure(self.host, str(e) or "authentication failed")
        except socket.timeout:
            client.close()
            raise ConnectionFailure(self.host, "Connection timed out")
        except NoValidConnectionsError:
            client.close()
            raise ConnectionFailure(self.host, f"Connection refused on port {self.config.port}")
        except ConnectionRefusedError:
            client.close()
            raise ConnectionFailure(self.host, f"Connection refused on port {self.config.port}")
        except socket.gaierror as e:
            client.close()
            raise ConnectionFailure(self.host, f"DNS resolution failed: {e}")
        except (paramiko.SSHException, OSError, EOFError) as e:
            client.close()
            raise ConnectionFailure(self.host, str(e) or e.__class__.__name__)

        transport = client.get_transport()
        if transport is None or not transport.is_authenticated():
            client.close()
            raise AuthenticationFailure(self.host, "authentication failed")

        self._client = client
        logger.debug(f"Connected to {self.host}:{self.config.port} as {self.config.username}")

    def execute_command(self, command: str) -> str:
        """
        Run a command and return its complete stdout.

        Raises:
            CommandExecutionFailure: Not connected, channel error, read
                timeout, or non-zero exit status.
        """
        if self._client is None:
            raise CommandExecutionFailure(self.host, "not connected")

        try:
            _, stdout, stderr = self._client.exec_command(command, timeout=self.config.timeout)
            output = stdout.read().decode('utf-8', errors='replace')
            exit_status = stdout.channel.recv_exit_status()
            error_output = stderr.read().decode('utf-8', errors='replace').strip()
        except socket.timeout:
            raise CommandExecutionFailure(self.host, f"'{command}' timed out")
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise CommandExecutionFailure(self.host, str(e) or e.__class__.__name__)

        if exit_status != 0:
            detail = f"'{command}' exited with status {exit_status}"
            if error_output:
                detail += f": {error_output}"
            raise CommandExecutionFailure(self.host, detail)

        logger.debug(f"{self.host}: '{command}' returned {len(output)} bytes")
        return output

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
