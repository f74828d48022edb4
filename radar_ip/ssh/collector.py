"""
Radar-IP SSH Collector - Probe executor.

Path: radar_ip/ssh/collector.py

Connects to one host, runs the inspection command and returns the MAC
addresses it reports as a DeviceIdentity. Transport failures propagate
as ProbeError subclasses; deciding what to do with them is the scan
engine's job.

A private key is parsed once per collector, on the first probe, and
shared by every host after that.
"""

import logging
import threading
import time
from typing import Callable, Optional

import paramiko

from ..errors import AuthenticationFailure
from ..models import ConnectionConfig, DeviceIdentity
from .client import SSHClient
from .keys import load_auth_key
from .parsers import extract_mac_addresses

logger = logging.getLogger(__name__)

# Lists every interface with its link-layer address
INSPECT_COMMAND = "ip link show"

# (host, config) or (host, config, pkey=...) for key authentication
ClientFactory = Callable[..., SSHClient]


class MacCollector:
    """
    Blocking MAC address collector.

    Safe to call from many worker threads at once.

    Example:
        config = ConnectionConfig(username="pi", auth=PasswordAuth("raspberry"))
        collector = MacCollector(config)

        identity = collector.collect("192.168.1.20")
        print(identity.mac_addresses)
    """

    def __init__(
        self,
        config: ConnectionConfig,
        command: str = INSPECT_COMMAND,
        client_factory: Optional[ClientFactory] = None,
    ):
        """
        Initialize collector.

        Args:
            config: Shared connection settings.
            command: Remote command whose output lists MAC addresses.
            client_factory: Builds the session; defaults to SSHClient.
                Receives pkey= when the config uses key authentication.
        """
        self.config = config
        self.command = command
        self.client_factory = client_factory or SSHClient

        self._key_lock = threading.Lock()
        self._key_loaded = False
        self._pkey: Optional[paramiko.PKey] = None
        self._key_error: Optional[str] = None

    def _load_key(self) -> Optional[paramiko.PKey]:
        """
        Parse the configured private key, once.

        Returns None for password authentication. A key that fails to
        parse fails every later call with the same error, without parsing
        it again.
        """
        with self._key_lock:
            if not self._key_loaded:
                try:
                    self._pkey = load_auth_key(self.config.auth)
                except (OSError, paramiko.SSHException, ValueError) as e:
                    self._key_error = f"Private key error: {e}"
                    logger.error(self._key_error)
                self._key_loaded = True

        return self._pkey

    def collect(self, host: str) -> DeviceIdentity:
        """
        Probe one host.

        Raises:
            ProbeError: Connection, authentication or command failure.
        """
        start_time = time.time()

        pkey = self._load_key()
        if self._key_error:
            raise AuthenticationFailure(host, self._key_error)

        if pkey is not None:
            client = self.client_factory(host, self.config, pkey=pkey)
        else:
            client = self.client_factory(host, self.config)

        with client:
            output = client.execute_command(self.command)

        macs = extract_mac_addresses(output)
        duration_ms = (time.time() - start_time) * 1000
        logger.debug(f"{host}: {len(macs)} MAC address(es) in {duration_ms:.0f}ms")

        return DeviceIdentity(
            ip_address=host,
            mac_addresses=macs,
            duration_ms=duration_ms,
        )


def collect_macs(host: str, config: ConnectionConfig) -> DeviceIdentity:
    """Convenience function for a one-off probe."""
    return MacCollector(config).collect(host)
