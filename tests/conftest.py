"""
Shared fixtures for radar-ip tests.

FakeCollector stands in for MacCollector so the scan engine can be
exercised without any SSH traffic. FakeClient stands in for SSHClient
under a real MacCollector.
"""

import io
import threading
import time

import paramiko
import pytest

from radar_ip.models import ConnectionConfig, DeviceIdentity, PasswordAuth


class FakeCollector:
    """
    Scripted probe executor.

    Per host: MAC addresses to report, an exception to raise, and a delay
    before answering. Records calls and peak concurrency.
    """

    def __init__(self, macs=None, errors=None, delays=None, default_delay=0.0):
        self.macs = macs or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.default_delay = default_delay

        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def collect(self, host):
        with self._lock:
            self.calls.append(host)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)

        try:
            delay = self.delays.get(host, self.default_delay)
            if delay:
                time.sleep(delay)
            if host in self.errors:
                raise self.errors[host]
            return DeviceIdentity(ip_address=host, mac_addresses=list(self.macs.get(host, [])))
        finally:
            with self._lock:
                self.in_flight -= 1


class FakeClient:
    """Stand-in for SSHClient that replays canned command output."""

    def __init__(self, host, config, output="", error=None, pkey=None):
        self.host = host
        self.config = config
        self.output = output
        self.error = error
        self.pkey = pkey
        self.commands = []
        self.closed = False

    def __enter__(self):
        if self.error:
            raise self.error
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.closed = True
        return False

    def execute_command(self, command):
        self.commands.append(command)
        return self.output


@pytest.fixture
def password_config():
    return ConnectionConfig(username="root", auth=PasswordAuth("secret"), timeout=1.0)


@pytest.fixture(scope="session")
def rsa_key_pem():
    """Unencrypted RSA private key in PEM form."""
    key = paramiko.RSAKey.generate(2048)
    buf = io.StringIO()
    key.write_private_key(buf)
    return buf.getvalue()


@pytest.fixture(scope="session")
def encrypted_rsa_key_pem():
    key = paramiko.RSAKey.generate(2048)
    buf = io.StringIO()
    key.write_private_key(buf, password="hunter2")
    return buf.getvalue()
