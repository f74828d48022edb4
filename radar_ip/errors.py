"""
Radar-IP - Error Taxonomy.

Scan-level errors (InvalidRangeError, MacNotFoundError, ScanTimeoutError)
are carried to the caller inside a ScanOutcome. Per-host errors
(ProbeError and subclasses) are raised by the SSH layer and swallowed by
the scan engine, which keeps only the first one as a diagnostic hint.
"""

from typing import Optional


class RadarError(Exception):
    """Base exception for radar-ip."""
    pass


class ConfigError(RadarError):
    """Invalid or incomplete connection configuration."""
    pass


class InvalidRangeError(RadarError):
    """CIDR string does not describe an IPv4 network."""

    def __init__(self, cidr: str):
        self.cidr = cidr
        super().__init__(f"Invalid IP range: '{cidr}'")


# =============================================================================
# Per-host probe failures
# =============================================================================

class ProbeError(RadarError):
    """A single host could not be probed."""

    prefix = "SSH error on"

    def __init__(self, host: str, detail: str):
        self.host = host
        self.detail = detail
        super().__init__(f"{self.prefix} {host}: {detail}")


class ConnectionFailure(ProbeError):
    """TCP connect, handshake or timeout failure."""
    prefix = "SSH connection error to"


class AuthenticationFailure(ProbeError):
    """Password rejected, key rejected, or key could not be loaded."""
    prefix = "Authentication error on"


class CommandExecutionFailure(ProbeError):
    """Inspection command could not be run or its output read."""
    prefix = "SSH command execution error on"


# =============================================================================
# Scan outcomes
# =============================================================================

class MacNotFoundError(RadarError):
    """Sweep completed without any host reporting the target MAC."""

    def __init__(self, target_mac: str, diagnostic: Optional[str] = None):
        self.target_mac = target_mac
        self.diagnostic = diagnostic
        message = f"MAC address '{target_mac}' not found on any host in the scanned range"
        if diagnostic:
            message += f"\nFirst error: {diagnostic}"
        super().__init__(message)


class ScanTimeoutError(RadarError):
    """Caller-imposed scan deadline expired."""

    def __init__(self, deadline: float):
        self.deadline = deadline
        super().__init__(f"Scan timed out after {deadline:g} seconds")
