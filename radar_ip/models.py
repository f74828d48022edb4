"""
Radar-IP - Data Models.

Dataclasses shared by the scan engine, the SSH layer and the front ends.

Design Principles:
- Connection settings are immutable and shared read-only by every probe
- Exactly one authentication method per ConnectionConfig
- Per-probe results are small and discarded after the match test
- ScanOutcome is serializable to JSON for the CLI
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, List, Dict, Any

from .errors import ConfigError, RadarError


def normalize_key_material(key_data: str) -> str:
    """
    Normalize private key text for key parsers.

    Converts Windows line endings to Unix and guarantees exactly one
    trailing newline. Some parsers reject keys without it.
    """
    text = key_data.replace('\r\n', '\n').replace('\r', '\n')
    return text.rstrip('\n') + '\n'


# =============================================================================
# Authentication
# =============================================================================

class AuthMethod:
    """Base class for SSH authentication variants."""

    @property
    def kind(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class PasswordAuth(AuthMethod):
    """Username/password authentication."""
    password: str = field(repr=False)

    @property
    def kind(self) -> str:
        return "password"


@dataclass(frozen=True)
class KeyFileAuth(AuthMethod):
    """Private key read from a file, with optional passphrase."""
    path: Path
    passphrase: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'path', Path(self.path).expanduser())

    @property
    def kind(self) -> str:
        return "key_file"


@dataclass(frozen=True)
class KeyMemoryAuth(AuthMethod):
    """Private key held in memory (e.g. from an environment variable)."""
    key_data: str = field(repr=False)
    passphrase: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.key_data or not self.key_data.strip():
            raise ConfigError("Private key material is empty")
        object.__setattr__(self, 'key_data', normalize_key_material(self.key_data))

    @property
    def kind(self) -> str:
        return "key_memory"


@dataclass(frozen=True)
class ConnectionConfig:
    """
    SSH connection settings for every probe of a scan.

    Immutable so it can be handed to worker threads without copying.
    """
    username: str
    auth: AuthMethod
    port: int = 22
    timeout: float = 5.0  # seconds; TCP connect, handshake, auth and command read

    def __post_init__(self):
        if not isinstance(self.auth, AuthMethod):
            raise ConfigError(f"Unsupported authentication method: {self.auth!r}")
        if not self.username:
            raise ConfigError("SSH username is required")
        if not 0 < self.port < 65536:
            raise ConfigError(f"Invalid SSH port: {self.port}")
        if self.timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout}")


# =============================================================================
# Probe results
# =============================================================================

@dataclass
class DeviceIdentity:
    """MAC addresses reported by one probed host."""
    ip_address: str
    mac_addresses: List[str] = field(default_factory=list)  # lowercase, colon-separated
    duration_ms: float = 0.0

    def has_mac(self, mac: str) -> bool:
        return mac.strip().lower() in self.mac_addresses


@dataclass
class ProbeResult:
    """What the scan engine keeps from one probe unit."""
    ip_address: str
    matched: bool = False
    error: Optional[str] = None
    duration_ms: float = 0.0


# =============================================================================
# Scan outcome
# =============================================================================

class FailureKind(str, Enum):
    """Terminal failure kinds of a scan."""
    INVALID_RANGE = "invalid_range"
    MAC_NOT_FOUND = "mac_not_found"
    SCAN_TIMEOUT = "scan_timeout"


@dataclass
class ScanOutcome:
    """
    Result of one full scan.

    Either ip_address is set (success) or failure/error describe why not.
    """
    target_mac: str
    cidr: str
    ip_address: Optional[str] = None
    failure: Optional[FailureKind] = None
    error: Optional[RadarError] = None
    diagnostic: Optional[str] = None

    hosts_total: int = 0
    hosts_checked: int = 0

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.ip_address is not None

    @property
    def message(self) -> str:
        """Text suitable for direct display."""
        if self.success:
            return self.ip_address
        if self.error is not None:
            return str(self.error)
        return "Scan failed"

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @classmethod
    def found(cls, target_mac: str, cidr: str, ip_address: str, **kwargs) -> 'ScanOutcome':
        return cls(target_mac=target_mac, cidr=cidr, ip_address=ip_address, **kwargs)

    @classmethod
    def failed(
        cls,
        target_mac: str,
        cidr: str,
        failure: FailureKind,
        error: RadarError,
        diagnostic: Optional[str] = None,
        **kwargs,
    ) -> 'ScanOutcome':
        return cls(
            target_mac=target_mac,
            cidr=cidr,
            failure=failure,
            error=error,
            diagnostic=diagnostic,
            **kwargs,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'target_mac': self.target_mac,
            'cidr': self.cidr,
            'success': self.success,
            'ip_address': self.ip_address,
            'failure': self.failure.value if self.failure else None,
            'message': self.message,
            'diagnostic': self.diagnostic,
            'hosts_total': self.hosts_total,
            'hosts_checked': self.hosts_checked,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'duration_seconds': self.duration_seconds,
        }
