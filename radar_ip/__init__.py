"""
Radar-IP - Find a host by MAC address over SSH.

Sweeps an IPv4 range, logs in to every host over SSH, runs `ip link show`
and reports the first host (in address order) whose interfaces carry the
target MAC address.

Architecture:
    radar_ip/
    ├── errors.py      # Error hierarchy and messages
    ├── models.py      # Auth methods, ConnectionConfig, ScanOutcome
    ├── ranges.py      # CIDR -> ordered host list
    ├── events.py      # Event emitter + console printer
    ├── engine.py      # Bounded-concurrency scan coordinator
    ├── config.py      # Profiles, .env, YAML, settings merge
    ├── cli.py         # radar-ip command
    ├── gui.py         # radar-ip-gui (PyQt6)
    └── ssh/
        ├── client.py    # paramiko wrapper, error mapping
        ├── keys.py      # In-memory private key loading
        ├── parsers.py   # MAC extraction
        └── collector.py # One probe: connect, run, parse

Quick Start:
    from radar_ip import ConnectionConfig, PasswordAuth, scan

    config = ConnectionConfig(username="root", auth=PasswordAuth("secret"))
    outcome = await scan("aa:bb:cc:dd:ee:ff", "192.168.1.0/24", config)
    print(outcome.ip_address if outcome.success else outcome.message)
"""

__version__ = "0.2.0"

from .errors import (
    RadarError,
    ConfigError,
    InvalidRangeError,
    ProbeError,
    ConnectionFailure,
    AuthenticationFailure,
    CommandExecutionFailure,
    MacNotFoundError,
    ScanTimeoutError,
)

from .models import (
    AuthMethod,
    PasswordAuth,
    KeyFileAuth,
    KeyMemoryAuth,
    ConnectionConfig,
    DeviceIdentity,
    ProbeResult,
    FailureKind,
    ScanOutcome,
    normalize_key_material,
)

from .ranges import expand_hosts, iter_hosts, count_hosts, parse_network

from .events import (
    EventType,
    ScanEvent,
    EventEmitter,
    ScanStats,
    ConsoleEventPrinter,
)

from .engine import (
    ScanEngine,
    MAX_CONCURRENT,
    scan,
    scan_with_deadline,
)

__all__ = [
    '__version__',
    # Errors
    'RadarError',
    'ConfigError',
    'InvalidRangeError',
    'ProbeError',
    'ConnectionFailure',
    'AuthenticationFailure',
    'CommandExecutionFailure',
    'MacNotFoundError',
    'ScanTimeoutError',
    # Models
    'AuthMethod',
    'PasswordAuth',
    'KeyFileAuth',
    'KeyMemoryAuth',
    'ConnectionConfig',
    'DeviceIdentity',
    'ProbeResult',
    'FailureKind',
    'ScanOutcome',
    'normalize_key_material',
    # Ranges
    'expand_hosts',
    'iter_hosts',
    'count_hosts',
    'parse_network',
    # Events
    'EventType',
    'ScanEvent',
    'EventEmitter',
    'ScanStats',
    'ConsoleEventPrinter',
    # Engine
    'ScanEngine',
    'MAX_CONCURRENT',
    'scan',
    'scan_with_deadline',
]
