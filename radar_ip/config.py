"""
Radar-IP - Configuration.

Resolves scan settings from, in order of precedence:

    1. Command-line arguments
    2. YAML config file (--yaml)
    3. Device profile defaults (--profile)
    4. Built-in defaults

Secrets may come from the environment (optionally loaded from a .env
file): the profile's private key variable and SSH_PASSWORD.

Example YAML:
    target_mac: "dc:a6:32:01:02:03"
    range: 10.8.0.0/24
    user: root
    timeout: 3
    concurrency: 50
    deadline: 15
    profile: hc
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from dotenv import load_dotenv

from .engine import MAX_CONCURRENT
from .errors import ConfigError
from .models import ConnectionConfig, KeyFileAuth, KeyMemoryAuth, PasswordAuth, AuthMethod

logger = logging.getLogger(__name__)

# Passphrase for profile private keys
PASSWORD_ENV = "SSH_PASSWORD"

DEFAULT_USER = "root"
DEFAULT_PORT = 22
DEFAULT_TIMEOUT = 5.0


class DeviceProfile(str, Enum):
    """Known device families."""
    HC = "hc"
    AI2 = "ai2"
    AI3 = "ai3"

    @property
    def label(self) -> str:
        return self.value.upper()

    @property
    def env_key_name(self) -> str:
        """Environment variable holding this profile's private key."""
        return PROFILE_DEFAULTS[self]['key_env']

    @property
    def default_range(self) -> str:
        return PROFILE_DEFAULTS[self]['range']

    @property
    def default_user(self) -> str:
        return PROFILE_DEFAULTS[self]['user']


# AI2 and AI3 devices share a key
PROFILE_DEFAULTS: Dict[DeviceProfile, Dict[str, str]] = {
    DeviceProfile.HC: {
        'key_env': "HC_PRIVATE_KEY",
        'range': "10.8.0.0/24",
        'user': "root",
    },
    DeviceProfile.AI2: {
        'key_env': "AI3_PRIVATE_KEY",
        'range': "10.8.0.0/24",
        'user': "nano",
    },
    DeviceProfile.AI3: {
        'key_env': "AI3_PRIVATE_KEY",
        'range': "192.168.255.0/24",
        'user': "pi",
    },
}


def parse_profile(value: Union[str, DeviceProfile, None]) -> Optional[DeviceProfile]:
    """Accept 'hc', 'HC' or a DeviceProfile."""
    if value is None or isinstance(value, DeviceProfile):
        return value
    try:
        return DeviceProfile(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(p.value for p in DeviceProfile)
        raise ConfigError(f"Unknown device profile '{value}' (valid: {valid})")


# =============================================================================
# Sources
# =============================================================================

def load_env(path: Optional[Union[str, Path]] = None) -> bool:
    """
    Load a .env file into os.environ without overriding set variables.

    Returns True if a file was found and loaded.
    """
    loaded = load_dotenv(dotenv_path=path, override=False)
    logger.debug(f".env {'loaded' if loaded else 'not found'}{f' from {path}' if path else ''}")
    return loaded


def load_yaml_config(yaml_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load scan settings from a YAML file.

    Raises:
        ConfigError: Missing file, invalid YAML, or not a mapping.
    """
    path = Path(yaml_path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML parsing error in {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


# =============================================================================
# Authentication
# =============================================================================

def profile_auth(
    profile: DeviceProfile,
    environ: Optional[Mapping[str, str]] = None,
) -> KeyMemoryAuth:
    """
    Build key authentication from the profile's environment variable.

    The key passphrase comes from SSH_PASSWORD (empty means none).

    Raises:
        ConfigError: Key variable unset or empty.
    """
    environ = os.environ if environ is None else environ
    key_env = profile.env_key_name
    key_data = environ.get(key_env, "")

    if not key_data.strip():
        raise ConfigError(
            f"Private key not found in environment variable '{key_env}'.\n"
            f"Make sure .env is present and contains {key_env}."
        )

    passphrase = environ.get(PASSWORD_ENV) or None
    return KeyMemoryAuth(key_data=key_data, passphrase=passphrase)


def resolve_auth(
    key_path: Optional[Union[str, Path]] = None,
    password: Optional[str] = None,
    profile: Optional[DeviceProfile] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AuthMethod:
    """
    Pick exactly one authentication method.

    Explicit key file first (password becomes its passphrase), then
    password, then the profile's key from the environment.
    """
    if key_path:
        path = Path(key_path).expanduser()
        if not path.is_file():
            raise ConfigError(f"Key file not found: {path}")
        return KeyFileAuth(path=path, passphrase=password or None)

    if password:
        return PasswordAuth(password=password)

    if profile is not None:
        return profile_auth(profile, environ)

    raise ConfigError("No authentication method: use --key, --password or --profile")


# =============================================================================
# Settings
# =============================================================================

@dataclass
class ScanSettings:
    """Everything a front end needs to run one scan."""
    target_mac: Optional[str] = None
    cidr: Optional[str] = None
    user: str = DEFAULT_USER
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT
    concurrency: int = MAX_CONCURRENT
    deadline: Optional[float] = None
    key_path: Optional[str] = None
    password: Optional[str] = None
    profile: Optional[DeviceProfile] = None

    def connection_config(self, environ: Optional[Mapping[str, str]] = None) -> ConnectionConfig:
        auth = resolve_auth(self.key_path, self.password, self.profile, environ)
        return ConnectionConfig(
            username=self.user,
            auth=auth,
            port=self.port,
            timeout=self.timeout,
        )


# YAML key -> ScanSettings field
YAML_FIELDS = {
    'target_mac': 'target_mac',
    'mac': 'target_mac',
    'range': 'cidr',
    'cidr': 'cidr',
    'user': 'user',
    'username': 'user',
    'port': 'port',
    'timeout': 'timeout',
    'concurrency': 'concurrency',
    'deadline': 'deadline',
    'key': 'key_path',
    'key_path': 'key_path',
    'password': 'password',
    'profile': 'profile',
}


def merge_settings(
    cli_values: Optional[Dict[str, Any]] = None,
    yaml_values: Optional[Dict[str, Any]] = None,
) -> ScanSettings:
    """
    Merge settings sources by precedence (CLI > YAML > profile > defaults).

    cli_values uses ScanSettings field names; None means "not given".
    yaml_values uses the YAML keys listed in YAML_FIELDS.
    """
    merged: Dict[str, Any] = {}

    for key, value in (yaml_values or {}).items():
        field_name = YAML_FIELDS.get(key)
        if field_name is None:
            logger.warning(f"Ignoring unknown config key '{key}'")
            continue
        if value is not None:
            merged[field_name] = value

    for key, value in (cli_values or {}).items():
        if value is not None:
            merged[key] = value

    profile = parse_profile(merged.get('profile'))
    if profile is not None:
        merged.setdefault('cidr', profile.default_range)
        merged.setdefault('user', profile.default_user)
    merged['profile'] = profile

    try:
        if 'port' in merged:
            merged['port'] = int(merged['port'])
        if 'timeout' in merged:
            merged['timeout'] = float(merged['timeout'])
        if 'concurrency' in merged:
            merged['concurrency'] = int(merged['concurrency'])
        if merged.get('deadline') is not None:
            merged['deadline'] = float(merged['deadline'])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting: {e}")

    if merged.get('key_path') is not None:
        merged['key_path'] = str(merged['key_path'])
    if merged.get('target_mac') is not None:
        # YAML 1.1 reads unquoted digit-only MACs as sexagesimal integers
        if not isinstance(merged['target_mac'], str):
            raise ConfigError("target_mac must be a quoted string in YAML")
        merged['target_mac'] = merged['target_mac'].strip()
    if merged.get('cidr') is not None:
        merged['cidr'] = str(merged['cidr']).strip()

    return ScanSettings(**merged)
