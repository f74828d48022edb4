"""
Radar-IP SSH Keys - Private key loading for paramiko.

Path: radar_ip/ssh/keys.py

Keys are always parsed from memory. File-based keys are read and
normalized first, so both key variants share one code path and no
temporary key file is ever written.
"""

import io
import logging
from pathlib import Path
from typing import Optional, Union

import paramiko

from ..models import KeyFileAuth, KeyMemoryAuth, normalize_key_material

logger = logging.getLogger(__name__)

# Tried in order until one parses
KEY_CLASSES = (
    paramiko.RSAKey,
    paramiko.Ed25519Key,
    paramiko.ECDSAKey,
)


def read_key_file(path: Union[str, Path]) -> str:
    """Read a private key file and normalize its line endings."""
    content = Path(path).expanduser().read_text(encoding='utf-8')
    return normalize_key_material(content)


def load_private_key(key_data: str, passphrase: Optional[str] = None) -> paramiko.PKey:
    """
    Parse PEM/OpenSSH private key text.

    Args:
        key_data: Key material (any line endings).
        passphrase: Passphrase for encrypted keys.

    Returns:
        paramiko.PKey instance.

    Raises:
        paramiko.SSHException: If no supported key type accepts the material.
    """
    text = normalize_key_material(key_data)
    errors = []

    for key_class in KEY_CLASSES:
        try:
            key = key_class.from_private_key(io.StringIO(text), password=passphrase)
            logger.debug(f"Loaded {key.get_name()} private key")
            return key
        except (paramiko.SSHException, ValueError, TypeError) as e:
            errors.append(f"{key_class.__name__}: {e}")

    raise paramiko.SSHException(
        "Unsupported or invalid private key (" + "; ".join(errors) + ")"
    )


def load_auth_key(auth) -> Optional[paramiko.PKey]:
    """
    Parse the private key behind a key-based auth variant.

    Returns None for password authentication.

    Raises:
        OSError: Key file unreadable.
        paramiko.SSHException: Key material unusable or passphrase wrong.
    """
    if isinstance(auth, KeyMemoryAuth):
        return load_private_key(auth.key_data, auth.passphrase)
    if isinstance(auth, KeyFileAuth):
        return load_private_key(read_key_file(auth.path), auth.passphrase)
    return None
