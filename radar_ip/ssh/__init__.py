"""
Radar-IP SSH - Remote probe over SSH.

Path: radar_ip/ssh/__init__.py

Usage:
    from radar_ip.ssh import MacCollector, collect_macs

    # Using collector class
    collector = MacCollector(config)
    identity = collector.collect("192.168.1.20")

    # Using convenience function
    identity = collect_macs("192.168.1.20", config)
"""

from .client import SSHClient
from .collector import (
    MacCollector,
    collect_macs,
    INSPECT_COMMAND,
)
from .keys import load_auth_key, load_private_key, read_key_file
from .parsers import extract_mac_addresses, normalize_mac, MAC_PATTERN

__all__ = [
    # Client
    'SSHClient',
    # Collector
    'MacCollector',
    'collect_macs',
    'INSPECT_COMMAND',
    # Keys
    'load_auth_key',
    'load_private_key',
    'read_key_file',
    # Parsers
    'extract_mac_addresses',
    'normalize_mac',
    'MAC_PATTERN',
]
