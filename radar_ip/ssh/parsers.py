"""
Radar-IP Parsers - MAC address extraction from CLI output.

Path: radar_ip/ssh/parsers.py

Tuned for `ip link show`:

    1: lo: <LOOPBACK,UP,LOWER_UP> mtu 65536 qdisc noqueue ...
        link/loopback 00:00:00:00:00:00 brd 00:00:00:00:00:00
    2: eth0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc ...
        link/ether dc:a6:32:01:02:03 brd ff:ff:ff:ff:ff:ff

Only the interface's own address (the one right after `link/<type>`) is
taken. `brd` and `peer` addresses are not the host's, and neither is the
loopback's all-zero placeholder.
"""

import re
from typing import List

# Interface address after link/<type>, not followed by more colon-hex
# groups (EUI-64 / InfiniBand link addresses are longer than six).
MAC_PATTERN = re.compile(
    r'\blink/(\S+)\s+([0-9a-f]{2}(?::[0-9a-f]{2}){5})(?![0-9a-f:])',
    re.IGNORECASE,
)

NULL_MAC = "00:00:00:00:00:00"


def normalize_mac(mac: str) -> str:
    """Canonical form used for comparisons: trimmed, lowercase."""
    return mac.strip().lower()


def extract_mac_addresses(output: str) -> List[str]:
    """
    Extract interface MAC addresses from `ip link show` output.

    Returns lowercase addresses in order of first appearance, without
    duplicates. Broadcast, peer, loopback and all-zero addresses are
    skipped. No match is not an error: returns an empty list.
    """
    if not output:
        return []

    seen = set()
    macs = []
    for match in MAC_PATTERN.finditer(output):
        link_type, mac = match.group(1).lower(), match.group(2).lower()
        if link_type == "loopback" or mac == NULL_MAC:
            continue
        if mac not in seen:
            seen.add(mac)
            macs.append(mac)
    return macs
