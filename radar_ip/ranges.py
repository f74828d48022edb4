"""
Radar-IP - Range Expander.

Turns a CIDR string into the ordered sequence of usable IPv4 host
addresses. The scan engine iterates lazily; expand_hosts() builds a list.

Examples:
    >>> expand_hosts("192.168.1.0/30")
    ['192.168.1.1', '192.168.1.2']
    >>> expand_hosts("10.0.0.7/32")
    ['10.0.0.7']
"""

import ipaddress
from typing import Iterator, List

from .errors import InvalidRangeError


def parse_network(cidr: str) -> ipaddress.IPv4Network:
    """
    Parse CIDR notation into an IPv4 network.

    Host bits are tolerated (192.168.1.7/24 -> 192.168.1.0/24). A prefix
    is required; bare addresses and IPv6 networks are rejected.

    Raises:
        InvalidRangeError: If the string is not an IPv4 network in CIDR form.
    """
    if not isinstance(cidr, str) or '/' not in cidr:
        raise InvalidRangeError(str(cidr))

    try:
        return ipaddress.IPv4Network(cidr.strip(), strict=False)
    except (ipaddress.AddressValueError, ipaddress.NetmaskValueError, ValueError):
        raise InvalidRangeError(cidr)


def iter_hosts(cidr: str) -> Iterator[str]:
    """
    Lazily yield usable host addresses, in ascending order.

    The range is validated before this returns, so a bad CIDR raises
    here and not on first iteration. Memory use does not depend on the
    size of the network.
    """
    network = parse_network(cidr)
    return (str(host) for host in network.hosts())


def expand_hosts(cidr: str) -> List[str]:
    """
    Expand a CIDR string into usable host addresses, in ascending order.

    Network and broadcast addresses are excluded. /31 networks yield both
    point-to-point addresses and /32 yields the single address, following
    standard host enumeration.
    """
    return list(iter_hosts(cidr))


def count_hosts(cidr: str) -> int:
    """Number of hosts expand_hosts() would return, without building the list."""
    network = parse_network(cidr)
    if network.prefixlen >= 31:
        return network.num_addresses
    return network.num_addresses - 2
