"""Derive a canonical network CIDR from a host address."""

import ipaddress

from ..utils.exceptions import MalformedAddressError


def derive_cidr(address: str) -> str:
    """
    Mask the host bits off an "ip/prefix" string.

    NetBox stores the node's host address (10.0.1.5/24); the pod CIDR is the
    network it lives in (10.0.1.0/24). An explicit prefix length is required.

    Args:
        address: Host address with prefix length, IPv4 or IPv6

    Returns:
        Network in "network/prefixlen" form

    Raises:
        MalformedAddressError: If address is not a valid ip/prefix
    """
    if not isinstance(address, str) or "/" not in address:
        raise MalformedAddressError(str(address), "missing prefix length")
    try:
        network = ipaddress.ip_network(address.strip(), strict=False)
    except ValueError as e:
        raise MalformedAddressError(address, str(e)) from e
    return str(network)
