"""Expansion of a network range into the addresses to scan."""

from collections.abc import Iterator
from ipaddress import IPv4Address, IPv4Network

from ..core.exceptions import InvalidRange
from ..core.utils import validate_network


def _as_network(network: str | IPv4Network) -> IPv4Network:
    if isinstance(network, IPv4Network):
        return network
    if not isinstance(network, str):
        raise InvalidRange(f"Unsupported network range: {network!r}")
    return validate_network(network)


def count_targets(network: str | IPv4Network) -> int:
    """Number of addresses ``enumerate_targets`` yields for ``network``."""
    net = _as_network(network)
    if net.prefixlen >= 31:
        return net.num_addresses
    return net.num_addresses - 2


def enumerate_targets(network: str | IPv4Network) -> Iterator[IPv4Address]:
    """
    Yield every host address of ``network`` in ascending order.

    Network and broadcast addresses are skipped. A /31 yields both of its
    addresses and a /32 yields its single address.

    The range is validated eagerly so that ``InvalidRange`` surfaces at the
    call site; the addresses themselves are produced lazily.
    """
    net = _as_network(network)
    if count_targets(net) < 1:
        raise InvalidRange(f"No usable host addresses in {net}")
    return _hosts(net)


def _hosts(net: IPv4Network) -> Iterator[IPv4Address]:
    if net.prefixlen >= 31:
        yield from net
        return
    first = int(net.network_address) + 1
    last = int(net.broadcast_address)
    for value in range(first, last):
        yield IPv4Address(value)


def network_for_interface(ip: IPv4Address | str, netmask: str) -> IPv4Network:
    """Local subnet of an interface address."""
    return validate_network(f"{ip}/{netmask}")
