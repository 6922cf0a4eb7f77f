"""Utility functions for arpsweep."""

import os
import re
import socket
from dataclasses import dataclass
from ipaddress import IPv4Address, IPv4Network, ip_network

import psutil

from .exceptions import InterfaceError, InvalidRange

_MAC_RE = re.compile(r"^[0-9A-Fa-f]{2}([:-][0-9A-Fa-f]{2}){5}$")


def is_root() -> bool:
    """Check if running with root/admin privileges."""
    if not hasattr(os, "geteuid"):
        # No cheap check on Windows; opening the capture reports the failure.
        return True
    return os.geteuid() == 0


def validate_network(network_str: str) -> IPv4Network:
    """Validate and parse an IPv4 network CIDR string."""
    try:
        net = ip_network(network_str.strip(), strict=False)
    except ValueError as e:
        raise InvalidRange(f"Invalid network: {network_str}", str(e)) from e
    if net.version == 6:
        raise InvalidRange(f"IPv6 networks are not supported: {network_str}")
    return net


def is_valid_mac(mac: str) -> bool:
    """Six hex octets separated by ':' or '-'."""
    return bool(_MAC_RE.match(mac.strip()))


def format_mac(mac: str) -> str:
    """Format MAC address as uppercase, colon separated."""
    mac = mac.strip().replace("-", ":").upper()
    parts = mac.split(":")
    if len(parts) == 6:
        return ":".join(p.zfill(2) for p in parts)
    return mac


@dataclass(frozen=True)
class InterfaceInfo:
    """IPv4 identity of the interface a scan runs on."""

    name: str
    ip: IPv4Address
    mac: str
    netmask: str


def get_interfaces() -> dict[str, dict[str, str | int | bool | None]]:
    """Get available network interfaces with their addresses."""
    interfaces: dict[str, dict[str, str | int | bool | None]] = {}

    for name, addrs in psutil.net_if_addrs().items():
        interface_info: dict[str, str | int | bool | None] = {
            "ipv4": None,
            "netmask": None,
            "mac": None,
        }

        for addr in addrs:
            if addr.family == socket.AF_INET:
                interface_info["ipv4"] = addr.address
                interface_info["netmask"] = addr.netmask
            elif addr.family == psutil.AF_LINK:
                interface_info["mac"] = addr.address

        stats = psutil.net_if_stats().get(name)
        if stats:
            interface_info["is_up"] = stats.isup
            interface_info["mtu"] = stats.mtu

        interfaces[name] = interface_info

    return interfaces


def get_default_interface() -> str | None:
    """Get the first interface that is up and carries an IPv4 address."""
    for name, info in get_interfaces().items():
        if info.get("is_up") and info.get("ipv4") and info.get("mac") and not name.startswith("lo"):
            return name

    return None


def local_interface_info(name: str | None = None) -> InterfaceInfo:
    """Resolve the IP, MAC and netmask of ``name`` (or the default interface)."""
    interfaces = get_interfaces()
    if name is None:
        name = get_default_interface()
        if name is None:
            raise InterfaceError("No active IPv4 interface found", "use --interface")

    info = interfaces.get(name)
    if info is None:
        raise InterfaceError(f"Interface not found: {name}")
    if not info.get("ipv4") or not info.get("netmask"):
        raise InterfaceError(f"Interface {name} has no IPv4 address")
    if not info.get("mac") or not is_valid_mac(str(info["mac"])):
        raise InterfaceError(f"Interface {name} has no hardware address")

    return InterfaceInfo(
        name=name,
        ip=IPv4Address(str(info["ipv4"])),
        mac=format_mac(str(info["mac"])),
        netmask=str(info["netmask"]),
    )
