"""Ethernet/ARP frame construction and parsing using Scapy."""

import logging
from dataclasses import dataclass
from ipaddress import IPv4Address

from scapy.all import ARP, Ether

from .models import MacAddress

logger = logging.getLogger(__name__)

ARP_REQUEST = 1
ARP_REPLY = 2
ETHERTYPE_ARP = 0x0806
ETHERTYPE_IPV4 = 0x0800
HWTYPE_ETHERNET = 1


@dataclass(frozen=True)
class ArpRequest:
    """Decoded who-has request."""

    sender_mac: MacAddress
    sender_ip: IPv4Address
    target_ip: IPv4Address


@dataclass(frozen=True)
class ArpReply:
    """Decoded is-at reply."""

    sender_mac: MacAddress
    sender_ip: IPv4Address
    target_mac: MacAddress
    target_ip: IPv4Address


def _frame(
    op: int,
    dst: MacAddress,
    sender_mac: MacAddress,
    sender_ip: IPv4Address,
    target_mac: MacAddress,
    target_ip: IPv4Address,
) -> bytes:
    packet = Ether(dst=str(dst), src=str(sender_mac), type=ETHERTYPE_ARP) / ARP(
        hwtype=HWTYPE_ETHERNET,
        ptype=ETHERTYPE_IPV4,
        hwlen=6,
        plen=4,
        op=op,
        hwsrc=str(sender_mac),
        psrc=str(sender_ip),
        hwdst=str(target_mac),
        pdst=str(target_ip),
    )
    return bytes(packet)


def build_request(
    sender_mac: MacAddress | str,
    sender_ip: IPv4Address | str,
    target_ip: IPv4Address | str,
) -> bytes:
    """Broadcast ARP who-has for ``target_ip``."""
    return _frame(
        ARP_REQUEST,
        MacAddress.BROADCAST,
        MacAddress.parse(sender_mac),
        IPv4Address(sender_ip),
        MacAddress.ZERO,
        IPv4Address(target_ip),
    )


def build_reply(
    sender_mac: MacAddress | str,
    sender_ip: IPv4Address | str,
    target_mac: MacAddress | str,
    target_ip: IPv4Address | str,
) -> bytes:
    """Unicast ARP is-at from ``sender_ip`` to the host at ``target_ip``."""
    target_mac = MacAddress.parse(target_mac)
    return _frame(
        ARP_REPLY,
        target_mac,
        MacAddress.parse(sender_mac),
        IPv4Address(sender_ip),
        target_mac,
        IPv4Address(target_ip),
    )


def _dissect(frame: bytes, op: int) -> ARP | None:
    """Return the ARP layer if ``frame`` is a well-formed Ethernet/IPv4 ARP of ``op``."""
    try:
        packet = Ether(frame)
    except Exception as e:
        logger.debug("Undecodable frame (%d bytes): %s", len(frame), e)
        return None

    # 802.3 frames (length field <= 1500) dissect as Dot3, which has no type.
    if not packet.haslayer(ARP) or getattr(packet, "type", None) != ETHERTYPE_ARP:
        return None
    arp = packet[ARP]
    if (
        arp.hwtype != HWTYPE_ETHERNET
        or arp.ptype != ETHERTYPE_IPV4
        or arp.hwlen != 6
        or arp.plen != 4
        or arp.op != op
    ):
        return None
    # Truncated frames dissect with missing address fields.
    if None in (arp.hwsrc, arp.psrc, arp.hwdst, arp.pdst):
        return None
    return arp


def parse_request(frame: bytes) -> ArpRequest | None:
    """Decode a request built by ``build_request``; ``None`` for anything else."""
    arp = _dissect(frame, ARP_REQUEST)
    if arp is None:
        return None
    try:
        return ArpRequest(
            sender_mac=MacAddress.parse(arp.hwsrc),
            sender_ip=IPv4Address(arp.psrc),
            target_ip=IPv4Address(arp.pdst),
        )
    except ValueError:
        return None


def parse_reply(frame: bytes, local_ip: IPv4Address | str) -> ArpReply | None:
    """
    Decode an ARP reply addressed to ``local_ip``.

    Replies destined to other hosts, requests, non-ARP traffic and malformed
    frames all yield ``None``.
    """
    arp = _dissect(frame, ARP_REPLY)
    if arp is None:
        return None
    try:
        reply = ArpReply(
            sender_mac=MacAddress.parse(arp.hwsrc),
            sender_ip=IPv4Address(arp.psrc),
            target_mac=MacAddress.parse(arp.hwdst),
            target_ip=IPv4Address(arp.pdst),
        )
    except ValueError:
        return None
    if reply.target_ip != IPv4Address(local_ip):
        return None
    return reply
