"""Link-layer capture handles used by the scan engine."""

import logging
import threading
from collections import deque
from collections.abc import Iterable
from ipaddress import IPv4Address
from pathlib import Path
from typing import Protocol

from scapy.all import conf, rdpcap

from ..core.exceptions import CaptureError
from ..core.utils import InterfaceInfo
from .models import MacAddress

logger = logging.getLogger(__name__)


class CaptureHandle(Protocol):
    """Raw transmit/receive access to one interface for one scan."""

    local_ip: IPv4Address
    local_mac: MacAddress
    concurrent_safe: bool

    def transmit(self, frame: bytes) -> None: ...

    def receive(self, timeout: float) -> bytes | None: ...

    def close(self) -> None: ...


class ScapyCaptureHandle:
    """Capture handle backed by a Scapy layer-2 socket."""

    # Kernel packet sockets allow one sender and one reader at a time.
    concurrent_safe = True

    def __init__(self, interface: InterfaceInfo, bpf_filter: str | None = None):
        self.interface = interface
        self.local_ip = interface.ip
        self.local_mac = MacAddress.parse(interface.mac)

        conf.verb = 0  # Suppress Scapy output
        try:
            self._socket = conf.L2socket(iface=interface.name, filter=bpf_filter)
        except Exception as e:
            raise CaptureError(f"Cannot open capture on {interface.name}", str(e)) from e
        logger.debug("Opened capture on %s (filter=%s)", interface.name, bpf_filter)

    def transmit(self, frame: bytes) -> None:
        try:
            self._socket.send(frame)
        except Exception as e:
            raise CaptureError(f"Transmit failed on {self.interface.name}", str(e)) from e

    def receive(self, timeout: float) -> bytes | None:
        try:
            ready = self._socket.select([self._socket], max(timeout, 0))
            if not ready:
                return None
            _, data, _ = self._socket.recv_raw()
        except Exception as e:
            raise CaptureError(f"Receive failed on {self.interface.name}", str(e)) from e
        return data or None

    def close(self) -> None:
        self._socket.close()
        logger.debug("Closed capture on %s", self.interface.name)

    def __enter__(self) -> "ScapyCaptureHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def open_capture(interface: InterfaceInfo, bpf_filter: str | None = None) -> ScapyCaptureHandle:
    """Open a raw capture handle on ``interface``. Use it as a context manager."""
    return ScapyCaptureHandle(interface, bpf_filter=bpf_filter)


class ReplayCaptureHandle:
    """
    In-memory capture handle that plays back a fixed sequence of frames.

    Frames are delivered one per ``receive`` call in their original order;
    once exhausted, ``receive`` waits out its timeout and returns ``None``.
    Transmitted frames are recorded in ``sent``.
    """

    concurrent_safe = True

    def __init__(
        self,
        frames: Iterable[bytes],
        local_ip: IPv4Address | str,
        local_mac: MacAddress | str,
    ):
        self.local_ip = IPv4Address(local_ip)
        self.local_mac = MacAddress.parse(local_mac)
        self.sent: list[bytes] = []
        self.closed = False
        self._frames = deque(frames)
        self._idle = threading.Event()

    @classmethod
    def from_pcap(
        cls,
        pcap_file: str | Path,
        local_ip: IPv4Address | str,
        local_mac: MacAddress | str,
    ) -> "ReplayCaptureHandle":
        """Replay the frames of a pcap file."""
        if not Path(pcap_file).exists():
            raise CaptureError(f"Pcap file not found: {pcap_file}")
        try:
            packets = rdpcap(str(pcap_file))
        except Exception as e:
            raise CaptureError(f"Failed to read pcap file: {pcap_file}", str(e)) from e
        return cls((bytes(p) for p in packets), local_ip, local_mac)

    def transmit(self, frame: bytes) -> None:
        if self.closed:
            raise CaptureError("Transmit on closed replay handle")
        self.sent.append(frame)

    def receive(self, timeout: float) -> bytes | None:
        try:
            return self._frames.popleft()
        except IndexError:
            self._idle.wait(max(timeout, 0))
            return None

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "ReplayCaptureHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
