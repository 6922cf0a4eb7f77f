"""Value types shared by the codec, the engine and the formatters."""

from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import ClassVar

from ..core.utils import format_mac, is_valid_mac


@dataclass(frozen=True)
class MacAddress:
    """A 6-byte hardware address.

    Parsing accepts ``:`` or ``-`` separators in either case; the canonical
    text form is uppercase and colon separated.
    """

    octets: bytes

    BROADCAST: ClassVar["MacAddress"]
    ZERO: ClassVar["MacAddress"]

    def __post_init__(self) -> None:
        if len(self.octets) != 6:
            raise ValueError(f"MAC address needs 6 octets, got {len(self.octets)}")

    @classmethod
    def parse(cls, text: "str | MacAddress") -> "MacAddress":
        if isinstance(text, MacAddress):
            return text
        if not is_valid_mac(text):
            raise ValueError(f"Invalid MAC address: {text!r}")
        return cls(bytes.fromhex(format_mac(text).replace(":", "")))

    def __str__(self) -> str:
        return ":".join(f"{b:02X}" for b in self.octets)


MacAddress.BROADCAST = MacAddress(b"\xff" * 6)
MacAddress.ZERO = MacAddress(b"\x00" * 6)


@dataclass(frozen=True)
class Discovery:
    """A host that answered during a scan."""

    ip: IPv4Address
    mac: MacAddress
    discovered_at: float  # seconds since scan start

    def to_dict(self) -> dict:
        return {
            "ip": str(self.ip),
            "mac": str(self.mac),
            "discovered_at_ms": round(self.discovered_at * 1000, 2),
        }
