"""Scan report rows and their tab-separated rendering."""

from collections.abc import Iterable
from dataclasses import dataclass
from ipaddress import IPv4Address

from ..discovery.models import Discovery, MacAddress
from .hosts import HostsEntry
from .labels import LabelStore


@dataclass(frozen=True)
class ReportRow:
    """A discovered host joined with its label, if any."""

    ip: IPv4Address
    mac: MacAddress
    hostname: str | None = None
    label: str | None = None

    def to_dict(self) -> dict:
        return {
            "ip": str(self.ip),
            "mac": str(self.mac),
            "hostname": self.hostname,
            "label": self.label,
        }


def build_rows(discoveries: Iterable[Discovery], labels: LabelStore | None = None) -> list[ReportRow]:
    """Left-join discoveries with ``labels`` by MAC, sorted by numeric IP."""
    rows = []
    for discovery in discoveries:
        entry = labels.get(discovery.mac) if labels is not None else None
        rows.append(
            ReportRow(
                ip=discovery.ip,
                mac=discovery.mac,
                hostname=(entry.hostname or None) if entry else None,
                label=(entry.label or None) if entry else None,
            )
        )
    rows.sort(key=lambda r: int(r.ip))
    return rows


def render_row(row: ReportRow) -> str:
    """``IP<TAB>MAC[<TAB>HOSTNAME][<TAB>LABEL]``; empty fields are left out."""
    fields = [str(row.ip), str(row.mac)]
    if row.hostname:
        fields.append(row.hostname)
    if row.label:
        fields.append(row.label)
    return "\t".join(fields)


def render_report(rows: Iterable[ReportRow]) -> list[str]:
    """One rendered line per row, in row order."""
    return [render_row(row) for row in rows]


def hosts_entries(rows: Iterable[ReportRow]) -> list[HostsEntry]:
    """Hosts file mappings for rows whose label carries a hostname."""
    entries = [HostsEntry(ip=row.ip, hostname=row.hostname) for row in rows if row.hostname]
    entries.sort(key=lambda e: int(e.ip))
    return entries
