"""Hosts file reconciliation.

Only lines whose address or hostname collides with the new mapping are
managed; every other line, comments and blank lines included, is written
back exactly as read.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from ipaddress import IPv4Address
from pathlib import Path

from ..core.config import default_hosts_path
from ..core.exceptions import HostsFileError

logger = logging.getLogger(__name__)

__all__ = [
    "HostsDiff",
    "HostsEntry",
    "default_hosts_path",
    "format_entries",
    "reconcile",
    "update_hosts_file",
]


@dataclass(frozen=True)
class HostsEntry:
    """One ``ip -> hostname`` mapping managed by arpsweep."""

    ip: IPv4Address
    hostname: str


@dataclass
class HostsDiff:
    """Outcome of reconciling a hosts file with a batch of entries."""

    removed: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    content: str = ""
    changed: bool = False


def format_entries(entries: Iterable[HostsEntry]) -> list[str]:
    """
    Format entries sorted by IP.

    Each IP is left-aligned to the longest IP of the batch plus one space,
    then two tabs separate it from the hostname.
    """
    ordered = sorted(entries, key=lambda e: int(e.ip))
    if not ordered:
        return []
    width = max(len(str(e.ip)) for e in ordered) + 1
    return [f"{str(e.ip):<{width}}\t\t{e.hostname}" for e in ordered]


def _mapping(line: str) -> tuple[IPv4Address, list[str]] | None:
    """Address and names of an IPv4 mapping line, ``None`` for anything else."""
    content = line.split("#", 1)[0].split()
    if len(content) < 2:
        return None
    try:
        return IPv4Address(content[0]), content[1:]
    except ValueError:
        return None


def _newline_of(text: str) -> str:
    for line in text.splitlines(keepends=True):
        if line.endswith("\r\n"):
            return "\r\n"
        if line.endswith("\n"):
            return "\n"
    return "\n"


def reconcile(text: str, entries: Iterable[HostsEntry]) -> HostsDiff:
    """Compute the new hosts file content for ``entries``; pure function."""
    entries = list(entries)
    if not entries:
        return HostsDiff(content=text)

    ips = {e.ip for e in entries}
    names = {e.hostname.casefold() for e in entries}
    newline = _newline_of(text)

    kept: list[str] = []
    removed: list[str] = []
    for line in text.splitlines(keepends=True):
        mapping = _mapping(line)
        if mapping is not None:
            ip, hostnames = mapping
            if ip in ips or any(h.casefold() in names for h in hostnames):
                removed.append(line.rstrip("\r\n"))
                continue
        kept.append(line)

    if kept and not kept[-1].endswith(("\n", "\r")):
        kept[-1] += newline

    added = format_entries(entries)
    content = "".join(kept) + "".join(line + newline for line in added)
    return HostsDiff(removed=removed, added=added, content=content, changed=content != text)


def update_hosts_file(
    path: str | Path,
    entries: Iterable[HostsEntry],
    dry_run: bool = False,
) -> HostsDiff:
    """
    Reconcile the hosts file at ``path`` with ``entries``.

    Args:
        path: Hosts file to update
        entries: Mappings to manage
        dry_run: Compute the diff without writing

    Returns:
        The computed diff

    Raises:
        HostsFileError: If the file cannot be read, or written when a write is due
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8", errors="surrogateescape", newline="") as f:
            text = f.read()
    except OSError as e:
        raise HostsFileError(str(path), str(e)) from e

    diff = reconcile(text, entries)
    if dry_run or not diff.changed:
        return diff

    try:
        with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="") as f:
            f.write(diff.content)
    except OSError as e:
        raise HostsFileError(str(path), str(e)) from e

    logger.info("Updated hosts file %s with %d entries", path, len(diff.added))
    return diff
