"""Label file: ``MAC=LABEL=HOSTNAME`` lines mapping hardware addresses to names."""

import codecs
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from ..core.exceptions import FieldContainsSeparator, LabelParseWarning
from ..discovery.models import MacAddress

logger = logging.getLogger(__name__)

_SEPARATORS = ("\t", "\n", "\r")


@dataclass(frozen=True)
class LabelEntry:
    """Label and optional hostname for one MAC."""

    mac: MacAddress
    label: str
    hostname: str | None = None


@dataclass(frozen=True)
class Skipped:
    """A label file line that produced no entry."""

    line_number: int
    reason: LabelParseWarning | None = None  # None for blank and comment lines


def parse_label_line(line: str, line_number: int) -> LabelEntry | Skipped:
    """Parse one line of the label file without raising."""
    text = line.rstrip("\r\n")
    if not text.strip() or text.lstrip().startswith("#"):
        return Skipped(line_number)

    parts = text.split("=")
    if len(parts) not in (2, 3):
        return Skipped(
            line_number,
            LabelParseWarning(line_number, f"expected MAC=LABEL[=HOSTNAME], got {len(parts)} fields"),
        )

    try:
        mac = MacAddress.parse(parts[0].strip())
    except ValueError as e:
        return Skipped(line_number, LabelParseWarning(line_number, str(e)))

    label = parts[1].strip()
    hostname = parts[2].strip() if len(parts) == 3 else ""
    for name, value in (("label", label), ("hostname", hostname)):
        if any(sep in value for sep in _SEPARATORS):
            return Skipped(line_number, FieldContainsSeparator(line_number, name))

    return LabelEntry(mac=mac, label=label, hostname=hostname or None)


class LabelStore:
    """MAC-keyed label lookup; later lines override earlier ones."""

    def __init__(self, entries: Iterable[LabelEntry] = (), skipped: Iterable[Skipped] = ()):
        self._entries: dict[MacAddress, LabelEntry] = {}
        for entry in entries:
            self._entries[entry.mac] = entry
        self.skipped = [s for s in skipped if s.reason is not None]

    def get(self, mac: MacAddress | str) -> LabelEntry | None:
        try:
            return self._entries.get(MacAddress.parse(mac))
        except ValueError:
            return None

    def __contains__(self, mac: object) -> bool:
        if not isinstance(mac, (MacAddress, str)):
            return False
        return self.get(mac) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LabelEntry]:
        return iter(self._entries.values())


def load_labels(path: str | Path) -> LabelStore:
    """
    Load a label file.

    A missing or unreadable file yields an empty store. Malformed lines,
    including lines that are not valid UTF-8, are skipped and kept on
    ``store.skipped``; they never abort the load. A leading UTF-8 BOM is
    ignored.
    """
    path = Path(path)
    if not path.exists():
        logger.debug("Label file %s not found, no labels loaded", path)
        return LabelStore()

    try:
        data = path.read_bytes()
    except OSError as e:
        logger.warning("Cannot read label file %s: %s", path, e)
        return LabelStore()
    if data.startswith(codecs.BOM_UTF8):
        data = data[len(codecs.BOM_UTF8):]

    entries: list[LabelEntry] = []
    skipped: list[Skipped] = []
    for number, raw in enumerate(data.splitlines(keepends=True), start=1):
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            result = Skipped(number, LabelParseWarning(number, f"not valid UTF-8 ({e.reason})"))
        else:
            result = parse_label_line(line, number)

        if isinstance(result, Skipped):
            if result.reason is not None:
                logger.debug("%s", result.reason)
            skipped.append(result)
        else:
            entries.append(result)

    store = LabelStore(entries, skipped)
    logger.debug("Loaded %d labels from %s", len(store), path)
    return store


def register_unknown(path: str | Path, macs: Iterable[MacAddress], store: LabelStore) -> list[MacAddress]:
    """
    Append a blank ``MAC==`` line for each MAC the label file does not know.

    Returns the MACs that were added. I/O failures are logged, not raised.
    """
    path = Path(path)
    new = sorted({m for m in macs if m not in store}, key=lambda m: m.octets)
    if not new:
        return []

    try:
        needs_newline = path.exists() and path.stat().st_size > 0 and not path.read_bytes().endswith(b"\n")
        with open(path, "a", encoding="utf-8") as f:
            if needs_newline:
                f.write("\n")
            for mac in new:
                f.write(f"{mac}==\n")
    except OSError as e:
        logger.warning("Failed to update %s: %s", path, e)
        return []

    logger.debug("Registered %d new MACs in %s", len(new), path)
    return new
