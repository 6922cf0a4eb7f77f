"""Export of scan reports to JSON or CSV files."""

import csv
import json
from collections.abc import Sequence
from datetime import datetime
from ipaddress import IPv4Address, IPv4Network
from pathlib import Path
from typing import Any

from ..discovery.models import MacAddress
from .reports import ReportRow


def export_json(
    data: dict | list,
    output_file: str | Path,
    pretty: bool = True,
) -> str:
    """
    Export data to JSON file.

    Args:
        data: Data to export
        output_file: Output file path
        pretty: Pretty print JSON

    Returns:
        Path to output file
    """
    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        if pretty:
            json.dump(data, f, indent=2, default=_json_serializer)
        else:
            json.dump(data, f, default=_json_serializer)

    return str(output_path)


def export_csv(
    data: list[dict],
    output_file: str | Path,
    fieldnames: list[str] | None = None,
) -> str:
    """
    Export list of dicts to CSV file.

    Fieldnames default to the first row's keys. The header is written even
    when there are no rows, so an empty scan still produces a file.
    """
    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if fieldnames is None:
        fieldnames = list(data[0].keys()) if data else []

    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(data)

    return str(output_path)


def export_report(
    rows: Sequence[ReportRow],
    network: IPv4Network,
    output_file: str | Path,
) -> str:
    """Write report rows as CSV when ``output_file`` ends in .csv, JSON otherwise."""
    if Path(output_file).suffix.lower() == ".csv":
        return export_csv([row.to_dict() for row in rows], output_file, fieldnames=["ip", "mac", "hostname", "label"])
    data = {
        "network": network,
        "generated": datetime.now(),
        "hosts": list(rows),
    }
    return export_json(data, output_file)


def _json_serializer(obj: Any) -> Any:
    """Custom JSON serializer for special types."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, (IPv4Address, IPv4Network, MacAddress)):
        return str(obj)
    if isinstance(obj, set):
        return list(obj)
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")
