"""Output module - labels, report rendering, hosts file reconciliation and export."""

from .export import export_csv, export_json, export_report
from .hosts import HostsDiff, HostsEntry, default_hosts_path, format_entries, reconcile, update_hosts_file
from .labels import LabelEntry, LabelStore, Skipped, load_labels, parse_label_line, register_unknown
from .reports import ReportRow, build_rows, hosts_entries, render_report, render_row

__all__ = [
    "export_csv",
    "export_json",
    "export_report",
    "HostsDiff",
    "HostsEntry",
    "default_hosts_path",
    "format_entries",
    "reconcile",
    "update_hosts_file",
    "LabelEntry",
    "LabelStore",
    "Skipped",
    "load_labels",
    "parse_label_line",
    "register_unknown",
    "ReportRow",
    "build_rows",
    "hosts_entries",
    "render_report",
    "render_row",
]
