"""Discovery module - target enumeration, ARP frames, capture and the scan engine."""

from .capture import CaptureHandle, ReplayCaptureHandle, ScapyCaptureHandle, open_capture
from .engine import ArpScanner, ScanState, scan
from .frames import ArpReply, ArpRequest, build_reply, build_request, parse_reply, parse_request
from .models import Discovery, MacAddress
from .targets import count_targets, enumerate_targets, network_for_interface

__all__ = [
    "CaptureHandle",
    "ReplayCaptureHandle",
    "ScapyCaptureHandle",
    "open_capture",
    "ArpScanner",
    "ScanState",
    "scan",
    "ArpReply",
    "ArpRequest",
    "build_reply",
    "build_request",
    "parse_reply",
    "parse_request",
    "Discovery",
    "MacAddress",
    "count_targets",
    "enumerate_targets",
    "network_for_interface",
]
