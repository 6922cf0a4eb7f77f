"""Core module - configuration, exceptions, and utilities."""

from .config import Config, ScanConfig, get_config, set_config
from .exceptions import (
    ArpSweepError,
    CaptureError,
    FieldContainsSeparator,
    HostsFileError,
    InterfaceError,
    InvalidRange,
    LabelParseWarning,
    PermissionError,
)
from .utils import (
    InterfaceInfo,
    format_mac,
    get_interfaces,
    is_root,
    local_interface_info,
    validate_network,
)

__all__ = [
    "Config",
    "ScanConfig",
    "get_config",
    "set_config",
    "ArpSweepError",
    "CaptureError",
    "FieldContainsSeparator",
    "HostsFileError",
    "InterfaceError",
    "InvalidRange",
    "LabelParseWarning",
    "PermissionError",
    "InterfaceInfo",
    "format_mac",
    "get_interfaces",
    "is_root",
    "local_interface_info",
    "validate_network",
]
