"""Custom exceptions for arpsweep."""


class ArpSweepError(Exception):
    """Base exception for all arpsweep errors."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class InvalidRange(ArpSweepError):
    """Malformed CIDR or a range with no usable host addresses."""

    pass


class CaptureError(ArpSweepError):
    """Capture handle could not be opened, or a transmit/receive failed."""

    pass


class HostsFileError(ArpSweepError):
    """Hosts file could not be read or written."""

    def __init__(self, path: str, details: str | None = None):
        super().__init__(f"Cannot update hosts file {path}", details)
        self.path = path


class InterfaceError(ArpSweepError):
    """No usable network interface could be detected."""

    pass


class PermissionError(ArpSweepError):
    """Insufficient permissions for operation."""

    def __init__(self, operation: str, details: str | None = None):
        message = f"Insufficient permissions for {operation}"
        super().__init__(message, details)
        self.operation = operation


class LabelParseWarning(ArpSweepError):
    """A line of the label file was malformed and has been skipped."""

    def __init__(self, line_number: int, reason: str):
        super().__init__(f"labels line {line_number} skipped", reason)
        self.line_number = line_number
        self.reason = reason


class FieldContainsSeparator(LabelParseWarning):
    """A label or hostname contains a tab or newline."""

    def __init__(self, line_number: int, field_name: str):
        super().__init__(line_number, f"{field_name} contains a tab or newline")
        self.field_name = field_name
