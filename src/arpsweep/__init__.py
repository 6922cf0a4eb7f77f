"""arpsweep - Fast ARP host discovery with labels and hosts file management."""

__version__ = "0.1.0"
__author__ = "arpsweep developers"

from .discovery import Discovery, MacAddress, enumerate_targets, scan

__all__ = [
    "__version__",
    "__author__",
    "Discovery",
    "MacAddress",
    "enumerate_targets",
    "scan",
]
