"""Configuration management for arpsweep."""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path


def default_hosts_path() -> Path:
    """Location of the system hosts file for this platform."""
    if os.name == "nt":
        root = os.environ.get("SystemRoot", r"C:\Windows")
        return Path(root) / "System32" / "drivers" / "etc" / "hosts"
    return Path("/etc/hosts")


@dataclass
class ScanConfig:
    """Timing and batching of a single scan window."""

    duration: float = 2.0
    batch_size: int = 32
    inter_batch_timeout: float = 0.010
    poll_interval: float = 0.010
    drain_reads: int = 10  # zero-timeout reads after the window closes


def _fast_scan() -> ScanConfig:
    return ScanConfig(
        duration=0.5,
        batch_size=32,
        inter_batch_timeout=0.005,
        poll_interval=0.005,
        drain_reads=5,
    )


@dataclass
class CaptureConfig:
    """Capture handle configuration."""

    bpf_filter: str | None = None


@dataclass
class Config:
    """Main configuration for arpsweep."""

    labels_path: Path = field(default_factory=lambda: Path("labels.txt"))
    hosts_path: Path = field(default_factory=default_hosts_path)
    interface: str | None = None
    scan: ScanConfig = field(default_factory=ScanConfig)
    fast_scan: ScanConfig = field(default_factory=_fast_scan)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    verbose: bool = False
    fast_mode: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.labels_path, str):
            self.labels_path = Path(self.labels_path)
        if isinstance(self.hosts_path, str):
            self.hosts_path = Path(self.hosts_path)

    def scan_settings(self) -> ScanConfig:
        """Timing for the current mode."""
        return self.fast_scan if self.fast_mode else self.scan

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from JSON file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        config = cls()
        if "labels_path" in data:
            config.labels_path = Path(data["labels_path"])
        if "hosts_path" in data:
            config.hosts_path = Path(data["hosts_path"])
        if "interface" in data:
            config.interface = data["interface"]
        if "verbose" in data:
            config.verbose = data["verbose"]
        if "fast_mode" in data:
            config.fast_mode = data["fast_mode"]

        for section in ("scan", "fast_scan", "capture"):
            target = getattr(config, section)
            for key, value in data.get(section, {}).items():
                if hasattr(target, key):
                    setattr(target, key, value)

        return config

    def save(self, path: Path) -> None:
        """Save configuration to JSON file."""
        data = {
            "labels_path": str(self.labels_path),
            "hosts_path": str(self.hosts_path),
            "interface": self.interface,
            "verbose": self.verbose,
            "fast_mode": self.fast_mode,
            "scan": asdict(self.scan),
            "fast_scan": asdict(self.fast_scan),
            "capture": asdict(self.capture),
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)


_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        config_path = Path(os.environ.get("ARPSWEEP_CONFIG", ".arpsweep.json"))
        _config = Config.from_file(config_path)
    return _config


def set_config(config: Config | None) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
