"""Registry metrics: disk space gauges, request counters and text exposition."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class MetricsError(Exception):
    """Raised when metrics cannot be gathered."""

    def __init__(self, message: str = "Internal metrics error") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class MetricsResponse:
    """Metrics in the text exposition format."""

    metrics: str


class MetricKind(Enum):
    GAUGE = "gauge"
    COUNTER = "counter"


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_label(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


@dataclass
class Metric:
    """A single integer gauge or counter with constant labels."""

    name: str
    help: str
    kind: MetricKind
    labels: dict[str, str] = field(default_factory=dict)
    value: int = 0

    def set(self, value: int) -> None:
        if self.kind is MetricKind.COUNTER:
            raise ValueError(f"counter {self.name} cannot be set")
        self.value = value

    def inc(self, amount: int = 1) -> None:
        if amount < 0 and self.kind is MetricKind.COUNTER:
            raise ValueError(f"counter {self.name} cannot decrease")
        self.value += amount

    def render(self) -> str:
        """Return the metric in the text exposition format."""
        label_text = ",".join(
            f'{key}="{_escape_label(val)}"' for key, val in sorted(self.labels.items())
        )
        sample = f"{self.name}{{{label_text}}}" if label_text else self.name
        return (
            f"# HELP {self.name} {_escape_help(self.help)}\n"
            f"# TYPE {self.name} {self.kind.value}\n"
            f"{sample} {self.value}\n"
        )


def _disk_space(path: Path) -> tuple[int, int, int]:
    """Return (total, free, available) bytes of the filesystem holding ``path``."""
    try:
        if hasattr(os, "statvfs"):
            st = os.statvfs(path)
            return (
                st.f_blocks * st.f_frsize,
                st.f_bfree * st.f_frsize,
                st.f_bavail * st.f_frsize,
            )
        usage = shutil.disk_usage(path)
        return usage.total, usage.free, usage.free
    except OSError:
        return 0, 0, 0


class MetricsRegistry:
    """The metrics the registry exposes."""

    def __init__(self) -> None:
        self.total_space = Metric(
            "total_space",
            "available space in bytes in the filesystem containing the data_path",
            MetricKind.GAUGE,
            {"type": "disk"},
        )
        self.free_space = Metric(
            "free_space",
            "free space in bytes in the filesystem containing the data_path",
            MetricKind.GAUGE,
            {"type": "disk"},
        )
        self.available_space = Metric(
            "available_space",
            "available space to non-privileged users in bytes in the filesystem "
            "containing the data_path",
            MetricKind.GAUGE,
            {"type": "disk"},
        )
        self.total_manifest_requests = Metric(
            "total_manifest_requests",
            "total number of requests for manifests made",
            MetricKind.COUNTER,
            {"type": "manifests"},
        )
        self.total_blob_requests = Metric(
            "total_blob_requests",
            "total number of requests for blobs made",
            MetricKind.COUNTER,
            {"type": "blobs"},
        )

    @property
    def metrics(self) -> list[Metric]:
        return [
            self.total_space,
            self.free_space,
            self.available_space,
            self.total_manifest_requests,
            self.total_blob_requests,
        ]

    def query_disk_metrics(self, path: str | os.PathLike[str]) -> None:
        """Update the disk gauges from the filesystem holding the parent of ``path``."""
        data_path = Path(path).parent
        total, free, available = _disk_space(data_path)
        self.total_space.set(total)
        self.free_space.set(free)
        self.available_space.set(available)

    def record_manifest_request(self) -> None:
        self.total_manifest_requests.inc()

    def record_blob_request(self) -> None:
        self.total_blob_requests.inc()

    def gather(self, blobs_path: str | os.PathLike[str]) -> str:
        """Refresh the disk gauges and return every metric, sorted by name."""
        self.query_disk_metrics(blobs_path)
        return "".join(
            metric.render() for metric in sorted(self.metrics, key=lambda m: m.name)
        )