"""
Run statistics returned by the sync and reorganize stages.

Each stage owns its result and returns it once; the orchestrator only merges
them into JobStatistics for the final report.
"""
from __future__ import annotations
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List


def elapsed_seconds(start: float) -> int:
    """Whole seconds since a time.monotonic() reading, rounded half up."""
    return int(time.monotonic() - start + 0.5)


@dataclass(frozen=True)
class ObjectError:
    """A per-object failure recorded by the reorganize stage."""

    path: str
    error: str


@dataclass
class SyncResult:
    """Counters from the rclone mirror stage."""

    files_transferred: int = 0
    bytes_transferred: int = 0
    duration_seconds: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files_transferred": self.files_transferred,
            "bytes_transferred": self.bytes_transferred,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class ReorganizeResult:
    """Counters from the Hive partitioning stage."""

    files_processed: int = 0
    files_copied: int = 0
    files_skipped: int = 0
    files_errored: int = 0
    duration_seconds: int = 0

    # Reported in the logs, not in the JSON payload
    errors: List[ObjectError] = field(default_factory=list, repr=False)

    @property
    def succeeded(self) -> bool:
        """No object failed to copy."""
        return self.files_errored == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files_processed": self.files_processed,
            "files_copied": self.files_copied,
            "files_skipped": self.files_skipped,
            "files_errored": self.files_errored,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class JobStatistics:
    """Final report for one run."""

    sync: SyncResult
    reorganize: ReorganizeResult
    total_duration_seconds: int = 0

    @property
    def exit_code(self) -> int:
        return 0 if self.reorganize.succeeded else 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sync": self.sync.to_dict(),
            "reorganize": self.reorganize.to_dict(),
            "total_duration_seconds": self.total_duration_seconds,
        }
