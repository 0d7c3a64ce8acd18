"""
Mirror Stage - replicate the OCI report tree into the GCS staging bucket

The copy itself is rclone's job (retries, checksums, bandwidth). This module
only builds the rclone invocation, runs it through a TransferExecutor and
turns rclone's output into SyncResult counters.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence
import json
import re
import subprocess
import time

import structlog

from focus_sync.config.settings import Settings
from focus_sync.pipeline.stats import SyncResult, elapsed_seconds
from focus_sync.utils.errors import TransferToolError

STEP = "SYNC"

# Dry-run listings longer than this are truncated in the log
MAX_LISTED_FILES = 20
TRUNCATED_LISTING_SIZE = 10

TRANSFER_COUNT_PATTERN = re.compile(r"Transferred:\s+(\d+)\s*/\s*(\d+),\s*(\d+)%")
BYTE_QUANTITY_PATTERN = re.compile(r"Transferred:\s+([\d.]+)\s*([KMGT]?i?B)", re.IGNORECASE)

UNIT_EXPONENTS = {"K": 1, "M": 2, "G": 3, "T": 4}


@dataclass
class CommandOutput:
    """Captured output of one external tool run"""
    stdout: str
    stderr: str
    exit_code: int = 0

    @property
    def combined(self) -> str:
        return f"{self.stdout}\n{self.stderr}"


@dataclass
class TransferCounters:
    """Counters parsed from rclone output; None means 'not reported'"""
    transfers: Optional[int] = None
    total_transfers: Optional[int] = None
    bytes: Optional[int] = None

    def merge(self, other: "TransferCounters") -> "TransferCounters":
        """Keep fields already set, fill the rest from other"""
        return TransferCounters(
            transfers=self.transfers if self.transfers is not None else other.transfers,
            total_transfers=(
                self.total_transfers if self.total_transfers is not None else other.total_transfers
            ),
            bytes=self.bytes if self.bytes is not None else other.bytes,
        )


class TransferExecutor(ABC):
    """Runs the external bulk-transfer tool."""

    @abstractmethod
    def list_files(self, source: str) -> List[str]:
        """
        Recursively list the source.

        Raises:
            TransferToolError: If the tool exits non-zero
        """

    @abstractmethod
    def sync(self, source: str, destination: str) -> CommandOutput:
        """
        Synchronize source into destination.

        Raises:
            TransferToolError: If the tool exits non-zero
        """


class RcloneExecutor(TransferExecutor):
    """TransferExecutor backed by the rclone CLI"""

    def __init__(self, binary: str = "rclone", config_path: str = "rclone.conf"):
        self.binary = binary
        self.config_path = config_path

    def list_command(self, source: str) -> List[str]:
        return [
            self.binary,
            "lsf",
            source,
            "--recursive",
            "--config",
            self.config_path,
        ]

    def sync_command(self, source: str, destination: str) -> List[str]:
        return [
            self.binary,
            "sync",
            source,
            destination,
            "--config",
            self.config_path,
            "--stats",
            "1s",
            "--stats-one-line",
            "--stats-log-level",
            "NOTICE",
            "-v",
        ]

    def run_command(self, command: Sequence[str]) -> CommandOutput:
        """Execute a command and capture stdout and stderr."""
        try:
            completed = subprocess.run(
                list(command),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as e:
            raise TransferToolError(command, None, str(e), original_error=e) from e

        output = CommandOutput(
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            exit_code=completed.returncode,
        )
        if output.exit_code != 0:
            raise TransferToolError(command, output.exit_code, output.stderr)
        return output

    def list_files(self, source: str) -> List[str]:
        output = self.run_command(self.list_command(source))
        return [line for line in output.stdout.strip().split("\n") if line]

    def sync(self, source: str, destination: str) -> CommandOutput:
        return self.run_command(self.sync_command(source, destination))


# =============================================================================
# Output parsing
# =============================================================================


def _parse_structured_stats(output: str) -> TransferCounters:
    for line in output.split("\n"):
        if '"transfers"' not in line or '"bytes"' not in line:
            continue
        try:
            payload = json.loads(line)
        except ValueError:
            continue
        if not isinstance(payload, dict):
            continue
        # --use-json-log nests the counters under "stats"
        stats = payload.get("stats") if isinstance(payload.get("stats"), dict) else payload
        return TransferCounters(
            transfers=_as_int(stats.get("transfers")),
            total_transfers=_as_int(stats.get("totalTransfers")),
            bytes=_as_int(stats.get("bytes")),
        )
    return TransferCounters()


def _parse_transfer_count(output: str) -> TransferCounters:
    match = TRANSFER_COUNT_PATTERN.search(output)
    if not match:
        return TransferCounters()
    return TransferCounters(
        transfers=int(match.group(1)),
        total_transfers=int(match.group(2)),
    )


def _parse_byte_quantity(output: str) -> TransferCounters:
    match = BYTE_QUANTITY_PATTERN.search(output)
    if not match:
        return TransferCounters()
    try:
        value = float(match.group(1))
    except ValueError:
        return TransferCounters()
    exponent = UNIT_EXPONENTS.get(match.group(2)[0].upper(), 0)
    return TransferCounters(bytes=int(value * 1024 ** exponent + 0.5))


def _as_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


PARSE_STRATEGIES = (
    _parse_structured_stats,
    _parse_transfer_count,
    _parse_byte_quantity,
)


def parse_transfer_output(output: str) -> TransferCounters:
    """
    Extract transfer counters from rclone's combined stdout/stderr.

    Strategies run in order (JSON stats line, "N / M, P%" count, byte
    quantity); each field takes the first value any strategy reports.
    """
    counters = TransferCounters()
    for strategy in PARSE_STRATEGIES:
        counters = counters.merge(strategy(output))
    return counters


def format_bytes(num_bytes: int) -> str:
    """Human readable size for log lines"""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 ** 2:
        return f"{num_bytes / 1024:.1f} KB"
    if num_bytes < 1024 ** 3:
        return f"{num_bytes / 1024 ** 2:.1f} MB"
    return f"{num_bytes / 1024 ** 3:.1f} GB"


# =============================================================================
# Stage
# =============================================================================


def _log_listing(files: List[str], logger) -> None:
    if len(files) <= MAX_LISTED_FILES:
        shown = files
    else:
        shown = files[:TRUNCATED_LISTING_SIZE]
    for name in shown:
        logger.debug("dry_run_file", file=name)
    if len(files) > len(shown):
        logger.debug("dry_run_more_files", remaining=len(files) - len(shown))


def run_mirror_stage(
    source: str,
    destination: str,
    executor: TransferExecutor,
    dry_run: bool = False,
    logger=None,
) -> SyncResult:
    """
    Mirror source into destination.

    Args:
        source: rclone path of the OCI report tree
        destination: rclone path inside the staging bucket
        executor: Runs rclone (or a fake in tests)
        dry_run: List the source instead of syncing
        logger: structlog logger; defaults to one bound to step=SYNC

    Returns:
        SyncResult; all counters are zero in dry-run mode

    Raises:
        TransferToolError: rclone failed; no partial counters are returned
    """
    log = logger or structlog.get_logger(__name__).bind(step=STEP)
    start = time.monotonic()

    log.info("sync_started", source=source, destination=destination, dry_run=dry_run)

    if dry_run:
        try:
            files = executor.list_files(source)
        except TransferToolError as e:
            log.error("rclone_lsf_failed", exit_code=e.exit_code, stderr=e.stderr)
            raise

        log.info("dry_run_would_sync", file_count=len(files))
        _log_listing(files, log)
        return SyncResult(duration_seconds=elapsed_seconds(start))

    try:
        output = executor.sync(source, destination)
    except TransferToolError as e:
        log.error("rclone_sync_failed", exit_code=e.exit_code, stderr=e.stderr)
        raise

    counters = parse_transfer_output(output.combined)
    result = SyncResult(
        files_transferred=counters.transfers or 0,
        bytes_transferred=counters.bytes or 0,
        duration_seconds=elapsed_seconds(start),
    )

    log.info(
        "sync_completed",
        files_transferred=f"{result.files_transferred:,}",
        bytes_transferred=format_bytes(result.bytes_transferred),
        duration_seconds=result.duration_seconds,
    )
    return result


def sync_oci_to_gcs(
    settings: Settings,
    executor: Optional[TransferExecutor] = None,
    logger=None,
) -> SyncResult:
    """Run the mirror stage with locators and rclone options taken from settings."""
    if executor is None:
        executor = RcloneExecutor(settings.rclone_binary, settings.rclone_config)
    return run_mirror_stage(
        settings.source_locator,
        settings.staging_locator,
        executor,
        dry_run=settings.dry_run,
        logger=logger,
    )
