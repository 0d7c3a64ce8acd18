"""
Partition Stage - re-key staged reports into a Hive-partitioned bucket

Staged objects (FOCUS-Reports/YYYY/MM/DD/name.csv.gz) are copied server-side
to year=YYYY/month=MM/day=DD/name.csv.gz. A destination object that already
exists is skipped, so the stage can be re-run safely; its content is not
re-checked unless verify_before_skip is enabled.

Known gap: a copy interrupted mid-write can leave a truncated destination
object that later runs will skip. verify_before_skip compares sizes and
re-copies on mismatch; it is off by default.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple
import time

import structlog

from focus_sync.config.settings import Settings
from focus_sync.pipeline.object_keys import (
    REPORTS_PREFIX,
    StagedObject,
    build_hive_path,
    compute_cutoff_date,
    current_date,
    is_within_date_range,
    parse_file_path,
)
from focus_sync.pipeline.stats import ObjectError, ReorganizeResult, elapsed_seconds
from focus_sync.services.object_store import ObjectStore
from focus_sync.utils.aws_constants import DEFAULT_BUCKET_LOCATION

STEP = "REORGANIZE"


@dataclass
class SelectionSummary:
    """Outcome of parsing and date-filtering the staging listing"""
    selected: List[StagedObject]
    skipped_non_matching: int
    skipped_out_of_range: int


class HivePartitioner:
    """Copies staged report objects into the partitioned bucket, one at a time."""

    def __init__(
        self,
        store: ObjectStore,
        staging_bucket: str,
        hive_bucket: str,
        sync_mode: str = "incremental",
        days_to_sync: int = 7,
        dry_run: bool = False,
        bucket_location: str = DEFAULT_BUCKET_LOCATION,
        verify_before_skip: bool = False,
        progress_interval: int = 100,
        today: Optional[date] = None,
        logger=None,
    ):
        self.store = store
        self.staging_bucket = staging_bucket
        self.hive_bucket = hive_bucket
        self.sync_mode = sync_mode
        self.days_to_sync = days_to_sync
        self.dry_run = dry_run
        self.bucket_location = bucket_location
        self.verify_before_skip = verify_before_skip
        self.progress_interval = max(1, progress_interval)
        self.today = today
        self.log = logger or structlog.get_logger(__name__).bind(step=STEP)

    @property
    def is_incremental(self) -> bool:
        return self.sync_mode == "incremental"

    def ensure_bucket_exists(self, bucket: str) -> None:
        """Create the bucket if it is missing."""
        if self.store.bucket_exists(bucket):
            self.log.debug("bucket_exists", bucket=bucket)
            return

        self.log.info("creating_bucket", bucket=bucket, location=self.bucket_location)
        self.store.create_bucket(bucket, self.bucket_location)
        self.log.info("bucket_created", bucket=bucket)

    def _check_buckets_dry_run(self) -> bool:
        """Existence checks only. Returns False when staging cannot be listed."""
        staging_exists = self.store.bucket_exists(self.staging_bucket)
        hive_exists = self.store.bucket_exists(self.hive_bucket)

        if not staging_exists:
            self.log.info("dry_run_would_create_bucket", bucket=self.staging_bucket)
            self.log.info("dry_run_staging_missing", bucket=self.staging_bucket)
            return False
        if not hive_exists:
            self.log.info("dry_run_would_create_bucket", bucket=self.hive_bucket)
        return True

    def select_objects(self, keys: List[str]) -> SelectionSummary:
        """Parse listed keys and apply the incremental date window."""
        today = None
        if self.is_incremental:
            today = self.today if self.today is not None else current_date()
            cutoff = compute_cutoff_date(self.days_to_sync, today)
            self.log.debug("incremental_cutoff", cutoff=cutoff.isoformat())

        selected: List[StagedObject] = []
        non_matching = 0
        out_of_range = 0

        for key in keys:
            staged = parse_file_path(key)
            if staged is None:
                non_matching += 1
                self.log.debug("skipping_non_matching_path", key=key)
                continue

            if today is not None and not is_within_date_range(staged.date, self.days_to_sync, today):
                out_of_range += 1
                self.log.debug("skipping_out_of_range", key=key)
                continue

            selected.append(staged)

        return SelectionSummary(
            selected=selected,
            skipped_non_matching=non_matching,
            skipped_out_of_range=out_of_range,
        )

    def _destination_is_current(self, staged: StagedObject, hive_path: str) -> Tuple[bool, bool]:
        """
        Returns (exists, current). With verification off every existing
        destination counts as current.
        """
        if not self.verify_before_skip:
            exists = self.store.object_exists(self.hive_bucket, hive_path)
            return exists, exists

        dest_size = self.store.get_object_size(self.hive_bucket, hive_path)
        if dest_size is None:
            return False, False

        source_size = self.store.get_object_size(self.staging_bucket, staged.full_path)
        if source_size is not None and source_size != dest_size:
            self.log.warning(
                "destination_size_mismatch",
                key=hive_path,
                source_size=source_size,
                destination_size=dest_size,
            )
            return True, False
        return True, True

    def copy_objects(self, selected: List[StagedObject], result: ReorganizeResult) -> None:
        """Copy each selected object, isolating failures per object."""
        total = len(selected)

        for index, staged in enumerate(selected, 1):
            hive_path = build_hive_path(staged)

            try:
                exists, current = self._destination_is_current(staged, hive_path)

                if current:
                    self.log.debug("already_present", key=hive_path)
                    result.files_skipped += 1
                else:
                    self.store.copy_object(
                        self.staging_bucket,
                        staged.full_path,
                        self.hive_bucket,
                        hive_path,
                    )
                    self.log.debug(
                        "recopied" if exists else "copied",
                        source=staged.full_path,
                        destination=hive_path,
                    )
                    result.files_copied += 1
            except Exception as e:
                self.log.error(
                    "copy_failed",
                    source=staged.full_path,
                    destination=hive_path,
                    error=str(e),
                )
                result.errors.append(ObjectError(path=staged.full_path, error=str(e)))
                result.files_errored += 1

            if index % self.progress_interval == 0:
                self.log.info("progress", processed=index, total=total)

    def run(self) -> ReorganizeResult:
        """
        Run the stage.

        Returns:
            ReorganizeResult with per-object errors attached

        Raises:
            ObjectStoreError: Bucket check, creation or listing failed
        """
        start = time.monotonic()

        self.log.info("reorganize_started", dry_run=self.dry_run)
        self.log.debug(
            "reorganize_parameters",
            source_bucket=self.staging_bucket,
            destination_bucket=self.hive_bucket,
            sync_mode=self.sync_mode,
            **({"days_to_sync": self.days_to_sync} if self.is_incremental else {}),
        )

        if self.dry_run:
            if not self._check_buckets_dry_run():
                return ReorganizeResult(duration_seconds=elapsed_seconds(start))
        else:
            self.ensure_bucket_exists(self.staging_bucket)
            self.ensure_bucket_exists(self.hive_bucket)

        self.log.info("listing_staging_bucket", bucket=self.staging_bucket, prefix=REPORTS_PREFIX)
        keys = self.store.list_objects(self.staging_bucket, REPORTS_PREFIX)
        self.log.debug("staging_files_found", count=len(keys))

        summary = self.select_objects(keys)
        selected = summary.selected

        self.log.info(
            "processing_files",
            count=len(selected),
            non_matching=summary.skipped_non_matching,
            out_of_range=summary.skipped_out_of_range,
        )

        if self.dry_run:
            for staged in selected:
                self.log.debug("dry_run_mapping", source=staged.full_path, destination=build_hive_path(staged))
            self.log.info("dry_run_would_process", count=len(selected))
            return ReorganizeResult(
                files_processed=len(selected),
                duration_seconds=elapsed_seconds(start),
            )

        result = ReorganizeResult(files_processed=len(selected))
        self.copy_objects(selected, result)
        result.duration_seconds = elapsed_seconds(start)

        self.log.info(
            "reorganize_completed",
            copied=result.files_copied,
            skipped=result.files_skipped,
            errors=result.files_errored,
            duration_seconds=result.duration_seconds,
        )

        if result.errors:
            self.log.error("errors_encountered", count=len(result.errors))
            for err in result.errors:
                self.log.error("object_error", path=err.path, error=err.error)

        return result


def reorganize_to_hive(
    settings: Settings,
    store: ObjectStore,
    logger=None,
    today: Optional[date] = None,
) -> ReorganizeResult:
    """Run the partition stage with buckets and job options taken from settings."""
    if today is None:
        today = current_date(settings.job_timezone)
    return HivePartitioner(
        store,
        staging_bucket=settings.gcs_staging_bucket,
        hive_bucket=settings.gcs_hive_bucket,
        sync_mode=settings.sync_mode,
        days_to_sync=settings.days_to_sync,
        dry_run=settings.dry_run,
        bucket_location=settings.gcs_bucket_location,
        verify_before_skip=settings.verify_before_skip,
        progress_interval=settings.progress_interval,
        today=today,
        logger=logger,
    ).run()
