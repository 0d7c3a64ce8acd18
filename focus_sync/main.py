"""
FOCUS report sync job
Entry point: loads settings, runs the mirror and partition stages in order,
prints the run statistics as JSON and sets the process exit status.
"""

import json
import sys
import time
from typing import Optional

from pydantic import ValidationError

from focus_sync.config.settings import Settings, get_settings
from focus_sync.pipeline.mirror import TransferExecutor, sync_oci_to_gcs
from focus_sync.pipeline.partition import reorganize_to_hive
from focus_sync.pipeline.stats import JobStatistics, elapsed_seconds
from focus_sync.services.object_store import ObjectStore, S3CompatibleObjectStore
from focus_sync.utils.aws_session import create_storage_client
from focus_sync.utils.errors import ConfigurationError, create_error_report
from focus_sync.utils.logging import get_step_logger, setup_logging


def create_object_store(settings: Settings) -> ObjectStore:
    """Object store for the staging and hive buckets"""
    client = create_storage_client(
        endpoint_url=settings.gcs_endpoint_url,
        project_id=settings.gcs_project_id,
    )
    return S3CompatibleObjectStore(client)


def run_job(
    settings: Settings,
    object_store: Optional[ObjectStore] = None,
    executor: Optional[TransferExecutor] = None,
    logger=None,
) -> JobStatistics:
    """
    Run both stages in order.

    Args:
        settings: Job settings
        object_store: Storage backend for the partition stage (built from settings if None)
        executor: rclone runner for the mirror stage (RcloneExecutor if None)
        logger: structlog logger for MAIN step messages

    Returns:
        JobStatistics for the run

    Raises:
        Exception: Whatever stage-fatal error a stage raised; the failed stage is logged first
    """
    log = logger or get_step_logger("MAIN", __name__)
    start = time.monotonic()

    log.info("step_started", step_number=1, name="OCI to GCS Sync")
    try:
        sync_result = sync_oci_to_gcs(
            settings,
            executor=executor,
            logger=get_step_logger("SYNC", "focus_sync.pipeline.mirror"),
        )
    except Exception as e:
        log.error("sync_step_failed", **create_error_report(e, stage="SYNC"))
        raise

    log.info("step_started", step_number=2, name="Hive Partitioning")
    try:
        if object_store is None:
            object_store = create_object_store(settings)
        reorganize_result = reorganize_to_hive(
            settings,
            object_store,
            logger=get_step_logger("REORGANIZE", "focus_sync.pipeline.partition"),
        )
    except Exception as e:
        log.error("reorganize_step_failed", **create_error_report(e, stage="REORGANIZE"))
        raise

    return JobStatistics(
        sync=sync_result,
        reorganize=reorganize_result,
        total_duration_seconds=elapsed_seconds(start),
    )


def main() -> int:
    """Process entry point. Returns the exit status."""
    setup_logging()
    log = get_step_logger("MAIN", __name__)

    log.info("loading_configuration")
    try:
        settings = get_settings()
    except ValidationError as e:
        log.error("configuration_error", **create_error_report(ConfigurationError(str(e), e)))
        return 1

    setup_logging(settings.log_level, settings.log_format)
    log = get_step_logger("MAIN", __name__)
    log.info("configuration_loaded", **settings.describe())

    try:
        statistics = run_job(settings, logger=log)
    except Exception:
        return 1

    log.info("job_statistics")
    print(json.dumps(statistics.to_dict(), indent=2))

    if statistics.exit_code != 0:
        log.error("job_completed_with_errors", errors=statistics.reorganize.files_errored)
        return statistics.exit_code

    log.info("job_completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
