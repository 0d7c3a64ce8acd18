"""
Pipeline package - the two stages of the sync job

Mirror stage: rclone copies the OCI report tree into the staging bucket.
Partition stage: staged objects are re-keyed into the Hive-partitioned bucket.
"""

from focus_sync.pipeline.stats import (
    SyncResult,
    ReorganizeResult,
    JobStatistics,
    ObjectError,
)
from focus_sync.pipeline.mirror import sync_oci_to_gcs
from focus_sync.pipeline.partition import reorganize_to_hive

__all__ = [
    'SyncResult',
    'ReorganizeResult',
    'JobStatistics',
    'ObjectError',
    'sync_oci_to_gcs',
    'reorganize_to_hive',
]
