"""
Object Store Constants

Centralizes the string literals needed to reach Google Cloud Storage through
its S3-interoperable XML API with boto3.

Usage:
    from focus_sync.utils.aws_constants import (
        StorageService,
        DEFAULT_GCS_ENDPOINT_URL,
    )
"""

from typing import Set


# =============================================================================
# SERVICE NAMES
# =============================================================================

class StorageService:
    """
    Service name constants for boto3 client creation.

    GCS speaks the S3 XML dialect, so the boto3 service is always "s3";
    the endpoint URL is what points it at Google.
    """
    S3 = "s3"


# =============================================================================
# ENDPOINTS & LOCATIONS
# =============================================================================

DEFAULT_GCS_ENDPOINT_URL = "https://storage.googleapis.com"

# boto3 requires a region for request signing; GCS ignores it
GCS_SIGNING_REGION = "auto"

# Location used when the job has to create a bucket
DEFAULT_BUCKET_LOCATION = "europe-west3"

# Header GCS uses to scope bucket-level calls (create/list) to a project
GCS_PROJECT_HEADER = "x-goog-project-id"


# =============================================================================
# ERROR CODES
# =============================================================================

# ClientError codes that mean "the thing is not there" rather than a failure
NOT_FOUND_ERROR_CODES: Set[str] = {
    "404",
    "NoSuchKey",
    "NoSuchBucket",
    "NotFound",
}
