"""
Object Store Session Factory

Builds boto3 clients pointed at the GCS S3-interoperable endpoint.

Credentials are never passed explicitly. boto3's default credential chain
resolves the GCS HMAC key pair from the environment (AWS_ACCESS_KEY_ID /
AWS_SECRET_ACCESS_KEY), the shared credentials file or a named profile.
"""

from typing import Optional, Any

import boto3
from botocore.config import Config
import structlog

from focus_sync.utils.aws_constants import (
    StorageService,
    DEFAULT_GCS_ENDPOINT_URL,
    GCS_SIGNING_REGION,
    GCS_PROJECT_HEADER,
)

logger = structlog.get_logger(__name__)


def create_aws_session(profile_name: Optional[str] = None) -> boto3.Session:
    """
    Create a boto3 session using the default credential chain.

    Args:
        profile_name: Optional profile name for local development

    Returns:
        boto3.Session configured with the default credential chain
    """
    session_kwargs = {"region_name": GCS_SIGNING_REGION}
    if profile_name:
        session_kwargs["profile_name"] = profile_name

    session = boto3.Session(**session_kwargs)

    logger.debug(
        "storage_session_created",
        profile=profile_name,
        credential_method="default_chain"
    )

    return session


def get_default_retry_config(
    max_attempts: int = 3,
    mode: str = "adaptive",
    max_pool_connections: int = 10,
) -> Config:
    """
    Get a standard botocore Config with retry settings.

    Args:
        max_attempts: Maximum retry attempts
        mode: Retry mode ('legacy', 'standard', 'adaptive')
        max_pool_connections: Connection pool size

    Returns:
        botocore.config.Config instance
    """
    return Config(
        region_name=GCS_SIGNING_REGION,
        signature_version="s3v4",
        retries={
            "max_attempts": max_attempts,
            "mode": mode,
        },
        max_pool_connections=max_pool_connections,
    )


def _project_header_hook(project_id: str):
    def add_project_header(request, **kwargs):
        request.headers[GCS_PROJECT_HEADER] = project_id
    return add_project_header


def create_storage_client(
    endpoint_url: Optional[str] = None,
    project_id: Optional[str] = None,
    config: Optional[Config] = None,
    profile_name: Optional[str] = None,
) -> Any:
    """
    Create an S3 client for the GCS interoperability endpoint.

    Args:
        endpoint_url: XML API endpoint (defaults to storage.googleapis.com)
        project_id: GCS project; sent as x-goog-project-id on every request
        config: Optional botocore Config (defaults to get_default_retry_config())
        profile_name: Optional profile name for local development

    Returns:
        boto3 S3 client

    Example:
        client = create_storage_client(project_id="my-project")
        store = S3CompatibleObjectStore(client)
    """
    session = create_aws_session(profile_name=profile_name)

    client = session.client(
        StorageService.S3,
        endpoint_url=endpoint_url or DEFAULT_GCS_ENDPOINT_URL,
        config=config or get_default_retry_config(),
    )

    if project_id:
        client.meta.events.register(
            "before-sign.s3",
            _project_header_hook(project_id),
        )

    logger.debug(
        "storage_client_created",
        endpoint_url=endpoint_url or DEFAULT_GCS_ENDPOINT_URL,
        project_id=project_id,
    )

    return client
