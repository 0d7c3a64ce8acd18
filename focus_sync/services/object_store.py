"""
Object store interface for loose coupling between the partition stage and the storage backend.

The partition stage only talks to ObjectStore, so tests can hand it an in-memory
fake and production hands it S3CompatibleObjectStore (GCS through its XML API).
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from botocore.exceptions import BotoCoreError, ClientError
import structlog

from focus_sync.utils.aws_constants import NOT_FOUND_ERROR_CODES
from focus_sync.utils.errors import BucketCreationError, ObjectStoreError

logger = structlog.get_logger(__name__)


class ObjectStore(ABC):
    """
    Abstract base class for object storage backends.

    All calls are blocking and return only once the remote operation has
    completed or failed.
    """

    @abstractmethod
    def bucket_exists(self, bucket: str) -> bool:
        """Return True if the bucket exists and is reachable."""

    @abstractmethod
    def create_bucket(self, bucket: str, location: str) -> None:
        """
        Create a bucket.

        Raises:
            BucketCreationError: If the bucket cannot be created
        """

    @abstractmethod
    def list_objects(self, bucket: str, prefix: str) -> List[str]:
        """Return every key under prefix, in the order the backend lists them."""

    @abstractmethod
    def object_exists(self, bucket: str, key: str) -> bool:
        """Return True if an object exists at key."""

    @abstractmethod
    def get_object_size(self, bucket: str, key: str) -> Optional[int]:
        """Return the object's size in bytes, or None if it does not exist."""

    @abstractmethod
    def copy_object(
        self,
        source_bucket: str,
        source_key: str,
        dest_bucket: str,
        dest_key: str,
    ) -> None:
        """Server-side copy of one object."""


def _is_not_found(error: ClientError) -> bool:
    code = str(error.response.get("Error", {}).get("Code", ""))
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code in NOT_FOUND_ERROR_CODES or status == 404


class S3CompatibleObjectStore(ObjectStore):
    """ObjectStore over a boto3 S3 client (GCS interoperability endpoint)."""

    def __init__(self, client: Any):
        """
        Args:
            client: boto3 S3 client, see focus_sync.utils.aws_session.create_storage_client
        """
        self._client = client

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self._client.head_bucket(Bucket=bucket)
            return True
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise ObjectStoreError("head_bucket", bucket, original_error=e) from e
        except BotoCoreError as e:
            raise ObjectStoreError("head_bucket", bucket, original_error=e) from e

    def create_bucket(self, bucket: str, location: str) -> None:
        try:
            self._client.create_bucket(
                Bucket=bucket,
                CreateBucketConfiguration={"LocationConstraint": location},
            )
        except (ClientError, BotoCoreError) as e:
            raise BucketCreationError("create_bucket", bucket, original_error=e) from e

        logger.debug("bucket_created", bucket=bucket, location=location)

    def list_objects(self, bucket: str, prefix: str) -> List[str]:
        keys: List[str] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    key = obj.get("Key")
                    if key:
                        keys.append(key)
        except (ClientError, BotoCoreError) as e:
            raise ObjectStoreError("list_objects", bucket, prefix, original_error=e) from e

        return keys

    def _head_object(self, bucket: str, key: str) -> Optional[dict]:
        try:
            return self._client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                return None
            raise ObjectStoreError("head_object", bucket, key, original_error=e) from e
        except BotoCoreError as e:
            raise ObjectStoreError("head_object", bucket, key, original_error=e) from e

    def object_exists(self, bucket: str, key: str) -> bool:
        return self._head_object(bucket, key) is not None

    def get_object_size(self, bucket: str, key: str) -> Optional[int]:
        head = self._head_object(bucket, key)
        if head is None:
            return None
        return int(head.get("ContentLength", 0))

    def copy_object(
        self,
        source_bucket: str,
        source_key: str,
        dest_bucket: str,
        dest_key: str,
    ) -> None:
        try:
            self._client.copy_object(
                Bucket=dest_bucket,
                Key=dest_key,
                CopySource={"Bucket": source_bucket, "Key": source_key},
            )
        except (ClientError, BotoCoreError) as e:
            raise ObjectStoreError("copy_object", dest_bucket, dest_key, original_error=e) from e
