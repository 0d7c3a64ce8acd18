import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import structlog

ROOT = Path(__file__).resolve().parents[1]

# Prefer this checkout over any installed copy of the package
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from focus_sync.config.settings import Settings, clear_settings_cache  # noqa: E402
from focus_sync.pipeline.mirror import CommandOutput, TransferExecutor  # noqa: E402
from focus_sync.services.object_store import ObjectStore  # noqa: E402
from focus_sync.utils.errors import ObjectStoreError, TransferToolError  # noqa: E402


REQUIRED_ENV = {
    "OCI_TENANCY_OCID": "ocid1.tenancy.oc1..aaaatest",
    "GCS_STAGING_BUCKET": "focus-staging",
    "GCS_HIVE_BUCKET": "focus-hive",
    "GCS_PROJECT_ID": "finops-test",
}


class FakeObjectStore(ObjectStore):
    """In-memory ObjectStore that records every call"""

    def __init__(self, buckets: Optional[Dict[str, Dict[str, bytes]]] = None):
        self.buckets: Dict[str, Dict[str, bytes]] = buckets if buckets is not None else {}
        self.calls: List[tuple] = []
        self.fail_copy_keys: set = set()
        self.fail_exists_keys: set = set()

    def add_objects(self, bucket: str, keys, content: bytes = b"data") -> None:
        objects = self.buckets.setdefault(bucket, {})
        for key in keys:
            objects[key] = content

    def bucket_exists(self, bucket):
        self.calls.append(("bucket_exists", bucket))
        return bucket in self.buckets

    def create_bucket(self, bucket, location):
        self.calls.append(("create_bucket", bucket, location))
        self.buckets.setdefault(bucket, {})

    def list_objects(self, bucket, prefix):
        self.calls.append(("list_objects", bucket, prefix))
        return [key for key in self.buckets[bucket] if key.startswith(prefix)]

    def object_exists(self, bucket, key):
        self.calls.append(("object_exists", bucket, key))
        if key in self.fail_exists_keys:
            raise ObjectStoreError("head_object", bucket, key)
        return key in self.buckets.get(bucket, {})

    def get_object_size(self, bucket, key):
        self.calls.append(("get_object_size", bucket, key))
        content = self.buckets.get(bucket, {}).get(key)
        return None if content is None else len(content)

    def copy_object(self, source_bucket, source_key, dest_bucket, dest_key):
        self.calls.append(("copy_object", source_bucket, source_key, dest_bucket, dest_key))
        if source_key in self.fail_copy_keys:
            raise ObjectStoreError("copy_object", dest_bucket, dest_key, original_error=RuntimeError("boom"))
        self.buckets[dest_bucket][dest_key] = self.buckets[source_bucket][source_key]

    def mutating_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("create_bucket", "copy_object")]


class FakeTransferExecutor(TransferExecutor):
    """TransferExecutor returning canned rclone output"""

    def __init__(
        self,
        files: Optional[List[str]] = None,
        output: Optional[CommandOutput] = None,
        error: Optional[TransferToolError] = None,
    ):
        self.files = files or []
        self.output = output or CommandOutput(stdout="", stderr="")
        self.error = error
        self.calls: List[tuple] = []

    def list_files(self, source):
        self.calls.append(("list_files", source))
        if self.error:
            raise self.error
        return list(self.files)

    def sync(self, source, destination):
        self.calls.append(("sync", source, destination))
        if self.error:
            raise self.error
        return self.output


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any structlog configuration a test applied"""
    yield
    structlog.reset_defaults()


@pytest.fixture
def job_env(monkeypatch):
    """Required environment variables for Settings"""
    clear_settings_cache()
    for name, value in REQUIRED_ENV.items():
        monkeypatch.setenv(name, value)
    yield monkeypatch
    clear_settings_cache()


@pytest.fixture
def make_settings(job_env):
    """Build Settings from the environment plus overrides"""
    def _make(**overrides) -> Settings:
        return Settings(**overrides)
    return _make


@pytest.fixture
def fake_store():
    return FakeObjectStore()


@pytest.fixture
def fake_executor():
    return FakeTransferExecutor()
