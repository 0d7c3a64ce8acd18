"""
Services package for the sync job
Contains the object store client used by the partition stage
"""

from focus_sync.services.object_store import ObjectStore, S3CompatibleObjectStore

__all__ = ["ObjectStore", "S3CompatibleObjectStore"]
