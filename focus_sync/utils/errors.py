"""
Centralized Error Handling Utilities

Exception hierarchy for stage-fatal failures and a consistent error report
format for the job's final output.
"""

from typing import Optional, Dict, Any, Sequence
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for consistent job reports"""
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # External transfer tool (rclone)
    TRANSFER_TOOL_ERROR = "TRANSFER_TOOL_ERROR"

    # Object store
    OBJECT_STORE_ERROR = "OBJECT_STORE_ERROR"
    BUCKET_CREATION_ERROR = "BUCKET_CREATION_ERROR"


DEFAULT_MESSAGES = {
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred.",
    ErrorCode.CONFIGURATION_ERROR: "The job configuration is missing or invalid.",
    ErrorCode.TRANSFER_TOOL_ERROR: "The external transfer tool failed.",
    ErrorCode.OBJECT_STORE_ERROR: "An object store operation failed.",
    ErrorCode.BUCKET_CREATION_ERROR: "A bucket could not be created.",
}


class SyncJobError(Exception):
    """Base class for stage-fatal errors raised by the sync job."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def details(self) -> Dict[str, Any]:
        """Extra context for error reports"""
        return {}


class ConfigurationError(SyncJobError):
    """Raised when settings cannot be loaded or validated."""

    code = ErrorCode.CONFIGURATION_ERROR


class TransferToolError(SyncJobError):
    """Raised when the external transfer tool exits non-zero or cannot be started."""

    code = ErrorCode.TRANSFER_TOOL_ERROR

    def __init__(
        self,
        command: Sequence[str],
        exit_code: Optional[int],
        stderr: str = "",
        original_error: Optional[Exception] = None,
    ):
        tool = " ".join(command[:2]) if command else "transfer tool"
        if exit_code is None:
            message = f"{tool} could not be started"
        else:
            message = f"{tool} failed with exit code {exit_code}"
        super().__init__(message, original_error)
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr

    def details(self) -> Dict[str, Any]:
        return {"exit_code": self.exit_code, "stderr": self.stderr}


class ObjectStoreError(SyncJobError):
    """Raised when an object store call fails for a reason other than 'not found'."""

    code = ErrorCode.OBJECT_STORE_ERROR

    def __init__(
        self,
        operation: str,
        bucket: str,
        key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        target = f"{bucket}/{key}" if key else bucket
        message = f"{operation} failed for {target}"
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message, original_error)
        self.operation = operation
        self.bucket = bucket
        self.key = key

    def details(self) -> Dict[str, Any]:
        details = {"operation": self.operation, "bucket": self.bucket}
        if self.key:
            details["key"] = self.key
        return details


class BucketCreationError(ObjectStoreError):
    """Raised when a missing bucket cannot be created."""

    code = ErrorCode.BUCKET_CREATION_ERROR


def create_error_report(
    exc: BaseException,
    stage: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a standardized error report.

    Args:
        exc: The exception that ended the run
        stage: Optional stage name the error came from ("SYNC", "REORGANIZE")

    Returns:
        Standardized error report dict
    """
    if isinstance(exc, SyncJobError):
        code = exc.code
        message = exc.message
        details = exc.details()
    else:
        code = ErrorCode.INTERNAL_ERROR
        message = str(exc) or DEFAULT_MESSAGES[ErrorCode.INTERNAL_ERROR]
        details = {"type": type(exc).__name__}

    if stage:
        details = {**details, "stage": stage}

    return {
        "error": {
            "code": code.value,
            "message": message or DEFAULT_MESSAGES[code],
            **({"details": details} if details else {}),
        }
    }
