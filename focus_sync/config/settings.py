"""
Job settings and configuration management
Uses Pydantic Settings for environment variable handling and validation
"""

from functools import lru_cache
from typing import Any, ClassVar, FrozenSet, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource
import pytz

from focus_sync.utils.aws_constants import (
    DEFAULT_BUCKET_LOCATION,
    DEFAULT_GCS_ENDPOINT_URL,
)

# Remote paths on either side of the rclone mirror
OCI_REPORTS_DIR = "FOCUS Reports"
STAGING_REPORTS_DIR = "FOCUS-Reports"


class Settings(BaseSettings):
    """Job settings with environment variable support"""

    # Source (OCI usage reports, reached through rclone)
    oci_rclone_remote: str = Field(
        default="oci-usage-reports-config",
        description="rclone remote name for the OCI usage report bucket"
    )
    oci_tenancy_ocid: str = Field(
        ...,
        min_length=1,
        description="OCI tenancy OCID; the usage report bucket is named after it"
    )

    # Destination (GCS)
    gcs_rclone_remote: str = Field(default="gcs-config", description="rclone remote name for GCS")
    gcs_staging_bucket: str = Field(..., min_length=1)
    gcs_hive_bucket: str = Field(..., min_length=1)
    gcs_project_id: str = Field(..., min_length=1)
    gcs_bucket_location: str = Field(default=DEFAULT_BUCKET_LOCATION)
    gcs_endpoint_url: str = Field(
        default=DEFAULT_GCS_ENDPOINT_URL,
        description="S3-interoperable endpoint used by the object store client"
    )

    # Job
    sync_mode: Literal["full", "incremental"] = Field(default="incremental")
    days_to_sync: int = Field(default=7, ge=0)
    dry_run: bool = Field(default=False)
    job_timezone: Optional[str] = Field(
        default=None,
        description="Timezone used to decide what 'today' is; the host's local zone when unset"
    )
    progress_interval: int = Field(default=100, ge=1)
    verify_before_skip: bool = Field(
        default=False,
        description="Compare object sizes before skipping an existing destination object"
    )

    # rclone
    rclone_binary: str = Field(default="rclone")
    rclone_config: str = Field(default="rclone.conf")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_parse_none_str="null"
    )

    VALID_LOG_LEVELS: ClassVar[FrozenSet[str]] = frozenset(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to exclude .env file loading"""
        return init_settings, env_settings, file_secret_settings

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        if v.upper() not in cls.VALID_LOG_LEVELS:
            raise ValueError(f"Log level must be one of {sorted(cls.VALID_LOG_LEVELS)}")
        return v.upper()

    @field_validator("sync_mode", "log_format", mode="before")
    @classmethod
    def normalize_choice(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("job_timezone")
    @classmethod
    def validate_job_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        try:
            pytz.timezone(v.strip())
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {v}")
        return v.strip()

    @field_validator("dry_run", mode="before")
    @classmethod
    def parse_dry_run(cls, v: Any) -> Any:
        # Only the literal "true" turns dry run on; "1"/"yes" do not
        if isinstance(v, str):
            return v.strip().lower() == "true"
        return v

    @property
    def is_incremental(self) -> bool:
        """Check if only the trailing days_to_sync window is processed"""
        return self.sync_mode == "incremental"

    @property
    def source_locator(self) -> str:
        """rclone path of the OCI report tree"""
        return f"{self.oci_rclone_remote}:{self.oci_tenancy_ocid}/{OCI_REPORTS_DIR}"

    @property
    def staging_locator(self) -> str:
        """rclone path of the mirrored tree in the staging bucket"""
        return f"{self.gcs_rclone_remote}:{self.gcs_staging_bucket}/{STAGING_REPORTS_DIR}"

    def describe(self) -> dict[str, Any]:
        """Non-sensitive summary for startup logging"""
        summary: dict[str, Any] = {
            "sync_mode": self.sync_mode,
            "dry_run": self.dry_run,
            "staging_bucket": self.gcs_staging_bucket,
            "hive_bucket": self.gcs_hive_bucket,
        }
        if self.is_incremental:
            summary["days_to_sync"] = self.days_to_sync
        if self.job_timezone:
            summary["job_timezone"] = self.job_timezone
        if self.verify_before_skip:
            summary["verify_before_skip"] = True
        return summary


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached job settings
    Uses lru_cache to avoid reading environment variables multiple times
    """
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache. Used primarily for testing.
    After calling this, the next call to get_settings() will
    create a new Settings instance with fresh environment variables.
    """
    get_settings.cache_clear()
