"""
Object Keys Module - Parse staged report keys and build partitioned keys

Staged keys mirror the OCI layout:
    FOCUS-Reports/<YYYY>/<MM>/<DD>/<name>.csv.gz
Partitioned keys use Hive-style path segments:
    year=<YYYY>/month=<MM>/day=<DD>/<name>.csv.gz
"""

from dataclasses import dataclass
from datetime import MINYEAR, date, datetime, timedelta, tzinfo
from typing import Optional, Union
import re

import pytz

REPORTS_PREFIX = "FOCUS-Reports/"

FILE_PATH_PATTERN = re.compile(
    r"FOCUS-Reports/(\d{4})/(\d{2})/(\d{2})/(.+\.csv\.gz)"
)


@dataclass(frozen=True)
class StagedObject:
    """A staged report key split into its date components"""
    year: str
    month: str
    day: str
    filename: str
    full_path: str
    date: date


def _rolled_over_date(year: int, month: int, day: int) -> date:
    """
    Calendar date for the key's digits, rolling out-of-range parts over
    (2024/02/30 -> 2024-03-01, 2024/13/01 -> 2025-01-01, day 00 -> last day
    of the previous month).
    """
    extra_years, month_index = divmod(month - 1, 12)
    try:
        return date(year + extra_years, month_index + 1, 1) + timedelta(days=day - 1)
    except (ValueError, OverflowError):
        # Outside what datetime can represent; clamp so the key is still migrated
        return date.min if year + extra_years <= MINYEAR else date.max


def parse_file_path(path: str) -> Optional[StagedObject]:
    """
    Parse a staged key into a StagedObject.

    Returns None for anything that does not fully match the staged layout.
    Callers treat None as "skip", not as an error. Digits that are not a
    real calendar date still match; the partition segments keep the digits
    as written and only the window date is rolled over.
    """
    match = FILE_PATH_PATTERN.fullmatch(path)
    if not match:
        return None

    year, month, day, filename = match.groups()

    return StagedObject(
        year=year,
        month=month,
        day=day,
        filename=filename,
        full_path=path,
        date=_rolled_over_date(int(year), int(month), int(day)),
    )


def build_hive_path(staged: StagedObject) -> str:
    """Destination key for a staged object"""
    return f"year={staged.year}/month={staged.month}/day={staged.day}/{staged.filename}"


def current_date(tz: Union[str, tzinfo, None] = None) -> date:
    """Today's date in the given timezone, or in the host's local zone when tz is None"""
    if tz is None:
        return datetime.now().date()
    zone = pytz.timezone(tz) if isinstance(tz, str) else tz
    return datetime.now(zone).date()


def compute_cutoff_date(days_to_sync: int, today: Optional[date] = None) -> date:
    """First date (inclusive) inside the trailing days_to_sync window"""
    if today is None:
        today = current_date()
    return today - timedelta(days=days_to_sync)


def is_within_date_range(
    file_date: date,
    days_to_sync: int,
    today: Optional[date] = None,
) -> bool:
    """
    Check a report date against the incremental window.

    The lower bound is inclusive and there is no upper bound, so
    future-dated reports are always kept.
    """
    return file_date >= compute_cutoff_date(days_to_sync, today)
