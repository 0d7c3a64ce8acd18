"""
Tests for the object_keys module.

Tests cover:
- parse_file_path structural matching
- build_hive_path determinism
- Incremental window cutoff (inclusive lower bound)
"""

import pytest
from datetime import date
from freezegun import freeze_time

from focus_sync.pipeline.object_keys import (
    REPORTS_PREFIX,
    StagedObject,
    build_hive_path,
    compute_cutoff_date,
    current_date,
    is_within_date_range,
    parse_file_path,
)


class TestParseFilePath:
    """Test parse_file_path"""

    def test_parses_valid_key(self):
        """Test that a well-formed staged key is split into its parts"""
        key = "FOCUS-Reports/2024/06/08/0001000000123456.csv.gz"
        parsed = parse_file_path(key)

        assert parsed == StagedObject(
            year="2024",
            month="06",
            day="08",
            filename="0001000000123456.csv.gz",
            full_path=key,
            date=date(2024, 6, 8),
        )

    def test_filename_may_contain_slashes(self):
        """Test that everything after the day segment is the filename"""
        parsed = parse_file_path("FOCUS-Reports/2024/01/31/sub/dir/report.csv.gz")

        assert parsed is not None
        assert parsed.filename == "sub/dir/report.csv.gz"

    @pytest.mark.parametrize("key", [
        "FOCUS-Reports/2024/06/08/report.csv",
        "FOCUS-Reports/2024/6/08/report.csv.gz",
        "FOCUS-Reports/24/06/08/report.csv.gz",
        "FOCUS-Reports/2024/06/report.csv.gz",
        "FOCUS-Reports/2024/06/08/.csv.gz",
        "other/FOCUS-Reports/2024/06/08/report.csv.gz",
        "FOCUS-Reports/2024/06/08/report.csv.gz.tmp",
        "FOCUS Reports/2024/06/08/report.csv.gz",
        "FOCUS-Reports/",
    ])
    def test_rejects_non_matching_keys(self, key):
        """Test that anything outside the staged layout is rejected"""
        assert parse_file_path(key) is None

    @pytest.mark.parametrize("key,expected", [
        ("FOCUS-Reports/2024/02/30/report.csv.gz", date(2024, 3, 1)),
        ("FOCUS-Reports/2023/02/29/report.csv.gz", date(2023, 3, 1)),
        ("FOCUS-Reports/2024/13/01/report.csv.gz", date(2025, 1, 1)),
        ("FOCUS-Reports/2024/06/00/report.csv.gz", date(2024, 5, 31)),
        ("FOCUS-Reports/2024/00/15/report.csv.gz", date(2023, 12, 15)),
    ])
    def test_impossible_calendar_date_rolls_over(self, key, expected):
        """Test that a key matching the layout is kept even if its digits are not a real date"""
        parsed = parse_file_path(key)

        assert parsed is not None
        assert parsed.date == expected

    def test_rolled_over_key_keeps_written_partition_segments(self):
        parsed = parse_file_path("FOCUS-Reports/2024/02/30/report.csv.gz")
        assert build_hive_path(parsed) == "year=2024/month=02/day=30/report.csv.gz"

    def test_unrepresentable_year_is_clamped(self):
        assert parse_file_path("FOCUS-Reports/0000/01/01/a.csv.gz").date == date.min
        assert parse_file_path("FOCUS-Reports/9999/12/99/a.csv.gz").date == date.max

    def test_leap_day_is_valid(self):
        parsed = parse_file_path("FOCUS-Reports/2024/02/29/report.csv.gz")
        assert parsed.date == date(2024, 2, 29)

    def test_prefix_constant_matches_pattern(self):
        assert parse_file_path(f"{REPORTS_PREFIX}2024/06/08/a.csv.gz") is not None


class TestBuildHivePath:
    """Test build_hive_path"""

    def test_builds_partitioned_key(self):
        """Test that the partitioned key uses year=/month=/day= segments"""
        parsed = parse_file_path("FOCUS-Reports/2024/06/08/report.csv.gz")

        assert build_hive_path(parsed) == "year=2024/month=06/day=08/report.csv.gz"

    def test_keeps_zero_padding(self):
        parsed = parse_file_path("FOCUS-Reports/2025/01/02/x.csv.gz")
        assert build_hive_path(parsed) == "year=2025/month=01/day=02/x.csv.gz"

    def test_independent_of_processing_order(self):
        """Test that the same key always maps to the same destination"""
        keys = [
            "FOCUS-Reports/2024/06/08/a.csv.gz",
            "FOCUS-Reports/2023/12/31/b.csv.gz",
            "FOCUS-Reports/2024/01/01/c.csv.gz",
        ]
        forward = {k: build_hive_path(parse_file_path(k)) for k in keys}
        backward = {k: build_hive_path(parse_file_path(k)) for k in reversed(keys)}

        assert forward == backward


class TestDateWindow:
    """Test the incremental date window"""

    def test_cutoff_is_today_minus_days(self):
        assert compute_cutoff_date(7, today=date(2024, 6, 15)) == date(2024, 6, 8)

    def test_cutoff_crosses_month_boundary(self):
        assert compute_cutoff_date(3, today=date(2024, 3, 1)) == date(2024, 2, 27)

    def test_boundary_day_is_included(self):
        """Test that a report dated exactly days_to_sync ago is kept"""
        assert is_within_date_range(date(2024, 6, 8), 7, today=date(2024, 6, 15))

    def test_day_before_boundary_is_excluded(self):
        assert not is_within_date_range(date(2024, 6, 7), 7, today=date(2024, 6, 15))

    def test_future_dates_are_kept(self):
        """Test that the window has no upper bound"""
        assert is_within_date_range(date(2030, 1, 1), 7, today=date(2024, 6, 15))

    def test_zero_days_keeps_only_today_and_later(self):
        today = date(2024, 6, 15)
        assert is_within_date_range(today, 0, today=today)
        assert not is_within_date_range(date(2024, 6, 14), 0, today=today)

    @freeze_time("2024-06-15 23:30:00")
    def test_defaults_to_current_date(self):
        """Test that today is taken from the clock when not given"""
        assert compute_cutoff_date(7) == date(2024, 6, 8)
        assert is_within_date_range(date(2024, 6, 8), 7)
        assert not is_within_date_range(date(2024, 6, 7), 7)

    @freeze_time("2024-06-15 23:30:00")
    def test_current_date_respects_timezone(self):
        """Test that 'today' is evaluated in the configured timezone"""
        assert current_date("UTC") == date(2024, 6, 15)
        assert current_date("Asia/Tokyo") == date(2024, 6, 16)

    @freeze_time("2024-06-15 23:30:00", tz_offset=2)
    def test_current_date_defaults_to_local_zone(self):
        """Test that without a timezone the host's local date is used"""
        assert current_date() == date(2024, 6, 16)
        assert current_date("UTC") == date(2024, 6, 15)
