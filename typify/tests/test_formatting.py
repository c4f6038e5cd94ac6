from datetime import datetime, timedelta, timezone

from typify.utils.formatting import (
    format_number, format_date, format_time, format_countdown,
    month_start, next_month_start, week_start, is_valid_timezone,
)

def test_format_number_compacts_large_values():
    assert format_number(1234) == "1.2K"
    assert format_number(2500000) == "2.5M"
    assert format_number(1000) == "1K"
    assert format_number(999) == "999"
    assert format_number(None) == "0"

def test_format_number_carries_into_next_unit():
    assert format_number(999_999) == "1M"
    assert format_number(999_950) == "1M"
    assert format_number(999_949) == "999.9K"
    assert format_number(999_999_999) == "1B"
    assert format_number(999.96) == "1K"
    assert format_number(-1500) == "-1.5K"
    assert format_number(12.34) == "12.3"
    assert format_number(2_500_000_000_000) == "2500B"

def test_format_date_uses_language_pattern_and_timezone():
    dt = datetime(2026, 3, 1, 20, 30, tzinfo=timezone.utc)
    # 20:30 UTC is already the next day in Seoul
    assert format_date(dt, "ko", "Asia/Seoul") == "2026. 03. 02."
    assert format_date(dt, "en", "UTC") == "Mar 01, 2026"
    assert format_time(dt, "ko", "Asia/Seoul") == "05:30"
    assert format_time(dt, "en", "UTC") == "08:30 PM"
    assert format_date(None) == ""

def test_format_countdown():
    assert format_countdown(timedelta(days=2, hours=3, minutes=4, seconds=59)) == "2d 3h 4m"
    assert format_countdown(timedelta(0)) == "0d 0h 0m"
    assert format_countdown(timedelta(minutes=-5)) == "0d 0h 0m"

def test_month_boundaries():
    now = datetime(2026, 12, 15, 10, 0, tzinfo=timezone.utc)
    assert month_start(now) == datetime(2026, 12, 1, tzinfo=timezone.utc)
    assert next_month_start(now) == datetime(2027, 1, 1, tzinfo=timezone.utc)
    assert next_month_start(datetime(2026, 2, 28, tzinfo=timezone.utc)) == datetime(2026, 3, 1, tzinfo=timezone.utc)

def test_week_starts_on_sunday():
    # 2026-10-21 is a Wednesday
    wednesday = datetime(2026, 10, 21, 15, 0, tzinfo=timezone.utc)
    assert week_start(wednesday) == datetime(2026, 10, 18, tzinfo=timezone.utc)
    sunday = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)
    assert week_start(sunday) == datetime(2026, 10, 18, tzinfo=timezone.utc)

def test_is_valid_timezone():
    assert is_valid_timezone("Asia/Seoul")
    assert not is_valid_timezone("Mars/Olympus")
