from datetime import datetime, timedelta, timezone
import pytz

DATE_PATTERNS = {
    "ko": "%Y. %m. %d.",
    "en": "%b %d, %Y",
}

TIME_PATTERNS = {
    "ko": "%H:%M",
    "en": "%I:%M %p",
}

NUMBER_SUFFIXES = ("", "K", "M", "B")

def format_number(value: float | int | None) -> str:
    """Compact counter display (e.g. 1234 -> 1.2K)."""
    if value is None:
        return "0"

    sign = "-" if value < 0 else ""
    scaled = abs(value)
    unit = 0
    # Step up while the rounded figure would read 1000 or more (999_999 -> 1M, not 1000K)
    while round(scaled, 1) >= 1000 and unit < len(NUMBER_SUFFIXES) - 1:
        scaled /= 1000
        unit += 1
    if unit == 0 and float(scaled).is_integer():
        return f"{sign}{int(scaled)}"
    text = f"{round(scaled, 1):.1f}".rstrip("0").rstrip(".")
    return f"{sign}{text}{NUMBER_SUFFIXES[unit]}"

def _localize(dt: datetime, tz_name: str | None) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    if not tz_name:
        return dt
    return dt.astimezone(pytz.timezone(tz_name))

def format_date(dt: datetime | None, language: str = "en", tz_name: str | None = None) -> str:
    if dt is None:
        return ""
    return _localize(dt, tz_name).strftime(DATE_PATTERNS.get(language, DATE_PATTERNS["en"]))

def format_time(dt: datetime | None, language: str = "en", tz_name: str | None = None) -> str:
    if dt is None:
        return ""
    return _localize(dt, tz_name).strftime(TIME_PATTERNS.get(language, TIME_PATTERNS["en"]))

def format_countdown(delta: timedelta) -> str:
    if delta.total_seconds() <= 0:
        return "0d 0h 0m"
    hours, remainder = divmod(delta.seconds, 3600)
    minutes, _ = divmod(remainder, 60)
    return f"{delta.days}d {hours}h {minutes}m"

def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

def next_month_start(now: datetime) -> datetime:
    start = month_start(now)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)

def week_start(now: datetime) -> datetime:
    """Weeks start on Sunday."""
    days_since_sunday = (now.weekday() + 1) % 7
    start = now - timedelta(days=days_since_sunday)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)

def is_valid_timezone(tz_name: str) -> bool:
    return tz_name in pytz.all_timezones_set
