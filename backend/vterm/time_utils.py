from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Server-side 'now' in UTC (aware)."""
    return datetime.now(timezone.utc)


def iso8601(dt: datetime | None = None) -> str:
    """
    Serializes a datetime as YYYY-MM-DDTHH:MM:SS.mmmZ.
    Naive datetimes are treated as UTC; None means now.
    """
    if dt is None:
        dt = utcnow()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def iso8601_from_unix(ts: int | float) -> str:
    return iso8601(datetime.fromtimestamp(int(ts), tz=timezone.utc))


def parse_iso8601(value: str) -> datetime:
    """Parse the format produced by iso8601() back into an aware UTC datetime."""
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def unix_now() -> int:
    return int(utcnow().timestamp())


def format_tz_offset(hours_to_utc) -> str:
    """
    Build a "+HHMM" / "-HHMM" offset from a number of hours from UTC.

    The browser sends this as getTimezoneOffset() / 60 * -1, so EST is -4.
    Minutes are never represented; the result is capped at 5 characters.
    Zero is rendered as "-0000".
    """
    hours = float(hours_to_utc)
    offset = "+" if hours > 0 else "-"

    abs_hours = abs(hours)
    if abs_hours < 10:
        offset += "0"

    # fractional hours are dropped, not rounded
    offset += str(int(abs_hours))
    offset += "00"

    return offset[:5]


def offset_to_timezone(offset: str) -> timezone:
    sign = -1 if offset[0] == "-" else 1
    hours = int(offset[1:3])
    minutes = int(offset[3:5]) if len(offset) >= 5 else 0
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def local_day_window(start: str, end: str, offset: str) -> tuple[datetime, datetime]:
    """
    Return (start, end) for an inclusive range of local days.

    Both dates are YYYY-MM-DD interpreted at local midnight in the given
    offset; end is pushed to 23:59:59 of its day.
    """
    tz = offset_to_timezone(offset)
    start_dt = datetime.strptime(start, "%Y-%m-%d").replace(tzinfo=tz)
    end_dt = datetime.strptime(end, "%Y-%m-%d").replace(tzinfo=tz)
    end_dt = end_dt + timedelta(hours=23, minutes=59, seconds=59)
    return start_dt, end_dt


def previous_month_year(now: datetime | None = None) -> str:
    """"M/YYYY" for the month before now; January rolls back to 12/previous year."""
    now = now or utcnow()
    if now.month == 1:
        return f"12/{now.year - 1}"
    return f"{now.month - 1}/{now.year}"
