from datetime import date, datetime, timedelta, timezone


def dt_to_iso(dt: datetime) -> str:
    """
    Convert a datetime to canonical DynamoDB-friendly ISO8601.
    Always returns a UTC Z-suffixed string.
    """
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def iso_to_dt(d: str) -> datetime:
    """
    Convert an ISO8601 string (Z-suffixed or offset) to an aware datetime.
    """
    return datetime.fromisoformat(d.replace("Z", "+00:00"))


def now() -> datetime:
    return datetime.now(timezone.utc)


def days_from_now(days: int) -> datetime:
    return now() + timedelta(days=days)


def to_epoch(dt: datetime) -> int:
    """Whole seconds since the epoch, as DynamoDB TTL expects."""
    return int(dt.timestamp())


def month_period(day: date) -> tuple[date, date]:
    """
    Usage period containing `day`: the first of its month and the first of
    the following month (exclusive end).
    """
    start = day.replace(day=1)
    if start.month == 12:
        return start, start.replace(year=start.year + 1, month=1)
    return start, start.replace(month=start.month + 1)
