from datetime import datetime, timezone

def utcnow() -> datetime:
    """Naive UTC now, matching what pymongo hands back for stored dates."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

def resolve_current_date(current_date: datetime | None) -> datetime:
    """Caller supplied reporting date, or wall-clock time when omitted."""
    return to_naive_utc(current_date) if current_date is not None else utcnow()

def day_diff(start: datetime, end: datetime) -> int:
    """
    Whole days between two instants, counted the way MongoDB's $dateDiff
    does with unit "day": the number of UTC midnights crossed going from
    start to end. Negative when end precedes start.
    """
    start = to_naive_utc(start)
    end = to_naive_utc(end)
    return (end.date() - start.date()).days
