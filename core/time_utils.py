from datetime import datetime, timezone


def now_utc() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def epoch_millis() -> int:
    """Milliseconds since the epoch, used to build image file names."""
    return int(now_utc().timestamp() * 1000)


def isoformat(dt: datetime | None) -> str | None:
    """Serialize a datetime for JSON snapshots; SQLite returns naive UTC values."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()
