from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tzinfo, so both backends store naive values."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
