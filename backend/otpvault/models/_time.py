from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp; all DateTime columns are stored naive-UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive-UTC column value for serialization."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
