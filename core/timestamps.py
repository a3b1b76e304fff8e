from core.imports import datetime, timezone


def utcnow():
    """Naive UTC timestamp, the form the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
