from datetime import UTC, datetime


def now_utc_naive() -> datetime:
    """Current UTC time without tzinfo, the form every timestamp column is stored in."""
    return datetime.now(UTC).replace(tzinfo=None)
