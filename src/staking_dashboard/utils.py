"""Shared utilities for the staking dashboard."""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Naive UTC now; all stored timestamps are naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_timestamp(ts: float | None) -> datetime:
    """Convert optional Unix timestamp (seconds) to naive UTC datetime; fallback to now."""
    if ts is None:
        return utcnow()
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


def floor_to_interval(moment: datetime, interval_seconds: int) -> datetime:
    """Truncate a timestamp down to the start of its interval bucket."""
    epoch = datetime(1970, 1, 1)
    elapsed = int((moment - epoch).total_seconds())
    return epoch + timedelta(seconds=elapsed - elapsed % interval_seconds)
