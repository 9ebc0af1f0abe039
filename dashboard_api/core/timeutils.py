"""Naive-UTC timestamps, the storage convention for every datetime column."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def from_timestamp(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)


def to_timestamp(dt: datetime) -> int:
    return int(to_naive_utc(dt).replace(tzinfo=timezone.utc).timestamp())
