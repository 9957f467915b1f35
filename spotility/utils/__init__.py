"""
Utility functions for spotility.

This module provides common helpers used across the application:
    - Timestamp parsing/formatting in the format Spotify uses
    - Batching helper for API endpoints with per-request limits
    - Path helpers

Usage:
    from spotility.utils import parse_timestamp, format_timestamp, chunked
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Sequence, TypeVar


T = TypeVar("T")


def utc_now() -> datetime:
    """Current time in UTC, truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Spotify returns timestamps like "2024-01-15T10:30:00Z". The trailing
    "Z" is rewritten because datetime.fromisoformat() only accepts it
    from Python 3.11 on. Naive values are taken as UTC.

    Args:
        value: Timestamp string.

    Returns:
        Timezone-aware datetime in UTC.

    Raises:
        ValueError: If the string is not a valid ISO-8601 timestamp.
        TypeError: If value is not a string.
    """
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, got {type(value).__name__}")

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """
    Format a datetime as "YYYY-MM-DDTHH:MM:SSZ" in UTC.

    Sub-second precision is dropped so that a value survives a
    format/parse round trip unchanged.

    Examples:
        format_timestamp(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))
        # "2024-01-15T10:30:00Z"
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """
    Split a sequence into consecutive lists of at most size items.

    Examples:
        list(chunked([1, 2, 3], 2))  # [[1, 2], [3]]
    """
    if size < 1:
        raise ValueError("size must be a positive integer")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def ensure_directory(path: Path) -> Path:
    """
    Create a directory (and parents) if it doesn't exist.

    Returns:
        The same path, for chaining.
    """
    path.mkdir(parents=True, exist_ok=True)
    return path
