"""
Timestamp helpers.

Snapshots store second-precision UTC timestamps with a ``Z`` suffix,
e.g. ``2026-02-26T08:30:00Z``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from ..constants import TIMESTAMP_FORMAT


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds."""
    return datetime.now(tz=timezone.utc).replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    """Render a datetime in snapshot form (UTC, ``Z`` suffix)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """
    Parse a snapshot timestamp.

    Accepts the ``Z`` suffix and full ISO-8601 offsets. YAML loaders may
    already hand back a datetime; those are normalized to UTC. Naive
    values are taken as UTC.

    Raises:
        ValueError: If the string is not a valid ISO-8601 timestamp.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
