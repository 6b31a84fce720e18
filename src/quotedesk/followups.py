from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo

FOLLOW_UP_DAYS = (1, 3, 7)


@dataclass(frozen=True)
class FollowUp:
    label: str
    date: datetime


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    dt = value if isinstance(value, datetime) else datetime.fromisoformat(value.strip())
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def follow_ups(created_at: str | datetime, tz: tzinfo | None = None) -> list[FollowUp]:
    # aware datetime + timedelta(days=n) keeps the wall-clock time, so with a
    # ZoneInfo zone a DST change does not move the reminder off its day
    created = parse_timestamp(created_at)
    if tz is not None:
        created = created.astimezone(tz)
    return [FollowUp(label=f"Day {n} follow-up", date=created + timedelta(days=n)) for n in FOLLOW_UP_DAYS]
