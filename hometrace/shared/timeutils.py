"""Conversions between stored UTC instants and calendar wall-clock times"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..config import CALENDAR_TIMEZONE


def calendar_zone(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or CALENDAR_TIMEZONE)


def to_utc_naive(value: datetime, zone: Optional[ZoneInfo] = None) -> datetime:
    """
    Normalize to naive UTC for storage.

    Aware values are converted; naive values are read as wall-clock time in ``zone``
    (or as UTC already when no zone is given).
    """
    if value.tzinfo is None:
        if zone is None:
            return value
        value = value.replace(tzinfo=zone)
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_wall_clock(value: datetime, zone: Optional[ZoneInfo] = None) -> datetime:
    """Convert a stored instant (naive UTC or aware) to naive wall-clock time in ``zone``"""
    zone = zone or calendar_zone()
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(zone).replace(tzinfo=None)


def wall_clock_now(zone: Optional[ZoneInfo] = None) -> datetime:
    return datetime.now(zone or calendar_zone()).replace(tzinfo=None)
