"""
Clock helpers: aware UTC timestamps for run records, and wall-clock values
in the reporting timezone (``output.timezone``) for the last-updated stamp
and the Ads date window.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

UPDATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


@lru_cache(maxsize=None)
def _zone(tz_name: str) -> ZoneInfo:
    return ZoneInfo(tz_name)


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(tz=timezone.utc)


def format_updated_at(moment: datetime, tz_name: str = "UTC") -> str:
    """Render ``moment`` as ``yyyy-MM-dd HH:mm:ss`` wall time in ``tz_name``.

    A naive ``moment`` is read as UTC.

    Raises:
        zoneinfo.ZoneInfoNotFoundError: ``tz_name`` is not a known zone.
    """
    aware = moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)
    return aware.astimezone(_zone(tz_name)).strftime(UPDATED_AT_FORMAT)


def today_in(tz_name: str = "UTC") -> date:
    return utcnow().astimezone(_zone(tz_name)).date()
