"""Organisation-local calendar dates."""
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import tz

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = 'America/New_York'


def org_today(timezone: Optional[str] = None, now: Optional[datetime] = None) -> date:
    """
    Get today's date in the organisation's timezone.

    Args:
        timezone: IANA timezone name, defaults to America/New_York
        now: Aware datetime to convert instead of the current time

    Returns:
        Calendar date in that timezone
    """
    zone = tz.gettz(timezone or DEFAULT_TIMEZONE)
    if zone is None:
        logger.warning(
            f"Unknown timezone '{timezone}', falling back to {DEFAULT_TIMEZONE}"
        )
        zone = tz.gettz(DEFAULT_TIMEZONE)

    now = now or datetime.now(tz.UTC)
    return now.astimezone(zone).date()


def org_tomorrow(timezone: Optional[str] = None, now: Optional[datetime] = None) -> date:
    return org_today(timezone, now) + timedelta(days=1)
