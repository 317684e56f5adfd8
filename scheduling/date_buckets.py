"""Relative due-date buckets for board and list views."""
import logging
import re
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, TypeVar

from scheduling.models import DateBucket

logger = logging.getLogger(__name__)

T = TypeVar('T')

ISO_DATE_PATTERN = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}')

BUCKET_IDS = ('overdue', 'today', 'tomorrow', 'this-week', 'next-week', 'later', 'no-date')

BUCKET_COLORS = {
    'overdue': '#ef4444',
    'today': '#3b82f6',
    'tomorrow': '#8b5cf6',
    'this-week': '#10b981',
    'next-week': '#f59e0b',
    'later': '#6b7280',
    'no-date': '#9ca3af',
}


def parse_iso_date(value) -> Optional[date]:
    """
    Parse a strict YYYY-MM-DD string.

    Args:
        value: Candidate date string

    Returns:
        The date, or None if the value is not a real calendar date in that form
    """
    if not isinstance(value, str) or not ISO_DATE_PATTERN.fullmatch(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def get_date_bucket_definitions(today: Optional[date] = None) -> List[DateBucket]:
    """
    Get the bucket definitions in display order.

    The today and tomorrow labels include their short date, e.g.
    'Today — Jun 10'.
    """
    today = today or date.today()
    tomorrow = today + timedelta(days=1)

    labels = {
        'overdue': 'Overdue',
        'today': f"Today — {today:%b} {today.day}",
        'tomorrow': f"Tomorrow — {tomorrow:%b} {tomorrow.day}",
        'this-week': 'This Week',
        'next-week': 'Next Week',
        'later': 'Later',
        'no-date': 'No Date',
    }
    return [
        DateBucket(id=bucket_id, label=labels[bucket_id], color=BUCKET_COLORS[bucket_id])
        for bucket_id in BUCKET_IDS
    ]


def get_date_bucket_id(due_date: Optional[str], today: Optional[date] = None) -> str:
    """
    Assign a due date to a bucket.

    Weeks start on Monday. Dates are compared as ISO strings.

    Args:
        due_date: Due date as YYYY-MM-DD, or None
        today: Reference date, defaults to the local system date

    Returns:
        Bucket id
    """
    if not due_date:
        return 'no-date'

    if parse_iso_date(due_date) is None:
        logger.warning(f"Malformed due date {due_date!r}, placing in no-date bucket")
        return 'no-date'

    today = today or date.today()
    today_str = today.isoformat()
    tomorrow_str = (today + timedelta(days=1)).isoformat()
    week_end = today + timedelta(days=6 - today.weekday())
    week_end_str = week_end.isoformat()
    next_week_end_str = (week_end + timedelta(weeks=1)).isoformat()

    if due_date < today_str:
        return 'overdue'
    if due_date == today_str:
        return 'today'
    if due_date == tomorrow_str:
        return 'tomorrow'
    if due_date <= week_end_str:
        return 'this-week'
    if due_date <= next_week_end_str:
        return 'next-week'
    return 'later'


def group_by_date_bucket(
    items: Iterable[T],
    today: Optional[date] = None
) -> Dict[str, List[T]]:
    """
    Group items by date bucket.

    Every bucket id is present in the result, even when empty. Within a
    bucket, items are ordered by due date and then position; ties keep
    their input order.

    Args:
        items: Objects with due_date and position attributes
        today: Reference date, defaults to the local system date

    Returns:
        Dictionary mapping bucket id to its items
    """
    today = today or date.today()
    grouped: Dict[str, List[T]] = {bucket_id: [] for bucket_id in BUCKET_IDS}

    for item in items:
        grouped[get_date_bucket_id(item.due_date, today)].append(item)

    for bucket_id, bucket_items in grouped.items():
        bucket_items.sort(key=lambda item: (item.due_date or '', item.position))

    return grouped
