"""Natural language due-date parsing and quick date suggestions."""
import logging
import re
from datetime import date, timedelta
from typing import List, Optional

from dateutil.relativedelta import relativedelta, MO, TU, WE, TH, FR, SA, SU

from scheduling.models import DateSuggestion, ParsedDate

logger = logging.getLogger(__name__)


WEEKDAYS = {
    'monday': MO, 'mon': MO,
    'tuesday': TU, 'tue': TU,
    'wednesday': WE, 'wed': WE,
    'thursday': TH, 'thu': TH,
    'friday': FR, 'fri': FR,
    'saturday': SA, 'sat': SA,
    'sunday': SU, 'sun': SU,
}

MONTHS = {
    'jan': 1, 'january': 1,
    'feb': 2, 'february': 2,
    'mar': 3, 'march': 3,
    'apr': 4, 'april': 4,
    'may': 5,
    'jun': 6, 'june': 6,
    'jul': 7, 'july': 7,
    'aug': 8, 'august': 8,
    'sep': 9, 'september': 9,
    'oct': 10, 'october': 10,
    'nov': 11, 'november': 11,
    'dec': 12, 'december': 12,
}

NEXT_DAY_PATTERN = re.compile(r'^(?:next|this)\s+(\w+)$')
RELATIVE_PATTERN = re.compile(r'^in\s+(\d+)\s+(day|days|week|weeks|month|months)$')
MONTH_DAY_PATTERN = re.compile(r'^(\w+)\s+(\d{1,2})$')
SLASH_PATTERN = re.compile(r'^(\d{1,2})/(\d{1,2})$')
FULL_SLASH_PATTERN = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})$')


def next_weekday(reference: date, weekday) -> date:
    """
    Return the first given weekday strictly after the reference date.

    Args:
        reference: Date to start from
        weekday: dateutil weekday constant (MO, TU, ...)

    Returns:
        Date of the next occurrence, never the reference date itself
    """
    return reference + relativedelta(days=1, weekday=weekday(+1))


def format_weekday_label(value: date) -> str:
    """Format as 'Fri, Jun 13'."""
    return f"{value:%a}, {value:%b} {value.day}"


def format_full_label(value: date) -> str:
    """Format as 'Jun 13, 2025'."""
    return f"{value:%b} {value.day}, {value.year}"


def parse_natural_date(text: str, today: Optional[date] = None) -> Optional[ParsedDate]:
    """
    Convert a free-text date expression into a calendar date.

    Understands keywords (today, tomorrow, next week, next month), weekday
    names with an optional 'next'/'this' prefix, 'in N days/weeks/months',
    'jan 15', '1/15' and '1/15/2025'.

    Args:
        text: User input
        today: Reference date, defaults to the local system date

    Returns:
        ParsedDate or None if the text is not understood or not a real date
    """
    if text is None:
        return None

    text = text.strip().lower()
    if not text:
        return None

    if today is None:
        today = date.today()

    if text == 'today':
        return ParsedDate(date=today, label='Today')
    if text in ('tomorrow', 'tmrw'):
        return ParsedDate(date=today + timedelta(days=1), label='Tomorrow')
    if text == 'next week':
        return ParsedDate(date=next_weekday(today, MO), label='Next week')
    if text == 'next month':
        return ParsedDate(date=today + relativedelta(months=1), label='Next month')

    # "next friday" / "this friday" / "friday" all mean the upcoming one
    match = NEXT_DAY_PATTERN.match(text)
    day_name = match.group(1) if match else text
    if day_name in WEEKDAYS:
        resolved = next_weekday(today, WEEKDAYS[day_name])
        return ParsedDate(date=resolved, label=format_weekday_label(resolved))

    match = RELATIVE_PATTERN.match(text)
    if match:
        amount = int(match.group(1))
        unit = match.group(2)
        if unit.startswith('day'):
            resolved = today + timedelta(days=amount)
        elif unit.startswith('week'):
            resolved = today + timedelta(weeks=amount)
        else:
            resolved = today + relativedelta(months=amount)
        return ParsedDate(date=resolved, label=format_weekday_label(resolved))

    match = MONTH_DAY_PATTERN.match(text)
    if match and match.group(1) in MONTHS:
        return _upcoming_date(MONTHS[match.group(1)], int(match.group(2)), today)

    match = SLASH_PATTERN.match(text)
    if match:
        return _upcoming_date(int(match.group(1)), int(match.group(2)), today)

    match = FULL_SLASH_PATTERN.match(text)
    if match:
        resolved = _make_date(
            int(match.group(3)), int(match.group(1)), int(match.group(2))
        )
        if resolved is None:
            return None
        return ParsedDate(date=resolved, label=format_full_label(resolved))

    logger.debug(f"No date pattern matched input: {text!r}")
    return None


def _upcoming_date(month: int, day: int, today: date) -> Optional[ParsedDate]:
    """
    Resolve a month/day pair to this year, or next year if already passed.

    Args:
        month: Month number (1-12)
        day: Day of month
        today: Reference date

    Returns:
        ParsedDate or None if the pair is not a valid calendar date
    """
    resolved = _make_date(today.year, month, day)
    if resolved is None:
        return None
    if resolved < today:
        resolved = _make_date(today.year + 1, month, day)
        if resolved is None:
            return None
    return ParsedDate(date=resolved, label=format_full_label(resolved))


def _make_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        logger.debug(f"Invalid calendar date: {year}-{month}-{day}")
        return None


def skip_to_weekday(value: date) -> date:
    """Move a Saturday or Sunday forward to the following Monday."""
    if value.weekday() >= 5:
        return next_weekday(value, MO)
    return value


def get_date_suggestions(
    ignore_weekends: bool = False,
    today: Optional[date] = None
) -> List[DateSuggestion]:
    """
    Build the quick-pick menu of due dates.

    Args:
        ignore_weekends: Shift weekend dates to Monday and drop duplicates
        today: Reference date, defaults to the local system date

    Returns:
        Ordered list of DateSuggestion objects
    """
    if today is None:
        today = date.today()

    monday = next_weekday(today, MO)
    suggestions = [
        DateSuggestion(date=today, label='Today', short_label='Today'),
        DateSuggestion(
            date=today + timedelta(days=1), label='Tomorrow', short_label='Tomorrow'
        ),
        DateSuggestion(date=monday, label=f"Next {monday:%A}", short_label='Next Mon'),
        DateSuggestion(
            date=today + timedelta(weeks=1), label='In 1 week', short_label='1 week'
        ),
        DateSuggestion(
            date=today + timedelta(weeks=2), label='In 2 weeks', short_label='2 weeks'
        ),
        DateSuggestion(
            date=today + relativedelta(months=1),
            label='Next month',
            short_label='Next month'
        ),
    ]

    if not ignore_weekends:
        return suggestions

    seen = set()
    adjusted = []
    for suggestion in suggestions:
        shifted = skip_to_weekday(suggestion.date)
        if shifted in seen:
            continue
        seen.add(shifted)
        adjusted.append(
            DateSuggestion(
                date=shifted,
                label=suggestion.label,
                short_label=suggestion.short_label
            )
        )
    return adjusted
