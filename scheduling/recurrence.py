"""Next-occurrence computation and descriptions for recurring tasks."""
import calendar
import logging
from datetime import date, timedelta
from typing import Optional, Sequence

from dateutil.relativedelta import relativedelta

from scheduling.models import RecurringConfig

logger = logging.getLogger(__name__)


DAY_NAMES = [
    'Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday'
]
SHORT_DAY_NAMES = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']

FREQUENCY_LABELS = {
    'daily': 'Daily',
    'weekly': 'Weekly',
    'biweekly': 'Biweekly',
    'monthly': 'Monthly',
    'quarterly': 'Quarterly',
    'yearly': 'Yearly',
}

# Upper bound on catch-up steps for long overdue series. Day and week based
# series skip whole periods first; the rest advance a month or more per step.
MAX_CATCH_UP_STEPS = 10000


def day_of_week(value: date) -> int:
    """Day of week with 0 = Sunday, as used by recurrence configs."""
    return (value.weekday() + 1) % 7


def calculate_next_occurrence(
    config: RecurringConfig,
    current_due_date: str,
    completion_date: Optional[date] = None
) -> Optional[str]:
    """
    Calculate the next due date of a recurring series.

    If the task was completed late, the series is advanced until the next
    date falls after the completion date.

    Args:
        config: Validated recurrence configuration
        current_due_date: Due date of the completed instance (YYYY-MM-DD)
        completion_date: Day the task was completed, defaults to today

    Returns:
        Next due date as YYYY-MM-DD, or None if the series has ended
    """
    current = date.fromisoformat(current_due_date)
    today = completion_date or date.today()

    end_date = date.fromisoformat(config.end_date) if config.end_date else None
    if end_date and today > end_date:
        logger.info(f"Recurring series ended on {config.end_date}")
        return None

    next_date = advance_by_interval(current, config)

    period = _repeat_period_days(config)
    if period and next_date <= today:
        next_date += timedelta(days=(today - next_date).days // period * period)

    steps = 0
    while next_date <= today:
        next_date = advance_by_interval(next_date, config)
        steps += 1
        if steps > MAX_CATCH_UP_STEPS:
            raise RuntimeError(
                f"Could not advance recurring series past {today.isoformat()}"
            )

    if end_date and next_date > end_date:
        logger.info(
            f"Next occurrence {next_date.isoformat()} is after end date "
            f"{config.end_date}"
        )
        return None

    return next_date.isoformat()


def _repeat_period_days(config: RecurringConfig) -> Optional[int]:
    """Length in days after which a day or week based schedule repeats."""
    if config.frequency == 'daily':
        return config.interval
    if config.frequency == 'weekly':
        return 7 * config.interval
    if config.frequency == 'biweekly':
        return 14 * config.interval
    return None


def advance_by_interval(current: date, config: RecurringConfig) -> date:
    """
    Advance a date by one step of the recurrence.

    Args:
        current: Date of the current occurrence
        config: Validated recurrence configuration

    Returns:
        Date of the following occurrence
    """
    frequency = config.frequency
    if frequency == 'daily':
        return current + timedelta(days=config.interval)
    if frequency == 'weekly':
        return next_weekly_occurrence(
            current, config.days_of_week or (), config.interval
        )
    if frequency == 'biweekly':
        return next_weekly_occurrence(
            current, config.days_of_week or (), config.interval * 2
        )
    if frequency == 'monthly':
        return next_monthly_occurrence(current, config, config.interval)
    if frequency == 'quarterly':
        return next_monthly_occurrence(current, config, config.interval * 3)
    if frequency == 'yearly':
        return current + relativedelta(years=config.interval)
    return current + timedelta(days=1)


def next_weekly_occurrence(
    current: date,
    days_of_week: Sequence[int],
    week_interval: int
) -> date:
    """
    Find the next selected weekday.

    Later days in the current week come first; otherwise the series jumps
    week_interval weeks ahead to the first selected day.
    """
    if not days_of_week:
        return current + timedelta(weeks=week_interval)

    selected = sorted(days_of_week)
    current_day = day_of_week(current)

    for day in selected:
        if day > current_day:
            return current + timedelta(days=day - current_day)

    days_until_week_end = 7 - current_day
    return current + timedelta(
        days=days_until_week_end + (week_interval - 1) * 7 + selected[0]
    )


def next_monthly_occurrence(
    current: date,
    config: RecurringConfig,
    month_interval: int
) -> date:
    """
    Move month_interval months ahead on the configured day.

    Args:
        current: Date of the current occurrence
        config: Validated recurrence configuration
        month_interval: Number of months to move

    Returns:
        Nth weekday of the target month for the day-of-week pattern, or the
        configured day of month, clamped to the month's last day
    """
    target_month = current + relativedelta(months=month_interval)

    if config.uses_day_of_week_pattern():
        return get_nth_weekday_of_month(
            target_month.year,
            target_month.month,
            config.week_of_month,
            config.monthly_day_of_week
        )

    target_day = config.day_of_month or current.day
    last_day = calendar.monthrange(target_month.year, target_month.month)[1]
    return target_month.replace(day=min(target_day, last_day))


def get_nth_weekday_of_month(
    year: int,
    month: int,
    week_of_month: int,
    weekday: int
) -> date:
    """
    Calculate the nth weekday of a month.

    Args:
        year: Full year
        month: Month number (1-12)
        week_of_month: 1-4 for the nth occurrence, -1 for the last one
        weekday: 0-6 (Sunday-Saturday)

    Returns:
        Date of the requested weekday
    """
    if week_of_month == -1:
        last_day = calendar.monthrange(year, month)[1]
        result = date(year, month, last_day)
        while day_of_week(result) != weekday:
            result -= timedelta(days=1)
        return result

    result = date(year, month, 1)
    while day_of_week(result) != weekday:
        result += timedelta(days=1)
    return result + timedelta(weeks=week_of_month - 1)


def should_generate_next_occurrence(
    config: RecurringConfig,
    occurrence_count: int,
    today: Optional[date] = None
) -> bool:
    """
    Check whether a recurring series should produce another occurrence.

    Args:
        config: Validated recurrence configuration
        occurrence_count: Number of tasks already created in the series
        today: Reference date, defaults to the local system date

    Returns:
        False once the occurrence limit is reached or the end date passed
    """
    if config.end_after_occurrences and occurrence_count >= config.end_after_occurrences:
        return False

    if config.end_date:
        today = today or date.today()
        if today > date.fromisoformat(config.end_date):
            return False

    return True


def get_recurrence_description(config: RecurringConfig) -> str:
    """
    Describe the recurrence pattern in words.

    Examples: 'Every day', 'Weekly on Mon, Wed', 'Monthly on the last
    Tuesday', 'Every 2 years until Jan 1, 2030'.
    """
    frequency = config.frequency
    interval = config.interval
    days = None
    if config.days_of_week:
        days = ', '.join(SHORT_DAY_NAMES[day] for day in config.days_of_week)

    if frequency == 'daily':
        description = 'Every day' if interval == 1 else f"Every {interval} days"
    elif frequency == 'weekly':
        if days:
            description = (
                f"Weekly on {days}" if interval == 1
                else f"Every {interval} weeks on {days}"
            )
        else:
            description = 'Weekly' if interval == 1 else f"Every {interval} weeks"
    elif frequency == 'biweekly':
        description = f"Every 2 weeks on {days}" if days else 'Every 2 weeks'
    elif frequency in ('monthly', 'quarterly'):
        if frequency == 'monthly':
            single, unit = 'Monthly', 'months'
        else:
            single, unit = 'Quarterly', 'quarters'
        pattern = _monthly_description(config)
        if pattern:
            description = (
                f"{single} on the {pattern}" if interval == 1
                else f"Every {interval} {unit} on the {pattern}"
            )
        else:
            description = single if interval == 1 else f"Every {interval} {unit}"
    elif frequency == 'yearly':
        description = 'Yearly' if interval == 1 else f"Every {interval} years"
    else:
        description = ''

    if config.end_date:
        end = date.fromisoformat(config.end_date)
        description += f" until {end:%b} {end.day}, {end.year}"
    elif config.end_after_occurrences:
        description += f", {config.end_after_occurrences} times"

    return description


def get_recurring_label(config: RecurringConfig) -> str:
    """Short label for task badges, e.g. 'Every 3 days' or 'Monthly on last Fri'."""
    label = FREQUENCY_LABELS.get(config.frequency, '')

    units = {'daily': 'days', 'weekly': 'weeks', 'monthly': 'months', 'yearly': 'years'}
    if config.interval > 1 and config.frequency in units:
        label = f"Every {config.interval} {units[config.frequency]}"

    if config.frequency in ('monthly', 'quarterly') and config.uses_day_of_week_pattern():
        week = week_of_month_label(config.week_of_month)
        label += f" on {week} {SHORT_DAY_NAMES[config.monthly_day_of_week]}"

    return label


def _monthly_description(config: RecurringConfig) -> Optional[str]:
    if config.uses_day_of_week_pattern():
        week = week_of_month_label(config.week_of_month)
        return f"{week} {DAY_NAMES[config.monthly_day_of_week]}"
    if config.day_of_month:
        return ordinal(config.day_of_month)
    return None


def week_of_month_label(week_of_month: int) -> str:
    if week_of_month == -1:
        return 'last'
    return ordinal(week_of_month)


def ordinal(number: int) -> str:
    """1 -> '1st', 12 -> '12th', 22 -> '22nd'."""
    if 10 <= number % 100 <= 20:
        suffix = 'th'
    else:
        suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(number % 10, 'th')
    return f"{number}{suffix}"
