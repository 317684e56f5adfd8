"""Validator for recurring task configurations."""
import logging
from decimal import Decimal
from typing import Any, List, Optional

from scheduling.date_buckets import parse_iso_date
from scheduling.models import (
    FREQUENCIES,
    MONTHLY_PATTERNS,
    WEEK_OF_MONTH_VALUES,
    RecurrenceValidation,
    RecurringConfig,
)

logger = logging.getLogger(__name__)

# Violation codes reported by RecurrenceValidator
DAYS_OF_WEEK_REQUIRED = 'daysOfWeek.required'
WEEK_OF_MONTH_REQUIRED = 'weekOfMonth.required'
END_CONDITION_CONFLICT = 'endDate.conflict'

_MISSING = object()


class RecurrenceValidator:
    """Validator for raw recurrence configurations."""

    MAX_INTERVAL = 99
    MAX_OCCURRENCES = 999

    def validate(self, raw: Any) -> RecurrenceValidation:
        """
        Validate a raw recurrence configuration.

        Structural problems are reported first, in field order, followed by
        the cross-field rules: weekly schedules need days of week, the
        day-of-week monthly pattern needs both its fields, and an end date
        cannot be combined with an occurrence limit.

        Args:
            raw: Mapping with camelCase keys, as stored with a task

        Returns:
            RecurrenceValidation holding the config, or the violation codes
        """
        if not isinstance(raw, dict):
            logger.warning(
                f"Recurring config must be a mapping, got {type(raw).__name__}"
            )
            return RecurrenceValidation(config=None, violations=['config.invalid'])

        violations: List[str] = []

        frequency = raw.get('frequency', _MISSING)
        if frequency not in FREQUENCIES:
            violations.append('frequency.invalid')

        interval = self._integer_field(
            raw, 'interval', 1, self.MAX_INTERVAL, violations, required=True
        )

        days_of_week = None
        raw_days = raw.get('daysOfWeek')
        if raw_days is not None:
            days_of_week = self._days_of_week(raw_days, violations)

        day_of_month = self._integer_field(raw, 'dayOfMonth', 1, 31, violations)

        monthly_pattern = raw.get('monthlyPattern')
        if monthly_pattern is not None and monthly_pattern not in MONTHLY_PATTERNS:
            violations.append('monthlyPattern.invalid')

        week_of_month = self._integer_field(raw, 'weekOfMonth', -1, 4, violations)
        if week_of_month is not None and week_of_month not in WEEK_OF_MONTH_VALUES:
            violations.append('weekOfMonth.invalid')
            week_of_month = None

        monthly_day_of_week = self._integer_field(
            raw, 'monthlyDayOfWeek', 0, 6, violations
        )

        end_date = raw.get('endDate')
        if end_date is not None and parse_iso_date(end_date) is None:
            violations.append('endDate.invalid')

        end_after_occurrences = self._integer_field(
            raw, 'endAfterOccurrences', 1, self.MAX_OCCURRENCES, violations
        )

        if frequency in ('weekly', 'biweekly') and not raw_days:
            violations.append(DAYS_OF_WEEK_REQUIRED)

        if monthly_pattern == 'dayOfWeek' and (
            raw.get('weekOfMonth') is None or raw.get('monthlyDayOfWeek') is None
        ):
            violations.append(WEEK_OF_MONTH_REQUIRED)

        if end_date and raw.get('endAfterOccurrences'):
            violations.append(END_CONDITION_CONFLICT)

        if violations:
            logger.warning(f"Invalid recurring config {raw}: {', '.join(violations)}")
            return RecurrenceValidation(config=None, violations=violations)

        config = RecurringConfig(
            frequency=frequency,
            interval=interval,
            days_of_week=days_of_week,
            day_of_month=day_of_month,
            monthly_pattern=monthly_pattern,
            week_of_month=week_of_month,
            monthly_day_of_week=monthly_day_of_week,
            end_date=end_date,
            end_after_occurrences=end_after_occurrences
        )
        return RecurrenceValidation(config=config)

    def _integer_field(
        self,
        raw: dict,
        key: str,
        minimum: int,
        maximum: int,
        violations: List[str],
        required: bool = False
    ) -> Optional[int]:
        """
        Read an optional integer field and check its range.

        Args:
            raw: Raw configuration
            key: Field name
            minimum: Smallest accepted value
            maximum: Largest accepted value
            violations: List collecting violation codes
            required: Whether absence is a violation

        Returns:
            The integer value, or None if absent or invalid
        """
        value = raw.get(key)
        if value is None:
            if required:
                violations.append(f"{key}.required")
            return None

        number = _as_int(value)
        if number is None:
            violations.append(f"{key}.invalid")
            return None

        if number < minimum or number > maximum:
            violations.append(f"{key}.out_of_range")
            return None

        return number

    def _days_of_week(self, raw_days: Any, violations: List[str]):
        if not isinstance(raw_days, (list, tuple)):
            violations.append('daysOfWeek.invalid')
            return None

        days = []
        for value in raw_days:
            day = _as_int(value)
            if day is None or day < 0 or day > 6:
                violations.append('daysOfWeek.invalid')
                return None
            days.append(day)
        return tuple(days)


def _as_int(value: Any) -> Optional[int]:
    """
    Coerce integral numbers to int.

    DynamoDB returns numbers as Decimal and JSON may carry 3.0, both are
    accepted when integral. Booleans and strings are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        if value != value or value in (float('inf'), float('-inf')):
            return None
        if value == int(value):
            return int(value)
    return None


def validate_recurring_config(raw: Any) -> Optional[RecurringConfig]:
    """
    Validate a raw recurrence configuration.

    Args:
        raw: Mapping with camelCase keys

    Returns:
        RecurringConfig, or None when any rule is violated
    """
    return RecurrenceValidator().validate(raw).config
