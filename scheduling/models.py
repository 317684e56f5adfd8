"""Data models for date parsing, recurrence and task scheduling."""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple


FREQUENCIES = ('daily', 'weekly', 'biweekly', 'monthly', 'quarterly', 'yearly')
MONTHLY_PATTERNS = ('dayOfMonth', 'dayOfWeek')
WEEK_OF_MONTH_VALUES = (1, 2, 3, 4, -1)


@dataclass(frozen=True)
class ParsedDate:
    """Date resolved from free text, with a display label."""
    date: date
    label: str


@dataclass(frozen=True)
class DateSuggestion:
    """Entry of the quick due-date menu."""
    date: date
    label: str
    short_label: str


@dataclass(frozen=True)
class DateBucket:
    """Relative due-date category used to group tasks."""
    id: str
    label: str
    color: str


@dataclass(frozen=True)
class RecurringConfig:
    """Validated recurrence rule of a recurring task."""
    frequency: str
    interval: int
    days_of_week: Optional[Tuple[int, ...]] = None
    day_of_month: Optional[int] = None
    monthly_pattern: Optional[str] = None
    week_of_month: Optional[int] = None
    monthly_day_of_week: Optional[int] = None
    end_date: Optional[str] = None
    end_after_occurrences: Optional[int] = None

    def uses_day_of_week_pattern(self) -> bool:
        return (
            self.monthly_pattern == 'dayOfWeek'
            and self.week_of_month is not None
            and self.monthly_day_of_week is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the camelCase form stored alongside tasks.

        Absent optional fields are omitted.
        """
        data = {
            'frequency': self.frequency,
            'interval': self.interval,
            'daysOfWeek': list(self.days_of_week) if self.days_of_week is not None else None,
            'dayOfMonth': self.day_of_month,
            'monthlyPattern': self.monthly_pattern,
            'weekOfMonth': self.week_of_month,
            'monthlyDayOfWeek': self.monthly_day_of_week,
            'endDate': self.end_date,
            'endAfterOccurrences': self.end_after_occurrences,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class RecurrenceValidation:
    """Result of validating a raw recurrence configuration."""
    config: Optional[RecurringConfig]
    violations: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.violations


@dataclass
class Task:
    """Task row as persisted in the task table."""
    task_id: str
    board_id: str
    short_id: str
    title: str
    description: str = ''
    status: str = 'todo'
    section: Optional[str] = None
    due_date: Optional[str] = None
    date_flexibility: str = 'not_set'
    position: int = 0
    recurring_config: Optional[Dict[str, Any]] = None
    recurring_group_id: Optional[str] = None
    parent_task_id: Optional[str] = None
    assignee_ids: List[str] = field(default_factory=list)
    created_by: Optional[str] = None


@dataclass
class RecurringCompletion:
    """Payload sent when a recurring task is marked complete."""
    task_id: str
    board_id: str
    recurring_group_id: str
    recurring_config: Dict[str, Any]
    completed_due_date: str
    title: str
    description: str = ''
    section: Optional[str] = None
    date_flexibility: str = 'not_set'
    assignee_ids: List[str] = field(default_factory=list)
    completed_by_user_id: Optional[str] = None


@dataclass
class GenerationResult:
    """Outcome of generating the next instance of a recurring task."""
    skipped: bool
    reason: Optional[str] = None
    new_task_id: Optional[str] = None
    next_due_date: Optional[str] = None
    recurring_group_id: Optional[str] = None
    cloned_subtask_count: int = 0
