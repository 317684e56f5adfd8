"""Generator for the next instance of a completed recurring task."""
import logging
import secrets
import uuid
from datetime import date
from typing import List, Optional

from scheduling.models import GenerationResult, RecurringCompletion, Task
from scheduling.recurrence import (
    calculate_next_occurrence,
    should_generate_next_occurrence,
)
from scheduling.recurrence_validator import RecurrenceValidator

logger = logging.getLogger(__name__)


def generate_short_id() -> str:
    """Generate an 8 character url-safe id shown in task links."""
    return secrets.token_urlsafe(6)


class RecurringTaskGenerator:
    """Creates the next task of a recurring series when one is completed."""

    def __init__(self, store, default_status: str = 'todo'):
        """
        Initialize the generator.

        Args:
            store: TaskStore used to read and write tasks
            default_status: Status given to newly created tasks
        """
        self.store = store
        self.default_status = default_status
        self.validator = RecurrenceValidator()

    def generate_next(
        self,
        completion: RecurringCompletion,
        today: Optional[date] = None
    ) -> GenerationResult:
        """
        Create the next instance of a recurring task and clone its subtasks.

        Args:
            completion: Payload of the completed recurring task
            today: Completion date, defaults to the local system date

        Returns:
            GenerationResult describing the created task or why it was skipped

        Raises:
            RuntimeError: If the store did not write every task of the occurrence
        """
        today = today or date.today()
        group_id = completion.recurring_group_id

        validation = self.validator.validate(completion.recurring_config)
        if not validation.is_valid:
            logger.warning(
                f"Skipping recurring group {group_id}: invalid config "
                f"({', '.join(validation.violations)})"
            )
            return GenerationResult(
                skipped=True,
                reason=f"Invalid recurring config: {', '.join(validation.violations)}",
                recurring_group_id=group_id
            )
        config = validation.config

        existing_count = self.store.count_group_occurrences(group_id)
        if not should_generate_next_occurrence(config, existing_count, today):
            logger.info(f"Recurring group {group_id} has ended")
            return GenerationResult(
                skipped=True,
                reason='Recurring series has ended (occurrence limit reached)',
                recurring_group_id=group_id
            )

        next_due_date = calculate_next_occurrence(
            config, completion.completed_due_date, today
        )
        if not next_due_date:
            logger.info(f"No next occurrence for recurring group {group_id}")
            return GenerationResult(
                skipped=True,
                reason='No next occurrence (end date passed)',
                recurring_group_id=group_id
            )

        new_task = Task(
            task_id=str(uuid.uuid4()),
            board_id=completion.board_id,
            short_id=generate_short_id(),
            title=completion.title,
            description=completion.description,
            status=self.default_status,
            section=completion.section,
            due_date=next_due_date,
            date_flexibility=completion.date_flexibility,
            position=self.store.next_position(completion.board_id),
            recurring_config=config.to_dict(),
            recurring_group_id=group_id,
            assignee_ids=list(completion.assignee_ids),
            created_by=completion.completed_by_user_id
        )

        subtasks = self.store.get_subtasks(completion.task_id)
        clones = self._clone_subtasks(
            subtasks, new_task, completion.completed_due_date, next_due_date
        )

        expected = 1 + len(clones)
        written = self.store.batch_write_tasks([new_task] + clones)
        if written != expected:
            logger.error(
                f"Only wrote {written} of {expected} tasks for recurring group {group_id}"
            )
            raise RuntimeError(
                f"Failed to write next occurrence for recurring group {group_id}: "
                f"{written} of {expected} tasks written"
            )

        logger.info(
            f"Created task {new_task.task_id} due {next_due_date} with "
            f"{len(clones)} subtasks for recurring group {group_id}"
        )
        return GenerationResult(
            skipped=False,
            new_task_id=new_task.task_id,
            next_due_date=next_due_date,
            recurring_group_id=group_id,
            cloned_subtask_count=len(clones)
        )

    def _clone_subtasks(
        self,
        subtasks: List[Task],
        parent: Task,
        previous_due_date: str,
        next_due_date: str
    ) -> List[Task]:
        """
        Copy subtasks under the new parent.

        Dated subtasks keep their offset from the parent's due date.
        """
        offset = date.fromisoformat(next_due_date) - date.fromisoformat(previous_due_date)

        clones = []
        for subtask in subtasks:
            due_date = None
            if subtask.due_date:
                due_date = (date.fromisoformat(subtask.due_date) + offset).isoformat()

            clones.append(
                Task(
                    task_id=str(uuid.uuid4()),
                    board_id=parent.board_id,
                    short_id=generate_short_id(),
                    title=subtask.title,
                    description=subtask.description,
                    status=self.default_status,
                    section=subtask.section,
                    due_date=due_date,
                    date_flexibility=subtask.date_flexibility,
                    position=subtask.position,
                    parent_task_id=parent.task_id,
                    assignee_ids=list(subtask.assignee_ids),
                    created_by=parent.created_by
                )
            )
        return clones
