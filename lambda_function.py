"""AWS Lambda handler for generating the next instance of recurring tasks."""
import json
import logging
import os
import time
from typing import Dict, Any

from scheduling.clock import org_today
from scheduling.date_buckets import parse_iso_date
from scheduling.models import RecurringCompletion
from scheduling.task_generator import RecurringTaskGenerator
from storage.task_store import TaskStore


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def parse_completion(detail: Dict[str, Any]) -> RecurringCompletion:
    """
    Build a RecurringCompletion from the camelCase event detail.

    Args:
        detail: 'detail' section of a task/recurring.completed event

    Returns:
        RecurringCompletion

    Raises:
        ValueError: If a required field is missing or the due date is malformed
    """
    required = (
        'taskId', 'boardId', 'recurringGroupId', 'recurringConfig',
        'completedDueDate', 'title'
    )
    missing = [key for key in required if not detail.get(key)]
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}")

    if parse_iso_date(detail['completedDueDate']) is None:
        raise ValueError(
            f"completedDueDate must be YYYY-MM-DD, got {detail['completedDueDate']!r}"
        )

    return RecurringCompletion(
        task_id=detail['taskId'],
        board_id=detail['boardId'],
        recurring_group_id=detail['recurringGroupId'],
        recurring_config=detail['recurringConfig'],
        completed_due_date=detail['completedDueDate'],
        title=detail['title'],
        description=detail.get('description') or '',
        section=detail.get('section'),
        date_flexibility=detail.get('dateFlexibility') or 'not_set',
        assignee_ids=list(detail.get('assigneeIds') or []),
        completed_by_user_id=detail.get('completedByUserId')
    )


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler for task/recurring.completed events.

    Args:
        event: EventBridge event payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and generation result
    """
    # Read configuration from environment variables
    table_name = os.environ.get('TABLE_NAME', 'central-tasks')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    org_timezone = os.environ.get('ORG_TIMEZONE', 'America/New_York')
    default_status = os.environ.get('DEFAULT_STATUS', 'todo')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        "Lambda execution started",
        extra={'table_name': table_name, 'org_timezone': org_timezone}
    )

    try:
        completion = parse_completion(event.get('detail') or {})
    except (ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Rejected malformed completion event: {e}")
        duration = time.time() - start_time
        return {
            'statusCode': 400,
            'body': json.dumps({
                'message': 'Invalid recurring completion event',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }

    try:
        store = TaskStore(table_name=table_name)
        generator = RecurringTaskGenerator(store, default_status=default_status)

        today = org_today(org_timezone)
        logger.info(
            f"Generating next occurrence for task {completion.task_id} "
            f"(completed {today.isoformat()})"
        )
        result = generator.generate_next(completion, today=today)

        duration = time.time() - start_time
        logger.info(
            "Lambda execution completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'skipped': result.skipped,
                'new_task_id': result.new_task_id
            }
        )

        body = {
            'message': 'Recurring series skipped' if result.skipped
            else 'Next occurrence created',
            'skipped': result.skipped,
            'recurringGroupId': result.recurring_group_id,
            'duration_seconds': round(duration, 2)
        }
        if result.skipped:
            body['reason'] = result.reason
        else:
            body['newTaskId'] = result.new_task_id
            body['nextDueDate'] = result.next_due_date
            body['clonedSubtaskCount'] = result.cloned_subtask_count

        return {'statusCode': 200, 'body': json.dumps(body)}

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Failed to generate next occurrence',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }
