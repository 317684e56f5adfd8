"""DynamoDB store for task storage operations."""
import logging
from decimal import Decimal
from typing import Any, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from scheduling.models import Task

logger = logging.getLogger(__name__)


class TaskStore:
    """Store for task rows in DynamoDB."""

    BATCH_SIZE = 25  # DynamoDB batch operation limit

    def __init__(self, table_name: str):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB table
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized TaskStore for table: {table_name}")

    def get_task(self, task_id: str) -> Optional[Task]:
        """
        Fetch a single task by id.

        Args:
            task_id: Task identifier

        Returns:
            Task or None if not found
        """
        try:
            response = self.table.get_item(Key={'task_id': task_id})
        except ClientError as e:
            logger.error(f"Error reading task {task_id}: {e}")
            raise

        item = response.get('Item')
        if not item:
            return None
        return self._item_to_task(item)

    def count_group_occurrences(self, recurring_group_id: str) -> int:
        """
        Count tasks created so far in a recurring series.

        Args:
            recurring_group_id: Identifier shared by all instances of the series

        Returns:
            Number of tasks in the group
        """
        items = self._scan(Attr('recurring_group_id').eq(recurring_group_id))
        logger.info(
            f"Recurring group {recurring_group_id} has {len(items)} occurrences"
        )
        return len(items)

    def get_subtasks(self, parent_task_id: str) -> List[Task]:
        """
        Get the subtasks of a task ordered by position.

        Args:
            parent_task_id: Identifier of the parent task

        Returns:
            List of Task objects
        """
        items = self._scan(Attr('parent_task_id').eq(parent_task_id))
        subtasks = [task for task in map(self._item_to_task, items) if task]
        subtasks.sort(key=lambda task: task.position)
        return subtasks

    def next_position(self, board_id: str) -> int:
        """
        Get the position for a task appended to a board.

        Args:
            board_id: Board identifier

        Returns:
            Highest position on the board plus one, 0 for an empty board
        """
        items = self._scan(Attr('board_id').eq(board_id))
        if not items:
            return 0
        return max(int(item.get('position', 0)) for item in items) + 1

    def batch_write_tasks(self, tasks: List[Task]) -> int:
        """
        Write tasks to DynamoDB in batches of 25 items.

        Args:
            tasks: List of Task objects to write

        Returns:
            Count of successfully written tasks
        """
        if not tasks:
            return 0

        logger.info(f"Writing {len(tasks)} tasks to DynamoDB")
        success_count = 0

        for i in range(0, len(tasks), self.BATCH_SIZE):
            batch = tasks[i:i + self.BATCH_SIZE]

            try:
                with self.table.batch_writer() as writer:
                    for task in batch:
                        writer.put_item(Item=self._task_to_item(task))
                        success_count += 1

            except ClientError as e:
                logger.error(
                    f"Error writing batch {i // self.BATCH_SIZE + 1}: {e}"
                )
                continue

        logger.info(f"Successfully wrote {success_count} tasks")
        return success_count

    def _scan(self, filter_expression) -> List[dict]:
        """
        Scan the table with a filter, following pagination.

        Args:
            filter_expression: boto3 condition to filter on

        Returns:
            List of raw DynamoDB items
        """
        try:
            response = self.table.scan(FilterExpression=filter_expression)
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response:
                response = self.table.scan(
                    FilterExpression=filter_expression,
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))

            return items

        except ClientError as e:
            logger.error(f"Error scanning DynamoDB table: {e}")
            raise

    def _item_to_task(self, item: dict) -> Optional[Task]:
        """
        Convert DynamoDB item to Task object.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Task object or None if conversion fails
        """
        try:
            config = item.get('recurring_config')
            return Task(
                task_id=item['task_id'],
                board_id=item['board_id'],
                short_id=item['short_id'],
                title=item['title'],
                description=item.get('description', ''),
                status=item.get('status', 'todo'),
                section=item.get('section'),
                due_date=item.get('due_date'),
                date_flexibility=item.get('date_flexibility', 'not_set'),
                position=int(item.get('position', 0)),
                recurring_config=_from_dynamo(config) if config else None,
                recurring_group_id=item.get('recurring_group_id'),
                parent_task_id=item.get('parent_task_id'),
                assignee_ids=list(item.get('assignee_ids', [])),
                created_by=item.get('created_by')
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Failed to convert item to Task: {e}")
            return None

    def _task_to_item(self, task: Task) -> dict:
        """
        Convert Task object to DynamoDB item.

        Args:
            task: Task object

        Returns:
            DynamoDB item dictionary
        """
        item = {
            'task_id': task.task_id,
            'board_id': task.board_id,
            'short_id': task.short_id,
            'title': task.title,
            'description': task.description,
            'status': task.status,
            'date_flexibility': task.date_flexibility,
            'position': task.position,
            'assignee_ids': list(task.assignee_ids),
        }

        # Add optional fields if present
        if task.section:
            item['section'] = task.section
        if task.due_date:
            item['due_date'] = task.due_date
        if task.recurring_config:
            item['recurring_config'] = task.recurring_config
        if task.recurring_group_id:
            item['recurring_group_id'] = task.recurring_group_id
        if task.parent_task_id:
            item['parent_task_id'] = task.parent_task_id
        if task.created_by:
            item['created_by'] = task.created_by

        return item


def _from_dynamo(value: Any) -> Any:
    """Turn DynamoDB Decimals back into ints inside nested values."""
    if isinstance(value, Decimal):
        return int(value) if value == int(value) else float(value)
    if isinstance(value, dict):
        return {key: _from_dynamo(inner) for key, inner in value.items()}
    if isinstance(value, list):
        return [_from_dynamo(inner) for inner in value]
    return value
