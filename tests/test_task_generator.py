"""Unit tests for RecurringTaskGenerator."""
from datetime import date
from unittest.mock import Mock

import pytest

from scheduling.models import RecurringCompletion, Task
from scheduling.task_generator import RecurringTaskGenerator, generate_short_id


TODAY = date(2025, 6, 9)  # Monday


@pytest.fixture
def store():
    """Create a mock TaskStore with an empty recurring group."""
    store = Mock()
    store.count_group_occurrences.return_value = 1
    store.next_position.return_value = 7
    store.get_subtasks.return_value = []
    store.batch_write_tasks.side_effect = lambda tasks: len(tasks)
    return store


@pytest.fixture
def completion():
    """Create a sample completion of a weekly task."""
    return RecurringCompletion(
        task_id='task-1',
        board_id='board-1',
        recurring_group_id='group-1',
        recurring_config={'frequency': 'weekly', 'interval': 1, 'daysOfWeek': [1, 4]},
        completed_due_date='2025-06-09',
        title='Standup notes',
        description='Post notes',
        section='Team',
        date_flexibility='flexible',
        assignee_ids=['user-1'],
        completed_by_user_id='user-2'
    )


class TestRecurringTaskGenerator:
    """Test cases for RecurringTaskGenerator."""

    def test_creates_next_task(self, store, completion):
        """Test the next task is created with the computed due date."""
        generator = RecurringTaskGenerator(store, default_status='backlog')

        result = generator.generate_next(completion, today=TODAY)

        assert not result.skipped
        assert result.next_due_date == '2025-06-12'
        assert result.recurring_group_id == 'group-1'
        assert result.cloned_subtask_count == 0

        written = store.batch_write_tasks.call_args[0][0]
        assert len(written) == 1
        task = written[0]
        assert task.task_id == result.new_task_id
        assert task.due_date == '2025-06-12'
        assert task.status == 'backlog'
        assert task.position == 7
        assert task.board_id == 'board-1'
        assert task.section == 'Team'
        assert task.date_flexibility == 'flexible'
        assert task.assignee_ids == ['user-1']
        assert task.created_by == 'user-2'
        assert task.recurring_group_id == 'group-1'
        assert task.recurring_config == {
            'frequency': 'weekly', 'interval': 1, 'daysOfWeek': [1, 4]
        }
        assert task.parent_task_id is None

        store.count_group_occurrences.assert_called_once_with('group-1')
        store.next_position.assert_called_once_with('board-1')
        store.get_subtasks.assert_called_once_with('task-1')

    def test_clones_subtasks_with_offset(self, store, completion):
        """Test subtasks are cloned and their due dates shifted."""
        store.get_subtasks.return_value = [
            Task(task_id='sub-1', board_id='board-1', short_id='s1', title='Draft',
                 due_date='2025-06-07', position=0, parent_task_id='task-1',
                 assignee_ids=['user-3']),
            Task(task_id='sub-2', board_id='board-1', short_id='s2', title='Review',
                 due_date=None, position=1, parent_task_id='task-1'),
        ]
        generator = RecurringTaskGenerator(store)

        result = generator.generate_next(completion, today=TODAY)

        assert result.cloned_subtask_count == 2
        parent, draft, review = store.batch_write_tasks.call_args[0][0]
        assert draft.parent_task_id == parent.task_id
        assert draft.due_date == '2025-06-10'
        assert draft.assignee_ids == ['user-3']
        assert draft.status == 'todo'
        assert draft.task_id not in ('sub-1', parent.task_id)
        assert review.due_date is None
        assert review.position == 1
        assert review.recurring_config is None

    def test_invalid_config_is_skipped(self, store, completion):
        """Test an invalid config skips generation with the violation codes."""
        completion.recurring_config = {'frequency': 'weekly', 'interval': 1}
        generator = RecurringTaskGenerator(store)

        result = generator.generate_next(completion, today=TODAY)

        assert result.skipped
        assert 'daysOfWeek.required' in result.reason
        store.batch_write_tasks.assert_not_called()
        store.count_group_occurrences.assert_not_called()

    def test_occurrence_limit_reached(self, store, completion):
        """Test the series stops at the occurrence limit."""
        completion.recurring_config = {
            'frequency': 'daily', 'interval': 1, 'endAfterOccurrences': 3
        }
        store.count_group_occurrences.return_value = 3
        generator = RecurringTaskGenerator(store)

        result = generator.generate_next(completion, today=TODAY)

        assert result.skipped
        assert 'occurrence limit' in result.reason
        store.batch_write_tasks.assert_not_called()

    def test_end_date_passed(self, store, completion):
        """Test no task is created after the series end date."""
        completion.recurring_config = {
            'frequency': 'monthly', 'interval': 1, 'endDate': '2025-06-30'
        }
        generator = RecurringTaskGenerator(store)

        result = generator.generate_next(completion, today=TODAY)

        assert result.skipped
        assert result.reason == 'No next occurrence (end date passed)'
        store.batch_write_tasks.assert_not_called()

    def test_store_errors_propagate(self, store, completion):
        """Test storage failures are not swallowed."""
        store.count_group_occurrences.side_effect = RuntimeError('DynamoDB down')
        generator = RecurringTaskGenerator(store)

        with pytest.raises(RuntimeError):
            generator.generate_next(completion, today=TODAY)

    def test_nothing_written_raises(self, store, completion):
        """Test a write that stores no tasks is reported as a failure."""
        store.batch_write_tasks.side_effect = None
        store.batch_write_tasks.return_value = 0
        generator = RecurringTaskGenerator(store)

        with pytest.raises(RuntimeError, match='0 of 1 tasks written'):
            generator.generate_next(completion, today=TODAY)

    def test_partial_subtask_write_raises(self, store, completion):
        """Test a write missing cloned subtasks is reported as a failure."""
        store.get_subtasks.return_value = [
            Task(task_id='sub-1', board_id='board-1', short_id='s1', title='Draft',
                 position=0, parent_task_id='task-1'),
        ]
        store.batch_write_tasks.side_effect = None
        store.batch_write_tasks.return_value = 1
        generator = RecurringTaskGenerator(store)

        with pytest.raises(RuntimeError, match='1 of 2 tasks written'):
            generator.generate_next(completion, today=TODAY)


def test_generate_short_id():
    """Test short ids are 8 url-safe characters and unique."""
    ids = {generate_short_id() for _ in range(50)}

    assert len(ids) == 50
    assert all(len(short_id) == 8 for short_id in ids)
    assert all('/' not in short_id and '+' not in short_id for short_id in ids)
