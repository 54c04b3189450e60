"""Task lifecycle transitions and ownership checks."""

from datetime import timedelta

import pytest

from telofy.core.exceptions import ConflictError, PermissionDeniedError, ValidationError
from telofy.core.timeutils import utcnow
from telofy.models import TaskStatus
from telofy.schemas.ritual import RitualCreate
from telofy.schemas.task import TaskCreate, TaskUpdate
from telofy.services.rituals import ritual_service
from telofy.services.tasks import can_transition, task_service

from conftest import make_objective


@pytest.fixture
def task(db, user, objective):
    return task_service.create_task(
        db, objective.id, TaskCreate(title="Draft proposal", scheduled_at=utcnow() + timedelta(hours=1)), user
    )


class TestTransitions:
    def test_transition_table(self):
        assert can_transition(TaskStatus.pending, TaskStatus.in_progress)
        assert can_transition(TaskStatus.in_progress, TaskStatus.completed)
        assert not can_transition(TaskStatus.completed, TaskStatus.pending)
        assert not can_transition(TaskStatus.skipped, TaskStatus.completed)

    def test_start_then_complete(self, db, user, task):
        task = task_service.start_task(db, task.id, user)
        assert task.status == TaskStatus.in_progress

        task = task_service.complete_task(db, task.id, user)
        assert task.status == TaskStatus.completed
        assert task.completed_at is not None

    def test_skip_records_reason(self, db, user, task):
        task = task_service.skip_task(db, task.id, user, reason="Sick day")
        assert task.status == TaskStatus.skipped
        assert task.skipped_reason == "Sick day"

    def test_terminal_tasks_cannot_move(self, db, user, task):
        task_service.complete_task(db, task.id, user)
        with pytest.raises(ConflictError):
            task_service.skip_task(db, task.id, user)
        with pytest.raises(ConflictError):
            task_service.start_task(db, task.id, user)

    def test_terminal_tasks_cannot_be_edited(self, db, user, task):
        task_service.skip_task(db, task.id, user)
        with pytest.raises(ConflictError):
            task_service.update_task(db, task.id, TaskUpdate(title="Again"), user)


class TestTaskRules:
    def test_other_user_cannot_touch(self, db, other_user, task):
        with pytest.raises(PermissionDeniedError):
            task_service.complete_task(db, task.id, other_user)

    def test_pillar_from_other_objective_rejected(self, db, user, objective):
        other = make_objective(db, user, name="Side project")
        with pytest.raises(ValidationError):
            task_service.create_task(
                db,
                objective.id,
                TaskCreate(title="x", scheduled_at=utcnow(), pillar_id=other.pillars[0].id),
                user,
            )

    def test_ritual_from_other_objective_rejected(self, db, user, objective):
        other = make_objective(db, user, name="Side project")
        ritual = ritual_service.create_ritual(db, other.id, RitualCreate(name="Ship"), user)
        with pytest.raises(ValidationError):
            task_service.create_task(
                db, objective.id, TaskCreate(title="x", scheduled_at=utcnow(), ritual_id=ritual.id), user
            )

    def test_list_filters_by_status(self, db, user, objective, task):
        task_service.create_task(
            db, objective.id, TaskCreate(title="Other", scheduled_at=utcnow()), user
        )
        task_service.skip_task(db, task.id, user)

        skipped = task_service.list_tasks(db, user, status=TaskStatus.skipped)
        assert [t.id for t in skipped] == [task.id]
        assert len(task_service.list_tasks(db, user, objective_id=objective.id)) == 2
