# =====================================================================
# SERVICE LAYER - services/tasks.py
# =====================================================================

import logging
from datetime import datetime
from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from telofy.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from telofy.core.timeutils import utcnow
from telofy.crud.deviation import crud_deviation
from telofy.crud.ritual import crud_ritual
from telofy.crud.task import crud_task
from telofy.models import DeviationType, Task, TaskStatus, TERMINAL_TASK_STATUSES, User
from telofy.schemas.task import TaskCreate, TaskUpdate
from telofy.services.aggregator import objective_aggregator
from telofy.services.ownership import check_pillar_reference, get_owned_objective

logger = logging.getLogger(__name__)


# pending -> in_progress -> completed | skipped
ALLOWED_TRANSITIONS = {
    TaskStatus.pending: {TaskStatus.in_progress, TaskStatus.completed, TaskStatus.skipped},
    TaskStatus.in_progress: {TaskStatus.completed, TaskStatus.skipped},
    TaskStatus.completed: set(),
    TaskStatus.skipped: set(),
}


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


class TaskService:
    """Service layer for scheduled tasks and their lifecycle."""

    def __init__(self):
        self.crud = crud_task
        self.aggregator = objective_aggregator

    def get_owned_task(self, db: Session, task_id: UUID, user: User) -> Task:
        task = self.crud.get(db, task_id)
        if not task:
            raise NotFoundError("Task not found")
        if task.user_id != user.id:
            raise PermissionDeniedError("You don't have access to this task")
        return task

    # =====================================================================
    # CREATE / READ
    # =====================================================================

    def create_task(
        self, db: Session, objective_id: UUID, task_data: TaskCreate, requesting_user: User
    ) -> Task:
        objective = get_owned_objective(db, objective_id, requesting_user)
        check_pillar_reference(db, objective, task_data.pillar_id)
        if task_data.ritual_id is not None:
            ritual = crud_ritual.get(db, task_data.ritual_id)
            if not ritual or ritual.objective_id != objective.id:
                raise ValidationError("Ritual does not belong to this objective")

        task = self.crud.create(
            db, user_id=requesting_user.id, objective_id=objective.id, obj_in=task_data
        )
        self.aggregator.refresh_pillar_progress(db, task.pillar_id)
        db.commit()
        db.refresh(task)
        return task

    def list_tasks(
        self,
        db: Session,
        requesting_user: User,
        objective_id: Optional[UUID] = None,
        status: Optional[TaskStatus] = None,
        scheduled_from: Optional[datetime] = None,
        scheduled_to: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Task]:
        if objective_id is not None:
            get_owned_objective(db, objective_id, requesting_user)
        return self.crud.get_multi_by_user(
            db,
            user_id=requesting_user.id,
            objective_id=objective_id,
            status=status,
            scheduled_from=scheduled_from,
            scheduled_to=scheduled_to,
            limit=limit,
            offset=offset,
        )

    def get_task(self, db: Session, task_id: UUID, requesting_user: User) -> Task:
        return self.get_owned_task(db, task_id, requesting_user)

    # =====================================================================
    # UPDATE
    # =====================================================================

    def update_task(
        self, db: Session, task_id: UUID, update_data: TaskUpdate, requesting_user: User
    ) -> Task:
        task = self.get_owned_task(db, task_id, requesting_user)
        if task.status in TERMINAL_TASK_STATUSES:
            raise ConflictError(f"Task is {task.status.value} and can no longer be edited")

        self.crud.update(db, db_obj=task, obj_in=update_data)
        self.aggregator.refresh_pillar_progress(db, task.pillar_id)
        db.commit()
        db.refresh(task)
        return task

    # =====================================================================
    # LIFECYCLE
    # =====================================================================

    def _transition(
        self,
        db: Session,
        task: Task,
        target: TaskStatus,
        completed_at: Optional[datetime] = None,
        skipped_reason: Optional[str] = None,
    ) -> Task:
        if not can_transition(task.status, target):
            raise ConflictError(
                f"Cannot move task from {task.status.value} to {target.value}"
            )

        self.crud.set_status(
            db,
            db_obj=task,
            status=target,
            completed_at=completed_at,
            skipped_reason=skipped_reason,
        )
        self.aggregator.refresh_pillar_progress(db, task.pillar_id)
        return task

    def start_task(self, db: Session, task_id: UUID, requesting_user: User) -> Task:
        task = self.get_owned_task(db, task_id, requesting_user)
        self._transition(db, task, TaskStatus.in_progress)
        db.commit()
        db.refresh(task)
        return task

    def complete_task(
        self,
        db: Session,
        task_id: UUID,
        requesting_user: User,
        completed_at: Optional[datetime] = None,
    ) -> Task:
        """Completing a task also closes the missed_task deviations raised for it."""
        task = self.get_owned_task(db, task_id, requesting_user)
        now = utcnow()
        self._transition(db, task, TaskStatus.completed, completed_at=completed_at or now)

        open_deviations = crud_deviation.find_for_subject(
            db, deviation_type=DeviationType.missed_task, task_id=task.id, unresolved_only=True
        )
        for deviation in open_deviations:
            crud_deviation.resolve(db, db_obj=deviation, resolved_at=now)
        if open_deviations:
            logger.info("Task %s completed, %s deviation(s) resolved", task.id, len(open_deviations))
            self.aggregator.refresh_objective_status(db, task.objective_id)

        db.commit()
        db.refresh(task)
        return task

    def skip_task(
        self, db: Session, task_id: UUID, requesting_user: User, reason: Optional[str] = None
    ) -> Task:
        task = self.get_owned_task(db, task_id, requesting_user)
        self._transition(db, task, TaskStatus.skipped, skipped_reason=reason)
        db.commit()
        db.refresh(task)
        return task


# =====================================================================
# SINGLETON INSTANCE
# =====================================================================

task_service = TaskService()
