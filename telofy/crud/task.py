# =====================================================================
# CRUD LAYER - crud/task.py
# =====================================================================

from typing import Optional, List
from uuid import UUID
from datetime import datetime, timezone
from sqlalchemy import and_
from sqlalchemy.orm import Session

from telofy.models.task import Task, TaskStatus
from telofy.schemas.task import TaskCreate, TaskUpdate


class CRUDTask:
    """CRUD operations for Task model."""

    def create(
        self, db: Session, *, user_id: UUID, objective_id: UUID, obj_in: TaskCreate
    ) -> Task:
        db_obj = Task(user_id=user_id, objective_id=objective_id, **obj_in.model_dump())
        db.add(db_obj)
        db.flush()
        return db_obj

    def get(self, db: Session, id: UUID) -> Optional[Task]:
        return db.query(Task).filter(Task.id == id).first()

    def get_multi_by_user(
        self,
        db: Session,
        *,
        user_id: UUID,
        objective_id: Optional[UUID] = None,
        status: Optional[TaskStatus] = None,
        scheduled_from: Optional[datetime] = None,
        scheduled_to: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Task]:
        filters = [Task.user_id == user_id]
        if objective_id is not None:
            filters.append(Task.objective_id == objective_id)
        if status is not None:
            filters.append(Task.status == status)
        if scheduled_from is not None:
            filters.append(Task.scheduled_at >= scheduled_from)
        if scheduled_to is not None:
            filters.append(Task.scheduled_at < scheduled_to)

        return (
            db.query(Task)
            .filter(and_(*filters))
            .order_by(Task.scheduled_at.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def get_pending_by_objective(self, db: Session, *, objective_id: UUID) -> List[Task]:
        return (
            db.query(Task)
            .filter(Task.objective_id == objective_id, Task.status == TaskStatus.pending)
            .order_by(Task.scheduled_at.asc())
            .all()
        )

    def get_by_pillar_scheduled_between(
        self, db: Session, *, pillar_id: UUID, start: datetime, end: datetime
    ) -> List[Task]:
        return (
            db.query(Task)
            .filter(
                Task.pillar_id == pillar_id,
                Task.scheduled_at >= start,
                Task.scheduled_at <= end,
            )
            .all()
        )

    def update(self, db: Session, *, db_obj: Task, obj_in: TaskUpdate) -> Task:
        update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        db_obj.updated_at = datetime.now(timezone.utc)
        db.flush()
        return db_obj

    def set_status(
        self,
        db: Session,
        *,
        db_obj: Task,
        status: TaskStatus,
        completed_at: Optional[datetime] = None,
        skipped_reason: Optional[str] = None,
    ) -> Task:
        db_obj.status = status
        if completed_at is not None:
            db_obj.completed_at = completed_at
        if skipped_reason is not None:
            db_obj.skipped_reason = skipped_reason
        db_obj.updated_at = datetime.now(timezone.utc)
        db.flush()
        return db_obj


crud_task = CRUDTask()
