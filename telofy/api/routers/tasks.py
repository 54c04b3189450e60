# =====================================================================
# ROUTER - telofy/api/routers/tasks.py
# =====================================================================

from datetime import datetime
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

from telofy.core.config import get_db
from telofy.core.security import get_current_user
from telofy.core.timeutils import as_utc
from telofy.services.tasks import task_service
from telofy.models.user import User
from telofy.models.task import TaskStatus
from telofy.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskOut,
    TaskSkipRequest,
    TaskCompleteRequest,
)

router = APIRouter(tags=["Tasks"])


@router.post(
    "/objectives/{objective_id}/tasks",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule a task",
)
def create_task(
    objective_id: UUID,
    task_data: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return task_service.create_task(
        db=db, objective_id=objective_id, task_data=task_data, requesting_user=current_user
    )


@router.get("/tasks", response_model=List[TaskOut], summary="List my tasks")
def list_tasks(
    objective_id: Optional[UUID] = Query(None),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    scheduled_from: Optional[datetime] = Query(None),
    scheduled_to: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Filter by objective, status and a scheduled_at window."""
    return task_service.list_tasks(
        db=db,
        requesting_user=current_user,
        objective_id=objective_id,
        status=status_filter,
        scheduled_from=as_utc(scheduled_from),
        scheduled_to=as_utc(scheduled_to),
        limit=limit,
        offset=offset,
    )


@router.get("/tasks/{task_id}", response_model=TaskOut, summary="Get a task")
def get_task(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return task_service.get_task(db=db, task_id=task_id, requesting_user=current_user)


@router.put("/tasks/{task_id}", response_model=TaskOut, summary="Edit an open task")
def update_task(
    task_id: UUID,
    update_data: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return task_service.update_task(
        db=db, task_id=task_id, update_data=update_data, requesting_user=current_user
    )


# =====================================================================
# LIFECYCLE
# =====================================================================


@router.post("/tasks/{task_id}/start", response_model=TaskOut, summary="Start a task")
def start_task(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return task_service.start_task(db=db, task_id=task_id, requesting_user=current_user)


@router.post("/tasks/{task_id}/complete", response_model=TaskOut, summary="Complete a task")
def complete_task(
    task_id: UUID,
    complete_data: Optional[TaskCompleteRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Also resolves any open missed_task deviation for this task."""
    return task_service.complete_task(
        db=db,
        task_id=task_id,
        requesting_user=current_user,
        completed_at=complete_data.completed_at if complete_data else None,
    )


@router.post("/tasks/{task_id}/skip", response_model=TaskOut, summary="Skip a task")
def skip_task(
    task_id: UUID,
    skip_data: Optional[TaskSkipRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return task_service.skip_task(
        db=db, task_id=task_id, requesting_user=current_user, reason=skip_data.reason if skip_data else None
    )
