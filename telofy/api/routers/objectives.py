# =====================================================================
# ROUTER - telofy/api/routers/objectives.py
# =====================================================================

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

from telofy.core.config import get_db
from telofy.core.security import get_current_user
from telofy.services.objectives import objective_service
from telofy.models.user import User
from telofy.models.objective import ObjectiveStatus
from telofy.schemas.objective import (
    ObjectiveCreate,
    ObjectiveUpdate,
    ObjectiveStatusUpdate,
    ObjectiveOut,
    ObjectiveDetail,
    ObjectiveProgressOut,
)
from telofy.schemas.user import SuccessResponse

router = APIRouter(prefix="/objectives", tags=["Objectives"])


# =====================================================================
# OBJECTIVES
# =====================================================================


@router.post(
    "",
    response_model=ObjectiveDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create an objective",
)
def create_objective(
    objective_data: ObjectiveCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Create an objective, optionally with its pillars.

    Inline pillar weights must sum to 1.0.
    """
    return objective_service.create_objective(
        db=db, objective_data=objective_data, requesting_user=current_user
    )


@router.get("", response_model=List[ObjectiveOut], summary="List my objectives")
def list_objectives(
    status_filter: Optional[ObjectiveStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return objective_service.list_objectives(
        db=db, requesting_user=current_user, status=status_filter, limit=limit, offset=offset
    )


@router.get("/{objective_id}", response_model=ObjectiveDetail, summary="Get an objective")
def get_objective(
    objective_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return objective_service.get_objective(db=db, objective_id=objective_id, requesting_user=current_user)


@router.put("/{objective_id}", response_model=ObjectiveDetail, summary="Update an objective")
def update_objective(
    objective_id: UUID,
    update_data: ObjectiveUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return objective_service.update_objective(
        db=db, objective_id=objective_id, update_data=update_data, requesting_user=current_user
    )


@router.put("/{objective_id}/status", response_model=ObjectiveOut, summary="Pause, complete or resume")
def set_objective_status(
    objective_id: UUID,
    status_data: ObjectiveStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    - **paused** / **completed**: stay until changed again
    - **on_track**: resume; the status is re-derived from open deviations
    """
    return objective_service.set_status(
        db=db, objective_id=objective_id, status=status_data.status, requesting_user=current_user
    )


@router.delete("/{objective_id}", response_model=SuccessResponse, summary="Delete an objective")
def delete_objective(
    objective_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Deletes pillars, metrics, rituals, tasks and deviations with it."""
    objective_service.delete_objective(db=db, objective_id=objective_id, requesting_user=current_user)
    return SuccessResponse(message="Objective deleted successfully")


# =====================================================================
# PROGRESS
# =====================================================================


@router.get("/{objective_id}/progress", response_model=ObjectiveProgressOut, summary="Progress breakdown")
def get_progress(
    objective_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return objective_service.get_progress(db=db, objective_id=objective_id, requesting_user=current_user)


@router.post("/{objective_id}/recompute", response_model=ObjectiveDetail, summary="Rebuild cached values")
def recompute_objective(
    objective_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Replays metric entries and ritual completions, then progress and status."""
    return objective_service.recompute(db=db, objective_id=objective_id, requesting_user=current_user)
