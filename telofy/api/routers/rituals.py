# =====================================================================
# ROUTER - telofy/api/routers/rituals.py
# =====================================================================

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

from telofy.core.config import get_db
from telofy.core.security import get_current_user
from telofy.services.rituals import ritual_service
from telofy.models.user import User
from telofy.schemas.ritual import (
    RitualCreate,
    RitualUpdate,
    RitualOut,
    RitualCompletionCreate,
    RitualCompletionOut,
)
from telofy.schemas.user import SuccessResponse

router = APIRouter(tags=["Rituals"])


# =====================================================================
# RITUALS
# =====================================================================


@router.post(
    "/objectives/{objective_id}/rituals",
    response_model=RitualOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add a ritual to an objective",
)
def create_ritual(
    objective_id: UUID,
    ritual_data: RitualCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    - **frequency**: daily, weekly or monthly
    - **days_of_week**: 0=Sunday ... 6=Saturday; ignored for monthly rituals
    - **times_per_period**: completions needed for a period to count
    """
    return ritual_service.create_ritual(
        db=db, objective_id=objective_id, ritual_data=ritual_data, requesting_user=current_user
    )


@router.get("/objectives/{objective_id}/rituals", response_model=List[RitualOut], summary="List rituals")
def list_rituals(
    objective_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ritual_service.list_rituals(db=db, objective_id=objective_id, requesting_user=current_user)


@router.get("/rituals/{ritual_id}", response_model=RitualOut, summary="Get a ritual")
def get_ritual(
    ritual_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ritual_service.get_ritual(db=db, ritual_id=ritual_id, requesting_user=current_user)


@router.put("/rituals/{ritual_id}", response_model=RitualOut, summary="Update a ritual")
def update_ritual(
    ritual_id: UUID,
    update_data: RitualUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ritual_service.update_ritual(
        db=db, ritual_id=ritual_id, update_data=update_data, requesting_user=current_user
    )


@router.delete("/rituals/{ritual_id}", response_model=SuccessResponse, summary="Delete a ritual")
def delete_ritual(
    ritual_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ritual_service.delete_ritual(db=db, ritual_id=ritual_id, requesting_user=current_user)
    return SuccessResponse(message="Ritual deleted successfully")


@router.post("/rituals/{ritual_id}/streaks/refresh", response_model=RitualOut, summary="Recompute streaks")
def refresh_streaks(
    ritual_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ritual_service.refresh_streaks(db=db, ritual_id=ritual_id, requesting_user=current_user)


# =====================================================================
# COMPLETIONS
# =====================================================================


@router.post(
    "/rituals/{ritual_id}/completions",
    response_model=RitualCompletionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Log a ritual completion",
)
def record_completion(
    ritual_id: UUID,
    completion_data: RitualCompletionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ritual_service.record_completion(
        db=db, ritual_id=ritual_id, completion_data=completion_data, requesting_user=current_user
    )


@router.get(
    "/rituals/{ritual_id}/completions",
    response_model=List[RitualCompletionOut],
    summary="List completions",
)
def list_completions(
    ritual_id: UUID,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ritual_service.list_completions(
        db=db, ritual_id=ritual_id, requesting_user=current_user, limit=limit, offset=offset
    )
