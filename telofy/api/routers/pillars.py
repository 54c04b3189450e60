# =====================================================================
# ROUTER - telofy/api/routers/pillars.py
# =====================================================================

from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from telofy.core.config import get_db
from telofy.core.security import get_current_user
from telofy.services.objectives import objective_service
from telofy.models.user import User
from telofy.schemas.objective import PillarCreate, PillarUpdate, PillarOut
from telofy.schemas.user import SuccessResponse

router = APIRouter(tags=["Pillars"])


@router.post(
    "/objectives/{objective_id}/pillars",
    response_model=PillarOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add a pillar",
)
def add_pillar(
    objective_id: UUID,
    pillar_data: PillarCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Sibling weights, including this one, may not exceed 1.0."""
    return objective_service.add_pillar(
        db=db, objective_id=objective_id, pillar_data=pillar_data, requesting_user=current_user
    )


@router.get("/objectives/{objective_id}/pillars", response_model=List[PillarOut], summary="List pillars")
def list_pillars(
    objective_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return objective_service.list_pillars(db=db, objective_id=objective_id, requesting_user=current_user)


@router.get("/pillars/{pillar_id}", response_model=PillarOut, summary="Get a pillar")
def get_pillar(
    pillar_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return objective_service.get_pillar(db=db, pillar_id=pillar_id, requesting_user=current_user)


@router.put("/pillars/{pillar_id}", response_model=PillarOut, summary="Update a pillar")
def update_pillar(
    pillar_id: UUID,
    update_data: PillarUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return objective_service.update_pillar(
        db=db, pillar_id=pillar_id, update_data=update_data, requesting_user=current_user
    )


@router.delete("/pillars/{pillar_id}", response_model=SuccessResponse, summary="Delete a pillar")
def delete_pillar(
    pillar_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Metrics, rituals and tasks that pointed at the pillar are kept, unlinked."""
    objective_service.delete_pillar(db=db, pillar_id=pillar_id, requesting_user=current_user)
    return SuccessResponse(message="Pillar deleted successfully")
