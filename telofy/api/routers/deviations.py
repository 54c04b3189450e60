# =====================================================================
# ROUTER - telofy/api/routers/deviations.py
# =====================================================================

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from telofy.core.config import get_db
from telofy.core.security import get_current_user
from telofy.services.deviations import deviation_detector
from telofy.models.user import User
from telofy.schemas.deviation import DeviationOut, SweepReportOut, SweepFailureOut

router = APIRouter(prefix="/deviations", tags=["Deviations"])


@router.get("", response_model=List[DeviationOut], summary="List my deviations")
def list_deviations(
    objective_id: Optional[UUID] = Query(None),
    unresolved_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return deviation_detector.list_deviations(
        db=db,
        requesting_user=current_user,
        objective_id=objective_id,
        unresolved_only=unresolved_only,
        limit=limit,
        offset=offset,
    )


@router.post("/{deviation_id}/resolve", response_model=DeviationOut, summary="Resolve a deviation")
def resolve_deviation(
    deviation_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The objective returns to on_track once nothing is left unresolved."""
    return deviation_detector.resolve(db=db, deviation_id=deviation_id, requesting_user=current_user)


@router.post("/sweep", response_model=SweepReportOut, summary="Scan my objectives now")
def sweep_my_objectives(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Run the deviation detector over the current user's active objectives.

    Failures on one objective are reported and do not stop the others.
    """
    report = deviation_detector.sweep(db, user_id=current_user.id)
    return SweepReportOut(
        objectives_scanned=report.objectives_scanned,
        deviations_created=report.deviations_created,
        created=[DeviationOut.model_validate(d) for d in report.created],
        failures=[
            SweepFailureOut(objective_id=f.objective_id, error=f.error) for f in report.failures
        ],
    )
