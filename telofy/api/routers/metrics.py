# =====================================================================
# ROUTER - telofy/api/routers/metrics.py
# =====================================================================

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

from telofy.core.config import get_db
from telofy.core.security import get_current_user
from telofy.services.metrics import metric_service
from telofy.models.user import User
from telofy.schemas.metric import (
    MetricCreate,
    MetricUpdate,
    MetricOut,
    MetricEntryCreate,
    MetricEntryOut,
)
from telofy.schemas.user import SuccessResponse

router = APIRouter(tags=["Metrics"])


# =====================================================================
# METRICS
# =====================================================================


@router.post(
    "/objectives/{objective_id}/metrics",
    response_model=MetricOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add a metric to an objective",
)
def create_metric(
    objective_id: UUID,
    metric_data: MetricCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return metric_service.create_metric(
        db=db, objective_id=objective_id, metric_data=metric_data, requesting_user=current_user
    )


@router.get("/objectives/{objective_id}/metrics", response_model=List[MetricOut], summary="List metrics")
def list_metrics(
    objective_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return metric_service.list_metrics(db=db, objective_id=objective_id, requesting_user=current_user)


@router.get("/metrics/{metric_id}", response_model=MetricOut, summary="Get a metric")
def get_metric(
    metric_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return metric_service.get_metric(db=db, metric_id=metric_id, requesting_user=current_user)


@router.put("/metrics/{metric_id}", response_model=MetricOut, summary="Update a metric")
def update_metric(
    metric_id: UUID,
    update_data: MetricUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return metric_service.update_metric(
        db=db, metric_id=metric_id, update_data=update_data, requesting_user=current_user
    )


@router.delete("/metrics/{metric_id}", response_model=SuccessResponse, summary="Delete a metric")
def delete_metric(
    metric_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    metric_service.delete_metric(db=db, metric_id=metric_id, requesting_user=current_user)
    return SuccessResponse(message="Metric deleted successfully")


# =====================================================================
# ENTRIES
# =====================================================================


@router.post(
    "/metrics/{metric_id}/entries",
    response_model=MetricEntryOut,
    status_code=status.HTTP_201_CREATED,
    summary="Record a metric value",
)
def record_entry(
    metric_id: UUID,
    entry_data: MetricEntryCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Append a value to the metric's log.

    The metric's current value and its pillar's progress update in the same commit.
    """
    return metric_service.record_entry(
        db=db, metric_id=metric_id, entry_data=entry_data, requesting_user=current_user
    )


@router.get("/metrics/{metric_id}/entries", response_model=List[MetricEntryOut], summary="List entries")
def list_entries(
    metric_id: UUID,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return metric_service.list_entries(
        db=db, metric_id=metric_id, requesting_user=current_user, limit=limit, offset=offset
    )
