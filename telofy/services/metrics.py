# =====================================================================
# SERVICE LAYER - services/metrics.py
# =====================================================================

import logging
from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from telofy.core.exceptions import NotFoundError
from telofy.core.timeutils import utcnow
from telofy.crud.metric import crud_metric
from telofy.models import Metric, MetricEntry, User
from telofy.schemas.metric import MetricCreate, MetricEntryCreate, MetricUpdate
from telofy.services.aggregator import objective_aggregator
from telofy.services.ownership import check_pillar_reference, get_owned_objective
from telofy.services.transactions import run_serialized

logger = logging.getLogger(__name__)


class MetricService:
    """Service layer for metrics and their entry log."""

    def __init__(self):
        self.crud = crud_metric
        self.aggregator = objective_aggregator

    def get_owned_metric(self, db: Session, metric_id: UUID, user: User) -> Metric:
        metric = self.crud.get(db, metric_id)
        if not metric:
            raise NotFoundError("Metric not found")
        get_owned_objective(db, metric.objective_id, user)
        return metric

    # =====================================================================
    # CACHE
    # =====================================================================

    def refresh_metric_current(self, db: Session, metric: Metric) -> Optional[float]:
        """``current`` is the value of the last entry in replay order."""
        latest = self.crud.get_latest_entries(db, metric_id=metric.id, count=1)
        metric.current = latest[0].value if latest else None
        db.flush()
        return metric.current

    # =====================================================================
    # METRICS
    # =====================================================================

    def create_metric(
        self, db: Session, objective_id: UUID, metric_data: MetricCreate, requesting_user: User
    ) -> Metric:
        objective = get_owned_objective(db, objective_id, requesting_user)
        check_pillar_reference(db, objective, metric_data.pillar_id)

        metric = self.crud.create(db, objective_id=objective.id, obj_in=metric_data)
        db.commit()
        db.refresh(metric)
        return metric

    def list_metrics(self, db: Session, objective_id: UUID, requesting_user: User) -> List[Metric]:
        objective = get_owned_objective(db, objective_id, requesting_user)
        return self.crud.get_by_objective(db, objective_id=objective.id)

    def get_metric(self, db: Session, metric_id: UUID, requesting_user: User) -> Metric:
        return self.get_owned_metric(db, metric_id, requesting_user)

    def update_metric(
        self, db: Session, metric_id: UUID, update_data: MetricUpdate, requesting_user: User
    ) -> Metric:
        metric = self.get_owned_metric(db, metric_id, requesting_user)
        fields = update_data.model_dump(exclude_unset=True)
        if "pillar_id" in fields:
            check_pillar_reference(db, metric.objective, fields["pillar_id"])

        old_pillar_id = metric.pillar_id
        self.crud.update(db, db_obj=metric, obj_in=update_data)

        # target or pillar changes move attainment
        for pillar_id in {old_pillar_id, metric.pillar_id}:
            self.aggregator.refresh_pillar_progress(db, pillar_id)
        db.commit()
        db.refresh(metric)
        return metric

    def delete_metric(self, db: Session, metric_id: UUID, requesting_user: User) -> None:
        metric = self.get_owned_metric(db, metric_id, requesting_user)
        pillar_id = metric.pillar_id
        self.crud.delete(db, db_obj=metric)
        self.aggregator.refresh_pillar_progress(db, pillar_id)
        db.commit()

    # =====================================================================
    # ENTRIES
    # =====================================================================

    def record_entry(
        self, db: Session, metric_id: UUID, entry_data: MetricEntryCreate, requesting_user: User
    ) -> MetricEntry:
        """Append an entry and update ``current`` and pillar progress in one commit."""
        metric = self.get_owned_metric(db, metric_id, requesting_user)
        recorded_at = entry_data.recorded_at or utcnow()

        def _append() -> MetricEntry:
            locked = self.crud.get_for_update(db, metric.id)
            if locked is None:
                raise NotFoundError("Metric not found")
            entry = self.crud.add_entry(
                db,
                metric_id=locked.id,
                value=entry_data.value,
                note=entry_data.note,
                recorded_at=recorded_at,
            )
            self.refresh_metric_current(db, locked)
            self.aggregator.refresh_pillar_progress(db, locked.pillar_id)
            return entry

        entry = run_serialized(db, _append, label=f"metric entry for {metric.id}")
        db.refresh(entry)
        return entry

    def list_entries(
        self,
        db: Session,
        metric_id: UUID,
        requesting_user: User,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[MetricEntry]:
        metric = self.get_owned_metric(db, metric_id, requesting_user)
        return self.crud.get_entries(db, metric_id=metric.id, limit=limit, offset=offset)


# =====================================================================
# SINGLETON INSTANCE
# =====================================================================

metric_service = MetricService()
