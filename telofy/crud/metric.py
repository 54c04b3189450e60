# =====================================================================
# CRUD LAYER - crud/metric.py
# =====================================================================

from typing import Optional, List
from uuid import UUID
from datetime import datetime, timezone
from sqlalchemy.orm import Session

from telofy.models.metric import Metric, MetricEntry
from telofy.schemas.metric import MetricCreate, MetricUpdate


class CRUDMetric:
    """CRUD operations for Metric and its append-only entries."""

    # =====================================================================
    # METRICS
    # =====================================================================

    def create(self, db: Session, *, objective_id: UUID, obj_in: MetricCreate) -> Metric:
        db_obj = Metric(objective_id=objective_id, **obj_in.model_dump())
        db.add(db_obj)
        db.flush()
        return db_obj

    def get(self, db: Session, id: UUID) -> Optional[Metric]:
        return db.query(Metric).filter(Metric.id == id).first()

    def get_for_update(self, db: Session, id: UUID) -> Optional[Metric]:
        """Row-locked read used before appending an entry."""
        return (
            db.query(Metric)
            .filter(Metric.id == id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def get_by_objective(self, db: Session, *, objective_id: UUID) -> List[Metric]:
        return (
            db.query(Metric)
            .filter(Metric.objective_id == objective_id)
            .order_by(Metric.created_at.asc())
            .all()
        )

    def get_by_pillar(self, db: Session, *, pillar_id: UUID) -> List[Metric]:
        return db.query(Metric).filter(Metric.pillar_id == pillar_id).all()

    def update(self, db: Session, *, db_obj: Metric, obj_in: MetricUpdate) -> Metric:
        update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        db_obj.updated_at = datetime.now(timezone.utc)
        db.flush()
        return db_obj

    def delete(self, db: Session, *, db_obj: Metric) -> None:
        db.delete(db_obj)
        db.flush()

    # =====================================================================
    # ENTRIES (append-only)
    # =====================================================================

    def add_entry(
        self,
        db: Session,
        *,
        metric_id: UUID,
        value: float,
        note: Optional[str],
        recorded_at: datetime,
    ) -> MetricEntry:
        db_obj = MetricEntry(metric_id=metric_id, value=value, note=note, recorded_at=recorded_at)
        db.add(db_obj)
        db.flush()
        return db_obj

    def get_entries(
        self, db: Session, *, metric_id: UUID, limit: Optional[int] = None, offset: int = 0
    ) -> List[MetricEntry]:
        """Entries in replay order (recorded_at, then insertion)."""
        query = (
            db.query(MetricEntry)
            .filter(MetricEntry.metric_id == metric_id)
            .order_by(MetricEntry.recorded_at.asc(), MetricEntry.created_at.asc())
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get_latest_entries(self, db: Session, *, metric_id: UUID, count: int = 2) -> List[MetricEntry]:
        """Newest first."""
        return (
            db.query(MetricEntry)
            .filter(MetricEntry.metric_id == metric_id)
            .order_by(MetricEntry.recorded_at.desc(), MetricEntry.created_at.desc())
            .limit(count)
            .all()
        )


crud_metric = CRUDMetric()
