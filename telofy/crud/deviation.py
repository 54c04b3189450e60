# =====================================================================
# CRUD LAYER - crud/deviation.py
# =====================================================================

from typing import Optional, List
from uuid import UUID
from datetime import datetime
from sqlalchemy.orm import Session

from telofy.models.deviation import Deviation, DeviationType


class CRUDDeviation:
    """CRUD operations for Deviation model."""

    def create(
        self,
        db: Session,
        *,
        user_id: UUID,
        objective_id: UUID,
        deviation_type: DeviationType,
        detected_at: datetime,
        task_id: Optional[UUID] = None,
        ritual_id: Optional[UUID] = None,
        metric_id: Optional[UUID] = None,
    ) -> Deviation:
        db_obj = Deviation(
            user_id=user_id,
            objective_id=objective_id,
            type=deviation_type,
            detected_at=detected_at,
            task_id=task_id,
            ritual_id=ritual_id,
            metric_id=metric_id,
        )
        db.add(db_obj)
        db.flush()
        return db_obj

    def get(self, db: Session, id: UUID) -> Optional[Deviation]:
        return db.query(Deviation).filter(Deviation.id == id).first()

    def get_multi_by_user(
        self,
        db: Session,
        *,
        user_id: UUID,
        objective_id: Optional[UUID] = None,
        unresolved_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Deviation]:
        query = db.query(Deviation).filter(Deviation.user_id == user_id)
        if objective_id is not None:
            query = query.filter(Deviation.objective_id == objective_id)
        if unresolved_only:
            query = query.filter(Deviation.resolved_at.is_(None))
        return query.order_by(Deviation.detected_at.desc()).offset(offset).limit(limit).all()

    def find_for_subject(
        self,
        db: Session,
        *,
        deviation_type: DeviationType,
        task_id: Optional[UUID] = None,
        ritual_id: Optional[UUID] = None,
        metric_id: Optional[UUID] = None,
        unresolved_only: bool = False,
    ) -> List[Deviation]:
        """Deviations of one type raised against one task/ritual/metric."""
        query = db.query(Deviation).filter(Deviation.type == deviation_type)
        if task_id is not None:
            query = query.filter(Deviation.task_id == task_id)
        if ritual_id is not None:
            query = query.filter(Deviation.ritual_id == ritual_id)
        if metric_id is not None:
            query = query.filter(Deviation.metric_id == metric_id)
        if unresolved_only:
            query = query.filter(Deviation.resolved_at.is_(None))
        return query.all()

    def has_unresolved(self, db: Session, *, objective_id: UUID) -> bool:
        return (
            db.query(Deviation.id)
            .filter(Deviation.objective_id == objective_id, Deviation.resolved_at.is_(None))
            .first()
            is not None
        )

    def resolve(self, db: Session, *, db_obj: Deviation, resolved_at: datetime) -> Deviation:
        db_obj.resolved_at = resolved_at
        db.flush()
        return db_obj


crud_deviation = CRUDDeviation()
