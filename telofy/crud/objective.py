# =====================================================================
# CRUD LAYER - crud/objective.py
# =====================================================================

from typing import Optional, List
from uuid import UUID
from datetime import datetime, timezone
from sqlalchemy.orm import Session

from telofy.models.objective import Objective, ObjectiveStatus, Pillar, MANUAL_STATUSES
from telofy.schemas.objective import (
    ObjectiveCreate,
    ObjectiveUpdate,
    PillarCreate,
    PillarUpdate,
)


class CRUDObjective:
    """CRUD operations for Objective and its Pillars."""

    # =====================================================================
    # CREATE OPERATIONS
    # =====================================================================

    def create(self, db: Session, *, user_id: UUID, obj_in: ObjectiveCreate) -> Objective:
        """Create an objective with its inline pillars."""
        obj_data = obj_in.model_dump(exclude={"pillars"}, exclude_none=True)

        db_obj = Objective(user_id=user_id, **obj_data)
        for pillar_in in obj_in.pillars:
            db_obj.pillars.append(Pillar(**pillar_in.model_dump()))

        db.add(db_obj)
        db.flush()
        return db_obj

    def add_pillar(self, db: Session, *, objective: Objective, obj_in: PillarCreate) -> Pillar:
        db_obj = Pillar(objective_id=objective.id, **obj_in.model_dump())
        db.add(db_obj)
        db.flush()
        db.expire(objective, ["pillars"])
        return db_obj

    # =====================================================================
    # READ OPERATIONS
    # =====================================================================

    def get(self, db: Session, id: UUID) -> Optional[Objective]:
        return db.query(Objective).filter(Objective.id == id).first()

    def get_multi_by_user(
        self,
        db: Session,
        *,
        user_id: UUID,
        status: Optional[ObjectiveStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Objective]:
        query = db.query(Objective).filter(Objective.user_id == user_id)
        if status is not None:
            query = query.filter(Objective.status == status)
        return (
            query.order_by(Objective.priority.asc(), Objective.created_at.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def get_active(self, db: Session, *, user_id: Optional[UUID] = None) -> List[Objective]:
        """Objectives the deviation detector should look at."""
        query = db.query(Objective).filter(Objective.status.notin_(list(MANUAL_STATUSES)))
        if user_id is not None:
            query = query.filter(Objective.user_id == user_id)
        return query.order_by(Objective.created_at.asc()).all()

    def get_pillar(self, db: Session, id: UUID) -> Optional[Pillar]:
        return db.query(Pillar).filter(Pillar.id == id).first()

    def get_pillars(self, db: Session, *, objective_id: UUID) -> List[Pillar]:
        return (
            db.query(Pillar)
            .filter(Pillar.objective_id == objective_id)
            .order_by(Pillar.created_at.asc())
            .all()
        )

    # =====================================================================
    # UPDATE OPERATIONS
    # =====================================================================

    def update(self, db: Session, *, db_obj: Objective, obj_in: ObjectiveUpdate) -> Objective:
        update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        db_obj.updated_at = datetime.now(timezone.utc)
        db.flush()
        return db_obj

    def set_status(self, db: Session, *, db_obj: Objective, status: ObjectiveStatus) -> Objective:
        db_obj.status = status
        db_obj.is_paused = status == ObjectiveStatus.paused
        db_obj.updated_at = datetime.now(timezone.utc)
        db.flush()
        return db_obj

    def update_pillar(self, db: Session, *, db_obj: Pillar, obj_in: PillarUpdate) -> Pillar:
        update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        db_obj.updated_at = datetime.now(timezone.utc)
        db.flush()
        return db_obj

    # =====================================================================
    # DELETE OPERATIONS
    # =====================================================================

    def delete(self, db: Session, *, db_obj: Objective) -> None:
        """Cascades to pillars, metrics, rituals, tasks and deviations."""
        db.delete(db_obj)
        db.flush()

    def delete_pillar(self, db: Session, *, db_obj: Pillar) -> None:
        """Metrics, rituals and tasks pointing at the pillar are detached by the FK."""
        objective = db_obj.objective
        db.delete(db_obj)
        db.flush()
        if objective is not None:
            db.expire(objective, ["pillars"])


crud_objective = CRUDObjective()
