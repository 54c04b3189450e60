# =====================================================================
# SERVICE LAYER - services/objectives.py
# =====================================================================

import logging
from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from telofy.core.config import settings
from telofy.core.exceptions import ConflictError, ValidationError
from telofy.core.timeutils import utcnow
from telofy.crud.metric import crud_metric
from telofy.crud.objective import crud_objective
from telofy.crud.ritual import crud_ritual
from telofy.models import Objective, ObjectiveStatus, Pillar, User
from telofy.schemas.objective import (
    ObjectiveCreate,
    ObjectiveUpdate,
    PillarCreate,
    PillarUpdate,
)
from telofy.services.aggregator import objective_aggregator, total_weight
from telofy.services.metrics import metric_service
from telofy.services.ownership import get_owned_objective, get_owned_pillar
from telofy.services.streaks import streak_tracker

logger = logging.getLogger(__name__)


class ObjectiveService:
    """Service layer for objectives and their pillars."""

    def __init__(self):
        self.crud = crud_objective
        self.aggregator = objective_aggregator

    def _check_sibling_weights(
        self, db: Session, objective_id: UUID, new_weight: float, exclude_id: Optional[UUID] = None
    ) -> None:
        siblings = [
            p for p in self.crud.get_pillars(db, objective_id=objective_id) if p.id != exclude_id
        ]
        if total_weight(siblings) + new_weight > 1.0 + settings.PILLAR_WEIGHT_TOLERANCE:
            raise ValidationError("Pillar weights under one objective cannot exceed 1.0")

    # =====================================================================
    # OBJECTIVES
    # =====================================================================

    def create_objective(
        self, db: Session, objective_data: ObjectiveCreate, requesting_user: User
    ) -> Objective:
        objective = self.crud.create(db, user_id=requesting_user.id, obj_in=objective_data)
        db.commit()
        db.refresh(objective)
        logger.info("Objective %s created for user %s", objective.id, requesting_user.id)
        return objective

    def list_objectives(
        self,
        db: Session,
        requesting_user: User,
        status: Optional[ObjectiveStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Objective]:
        return self.crud.get_multi_by_user(
            db, user_id=requesting_user.id, status=status, limit=limit, offset=offset
        )

    def get_objective(self, db: Session, objective_id: UUID, requesting_user: User) -> Objective:
        return get_owned_objective(db, objective_id, requesting_user)

    def update_objective(
        self, db: Session, objective_id: UUID, update_data: ObjectiveUpdate, requesting_user: User
    ) -> Objective:
        objective = get_owned_objective(db, objective_id, requesting_user)
        self.crud.update(db, db_obj=objective, obj_in=update_data)
        db.commit()
        db.refresh(objective)
        return objective

    def set_status(
        self, db: Session, objective_id: UUID, status: ObjectiveStatus, requesting_user: User
    ) -> Objective:
        """
        Owner-driven status change.

        ``paused`` and ``completed`` stick until the owner changes them again;
        ``on_track`` hands control back to the deviation-driven status.
        """
        objective = get_owned_objective(db, objective_id, requesting_user)
        if status == ObjectiveStatus.deviation_detected:
            raise ValidationError("deviation_detected is set by the deviation detector only")

        if status in (ObjectiveStatus.paused, ObjectiveStatus.completed):
            self.crud.set_status(db, db_obj=objective, status=status)
        else:
            self.crud.set_status(db, db_obj=objective, status=ObjectiveStatus.on_track)
            self.aggregator.refresh_objective_status(db, objective.id)

        db.commit()
        db.refresh(objective)
        logger.info("Objective %s set to %s by owner", objective.id, objective.status.value)
        return objective

    def delete_objective(self, db: Session, objective_id: UUID, requesting_user: User) -> None:
        objective = get_owned_objective(db, objective_id, requesting_user)
        self.crud.delete(db, db_obj=objective)
        db.commit()
        logger.info("Objective %s deleted", objective_id)

    # =====================================================================
    # PROGRESS
    # =====================================================================

    def get_progress(self, db: Session, objective_id: UUID, requesting_user: User) -> dict:
        objective = get_owned_objective(db, objective_id, requesting_user)
        pillars = self.crud.get_pillars(db, objective_id=objective.id)
        return self.aggregator.progress_report(objective, pillars)

    def recompute(self, db: Session, objective_id: UUID, requesting_user: User) -> Objective:
        """Rebuild every cache under the objective by replaying its event logs."""
        objective = get_owned_objective(db, objective_id, requesting_user)
        now = utcnow()

        for metric in crud_metric.get_by_objective(db, objective_id=objective.id):
            metric_service.refresh_metric_current(db, metric)
        for ritual in crud_ritual.get_by_objective(db, objective_id=objective.id):
            streak_tracker.refresh_ritual_streaks(db, ritual, now=now)
        self.aggregator.refresh_all_progress(db, objective.id, now=now)
        self.aggregator.refresh_objective_status(db, objective.id)

        db.commit()
        db.refresh(objective)
        return objective

    # =====================================================================
    # PILLARS
    # =====================================================================

    def list_pillars(self, db: Session, objective_id: UUID, requesting_user: User) -> List[Pillar]:
        objective = get_owned_objective(db, objective_id, requesting_user)
        return self.crud.get_pillars(db, objective_id=objective.id)

    def get_pillar(self, db: Session, pillar_id: UUID, requesting_user: User) -> Pillar:
        return get_owned_pillar(db, pillar_id, requesting_user)

    def add_pillar(
        self, db: Session, objective_id: UUID, pillar_data: PillarCreate, requesting_user: User
    ) -> Pillar:
        objective = get_owned_objective(db, objective_id, requesting_user)
        if any(p.name == pillar_data.name for p in objective.pillars):
            raise ConflictError(f"Pillar '{pillar_data.name}' already exists")
        self._check_sibling_weights(db, objective.id, pillar_data.weight)

        pillar = self.crud.add_pillar(db, objective=objective, obj_in=pillar_data)
        self.aggregator.refresh_pillar_progress(db, pillar.id)
        db.commit()
        db.refresh(pillar)
        return pillar

    def update_pillar(
        self, db: Session, pillar_id: UUID, update_data: PillarUpdate, requesting_user: User
    ) -> Pillar:
        pillar = get_owned_pillar(db, pillar_id, requesting_user)
        if update_data.weight is not None:
            self._check_sibling_weights(
                db, pillar.objective_id, update_data.weight, exclude_id=pillar.id
            )

        self.crud.update_pillar(db, db_obj=pillar, obj_in=update_data)
        self.aggregator.refresh_objective_progress(db, pillar.objective_id)
        db.commit()
        db.refresh(pillar)
        return pillar

    def delete_pillar(self, db: Session, pillar_id: UUID, requesting_user: User) -> None:
        pillar = get_owned_pillar(db, pillar_id, requesting_user)
        objective_id = pillar.objective_id
        self.crud.delete_pillar(db, db_obj=pillar)
        self.aggregator.refresh_objective_progress(db, objective_id)
        db.commit()


# =====================================================================
# SINGLETON INSTANCE
# =====================================================================

objective_service = ObjectiveService()
