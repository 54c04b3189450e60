# =====================================================================
# SERVICE LAYER - services/rituals.py
# =====================================================================

import logging
from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from telofy.core.exceptions import NotFoundError
from telofy.core.timeutils import utcnow
from telofy.crud.ritual import crud_ritual
from telofy.models import Ritual, RitualCompletion, User
from telofy.schemas.ritual import RitualCompletionCreate, RitualCreate, RitualUpdate
from telofy.services.ownership import check_pillar_reference, get_owned_objective
from telofy.services.streaks import streak_tracker
from telofy.services.transactions import run_serialized

logger = logging.getLogger(__name__)

# Changing any of these changes how past completions qualify
SCHEDULE_FIELDS = {"frequency", "days_of_week", "times_per_period"}


class RitualService:
    """Service layer for rituals and their completion log."""

    def __init__(self):
        self.crud = crud_ritual
        self.tracker = streak_tracker

    def get_owned_ritual(self, db: Session, ritual_id: UUID, user: User) -> Ritual:
        ritual = self.crud.get(db, ritual_id)
        if not ritual:
            raise NotFoundError("Ritual not found")
        get_owned_objective(db, ritual.objective_id, user)
        return ritual

    # =====================================================================
    # RITUALS
    # =====================================================================

    def create_ritual(
        self, db: Session, objective_id: UUID, ritual_data: RitualCreate, requesting_user: User
    ) -> Ritual:
        objective = get_owned_objective(db, objective_id, requesting_user)
        check_pillar_reference(db, objective, ritual_data.pillar_id)

        ritual = self.crud.create(db, objective_id=objective.id, obj_in=ritual_data)
        db.commit()
        db.refresh(ritual)
        return ritual

    def list_rituals(self, db: Session, objective_id: UUID, requesting_user: User) -> List[Ritual]:
        objective = get_owned_objective(db, objective_id, requesting_user)
        return self.crud.get_by_objective(db, objective_id=objective.id)

    def get_ritual(self, db: Session, ritual_id: UUID, requesting_user: User) -> Ritual:
        return self.get_owned_ritual(db, ritual_id, requesting_user)

    def update_ritual(
        self, db: Session, ritual_id: UUID, update_data: RitualUpdate, requesting_user: User
    ) -> Ritual:
        ritual = self.get_owned_ritual(db, ritual_id, requesting_user)
        fields = update_data.model_dump(exclude_unset=True)
        if "pillar_id" in fields:
            check_pillar_reference(db, ritual.objective, fields["pillar_id"])

        self.crud.update(db, db_obj=ritual, obj_in=update_data)
        if SCHEDULE_FIELDS & fields.keys():
            self.tracker.refresh_ritual_streaks(db, ritual, rebaseline=True)
        db.commit()
        db.refresh(ritual)
        return ritual

    def delete_ritual(self, db: Session, ritual_id: UUID, requesting_user: User) -> None:
        ritual = self.get_owned_ritual(db, ritual_id, requesting_user)
        self.crud.delete(db, db_obj=ritual)
        db.commit()

    # =====================================================================
    # COMPLETIONS
    # =====================================================================

    def record_completion(
        self,
        db: Session,
        ritual_id: UUID,
        completion_data: RitualCompletionCreate,
        requesting_user: User,
    ) -> RitualCompletion:
        """
        Append a completion and refresh the streak caches atomically.

        The ritual row is read ``FOR UPDATE`` so two completions for the same
        ritual recompute one after the other, each seeing the other's insert.
        """
        ritual = self.get_owned_ritual(db, ritual_id, requesting_user)
        completed_at = completion_data.completed_at or utcnow()

        def _append() -> RitualCompletion:
            locked = self.crud.get_for_update(db, ritual.id)
            if locked is None:
                raise NotFoundError("Ritual not found")
            completion = self.crud.add_completion(
                db, ritual_id=locked.id, completed_at=completed_at, note=completion_data.note
            )
            self.tracker.refresh_ritual_streaks(db, locked)
            return completion

        completion = run_serialized(db, _append, label=f"completion for ritual {ritual.id}")
        db.refresh(completion)
        return completion

    def list_completions(
        self,
        db: Session,
        ritual_id: UUID,
        requesting_user: User,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[RitualCompletion]:
        ritual = self.get_owned_ritual(db, ritual_id, requesting_user)
        return self.crud.get_completions(db, ritual_id=ritual.id, limit=limit, offset=offset)

    def refresh_streaks(self, db: Session, ritual_id: UUID, requesting_user: User) -> Ritual:
        """Lazy recompute: streaks lapse with time even without new completions."""
        ritual = self.get_owned_ritual(db, ritual_id, requesting_user)
        self.tracker.refresh_ritual_streaks(db, ritual)
        db.commit()
        db.refresh(ritual)
        return ritual


# =====================================================================
# SINGLETON INSTANCE
# =====================================================================

ritual_service = RitualService()
