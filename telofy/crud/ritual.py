# =====================================================================
# CRUD LAYER - crud/ritual.py
# =====================================================================

from typing import Optional, List
from uuid import UUID
from datetime import datetime, timezone
from sqlalchemy.orm import Session

from telofy.models.ritual import Ritual, RitualCompletion
from telofy.schemas.ritual import RitualCreate, RitualUpdate


class CRUDRitual:
    """CRUD operations for Ritual and its append-only completions."""

    # =====================================================================
    # RITUALS
    # =====================================================================

    def create(self, db: Session, *, objective_id: UUID, obj_in: RitualCreate) -> Ritual:
        db_obj = Ritual(objective_id=objective_id, **obj_in.model_dump())
        db.add(db_obj)
        db.flush()
        return db_obj

    def get(self, db: Session, id: UUID) -> Optional[Ritual]:
        return db.query(Ritual).filter(Ritual.id == id).first()

    def get_for_update(self, db: Session, id: UUID) -> Optional[Ritual]:
        """Row-locked read so concurrent completions serialize their streak update."""
        return (
            db.query(Ritual)
            .filter(Ritual.id == id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def get_by_objective(self, db: Session, *, objective_id: UUID) -> List[Ritual]:
        return (
            db.query(Ritual)
            .filter(Ritual.objective_id == objective_id)
            .order_by(Ritual.created_at.asc())
            .all()
        )

    def update(self, db: Session, *, db_obj: Ritual, obj_in: RitualUpdate) -> Ritual:
        update_data = obj_in.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        db_obj.updated_at = datetime.now(timezone.utc)
        db.flush()
        return db_obj

    def delete(self, db: Session, *, db_obj: Ritual) -> None:
        db.delete(db_obj)
        db.flush()

    # =====================================================================
    # COMPLETIONS (append-only)
    # =====================================================================

    def add_completion(
        self, db: Session, *, ritual_id: UUID, completed_at: datetime, note: Optional[str]
    ) -> RitualCompletion:
        db_obj = RitualCompletion(ritual_id=ritual_id, completed_at=completed_at, note=note)
        db.add(db_obj)
        db.flush()
        return db_obj

    def get_completions(
        self, db: Session, *, ritual_id: UUID, limit: Optional[int] = None, offset: int = 0
    ) -> List[RitualCompletion]:
        query = (
            db.query(RitualCompletion)
            .filter(RitualCompletion.ritual_id == ritual_id)
            .order_by(RitualCompletion.completed_at.asc(), RitualCompletion.created_at.asc())
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get_completion_times(self, db: Session, *, ritual_id: UUID) -> List[datetime]:
        rows = (
            db.query(RitualCompletion.completed_at)
            .filter(RitualCompletion.ritual_id == ritual_id)
            .order_by(RitualCompletion.completed_at.asc())
            .all()
        )
        return [row[0] for row in rows]


crud_ritual = CRUDRitual()
