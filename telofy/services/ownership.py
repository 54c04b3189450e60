# services/ownership.py
"""Lookups that also enforce that the requesting user owns the row."""

from typing import Optional
from uuid import UUID
from sqlalchemy.orm import Session

from telofy.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from telofy.crud.objective import crud_objective
from telofy.models import Objective, Pillar, User


def get_owned_objective(db: Session, objective_id: UUID, user: User) -> Objective:
    objective = crud_objective.get(db, objective_id)
    if not objective:
        raise NotFoundError("Objective not found")
    if objective.user_id != user.id:
        raise PermissionDeniedError("You don't have access to this objective")
    return objective


def get_owned_pillar(db: Session, pillar_id: UUID, user: User) -> Pillar:
    pillar = crud_objective.get_pillar(db, pillar_id)
    if not pillar:
        raise NotFoundError("Pillar not found")
    get_owned_objective(db, pillar.objective_id, user)
    return pillar


def check_pillar_reference(db: Session, objective: Objective, pillar_id: Optional[UUID]) -> None:
    """A weak pillar reference must point inside the same objective."""
    if pillar_id is None:
        return
    pillar = crud_objective.get_pillar(db, pillar_id)
    if not pillar or pillar.objective_id != objective.id:
        raise ValidationError("Pillar does not belong to this objective")
