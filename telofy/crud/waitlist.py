# crud/waitlist.py
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from telofy.core.exceptions import DatabaseConflictError
from telofy.models.waitlist import WaitlistEntry


class CRUDWaitlist:
    """Insert-or-conflict storage for waitlist emails."""

    def get_by_email(self, db: Session, email: str) -> Optional[WaitlistEntry]:
        return db.query(WaitlistEntry).filter(WaitlistEntry.email == email).first()

    def create(self, db: Session, *, email: str) -> WaitlistEntry:
        db_obj = WaitlistEntry(email=email)
        db.add(db_obj)
        try:
            db.flush()
        except IntegrityError as exc:
            db.rollback()
            raise DatabaseConflictError(f"{email} is already on the waitlist") from exc
        return db_obj


crud_waitlist = CRUDWaitlist()
