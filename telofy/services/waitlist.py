# services/waitlist.py
import logging
from sqlalchemy.orm import Session

from telofy.core.exceptions import ConflictError, DatabaseConflictError
from telofy.crud.waitlist import crud_waitlist
from telofy.models.waitlist import WaitlistEntry

logger = logging.getLogger(__name__)


class WaitlistService:
    def __init__(self):
        self.crud = crud_waitlist

    def join(self, db: Session, email: str) -> WaitlistEntry:
        if self.crud.get_by_email(db, email=email):
            raise ConflictError("Email is already on the waitlist")
        try:
            entry = self.crud.create(db, email=email)
        except DatabaseConflictError as exc:
            # lost a race with a concurrent signup
            raise ConflictError("Email is already on the waitlist") from exc
        db.commit()
        db.refresh(entry)
        logger.info("Waitlist signup %s", entry.id)
        return entry


waitlist_service = WaitlistService()
