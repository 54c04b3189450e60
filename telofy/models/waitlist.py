# models/waitlist.py

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Uuid
from telofy.core.config import Base


class WaitlistEntry(Base):
    __tablename__ = "waitlist"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
