# models/user.py

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Uuid
from sqlalchemy.orm import relationship
from telofy.core.config import Base


class User(Base):
    __tablename__ = "user"

    # ---- Base fields ----
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    image = Column(String(1024), nullable=True)
    password_hash = Column(String(255), nullable=False)

    # ---- Preferences ----
    timezone = Column(String(64), default="America/Los_Angeles")
    onboarding_completed = Column(Boolean, default=False)
    notification_enabled = Column(Boolean, default=True)
    notification_advance_minutes = Column(Integer, default=5)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))
    password_changed_at = Column(DateTime(timezone=True), nullable=True)

    # ---- Relationships ----
    objectives = relationship("Objective", back_populates="user", cascade="all, delete-orphan")
