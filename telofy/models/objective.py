# models/objective.py

import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Boolean, DateTime, Integer, Float, Text, ForeignKey, Uuid, Enum as SqlEnum
)
from sqlalchemy.orm import relationship
from telofy.core.config import Base


class ObjectiveStatus(str, enum.Enum):
    on_track = "on_track"
    deviation_detected = "deviation_detected"
    paused = "paused"
    completed = "completed"


class ObjectiveCategory(str, enum.Enum):
    career = "career"
    fitness = "fitness"
    health = "health"
    learning = "learning"
    finance = "finance"
    relationships = "relationships"
    creative = "creative"
    other = "other"


# Owner-controlled states win over automatic transitions
MANUAL_STATUSES = {ObjectiveStatus.paused, ObjectiveStatus.completed}


class Objective(Base):
    __tablename__ = "objective"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    category = Column(SqlEnum(ObjectiveCategory, name="objective_category"), nullable=False)
    description = Column(Text, nullable=True)
    target_outcome = Column(Text, nullable=True)

    # ---- Timeline ----
    start_date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    end_date = Column(DateTime(timezone=True), nullable=True)
    daily_commitment_minutes = Column(Integer, default=60)

    # ---- Status ----
    status = Column(
        SqlEnum(ObjectiveStatus, name="objective_status"),
        nullable=False,
        default=ObjectiveStatus.on_track,
    )
    priority = Column(Integer, default=1)
    is_paused = Column(Boolean, default=False)
    progress = Column(Float, nullable=False, default=0.0)  # cached weighted pillar progress

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    # ---- Relationships ----
    user = relationship("User", back_populates="objectives")
    pillars = relationship("Pillar", back_populates="objective", cascade="all, delete-orphan",
                           order_by="Pillar.created_at")
    metrics = relationship("Metric", back_populates="objective", cascade="all, delete-orphan")
    rituals = relationship("Ritual", back_populates="objective", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="objective", cascade="all, delete-orphan")
    deviations = relationship("Deviation", back_populates="objective", cascade="all, delete-orphan")


class Pillar(Base):
    __tablename__ = "pillar"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    objective_id = Column(Uuid, ForeignKey("objective.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    weight = Column(Float, nullable=False, default=0.25)  # 0-1
    progress = Column(Float, nullable=False, default=0.0)  # 0-100, derived

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    objective = relationship("Objective", back_populates="pillars")
