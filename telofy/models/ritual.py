# models/ritual.py

import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Integer, Boolean, Text, JSON, ForeignKey, Uuid, Enum as SqlEnum
from sqlalchemy.orm import relationship
from telofy.core.config import Base


class RitualFrequency(str, enum.Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class Ritual(Base):
    __tablename__ = "ritual"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    objective_id = Column(Uuid, ForeignKey("objective.id", ondelete="CASCADE"), nullable=False, index=True)
    pillar_id = Column(Uuid, ForeignKey("pillar.id", ondelete="SET NULL"), nullable=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    frequency = Column(SqlEnum(RitualFrequency, name="ritual_frequency"), nullable=False,
                       default=RitualFrequency.daily)
    days_of_week = Column(JSON, nullable=True)  # [0..6], 0=Sun
    times_per_period = Column(Integer, nullable=False, default=1)
    estimated_minutes = Column(Integer, nullable=True)

    # ---- Caches rebuilt from completions ----
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    # set when the cached streak drops, cleared once the deviation sweep has seen it
    streak_break_pending = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    objective = relationship("Objective", back_populates="rituals")
    completions = relationship(
        "RitualCompletion",
        back_populates="ritual",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RitualCompletion.completed_at",
    )


class RitualCompletion(Base):
    __tablename__ = "ritual_completion"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    ritual_id = Column(Uuid, ForeignKey("ritual.id", ondelete="CASCADE"), nullable=False, index=True)

    completed_at = Column(DateTime(timezone=True), nullable=False, index=True,
                          default=lambda: datetime.now(timezone.utc))
    note = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    ritual = relationship("Ritual", back_populates="completions")
