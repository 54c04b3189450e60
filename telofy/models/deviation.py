# models/deviation.py

import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Text, ForeignKey, Uuid, Enum as SqlEnum
from sqlalchemy.orm import relationship
from telofy.core.config import Base


class DeviationType(str, enum.Enum):
    missed_task = "missed_task"
    missed_ritual = "missed_ritual"
    streak_broken = "streak_broken"
    metric_regressed = "metric_regressed"


class Deviation(Base):
    __tablename__ = "deviation"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    objective_id = Column(Uuid, ForeignKey("objective.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = Column(Uuid, ForeignKey("task.id", ondelete="SET NULL"), nullable=True)
    ritual_id = Column(Uuid, ForeignKey("ritual.id", ondelete="SET NULL"), nullable=True)
    metric_id = Column(Uuid, ForeignKey("metric.id", ondelete="SET NULL"), nullable=True)

    type = Column(SqlEnum(DeviationType, name="deviation_type"), nullable=False)
    detected_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    ai_suggestion = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    objective = relationship("Objective", back_populates="deviations")

    # Weak references: lookups only, the FK nulls them out on delete
    task = relationship("Task")
    ritual = relationship("Ritual")
    metric = relationship("Metric")
