# models/metric.py

import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Float, Text, ForeignKey, Uuid, Enum as SqlEnum
from sqlalchemy.orm import relationship
from telofy.core.config import Base


class MetricType(str, enum.Enum):
    number = "number"
    boolean = "boolean"
    duration = "duration"
    rating = "rating"


class TargetDirection(str, enum.Enum):
    increase = "increase"
    decrease = "decrease"
    maintain = "maintain"


class Metric(Base):
    __tablename__ = "metric"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    objective_id = Column(Uuid, ForeignKey("objective.id", ondelete="CASCADE"), nullable=False, index=True)
    # Weak reference: detached, never deleted, when the pillar goes away
    pillar_id = Column(Uuid, ForeignKey("pillar.id", ondelete="SET NULL"), nullable=True)

    name = Column(String(255), nullable=False)
    unit = Column(String(64), nullable=False)
    type = Column(SqlEnum(MetricType, name="metric_type"), nullable=False, default=MetricType.number)

    target = Column(Float, nullable=True)
    target_direction = Column(SqlEnum(TargetDirection, name="target_direction"), nullable=True)
    current = Column(Float, nullable=True)  # cached value of the latest entry

    source = Column(String(64), nullable=False, default="manual")

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    objective = relationship("Objective", back_populates="metrics")
    entries = relationship(
        "MetricEntry",
        back_populates="metric",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MetricEntry.recorded_at",
    )


class MetricEntry(Base):
    __tablename__ = "metric_entry"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    metric_id = Column(Uuid, ForeignKey("metric.id", ondelete="CASCADE"), nullable=False, index=True)

    value = Column(Float, nullable=False)
    note = Column(Text, nullable=True)
    recorded_at = Column(DateTime(timezone=True), nullable=False, index=True,
                         default=lambda: datetime.now(timezone.utc))

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    metric = relationship("Metric", back_populates="entries")
