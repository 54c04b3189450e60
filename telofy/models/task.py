# models/task.py

import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, Uuid, Enum as SqlEnum
from sqlalchemy.orm import relationship
from telofy.core.config import Base


class TaskStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    skipped = "skipped"


TERMINAL_TASK_STATUSES = {TaskStatus.completed, TaskStatus.skipped}


class Task(Base):
    __tablename__ = "task"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    objective_id = Column(Uuid, ForeignKey("objective.id", ondelete="CASCADE"), nullable=False, index=True)
    pillar_id = Column(Uuid, ForeignKey("pillar.id", ondelete="SET NULL"), nullable=True)
    ritual_id = Column(Uuid, ForeignKey("ritual.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    why_it_matters = Column(Text, nullable=True)

    scheduled_at = Column(DateTime(timezone=True), nullable=False, index=True)
    duration_minutes = Column(Integer, nullable=False, default=30)

    status = Column(SqlEnum(TaskStatus, name="task_status"), nullable=False, default=TaskStatus.pending)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    skipped_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    objective = relationship("Objective", back_populates="tasks")
