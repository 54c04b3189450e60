# schemas/task.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID

from telofy.core.timeutils import as_utc
from telofy.models.task import TaskStatus


class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    why_it_matters: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: int = Field(30, ge=1, le=1440)
    pillar_id: Optional[UUID] = None
    ritual_id: Optional[UUID] = None

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, v: datetime) -> datetime:
        return as_utc(v)


class TaskCreate(TaskBase):
    pass


class TaskUpdate(BaseModel):
    """Only open tasks can be edited."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    why_it_matters: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, ge=1, le=1440)

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class TaskSkipRequest(BaseModel):
    reason: Optional[str] = None


class TaskCompleteRequest(BaseModel):
    completed_at: Optional[datetime] = None

    @field_validator("completed_at")
    @classmethod
    def normalize_completed_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class TaskOut(TaskBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    objective_id: UUID
    status: TaskStatus
    completed_at: Optional[datetime] = None
    skipped_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
