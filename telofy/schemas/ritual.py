# schemas/ritual.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from telofy.core.timeutils import not_in_future
from telofy.models.ritual import RitualFrequency


def _check_days_of_week(v: Optional[List[int]]) -> Optional[List[int]]:
    if v is None:
        return v
    if not v:
        raise ValueError("days_of_week must not be empty when provided")
    if any(day < 0 or day > 6 for day in v):
        raise ValueError("days_of_week values must be between 0 (Sun) and 6 (Sat)")
    if len(set(v)) != len(v):
        raise ValueError("days_of_week must not contain duplicates")
    return sorted(v)


class RitualBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    frequency: RitualFrequency = RitualFrequency.daily
    days_of_week: Optional[List[int]] = Field(None, description="0=Sun ... 6=Sat")
    times_per_period: int = Field(1, ge=1)
    estimated_minutes: Optional[int] = Field(None, ge=0)
    pillar_id: Optional[UUID] = None

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        return _check_days_of_week(v)


class RitualCreate(RitualBase):
    pass


class RitualUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    frequency: Optional[RitualFrequency] = None
    days_of_week: Optional[List[int]] = None
    times_per_period: Optional[int] = Field(None, ge=1)
    estimated_minutes: Optional[int] = Field(None, ge=0)
    pillar_id: Optional[UUID] = None

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        return _check_days_of_week(v)


class RitualOut(RitualBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    objective_id: UUID
    current_streak: int
    longest_streak: int
    created_at: datetime
    updated_at: datetime


class RitualCompletionCreate(BaseModel):
    completed_at: Optional[datetime] = Field(None, description="Defaults to now")
    note: Optional[str] = None

    @field_validator("completed_at")
    @classmethod
    def normalize_completed_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return not_in_future(v)


class RitualCompletionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    ritual_id: UUID
    completed_at: datetime
    note: Optional[str] = None
    created_at: datetime
