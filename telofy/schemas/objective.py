# schemas/objective.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from telofy.core.config import settings
from telofy.core.timeutils import as_utc
from telofy.models.objective import ObjectiveCategory, ObjectiveStatus


# =====================================================================
# PILLAR SCHEMAS
# =====================================================================

class PillarBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    weight: float = Field(0.25, ge=0, le=1, description="Share of the objective (0-1)")


class PillarCreate(PillarBase):
    """Progress is derived, so it is never accepted as input."""
    pass


class PillarUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0, le=1)


class PillarOut(PillarBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    objective_id: UUID
    progress: float
    created_at: datetime
    updated_at: datetime


# =====================================================================
# OBJECTIVE SCHEMAS
# =====================================================================

class ObjectiveBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: ObjectiveCategory
    description: Optional[str] = None
    target_outcome: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    daily_commitment_minutes: int = Field(60, ge=0, le=1440)
    priority: int = Field(1, ge=1)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class ObjectiveCreate(ObjectiveBase):
    """Objective with optional inline pillars (weights must sum to 1.0)."""
    pillars: List[PillarCreate] = Field(default_factory=list)

    @field_validator("pillars")
    @classmethod
    def validate_pillar_weights(cls, v: List[PillarCreate]) -> List[PillarCreate]:
        if v:
            total = sum(p.weight for p in v)
            if abs(total - 1.0) > settings.PILLAR_WEIGHT_TOLERANCE:
                raise ValueError("Pillar weights must sum to 1.0")
        return v


class ObjectiveUpdate(BaseModel):
    """Status is changed through the dedicated status endpoint."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[ObjectiveCategory] = None
    description: Optional[str] = None
    target_outcome: Optional[str] = None
    end_date: Optional[datetime] = None
    daily_commitment_minutes: Optional[int] = Field(None, ge=0, le=1440)
    priority: Optional[int] = Field(None, ge=1)

    @field_validator("end_date")
    @classmethod
    def normalize_end_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class ObjectiveStatusUpdate(BaseModel):
    status: ObjectiveStatus

    @field_validator("status")
    @classmethod
    def validate_manual_status(cls, v: ObjectiveStatus) -> ObjectiveStatus:
        if v == ObjectiveStatus.deviation_detected:
            raise ValueError("deviation_detected is set by the deviation detector only")
        return v


class ObjectiveOut(ObjectiveBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    start_date: datetime
    status: ObjectiveStatus
    is_paused: bool = False
    progress: float
    created_at: datetime
    updated_at: datetime


class ObjectiveDetail(ObjectiveOut):
    pillars: List[PillarOut] = []


class PillarProgressOut(BaseModel):
    id: UUID
    name: str
    weight: float
    progress: float


class ObjectiveProgressOut(BaseModel):
    objective_id: UUID
    overall_progress: float
    total_weight: float
    weights_normalized: bool
    status: ObjectiveStatus
    pillars: List[PillarProgressOut]
