# schemas/metric.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID

from telofy.core.timeutils import not_in_future
from telofy.models.metric import MetricType, TargetDirection


class MetricBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    unit: str = Field(..., min_length=1, max_length=64)
    type: MetricType = MetricType.number
    target: Optional[float] = None
    target_direction: Optional[TargetDirection] = None
    source: str = Field("manual", max_length=64)
    pillar_id: Optional[UUID] = None


class MetricCreate(MetricBase):
    pass


class MetricUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    unit: Optional[str] = Field(None, min_length=1, max_length=64)
    target: Optional[float] = None
    target_direction: Optional[TargetDirection] = None
    source: Optional[str] = Field(None, max_length=64)
    pillar_id: Optional[UUID] = None


class MetricOut(MetricBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    objective_id: UUID
    current: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class MetricEntryCreate(BaseModel):
    value: float
    note: Optional[str] = None
    recorded_at: Optional[datetime] = Field(None, description="Defaults to now")

    @field_validator("recorded_at")
    @classmethod
    def normalize_recorded_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return not_in_future(v)


class MetricEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    metric_id: UUID
    value: float
    note: Optional[str] = None
    recorded_at: datetime
    created_at: datetime
