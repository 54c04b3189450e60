# schemas/deviation.py
from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from telofy.models.deviation import DeviationType


class DeviationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    objective_id: UUID
    task_id: Optional[UUID] = None
    ritual_id: Optional[UUID] = None
    metric_id: Optional[UUID] = None
    type: DeviationType
    detected_at: datetime
    resolved_at: Optional[datetime] = None
    ai_suggestion: Optional[str] = None


class SweepFailureOut(BaseModel):
    objective_id: UUID
    error: str


class SweepReportOut(BaseModel):
    objectives_scanned: int
    deviations_created: int
    created: List[DeviationOut] = []
    failures: List[SweepFailureOut] = []
