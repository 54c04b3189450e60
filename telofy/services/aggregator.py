# =====================================================================
# SERVICE LAYER - services/aggregator.py
# =====================================================================
"""
Objective aggregation.

Pillar ``progress`` and objective ``progress`` are caches. They are rebuilt
here from tasks and metric values, inside the caller's transaction, and never
written from anywhere else.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from telofy.core.config import settings
from telofy.core.timeutils import utcnow
from telofy.crud.deviation import crud_deviation
from telofy.crud.metric import crud_metric
from telofy.crud.objective import crud_objective
from telofy.crud.task import crud_task
from telofy.models import (
    MANUAL_STATUSES,
    Metric,
    Objective,
    ObjectiveStatus,
    Pillar,
    TargetDirection,
    TaskStatus,
)

logger = logging.getLogger(__name__)


# =====================================================================
# PURE COMPUTATIONS
# =====================================================================


@dataclass(frozen=True)
class PillarProgressInputs:
    """Signals available to a pillar progress rule."""

    tasks_completed: int = 0
    tasks_scheduled: int = 0
    metric_attainment: Optional[float] = None  # mean 0..1 over pillar metrics


ProgressRule = Callable[[PillarProgressInputs], float]


def clamp_progress(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def default_progress_rule(inputs: PillarProgressInputs) -> float:
    """Mean of the task completion ratio and metric attainment, as 0..100."""
    signals = []
    if inputs.tasks_scheduled > 0:
        signals.append(inputs.tasks_completed / inputs.tasks_scheduled)
    if inputs.metric_attainment is not None:
        signals.append(inputs.metric_attainment)
    if not signals:
        return 0.0
    return clamp_progress(100.0 * sum(signals) / len(signals))


def metric_attainment(metric: Metric) -> Optional[float]:
    """How close a metric's cached value is to its target, 0..1."""
    target, current = metric.target, metric.current
    if target is None or current is None:
        return None

    direction = metric.target_direction or TargetDirection.increase

    if direction == TargetDirection.increase:
        if current >= target:
            return 1.0
        if target <= 0:
            return 0.0
        return max(0.0, current / target)

    if direction == TargetDirection.decrease:
        if current <= target:
            return 1.0
        if target <= 0 or current <= 0:
            return 0.0
        return min(1.0, target / current)

    # maintain
    if target == 0:
        return 1.0 if current == 0 else 0.0
    return max(0.0, 1.0 - abs(current - target) / abs(target))


def total_weight(pillars: Iterable[Pillar]) -> float:
    return sum(max(p.weight or 0.0, 0.0) for p in pillars)


def compute_overall_progress(pillars: Iterable[Pillar]) -> float:
    """
    Weighted mean of pillar progress: sum(progress * weight) / sum(weight).

    Zero total weight (or no pillars) yields 0. Weights that do not sum to 1
    are normalized here rather than rejected.
    """
    pillars = list(pillars)
    weight_sum = total_weight(pillars)
    if weight_sum <= 0:
        return 0.0
    weighted = sum((p.progress or 0.0) * max(p.weight or 0.0, 0.0) for p in pillars)
    return clamp_progress(weighted / weight_sum)


def derive_status(current: ObjectiveStatus, has_unresolved: bool) -> ObjectiveStatus:
    """Paused and completed are owner decisions; everything else follows deviations."""
    if current in MANUAL_STATUSES:
        return current
    if has_unresolved:
        return ObjectiveStatus.deviation_detected
    return ObjectiveStatus.on_track


# =====================================================================
# AGGREGATOR
# =====================================================================


class ObjectiveAggregator:
    """Recomputes pillar/objective progress caches and objective status."""

    def __init__(self, progress_rule: ProgressRule = default_progress_rule):
        self.progress_rule = progress_rule

    # -----------------------------------------------------------------
    # Pillars
    # -----------------------------------------------------------------

    def pillar_inputs(
        self, db: Session, pillar: Pillar, now: Optional[datetime] = None
    ) -> PillarProgressInputs:
        now = now or utcnow()
        window_start = now - timedelta(days=settings.PILLAR_PROGRESS_WINDOW_DAYS)

        # skipped tasks stay in the denominator
        tasks = crud_task.get_by_pillar_scheduled_between(
            db, pillar_id=pillar.id, start=window_start, end=now
        )
        completed = sum(1 for task in tasks if task.status == TaskStatus.completed)

        attainments = [
            value
            for value in (
                metric_attainment(metric)
                for metric in crud_metric.get_by_pillar(db, pillar_id=pillar.id)
            )
            if value is not None
        ]
        attainment = sum(attainments) / len(attainments) if attainments else None

        return PillarProgressInputs(
            tasks_completed=completed,
            tasks_scheduled=len(tasks),
            metric_attainment=attainment,
        )

    def refresh_pillar_progress(
        self,
        db: Session,
        pillar_id: Optional[UUID],
        now: Optional[datetime] = None,
        cascade: bool = True,
    ) -> Optional[Pillar]:
        """Recompute one pillar and, by default, its objective."""
        if pillar_id is None:
            return None

        pillar = crud_objective.get_pillar(db, pillar_id)
        if pillar is None:
            # removed by a concurrent delete; nothing left to update
            logger.debug("Pillar %s gone before progress refresh", pillar_id)
            return None

        pillar.progress = clamp_progress(self.progress_rule(self.pillar_inputs(db, pillar, now)))
        db.flush()

        if cascade:
            self.refresh_objective_progress(db, pillar.objective_id)
        return pillar

    # -----------------------------------------------------------------
    # Objectives
    # -----------------------------------------------------------------

    def refresh_objective_progress(self, db: Session, objective_id: UUID) -> Optional[Objective]:
        objective = crud_objective.get(db, objective_id)
        if objective is None:
            logger.debug("Objective %s gone before progress refresh", objective_id)
            return None

        pillars = crud_objective.get_pillars(db, objective_id=objective_id)
        objective.progress = compute_overall_progress(pillars)
        db.flush()
        return objective

    def refresh_all_progress(
        self, db: Session, objective_id: UUID, now: Optional[datetime] = None
    ) -> Optional[Objective]:
        for pillar in crud_objective.get_pillars(db, objective_id=objective_id):
            self.refresh_pillar_progress(db, pillar.id, now=now, cascade=False)
        return self.refresh_objective_progress(db, objective_id)

    def refresh_objective_status(self, db: Session, objective_id: UUID) -> Optional[Objective]:
        objective = crud_objective.get(db, objective_id)
        if objective is None:
            return None

        has_unresolved = crud_deviation.has_unresolved(db, objective_id=objective_id)
        new_status = derive_status(objective.status, has_unresolved)
        if new_status != objective.status:
            logger.info(
                "Objective %s status %s -> %s",
                objective.id,
                objective.status.value,
                new_status.value,
            )
            crud_objective.set_status(db, db_obj=objective, status=new_status)
        return objective

    # -----------------------------------------------------------------
    # Reporting
    # -----------------------------------------------------------------

    def progress_report(self, objective: Objective, pillars: List[Pillar]) -> dict:
        weight_sum = total_weight(pillars)
        return {
            "objective_id": objective.id,
            "overall_progress": compute_overall_progress(pillars),
            "total_weight": weight_sum,
            "weights_normalized": abs(weight_sum - 1.0) <= settings.PILLAR_WEIGHT_TOLERANCE,
            "status": objective.status,
            "pillars": [
                {"id": p.id, "name": p.name, "weight": p.weight, "progress": p.progress}
                for p in pillars
            ],
        }


# =====================================================================
# SINGLETON INSTANCE
# =====================================================================

objective_aggregator = ObjectiveAggregator()
