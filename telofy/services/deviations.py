# =====================================================================
# SERVICE LAYER - services/deviations.py
# =====================================================================
"""
Deviation detection.

A sweep walks every objective that is not paused or completed and flags
missed tasks, missed ritual periods, broken streaks and regressing metrics.
Each objective is scanned inside its own savepoint so a failure in one does
not roll back the others.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from telofy.core.config import settings
from telofy.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from telofy.core.timeutils import as_utc, utcnow
from telofy.crud.deviation import crud_deviation
from telofy.crud.metric import crud_metric
from telofy.crud.objective import crud_objective
from telofy.crud.ritual import crud_ritual
from telofy.crud.task import crud_task
from telofy.models import (
    MANUAL_STATUSES,
    Deviation,
    DeviationType,
    Metric,
    Objective,
    Ritual,
    TargetDirection,
    User,
)
from telofy.services.aggregator import objective_aggregator
from telofy.services.ownership import get_owned_objective
from telofy.services.streaks import streak_tracker
from telofy.services.suggestions import SuggestionGenerator, default_suggestion_generator

logger = logging.getLogger(__name__)


@dataclass
class SweepFailure:
    objective_id: UUID
    error: str


@dataclass
class SweepReport:
    objectives_scanned: int = 0
    created: List[Deviation] = field(default_factory=list)
    failures: List[SweepFailure] = field(default_factory=list)

    @property
    def deviations_created(self) -> int:
        return len(self.created)


def is_regression(
    direction: TargetDirection,
    previous: float,
    latest: float,
    target: Optional[float] = None,
    tolerance: float = 0.05,
) -> bool:
    """True when ``latest`` moved against ``direction`` by more than the allowance."""
    allowance = tolerance * max(abs(previous), 1.0)
    if direction == TargetDirection.increase:
        return previous - latest > allowance
    if direction == TargetDirection.decrease:
        return latest - previous > allowance
    # maintain
    if target is None:
        return abs(latest - previous) > allowance
    return abs(latest - target) - abs(previous - target) > allowance


class DeviationDetector:
    """Finds deviations and manages their resolution."""

    def __init__(self, suggestion_generator: Optional[SuggestionGenerator] = default_suggestion_generator):
        self.suggestion_generator = suggestion_generator
        self.aggregator = objective_aggregator
        self.tracker = streak_tracker

    # =====================================================================
    # SWEEP
    # =====================================================================

    def sweep(
        self, db: Session, now: Optional[datetime] = None, user_id: Optional[UUID] = None
    ) -> SweepReport:
        now = as_utc(now) if now else utcnow()
        report = SweepReport()
        objective_ids = [o.id for o in crud_objective.get_active(db, user_id=user_id)]

        for objective_id in objective_ids:
            report.objectives_scanned += 1
            try:
                with db.begin_nested():
                    created = self.scan_objective(db, objective_id, now)
            except Exception as exc:
                logger.exception("Deviation sweep failed for objective %s", objective_id)
                report.failures.append(SweepFailure(objective_id=objective_id, error=str(exc)))
                continue
            report.created.extend(created)

        db.commit()
        for deviation in report.created:
            db.refresh(deviation)

        logger.info(
            "Deviation sweep scanned %s objective(s), created %s, failed %s",
            report.objectives_scanned,
            report.deviations_created,
            len(report.failures),
        )
        return report

    def scan_objective(self, db: Session, objective_id: UUID, now: datetime) -> List[Deviation]:
        objective = crud_objective.get(db, objective_id)
        if objective is None or objective.status in MANUAL_STATUSES:
            return []

        created: List[Deviation] = []
        created.extend(self._check_tasks(db, objective, now))
        for ritual in crud_ritual.get_by_objective(db, objective_id=objective.id):
            created.extend(self._check_ritual(db, objective, ritual, now))
        for metric in crud_metric.get_by_objective(db, objective_id=objective.id):
            created.extend(self._check_metric(db, objective, metric, now))

        for deviation in created:
            self._attach_suggestion(db, deviation)

        self.aggregator.refresh_all_progress(db, objective.id, now=now)
        self.aggregator.refresh_objective_status(db, objective.id)
        return created

    # -----------------------------------------------------------------
    # Checks
    # -----------------------------------------------------------------

    def _flag(
        self, db: Session, objective: Objective, deviation_type: DeviationType, now: datetime, **subject
    ) -> Deviation:
        deviation = crud_deviation.create(
            db,
            user_id=objective.user_id,
            objective_id=objective.id,
            deviation_type=deviation_type,
            detected_at=now,
            **subject,
        )
        logger.info("Deviation %s flagged on objective %s (%s)", deviation_type.value, objective.id, subject)
        return deviation

    def _check_tasks(self, db: Session, objective: Objective, now: datetime) -> List[Deviation]:
        created = []
        for task in crud_task.get_pending_by_objective(db, objective_id=objective.id):
            deadline = as_utc(task.scheduled_at) + timedelta(minutes=task.duration_minutes or 0)
            if deadline >= now:
                continue
            # a task can only be missed once
            if crud_deviation.find_for_subject(
                db, deviation_type=DeviationType.missed_task, task_id=task.id
            ):
                continue
            created.append(self._flag(db, objective, DeviationType.missed_task, now, task_id=task.id))
        return created

    def _check_ritual(
        self, db: Session, objective: Objective, ritual: Ritual, now: datetime
    ) -> List[Deviation]:
        created = []
        schedule = self.tracker.schedule_for(ritual)
        completions = crud_ritual.get_completion_times(db, ritual_id=ritual.id)

        # the break may already have been recorded by a completion or a manual refresh
        self.tracker.refresh_ritual_streaks(db, ritual, now=now)
        if ritual.streak_break_pending:
            if not crud_deviation.find_for_subject(
                db, deviation_type=DeviationType.streak_broken, ritual_id=ritual.id, unresolved_only=True
            ):
                created.append(
                    self._flag(db, objective, DeviationType.streak_broken, now, ritual_id=ritual.id)
                )
            ritual.streak_break_pending = False
            db.flush()

        outcome = schedule.last_closed_period(completions, now=now)
        if outcome is None or outcome.qualified:
            return created
        if outcome.start < schedule.local_date(ritual.created_at):
            return created

        period_end = schedule.period_end_utc(outcome.start)
        for existing in crud_deviation.find_for_subject(
            db, deviation_type=DeviationType.missed_ritual, ritual_id=ritual.id
        ):
            if existing.resolved_at is None or as_utc(existing.detected_at) >= period_end:
                return created
        created.append(self._flag(db, objective, DeviationType.missed_ritual, now, ritual_id=ritual.id))
        return created

    def _check_metric(
        self, db: Session, objective: Objective, metric: Metric, now: datetime
    ) -> List[Deviation]:
        if metric.target_direction is None:
            return []
        entries = crud_metric.get_latest_entries(db, metric_id=metric.id, count=2)
        if len(entries) < 2:
            return []
        latest, previous = entries

        if not is_regression(
            metric.target_direction,
            previous.value,
            latest.value,
            target=metric.target,
            tolerance=settings.METRIC_REGRESSION_TOLERANCE,
        ):
            return []

        latest_at = as_utc(latest.recorded_at)
        for existing in crud_deviation.find_for_subject(
            db, deviation_type=DeviationType.metric_regressed, metric_id=metric.id
        ):
            if existing.resolved_at is None or as_utc(existing.detected_at) >= latest_at:
                return []
        return [self._flag(db, objective, DeviationType.metric_regressed, now, metric_id=metric.id)]

    def _attach_suggestion(self, db: Session, deviation: Deviation) -> None:
        if self.suggestion_generator is None:
            return
        try:
            deviation.ai_suggestion = self.suggestion_generator.suggest(deviation)
        except Exception:
            logger.warning("Suggestion generator failed for deviation %s", deviation.id, exc_info=True)
            return
        db.flush()

    # =====================================================================
    # QUERIES / RESOLUTION
    # =====================================================================

    def get_owned_deviation(self, db: Session, deviation_id: UUID, user: User) -> Deviation:
        deviation = crud_deviation.get(db, deviation_id)
        if not deviation:
            raise NotFoundError("Deviation not found")
        if deviation.user_id != user.id:
            raise PermissionDeniedError("You don't have access to this deviation")
        return deviation

    def list_deviations(
        self,
        db: Session,
        requesting_user: User,
        objective_id: Optional[UUID] = None,
        unresolved_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Deviation]:
        if objective_id is not None:
            get_owned_objective(db, objective_id, requesting_user)
        return crud_deviation.get_multi_by_user(
            db,
            user_id=requesting_user.id,
            objective_id=objective_id,
            unresolved_only=unresolved_only,
            limit=limit,
            offset=offset,
        )

    def resolve(self, db: Session, deviation_id: UUID, requesting_user: User) -> Deviation:
        deviation = self.get_owned_deviation(db, deviation_id, requesting_user)
        if deviation.resolved_at is not None:
            raise ConflictError("Deviation is already resolved")

        crud_deviation.resolve(db, db_obj=deviation, resolved_at=utcnow())
        self.aggregator.refresh_objective_status(db, deviation.objective_id)
        db.commit()
        db.refresh(deviation)
        return deviation


# =====================================================================
# SINGLETON INSTANCE
# =====================================================================

deviation_detector = DeviationDetector()
