"""Progress aggregation: pure rules plus the cache refresh path."""

from datetime import timedelta

import pytest

from telofy.core.timeutils import utcnow
from telofy.crud.objective import crud_objective
from telofy.models import Metric, ObjectiveStatus, Pillar, TargetDirection
from telofy.schemas.task import TaskCreate
from telofy.services.aggregator import (
    PillarProgressInputs,
    compute_overall_progress,
    default_progress_rule,
    derive_status,
    metric_attainment,
)
from telofy.services.objectives import objective_service
from telofy.services.tasks import task_service


class TestOverallProgress:
    def test_get_promoted_scenario(self):
        pillars = [Pillar(weight=0.6, progress=80), Pillar(weight=0.4, progress=40)]
        assert compute_overall_progress(pillars) == pytest.approx(64.0)

    def test_zero_total_weight_is_zero(self):
        pillars = [Pillar(weight=0.0, progress=90), Pillar(weight=0.0, progress=10)]
        assert compute_overall_progress(pillars) == 0.0

    def test_no_pillars_is_zero(self):
        assert compute_overall_progress([]) == 0.0

    def test_unnormalized_weights_are_normalized(self):
        pillars = [Pillar(weight=0.3, progress=80), Pillar(weight=0.2, progress=40)]
        assert compute_overall_progress(pillars) == pytest.approx(64.0)


class TestProgressRule:
    def test_no_signals(self):
        assert default_progress_rule(PillarProgressInputs()) == 0.0

    def test_tasks_only(self):
        inputs = PillarProgressInputs(tasks_completed=3, tasks_scheduled=4)
        assert default_progress_rule(inputs) == pytest.approx(75.0)

    def test_tasks_and_metrics_are_averaged(self):
        inputs = PillarProgressInputs(tasks_completed=1, tasks_scheduled=2, metric_attainment=1.0)
        assert default_progress_rule(inputs) == pytest.approx(75.0)


class TestMetricAttainment:
    def test_increase(self):
        metric = Metric(target=100, current=40, target_direction=TargetDirection.increase)
        assert metric_attainment(metric) == pytest.approx(0.4)

    def test_increase_past_target_caps(self):
        metric = Metric(target=100, current=140, target_direction=TargetDirection.increase)
        assert metric_attainment(metric) == 1.0

    def test_decrease(self):
        metric = Metric(target=70, current=80, target_direction=TargetDirection.decrease)
        assert metric_attainment(metric) == pytest.approx(0.875)

    def test_maintain(self):
        metric = Metric(target=8, current=6, target_direction=TargetDirection.maintain)
        assert metric_attainment(metric) == pytest.approx(0.75)

    def test_missing_values(self):
        assert metric_attainment(Metric(target=None, current=5)) is None
        assert metric_attainment(Metric(target=5, current=None)) is None


class TestDeriveStatus:
    def test_manual_statuses_stick(self):
        assert derive_status(ObjectiveStatus.paused, True) == ObjectiveStatus.paused
        assert derive_status(ObjectiveStatus.completed, True) == ObjectiveStatus.completed

    def test_follows_deviations(self):
        assert derive_status(ObjectiveStatus.on_track, True) == ObjectiveStatus.deviation_detected
        assert derive_status(ObjectiveStatus.deviation_detected, False) == ObjectiveStatus.on_track


class TestProgressCache:
    def test_task_completion_moves_pillar_and_objective(self, db, user, objective):
        skills = next(p for p in objective.pillars if p.name == "Skills")
        now = utcnow()
        tasks = [
            task_service.create_task(
                db,
                objective.id,
                TaskCreate(title=f"Study {i}", scheduled_at=now - timedelta(hours=i + 1), pillar_id=skills.id),
                user,
            )
            for i in range(2)
        ]

        task_service.complete_task(db, tasks[0].id, user)

        db.refresh(skills)
        db.refresh(objective)
        assert skills.progress == pytest.approx(50.0)
        assert objective.progress == pytest.approx(30.0)

    def test_progress_report(self, db, user, objective):
        pillars = crud_objective.get_pillars(db, objective_id=objective.id)
        for pillar, progress in zip(sorted(pillars, key=lambda p: -p.weight), (80.0, 40.0)):
            pillar.progress = progress
        db.commit()

        report = objective_service.get_progress(db, objective.id, user)
        assert report["overall_progress"] == pytest.approx(64.0)
        assert report["total_weight"] == pytest.approx(1.0)
        assert report["weights_normalized"] is True
