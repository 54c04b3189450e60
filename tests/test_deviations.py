"""Deviation sweep: detection rules, idempotence and failure isolation."""

from datetime import timedelta

import pytest

from telofy.core.exceptions import ConflictError
from telofy.core.timeutils import utcnow
from telofy.crud.deviation import crud_deviation
from telofy.models import DeviationType, ObjectiveStatus, TargetDirection
from telofy.schemas.metric import MetricCreate, MetricEntryCreate
from telofy.schemas.ritual import RitualCompletionCreate, RitualCreate, RitualUpdate
from telofy.schemas.task import TaskCreate
from telofy.services.deviations import DeviationDetector, is_regression
from telofy.services.metrics import metric_service
from telofy.services.objectives import objective_service
from telofy.services.rituals import ritual_service
from telofy.services.streaks import streak_tracker
from telofy.services.tasks import task_service

from conftest import make_objective


class ExplodingGenerator:
    def suggest(self, deviation):
        raise RuntimeError("model unavailable")


@pytest.fixture
def detector():
    return DeviationDetector()


def overdue_task(db, user, objective, title="Update resume"):
    return task_service.create_task(
        db,
        objective.id,
        TaskCreate(title=title, scheduled_at=utcnow() - timedelta(hours=2), duration_minutes=30),
        user,
    )


def deviations_of(db, user, deviation_type):
    return [d for d in crud_deviation.get_multi_by_user(db, user_id=user.id) if d.type == deviation_type]


class TestRegressionRule:
    def test_increase(self):
        assert is_regression(TargetDirection.increase, 50, 40)
        assert not is_regression(TargetDirection.increase, 50, 49)  # within 5% of 50
        assert not is_regression(TargetDirection.increase, 50, 60)

    def test_decrease(self):
        assert is_regression(TargetDirection.decrease, 80, 85)
        assert not is_regression(TargetDirection.decrease, 80, 75)

    def test_small_values_use_unit_floor(self):
        assert not is_regression(TargetDirection.increase, 0.5, 0.46)

    def test_maintain_measures_distance_to_target(self):
        assert is_regression(TargetDirection.maintain, 8, 6, target=8)
        assert not is_regression(TargetDirection.maintain, 6, 7, target=8)


class TestMissedTasks:
    def test_flagged_once(self, db, user, objective, detector):
        overdue_task(db, user, objective)

        first = detector.sweep(db)
        second = detector.sweep(db)

        assert first.deviations_created == 1
        assert second.deviations_created == 0
        assert len(deviations_of(db, user, DeviationType.missed_task)) == 1

        db.refresh(objective)
        assert objective.status == ObjectiveStatus.deviation_detected

    def test_lookup_by_deviation_type(self, db, user, objective, detector):
        task = overdue_task(db, user, objective)
        detector.sweep(db)

        found = crud_deviation.find_for_subject(db, deviation_type=DeviationType.missed_task, task_id=task.id)
        assert [d.task_id for d in found] == [task.id]
        assert crud_deviation.find_for_subject(
            db, deviation_type=DeviationType.streak_broken, task_id=task.id
        ) == []

    def test_future_task_not_flagged(self, db, user, objective, detector):
        task_service.create_task(
            db, objective.id, TaskCreate(title="Later", scheduled_at=utcnow() + timedelta(hours=1)), user
        )
        assert detector.sweep(db).deviations_created == 0

    def test_completing_task_resolves_deviation(self, db, user, objective, detector):
        task = overdue_task(db, user, objective)
        detector.sweep(db)

        task_service.complete_task(db, task.id, user)

        deviation = deviations_of(db, user, DeviationType.missed_task)[0]
        assert deviation.resolved_at is not None
        db.refresh(objective)
        assert objective.status == ObjectiveStatus.on_track

    def test_suggestion_attached(self, db, user, objective, detector):
        overdue_task(db, user, objective)
        report = detector.sweep(db)
        assert "Update resume" in report.created[0].ai_suggestion

    def test_suggestion_failure_keeps_deviation(self, db, user, objective):
        overdue_task(db, user, objective)
        report = DeviationDetector(suggestion_generator=ExplodingGenerator()).sweep(db)

        assert report.deviations_created == 1
        assert report.created[0].ai_suggestion is None

    def test_paused_objective_skipped(self, db, user, objective, detector):
        overdue_task(db, user, objective)
        objective_service.set_status(db, objective.id, ObjectiveStatus.paused, user)

        report = detector.sweep(db)
        assert report.objectives_scanned == 0
        assert report.deviations_created == 0


class TestRituals:
    def test_broken_streak_and_missed_period(self, db, user, objective, detector):
        ritual = ritual_service.create_ritual(db, objective.id, RitualCreate(name="Read"), user)
        ritual_service.record_completion(db, ritual.id, RitualCompletionCreate(), user)
        db.refresh(ritual)
        assert ritual.current_streak == 1

        later = utcnow() + timedelta(days=2)
        report = detector.sweep(db, now=later)

        types = sorted(d.type.value for d in report.created)
        assert types == ["missed_ritual", "streak_broken"]
        db.refresh(ritual)
        assert ritual.current_streak == 0
        assert ritual.longest_streak == 1

        assert detector.sweep(db, now=later).deviations_created == 0

    def test_break_seen_by_earlier_refresh_still_flagged(self, db, user, objective, detector):
        ritual = ritual_service.create_ritual(db, objective.id, RitualCreate(name="Meditate"), user)
        ritual_service.record_completion(db, ritual.id, RitualCompletionCreate(), user)

        # a manual streak refresh lands first and zeroes the cache
        later = utcnow() + timedelta(days=2)
        streak_tracker.refresh_ritual_streaks(db, ritual, now=later)
        db.commit()
        assert ritual.current_streak == 0
        assert ritual.streak_break_pending is True

        types = [d.type for d in detector.sweep(db, now=later).created]
        assert DeviationType.streak_broken in types

        db.refresh(ritual)
        assert ritual.streak_break_pending is False
        assert detector.sweep(db, now=later).deviations_created == 0

    def test_schedule_edit_is_not_a_break(self, db, user, objective, detector):
        ritual = ritual_service.create_ritual(db, objective.id, RitualCreate(name="Pushups"), user)
        ritual_service.record_completion(db, ritual.id, RitualCompletionCreate(), user)

        ritual = ritual_service.update_ritual(db, ritual.id, RitualUpdate(times_per_period=2), user)
        assert ritual.current_streak == 0
        assert ritual.streak_break_pending is False

        assert deviations_of(db, user, DeviationType.streak_broken) == []
        detector.sweep(db)
        assert deviations_of(db, user, DeviationType.streak_broken) == []

    def test_resolved_period_not_reflagged(self, db, user, objective, detector):
        ritual_service.create_ritual(db, objective.id, RitualCreate(name="Stretch"), user)
        later = utcnow() + timedelta(days=2)

        created = detector.sweep(db, now=later).created
        assert [d.type for d in created] == [DeviationType.missed_ritual]
        detector.resolve(db, created[0].id, user)

        assert detector.sweep(db, now=later).deviations_created == 0

    def test_periods_before_creation_ignored(self, db, user, objective, detector):
        ritual_service.create_ritual(db, objective.id, RitualCreate(name="Journal"), user)
        assert detector.sweep(db).deviations_created == 0


class TestMetrics:
    def test_regression_flagged_once(self, db, user, objective, detector):
        metric = metric_service.create_metric(
            db,
            objective.id,
            MetricCreate(name="Applications", unit="count", target=20, target_direction=TargetDirection.increase),
            user,
        )
        now = utcnow()
        for hours_ago, value in ((2, 10), (1, 6)):
            metric_service.record_entry(
                db, metric.id, MetricEntryCreate(value=value, recorded_at=now - timedelta(hours=hours_ago)), user
            )

        report = detector.sweep(db)
        assert [d.type for d in report.created] == [DeviationType.metric_regressed]
        assert report.created[0].metric_id == metric.id

        detector.resolve(db, report.created[0].id, user)
        assert detector.sweep(db).deviations_created == 0

    def test_metric_without_direction_ignored(self, db, user, objective, detector):
        metric = metric_service.create_metric(db, objective.id, MetricCreate(name="Mood", unit="pts"), user)
        for value in (9, 1):
            metric_service.record_entry(db, metric.id, MetricEntryCreate(value=value), user)
        assert detector.sweep(db).deviations_created == 0


class TestSweepIsolation:
    def test_one_failure_does_not_abort(self, db, user, objective, detector, monkeypatch):
        healthy = make_objective(db, user, name="Run a marathon")
        overdue_task(db, user, objective, title="Broken")
        overdue_task(db, user, healthy, title="Long run")

        original = detector._check_tasks
        bad_id = objective.id

        def flaky(session, target, now):
            if target.id == bad_id:
                raise RuntimeError("boom")
            return original(session, target, now)

        monkeypatch.setattr(detector, "_check_tasks", flaky)
        report = detector.sweep(db)

        assert report.objectives_scanned == 2
        assert [f.objective_id for f in report.failures] == [bad_id]
        assert "boom" in report.failures[0].error
        assert [d.objective_id for d in report.created] == [healthy.id]

    def test_sweep_limited_to_user(self, db, user, other_user, objective, detector):
        theirs = make_objective(db, other_user, name="Learn Go")
        overdue_task(db, user, objective)
        overdue_task(db, other_user, theirs)

        report = detector.sweep(db, user_id=other_user.id)
        assert [d.user_id for d in report.created] == [other_user.id]


class TestResolution:
    def test_resolve_twice_conflicts(self, db, user, objective, detector):
        overdue_task(db, user, objective)
        deviation = detector.sweep(db).created[0]

        detector.resolve(db, deviation.id, user)
        with pytest.raises(ConflictError):
            detector.resolve(db, deviation.id, user)

    def test_resolving_last_deviation_clears_status(self, db, user, objective, detector):
        overdue_task(db, user, objective)
        deviation = detector.sweep(db).created[0]

        detector.resolve(db, deviation.id, user)
        db.refresh(objective)
        assert objective.status == ObjectiveStatus.on_track
