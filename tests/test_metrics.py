"""Metric entries: current value replay and pillar progress."""

import uuid
from datetime import timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from telofy.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from telofy.core.timeutils import utcnow
from telofy.crud.metric import crud_metric
from telofy.models import TargetDirection
from telofy.schemas.metric import MetricCreate, MetricEntryCreate, MetricUpdate
from telofy.services.metrics import metric_service
from telofy.services.objectives import objective_service

from conftest import make_objective


def skills_pillar(objective):
    return next(p for p in objective.pillars if p.name == "Skills")


@pytest.fixture
def metric(db, user, objective):
    return metric_service.create_metric(
        db,
        objective.id,
        MetricCreate(
            name="Courses finished",
            unit="count",
            target=10,
            target_direction=TargetDirection.increase,
            pillar_id=skills_pillar(objective).id,
        ),
        user,
    )


class TestEntries:
    def test_current_tracks_latest_recorded_at(self, db, user, metric):
        now = utcnow()
        metric_service.record_entry(db, metric.id, MetricEntryCreate(value=4, recorded_at=now), user)
        # backfilled entry must not replace the newer value
        metric_service.record_entry(
            db, metric.id, MetricEntryCreate(value=2, recorded_at=now - timedelta(days=3)), user
        )

        db.refresh(metric)
        assert metric.current == 4

    def test_future_entry_rejected(self, db, user, metric):
        metric_service.record_entry(db, metric.id, MetricEntryCreate(value=4), user)

        with pytest.raises(PydanticValidationError):
            MetricEntryCreate(value=9, recorded_at=utcnow() + timedelta(days=1))

        db.refresh(metric)
        assert metric.current == 4

    def test_current_matches_replay(self, db, user, objective, metric):
        now = utcnow()
        for offset, value in ((5, 1), (1, 3), (3, 2)):
            metric_service.record_entry(
                db, metric.id, MetricEntryCreate(value=value, recorded_at=now - timedelta(days=offset)), user
            )

        entries = crud_metric.get_entries(db, metric_id=metric.id)
        assert [e.value for e in entries] == [1, 2, 3]

        db.refresh(metric)
        assert metric.current == entries[-1].value

        metric.current = 99
        db.commit()
        objective_service.recompute(db, objective.id, user)
        db.refresh(metric)
        assert metric.current == 3

    def test_entry_moves_pillar_progress(self, db, user, objective, metric):
        metric_service.record_entry(db, metric.id, MetricEntryCreate(value=5), user)

        pillar = skills_pillar(objective)
        db.refresh(pillar)
        db.refresh(objective)
        assert pillar.progress == pytest.approx(50.0)
        assert objective.progress == pytest.approx(30.0)


class TestMetricRules:
    def test_pillar_must_belong_to_objective(self, db, user, objective):
        foreign = make_objective(db, user, name="Other")
        with pytest.raises(ValidationError):
            metric_service.create_metric(
                db,
                objective.id,
                MetricCreate(name="x", unit="u", pillar_id=skills_pillar(foreign).id),
                user,
            )

    def test_other_users_metric_is_forbidden(self, db, other_user, metric):
        with pytest.raises(PermissionDeniedError):
            metric_service.get_metric(db, metric.id, other_user)

    def test_unknown_metric(self, db, user):
        with pytest.raises(NotFoundError):
            metric_service.record_entry(db, uuid.uuid4(), MetricEntryCreate(value=1), user)

    def test_target_change_refreshes_progress(self, db, user, objective, metric):
        metric_service.record_entry(db, metric.id, MetricEntryCreate(value=5), user)
        metric_service.update_metric(db, metric.id, MetricUpdate(target=5), user)

        pillar = skills_pillar(objective)
        db.refresh(pillar)
        assert pillar.progress == pytest.approx(100.0)
