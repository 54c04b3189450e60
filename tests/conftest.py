import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEFAULT_TIMEZONE", "UTC")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from telofy.core.config import Base, enable_sqlite_foreign_keys, get_db
from telofy.crud.user import crud_user
from telofy.schemas.objective import ObjectiveCreate, PillarCreate
from telofy.schemas.user import UserCreate
from telofy.services.objectives import objective_service

PASSWORD = "Sup3rSecret"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def make_user(db, email="ada@example.com", timezone="UTC"):
    user = crud_user.create(
        db,
        obj_in=UserCreate(name="Ada", email=email, password=PASSWORD, timezone=timezone),
        default_timezone="UTC",
    )
    db.commit()
    db.refresh(user)
    return user


def make_objective(db, user, pillars=(("Skills", 0.6), ("Network", 0.4)), name="Get Promoted"):
    return objective_service.create_objective(
        db,
        ObjectiveCreate(
            name=name,
            category="career",
            pillars=[PillarCreate(name=n, weight=w) for n, w in pillars],
        ),
        user,
    )


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def other_user(db):
    return make_user(db, email="grace@example.com")


@pytest.fixture
def objective(db, user):
    return make_objective(db, user)


@pytest.fixture
def client(session_factory):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    client.post(
        "/auth/register",
        json={"name": "Ada", "email": "ada@example.com", "password": PASSWORD, "timezone": "UTC"},
    )
    response = client.post("/auth/login", json={"email": "ada@example.com", "password": PASSWORD})
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
