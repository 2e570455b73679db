"""Shared fixtures: an in-memory SQLite store and an API client bound to it."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pms_core import crud, schemas
from pms_core.api.main import app
from pms_core.database import get_db
from pms_core.models import Base
from pms_core.store import SqlDocumentStore


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    return SqlDocumentStore(db_session)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def project(store):
    """Project with code PTES and two members."""
    return crud.create_project(store, schemas.ProjectCreate(
        name="Payment Test System",
        code="PTES",
        owner_id="owner-1",
        member_ids=["dev-1", "dev-2"],
    ))


@pytest.fixture
def sprint(store, project):
    return crud.create_sprint(store, schemas.SprintCreate(
        project_id=project["id"],
        name="Sprint 1",
        start_date="2026-01-05",
        end_date="2026-01-19",
    ))
