from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dndtracker.api.main import app
from dndtracker.core.persistence.runtime_store import runtime_store
from dndtracker.db.base import Base
import dndtracker.db.models  # noqa: F401
import dndtracker.db.session as db_session
from dndtracker.db.deps import get_db


@pytest.fixture(scope="session")
def engine():
    # SQLite in-memory, one connection for the whole run
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    return eng


@pytest.fixture(scope="session")
def TestingSessionLocal(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture(scope="session", autouse=True)
def _patch_db(engine, TestingSessionLocal):
    # swap the app's engine/SessionLocal for the test ones
    db_session.engine = engine
    db_session.SessionLocal = TestingSessionLocal
    yield


@pytest.fixture()
def client(engine, TestingSessionLocal):
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    runtime_store.clear()
    Base.metadata.drop_all(bind=engine)
