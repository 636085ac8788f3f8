import os
import sys
import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient


class FakeClock:
    """Clock pinned to a moment that tests can move forward."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture(scope="session")
def test_db_url(tmp_path_factory):
    db_path = tmp_path_factory.mktemp("db") / "test_lecturelab.db"
    return f"sqlite:///{db_path}"


@pytest.fixture(scope="session")
def app(test_db_url):
    os.environ["DATABASE_URL"] = test_db_url
    os.environ["LOG_TO_FILE"] = "false"
    os.environ["RATE_LIMIT_ENABLED"] = "false"

    # Drop anything imported with the default settings so every module
    # binds to the test database.
    for module_name in list(sys.modules):
        if module_name == "main" or module_name == "app" or module_name.startswith("app."):
            del sys.modules[module_name]

    import main as main_module
    from app.db.database import Base, engine

    Base.metadata.create_all(bind=engine)
    return main_module.app


@pytest.fixture()
def db_session(app):
    from app.db.database import SessionLocal
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def clock():
    return FakeClock(datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc))


@pytest.fixture()
def client(app, clock):
    from app.core.clock import get_clock

    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def user_id():
    return f"user-{uuid.uuid4().hex[:8]}"


@pytest.fixture()
def lecture_id():
    return f"lecture-{uuid.uuid4().hex[:8]}"
