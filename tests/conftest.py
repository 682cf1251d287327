"""
Test configuration and fixtures for the Scan Profiles API.

Points DATABASE_URL at a throwaway SQLite file before any app module is
imported, and provides a controllable clock for budget tracking tests.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Generator

from dotenv import load_dotenv

import pytest
from fastapi.testclient import TestClient

load_dotenv()

test_db_url = os.getenv("TEST_DATABASE_URL")
if test_db_url:
    if "postgresql://" in test_db_url and "asyncpg" not in test_db_url:
        test_db_url = test_db_url.replace("postgresql://", "postgresql+asyncpg://")
    os.environ["DATABASE_URL"] = test_db_url
else:
    test_db_path = os.path.join(tempfile.mkdtemp(), "scan_profiles_test.db")
    os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{test_db_path}"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application."""
    from app.main import app

    return app


@pytest.fixture(scope="function")
def client(test_app) -> Generator[TestClient, None, None]:
    """
    Create a test client for making HTTP requests.
    Each test gets a clean TestClient instance.
    """
    with TestClient(test_app) as test_client:
        yield test_client


@pytest.fixture
def sync_db():
    """
    Sync session on the test database with the coverage table created.
    Rows are removed again after each test.
    """
    from app.features.scan_profiles.models.scan_coverage import ScanCoverage
    from app.features.scan_profiles.workers.tasks import get_sync_db

    db = get_sync_db()
    ScanCoverage.__table__.create(bind=db.get_bind(), checkfirst=True)
    try:
        yield db
    finally:
        db.rollback()
        db.query(ScanCoverage).delete()
        db.commit()
        db.close()
