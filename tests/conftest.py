import os
import tempfile
from pathlib import Path

_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="skill-demand-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR / 'skill_demand_test.db'}"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["ENVIRONMENT"] = "test"
os.environ["REFRESH_STRATEGY"] = "staged"

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from database import Base, SessionLocal, engine, init_db  # noqa: E402
from main import app  # noqa: E402
from models.snapshot_model import SNAPSHOT_ACTIVE  # noqa: E402
from services.snapshot_service import SnapshotWriter, create_snapshot  # noqa: E402

AUTH_HEADERS = {"Authorization": "Bearer test-cron-secret"}


@pytest.fixture(autouse=True)
def fresh_schema():
    init_db()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def seed_active_snapshot(session, demand_rows, empty_regions=()):
    """Write an active snapshot from ``(region, slug, skill, category, count[, last_updated])`` tuples."""
    snapshot = create_snapshot(session, status=SNAPSHOT_ACTIVE)
    writer = SnapshotWriter(session, snapshot.id)
    regions = {}
    skills = {}
    for row in demand_rows:
        region_name, slug, skill_name, category, count = row[:5]
        last_updated = row[5] if len(row) > 5 else datetime(2026, 1, 15, 8, 0, tzinfo=timezone.utc)
        if slug not in regions:
            regions[slug] = writer.add_region(region_name, slug)
        if (skill_name, category) not in skills:
            skills[(skill_name, category)] = writer.add_skill(skill_name, category)
        writer.add_demand(regions[slug], skills[(skill_name, category)], count, last_updated)
    for region_name, slug in empty_regions:
        writer.add_region(region_name, slug)
    session.commit()
    return snapshot.id
