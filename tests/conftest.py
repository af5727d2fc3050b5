import os
import pathlib
import re
import shutil
import sys
import uuid

import pytest

root = pathlib.Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from chair_app import create_app
from chair_app.models import LEAD_NEW, SOURCE_WEBSITE, Lead
from chair_app.services.database import session_scope

BOOKING_DAY = "2030-01-08"


@pytest.fixture(scope="session")
def _template_db(tmp_path_factory):
    """Build a migrated and seeded DB once per test session.

    Every function-scoped ``app`` fixture copies this file instead of
    running Alembic from scratch.
    """
    db_path = tmp_path_factory.mktemp("template") / "app.db"
    saved = {key: os.environ.get(key) for key in ("CHAIR_DB_PATH", "CHAIR_SECRET_KEY", "CHAIR_DOCTORS")}
    os.environ["CHAIR_DB_PATH"] = str(db_path)
    os.environ["CHAIR_SECRET_KEY"] = "test-secret"
    os.environ["CHAIR_DOCTORS"] = "Dr. Sarah,Dr. Mohammed,Dr. Ali"
    try:
        _app = create_app()
        with _app.app_context():
            pass
    finally:
        for key, value in saved.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
    return db_path


@pytest.fixture
def app(tmp_path, monkeypatch, _template_db):
    db_path = tmp_path / "app.db"
    shutil.copy2(_template_db, db_path)
    monkeypatch.setenv("CHAIR_DB_PATH", str(db_path))
    monkeypatch.setenv("CHAIR_SECRET_KEY", "test-secret")
    monkeypatch.setenv("CHAIR_AUTO_MIGRATE", "0")  # Already migrated
    app = create_app()
    app.config.update(TESTING=True, WTF_CSRF_ENABLED=True)
    yield app


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


def _extract_csrf(response) -> str:
    match = re.search(r'name="csrf_token" value="([^"]+)"', response.data.decode("utf-8"))
    assert match, "CSRF token not found"
    return match.group(1)


@pytest.fixture
def get_csrf_token():
    return _extract_csrf


@pytest.fixture
def make_pipeline_lead(ctx):
    """Insert a NEW lead as the website funnel would."""

    def _make(name: str = "Pipeline Patient", phone: str = "+968 9000 0000") -> str:
        lead_id = str(uuid.uuid4())
        with session_scope() as session:
            session.add(
                Lead(
                    id=lead_id,
                    name=name,
                    phone=phone,
                    treatment_interest="Implants",
                    status=LEAD_NEW,
                    source=SOURCE_WEBSITE,
                )
            )
        return lead_id

    return _make
