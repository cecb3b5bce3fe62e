from datetime import date
from unittest.mock import patch

import pytest

from worship_calendar.models import SpecialService
from worship_calendar.models import db as _db

ADMIN_TOKEN = "testing-admin-token"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing (session-scoped)."""
    with patch("worship_calendar.upgrade"):
        from worship_calendar import create_app

        _app = create_app("testing")

    yield _app


@pytest.fixture(autouse=True)
def db(app):
    """Create all tables before each test, drop them after."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(autouse=True)
def _restore_config(app):
    """Undo per-test config tweaks so the session app stays pristine."""
    saved = dict(app.config)
    yield
    app.config.clear()
    app.config.update(saved)


@pytest.fixture()
def client(app):
    """Test client without admin credentials."""
    return app.test_client()


@pytest.fixture()
def admin_headers():
    return {"X-Admin-Token": ADMIN_TOKEN}


def _make_special_service(service_date=date(2024, 3, 29), name="Good Friday"):
    """Create and persist a SpecialService. Callable multiple times per test."""
    service = SpecialService(service_date=service_date, name=name)
    _db.session.add(service)
    _db.session.commit()
    return service
