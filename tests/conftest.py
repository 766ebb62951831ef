# tests/conftest.py
import os
import sys
from datetime import datetime, timedelta

import pytest

# make "from app import create_app" work when run from the repo root
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app import create_app
from create_user import create_user
from extensions import db


def _make_app(tmp_path, seed):
    return create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SECRET_KEY": "test-secret",
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "SEED_MOCK_DATA": seed,
        "NOTIFICATION_INTERVAL_MINUTES": 0,   # no sweep on requests
        "NOTIFICATION_COOLDOWN_MINUTES": 30,
    })


@pytest.fixture()
def app(tmp_path):
    """App with the mock shop loaded."""
    app = _make_app(tmp_path, seed=True)
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture()
def empty_app(tmp_path):
    """App with no people and no parts."""
    app = _make_app(tmp_path, seed=False)
    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def registry(app):
    return app.extensions["part_registry"]


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FakeClock(datetime(2024, 6, 3, 9, 0, 0))


@pytest.fixture()
def shop(empty_app, clock):
    """Empty registry on a controllable clock, with two technicians and a manager."""
    registry = empty_app.extensions["part_registry"]
    registry.clock = clock
    create_user("t1", "Tina Tech", "technician")
    create_user("t2", "Tom Tech", "technician")
    create_user("m1", "Mary Manager", "manager")
    return registry


@pytest.fixture()
def login(client):
    """login("mgr1") → logs the test client in as that user."""
    def _login(user_id, password=None):
        resp = client.post("/personnel/login", json={"user_id": user_id, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()
    return _login
