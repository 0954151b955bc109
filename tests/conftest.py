"""
Pytest configuration and fixtures.

Every test gets a fresh application bound to an in-memory SQLite database.
"""
from datetime import date

import pytest
from flask_jwt_extended import create_access_token

from fitcoach import create_app
from fitcoach.extensions import db as _db
from fitcoach.models import Exercise, Food
from fitcoach.services import identity


class RecordingMailer:
    """Collects outgoing emails instead of talking to SMTP."""

    def __init__(self):
        self.sent = []

    def __getattr__(self, name):
        if not name.startswith("send_"):
            raise AttributeError(name)

        def record(*args, **kwargs):
            self.sent.append((name, args, kwargs))
            return True
        return record


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db.session


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="athlete", email=None, password="Password123", first_name=None, last_name="Tester"):
        counter["n"] += 1
        email = email or f"{role}{counter['n']}@example.com"
        return identity.register(
            db, email, password, first_name or f"{role.title()}{counter['n']}", last_name, role,
            mailer=RecordingMailer(),
        )
    return _make


@pytest.fixture
def trainer(make_user):
    return make_user("trainer")


@pytest.fixture
def athlete(make_user):
    return make_user("athlete")


@pytest.fixture
def nutritionist(make_user):
    return make_user("nutritionist")


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=str(user.id), additional_claims={"role": user.role})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def exercises(db):
    rows = [
        Exercise(name="Squats", category="Legs", muscle_groups=["Quadriceps"], difficulty_level="beginner"),
        Exercise(name="Push-ups", category="Chest", muscle_groups=["Chest"], difficulty_level="beginner"),
        Exercise(name="Planks", category="Core", muscle_groups=["Core"], difficulty_level="beginner"),
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def foods(db):
    rows = [
        Food(name="Oatmeal", calories_per_serving=100, protein_per_serving=4, carbs_per_serving=18,
             fat_per_serving=2, fiber_per_serving=3, is_verified=True),
        Food(name="Banana", brand="Chiquita", calories_per_serving=50, protein_per_serving=0.5,
             carbs_per_serving=12, fat_per_serving=0.2, fiber_per_serving=1.5),
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def today():
    return date(2026, 3, 18)
