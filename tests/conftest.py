import os
from datetime import datetime, timedelta, timezone

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ADMIN_EMAIL"] = "dean@campus.edu"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from dependencies import get_password_hash, token_for
from main import app
from models import Event, EventAnalytics, User

PASSWORD = "secret123"
_PASSWORD_HASH = None


def _password_hash():
    global _PASSWORD_HASH
    if _PASSWORD_HASH is None:
        _PASSWORD_HASH = get_password_hash(PASSWORD)
    return _PASSWORD_HASH


@pytest.fixture(autouse=True)
def reset_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make(role="student", email=None, name=None, is_active=True):
        user = User(
            name=name or f"{role.title()} User",
            email=email or f"{role}-{db.query(User).count()}@campus.edu",
            password=_password_hash(),
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def auth_header():
    def _header(user):
        return {"Authorization": f"Bearer {token_for(user)}"}
    return _header


@pytest.fixture
def admin(make_user):
    return make_user(role="admin", email="admin@campus.edu", name="Admin")


@pytest.fixture
def organizer(make_user):
    return make_user(role="organizer", email="club@campus.edu", name="Robotics Club")


@pytest.fixture
def student(make_user):
    return make_user(role="student", email="learner@campus.edu", name="Sam")


@pytest.fixture
def make_event(db):
    def _make(organizer, status="pending", title="Hackathon", starts_in=timedelta(days=7),
              category="Technical", venue="Main Hall", with_analytics=False):
        event = Event(
            title=title,
            description=f"{title} description",
            category=category,
            date_time=datetime.now(timezone.utc) + starts_in,
            venue=venue,
            eligibility="All students",
            contact_info="club@campus.edu",
            registration_link="https://forms.campus.edu/register",
            organizer_id=organizer.id,
            status=status,
            updated_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        db.add(event)
        db.flush()
        if with_analytics:
            db.add(EventAnalytics(event_id=event.id, page_views=0, registration_clicks=0))
        db.commit()
        db.refresh(event)
        return event
    return _make


@pytest.fixture
def fetch(db):
    """Re-read a row after the API changed it through another session."""
    def _fetch(model, **filters):
        db.expire_all()
        return db.query(model).filter_by(**filters).first()
    return _fetch
