"""
Pytest configuration and fixtures

Tests run against an in-memory SQLite database. The schema is created
before each test and dropped after it, so nothing leaks between tests.
"""
import os
import sys
from uuid import uuid4

import pytest

# Test environment must be in place before any app module reads settings.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-at-least-32-characters-long")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("ENVIRONMENT", "test")

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.dialects import postgresql

from core.database import Base, SessionLocal, engine
from core.permissions import Caller, Role
from core.security import create_access_token
from models import Program, User, Workout


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user(db_session):
    def _make(role: str = "client", name: str = "Test User", active: bool = True) -> User:
        user = User(
            name=name,
            email=f"{role}_{uuid4()}@example.com",
            role=role,
            is_active=active,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def client_user(make_user):
    return make_user("client", name="Client One")


@pytest.fixture
def coach_user(make_user):
    return make_user("coach", name="Coach One")


@pytest.fixture
def admin_user(make_user):
    return make_user("super_admin", name="Admin")


@pytest.fixture
def make_program(db_session):
    def _make(coach: User, workouts: int = 2, name: str = "Strength Block") -> Program:
        program = Program(coach_id=coach.id, name=name, description="Four week base")
        db_session.add(program)
        db_session.flush()
        for i in range(workouts):
            db_session.add(
                Workout(
                    program_id=program.id,
                    target_muscle=["legs", "back", "chest", "shoulders"][i % 4],
                    description=f"Workout {i + 1}",
                    sets=3 + i,
                    weight_equipment="barbell",
                )
            )
        db_session.commit()
        return program

    return _make


@pytest.fixture
def program(make_program, coach_user):
    """Program P1 owned by coach C1 with workouts W1, W2."""
    return make_program(coach_user, workouts=2)


@pytest.fixture
def workouts(db_session, program):
    return (
        db_session.query(Workout)
        .filter(Workout.program_id == program.id)
        .order_by(Workout.description)
        .all()
    )


@pytest.fixture
def as_caller():
    def _caller(user: User) -> Caller:
        return Caller(user_id=user.id, role=Role(user.role))

    return _caller


@pytest.fixture
def headers_for():
    def _headers(user: User) -> dict:
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def api_client():
    from main import app

    return TestClient(app)


@pytest.fixture
def postgres_selects(db_session):
    """SELECTs run through db_session, rendered as PostgreSQL would receive them."""
    seen = []

    def _capture(orm_execute_state):
        if orm_execute_state.is_select:
            seen.append(str(orm_execute_state.statement.compile(dialect=postgresql.dialect())))

    event.listen(db_session, "do_orm_execute", _capture)
    yield seen
    event.remove(db_session, "do_orm_execute", _capture)
