import os

os.environ.setdefault("REWARDS_DATABASE_URL", "sqlite://")
os.environ.setdefault("REWARDS_SCHEDULER_ENABLED", "false")
os.environ.setdefault("REWARDS_SECRET_KEY", "test-secret")

import random
from typing import Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from rewards import models  # noqa: F401
from rewards.assessment import AssessmentRegistry
from rewards.core.database import Base, get_db
from rewards.core.security import create_access_token, hash_password
from rewards.main import create_app
from rewards.models import ROLE_MODELS, CampusClass, Task, UserRole, VoucherLevel

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSession = sessionmaker(bind=engine, autoflush=False)

PASSWORD = "correct-horse-42"
_PASSWORD_HASH = hash_password(PASSWORD)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(7)


@pytest.fixture(name="session")
def session_fixture():
    Base.metadata.create_all(engine)
    with TestingSession() as session:
        yield session
    Base.metadata.drop_all(engine)


@pytest.fixture
def registry(clock) -> AssessmentRegistry:
    return AssessmentRegistry(clock=clock)


@pytest.fixture(name="app")
def app_fixture(session: Session, registry: AssessmentRegistry):
    app = create_app()
    app.state.assessment_registry = registry

    def get_db_override():
        yield session

    app.dependency_overrides[get_db] = get_db_override
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(name="client")
def client_fixture(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.fixture
def make_user(session: Session) -> Callable:
    counter = {"n": 0}

    def factory(role: UserRole = UserRole.STUDENT, **fields):
        counter["n"] += 1
        fields.setdefault("name", f"{role.value} {counter['n']}")
        fields.setdefault("email", f"user{counter['n']}@actvet.gov.ae")
        if role is UserRole.STUDENT:
            fields.setdefault("grade", 10)
            fields.setdefault("points", 0)
            fields.setdefault("initial_points", fields["points"])
            fields.setdefault("is_innovator_verified", False)
            fields.setdefault("is_quiz_locked", False)
            fields.setdefault("quiz_attempts", 0)
            fields.setdefault("achievements", [])
        user = ROLE_MODELS[role](password_hash=_PASSWORD_HASH, **fields)
        session.add(user)
        session.commit()
        return user

    return factory


@pytest.fixture
def make_class(session: Session) -> Callable:
    def factory(grade: int = 10, name: str = "A") -> CampusClass:
        campus_class = CampusClass(id=f"{grade}-{name}", grade=grade, name=name)
        session.add(campus_class)
        session.commit()
        return campus_class

    return factory


@pytest.fixture
def make_task(session: Session) -> Callable:
    def factory(teacher, **fields) -> Task:
        fields.setdefault("title", "Solar charger prototype")
        fields.setdefault("subject", "Physics")
        fields.setdefault("grade", 10)
        fields.setdefault("points", 100)
        fields.setdefault("max_score", 10)
        task = Task(teacher_id=teacher.id, **fields)
        session.add(task)
        session.commit()
        return task

    return factory


@pytest.fixture
def make_voucher(session: Session) -> Callable:
    def factory(name: str = "Test Reward", point_cost: int = 250, aed_value: int = 25) -> VoucherLevel:
        voucher = VoucherLevel(name=name, point_cost=point_cost, aed_value=aed_value, description="")
        session.add(voucher)
        session.commit()
        return voucher

    return factory


def auth_headers(user) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers() -> Callable:
    return auth_headers
