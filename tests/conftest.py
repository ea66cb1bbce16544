# tests/conftest.py
"""
Shared fixtures: a fresh SQLite database per test, a ticking clock and an
HTTP client wired to the app through dependency overrides.
"""
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.clock import Clock, get_clock
from app.database import Base, get_db_session
from app.main import app
from app.models import Response, User
from app.schemas import SurveyCreate


class TickingClock(Clock):
    """Every call to now() returns a time one step later than the previous one."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.current = start or datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
        self.step = step

    def now(self):
        value = self.current
        self.current += self.step
        return value


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
async def client(session_factory, clock):
    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_clock] = lambda: clock
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


async def make_user(db, name, token):
    user = User(name=name, email=f"{name.lower()}@example.com", api_token=token)
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def alice(db):
    return await make_user(db, "Alice", "alice-token")


@pytest.fixture
async def bob(db):
    return await make_user(db, "Bob", "bob-token")


@pytest.fixture
def alice_headers(alice):
    return {"Authorization": "Bearer alice-token"}


@pytest.fixture
def bob_headers(bob):
    return {"Authorization": "Bearer bob-token"}


def survey_payload(**overrides):
    payload = {
        "title": "Customer Satisfaction Q1",
        "description": "How did we do this quarter?",
        "category": "customer",
        "questions": [
            {
                "id": "q1",
                "type": "nps",
                "question": "How likely are you to recommend us?",
                "required": True,
            },
            {
                "id": "q2",
                "type": "multiple_choice",
                "question": "Which product do you use?",
                "options": ["Basic", "Pro"],
            },
        ],
    }
    payload.update(overrides)
    return payload


def survey_create(**overrides):
    return SurveyCreate(**survey_payload(**overrides))


async def add_responses(db, survey_id, records):
    """Insert raw response rows, bypassing the submission rules."""
    for record in records:
        answers = record.pop("responses", {})
        db.add(Response(survey_id=survey_id, responses=answers, **record))
    await db.commit()
