"""Pytest configuration and shared fixtures."""

import pytest
import os
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set test environment variables before importing app
os.environ["TESTING"] = "true"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(tempfile.mkdtemp(prefix='eligibility-tests-'), 'app.db')}"
os.environ["HOLIDAY_CACHE_BACKEND"] = "memory"
os.environ["DEFAULT_TIMEZONE"] = "Asia/Manila"

from src.web_interface import app as flask_app
from src.models import Base, Company, Team, Person, PersonRole, Holiday, CheckIn
from src.utils import cache_manager
from src.utils.timezone import CalendarClock
from src.services import holiday_oracle, schedule_resolver


@pytest.fixture
def app():
    """Create Flask app for testing."""
    flask_app.config["TESTING"] = True
    yield flask_app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(autouse=True)
def reset_singletons():
    """Fresh holiday cache, oracle and resolver for every test."""
    cache_manager.reset_holiday_cache()
    holiday_oracle._holiday_oracle = None
    schedule_resolver._default_resolver = None
    yield
    cache_manager.reset_holiday_cache()
    holiday_oracle._holiday_oracle = None
    schedule_resolver._default_resolver = None


@pytest.fixture
def db_engine(tmp_path):
    """File-backed SQLite engine (worker threads need their own connections)."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        echo=False,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """session_scope() equivalent bound to the test engine."""
    SessionLocal = sessionmaker(bind=db_engine, expire_on_commit=False)

    @contextmanager
    def scope():
        session = SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return scope


@pytest.fixture
def db_session(db_engine):
    """Create database session for testing."""
    SessionLocal = sessionmaker(bind=db_engine, expire_on_commit=False)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def app_db():
    """Tables on the application's global engine, used by route and CLI tests."""
    from src.utils.database import get_engine, init_database, session_scope

    assert init_database()
    yield session_scope
    Base.metadata.drop_all(get_engine())


@pytest.fixture
def make_clock():
    """Build a CalendarClock pinned to a UTC instant given as ISO text."""

    def _make(iso_utc: str) -> CalendarClock:
        instant = datetime.fromisoformat(iso_utc).replace(tzinfo=timezone.utc)
        return CalendarClock(now_fn=lambda: instant)

    return _make


@pytest.fixture
def seed():
    """Helpers that insert companies, teams, persons, holidays and check-ins."""

    class Seeder:
        def company(self, session, name="Acme Safety", tz="Asia/Manila", **kwargs):
            company = Company(name=name, timezone=tz, **kwargs)
            session.add(company)
            session.flush()
            return company

        def team(self, session, company, name="Line A", work_days="1,2,3,4,5",
                 start="06:00", end="10:00", leader=None, **kwargs):
            team = Team(
                company_id=company.id,
                name=name,
                work_days=work_days,
                check_in_start=start,
                check_in_end=end,
                leader_id=leader.id if leader else None,
                **kwargs,
            )
            session.add(team)
            session.flush()
            return team

        def person(self, session, company, team=None, first_name="Ana", last_name="Reyes",
                   role=PersonRole.WORKER, assigned_at=None, **kwargs):
            person = Person(
                company_id=company.id,
                team_id=team.id if team else None,
                first_name=first_name,
                last_name=last_name,
                role=role,
                team_assigned_at=assigned_at,
                **kwargs,
            )
            session.add(person)
            session.flush()
            return person

        def holiday(self, session, company, name, holiday_date, is_recurring=False):
            holiday = Holiday(
                company_id=company.id, name=name, date=holiday_date, is_recurring=is_recurring
            )
            session.add(holiday)
            session.flush()
            return holiday

        def check_in(self, session, person, check_in_date, score=None):
            check_in = CheckIn(
                company_id=person.company_id,
                person_id=person.id,
                check_in_date=check_in_date,
                readiness_score=score,
            )
            session.add(check_in)
            session.flush()
            return check_in

    return Seeder()
