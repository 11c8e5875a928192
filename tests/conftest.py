"""
Pytest configuration and fixtures
"""
import os

# Keep the app off the on-disk database and the background scheduler
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["REMOTE_FUNCTIONS_MODE"] = "local"

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from booking_automation.database import Base
from booking_automation.models import User, Therapist, Booking
from booking_automation.services.remote_functions import RemoteFunctionError


# Use in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"


class RecordingInvoker:
    """Fake remote function invoker that records every call"""

    def __init__(self, failing: tuple[str, ...] = ()):
        self.failing = set(failing)
        self.calls: list[tuple[str, dict]] = []

    def invoke(self, name: str, body: dict) -> dict:
        self.calls.append((name, body))
        if name in self.failing:
            raise RemoteFunctionError(name, "provider unavailable")
        return {"success": True}

    def calls_to(self, name: str) -> list[dict]:
        return [body for called, body in self.calls if called == name]


@pytest.fixture(scope="session")
def test_engine():
    """Create test database engine"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_engine):
    """Create test database session"""
    Base.metadata.create_all(bind=test_engine)
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()

    yield session

    # Cleanup
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def invoker():
    return RecordingInvoker()


@pytest.fixture
def failing_invoker():
    """Invoker whose email and SMS functions always fail"""
    return RecordingInvoker(failing=("send-email", "send-sms"))


@pytest.fixture
def sample_client(test_db_session):
    """Create sample client user"""
    client = User(
        email="asha@example.com",
        full_name="Asha Rao",
        phone="98765 43210",
    )
    test_db_session.add(client)
    test_db_session.commit()
    test_db_session.refresh(client)
    return client


@pytest.fixture
def sample_therapist(test_db_session):
    """Create sample therapist with a linked user account"""
    user = User(email="dr.mehta@example.com", full_name="Dr. Mehta")
    test_db_session.add(user)
    test_db_session.commit()

    therapist = Therapist(user_id=user.id, phone="9123456780")
    test_db_session.add(therapist)
    test_db_session.commit()
    test_db_session.refresh(therapist)
    return therapist


@pytest.fixture
def make_booking(test_db_session, sample_client, sample_therapist):
    """Factory for bookings between the sample client and therapist"""

    def _make(hours_ahead: float = 48, **overrides) -> Booking:
        fields = {
            "id": "abcdef12-3456-7890-abcd-ef1234567890",
            "client_id": sample_client.id,
            "therapist_id": sample_therapist.id,
            "scheduled_at": datetime.now(timezone.utc) + timedelta(hours=hours_ahead),
            "service_type": "individual_therapy",
            "session_mode": "video",
            "status": "confirmed",
        }
        fields.update(overrides)
        booking = Booking(**fields)
        test_db_session.add(booking)
        test_db_session.commit()
        test_db_session.refresh(booking)
        return booking

    return _make


@pytest.fixture
def sample_booking(make_booking):
    """Create sample confirmed booking two days out"""
    return make_booking()


# Test markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
