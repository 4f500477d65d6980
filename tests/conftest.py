"""Shared fixtures: in-memory SQLite database, seeded staff/property, API client."""
import os

# Must be set before hometrace.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["CALENDAR_TIMEZONE"] = "UTC"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("SMTP_HOST", None)
os.environ.pop("RESEND_API_KEY", None)

from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from hometrace.database import Base, SessionLocal, engine, get_db
from hometrace.domain.appointments.schemas import (
    AppointmentResponse,
    PreferredDate,
    PropertySummary,
    appointment_response,
)
from hometrace.main import app
from hometrace.models import Appointment, Property, User
from hometrace.security_utils import create_access_token

SERVICE = "hometrace.domain.appointments.service"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def emails():
    """Replace every outgoing appointment email with an AsyncMock."""
    with patch(f"{SERVICE}.send_new_appointment_notification", new_callable=AsyncMock) as new_request, \
            patch(f"{SERVICE}.send_time_proposal_notification", new_callable=AsyncMock) as proposal, \
            patch(f"{SERVICE}.send_appointment_update_notification", new_callable=AsyncMock) as update, \
            patch(f"{SERVICE}.send_customer_response_notification", new_callable=AsyncMock) as response:
        proposal.return_value = {"id": "email-1"}
        yield {
            "new_request": new_request,
            "proposal": proposal,
            "update": update,
            "response": response,
        }


@pytest.fixture
def admin(db):
    user = User(email="admin@hometrace.com", first_name="Ada", last_name="Admin", role="admin")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def agent(db):
    user = User(email="agent@hometrace.com", first_name="Sam", last_name="Agent", role="agent")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_agent(db):
    user = User(email="other@hometrace.com", first_name="Olive", last_name="Other", role="agent")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def listing(db, agent):
    prop = Property(
        agent_id=agent.id,
        street="12 Harbour St",
        suburb="Sydney",
        state="NSW",
        postcode="2000",
        description="Two bedroom apartment with harbour views",
    )
    db.add(prop)
    db.commit()
    db.refresh(prop)
    return prop


@pytest.fixture
def make_appointment(db, listing):
    def _make(**overrides):
        fields = {
            "property_id": listing.id,
            "agent_id": listing.agent_id,
            "first_name": "Jane",
            "last_name": "Doe",
            "email": "jane@example.com",
            "phone": "0412 345 678",
            "candidate_times": [{"date": "2025-03-10", "time": "10:00"}],
            "status": "pending",
        }
        fields.update(overrides)
        appointment = Appointment(**fields)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _make


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


def to_response(appointment: Appointment):
    return appointment_response(appointment)


# A Saturday; 2025-03-10 falls in the Sunday-first week 2025-03-09 .. 2025-03-15
TODAY = datetime(2025, 3, 1, 8, 0)


def build_appointment(appointment_id=1, candidates=None, scheduled=None, status="pending", **extra):
    """In-memory wire appointment for calendar core tests."""
    if candidates is None:
        candidates = [("2025-03-10", "10:00")]
    return AppointmentResponse(
        id=appointment_id,
        propertyId=1,
        property=PropertySummary(id=1, street="12 Harbour St", suburb="Sydney"),
        agentId=1,
        firstName=extra.get("first_name", "Jane"),
        lastName=extra.get("last_name", "Doe"),
        email="jane@example.com",
        phone="0412345678",
        customerPreferredDates=[PreferredDate(date=d, time=t) for d, t in candidates],
        agentScheduledDateTime=scheduled,
        status=status,
    )
