import asyncio
import functools
import os
from datetime import date, datetime

import pytest

# Set testing environment before the application is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["STORE_BACKEND"] = "memory"

from fastapi.testclient import TestClient

from clinic.core.database import get_redis
from clinic.core.security import UserRole, create_user_token
from clinic.main import app
from clinic.models.appointment import AppointmentStatus
from clinic.services.clinic import build_memory_clinic

TODAY = date(2026, 10, 19)

USERS = [
    {"id": "a1", "name": "Alex Morgan", "role": UserRole.ADMIN, "email": "admin@clinic.test"},
    {"id": "d1", "name": "Dr. Michael Chen", "role": UserRole.DENTIST, "email": "chen@clinic.test"},
    {"id": "s1", "name": "Sam Rivera", "role": UserRole.STAFF, "email": "front@clinic.test"},
    {"id": "p1", "name": "Sarah Johnson", "role": UserRole.PATIENT, "email": "sarah@example.com"},
    {"id": "p2", "name": "John Smith", "role": UserRole.PATIENT, "phone": "555-0102"},
]


def appointment_values(patient_id="p1", patient_name="Sarah Johnson", status=AppointmentStatus.SCHEDULED, **overrides):
    values = {
        "patient_id": patient_id,
        "patient_name": patient_name,
        "contact": "sarah@example.com",
        "is_anonymous": False,
        "service": "Teeth Cleaning",
        "dentist_id": "d1",
        "dentist_name": "Dr. Michael Chen",
        "date": TODAY,
        "time": "09:30",
        "status": status,
        "notes": None,
    }
    values.update(overrides)
    return values


class FakeRedis:
    """Dict-backed stand-in for the few Redis commands the API uses."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])

    def expire(self, key, ttl):
        self.ttls[key] = ttl
        return True


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clinic():
    """A memory-backed clinic seeded with one user per role."""
    clinic = build_memory_clinic()
    asyncio.run(clinic.seed(users=USERS))
    return clinic


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(fake_redis):
    app.dependency_overrides[get_redis] = lambda: fake_redis
    with TestClient(app, base_url="http://testserver") as test_client:
        test_client.portal.call(functools.partial(test_client.app.state.clinic.seed, users=USERS))
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(user_id: str) -> dict:
    user = next(user for user in USERS if user["id"] == user_id)
    token = create_user_token(user["id"], user["name"], user["role"])
    return {"Authorization": f"Bearer {token}"}


def arrival(hour: int, minute: int) -> datetime:
    return datetime(2026, 10, 19, hour, minute)
