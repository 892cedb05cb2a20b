"""
Pytest configuration and shared fixtures.

- API tests run against a fresh in-memory ComplaintStore per test
- The notification queue is patched out: enqueue() is recorded, not sent
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from complaintdesk.core.config import settings
from complaintdesk.core.security import create_access_token
from complaintdesk.db.models import Complaint
from complaintdesk.services import notifications
from complaintdesk.services.store import ComplaintStore, get_store

HOD_ID = "hod-1"
STAFF_ID = "staff-1"
OTHER_ID = "other-9"
STUDENT_ID = "student-1"


@pytest.fixture
def events(monkeypatch) -> list[tuple[str, dict]]:
    """Captured (event_type, payload) pairs instead of RQ jobs."""
    sent: list[tuple[str, dict]] = []

    def fake_enqueue(event_type: str, payload: Any) -> str:
        sent.append((event_type, dict(payload)))
        return "job-id"

    monkeypatch.setattr(notifications, "enqueue", fake_enqueue)
    return sent


@pytest.fixture
def store() -> ComplaintStore:
    s = ComplaintStore()
    s.set_staff("IT", [STAFF_ID])
    return s


@pytest.fixture
def make_complaint(store: ComplaintStore) -> Callable[..., Complaint]:
    counter = {"n": 0}

    def _make(**fields: Any) -> Complaint:
        counter["n"] += 1
        values = {
            "title": f"Complaint {counter['n']}",
            "category": "Facilities",
            "department": "IT",
            "submitted_by": STUDENT_ID,
            "created_at": datetime.now(timezone.utc) + timedelta(seconds=counter["n"]),
        }
        values.update(fields)
        return store.add(Complaint.new(**values))

    return _make


@pytest.fixture
def client(store: ComplaintStore, events) -> TestClient:
    from complaintdesk.main import app

    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth() -> Callable[..., dict]:
    """Authorization headers for a user with the given role."""

    def _headers(user_id: str, role: str, department: str | None = "IT", email: str | None = None) -> dict:
        token = create_access_token(
            subject=user_id,
            role=role,
            department=department,
            email=email or f"{user_id}@uni.example",
            secret=settings.jwt_secret,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
