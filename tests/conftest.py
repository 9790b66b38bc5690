# tests/conftest.py
"""
Shared fixtures for the report moderation tests
"""
import os
import asyncio
from datetime import datetime, timedelta

# Settings are read at import time, so the environment comes first
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("DATABASE_NAME", "artmarket_test")
os.environ["EXPO_PUSH_ENABLED"] = "false"

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.main import app
from app.api.deps import get_current_active_user
from app.models.user import CurrentUser
from app.services.notification_service import get_notifier


class RecordingNotifier:
    """Stands in for NotificationDispatcher and remembers what was sent"""

    def __init__(self):
        self.sent = []
        self.role_broadcasts = []

    def dispatch(self, user_id, notification_type, payload):
        self.sent.append((user_id, notification_type, payload))

    def dispatch_many(self, deliveries):
        self.sent.extend(deliveries)

    def dispatch_to_role(self, role, notification_type, payload):
        self.role_broadcasts.append((role, notification_type, payload))


def run(coro):
    return asyncio.run(coro)


def make_report_doc(reporter_id, content_id, **overrides):
    now = datetime.utcnow()
    doc = {
        "reporter_id": reporter_id,
        "content_type": "artwork",
        "content_id": content_id,
        "target_user_id": None,
        "reason": "spam",
        "description": "Looks like spam to me",
        "priority": "medium",
        "status": "pending",
        "is_open": True,
        "admin_notes": None,
        "action_taken": None,
        "reviewed_by": None,
        "reviewed_at": None,
        "resolved_at": None,
        "metadata": {"content_title": "Untitled"},
        "created_at": now,
        "updated_at": now,
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def db():
    client = AsyncMongoMockClient()
    return client["artmarket_test"]


@pytest.fixture
def people(db):
    """Reporter, artist, a bystander and an admin"""
    users = {
        "reporter": {"_id": ObjectId(), "display_name": "Reem", "email": "reem@example.com", "role": "user", "is_active": True},
        "artist": {"_id": ObjectId(), "display_name": "Badr", "email": "badr@example.com", "role": "artist", "is_active": True},
        "other": {"_id": ObjectId(), "display_name": "Omar", "email": "omar@example.com", "role": "user", "is_active": True},
        "admin": {"_id": ObjectId(), "display_name": "Admin", "email": "admin@example.com", "role": "admin", "is_active": True},
    }
    run(db.users.insert_many(list(users.values())))
    return users


@pytest.fixture
def artwork(db, people):
    doc = {"_id": ObjectId(), "title": "Desert Dusk", "artist_id": people["artist"]["_id"]}
    run(db.artworks.insert_one(doc))
    return doc


@pytest.fixture
def caller():
    def _caller(user):
        return CurrentUser(id=str(user["_id"]), role=user["role"])
    return _caller


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(db, notifier, monkeypatch):
    monkeypatch.setattr("app.api.v1.reports.get_database", lambda: db)
    app.dependency_overrides[get_notifier] = lambda: notifier
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Make subsequent requests run as the given user"""
    def _login(user):
        current = CurrentUser(id=str(user["_id"]), role=user["role"])
        app.dependency_overrides[get_current_active_user] = lambda: current
        return current
    return _login


@pytest.fixture
def seed_report(db):
    def _seed(reporter_id, content_id, **overrides):
        doc = make_report_doc(reporter_id, content_id, **overrides)
        result = run(db.reports.insert_one(doc))
        doc["_id"] = result.inserted_id
        return doc
    return _seed


@pytest.fixture
def days_ago():
    def _days_ago(n):
        return datetime.utcnow() - timedelta(days=n)
    return _days_ago
