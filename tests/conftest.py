"""
Test configuration and fixtures for pytest.

This module provides shared fixtures used across all tests:
- Test database (SQLite in-memory for speed)
- Test client (FastAPI TestClient)
- Credentials store row for the "google" provider
- A recording stand-in for the database operations
- Fake provider responses for patched requests calls
"""

import os
from contextlib import contextmanager
from types import SimpleNamespace
from typing import Generator
from unittest.mock import Mock

from cryptography.fernet import Fernet

# Environment must be set before app modules read it at import time
os.environ["ENV"] = "test"
os.environ["SKIP_DB_INIT"] = "true"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TOKEN_ENCRYPTION_KEY"] = Fernet.generate_key().decode()
os.environ.pop("GOOGLE_CLIENT_ID", None)
os.environ.pop("GOOGLE_CLIENT_SECRET", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from main import app
from database import Base, get_db
from db_ops import SsoDbOps
from providers.base import ClientCredentials
from providers.google import GOOGLE_CONFIG, GoogleSso


# ---------------------------------------------------------------------------
# TEST DATABASE SETUP
# ---------------------------------------------------------------------------
# StaticPool keeps the same in-memory connection across all operations

engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh tables for each test; dropped afterwards."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Test client whose get_db dependency yields the test session."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def session_factory():
    """sessionmaker bound to the test engine, for code that opens its own sessions."""
    return TestingSessionLocal


@pytest.fixture
def db_ops(db: Session) -> SsoDbOps:
    return SsoDbOps(db)


@pytest.fixture
def google_credentials(db_ops: SsoDbOps):
    """Store client credentials for "google" in sso_provider."""
    return db_ops.upsert_sso_provider("google", "test-client-id", "test-client-secret")


@pytest.fixture
def google() -> GoogleSso:
    return GoogleSso(GOOGLE_CONFIG)


# ---------------------------------------------------------------------------
# FAKES
# ---------------------------------------------------------------------------

def _fake_response(status_code: int, data=None, text: str | None = None) -> Mock:
    """Stand-in for requests.Response. data=None means the body is not JSON."""
    resp = Mock()
    resp.status_code = status_code
    if data is None:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
        resp.text = text or ""
    else:
        resp.json.return_value = data
        resp.text = str(data)
    return resp


@pytest.fixture
def fake_response():
    """Factory: fake_response(status_code, data=None, text=None) -> Mock response."""
    return _fake_response


class RecordingDbOps:
    """
    In-memory stand-in for SsoDbOps that records every call.

    existing_link simulates an sso_user_account already stored for the
    profile being reconciled.
    """

    READS = ("get_client_credentials", "find_account_link")

    def __init__(self, existing_link=None):
        self.calls: list[tuple] = []
        self.existing_link = existing_link
        self.users = []
        self.links = []
        self.tokens = {}

    @contextmanager
    def transaction(self):
        yield

    @property
    def writes(self) -> list[tuple]:
        return [c for c in self.calls if c[0] not in self.READS]

    def get_client_credentials(self, provider):
        self.calls.append(("get_client_credentials", provider))
        return ClientCredentials("test-client-id", "test-client-secret")

    def find_account_link(self, provider, provider_user_id):
        self.calls.append(("find_account_link", provider, provider_user_id))
        for link in self.links:
            if (link.provider, link.provider_user_id) == (provider, provider_user_id):
                return link
        return self.existing_link

    def create_user(self, preferences):
        self.calls.append(("create_user", preferences))
        user = SimpleNamespace(user_id=len(self.users) + 1, preferences=dict(preferences))
        self.users.append(user)
        return user

    def create_account_link(self, user_id, profile, provider):
        self.calls.append(("create_account_link", user_id, profile.provider_user_id, provider))
        link = SimpleNamespace(
            sso_user_account_id=len(self.links) + 1,
            user_id=user_id,
            provider=provider,
            provider_user_id=profile.provider_user_id,
            email=profile.email,
        )
        self.links.append(link)
        return link

    def update_account_link(self, link_id, profile):
        self.calls.append(("update_account_link", link_id, profile.provider_user_id))
        link = self.existing_link if self.existing_link and self.existing_link.sso_user_account_id == link_id else None
        for candidate in self.links:
            if candidate.sso_user_account_id == link_id:
                link = candidate
        link.email = profile.email
        return link

    def create_access_token(self, link_id, token_info):
        self.calls.append(("create_access_token", link_id, token_info.access_token))
        record = SimpleNamespace(sso_user_account_id=link_id, access_token=token_info.access_token)
        self.tokens[link_id] = record
        return record

    def update_access_token(self, link_id, token_info):
        self.calls.append(("update_access_token", link_id, token_info.access_token))
        record = SimpleNamespace(sso_user_account_id=link_id, access_token=token_info.access_token)
        self.tokens[link_id] = record
        return record


@pytest.fixture
def recording_db_ops():
    """Factory: recording_db_ops(existing_link=None) -> RecordingDbOps."""
    return RecordingDbOps
