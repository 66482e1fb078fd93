"""
Shared test fixtures.

Provides FastAPI TestClients wired to:
  • a temporary SQLite database (via app lifespan)
  • in-memory rate-limit storage
  • a recording mailer instead of SMTP
  • the cheapest bcrypt cost so hashing stays fast

Rate limiting is disabled in the default `client`; use `limited_client`
(or `client_factory(rate_limit_enabled=True)`) to exercise it.
"""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from taskauth.config import Settings
from taskauth.main import create_app
from tests.mocks.services import FakeMailer


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        db_path=str(tmp_path / "test.db"),
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        rate_limit_enabled=False,
        rate_limit_storage_uri="memory://",
        smtp_mode="false",
    )


@pytest.fixture()
def fake_mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture()
def client_factory(settings: Settings, fake_mailer: FakeMailer):
    """
    Build a TestClient for an app with some settings overridden.

    Each client runs the full lifespan and is closed at teardown.
    """
    with ExitStack() as stack:

        def _make(**overrides) -> TestClient:
            app = create_app(replace(settings, **overrides), mailer=fake_mailer)
            return stack.enter_context(TestClient(app, raise_server_exceptions=False))

        yield _make


@pytest.fixture()
def client(client_factory) -> TestClient:
    return client_factory()


@pytest.fixture()
def verifying_client(client_factory) -> TestClient:
    """Client for an app that requires email verification at registration."""
    return client_factory(require_email_verification=True)


@pytest.fixture()
def limited_client(client_factory) -> TestClient:
    """Client with the production quota (20 requests / 60 s) enabled."""
    return client_factory(rate_limit_enabled=True, rate_limit="20/60 seconds")
