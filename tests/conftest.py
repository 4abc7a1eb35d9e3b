"""Shared test fixtures."""

import time
from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient

from main import create_app
from mygoprofile.config import Settings
from mygoprofile.mock_gbp import MockBusinessDataSource
from mygoprofile.session import Credential, Session, encode_session

TEST_SECRET = "test-secret"


@dataclass
class RecordingSourceFactory:
    """Hands out one MockBusinessDataSource and records who asked for it."""

    source: MockBusinessDataSource = field(default_factory=MockBusinessDataSource)
    credentials: list[Credential] = field(default_factory=list)

    def __call__(self, credential: Credential) -> MockBusinessDataSource:
        self.credentials.append(credential)
        return self.source


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "SECRET_KEY": TEST_SECRET,
        "BUSINESS_DATA_SOURCE": "mock",
        "GOOGLE_CLIENT_ID": "client-id",
        "GOOGLE_CLIENT_SECRET": "client-secret",
        "GOOGLE_REDIRECT_URI": "http://testserver/auth/google/callback",
        "FRONTEND_ORIGIN": "http://testserver",
    }
    values.update(overrides)
    return Settings(**values)


def session_cookie(
    settings: Settings,
    *,
    access_token: str = "ya29.test-token",
    ttl: int = 3600,
    email: str = "owner@example.com",
    name: str | None = "Test Owner",
) -> str:
    session = Session(
        name=name,
        email=email,
        access_token=access_token,
        expires_at=int(time.time()) + ttl,
    )
    return encode_session(settings.secret_key, session)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def source_factory() -> RecordingSourceFactory:
    return RecordingSourceFactory()


@pytest.fixture
def source(source_factory: RecordingSourceFactory) -> MockBusinessDataSource:
    return source_factory.source


@pytest.fixture
def client(settings: Settings, source_factory: RecordingSourceFactory) -> TestClient:
    app = create_app(settings, data_source_factory=source_factory)
    return TestClient(app)


@pytest.fixture
def signed_in_client(client: TestClient, settings: Settings) -> TestClient:
    client.cookies.set(settings.session_cookie_name, session_cookie(settings))
    return client
