from __future__ import annotations

import pathlib
import sys
from collections.abc import Callable
from typing import Any

import pytest
import requests
from sqlalchemy.pool import StaticPool

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _load_dependencies():
    from gateway import Config, create_app
    from backend.gateway.extensions import db

    return Config, create_app, db


ConfigBase, create_app, db = _load_dependencies()


class TestConfig(ConfigBase):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite+pysqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "poolclass": StaticPool,
        "connect_args": {"check_same_thread": False},
    }
    RATELIMIT_ENABLED = False
    CORS_ALLOWED_ORIGINS = "http://localhost"
    LIGUELEAD_BASE_URL = "https://liguelead.test/v1"
    LIGUELEAD_API_TOKEN = "test-api-token"
    LIGUELEAD_APP_ID = "test-app-id"
    FLOW_WEBHOOK_URL = "https://crm.test/webhook/flow"
    FLOW_CANDIDATES = None
    FLOW_RETRY_DELAY = 0.0
    API4COM_BASE_URL = "https://api4com.test/api/v1"
    API4COM_EMAIL = "gateway@example.com"
    API4COM_PASSWORD = "gateway-password"
    API4COM_CPF_CNPJ = "00000000000"
    JWT_SECRET = "test-secret-with-enough-entropy-for-hs256"
    JWT_EXPIRES_IN = "1h"
    BCRYPT_ROUNDS = 4


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code: int = 200, json_data: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        self._json = json_data
        if text is None:
            text = "" if json_data is None else repr(json_data)
        self.text = text

    def json(self) -> Any:
        if self._json is None:
            raise ValueError("no JSON body")
        return self._json


class FakeSession:
    """Records outgoing requests and replays queued responses or exceptions."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self._queue: list[FakeResponse | Exception] = []

    def queue(self, *items: FakeResponse | Exception) -> FakeSession:
        self._queue.extend(items)
        return self

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self._queue:
            raise AssertionError(f"unexpected request: {method} {url}")
        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def connection_error(message: str = "connection refused") -> requests.ConnectionError:
    return requests.ConnectionError(message)


@pytest.fixture(scope="module")
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def fake_session_factory(app) -> Callable[[str], FakeSession]:
    """Swap a fresh ``FakeSession`` into the named provider client."""

    originals: dict[str, Any] = {}

    def factory(provider: str) -> FakeSession:
        provider_client = app.extensions[provider]
        originals.setdefault(provider, provider_client.session)
        session = FakeSession()
        provider_client.session = session
        return session

    yield factory

    for provider, session in originals.items():
        app.extensions[provider].session = session


@pytest.fixture()
def liguelead_session(fake_session_factory) -> FakeSession:
    return fake_session_factory("liguelead")


@pytest.fixture()
def api4com_session(app, fake_session_factory) -> FakeSession:
    app.extensions["api4com"]._token = None
    return fake_session_factory("api4com")


@pytest.fixture(autouse=True)
def cleanup_tables(app):
    from backend.gateway.models import Call, Contact, Extension, User, WebhookEvent

    yield

    for model in (User, Contact, Extension, Call, WebhookEvent):
        db.session.query(model).delete()
    db.session.commit()
