"""Rate limiting of the flow trigger endpoint."""
from __future__ import annotations

import pytest

from conftest import FakeResponse, FakeSession, TestConfig, create_app, db


class RateLimitedConfig(TestConfig):
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = "memory://"
    FLOW_START_RATE_LIMIT = "2 per minute"
    ENABLE_API4COM_API = False
    ENABLE_USERS_API = False


@pytest.fixture(scope="module")
def app():
    app = create_app(RateLimitedConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    ctx.pop()


def test_flow_start_is_rate_limited(app):
    client = app.test_client()
    session = FakeSession().queue(FakeResponse(200, {"ok": True}), FakeResponse(200, {"ok": True}))
    app.extensions["liguelead"].session = session

    assert client.post("/flow/start").status_code == 200
    assert client.post("/flow/start").status_code == 200
    assert client.post("/flow/start").status_code == 429
    assert len(session.calls) == 2
