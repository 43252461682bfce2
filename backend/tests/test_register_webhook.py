"""Tests for the Api4Com webhook registration helper and script."""
from __future__ import annotations

import pathlib
import sys

from conftest import FakeResponse, FakeSession, TestConfig, create_app

from backend.gateway.providers import Api4ComClient

SCRIPTS = pathlib.Path(__file__).resolve().parents[1] / "scripts"
if str(SCRIPTS) not in sys.path:
    sys.path.insert(0, str(SCRIPTS))

import register_webhook  # noqa: E402


def _client(session: FakeSession) -> Api4ComClient:
    return Api4ComClient(
        "https://api4com.test/api/v1", "ops@example.com", "secret-pass", session=session
    )


def test_existing_integration_is_updated():
    session = FakeSession().queue(
        FakeResponse(200, {"id": "tok"}),
        FakeResponse(200, {"data": [{"id": "int-9", "gateway": "gw"}, {"id": "int-1", "gateway": "other"}]}),
        FakeResponse(200, {"id": "int-9"}),
    )

    payload, existing_id = _client(session).register_webhook("gw", "https://hooks.test/callback")

    assert existing_id == "int-9"
    patch = session.calls[2]
    assert patch["method"] == "PATCH"
    assert patch["url"] == "https://api4com.test/api/v1/integrations"
    assert patch["json"] == payload
    assert payload == {
        "gateway": "gw",
        "webhook": True,
        "webhookConstraint": {"metadata": {"gateway": "gw"}},
        "metadata": {
            "webhookUrl": "https://hooks.test/callback",
            "webhookVersion": "v1.8",
            "webhookTypes": ["channel-answer", "channel-hangup"],
        },
        "id": "int-9",
    }
    assert session.calls[0]["json"] == {"email": "ops@example.com", "password": "secret-pass"}


def test_new_integration_is_created():
    session = FakeSession().queue(
        FakeResponse(200, {"id": "tok"}),
        FakeResponse(200, []),
        FakeResponse(200, {"id": "int-10"}),
    )

    payload, existing_id = _client(session).register_webhook("gw", "https://hooks.test/callback")

    assert existing_id is None
    assert "id" not in payload


def test_register_reports_failures(capsys):
    session = FakeSession().queue(
        FakeResponse(200, {"id": "tok"}),
        FakeResponse(200, []),
        FakeResponse(400, {"message": "invalid gateway"}),
    )

    exit_code = register_webhook.register(_client(session), "gw", "https://hooks.test/callback")

    assert exit_code == 1
    assert "invalid gateway" in capsys.readouterr().err


def test_register_reports_success(capsys):
    session = FakeSession().queue(
        FakeResponse(200, {"id": "tok"}),
        FakeResponse(200, [{"id": "int-9", "gateway": "gw"}]),
        FakeResponse(200, {}),
    )

    exit_code = register_webhook.register(_client(session), "gw", "https://hooks.test/callback")

    assert exit_code == 0
    output = capsys.readouterr().out
    assert "Existing integration int-9 updated" in output
    assert "https://hooks.test/callback" in output


def test_missing_credentials_fail_without_requests():
    session = FakeSession()
    client = Api4ComClient("https://api4com.test/api/v1", None, None, session=session)

    exit_code = register_webhook.register(client, "gw", "https://hooks.test/callback")

    assert exit_code == 1
    assert session.calls == []


class Api4ComDisabledConfig(TestConfig):
    ENABLE_API4COM_API = False


def test_main_exits_when_api4com_is_disabled(monkeypatch, capsys):
    monkeypatch.setattr(register_webhook, "create_app", lambda: create_app(Api4ComDisabledConfig))

    exit_code = register_webhook.main([])

    assert exit_code == 1
    assert "ENABLE_API4COM_API" in capsys.readouterr().err
