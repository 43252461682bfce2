"""Tests for the sequential flow payload prober."""
from __future__ import annotations

import json
import logging

import pytest

from backend.gateway.flows import OutcomeKind, get_default_candidates, probe
from backend.gateway.flows.prober import NO_RESPONSE

from conftest import FakeResponse, FakeSession, connection_error

ENDPOINT = "https://crm.test/webhook/flow"
HEADERS = {"Content-Type": "application/json", "api-token": "t", "app-id": "a"}


class _SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _run(candidates, session, sleep=None, **kwargs):
    return probe(
        candidates,
        ENDPOINT,
        HEADERS,
        {400, 422},
        0.3,
        session=session,
        sleep=sleep or _SleepRecorder(),
        **kwargs,
    )


@pytest.mark.parametrize("accepted_index", [1, 2, 5])
def test_nth_candidate_accepted_after_recoverable_failures(accepted_index):
    candidates = [{"event": f"shape-{index}"} for index in range(1, 7)]
    session = FakeSession()
    for index in range(1, accepted_index):
        session.queue(FakeResponse(400 if index % 2 else 422, {"message": "invalid"}))
    session.queue(FakeResponse(200, {"queued": True}))
    sleep = _SleepRecorder()

    outcome = _run(candidates, session, sleep)

    assert outcome.kind is OutcomeKind.FIRST_SUCCESS
    assert outcome.ok
    assert outcome.used_payload == candidates[accepted_index - 1]
    assert outcome.response == {"queued": True}
    assert len(session.calls) == accepted_index
    assert sleep.delays == [0.3] * (accepted_index - 1)


def test_non_recoverable_status_aborts_after_first_attempt():
    candidates = [{"event": "a"}, {"event": "b"}, {"event": "c"}]
    session = FakeSession().queue(FakeResponse(500, {"message": "boom"}))
    sleep = _SleepRecorder()

    outcome = _run(candidates, session, sleep)

    assert outcome.kind is OutcomeKind.NON_RECOVERABLE
    assert outcome.status == 500
    assert outcome.error == {"message": "boom"}
    assert [attempt.to_dict() for attempt in outcome.attempts] == [
        {"payload": {"event": "a"}, "status": 500, "data": {"message": "boom"}}
    ]
    assert len(session.calls) == 1
    assert sleep.delays == []


def test_all_recoverable_failures_exhaust_candidates():
    candidates = [{"event": "a"}, {"action": "b"}, {}]
    session = FakeSession().queue(
        FakeResponse(422, {"message": "no"}),
        FakeResponse(400, {"message": "bad"}),
        FakeResponse(422, {"message": "no"}),
    )
    sleep = _SleepRecorder()

    outcome = _run(candidates, session, sleep)

    assert outcome.kind is OutcomeKind.EXHAUSTED
    assert len(outcome.attempts) == len(candidates)
    assert [attempt.status for attempt in outcome.attempts] == [422, 400, 422]
    assert [attempt.payload for attempt in outcome.attempts] == candidates
    assert sleep.delays == [0.3, 0.3, 0.3]


def test_missing_response_does_not_abort():
    candidates = [{"event": "iniciar_flow"}, {"action": "iniciar_flow"}]
    session = FakeSession().queue(
        connection_error("connection reset"),
        FakeResponse(201, {"queued": True}),
    )
    sleep = _SleepRecorder()

    outcome = _run(candidates, session, sleep)

    assert outcome.kind is OutcomeKind.FIRST_SUCCESS
    assert outcome.used_payload == {"action": "iniciar_flow"}
    assert len(outcome.attempts) == 1
    assert outcome.attempts[0].status == NO_RESPONSE
    assert "connection reset" in outcome.attempts[0].data
    assert sleep.delays == [0.3]


def test_transport_failures_only_end_exhausted():
    candidates = [{"event": "a"}, {"event": "b"}]
    session = FakeSession().queue(connection_error(), connection_error())

    outcome = _run(candidates, session)

    assert outcome.kind is OutcomeKind.EXHAUSTED
    assert [attempt.status for attempt in outcome.attempts] == [NO_RESPONSE, NO_RESPONSE]


def test_request_shape_and_timeout():
    session = FakeSession().queue(FakeResponse(200, {"ok": 1}))

    _run([{"event": "iniciar_flow"}], session, timeout=10.0)

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == ENDPOINT
    assert json.loads(call["data"]) == {"event": "iniciar_flow"}
    assert call["headers"] == HEADERS
    assert call["timeout"] == 10.0


def test_empty_error_body_records_status_message():
    session = FakeSession().queue(FakeResponse(503, text=""))

    outcome = _run([{"event": "iniciar_flow"}], session)

    assert outcome.kind is OutcomeKind.NON_RECOVERABLE
    assert outcome.error == "Request failed with status code 503"
    assert outcome.attempts[0].data == "Request failed with status code 503"


@pytest.mark.parametrize("body", [{}, [], 0, False])
def test_falsy_json_error_body_is_kept(body):
    session = FakeSession().queue(FakeResponse(503, body))

    outcome = _run([{"event": "iniciar_flow"}], session)

    assert outcome.kind is OutcomeKind.NON_RECOVERABLE
    assert outcome.error == body
    assert outcome.attempts[0].data == body


def test_text_response_body_is_kept():
    session = FakeSession().queue(FakeResponse(200, text="accepted"))

    outcome = _run([{}], session)

    assert outcome.response == "accepted"


def test_unserialisable_candidate_raises_before_any_request():
    session = FakeSession()

    with pytest.raises(TypeError):
        _run([{"when": object()}], session)

    assert session.calls == []


def test_attempts_are_logged(caplog):
    session = FakeSession().queue(FakeResponse(422, {"message": "no"}), FakeResponse(200, {}))
    log = logging.getLogger("tests.prober")

    with caplog.at_level(logging.INFO, logger="tests.prober"):
        _run([{"event": "a"}, {"event": "b"}], session, log=log)

    messages = [record.getMessage() for record in caplog.records]
    assert any("status=422" in message for message in messages)
    assert any("accepted payload" in message for message in messages)


def test_default_candidates_are_fresh_copies():
    first = get_default_candidates()
    first[0]["event"] = "changed"

    second = get_default_candidates()

    assert second[0] == {"event": "iniciar_flow"}
    assert len(second) == 15
    assert second[-1] == {} and second[-2] == {}
