"""Sequential prober that finds a payload shape accepted by a webhook."""
from __future__ import annotations

import enum
import json
import logging
import time
from collections.abc import Callable, Collection, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import requests

from ..providers.base import failed_status_message, response_body

NO_RESPONSE = "no-response"
DEFAULT_RECOVERABLE_STATUSES = frozenset({400, 422})
DEFAULT_RETRY_DELAY = 0.3
DEFAULT_TIMEOUT = 10.0

logger = logging.getLogger(__name__)


class OutcomeKind(str, enum.Enum):
    FIRST_SUCCESS = "first-success"
    NON_RECOVERABLE = "non-recoverable-failure"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class Attempt:
    """One rejected candidate: its payload, the status (or ``NO_RESPONSE``) and body."""

    payload: Any
    status: int | str
    data: Any

    def to_dict(self) -> dict[str, Any]:
        return {"payload": self.payload, "status": self.status, "data": self.data}


@dataclass
class ProbeOutcome:
    kind: OutcomeKind
    attempts: list[Attempt] = field(default_factory=list)
    used_payload: Any = None
    response: Any = None
    status: int | None = None
    error: Any = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.FIRST_SUCCESS


def probe(
    candidates: Sequence[Any],
    endpoint: str,
    headers: Mapping[str, str],
    recoverable_statuses: Collection[int] = DEFAULT_RECOVERABLE_STATUSES,
    delay: float = DEFAULT_RETRY_DELAY,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    session: Any = None,
    sleep: Callable[[float], None] = time.sleep,
    log: logging.Logger | None = None,
) -> ProbeOutcome:
    """POST each candidate to ``endpoint`` in order until one is accepted.

    A 2xx response ends the run with its candidate. A response whose status is
    in ``recoverable_statuses`` moves on to the next candidate after ``delay``
    seconds. Any other response status aborts the run. A request that produced
    no response at all is recorded as ``NO_RESPONSE`` and never aborts.

    Errors raised while building a request (e.g. a payload that is not JSON
    serialisable) are not caught.
    """

    http = session if session is not None else requests
    log = log or logger
    attempts: list[Attempt] = []

    for payload in candidates:
        body = json.dumps(payload)
        log.info("Trying flow payload %s", body)
        try:
            response = http.request(
                "POST", endpoint, data=body, headers=dict(headers), timeout=timeout
            )
        except requests.RequestException as exc:
            log.warning("Flow attempt got no response: payload=%s error=%s", body, exc)
            attempts.append(Attempt(payload=payload, status=NO_RESPONSE, data=str(exc)))
            sleep(delay)
            continue

        data = response_body(response)
        status = response.status_code
        if 200 <= status < 300:
            log.info("Webhook accepted payload %s with status %s", body, status)
            return ProbeOutcome(
                kind=OutcomeKind.FIRST_SUCCESS,
                attempts=attempts,
                used_payload=payload,
                response=data,
                status=status,
            )

        recorded = data if data not in ("", None) else failed_status_message(status)
        log.warning("Flow attempt failed: payload=%s status=%s data=%s", body, status, data)
        attempts.append(Attempt(payload=payload, status=status, data=recorded))
        if status not in recoverable_statuses:
            log.error("Non-recoverable status %s returned, aborting flow attempts", status)
            return ProbeOutcome(
                kind=OutcomeKind.NON_RECOVERABLE,
                attempts=attempts,
                status=status,
                error=recorded,
            )
        sleep(delay)

    log.error("No flow payload was accepted by the webhook")
    return ProbeOutcome(kind=OutcomeKind.EXHAUSTED, attempts=attempts)
