"""Flow trigger settings built once from the application config."""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..providers.liguelead import LigueLeadClient
from .candidates import get_default_candidates
from .prober import (
    DEFAULT_RECOVERABLE_STATUSES,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    ProbeOutcome,
    probe,
)


@dataclass(frozen=True)
class FlowTrigger:
    """Where and how ``/flow/start`` probes the CRM webhook."""

    webhook_url: str
    candidates: tuple[Any, ...] = field(default_factory=lambda: tuple(get_default_candidates()))
    recoverable_statuses: frozenset[int] = DEFAULT_RECOVERABLE_STATUSES
    retry_delay: float = DEFAULT_RETRY_DELAY
    timeout: float = DEFAULT_TIMEOUT
    sleep: Callable[[float], None] = time.sleep

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> FlowTrigger:
        candidates = config.get("FLOW_CANDIDATES")
        if candidates is None:
            candidates = get_default_candidates()
        return cls(
            webhook_url=config["FLOW_WEBHOOK_URL"],
            candidates=tuple(candidates),
            recoverable_statuses=frozenset(
                config.get("FLOW_RECOVERABLE_STATUSES") or DEFAULT_RECOVERABLE_STATUSES
            ),
            retry_delay=float(config.get("FLOW_RETRY_DELAY", DEFAULT_RETRY_DELAY)),
            timeout=float(config.get("FLOW_REQUEST_TIMEOUT", DEFAULT_TIMEOUT)),
        )

    def start(self, client: LigueLeadClient, log: logging.Logger | None = None) -> ProbeOutcome:
        """Run one probe against the webhook using the client's credentials and session."""

        return probe(
            self.candidates,
            self.webhook_url,
            client.flow_headers(),
            self.recoverable_statuses,
            self.retry_delay,
            timeout=self.timeout,
            session=client.session,
            sleep=self.sleep,
            log=log,
        )
