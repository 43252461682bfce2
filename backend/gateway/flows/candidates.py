"""Built-in payload shapes tried against the CRM flow webhook."""
from __future__ import annotations

import copy
from typing import Any

FLOW_EVENT = "iniciar_flow"
FLOW_EVENT_EN = "start_flow"
MANUAL_LEAD_ID = "manual-test-1"

_DEFAULT_CANDIDATES: list[dict[str, Any]] = [
    {"event": FLOW_EVENT},
    {"event": FLOW_EVENT_EN},
    {"action": FLOW_EVENT},
    {"action": FLOW_EVENT_EN},
    {"type": FLOW_EVENT},
    {"type": FLOW_EVENT_EN},
    {"trigger": FLOW_EVENT},
    {"trigger": FLOW_EVENT_EN},
    {"event": {"name": FLOW_EVENT}},
    {"event": {"name": FLOW_EVENT_EN}},
    {"event": FLOW_EVENT, "leadId": MANUAL_LEAD_ID},
    {"event": FLOW_EVENT, "lead": {"id": MANUAL_LEAD_ID, "name": "Teste"}},
    {"action": FLOW_EVENT_EN, "data": {"source": "api"}},
    {},
    {},
]


def get_default_candidates() -> list[dict[str, Any]]:
    """Return a copy of the built-in candidate payloads, in probing order."""

    return copy.deepcopy(_DEFAULT_CANDIDATES)
