"""Flow trigger package."""

from .candidates import get_default_candidates
from .prober import Attempt, OutcomeKind, ProbeOutcome, probe
from .trigger import FlowTrigger

__all__ = [
    "Attempt",
    "FlowTrigger",
    "OutcomeKind",
    "ProbeOutcome",
    "get_default_candidates",
    "probe",
]
