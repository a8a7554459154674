"""Tagged agent identity variant.

Callers match on the variant instead of comparing sentinel strings, so an
unrecognized name can never be mistaken for the exempt orchestrator.
"""

from dataclasses import dataclass

from swarmguard.agents.names import (
    ALL_SUBAGENT_NAMES,
    ORCHESTRATOR_NAME,
    strip_known_swarm_prefix,
)


@dataclass(frozen=True, slots=True)
class Orchestrator:
    raw: str = ORCHESTRATOR_NAME

    @property
    def name(self) -> str:
        return ORCHESTRATOR_NAME


@dataclass(frozen=True, slots=True)
class Known:
    name: str
    raw: str


@dataclass(frozen=True, slots=True)
class Unrecognized:
    raw: str

    @property
    def name(self) -> str:
        return self.raw


Identity = Orchestrator | Known | Unrecognized


def classify_identity(raw: str) -> Identity:
    base = strip_known_swarm_prefix(raw)
    if base == ORCHESTRATOR_NAME:
        return Orchestrator(raw=raw)
    if base in ALL_SUBAGENT_NAMES:
        return Known(name=base, raw=raw)
    return Unrecognized(raw=raw)


def identity_key(identity: Identity) -> str:
    """Key under which a session stores the identity's guardrail window."""
    match identity:
        case Orchestrator():
            return ORCHESTRATOR_NAME
        case Known(name=name):
            return name
        case Unrecognized(raw=raw):
            return raw
    raise TypeError(f"not an identity: {identity!r}")
