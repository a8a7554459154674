"""Recognized agent identifiers and swarm-prefix normalization."""

import re

ORCHESTRATOR_NAME = "architect"
ALL_SUBAGENT_NAMES = (
    "sme",
    "reviewer",
    "critic",
    "explorer",
    "coder",
    "test_engineer",
    "docs",
    "designer",
)
ALL_AGENT_NAMES = (ORCHESTRATOR_NAME, *ALL_SUBAGENT_NAMES)

# Seeded when a session is created without a name; deliberately not a recognized agent.
UNKNOWN_AGENT = "unknown"

_SEPARATORS = re.compile(r"[-\s]+")


def normalize_agent_name(name: str) -> str:
    """Lower-case and fold hyphens/whitespace into underscores."""
    return _SEPARATORS.sub("_", name.lower())


def strip_known_swarm_prefix(name: str) -> str:
    """Return the recognized base agent name behind a swarm alias.

    ``local_architect`` -> ``architect``, ``Paid-Coder`` -> ``coder``,
    ``a_b_c_architect`` -> ``architect``. Only a whole ``_<base>`` suffix matches,
    so ``architectural`` and ``architects`` come back unchanged, as does any name
    that does not end in a recognized agent.
    """
    if not name:
        return name
    if name in ALL_AGENT_NAMES:
        return name
    normalized = normalize_agent_name(name)
    for agent_name in ALL_AGENT_NAMES:
        if normalized == agent_name or normalized.endswith(f"_{agent_name}"):
            return agent_name
    return name


def is_orchestrator_name(name: str | None) -> bool:
    return bool(name) and strip_known_swarm_prefix(name) == ORCHESTRATOR_NAME
