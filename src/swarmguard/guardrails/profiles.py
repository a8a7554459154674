"""Effective guardrails config per agent: base < built-in profile < user profile."""

from swarmguard.agents.names import normalize_agent_name, strip_known_swarm_prefix
from swarmguard.guardrails.models import DEFAULT_AGENT_PROFILES, GuardrailsConfig, GuardrailsProfile


def _user_profile(base: GuardrailsConfig, agent_name: str) -> tuple[str, GuardrailsProfile] | None:
    # Full-name keys win over the stripped base name.
    candidates = (
        agent_name,
        normalize_agent_name(agent_name),
        strip_known_swarm_prefix(agent_name),
    )
    for key in candidates:
        profile = base.profiles.get(key)
        if profile is not None:
            return key, profile
    return None


def explain_guardrails_config(
    base: GuardrailsConfig, agent_name: str | None = None
) -> list[tuple[str, dict[str, object]]]:
    """List the layers that produce an agent's effective config, lowest first."""
    layers: list[tuple[str, dict[str, object]]] = [
        ("base", base.model_dump(exclude={"profiles"}))
    ]
    if not agent_name:
        return layers
    base_name = strip_known_swarm_prefix(agent_name)
    # An unknown name never borrows another agent's built-in profile.
    built_in = DEFAULT_AGENT_PROFILES.get(base_name)
    if built_in is not None:
        layers.append((f"built-in:{base_name}", built_in.overrides()))
    user = _user_profile(base, agent_name)
    if user is not None:
        key, profile = user
        layers.append((f"profile:{key}", profile.overrides()))
    return layers


def resolve_guardrails_config(
    base: GuardrailsConfig, agent_name: str | None = None
) -> GuardrailsConfig:
    """Return the effective guardrails config for an agent.

    Without a name, or for an unknown name that has no user profile, ``base`` is
    returned as is. ``base`` is never mutated.
    """
    if not agent_name:
        return base
    layers = explain_guardrails_config(base, agent_name)[1:]
    if not layers:
        return base
    merged: dict[str, object] = {}
    for _, overrides in layers:
        merged.update(overrides)
    return base.model_copy(update=merged)
