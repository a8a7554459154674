"""Swarmguard exception hierarchy.

All swarmguard-specific exceptions inherit from SwarmGuardError,
so hosts can catch the whole family with one clause.
"""


class SwarmGuardError(Exception):
    """Base exception for all swarmguard errors."""

    def __init__(self, message: str = "", *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class LimitReachedError(SwarmGuardError):
    """A guardrail hard limit was breached; the tool call must be denied.

    Never retryable: the window stays blocked until the session identity changes.
    """

    PREFIX = "LIMIT REACHED"

    def __init__(self, reason: str, *, agent_name: str = "", budget: str = "") -> None:
        super().__init__(f"{self.PREFIX}: {reason}", retryable=False)
        self.reason = reason
        self.agent_name = agent_name
        self.budget = budget


class SessionStateError(SwarmGuardError):
    """Session state store used out of order (e.g. window for a missing session)."""


class ConfigError(SwarmGuardError):
    """Invalid guardrails configuration document."""
