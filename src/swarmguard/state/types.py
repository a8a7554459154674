"""Session and guardrail window records."""

from collections import deque
from dataclasses import dataclass, field

# Longest history any repetition check can need (upper bound of max_repetitions).
RECENT_CALLS_LIMIT = 50


@dataclass(slots=True)
class GuardrailWindow:
    agent_name: str
    start_time: float
    last_tool_call_time: float
    tool_calls: int = 0
    consecutive_errors: int = 0
    recent_fingerprints: deque[str] = field(
        default_factory=lambda: deque(maxlen=RECENT_CALLS_LIMIT)
    )
    hard_limit_hit: bool = False
    limit_reason: str = ""
    warning_emitted: bool = False
    warning_reason: str = ""


@dataclass(slots=True)
class AgentSession:
    """Per-session identity and accounting record.

    ``last_tool_call_time`` tracks tool activity only. ``last_agent_event_time`` tracks
    identity events only; staleness of a delegation is never inferred from tool activity.
    """

    agent_name: str
    start_time: float
    last_tool_call_time: float
    last_agent_event_time: float
    delegation_active: bool = False
    tool_call_count: int = 0
    hard_limit_hit: bool = False
    windows: dict[str, GuardrailWindow] = field(default_factory=dict)


@dataclass(slots=True)
class DelegationEntry:
    from_agent: str
    to_agent: str
    timestamp: float
