"""Session state store: the single authority for agent identity transitions."""

import logging
import time
from collections.abc import Callable

from swarmguard.agents.identity import Orchestrator, classify_identity, identity_key
from swarmguard.agents.names import UNKNOWN_AGENT
from swarmguard.errors import SessionStateError
from swarmguard.state.types import AgentSession, DelegationEntry, GuardrailWindow

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

DEFAULT_STALE_SESSION_SECONDS = 120 * 60
DEFAULT_DELEGATION_EVENT_TIMEOUT_SECONDS = 10.0
DEFAULT_WINDOW_MAX_AGE_SECONDS = 24 * 60 * 60
DEFAULT_MAX_WINDOWS = 50


class SessionStateStore:
    """Per-activation map of session -> identity and session -> accounting.

    Identity changes go through ``start_agent_session`` only, which keeps
    ``active_agent`` and each session's ``agent_name`` in step.
    """

    def __init__(
        self,
        clock: Clock = time.time,
        *,
        stale_session_seconds: float = DEFAULT_STALE_SESSION_SECONDS,
        window_max_age_seconds: float = DEFAULT_WINDOW_MAX_AGE_SECONDS,
        max_windows: int = DEFAULT_MAX_WINDOWS,
        delegation_event_timeout_seconds: float = DEFAULT_DELEGATION_EVENT_TIMEOUT_SECONDS,
    ) -> None:
        self._clock = clock
        self.stale_session_seconds = stale_session_seconds
        self.window_max_age_seconds = window_max_age_seconds
        self.max_windows = max_windows
        self.delegation_event_timeout_seconds = delegation_event_timeout_seconds
        self.active_agent: dict[str, str] = {}
        self.agent_sessions: dict[str, AgentSession] = {}
        self.delegation_chains: dict[str, list[DelegationEntry]] = {}

    def now(self) -> float:
        return self._clock()

    def reset(self) -> None:
        self.active_agent.clear()
        self.agent_sessions.clear()
        self.delegation_chains.clear()

    def start_agent_session(self, session_id: str, agent_name: str) -> AgentSession:
        now = self.now()
        self._evict_stale_sessions(now, keep=session_id)

        identity = classify_identity(agent_name)
        previous = self.agent_sessions.get(session_id)
        same_identity = previous is not None and identity_key(
            classify_identity(previous.agent_name)
        ) == identity_key(identity)
        delegating = not isinstance(identity, Orchestrator)

        session = AgentSession(
            agent_name=agent_name,
            start_time=now,
            last_tool_call_time=now,
            last_agent_event_time=now,
            delegation_active=delegating,
        )
        if same_identity:
            session.windows = previous.windows
            session.hard_limit_hit = previous.hard_limit_hit

        self.agent_sessions[session_id] = session
        self.active_agent[session_id] = agent_name
        if previous is not None and not same_identity:
            logger.debug(
                "Session %s identity %s -> %s", session_id, previous.agent_name, agent_name
            )
        return session

    def ensure_agent_session(self, session_id: str, agent_name: str | None = None) -> AgentSession:
        session = self.agent_sessions.get(session_id)
        if session is None:
            return self.start_agent_session(
                session_id, agent_name if agent_name is not None else UNKNOWN_AGENT
            )
        if agent_name is not None and agent_name != session.agent_name:
            return self.start_agent_session(session_id, agent_name)
        return session

    def end_agent_session(self, session_id: str) -> None:
        self.agent_sessions.pop(session_id, None)
        self.active_agent.pop(session_id, None)
        self.delegation_chains.pop(session_id, None)

    def get_agent_session(self, session_id: str) -> AgentSession | None:
        return self.agent_sessions.get(session_id)

    def get_active_window(self, session_id: str) -> GuardrailWindow | None:
        """Window of the session's recorded identity; None when exempt or absent."""
        session = self.agent_sessions.get(session_id)
        if session is None:
            return None
        identity = classify_identity(session.agent_name)
        match identity:
            case Orchestrator():
                return None
            case _:
                return session.windows.get(identity_key(identity))

    def begin_invocation(self, session_id: str, agent_name: str) -> GuardrailWindow | None:
        session = self.agent_sessions.get(session_id)
        if session is None:
            raise SessionStateError(
                f"Cannot begin invocation: session {session_id} does not exist"
            )
        identity = classify_identity(agent_name)
        match identity:
            case Orchestrator():
                return None
        key = identity_key(identity)
        window = session.windows.get(key)
        if window is None:
            now = self.now()
            window = GuardrailWindow(agent_name=key, start_time=now, last_tool_call_time=now)
            session.windows[key] = window
            self.prune_old_windows(session_id)
        return window

    def prune_old_windows(self, session_id: str) -> None:
        session = self.agent_sessions.get(session_id)
        if session is None:
            return
        now = self.now()
        fresh = [
            (key, window)
            for key, window in session.windows.items()
            if now - window.start_time < self.window_max_age_seconds
        ]
        fresh.sort(key=lambda item: item[1].start_time, reverse=True)
        session.windows = dict(fresh[: self.max_windows])

    def record_delegation(self, session_id: str, from_agent: str, to_agent: str) -> None:
        entry = DelegationEntry(from_agent=from_agent, to_agent=to_agent, timestamp=self.now())
        self.delegation_chains.setdefault(session_id, []).append(entry)

    def _evict_stale_sessions(self, now: float, *, keep: str) -> None:
        """Drop idle orchestrator sessions.

        A session acting as a gated identity is never evicted; its identity and
        windows stay until control returns to the orchestrator, ``end_agent_session``
        or ``reset``.
        """
        stale = [
            session_id
            for session_id, session in self.agent_sessions.items()
            if session_id != keep
            and now - session.last_tool_call_time > self.stale_session_seconds
            and isinstance(classify_identity(session.agent_name), Orchestrator)
        ]
        for session_id in stale:
            self.end_agent_session(session_id)
        if stale:
            logger.info("Evicted %d stale agent sessions", len(stale))
