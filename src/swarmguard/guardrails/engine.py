"""Guardrails engine: the per-tool-call budget gate for delegated agents.

The orchestrator is always exempt. Every other identity gets one accounting window
per session, checked in a fixed order on each call: duration, idle time, tool-call
count, repeated identical calls, consecutive errors. A breach raises
``LimitReachedError`` and stays raised for that window until the identity changes.
"""

import hashlib
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from swarmguard.agents.identity import Orchestrator, classify_identity
from swarmguard.agents.names import ORCHESTRATOR_NAME
from swarmguard.errors import LimitReachedError
from swarmguard.guardrails.models import GuardrailsConfig
from swarmguard.guardrails.profiles import resolve_guardrails_config
from swarmguard.hooks.types import MessagesHook, MessagesInput, ToolCallInput, ToolHook
from swarmguard.state.store import SessionStateStore
from swarmguard.state.types import AgentSession, GuardrailWindow

logger = logging.getLogger(__name__)

ADVISORY_PREFIX = "[GUARDRAIL WARNING]"
STOP_INSTRUCTION = "Stop now and return your progress summary to the architect."
# Minimum trailing history scanned for repeated calls.
REPETITION_HORIZON = 20


def tool_fingerprint(tool: str, args: Mapping[str, Any] | None) -> str:
    encoded = json.dumps(args or {}, sort_keys=True, default=str)
    digest = hashlib.sha256(encoded.encode("utf-8")).hexdigest()[:16]
    return f"{tool}:{digest}"


def is_tool_error(result: Mapping[str, Any] | None) -> bool:
    if not isinstance(result, Mapping):
        return True
    if result.get("error"):
        return True
    return result.get("output") is None


@dataclass(slots=True)
class GuardrailsHooks:
    tool_before: ToolHook
    tool_after: ToolHook
    messages_transform: MessagesHook
    engine: "GuardrailsEngine | None" = None


class GuardrailsEngine:
    def __init__(self, config: GuardrailsConfig, store: SessionStateStore) -> None:
        self.config = config
        self.store = store
        self._effective: dict[str, GuardrailsConfig] = {}
        self._advisories: dict[str, list[str]] = {}

    def effective_config(self, agent_name: str) -> GuardrailsConfig:
        effective = self._effective.get(agent_name)
        if effective is None:
            effective = resolve_guardrails_config(self.config, agent_name)
            self._effective[agent_name] = effective
        return effective

    def check_tool_call(self, meta: ToolCallInput, args: Mapping[str, Any] | None) -> None:
        session_id = meta.session_id
        agent_name = self._resolve_agent(session_id)
        session = self.store.agent_sessions[session_id]
        now = self.store.now()

        match classify_identity(agent_name):
            case Orchestrator():
                session.last_tool_call_time = now
                session.tool_call_count += 1
                return

        recorded = self.store.get_active_window(session_id)
        if recorded is not None and recorded.hard_limit_hit:
            raise self._sticky(recorded)
        window = self.store.begin_invocation(session_id, agent_name)
        if window is None:
            return
        if window.hard_limit_hit:
            raise self._sticky(window)

        effective = self.effective_config(agent_name)
        self._enforce(session, window, effective, meta, args, now)

    def record_tool_result(self, meta: ToolCallInput, result: Mapping[str, Any] | None) -> None:
        window = self.store.get_active_window(meta.session_id)
        if window is None:
            return
        if is_tool_error(result):
            window.consecutive_errors += 1
        else:
            window.consecutive_errors = 0

    def drain_advisories(self, session_id: str) -> list[str]:
        return self._advisories.pop(session_id, [])

    async def tool_before(self, meta: ToolCallInput, payload: dict[str, Any]) -> None:
        self.check_tool_call(meta, payload.get("args"))

    async def tool_after(self, meta: ToolCallInput, result: dict[str, Any]) -> None:
        self.record_tool_result(meta, result)

    async def messages_transform(self, meta: MessagesInput, output: dict[str, Any]) -> None:
        advisories = self.drain_advisories(meta.session_id)
        if not advisories:
            return
        messages = output.setdefault("messages", [])
        for advisory in advisories:
            messages.append({"role": "system", "content": advisory})

    def _resolve_agent(self, session_id: str) -> str:
        agent_name = self.store.active_agent.get(session_id)
        if agent_name is None:
            # Least-privileged known identity; an "unknown" fallback would be gated
            # inconsistently and crash unrelated host sessions.
            logger.debug("No active agent for session %s; assuming %s", session_id, ORCHESTRATOR_NAME)
            self.store.start_agent_session(session_id, ORCHESTRATOR_NAME)
            return ORCHESTRATOR_NAME
        if self.store.get_agent_session(session_id) is None:
            self.store.start_agent_session(session_id, agent_name)
        return agent_name

    def _enforce(
        self,
        session: AgentSession,
        window: GuardrailWindow,
        effective: GuardrailsConfig,
        meta: ToolCallInput,
        args: Mapping[str, Any] | None,
        now: float,
    ) -> None:
        elapsed = now - window.start_time
        max_duration = effective.duration_budget_seconds
        if max_duration is not None and elapsed > max_duration:
            raise self._trip(
                session,
                window,
                f"Duration exhausted after {elapsed / 60:.1f} min "
                f"(max_duration_minutes: {effective.max_duration_minutes:g})",
                budget="max_duration_minutes",
            )

        idle = now - window.last_tool_call_time
        if idle > effective.idle_timeout_seconds:
            raise self._trip(
                session,
                window,
                f"No tool activity for {idle / 60:.1f} min "
                f"(idle_timeout_minutes: {effective.idle_timeout_minutes:g})",
                budget="idle_timeout_minutes",
            )

        calls = window.tool_calls + 1
        max_calls = effective.tool_call_budget
        if max_calls is not None and calls >= max_calls:
            window.tool_calls = calls
            raise self._trip(
                session,
                window,
                f"Tool calls exhausted ({calls}/{max_calls}, max_tool_calls)",
                budget="max_tool_calls",
            )

        fingerprint = tool_fingerprint(meta.tool, args)
        horizon = max(REPETITION_HORIZON, effective.max_repetitions) - 1
        history = list(window.recent_fingerprints)[-horizon:]
        repeats = history.count(fingerprint) + 1
        window.recent_fingerprints.append(fingerprint)
        if repeats >= effective.max_repetitions:
            raise self._trip(
                session,
                window,
                f"Identical {meta.tool} call repeated {repeats} times "
                f"(max_repetitions: {effective.max_repetitions})",
                budget="max_repetitions",
            )

        if window.consecutive_errors >= effective.max_consecutive_errors:
            raise self._trip(
                session,
                window,
                f"{window.consecutive_errors} consecutive tool errors "
                f"(max_consecutive_errors: {effective.max_consecutive_errors})",
                budget="max_consecutive_errors",
            )

        window.tool_calls = calls
        window.last_tool_call_time = now
        session.last_tool_call_time = now
        session.tool_call_count += 1
        self._maybe_warn(meta.session_id, window, effective, elapsed)

    def _maybe_warn(
        self,
        session_id: str,
        window: GuardrailWindow,
        effective: GuardrailsConfig,
        elapsed: float,
    ) -> None:
        if window.warning_emitted:
            return
        reasons: list[str] = []
        max_calls = effective.tool_call_budget
        if max_calls and window.tool_calls / max_calls >= effective.warning_threshold:
            reasons.append(f"{window.tool_calls}/{max_calls} tool calls")
        max_duration = effective.duration_budget_seconds
        if max_duration and elapsed / max_duration >= effective.warning_threshold:
            reasons.append(
                f"{elapsed / 60:.1f}/{effective.max_duration_minutes:g} min elapsed"
            )
        if not reasons:
            return
        window.warning_emitted = True
        window.warning_reason = ", ".join(reasons)
        advisory = (
            f"{ADVISORY_PREFIX} {window.agent_name} is approaching its guardrail limits "
            f"({window.warning_reason}). Wrap up the current task and report back."
        )
        self._advisories.setdefault(session_id, []).append(advisory)
        logger.warning(
            "Guardrail warning for %s in session %s: %s",
            window.agent_name,
            session_id,
            window.warning_reason,
        )

    def _trip(
        self,
        session: AgentSession,
        window: GuardrailWindow,
        reason: str,
        *,
        budget: str,
    ) -> LimitReachedError:
        window.hard_limit_hit = True
        window.limit_reason = reason
        session.hard_limit_hit = True
        logger.warning("Guardrail hard limit for %s: %s", window.agent_name, reason)
        return LimitReachedError(
            f"{reason}. {STOP_INSTRUCTION}", agent_name=window.agent_name, budget=budget
        )

    def _sticky(self, window: GuardrailWindow) -> LimitReachedError:
        reason = window.limit_reason or "guardrail limit already reached"
        return LimitReachedError(
            f"{reason}. {STOP_INSTRUCTION}", agent_name=window.agent_name
        )


async def _noop(_meta: Any, _payload: dict[str, Any]) -> None:
    return None


def create_guardrails_hooks(config: GuardrailsConfig, store: SessionStateStore) -> GuardrailsHooks:
    """Build the tool lifecycle hooks; a disabled config yields no-op handlers."""
    if not config.enabled:
        return GuardrailsHooks(tool_before=_noop, tool_after=_noop, messages_transform=_noop)
    engine = GuardrailsEngine(config, store)
    return GuardrailsHooks(
        tool_before=engine.tool_before,
        tool_after=engine.tool_after,
        messages_transform=engine.messages_transform,
        engine=engine,
    )
