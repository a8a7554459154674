"""Host plugin activation: one state store plus the hook bundle handed to the host."""

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from swarmguard.config import Settings, get_settings
from swarmguard.guardrails.engine import GuardrailsHooks, create_guardrails_hooks
from swarmguard.guardrails.loader import load_guardrails_config
from swarmguard.guardrails.models import GuardrailsConfig
from swarmguard.hooks.delegation import DelegationTracker
from swarmguard.hooks.types import (
    ChatHook,
    ChatMessageInput,
    MessagesHook,
    MessagesInput,
    ToolCallInput,
    ToolHook,
)
from swarmguard.logging import bind_hook_context
from swarmguard.state.store import SessionStateStore

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT")


def safe_hook(
    handler: Callable[[InputT, dict[str, Any]], Awaitable[None]],
) -> Callable[[InputT, dict[str, Any]], Awaitable[None]]:
    """Log and contain handler failures so they never break the host pipeline.

    Not for guardrail tool hooks: their errors are the denial signal.
    """

    @functools.wraps(handler)
    async def wrapper(hook_input: InputT, output: dict[str, Any]) -> None:
        try:
            await handler(hook_input, output)
        except Exception:
            logger.exception("Hook %s failed", getattr(handler, "__name__", handler))

    return wrapper


@dataclass(slots=True)
class SwarmHooks:
    store: SessionStateStore
    guardrails: GuardrailsHooks
    tracker: DelegationTracker
    tool_before: ToolHook
    tool_after: ToolHook
    chat_message: ChatHook
    messages_transform: MessagesHook


def _warn_guardrails_disabled() -> None:
    logger.warning(
        "SECURITY WARNING: guardrails are disabled by configuration. Tool-call, "
        "duration, repetition, error-rate and idle limits will not be enforced. "
        "Set guardrails.enabled to true to re-enable them."
    )


def create_swarm_hooks(
    config: GuardrailsConfig,
    store: SessionStateStore | None = None,
    *,
    record_delegations: bool = False,
    task_tool_name: str = "task",
    loaded_from_file: bool = False,
) -> SwarmHooks:
    store = store if store is not None else SessionStateStore()
    if loaded_from_file and not config.enabled:
        _warn_guardrails_disabled()
    guardrails = create_guardrails_hooks(config, store)
    tracker = DelegationTracker(store, record_chain=record_delegations)

    async def tool_before(meta: ToolCallInput, payload: dict[str, Any]) -> None:
        bind_hook_context(
            meta.session_id,
            agent=store.active_agent.get(meta.session_id),
            tool=meta.tool,
            call_id=meta.call_id,
        )
        tracker.recover_stale(meta.session_id)
        # Unwrapped: a LimitReachedError must reach the host as a tool denial.
        await guardrails.tool_before(meta, payload)

    async def tool_after(meta: ToolCallInput, result: dict[str, Any]) -> None:
        bind_hook_context(
            meta.session_id,
            agent=store.active_agent.get(meta.session_id),
            tool=meta.tool,
            call_id=meta.call_id,
        )
        await guardrails.tool_after(meta, result)
        if meta.tool == task_tool_name:
            tracker.on_task_complete(meta.session_id)

    async def chat_message(message: ChatMessageInput, output: dict[str, Any]) -> None:
        bind_hook_context(message.session_id, agent=message.agent)
        await tracker.chat_message(message, output)

    async def messages_transform(meta: MessagesInput, output: dict[str, Any]) -> None:
        await guardrails.messages_transform(meta, output)

    return SwarmHooks(
        store=store,
        guardrails=guardrails,
        tracker=tracker,
        tool_before=tool_before,
        tool_after=tool_after,
        chat_message=safe_hook(chat_message),
        messages_transform=safe_hook(messages_transform),
    )


def activate(settings: Settings | None = None) -> SwarmHooks:
    """Build a fresh store and hook bundle from process settings."""
    settings = settings or get_settings()
    config, loaded_from_file = load_guardrails_config(settings.guardrails_config_path or None)
    store = SessionStateStore(
        stale_session_seconds=settings.session_stale_minutes * 60,
        window_max_age_seconds=settings.window_max_age_hours * 3600,
        max_windows=settings.window_max_count,
        delegation_event_timeout_seconds=settings.delegation_event_timeout_seconds,
    )
    logger.info(
        "swarmguard activated (guardrails=%s, config_file=%s)",
        config.enabled,
        loaded_from_file,
    )
    return create_swarm_hooks(
        config,
        store,
        record_delegations=int(settings.delegation_tracker_enabled) == 1,
        task_tool_name=settings.task_tool_name,
        loaded_from_file=loaded_from_file,
    )
