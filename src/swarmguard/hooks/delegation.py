"""Delegation tracker: which agent is acting in each session.

Driven by chat-message events that carry an ``agent`` field and by task-tool
completion. Task completion hands control back to the architect immediately,
since the chat message announcing the handoff can arrive late or not at all.
"""

import logging
from typing import Any

from swarmguard.agents.names import ORCHESTRATOR_NAME, is_orchestrator_name
from swarmguard.hooks.types import ChatMessageInput
from swarmguard.state.store import SessionStateStore

logger = logging.getLogger(__name__)


class DelegationTracker:
    def __init__(self, store: SessionStateStore, *, record_chain: bool = False) -> None:
        self.store = store
        self.record_chain = record_chain

    def on_chat_message(self, message: ChatMessageInput) -> None:
        session_id = message.session_id
        self.recover_stale(session_id)
        if not message.agent or is_orchestrator_name(message.agent):
            self._switch(session_id, ORCHESTRATOR_NAME)
        else:
            self._switch(session_id, message.agent)

    def on_task_complete(self, session_id: str) -> None:
        self._switch(session_id, ORCHESTRATOR_NAME)

    def is_stale(self, session_id: str) -> bool:
        """True when a subagent identity outlives its delegation.

        A delegation is over when its flag is cleared, or when no agent event has
        arrived within the store's delegation-event timeout. Tool calls made by the
        subagent never count as agent events. A timeout never releases an identity
        whose window holds a hard limit.
        """
        session = self.store.get_agent_session(session_id)
        agent_name = self.store.active_agent.get(session_id)
        if session is None or agent_name is None or is_orchestrator_name(agent_name):
            return False
        if not session.delegation_active:
            return True
        timeout = self.store.delegation_event_timeout_seconds
        if not timeout:
            return False
        if self.store.now() - session.last_agent_event_time <= timeout:
            return False
        window = self.store.get_active_window(session_id)
        return window is None or not window.hard_limit_hit

    def recover_stale(self, session_id: str) -> bool:
        if not self.is_stale(session_id):
            return False
        logger.info(
            "Stale delegation in session %s (%s); reverting to %s",
            session_id,
            self.store.active_agent.get(session_id),
            ORCHESTRATOR_NAME,
        )
        self.store.start_agent_session(session_id, ORCHESTRATOR_NAME)
        return True

    async def chat_message(self, message: ChatMessageInput, _output: dict[str, Any]) -> None:
        self.on_chat_message(message)

    def _switch(self, session_id: str, agent_name: str) -> None:
        previous = self.store.active_agent.get(session_id)
        self.store.start_agent_session(session_id, agent_name)
        if self.record_chain and previous and previous != agent_name:
            self.store.record_delegation(session_id, previous, agent_name)
