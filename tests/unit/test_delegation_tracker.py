import pytest

from swarmguard.agents.names import ORCHESTRATOR_NAME
from swarmguard.hooks.delegation import DelegationTracker
from swarmguard.hooks.types import ChatMessageInput
from swarmguard.state.store import SessionStateStore


@pytest.mark.parametrize("agent", [None, "", "architect", "local_architect", "Paid-Architect"])
def test_orchestrator_messages_take_over(store: SessionStateStore, agent: str | None) -> None:
    tracker = DelegationTracker(store)
    store.start_agent_session("s1", "coder")
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent=agent))
    assert store.active_agent["s1"] == ORCHESTRATOR_NAME
    assert store.get_agent_session("s1").delegation_active is False


def test_subagent_message_delegates(store: SessionStateStore) -> None:
    tracker = DelegationTracker(store)
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="mega_coder"))
    session = store.get_agent_session("s1")
    assert store.active_agent["s1"] == "mega_coder"
    assert session.agent_name == "mega_coder"
    assert session.delegation_active is True


def test_unrecognized_agent_is_tracked_verbatim(store: SessionStateStore) -> None:
    tracker = DelegationTracker(store)
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="helper_bot"))
    assert store.active_agent["s1"] == "helper_bot"
    assert store.get_agent_session("s1").delegation_active is True


def test_task_completion_hands_back(store, clock) -> None:
    tracker = DelegationTracker(store)
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="coder"))
    clock.advance(minutes=3)
    tracker.on_task_complete("s1")
    session = store.get_agent_session("s1")
    assert store.active_agent["s1"] == ORCHESTRATOR_NAME
    assert session.delegation_active is False
    assert session.last_agent_event_time == clock.now


def test_ended_delegation_is_stale_despite_recent_tool_calls(store, clock) -> None:
    tracker = DelegationTracker(store)
    session = store.start_agent_session("s1", "coder")
    session.delegation_active = False
    clock.advance(5)
    session.last_tool_call_time = clock.now
    assert tracker.is_stale("s1") is True

    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent=None))
    assert store.active_agent["s1"] == ORCHESTRATOR_NAME
    assert tracker.is_stale("s1") is False


def test_delegation_without_agent_events_goes_stale(store, clock) -> None:
    tracker = DelegationTracker(store)
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="coder"))
    session = store.get_agent_session("s1")
    clock.advance(9)
    session.last_tool_call_time = clock.now
    assert tracker.is_stale("s1") is False
    clock.advance(2)
    session.last_tool_call_time = clock.now
    assert tracker.is_stale("s1") is True


def test_agent_event_refreshes_delegation(store, clock) -> None:
    tracker = DelegationTracker(store)
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="coder"))
    for _ in range(5):
        clock.advance(8)
        tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="coder"))
    assert tracker.is_stale("s1") is False
    assert store.active_agent["s1"] == "coder"


def test_event_timeout_keeps_hard_limited_identity(store, clock) -> None:
    tracker = DelegationTracker(store)
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="coder"))
    store.begin_invocation("s1", "coder").hard_limit_hit = True
    clock.advance(minutes=30)
    assert tracker.is_stale("s1") is False
    assert tracker.recover_stale("s1") is False
    assert store.active_agent["s1"] == "coder"


def test_zero_event_timeout_disables_expiry(clock) -> None:
    store = SessionStateStore(clock, delegation_event_timeout_seconds=0)
    tracker = DelegationTracker(store)
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="coder"))
    clock.advance(minutes=30)
    assert tracker.is_stale("s1") is False


def test_recover_stale(store: SessionStateStore) -> None:
    tracker = DelegationTracker(store)
    assert tracker.recover_stale("missing") is False

    store.start_agent_session("s1", "explorer")
    assert tracker.recover_stale("s1") is False

    store.get_agent_session("s1").delegation_active = False
    assert tracker.recover_stale("s1") is True
    assert store.active_agent["s1"] == ORCHESTRATOR_NAME


def test_orchestrator_session_is_never_stale(store: SessionStateStore) -> None:
    tracker = DelegationTracker(store)
    store.start_agent_session("s1", "architect")
    assert store.get_agent_session("s1").delegation_active is False
    assert tracker.is_stale("s1") is False


def test_repeated_message_keeps_window(store: SessionStateStore) -> None:
    tracker = DelegationTracker(store)
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="coder"))
    window = store.begin_invocation("s1", "coder")
    window.hard_limit_hit = True
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="coder"))
    assert store.get_active_window("s1") is window


def test_chain_recording(store: SessionStateStore) -> None:
    tracker = DelegationTracker(store, record_chain=True)
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="architect"))
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="coder"))
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="coder"))
    tracker.on_task_complete("s1")
    chain = [(e.from_agent, e.to_agent) for e in store.delegation_chains["s1"]]
    assert chain == [("architect", "coder"), ("coder", "architect")]


def test_chain_not_recorded_by_default(store: SessionStateStore) -> None:
    tracker = DelegationTracker(store)
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="architect"))
    tracker.on_chat_message(ChatMessageInput(session_id="s1", agent="coder"))
    assert store.delegation_chains == {}


@pytest.mark.asyncio
async def test_chat_message_hook(store: SessionStateStore) -> None:
    tracker = DelegationTracker(store)
    await tracker.chat_message(ChatMessageInput(session_id="s1", agent="reviewer"), {})
    assert store.active_agent["s1"] == "reviewer"
