import pytest

from swarmguard.agents.identity import (
    Known,
    Orchestrator,
    Unrecognized,
    classify_identity,
    identity_key,
)
from swarmguard.agents.names import (
    ALL_AGENT_NAMES,
    ORCHESTRATOR_NAME,
    UNKNOWN_AGENT,
    is_orchestrator_name,
    normalize_agent_name,
    strip_known_swarm_prefix,
)


def test_normalize_folds_case_and_separators() -> None:
    assert normalize_agent_name("Paid-Swarm Coder") == "paid_swarm_coder"
    assert normalize_agent_name("TEST--ENGINEER") == "test_engineer"


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("architect", "architect"),
        ("mega_architect", "architect"),
        ("paid-architect", "architect"),
        ("PAID_ARCHITECT", "architect"),
        ("local coder", "coder"),
        ("Local_Coder", "coder"),
        ("a_b_c_architect", "architect"),
        ("cloud_test_engineer", "test_engineer"),
        ("acme_docs", "docs"),
    ],
)
def test_strip_known_swarm_prefix(name: str, expected: str) -> None:
    assert strip_known_swarm_prefix(name) == expected


@pytest.mark.parametrize(
    "name",
    ["architectural", "architects", "unknown_agent", "", "coder2", "supercoder"],
)
def test_strip_leaves_unrecognized_names_alone(name: str) -> None:
    assert strip_known_swarm_prefix(name) == name


def test_unknown_sentinel_is_not_a_recognized_agent() -> None:
    assert UNKNOWN_AGENT not in ALL_AGENT_NAMES
    assert isinstance(classify_identity(UNKNOWN_AGENT), Unrecognized)


def test_is_orchestrator_name() -> None:
    assert is_orchestrator_name("architect")
    assert is_orchestrator_name("mega_architect")
    assert not is_orchestrator_name("architectural")
    assert not is_orchestrator_name("")
    assert not is_orchestrator_name(None)


def test_classify_identity_variants() -> None:
    assert classify_identity("local_architect") == Orchestrator(raw="local_architect")
    assert classify_identity("mega_coder") == Known(name="coder", raw="mega_coder")
    assert classify_identity("") == Unrecognized(raw="")
    assert classify_identity("unknown_agent") == Unrecognized(raw="unknown_agent")


def test_identity_key() -> None:
    assert identity_key(classify_identity("mega_architect")) == ORCHESTRATOR_NAME
    assert identity_key(classify_identity("Paid-Reviewer")) == "reviewer"
    assert identity_key(classify_identity("helper_bot")) == "helper_bot"
