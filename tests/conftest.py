import pytest

from swarmguard.config import get_settings
from swarmguard.state.store import SessionStateStore


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float = 0.0, *, minutes: float = 0.0) -> None:
        self.now += seconds + minutes * 60


@pytest.fixture(autouse=True)
def test_env(monkeypatch: pytest.MonkeyPatch):
    for key in (
        "APP_ENV",
        "LOG_LEVEL",
        "GUARDRAILS_CONFIG_PATH",
        "SESSION_STALE_MINUTES",
        "DELEGATION_EVENT_TIMEOUT_SECONDS",
        "WINDOW_MAX_AGE_HOURS",
        "WINDOW_MAX_COUNT",
        "DELEGATION_TRACKER_ENABLED",
        "TASK_TOOL_NAME",
    ):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> SessionStateStore:
    store = SessionStateStore(clock)
    yield store
    store.reset()
