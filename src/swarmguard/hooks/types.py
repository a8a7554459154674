"""Host hook input records."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class ToolCallInput:
    tool: str
    session_id: str
    call_id: str


@dataclass(slots=True)
class ChatMessageInput:
    session_id: str
    agent: str | None = None


@dataclass(slots=True)
class MessagesInput:
    session_id: str


ToolHook = Callable[[ToolCallInput, dict[str, Any]], Awaitable[None]]
ChatHook = Callable[[ChatMessageInput, dict[str, Any]], Awaitable[None]]
MessagesHook = Callable[[MessagesInput, dict[str, Any]], Awaitable[None]]
