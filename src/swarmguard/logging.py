"""structlog setup for the swarmguard hooks and CLI.

Modules log through stdlib ``logging``. One structlog formatter on the root handler
renders every record and attaches the identifiers of the host hook being served
(session, acting agent, tool, call) from context variables.
"""

import logging
import sys
from typing import Any, TextIO

import structlog

HOOK_CONTEXT_KEYS = ("session_id", "agent", "tool", "call_id")
_PACKAGE_PREFIX = "swarmguard."


def bind_hook_context(
    session_id: str,
    *,
    agent: str | None = None,
    tool: str | None = None,
    call_id: str | None = None,
) -> None:
    """Replace the log context with the identifiers of one hook invocation.

    Unset identifiers are left out rather than logged as null.
    """
    structlog.contextvars.clear_contextvars()
    fields = dict(zip(HOOK_CONTEXT_KEYS, (session_id, agent, tool, call_id)))
    structlog.contextvars.bind_contextvars(
        **{key: value for key, value in fields.items() if value is not None}
    )


def shorten_logger_name(
    _logger: Any, _method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """``swarmguard.guardrails.engine`` -> ``guardrails.engine``."""
    name = event_dict.get("logger")
    if isinstance(name, str) and name.startswith(_PACKAGE_PREFIX):
        event_dict["logger"] = name[len(_PACKAGE_PREFIX) :]
    return event_dict


def configure_logging(
    level: str, *, json_output: bool = False, stream: TextIO | None = None
) -> None:
    """Route all records through structlog; JSON lines when ``json_output`` is set."""
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        shorten_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
