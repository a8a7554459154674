"""Fail-secure construction of GuardrailsConfig from a config document."""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from swarmguard.guardrails.models import GuardrailsConfig

logger = logging.getLogger(__name__)


def _guardrails_section(document: Mapping[str, Any]) -> Any:
    if "guardrails" in document:
        return document["guardrails"]
    return document


def parse_guardrails_config(document: Mapping[str, Any] | None) -> GuardrailsConfig:
    """Validate a guardrails document.

    Any validation failure yields enabled defaults; guardrails are never dropped
    because of a bad document. An explicit, valid ``enabled: false`` is honored.
    """
    if document is None:
        return GuardrailsConfig()
    section = _guardrails_section(document)
    if section is None:
        return GuardrailsConfig()
    try:
        return GuardrailsConfig.model_validate(section)
    except ValidationError as exc:
        logger.warning(
            "Guardrails config failed validation; using enabled defaults: %s",
            exc.errors(include_url=False),
        )
        return GuardrailsConfig(enabled=True)


def load_guardrails_config(path: Path | str | None) -> tuple[GuardrailsConfig, bool]:
    """Read one JSON document from ``path``.

    Returns ``(config, loaded_from_file)``. Missing or unreadable files fall back
    to enabled defaults.
    """
    if not path:
        return GuardrailsConfig(), False
    config_path = Path(path).expanduser()
    if not config_path.exists():
        logger.info("Guardrails config %s not found; using defaults", config_path)
        return GuardrailsConfig(), False
    try:
        document = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Guardrails config %s unreadable; using enabled defaults: %s", config_path, exc)
        return GuardrailsConfig(enabled=True), False
    if not isinstance(document, dict):
        logger.warning("Guardrails config %s is not an object; using enabled defaults", config_path)
        return GuardrailsConfig(enabled=True), False
    return parse_guardrails_config(document), True
