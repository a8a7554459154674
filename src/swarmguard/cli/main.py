"""Click CLI group: inspect resolved guardrail profiles and check config documents."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from swarmguard.agents.names import strip_known_swarm_prefix
from swarmguard.config import get_settings
from swarmguard.errors import ConfigError
from swarmguard.guardrails.loader import load_guardrails_config
from swarmguard.guardrails.models import GuardrailsConfig
from swarmguard.guardrails.profiles import explain_guardrails_config, resolve_guardrails_config
from swarmguard.logging import configure_logging


@click.group()
def cli() -> None:
    """Swarm guardrails CLI."""
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.app_env == "prod")


@cli.command()
@click.argument("agent")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=str),
    default=None,
    help="Guardrails JSON document (default: GUARDRAILS_CONFIG_PATH).",
)
@click.option("--json", "json_output", is_flag=True, help="Print the effective config as JSON.")
def profile(agent: str, config_path: str | None, json_output: bool) -> None:
    """Show the effective guardrails for AGENT and the layers that produced it."""
    base, _ = load_guardrails_config(config_path or get_settings().guardrails_config_path or None)
    effective = resolve_guardrails_config(base, agent)
    payload = effective.model_dump(exclude={"profiles"})
    if json_output:
        click.echo(json.dumps(payload, sort_keys=True))
        return
    click.echo(f"agent: {agent} (base type: {strip_known_swarm_prefix(agent)})")
    for layer, overrides in explain_guardrails_config(base, agent):
        click.echo(f"  {layer}: {json.dumps(overrides, sort_keys=True)}")
    click.echo(f"effective: {json.dumps(payload, sort_keys=True)}")


def _validate_document(path: Path) -> GuardrailsConfig:
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    if not isinstance(document, dict):
        raise ConfigError(f"{path}: expected a JSON object")
    section = document.get("guardrails", document)
    try:
        return GuardrailsConfig.model_validate(section)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"{path}: {problems}") from exc


@cli.command("check-config")
@click.argument("path", type=click.Path(path_type=Path))
def check_config(path: Path) -> None:
    """Validate a guardrails document without falling back to defaults."""
    try:
        config = _validate_document(path)
    except ConfigError as exc:
        click.echo(f"invalid: {exc}", err=True)
        click.echo("note: at runtime this document falls back to enabled defaults", err=True)
        sys.exit(1)
    state = "enabled" if config.enabled else "DISABLED"
    click.echo(f"ok: guardrails {state}, {len(config.profiles)} profile(s)")


if __name__ == "__main__":
    cli()
