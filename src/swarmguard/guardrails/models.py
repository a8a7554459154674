"""Guardrails configuration models and built-in per-agent profiles."""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

# Zero is the configured spelling of "no limit" for tool calls and duration.
UNBOUNDED = 0


def budget(value: float) -> float | None:
    """Return a usable limit, or None when the configured value means unbounded."""
    if value == UNBOUNDED:
        return None
    return value


class GuardrailsProfile(BaseModel):
    """Partial per-agent override; unset fields inherit from lower layers."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    max_tool_calls: int | None = Field(default=None, ge=0, le=1000)
    max_duration_minutes: float | None = Field(default=None, ge=0, le=480)
    max_repetitions: int | None = Field(default=None, ge=3, le=50)
    max_consecutive_errors: int | None = Field(default=None, ge=2, le=20)
    warning_threshold: float | None = Field(default=None, ge=0.1, le=0.9)
    idle_timeout_minutes: float | None = Field(default=None, ge=5, le=240)

    def overrides(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class GuardrailsConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = True
    max_tool_calls: int = Field(default=200, ge=0, le=1000)
    max_duration_minutes: float = Field(default=30, ge=0, le=480)
    max_repetitions: int = Field(default=10, ge=3, le=50)
    max_consecutive_errors: int = Field(default=5, ge=2, le=20)
    warning_threshold: float = Field(default=0.75, ge=0.1, le=0.9)
    idle_timeout_minutes: float = Field(default=60, ge=5, le=240)
    profiles: Mapping[str, GuardrailsProfile] = Field(
        default_factory=lambda: MappingProxyType({})
    )

    @field_validator("profiles", mode="after")
    @classmethod
    def _freeze_profiles(
        cls, value: Mapping[str, GuardrailsProfile]
    ) -> Mapping[str, GuardrailsProfile]:
        # Read-only view over a private copy; callers cannot edit a loaded config.
        return MappingProxyType(dict(value))

    @field_serializer("profiles")
    def _dump_profiles(self, value: Mapping[str, GuardrailsProfile]) -> dict[str, Any]:
        return {name: profile.model_dump(exclude_none=True) for name, profile in value.items()}

    @property
    def tool_call_budget(self) -> int | None:
        limit = budget(self.max_tool_calls)
        return None if limit is None else int(limit)

    @property
    def duration_budget_seconds(self) -> float | None:
        limit = budget(self.max_duration_minutes)
        return None if limit is None else limit * 60.0

    @property
    def idle_timeout_seconds(self) -> float:
        return self.idle_timeout_minutes * 60.0


DEFAULT_AGENT_PROFILES: dict[str, GuardrailsProfile] = {
    "architect": GuardrailsProfile(
        max_tool_calls=0,
        max_duration_minutes=0,
        max_consecutive_errors=8,
        warning_threshold=0.75,
    ),
    "coder": GuardrailsProfile(max_tool_calls=400, max_duration_minutes=45, warning_threshold=0.85),
    "test_engineer": GuardrailsProfile(
        max_tool_calls=400, max_duration_minutes=45, warning_threshold=0.85
    ),
    "explorer": GuardrailsProfile(
        max_tool_calls=150, max_duration_minutes=20, warning_threshold=0.75
    ),
    "reviewer": GuardrailsProfile(
        max_tool_calls=200, max_duration_minutes=30, warning_threshold=0.65
    ),
    "critic": GuardrailsProfile(max_tool_calls=200, max_duration_minutes=30, warning_threshold=0.65),
    "sme": GuardrailsProfile(max_tool_calls=200, max_duration_minutes=30, warning_threshold=0.65),
    "docs": GuardrailsProfile(max_tool_calls=200, max_duration_minutes=30, warning_threshold=0.75),
    "designer": GuardrailsProfile(
        max_tool_calls=150, max_duration_minutes=20, warning_threshold=0.75
    ),
}
