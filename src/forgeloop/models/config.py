"""Configuration models for forgeloop.

ForgeConfig holds per-run pipeline settings.
LLMConfig holds the completion parameters for one agent.
AgentSpec describes one configured agent.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

from pydantic import BaseModel, Field

from forgeloop.models.validation import DeploymentMode
from forgeloop.models.workflow import AgentRole


@dataclass(frozen=True)
class LLMConfig:
    """Completion parameters.

    All fields are Optional -- None means 'not set / inherit from the
    executor default'.

    Example::

        from forgeloop import LLMConfig
        config = LLMConfig(model="gpt-4o", temperature=0.2)
    """

    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    provider: str | None = None
    credential: str | None = None

    def merged(self, override: LLMConfig | None) -> LLMConfig:
        """Return a copy with every set field of *override* applied."""
        if override is None:
            return self
        changes = {
            name: value
            for name, value in vars(override).items()
            if value is not None
        }
        return replace(self, **changes)


@dataclass(frozen=True)
class AgentSpec:
    """One agent of a workflow.

    Attributes:
        agent_id: Identifier used in workflow orders, cache keys and logs.
        role: What the agent does (see AgentRole).
        instructions: System instructions. None uses the role default.
        llm: Per-agent completion overrides.
    """

    agent_id: str
    role: AgentRole = AgentRole.CUSTOM
    instructions: str | None = None
    llm: LLMConfig | None = None


class ForgeConfig(BaseModel):
    """Pipeline settings."""

    model_config = {"arbitrary_types_allowed": True}

    context_max_chars: int = Field(default=50_000, gt=0)
    max_correction_attempts: int = Field(default=2, ge=0)
    max_runtime_fix_attempts: int = Field(default=3, ge=0)
    provider_max_retries: int = Field(default=2, ge=0)
    provider_retry_delay: float = Field(default=1.0, ge=0)
    cache_enabled: bool = True
    cache_ttl_seconds: float = Field(default=600.0, gt=0)
    cache_max_entries: int = Field(default=50, gt=0)
    fail_on_exhausted_correction: bool = False
    deployment_mode: DeploymentMode = DeploymentMode.NONE
    llm: Optional[LLMConfig] = None

    @classmethod
    def from_env(cls, **overrides: object) -> ForgeConfig:
        """Build a config from ``FORGELOOP_*`` environment variables.

        Recognized variables: FORGELOOP_CONTEXT_MAX_CHARS,
        FORGELOOP_MAX_CORRECTIONS, FORGELOOP_CACHE_TTL,
        FORGELOOP_DEPLOYMENT_MODE, FORGELOOP_STRICT_CORRECTION,
        FORGELOOP_MODEL. Explicit keyword overrides win over the
        environment.
        """
        env_map = {
            "FORGELOOP_CONTEXT_MAX_CHARS": "context_max_chars",
            "FORGELOOP_MAX_CORRECTIONS": "max_correction_attempts",
            "FORGELOOP_CACHE_TTL": "cache_ttl_seconds",
            "FORGELOOP_DEPLOYMENT_MODE": "deployment_mode",
            "FORGELOOP_STRICT_CORRECTION": "fail_on_exhausted_correction",
        }
        values: dict[str, object] = {}
        for var, field_name in env_map.items():
            raw = os.environ.get(var)
            if raw:
                values[field_name] = raw
        model = os.environ.get("FORGELOOP_MODEL")
        if model:
            values["llm"] = LLMConfig(model=model)
        values.update(overrides)
        return cls.model_validate(values)
