"""Workflow agent registry.

Maps agent ids to :class:`AgentSpec`. The built-in agents cover the four
roles; callers register custom agents next to them.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from forgeloop.exceptions import UnknownAgentError
from forgeloop.models.config import AgentSpec
from forgeloop.models.workflow import AgentRole

DEFAULT_AGENTS: tuple[AgentSpec, ...] = (
    AgentSpec("planner", AgentRole.PLANNER),
    AgentSpec("coder", AgentRole.CODER),
    AgentSpec("reviewer", AgentRole.REVIEWER),
    AgentSpec("security", AgentRole.SECURITY),
)

DEFAULT_WORKFLOW: tuple[str, ...] = ("planner", "coder", "reviewer")


class AgentRegistry(Mapping[str, AgentSpec]):
    """Read-mostly mapping of agent id to spec.

    Usage::

        registry = AgentRegistry()
        registry.register(AgentSpec("docs", instructions="Write a README."))
        specs = registry.resolve(["planner", "coder", "docs"])
    """

    def __init__(self, agents: Iterable[AgentSpec] = DEFAULT_AGENTS) -> None:
        self._agents: dict[str, AgentSpec] = {}
        for spec in agents:
            self.register(spec)

    def register(self, spec: AgentSpec) -> None:
        """Add or replace an agent."""
        self._agents[spec.agent_id] = spec

    def resolve(self, agent_ids: Iterable[str]) -> list[AgentSpec]:
        """Look up a workflow order. Raises UnknownAgentError on a miss."""
        resolved = []
        for agent_id in agent_ids:
            if agent_id not in self._agents:
                raise UnknownAgentError(agent_id)
            resolved.append(self._agents[agent_id])
        return resolved

    def __getitem__(self, agent_id: str) -> AgentSpec:
        return self._agents[agent_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._agents)

    def __len__(self) -> int:
        return len(self._agents)
