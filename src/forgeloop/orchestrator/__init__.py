"""Workflow orchestration: agent registry, executor and step summaries."""

from forgeloop.orchestrator.config import DEFAULT_AGENTS, DEFAULT_WORKFLOW, AgentRegistry
from forgeloop.orchestrator.executor import (
    WorkflowExecutor,
    remediation_hint,
    render_file_blocks,
)
from forgeloop.orchestrator.summary import summarize_step

__all__ = [
    "AgentRegistry",
    "DEFAULT_AGENTS",
    "DEFAULT_WORKFLOW",
    "WorkflowExecutor",
    "remediation_hint",
    "render_file_blocks",
    "summarize_step",
]
