"""Workflow step and run models.

WorkflowStep is a small state machine (idle -> running -> completed|error)
with one instance per configured agent per run. WorkflowRun is the value
object threaded explicitly through the executor instead of ambient
"current agent" state.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from forgeloop.exceptions import StepTransitionError

if TYPE_CHECKING:
    from forgeloop.models.artifact import ArtifactFile
    from forgeloop.models.suggestion import Suggestion
    from forgeloop.models.validation import ValidationResult


class AgentRole(str, enum.Enum):
    """Role an agent plays in a workflow.

    The role decides whether output is parsed into files, whether the
    cache may be used, which output-shape rule applies and how the next
    step frames this step's output.
    """

    PLANNER = "planner"
    CODER = "coder"
    REVIEWER = "reviewer"
    SECURITY = "security"
    CUSTOM = "custom"

    @property
    def produces_files(self) -> bool:
        return self is AgentRole.CODER

    @property
    def yields_suggestions(self) -> bool:
        return self in (AgentRole.REVIEWER, AgentRole.SECURITY)

    @property
    def cacheable(self) -> bool:
        # Generated code must always be fresh.
        return self is not AgentRole.CODER


class StepStatus(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


_ALLOWED_TRANSITIONS: dict[StepStatus, frozenset[StepStatus]] = {
    StepStatus.IDLE: frozenset({StepStatus.RUNNING}),
    StepStatus.RUNNING: frozenset({StepStatus.COMPLETED, StepStatus.ERROR}),
    StepStatus.COMPLETED: frozenset(),
    StepStatus.ERROR: frozenset(),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StepFailure:
    """Structured description of an aborted step.

    Attributes:
        agent_id: The failing step's agent.
        error_type: Exception class name.
        message: Exception message.
        hint: Human-readable remediation hint.
    """

    agent_id: str
    error_type: str
    message: str
    hint: str


@dataclass
class WorkflowStep:
    """Per-agent step record. Never re-entered once finished."""

    agent_id: str
    role: AgentRole = AgentRole.CUSTOM
    status: StepStatus = StepStatus.IDLE
    start_time: datetime | None = None
    end_time: datetime | None = None
    output: str = ""
    summary: str = ""
    files: list[ArtifactFile] = field(default_factory=list)
    validation: ValidationResult | None = None
    correction_attempts: int = 0
    from_cache: bool = False
    failure: StepFailure | None = None

    def _move(self, target: StepStatus) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.status]:
            raise StepTransitionError(self.agent_id, self.status.value, target.value)
        self.status = target

    def start(self) -> None:
        self._move(StepStatus.RUNNING)
        self.start_time = _now()

    def complete(self, output: str) -> None:
        self._move(StepStatus.COMPLETED)
        self.output = output
        self.end_time = _now()

    def fail(self, failure: StepFailure) -> None:
        self._move(StepStatus.ERROR)
        self.failure = failure
        self.end_time = _now()

    @property
    def duration(self) -> float | None:
        """Seconds between start and end, None while unfinished."""
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()


@dataclass
class WorkflowRun:
    """State of one workflow run, passed explicitly through the pipeline."""

    request: str
    steps: list[WorkflowStep] = field(default_factory=list)
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    suggestions: list[Suggestion] = field(default_factory=list)

    @property
    def previous_step(self) -> WorkflowStep | None:
        """Most recent completed step, if any."""
        for step in reversed(self.steps):
            if step.status is StepStatus.COMPLETED:
                return step
        return None


@dataclass(frozen=True)
class WorkflowResult:
    """Final result of a workflow run.

    Frozen: the result is immutable once the run completes.
    """

    run: WorkflowRun
    failure: StepFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @property
    def steps(self) -> list[WorkflowStep]:
        return self.run.steps

    @property
    def issues(self) -> list[str]:
        """Non-fatal validation findings collected across steps."""
        collected: list[str] = []
        for step in self.run.steps:
            if step.validation is not None:
                collected.extend(step.validation.findings)
        return collected
