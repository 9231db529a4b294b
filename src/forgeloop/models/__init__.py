"""Domain models for forgeloop."""

from forgeloop.models.artifact import (
    ArtifactFile,
    ContextSelection,
    SelectedFile,
    language_for_path,
    normalize_path,
)
from forgeloop.models.config import AgentSpec, ForgeConfig, LLMConfig
from forgeloop.models.conversation import ConversationTurn, Role
from forgeloop.models.suggestion import (
    SuggestedChange,
    Suggestion,
    SuggestionPriority,
    SuggestionStatus,
    SuggestionType,
)
from forgeloop.models.validation import (
    VALIDITY_THRESHOLD,
    DeploymentMode,
    Severity,
    ValidationResult,
)
from forgeloop.models.workflow import (
    AgentRole,
    StepFailure,
    StepStatus,
    WorkflowResult,
    WorkflowRun,
    WorkflowStep,
)

__all__ = [
    "AgentRole",
    "AgentSpec",
    "ArtifactFile",
    "ContextSelection",
    "ConversationTurn",
    "DeploymentMode",
    "ForgeConfig",
    "LLMConfig",
    "Role",
    "SelectedFile",
    "Severity",
    "StepFailure",
    "StepStatus",
    "SuggestedChange",
    "Suggestion",
    "SuggestionPriority",
    "SuggestionStatus",
    "SuggestionType",
    "VALIDITY_THRESHOLD",
    "ValidationResult",
    "WorkflowResult",
    "WorkflowRun",
    "WorkflowStep",
    "language_for_path",
    "normalize_path",
]
