"""forgeloop: multi-agent code generation with validation and self-correction.

Agents run in sequence against one artifact. Every completion is parsed
into files, scored by a declarative rule table and, when critical issues
remain, sent back for correction before it reaches the artifact store.
"""

from forgeloop._version import __version__

# Pipeline entry point
from forgeloop.orchestrator.executor import WorkflowExecutor
from forgeloop.orchestrator.config import AgentRegistry, DEFAULT_AGENTS, DEFAULT_WORKFLOW

# Domain models
from forgeloop.models.artifact import ArtifactFile, ContextSelection, SelectedFile
from forgeloop.models.conversation import ConversationTurn, Role
from forgeloop.models.validation import DeploymentMode, Severity, ValidationResult
from forgeloop.models.suggestion import (
    SuggestedChange,
    Suggestion,
    SuggestionPriority,
    SuggestionStatus,
    SuggestionType,
)
from forgeloop.models.workflow import (
    AgentRole,
    StepFailure,
    StepStatus,
    WorkflowResult,
    WorkflowRun,
    WorkflowStep,
)

# Configuration
from forgeloop.models.config import AgentSpec, ForgeConfig, LLMConfig

# Pipeline stages
from forgeloop.engine.cache import ResponseCache, make_cache_key
from forgeloop.engine.context import ContextBuilder
from forgeloop.engine.correction import (
    CorrectionOutcome,
    CorrectionState,
    RuntimeFixLoop,
    SelfCorrectionLoop,
)
from forgeloop.engine.diagnostics import auto_fix_hint, detect_errors
from forgeloop.engine.parser import ResponseParser
from forgeloop.engine.rules import DEFAULT_RULES, Rule, RuleContext
from forgeloop.engine.suggestions import SuggestionExtractor
from forgeloop.engine.validator import Validator

# Completion client
from forgeloop.llm.client import OpenAIClient
from forgeloop.llm.protocols import CompletionClient, CompletionRequest, CompletionResponse

# Storage
from forgeloop.storage.memory import MemoryArtifactStore, MemorySuggestionStore
from forgeloop.storage.protocols import (
    ArtifactStore,
    LoggingSink,
    ObservabilitySink,
    RecordingSink,
    SuggestionStore,
)
from forgeloop.storage.sqlite import SqlArtifactStore, SqlSuggestionStore

# Operations
from forgeloop.operations.suggestions import apply_suggestion, reject_suggestion

# Exceptions
from forgeloop.exceptions import (
    CorrectionExhausted,
    ForgeError,
    ParseFailure,
    ProviderError,
    StepTransitionError,
    SuggestionError,
    SuggestionNotFoundError,
    UnknownAgentError,
    ValidationFailure,
)

__all__ = [
    "__version__",
    # Pipeline
    "WorkflowExecutor",
    "AgentRegistry",
    "DEFAULT_AGENTS",
    "DEFAULT_WORKFLOW",
    # Models
    "AgentRole",
    "ArtifactFile",
    "ContextSelection",
    "ConversationTurn",
    "DeploymentMode",
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
    "ValidationResult",
    "WorkflowResult",
    "WorkflowRun",
    "WorkflowStep",
    # Configuration
    "AgentSpec",
    "ForgeConfig",
    "LLMConfig",
    # Stages
    "ContextBuilder",
    "CorrectionOutcome",
    "CorrectionState",
    "DEFAULT_RULES",
    "ResponseCache",
    "ResponseParser",
    "Rule",
    "RuleContext",
    "RuntimeFixLoop",
    "SelfCorrectionLoop",
    "SuggestionExtractor",
    "Validator",
    "auto_fix_hint",
    "detect_errors",
    "make_cache_key",
    # Client
    "CompletionClient",
    "CompletionRequest",
    "CompletionResponse",
    "OpenAIClient",
    # Storage
    "ArtifactStore",
    "LoggingSink",
    "MemoryArtifactStore",
    "MemorySuggestionStore",
    "ObservabilitySink",
    "RecordingSink",
    "SqlArtifactStore",
    "SqlSuggestionStore",
    "SuggestionStore",
    # Operations
    "apply_suggestion",
    "reject_suggestion",
    # Exceptions
    "CorrectionExhausted",
    "ForgeError",
    "ParseFailure",
    "ProviderError",
    "StepTransitionError",
    "SuggestionError",
    "SuggestionNotFoundError",
    "UnknownAgentError",
    "ValidationFailure",
]
