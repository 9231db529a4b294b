"""Pipeline stages: context selection, parsing, validation, correction."""

from forgeloop.engine.cache import CacheEntry, ResponseCache, make_cache_key
from forgeloop.engine.context import ContextBuilder, score_file
from forgeloop.engine.correction import (
    Candidate,
    CorrectionAttempt,
    CorrectionOutcome,
    CorrectionState,
    RuntimeFixLoop,
    SelfCorrectionLoop,
    is_improvement,
    transition,
)
from forgeloop.engine.diagnostics import DetectedError, ErrorKind, auto_fix_hint, detect_errors
from forgeloop.engine.parser import ResponseParser
from forgeloop.engine.rules import DEFAULT_RULES, Rule, RuleContext
from forgeloop.engine.suggestions import SuggestionExtractor
from forgeloop.engine.validator import RuleHit, Validator

__all__ = [
    "CacheEntry",
    "Candidate",
    "ContextBuilder",
    "CorrectionAttempt",
    "CorrectionOutcome",
    "CorrectionState",
    "DEFAULT_RULES",
    "DetectedError",
    "ErrorKind",
    "ResponseCache",
    "ResponseParser",
    "Rule",
    "RuleContext",
    "RuleHit",
    "RuntimeFixLoop",
    "SelfCorrectionLoop",
    "SuggestionExtractor",
    "Validator",
    "auto_fix_hint",
    "detect_errors",
    "is_improvement",
    "make_cache_key",
    "score_file",
    "transition",
]
