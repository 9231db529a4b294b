"""Declarative validation rule table.

Every rule is a ``Rule(id, severity, weight, description, check)`` row.
``check`` receives a RuleContext and returns one human-readable finding
per violation; each finding subtracts ``weight`` from the score. Adding
or removing a rule never touches the validator or the orchestrator.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import cached_property

from forgeloop.engine.imports import ModuleGraph, is_script
from forgeloop.models.artifact import ArtifactFile
from forgeloop.models.validation import DeploymentMode, Severity
from forgeloop.models.workflow import AgentRole


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule may look at. Built once per validation call."""

    files: tuple[ArtifactFile, ...]
    mode: DeploymentMode = DeploymentMode.NONE
    role: AgentRole | None = None
    text: str = ""

    @cached_property
    def graph(self) -> ModuleGraph:
        return ModuleGraph.build(self.files)

    @property
    def scripts(self) -> list[ArtifactFile]:
        return [f for f in self.files if is_script(f.path)]


@dataclass(frozen=True)
class Rule:
    """One row of the rule table."""

    id: str
    severity: Severity
    weight: int
    description: str
    check: Callable[[RuleContext], list[str]] = field(repr=False)

    def __post_init__(self) -> None:
        if self.weight <= 0:
            raise ValueError(f"Rule {self.id!r} must have a positive weight")


# ---------------------------------------------------------------------------
# Structural checks (critical)
# ---------------------------------------------------------------------------


def _script_imports(ctx: RuleContext):
    graph = ctx.graph
    for importer, records in graph.imports.items():
        for record in records:
            if record.is_local:
                yield importer, record, graph.resolve(importer, record.source)


def check_default_import_target(ctx: RuleContext) -> list[str]:
    findings = []
    for importer, record, target in _script_imports(ctx):
        if record.default is None or target is None or not is_script(target):
            continue
        if not ctx.graph.exports[target].has_default:
            findings.append(
                f"{importer}: default import '{record.default}' from "
                f"'{record.source}' but {target} has no default export"
            )
    return findings


def check_named_import_target(ctx: RuleContext) -> list[str]:
    findings = []
    for importer, record, target in _script_imports(ctx):
        if target is None or not is_script(target):
            continue
        exports = ctx.graph.exports[target]
        if exports.reexports_all:
            continue
        for name in record.names:
            if name not in exports.names:
                findings.append(
                    f"{importer}: imports '{name}' from '{record.source}' "
                    f"but {target} does not export it"
                )
    return findings


def check_multiple_default_exports(ctx: RuleContext) -> list[str]:
    return [
        f"{path}: has {exports.default_count} default exports, only one is allowed"
        for path, exports in ctx.graph.exports.items()
        if exports.default_count > 1
    ]


def check_unresolved_imports(ctx: RuleContext) -> list[str]:
    return [
        f"{importer}: import '{record.source}' does not resolve to any file"
        for importer, record, target in _script_imports(ctx)
        if target is None
    ]


def check_has_files(ctx: RuleContext) -> list[str]:
    if ctx.role is AgentRole.CODER and not ctx.files:
        return ["output contains no code files"]
    return []


_PROVIDER_RE = re.compile(r"\bcreateContext\b|<\w*Provider\b")


def check_provider_in_page(ctx: RuleContext) -> list[str]:
    if not ctx.mode.is_deployed:
        return []
    return [
        f"{f.path}: declares a context/provider inside a page file, move it to components/"
        for f in ctx.scripts
        if f.stem == "page" and _PROVIDER_RE.search(f.content)
    ]


# ---------------------------------------------------------------------------
# Advisory checks
# ---------------------------------------------------------------------------

_HOOK_RE = re.compile(r"\buse(?:State|Effect|Reducer|Context|Ref|LayoutEffect)\s*\(")
_CLIENT_DIRECTIVE_RE = re.compile(r"^\s*['\"]use client['\"]", re.MULTILINE)


def check_client_directive(ctx: RuleContext) -> list[str]:
    if not ctx.mode.is_deployed:
        return []
    return [
        f"{f.path}: uses client hooks without a \"use client\" directive"
        for f in ctx.scripts
        if _HOOK_RE.search(f.content) and not _CLIENT_DIRECTIVE_RE.search(f.content)
    ]


def _paired(open_re: str, close_re: str, label: str) -> Callable[[RuleContext], list[str]]:
    opener = re.compile(open_re)
    closer = re.compile(close_re)

    def check(ctx: RuleContext) -> list[str]:
        return [
            f"{f.path}: {label} without matching cleanup"
            for f in ctx.scripts
            if opener.search(f.content) and not closer.search(f.content)
        ]

    return check


check_interval_cleanup = _paired(r"\bsetInterval\s*\(", r"\bclearInterval\s*\(", "setInterval")
check_listener_cleanup = _paired(
    r"\.addEventListener\s*\(", r"\.removeEventListener\s*\(", "addEventListener"
)

_DYNAMIC_EVAL_RE = re.compile(r"(?<![\w.])eval\s*\(|\bnew\s+Function\s*\(|\bexec\s*\(\s*compile\(")


def check_dynamic_evaluation(ctx: RuleContext) -> list[str]:
    return [
        f"{f.path}: uses dynamic code evaluation"
        for f in ctx.files
        if _DYNAMIC_EVAL_RE.search(f.content)
    ]


_SECRET_PATTERNS = (
    re.compile(r"\bsk-[A-Za-z0-9_\-]{20,}"),
    re.compile(r"\bAKIA[0-9A-Z]{16}\b"),
    re.compile(r"\bgh[pousr]_[A-Za-z0-9]{30,}"),
    re.compile(
        r"(?i)\b(?:api[_-]?key|secret|password|passwd|access[_-]?token)\b\s*[:=]\s*['\"][^'\"\s]{8,}['\"]"
    ),
)


def check_hardcoded_secrets(ctx: RuleContext) -> list[str]:
    return [
        f"{f.path}: contains a hardcoded secret-like literal"
        for f in ctx.files
        if not f.path.endswith(".example")
        and any(p.search(f.content) for p in _SECRET_PATTERNS)
    ]


MAX_FILE_LINES = 500


def check_oversized_files(ctx: RuleContext) -> list[str]:
    return [
        f"{f.path}: {f.content.count(chr(10)) + 1} lines, split it into smaller files"
        for f in ctx.files
        if f.content.count("\n") + 1 > MAX_FILE_LINES
    ]


_INCOMPLETE_RE = re.compile(
    r"//\s*\.\.\.|/\*\s*\.\.\.|#\s*\.\.\.\s*$|//\s*TODO\b|^\s*\.\.\.\s*$",
    re.MULTILINE,
)


def check_incomplete_code(ctx: RuleContext) -> list[str]:
    return [
        f"{f.path}: contains placeholder or incomplete code"
        for f in ctx.scripts
        if _INCOMPLETE_RE.search(f.content)
    ]


_EXPORTED_FUNCTION_RE = re.compile(r"export\s+(?:default\s+)?function\s+\w+")


def check_single_file_components(ctx: RuleContext) -> list[str]:
    if len(ctx.files) != 1:
        return []
    only = ctx.files[0]
    count = len(_EXPORTED_FUNCTION_RE.findall(only.content))
    if count > 3:
        return [f"{only.path}: {count} components in a single file, split them up"]
    return []


_STEP_LINE_RE = re.compile(r"^\s*(?:\d+[.)]|[-*•]|- \[[ x]\])\s+\S", re.MULTILINE)


def check_plan_shape(ctx: RuleContext) -> list[str]:
    if ctx.role is not AgentRole.PLANNER:
        return []
    if len(_STEP_LINE_RE.findall(ctx.text)) >= 2:
        return []
    return ["plan output has no enumerable steps"]


_FINDING_RE = re.compile(
    r"\b(?:issue|problem|finding|vulnerab\w*|risk|severity|score|recommend\w*|"
    r"no issues|lgtm|approved)\b",
    re.IGNORECASE,
)


def check_review_shape(ctx: RuleContext) -> list[str]:
    if ctx.role not in (AgentRole.REVIEWER, AgentRole.SECURITY):
        return []
    if _FINDING_RE.search(ctx.text):
        return []
    return [f"{ctx.role.value} output has no identifiable findings"]


DEFAULT_RULES: tuple[Rule, ...] = (
    Rule("no-files", Severity.CRITICAL, 40, "code output must contain files", check_has_files),
    Rule(
        "default-import-target",
        Severity.CRITICAL,
        25,
        "default import needs a default export",
        check_default_import_target,
    ),
    Rule(
        "named-import-target",
        Severity.CRITICAL,
        20,
        "named import needs a matching export",
        check_named_import_target,
    ),
    Rule(
        "multiple-default-exports",
        Severity.CRITICAL,
        50,
        "at most one default export per file",
        check_multiple_default_exports,
    ),
    Rule(
        "unresolved-import",
        Severity.CRITICAL,
        20,
        "local imports must resolve to a file",
        check_unresolved_imports,
    ),
    Rule(
        "provider-in-page",
        Severity.CRITICAL,
        40,
        "contexts/providers belong in components",
        check_provider_in_page,
    ),
    Rule(
        "client-directive",
        Severity.ADVISORY,
        10,
        "client hooks need a \"use client\" directive",
        check_client_directive,
    ),
    Rule("interval-cleanup", Severity.ADVISORY, 10, "intervals must be cleared", check_interval_cleanup),
    Rule(
        "listener-cleanup",
        Severity.ADVISORY,
        10,
        "listeners must be removed",
        check_listener_cleanup,
    ),
    Rule(
        "dynamic-evaluation",
        Severity.ADVISORY,
        15,
        "avoid dynamic code evaluation",
        check_dynamic_evaluation,
    ),
    Rule(
        "hardcoded-secret",
        Severity.ADVISORY,
        20,
        "secrets belong in the environment",
        check_hardcoded_secrets,
    ),
    Rule("oversized-file", Severity.ADVISORY, 10, "keep files small", check_oversized_files),
    Rule(
        "incomplete-code",
        Severity.ADVISORY,
        20,
        "no placeholders in emitted code",
        check_incomplete_code,
    ),
    Rule(
        "single-file-components",
        Severity.ADVISORY,
        25,
        "one component per file",
        check_single_file_components,
    ),
    Rule("plan-shape", Severity.ADVISORY, 30, "plans list their steps", check_plan_shape),
    Rule("review-shape", Severity.ADVISORY, 25, "reviews name their findings", check_review_shape),
)
