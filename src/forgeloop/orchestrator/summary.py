"""Short human-readable summaries of completed steps."""

from __future__ import annotations

import re
from collections.abc import Sequence

from forgeloop.models.artifact import ArtifactFile
from forgeloop.models.workflow import AgentRole

_PLAN_STEP_RE = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s+\S", re.MULTILINE)
_ISSUE_WORDS = ("issue", "problem", "bug", "error", "missing", "incorrect")
_SUGGESTION_WORDS = ("suggest", "recommend", "improve", "consider")
_APPROVAL_WORDS = ("looks good", "lgtm", "approved", "no issues", "✓")
_VULNERABILITY_WORDS = ("vulnerab", "injection", "xss", "csrf", "exposed", "risk")
_SECURE_WORDS = ("no vulnerabilities", "no security issues", "secure", "✓")

MAX_LISTED_FILES = 5


def _mentions(text: str, words: Sequence[str]) -> bool:
    return any(word in text for word in words)


def summarize_step(
    role: AgentRole,
    text: str,
    files: Sequence[ArtifactFile] = (),
    duration: float | None = None,
) -> str:
    """Summarize what one agent step produced.

    Args:
        role: Role of the agent.
        text: Raw completion text.
        files: Files the step wrote.
        duration: Step duration in seconds.

    Returns:
        A multi-line summary headed by the role and duration.
    """
    lowered = text.lower()
    header = f"{role.value} finished"
    if duration is not None:
        header += f" ({duration:.1f}s)"
    lines = [header]

    if role is AgentRole.PLANNER:
        steps = len(_PLAN_STEP_RE.findall(text))
        lines.append(f"- plan with {steps} step(s)" if steps else "- no structured plan found")
    elif role is AgentRole.CODER:
        lines.append(f"- {len(files)} file(s) written")
        for file in files[:MAX_LISTED_FILES]:
            lines.append(f"  {file.path}")
        if len(files) > MAX_LISTED_FILES:
            lines.append(f"  ... and {len(files) - MAX_LISTED_FILES} more")
    elif role is AgentRole.REVIEWER:
        has_issues = _mentions(lowered, _ISSUE_WORDS)
        if _mentions(lowered, _APPROVAL_WORDS) and not has_issues:
            lines.append("- code quality good, no critical problems")
        elif has_issues:
            lines.append("- room for improvement identified")
        if _mentions(lowered, _SUGGESTION_WORDS):
            lines.append("- improvement suggestions provided")
    elif role is AgentRole.SECURITY:
        vulnerable = _mentions(lowered, _VULNERABILITY_WORDS)
        if _mentions(lowered, _SECURE_WORDS) and not vulnerable:
            lines.append("- no vulnerabilities found")
        elif vulnerable:
            lines.append("- security findings reported")
    elif files:
        lines.append(f"- {len(files)} file(s) written")

    return "\n".join(lines)
