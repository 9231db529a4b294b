"""Prompts for workflow agents.

Provides default system instructions per agent role, the framing used to
hand one step's output to the next, and the correction requests used by
the self-correction loops.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from forgeloop.models.workflow import AgentRole

if TYPE_CHECKING:
    from forgeloop.engine.diagnostics import DetectedError
    from forgeloop.models.validation import ValidationResult

FILE_BLOCK_FORMAT: str = (
    "Emit every file as a fenced code block whose first line is a path "
    "comment, for example:\n"
    "```tsx\n// filepath: components/Button.tsx\n...\n```\n"
    "Always emit complete files, never partial diffs or placeholders."
)

DEFAULT_INSTRUCTIONS: dict[AgentRole, str] = {
    AgentRole.PLANNER: (
        "You are a software planner. Break the request into a numbered "
        "list of concrete implementation tasks, name the files each task "
        "touches and call out shared state or configuration changes."
    ),
    AgentRole.CODER: (
        "You are a senior engineer. Implement the request as working, "
        "complete source files. Put each component in its own file and "
        "give every file at most one default export.\n\n" + FILE_BLOCK_FORMAT
    ),
    AgentRole.REVIEWER: (
        "You are a code reviewer. Check the code for bugs, broken imports, "
        "performance and maintainability problems. Report each finding on "
        "its own line as 'Issue: ...' and, where you can, include a JSON "
        "object with a \"suggestedFixes\" array of {filePath, title, "
        "description, type, priority, newContent} entries."
    ),
    AgentRole.SECURITY: (
        "You are a security auditor. Audit the code for injection, unsafe "
        "evaluation, leaked secrets and missing input validation. Report "
        "each finding as 'Issue: ...' or as a JSON object with an "
        "\"issues\" array of {file, message, severity, suggestion} entries."
    ),
    AgentRole.CUSTOM: "You are a helpful software engineering assistant.",
}

# (previous role, current role) -> heading and closing instruction.
_FRAMES: dict[tuple[AgentRole, AgentRole], tuple[str, str]] = {
    (AgentRole.PLANNER, AgentRole.CODER): (
        "## Plan to implement",
        "Implement every task of the plan as complete, runnable files.",
    ),
    (AgentRole.CODER, AgentRole.REVIEWER): (
        "## Code to review",
        "Review this code for bugs, best practices, performance and security.",
    ),
    (AgentRole.REVIEWER, AgentRole.CODER): (
        "## Review feedback to address",
        "Apply every improvement from the review and emit the complete corrected files.",
    ),
    (AgentRole.SECURITY, AgentRole.CODER): (
        "## Audit findings to address",
        "Fix every finding from the audit and emit the complete corrected files.",
    ),
}

_AUDIT_FRAME = (
    "## Code to audit",
    "Perform a complete security audit of this output.",
)
_DEFAULT_FRAME = ("## Previous output", "")


def infer_role(text: str) -> AgentRole:
    """Guess which role produced *text* when the step did not declare one."""
    if "```" in text and any(k in text for k in ("export", "function", "const", "def ")):
        return AgentRole.CODER
    if any(k in text for k in ("## Plan", "## Tasks", "## Features")):
        return AgentRole.PLANNER
    if any(k in text for k in ("## Review", "Issue:", "Problem:", "Improvement:")):
        return AgentRole.REVIEWER
    return AgentRole.CUSTOM


def frame_previous_output(
    previous_role: AgentRole,
    current_role: AgentRole,
    previous_output: str,
) -> str:
    """Reframe the previous step's output for the current agent.

    plan -> implement, implement -> review, review -> re-implement, and
    anything -> audit each get their own framing; other pairs get a
    neutral heading.
    """
    if not previous_output:
        return ""
    if previous_role is AgentRole.CUSTOM:
        previous_role = infer_role(previous_output)
    if current_role is AgentRole.SECURITY:
        heading, instruction = _AUDIT_FRAME
    else:
        heading, instruction = _FRAMES.get((previous_role, current_role), _DEFAULT_FRAME)
    framed = f"{heading}\n\n{previous_output}"
    if instruction:
        framed += f"\n\n{instruction}"
    return framed


def build_system_prompt(instructions: str, context: str, framed_previous: str) -> str:
    """Join agent instructions, artifact context and previous output."""
    return "\n\n".join(part for part in (instructions, context, framed_previous) if part)


def correction_request(result: ValidationResult, request: str) -> str:
    """User turn asking for a full re-emission that fixes every finding."""
    lines = ["Your previous output has problems that must be fixed.", ""]
    if result.critical_issues:
        lines.append("Critical issues:")
        lines.extend(f"- {issue}" for issue in result.critical_issues)
    if result.issues:
        lines.append("")
        lines.append("Other issues:")
        lines.extend(f"- {issue}" for issue in result.issues)
    lines += [
        "",
        "Emit the COMPLETE artifact again, every file in full. Do not send "
        "partial diffs.",
        "",
        f"Original request: {request}",
    ]
    return "\n".join(lines)


def runtime_fix_request(
    failure: str,
    errors: list[DetectedError],
    request: str,
) -> str:
    """User turn asking to fix an externally reported runtime failure."""
    lines = ["Running the artifact failed with:", "", failure.strip()]
    if errors:
        lines += ["", "Detected errors:"]
        lines.extend(f"- {error.describe()}" for error in errors)
    lines += [
        "",
        "Fix the cause and emit the COMPLETE artifact again, every file in full.",
        "",
        f"Original request: {request}",
    ]
    return "\n".join(lines)


STRICT_FORMAT_REQUEST: str = (
    "Your answer contained no extractable files. Respond ONLY with "
    "complete files as fenced code blocks.\n\n" + FILE_BLOCK_FORMAT
)
