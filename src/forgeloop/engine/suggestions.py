"""Extract approvable suggestions from reviewer and security output.

Three strategies, tried in order until one yields anything:

1. a JSON object carrying ``suggestedFixes`` (full replacement content),
2. a JSON object carrying ``issues`` (description only),
3. labelled prose lines such as ``Problem: ...`` or ``⚠️ ...``, then bulleted
   or numbered lines. Each becomes one generic improvement.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator, Sequence
from typing import Any

from forgeloop.models.artifact import ArtifactFile, normalize_path
from forgeloop.models.suggestion import (
    SuggestedChange,
    Suggestion,
    SuggestionPriority,
    SuggestionType,
)

logger = logging.getLogger(__name__)

MIN_TITLE_CHARS = 10
MAX_TITLE_CHARS = 100

_PROSE_PATTERNS = (
    re.compile(r"(?:Problem|Issue|Error|Bug|Fehler):\s*(.+?)(?:\n|$)", re.IGNORECASE),
    re.compile(
        r"(?:Improvement|Recommendation|Suggestion|Verbesserung|Empfehlung):\s*(.+?)(?:\n|$)",
        re.IGNORECASE,
    ),
    re.compile(r"(?:⚠️|❌|🔴)\s*(.+?)(?:\n|$)"),
)

_BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(.+)$", re.MULTILINE)


def iter_json_objects(text: str) -> Iterator[dict[str, Any]]:
    """Yield every top-level JSON object embedded in *text*.

    Scans for balanced braces outside of string literals, then hands each
    candidate to :func:`json.loads`. Candidates that fail to decode are
    skipped.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = -1
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    end = index
                    break
        if end == -1:
            return
        candidate = text[start : end + 1]
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as exc:
            logger.debug("Skipping undecodable JSON candidate at %d: %s", start, exc)
            start = text.find("{", start + 1)
            continue
        if isinstance(parsed, dict):
            yield parsed
        start = text.find("{", end + 1)


def _find_list(text: str, key: str) -> list[Any] | None:
    for obj in iter_json_objects(text):
        value = obj.get(key)
        if isinstance(value, list):
            return value
    return None


def _issue_priority(severity: object) -> SuggestionPriority:
    label = str(severity or "").lower()
    if label == "critical":
        return SuggestionPriority.HIGH
    if label == "warning":
        return SuggestionPriority.MEDIUM
    return SuggestionPriority.LOW


class SuggestionExtractor:
    """Turns free-form review output into :class:`Suggestion` records."""

    def extract(
        self,
        text: str,
        agent_id: str,
        current_files: Sequence[ArtifactFile] = (),
    ) -> list[Suggestion]:
        existing = {f.path: f.content for f in current_files}
        for strategy in (self._from_fixes, self._from_issues, self._from_prose):
            found = strategy(text, agent_id, existing)
            if found:
                logger.debug(
                    "%s: %d suggestion(s) via %s", agent_id, len(found), strategy.__name__
                )
                return found
        return []

    @staticmethod
    def _from_fixes(text: str, agent_id: str, existing: dict[str, str]) -> list[Suggestion]:
        fixes = _find_list(text, "suggestedFixes") or []
        suggestions = []
        for fix in fixes:
            if not isinstance(fix, dict):
                continue
            raw_path, new_content = fix.get("filePath"), fix.get("newContent")
            if not raw_path or not new_content:
                continue
            path = normalize_path(str(raw_path))
            suggestions.append(
                Suggestion(
                    agent=agent_id,
                    type=SuggestionType.coerce(fix.get("type", "improvement")),
                    title=str(fix.get("title") or "Suggested improvement"),
                    description=str(fix.get("description") or ""),
                    affected_files=[path],
                    suggested_changes=[
                        SuggestedChange(
                            file_path=path,
                            original_content=existing.get(path, ""),
                            new_content=str(new_content),
                        )
                    ],
                    priority=SuggestionPriority.coerce(fix.get("priority", "medium")),
                )
            )
        return suggestions

    @staticmethod
    def _from_issues(text: str, agent_id: str, existing: dict[str, str]) -> list[Suggestion]:
        issues = _find_list(text, "issues") or []
        suggestions = []
        for issue in issues:
            if not isinstance(issue, dict):
                continue
            if not issue.get("file") or not issue.get("suggestion"):
                continue
            critical = str(issue.get("severity", "")).lower() == "critical"
            suggestions.append(
                Suggestion(
                    agent=agent_id,
                    type=SuggestionType.FIX if critical else SuggestionType.IMPROVEMENT,
                    title=str(issue.get("message") or "Code issue"),
                    description=str(issue["suggestion"]),
                    affected_files=[normalize_path(str(issue["file"]))],
                    priority=_issue_priority(issue.get("severity")),
                )
            )
        return suggestions

    @staticmethod
    def _from_prose(text: str, agent_id: str, existing: dict[str, str]) -> list[Suggestion]:
        titles = [
            match.group(1)
            for pattern in _PROSE_PATTERNS
            for match in pattern.finditer(text)
        ]
        # Labelled bullets were already taken by the label patterns.
        titles.extend(
            match.group(1)
            for match in _BULLET_RE.finditer(text)
            if not any(p.search(match.group(1)) for p in _PROSE_PATTERNS)
        )
        suggestions = []
        seen: set[str] = set()
        for raw in titles:
            title = raw.strip()[:MAX_TITLE_CHARS]
            if len(title) <= MIN_TITLE_CHARS or title in seen:
                continue
            seen.add(title)
            suggestions.append(
                Suggestion(agent=agent_id, type=SuggestionType.IMPROVEMENT, title=title)
            )
        return suggestions
