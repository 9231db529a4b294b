"""Error-signature detection for externally reported runtime failures.

Turns a free-form failure description (build log, console output, stack
trace) into classified DetectedError records with file/line hints and a
remediation hint. Used to enrich runtime-failure correction requests.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass


class ErrorKind(str, enum.Enum):
    SYNTAX = "syntax"
    TYPE = "type"
    IMPORT = "import"
    RUNTIME = "runtime"


@dataclass(frozen=True)
class DetectedError:
    """One error signature found in a failure description."""

    kind: ErrorKind
    message: str
    file: str | None = None
    line: int | None = None
    auto_fixable: bool = True

    def describe(self) -> str:
        where = ""
        if self.file:
            where = f" in {self.file}" + (f":{self.line}" if self.line else "")
        text = f"{self.kind.value}: {self.message}{where}"
        hint = auto_fix_hint(self)
        return f"{text} (fix: {hint})" if hint else text


_PATTERNS: tuple[tuple[ErrorKind, re.Pattern[str], bool], ...] = (
    (ErrorKind.SYNTAX, re.compile(r"SyntaxError:\s*[^\n]+"), True),
    (ErrorKind.SYNTAX, re.compile(r"Unexpected token\s*['\"]?\w*['\"]?"), True),
    (ErrorKind.SYNTAX, re.compile(r"Missing semicolon"), True),
    (ErrorKind.TYPE, re.compile(r"TypeError:\s*[^\n]+"), True),
    (ErrorKind.TYPE, re.compile(r"Type '[^']+' is not assignable to type '[^']+'"), True),
    (ErrorKind.TYPE, re.compile(r"Property '\w+' does not exist[^\n]*"), True),
    (ErrorKind.TYPE, re.compile(r"Cannot find name '\w+'"), True),
    (ErrorKind.IMPORT, re.compile(r"Cannot find module ['\"][^'\"]+['\"]"), True),
    (ErrorKind.IMPORT, re.compile(r"Module not found:\s*[^\n]+"), True),
    (ErrorKind.IMPORT, re.compile(r"Failed to resolve import[^\n]*"), True),
    (ErrorKind.IMPORT, re.compile(r"(?:Attempted import error|does not contain a default export)[^\n]*"), True),
    (ErrorKind.RUNTIME, re.compile(r"ReferenceError:\s*[^\n]+"), False),
    (ErrorKind.RUNTIME, re.compile(r"\b\w+ is not defined\b"), False),
    (ErrorKind.RUNTIME, re.compile(r"Cannot read propert(?:y|ies) of (?:undefined|null)[^\n]*"), False),
)

_LINE_HINT = re.compile(r"line\s*(\d+)|:(\d+):\d+", re.IGNORECASE)
_FILE_HINT = re.compile(r"([\w\-./]+\.(?:tsx?|jsx?|mjs|cjs|py|css|json))")


def detect_errors(text: str) -> list[DetectedError]:
    """Find error signatures in *text*, de-duplicated by (kind, message)."""
    found: list[DetectedError] = []
    seen: set[tuple[ErrorKind, str]] = set()
    for kind, pattern, fixable in _PATTERNS:
        for match in pattern.finditer(text):
            message = match.group(0).strip()
            if (kind, message) in seen:
                continue
            seen.add((kind, message))
            window = text[max(0, match.start() - 100): match.end() + 100]
            file_match = _FILE_HINT.search(window)
            line_match = _LINE_HINT.search(window)
            line = None
            if line_match:
                line = int(line_match.group(1) or line_match.group(2))
            found.append(
                DetectedError(
                    kind=kind,
                    message=message,
                    file=file_match.group(1) if file_match else None,
                    line=line,
                    auto_fixable=fixable,
                )
            )
    return found


def auto_fix_hint(error: DetectedError) -> str | None:
    """Suggest a remediation for a detected error."""
    if error.kind is ErrorKind.IMPORT:
        module = re.search(r"['\"]([^'\"\s]+)['\"]", error.message)
        if module and not module.group(1).startswith((".", "@/", "~/")):
            return f"install the missing module: npm install {module.group(1)}"
        return "check the import paths and the exports of the imported file"
    if error.kind is ErrorKind.TYPE:
        if "is not assignable" in error.message:
            return "correct the type or add an explicit conversion"
        if "does not exist" in error.message:
            return "add the property to the interface or fix the property name"
        return "review the type annotations"
    if error.kind is ErrorKind.SYNTAX:
        return "fix the syntax (unbalanced brackets, missing punctuation)"
    if error.kind is ErrorKind.RUNTIME:
        if "undefined" in error.message or "null" in error.message:
            return "guard against null values (optional chaining or explicit checks)"
        return "define every variable before it is used"
    return None
