"""Validation result and mode models."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

# Minimum score for an artifact without critical issues to be valid.
VALIDITY_THRESHOLD = 50


class Severity(str, enum.Enum):
    """Tier of a validation rule."""

    CRITICAL = "critical"
    ADVISORY = "advisory"


class DeploymentMode(str, enum.Enum):
    """Where the artifact is headed. Drives mode-specific rules.

    ``NONE`` and ``GITHUB_ONLY`` produce a plain source tree; every other
    mode is a server-rendered deployment that needs client directives.
    """

    NONE = "none"
    GITHUB_ONLY = "github-only"
    VERCEL = "vercel"
    RENDER = "render"
    BTP = "btp"

    @property
    def is_deployed(self) -> bool:
        return self not in (DeploymentMode.NONE, DeploymentMode.GITHUB_ONLY)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one validation pass.

    Created fresh for every call and never mutated. Use :meth:`build` so
    the score is clamped and ``is_valid`` derived consistently.

    Attributes:
        is_valid: ``score >= 50`` and no critical issues.
        score: 0-100.
        issues: Advisory findings.
        critical_issues: Findings that invalidate the artifact on their own.
    """

    is_valid: bool
    score: int
    issues: list[str] = field(default_factory=list)
    critical_issues: list[str] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        score: int,
        issues: list[str] | None = None,
        critical_issues: list[str] | None = None,
    ) -> ValidationResult:
        clamped = max(0, min(100, score))
        critical = list(critical_issues or [])
        return cls(
            is_valid=clamped >= VALIDITY_THRESHOLD and not critical,
            score=clamped,
            issues=list(issues or []),
            critical_issues=critical,
        )

    @property
    def findings(self) -> list[str]:
        """Critical findings first, then advisory ones."""
        return [*self.critical_issues, *self.issues]

    def __str__(self) -> str:
        status = "valid" if self.is_valid else "invalid"
        return (
            f"{status} (score {self.score}, {len(self.critical_issues)} critical, "
            f"{len(self.issues)} advisory)"
        )
