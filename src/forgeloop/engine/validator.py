"""Validator: apply the rule table to a candidate file set.

Pure and deterministic. The score starts at 100 and every finding
subtracts its rule's weight; the result is clamped to [0, 100].
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from forgeloop.engine.rules import DEFAULT_RULES, Rule, RuleContext
from forgeloop.models.artifact import ArtifactFile
from forgeloop.models.validation import DeploymentMode, Severity, ValidationResult
from forgeloop.models.workflow import AgentRole

logger = logging.getLogger(__name__)

MAX_SCORE = 100


@dataclass(frozen=True)
class RuleHit:
    """A rule that produced at least one finding."""

    rule: Rule
    findings: tuple[str, ...]

    @property
    def penalty(self) -> int:
        return self.rule.weight * len(self.findings)


class Validator:
    """Scores a file set against a rule table.

    Usage::

        result = Validator().validate(files, DeploymentMode.VERCEL)
        if not result.is_valid:
            print(result.critical_issues)
    """

    def __init__(self, rules: Iterable[Rule] = DEFAULT_RULES) -> None:
        self._rules = tuple(rules)
        ids = [r.id for r in self._rules]
        if len(ids) != len(set(ids)):
            raise ValueError("Rule ids must be unique")

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def evaluate(
        self,
        files: Sequence[ArtifactFile],
        mode: DeploymentMode = DeploymentMode.NONE,
        role: AgentRole | None = None,
        text: str = "",
    ) -> list[RuleHit]:
        """Run every rule and return the ones that fired, in table order."""
        ctx = RuleContext(files=tuple(files), mode=mode, role=role, text=text)
        hits: list[RuleHit] = []
        for rule in self._rules:
            findings = rule.check(ctx)
            if findings:
                hits.append(RuleHit(rule=rule, findings=tuple(findings)))
        return hits

    def validate(
        self,
        files: Sequence[ArtifactFile],
        mode: DeploymentMode = DeploymentMode.NONE,
        role: AgentRole | None = None,
        text: str = "",
    ) -> ValidationResult:
        """Validate a file set.

        Args:
            files: Candidate files.
            mode: Deployment mode, enables mode-specific rules.
            role: Role of the agent that produced the output, enables the
                output-shape rules.
            text: Raw completion text, used by output-shape rules.

        Returns:
            A fresh ValidationResult.
        """
        score = MAX_SCORE
        issues: list[str] = []
        critical: list[str] = []
        for hit in self.evaluate(files, mode, role, text):
            score -= hit.penalty
            target = critical if hit.rule.severity is Severity.CRITICAL else issues
            target.extend(hit.findings)
        result = ValidationResult.build(score, issues, critical)
        logger.debug("Validated %d file(s): %s", len(files), result)
        return result
