"""Self-correction loops.

The validator-driven loop is an explicit state machine::

    DRAFT --(no critical issues)--> ACCEPTED
    DRAFT --(critical issues)--> CORRECTING
    CORRECTING --(revision fixes every critical issue)--> ACCEPTED
    CORRECTING --(revision not an improvement)--> EXHAUSTED  (draft kept)
    CORRECTING --(attempt ceiling reached)--> EXHAUSTED
    CORRECTING --(improved, critical issues remain)--> CORRECTING

:func:`transition` is pure and knows nothing about the network; the
async loops feed it ValidationResults produced by a caller-supplied
``revise`` coroutine. A second loop handles externally reported runtime
failures with its own ceiling and the same acceptance gate.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from forgeloop.engine.diagnostics import detect_errors
from forgeloop.models.artifact import ArtifactFile
from forgeloop.models.conversation import ConversationTurn
from forgeloop.models.validation import ValidationResult
from forgeloop.prompts.agents import correction_request, runtime_fix_request

logger = logging.getLogger(__name__)


class CorrectionState(str, enum.Enum):
    DRAFT = "draft"
    CORRECTING = "correcting"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"

    @property
    def terminal(self) -> bool:
        return self in (CorrectionState.ACCEPTED, CorrectionState.EXHAUSTED)


@dataclass(frozen=True)
class Candidate:
    """A completion with its parsed files and validation result."""

    text: str
    files: tuple[ArtifactFile, ...]
    result: ValidationResult


@dataclass(frozen=True)
class CorrectionAttempt:
    """Record of one correction round."""

    attempt_number: int
    prior_result: ValidationResult
    new_result: ValidationResult
    accepted: bool


@dataclass(frozen=True)
class Transition:
    """Output of :func:`transition`."""

    state: CorrectionState
    accept_revision: bool = False


@dataclass(frozen=True)
class CorrectionOutcome:
    """Final state of a correction loop and the best candidate seen."""

    state: CorrectionState
    best: Candidate
    attempts: list[CorrectionAttempt] = field(default_factory=list)

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    @property
    def revised(self) -> bool:
        """Whether any revision replaced the original draft."""
        return any(a.accepted for a in self.attempts)


Revise = Callable[[list[ConversationTurn]], Awaitable[Candidate]]


def is_improvement(prior: ValidationResult, new: ValidationResult) -> bool:
    """Strictly higher score or strictly fewer critical issues."""
    return new.score > prior.score or len(new.critical_issues) < len(prior.critical_issues)


def is_regression(origin: ValidationResult, new: ValidationResult) -> bool:
    """Lower score and more critical issues than the original draft."""
    return new.score < origin.score and len(new.critical_issues) > len(origin.critical_issues)


def transition(
    state: CorrectionState,
    *,
    best: ValidationResult,
    origin: ValidationResult,
    revision: ValidationResult | None,
    attempts: int,
    max_attempts: int,
) -> Transition:
    """Pure transition function of the correction state machine.

    Args:
        state: Current state.
        best: Result of the currently kept candidate.
        origin: Result of the original draft.
        revision: Result of the revision just produced (CORRECTING only).
        attempts: Correction attempts made so far, including this one.
        max_attempts: Attempt ceiling.
    """
    if state.terminal:
        return Transition(state)

    if state is CorrectionState.DRAFT:
        if not best.critical_issues:
            return Transition(CorrectionState.ACCEPTED)
        if max_attempts <= 0:
            return Transition(CorrectionState.EXHAUSTED)
        return Transition(CorrectionState.CORRECTING)

    if revision is None:
        raise ValueError("CORRECTING transition needs a revision result")
    if not is_improvement(best, revision) or is_regression(origin, revision):
        return Transition(CorrectionState.EXHAUSTED)
    if not revision.critical_issues:
        return Transition(CorrectionState.ACCEPTED, accept_revision=True)
    if attempts >= max_attempts:
        return Transition(CorrectionState.EXHAUSTED, accept_revision=True)
    return Transition(CorrectionState.CORRECTING, accept_revision=True)


class SelfCorrectionLoop:
    """Re-prompts for revisions while critical issues remain.

    Args:
        max_attempts: Ceiling on correction requests per draft.
    """

    def __init__(self, max_attempts: int = 2) -> None:
        self._max_attempts = max_attempts

    async def run(
        self,
        draft: Candidate,
        turns: Sequence[ConversationTurn],
        request: str,
        revise: Revise,
    ) -> CorrectionOutcome:
        """Drive the state machine from DRAFT to a terminal state.

        Each correction request re-sends *turns*, the kept candidate as an
        assistant turn and a user turn listing every finding verbatim.
        """
        best = draft
        attempts: list[CorrectionAttempt] = []
        state = transition(
            CorrectionState.DRAFT,
            best=draft.result,
            origin=draft.result,
            revision=None,
            attempts=0,
            max_attempts=self._max_attempts,
        ).state

        while state is CorrectionState.CORRECTING:
            number = len(attempts) + 1
            conversation = [
                *turns,
                ConversationTurn.assistant(best.text),
                ConversationTurn.user(correction_request(best.result, request)),
            ]
            logger.info(
                "Correction attempt %d/%d (%d critical issue(s))",
                number,
                self._max_attempts,
                len(best.result.critical_issues),
            )
            revision = await revise(conversation)
            step = transition(
                state,
                best=best.result,
                origin=draft.result,
                revision=revision.result,
                attempts=number,
                max_attempts=self._max_attempts,
            )
            attempts.append(
                CorrectionAttempt(
                    attempt_number=number,
                    prior_result=best.result,
                    new_result=revision.result,
                    accepted=step.accept_revision,
                )
            )
            if step.accept_revision:
                logger.info(
                    "Revision accepted: score %d -> %d", best.result.score, revision.result.score
                )
                best = revision
            else:
                logger.warning(
                    "Revision rejected (score %d, %d critical), keeping draft",
                    revision.result.score,
                    len(revision.result.critical_issues),
                )
            state = step.state

        return CorrectionOutcome(state=state, best=best, attempts=attempts)


RecheckFailure = Callable[[Candidate], Awaitable["str | None"]]


class RuntimeFixLoop:
    """Repairs an artifact against an externally reported failure.

    The failure counts as one extra critical issue of the current
    candidate, so a revision that validates no worse is an improvement.
    After an accepted revision the optional ``recheck`` coroutine reports
    a fresh failure description (or None when the artifact now runs).

    Args:
        max_attempts: Ceiling on fix requests, independent of the
            validator-driven loop.
    """

    def __init__(self, max_attempts: int = 3) -> None:
        self._max_attempts = max_attempts

    async def run(
        self,
        current: Candidate,
        turns: Sequence[ConversationTurn],
        request: str,
        failure: str,
        revise: Revise,
        recheck: RecheckFailure | None = None,
    ) -> CorrectionOutcome:
        best = current
        attempts: list[CorrectionAttempt] = []
        state = CorrectionState.CORRECTING if self._max_attempts > 0 else CorrectionState.EXHAUSTED
        pending: str | None = failure

        while state is CorrectionState.CORRECTING and pending:
            number = len(attempts) + 1
            failing = ValidationResult.build(
                best.result.score,
                best.result.issues,
                [*best.result.critical_issues, f"runtime failure: {pending.strip()[:200]}"],
            )
            conversation = [
                *turns,
                ConversationTurn.assistant(best.text),
                ConversationTurn.user(
                    runtime_fix_request(pending, detect_errors(pending), request)
                ),
            ]
            logger.info("Runtime fix attempt %d/%d", number, self._max_attempts)
            revision = await revise(conversation)
            accepted = is_improvement(failing, revision.result) and not is_regression(
                current.result, revision.result
            )
            attempts.append(
                CorrectionAttempt(
                    attempt_number=number,
                    prior_result=failing,
                    new_result=revision.result,
                    accepted=accepted,
                )
            )
            if not accepted:
                logger.warning("Runtime fix rejected, keeping previous artifact")
                state = CorrectionState.EXHAUSTED
                break
            best = revision
            pending = await recheck(best) if recheck is not None else None
            if not pending:
                state = CorrectionState.ACCEPTED
            elif number >= self._max_attempts:
                state = CorrectionState.EXHAUSTED

        return CorrectionOutcome(state=state, best=best, attempts=attempts)
