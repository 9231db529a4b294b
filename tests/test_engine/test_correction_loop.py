"""Tests for the correction state machine and the two correction loops."""

from __future__ import annotations

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from forgeloop.engine.correction import (
    Candidate,
    CorrectionState,
    RuntimeFixLoop,
    SelfCorrectionLoop,
    is_improvement,
    is_regression,
    transition,
)
from forgeloop.models import ConversationTurn, ValidationResult
from forgeloop.models.conversation import Role
from tests.strategies import validation_results


def result(score: int, critical: int = 0) -> ValidationResult:
    return ValidationResult.build(score, [], [f"critical {i}" for i in range(critical)])


def candidate(score: int, critical: int = 0, text: str = "") -> Candidate:
    return Candidate(text=text or f"score {score}", files=(), result=result(score, critical))


class ScriptedReviser:
    """Returns queued candidates and records every conversation it saw."""

    def __init__(self, *candidates: Candidate) -> None:
        self._queue = list(candidates)
        self.conversations: list[list[ConversationTurn]] = []

    async def __call__(self, conversation: list[ConversationTurn]) -> Candidate:
        self.conversations.append(conversation)
        return self._queue.pop(0)


TURNS = [ConversationTurn.system("sys"), ConversationTurn.user("build it")]


# ---------------------------------------------------------------------------
# Transition function
# ---------------------------------------------------------------------------

class TestTransition:
    def step(self, state, best, revision=None, *, origin=None, attempts=1, max_attempts=2):
        return transition(
            state,
            best=best,
            origin=origin or best,
            revision=revision,
            attempts=attempts,
            max_attempts=max_attempts,
        )

    def test_clean_draft_accepted(self) -> None:
        assert self.step(CorrectionState.DRAFT, result(90)).state is CorrectionState.ACCEPTED

    def test_advisory_only_draft_accepted(self) -> None:
        draft = ValidationResult.build(40, ["a", "b"], [])
        assert self.step(CorrectionState.DRAFT, draft).state is CorrectionState.ACCEPTED

    def test_critical_draft_starts_correcting(self) -> None:
        assert self.step(CorrectionState.DRAFT, result(75, 1)).state is CorrectionState.CORRECTING

    def test_zero_ceiling_exhausts(self) -> None:
        step = self.step(CorrectionState.DRAFT, result(75, 1), max_attempts=0)
        assert step.state is CorrectionState.EXHAUSTED

    def test_fixed_revision_accepted(self) -> None:
        step = self.step(CorrectionState.CORRECTING, result(75, 1), result(100))
        assert step == step.__class__(CorrectionState.ACCEPTED, accept_revision=True)

    def test_non_improvement_exhausts_and_keeps_draft(self) -> None:
        step = self.step(CorrectionState.CORRECTING, result(75, 1), result(75, 1))
        assert step.state is CorrectionState.EXHAUSTED
        assert not step.accept_revision

    def test_partial_improvement_keeps_correcting(self) -> None:
        step = self.step(CorrectionState.CORRECTING, result(50, 2), result(75, 1), attempts=1)
        assert step.state is CorrectionState.CORRECTING
        assert step.accept_revision

    def test_ceiling_reached_with_improvement(self) -> None:
        step = self.step(CorrectionState.CORRECTING, result(50, 2), result(75, 1), attempts=2)
        assert step.state is CorrectionState.EXHAUSTED
        assert step.accept_revision

    def test_regression_against_origin_rejected(self) -> None:
        step = self.step(
            CorrectionState.CORRECTING,
            result(60, 1),
            result(70, 3),
            origin=result(80, 1),
        )
        assert not step.accept_revision

    def test_terminal_states_are_sticky(self) -> None:
        for state in (CorrectionState.ACCEPTED, CorrectionState.EXHAUSTED):
            assert self.step(state, result(0, 3), result(100)).state is state

    def test_correcting_needs_revision(self) -> None:
        with pytest.raises(ValueError):
            self.step(CorrectionState.CORRECTING, result(75, 1))

    def test_is_improvement(self) -> None:
        assert is_improvement(result(70, 1), result(71, 1))
        assert is_improvement(result(70, 2), result(60, 1))
        assert not is_improvement(result(70, 1), result(70, 1))

    def test_is_regression(self) -> None:
        assert is_regression(result(80, 1), result(70, 2))
        assert not is_regression(result(80, 1), result(70, 1))

    @settings(max_examples=100)
    @given(validation_results, validation_results, st.integers(1, 3), st.integers(1, 3))
    def test_accepted_revision_always_improves(self, best, revision, attempts, ceiling) -> None:
        if not best.critical_issues:
            return
        step = transition(
            CorrectionState.CORRECTING,
            best=best,
            origin=best,
            revision=revision,
            attempts=attempts,
            max_attempts=ceiling,
        )
        if step.accept_revision:
            assert is_improvement(best, revision)
        if step.state is CorrectionState.ACCEPTED:
            assert not revision.critical_issues


# ---------------------------------------------------------------------------
# Validator-driven loop
# ---------------------------------------------------------------------------

class TestSelfCorrectionLoop:
    def test_clean_draft_makes_no_requests(self) -> None:
        reviser = ScriptedReviser()
        outcome = asyncio.run(SelfCorrectionLoop().run(candidate(95), TURNS, "req", reviser))
        assert outcome.state is CorrectionState.ACCEPTED
        assert outcome.attempt_count == 0
        assert reviser.conversations == []

    def test_one_round_fix(self) -> None:
        draft = candidate(75, 1, text="draft")
        fixed = candidate(100, text="fixed")
        reviser = ScriptedReviser(fixed)
        outcome = asyncio.run(SelfCorrectionLoop().run(draft, TURNS, "add search", reviser))
        assert outcome.state is CorrectionState.ACCEPTED
        assert outcome.best is fixed
        assert outcome.attempt_count == 1 and outcome.revised
        conversation = reviser.conversations[0]
        assert conversation[:2] == TURNS
        assert conversation[2] == ConversationTurn.assistant("draft")
        assert conversation[3].role is Role.USER
        assert "- critical 0" in conversation[3].content
        assert "Original request: add search" in conversation[3].content

    def test_worse_revision_keeps_draft(self) -> None:
        draft = candidate(75, 1)
        reviser = ScriptedReviser(candidate(30, 3))
        outcome = asyncio.run(SelfCorrectionLoop().run(draft, TURNS, "req", reviser))
        assert outcome.state is CorrectionState.EXHAUSTED
        assert outcome.best is draft
        assert not outcome.revised

    def test_stops_at_ceiling(self) -> None:
        draft = candidate(25, 3)
        reviser = ScriptedReviser(candidate(50, 2), candidate(75, 1), candidate(100))
        outcome = asyncio.run(
            SelfCorrectionLoop(max_attempts=2).run(draft, TURNS, "req", reviser)
        )
        assert outcome.state is CorrectionState.EXHAUSTED
        assert outcome.attempt_count == 2
        assert outcome.best.result.score == 75

    def test_second_round_sends_kept_candidate(self) -> None:
        draft = candidate(25, 3, text="v0")
        reviser = ScriptedReviser(candidate(50, 2, text="v1"), candidate(100, text="v2"))
        asyncio.run(SelfCorrectionLoop().run(draft, TURNS, "req", reviser))
        assert reviser.conversations[1][2] == ConversationTurn.assistant("v1")

    @settings(max_examples=60, deadline=None)
    @given(validation_results, st.lists(validation_results, min_size=3, max_size=3))
    def test_never_worse_than_draft(self, draft_result, revisions) -> None:
        draft = Candidate("draft", (), draft_result)
        reviser = ScriptedReviser(*(Candidate(f"r{i}", (), r) for i, r in enumerate(revisions)))
        outcome = asyncio.run(SelfCorrectionLoop(max_attempts=3).run(draft, TURNS, "req", reviser))
        best = outcome.best.result
        assert outcome.state.terminal
        assert best == draft_result or not is_regression(draft_result, best)
        assert outcome.attempt_count <= 3


# ---------------------------------------------------------------------------
# Runtime failure loop
# ---------------------------------------------------------------------------

class TestRuntimeFixLoop:
    def test_fix_accepted_without_recheck(self) -> None:
        current = candidate(100, text="v0")
        reviser = ScriptedReviser(candidate(100, text="v1"))
        outcome = asyncio.run(
            RuntimeFixLoop().run(current, TURNS, "req", "Module not found: 'zod'", reviser)
        )
        assert outcome.state is CorrectionState.ACCEPTED
        assert outcome.best.text == "v1"
        message = reviser.conversations[0][3].content
        assert "Module not found: 'zod'" in message
        assert "npm install zod" in message

    def test_recheck_drives_more_rounds(self) -> None:
        failures = ["still broken", None]

        async def recheck(_: Candidate) -> str | None:
            return failures.pop(0)

        reviser = ScriptedReviser(candidate(100, text="v1"), candidate(100, text="v2"))
        outcome = asyncio.run(
            RuntimeFixLoop().run(candidate(100), TURNS, "req", "boom", reviser, recheck)
        )
        assert outcome.state is CorrectionState.ACCEPTED
        assert outcome.attempt_count == 2
        assert outcome.best.text == "v2"

    def test_ceiling(self) -> None:
        async def recheck(_: Candidate) -> str | None:
            return "still broken"

        reviser = ScriptedReviser(candidate(100), candidate(100))
        outcome = asyncio.run(
            RuntimeFixLoop(max_attempts=2).run(
                candidate(100), TURNS, "req", "boom", reviser, recheck
            )
        )
        assert outcome.state is CorrectionState.EXHAUSTED
        assert outcome.attempt_count == 2

    def test_regressing_revision_rejected(self) -> None:
        current = candidate(90, text="v0")
        reviser = ScriptedReviser(candidate(40, 2, text="v1"))
        outcome = asyncio.run(RuntimeFixLoop().run(current, TURNS, "req", "boom", reviser))
        assert outcome.state is CorrectionState.EXHAUSTED
        assert outcome.best is current

    def test_zero_ceiling(self) -> None:
        outcome = asyncio.run(
            RuntimeFixLoop(max_attempts=0).run(candidate(100), TURNS, "req", "boom", ScriptedReviser())
        )
        assert outcome.state is CorrectionState.EXHAUSTED
        assert outcome.attempt_count == 0
