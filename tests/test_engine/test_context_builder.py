"""Tests for budget-bounded context selection."""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from forgeloop.engine.context import (
    CONFIG_PENALTY,
    ContextBuilder,
    ENTRY_POINT_BONUS,
    REQUEST_MENTION_BONUS,
    TRUNCATION_MARKER,
    score_file,
)
from forgeloop.models import ArtifactFile
from tests.conftest import make_files
from tests.strategies import file_sets


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

class TestScoring:
    def test_entry_point_bonus(self) -> None:
        assert score_file(ArtifactFile("app/page.tsx", "x"), "") == 50 + ENTRY_POINT_BONUS

    def test_request_mention(self) -> None:
        f = ArtifactFile("components/Button.tsx", "x")
        assert score_file(f, "make the button blue") == 50 + REQUEST_MENTION_BONUS
        assert score_file(f, "make the header blue") == 50

    def test_short_stems_need_full_name(self) -> None:
        f = ArtifactFile("ui.ts", "x")
        assert score_file(f, "fix the ui") == 50
        assert score_file(f, "fix ui.ts") == 50 + REQUEST_MENTION_BONUS

    def test_config_penalty(self) -> None:
        assert score_file(ArtifactFile("package.json", "{}"), "") == 50 - CONFIG_PENALTY
        assert score_file(ArtifactFile("tailwind.config.js", ""), "") == 50 - CONFIG_PENALTY

    def test_cross_cutting_bonus(self) -> None:
        f = ArtifactFile("lib/ctx.ts", "export const C = createContext(null);")
        assert score_file(f, "") == 65

    def test_size_penalties(self) -> None:
        assert score_file(ArtifactFile("a.ts", "x" * 9_000), "") == 40
        assert score_file(ArtifactFile("a.ts", "x" * 21_000), "") == 25


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

class TestSelection:
    def test_everything_fits(self) -> None:
        files = make_files(("a.ts", "aaa"), ("b.ts", "bb"))
        selection = ContextBuilder().select(files, "", 100)
        assert selection.included_paths == ["a.ts", "b.ts"]
        assert selection.total_chars == 5
        assert selection.dropped_paths == []

    def test_priority_order(self) -> None:
        files = make_files(
            ("lib/helpers.ts", "h"),
            ("package.json", "{}"),
            ("components/Button.tsx", "b"),
            ("app/page.tsx", "p"),
        )
        selection = ContextBuilder().select(files, "restyle the button", 1_000)
        assert selection.included_paths == [
            "app/page.tsx",
            "components/Button.tsx",
            "lib/helpers.ts",
            "package.json",
        ]

    def test_ties_keep_artifact_order(self) -> None:
        files = make_files(("z.ts", "1"), ("a.ts", "2"), ("m.ts", "3"))
        selection = ContextBuilder().select(files, "", 100)
        assert selection.included_paths == ["z.ts", "a.ts", "m.ts"]

    def test_single_oversized_file_is_truncated(self) -> None:
        big = ArtifactFile("app/page.tsx", "x" * 5_000)
        selection = ContextBuilder().select([big], "", 1_000)
        assert selection.truncated_paths == ["app/page.tsx"]
        assert selection.total_chars == 1_000
        content = selection.included_files[0].content
        assert content.endswith(TRUNCATION_MARKER.format(size=5_000))

    def test_small_remainder_drops_file(self) -> None:
        files = make_files(("app/page.tsx", "p" * 700), ("lib/extra.ts", "e" * 900))
        selection = ContextBuilder().select(files, "", 1_000)
        assert selection.included_paths == ["app/page.tsx"]
        assert selection.dropped_paths == ["lib/extra.ts"]
        assert selection.total_chars == 700

    def test_zero_budget(self) -> None:
        files = make_files(("a.ts", "aaa"))
        selection = ContextBuilder().select(files, "", 0)
        assert selection.included_files == []
        assert selection.dropped_paths == ["a.ts"]

    def test_empty_artifact(self) -> None:
        selection = ContextBuilder().select([], "anything", 100)
        assert selection.total_chars == 0
        assert ContextBuilder.render(selection) == ""

    @settings(max_examples=60, deadline=None)
    @given(file_sets, st.text(max_size=40), st.integers(min_value=0, max_value=6_000))
    def test_budget_is_never_exceeded(self, files, request, budget) -> None:
        selection = ContextBuilder().select(files, request, budget)
        assert selection.total_chars <= budget
        assert selection.total_chars == sum(len(s.content) for s in selection.included_files)
        for selected in selection.included_files:
            if not selected.truncated:
                assert selected.content == selected.file.content
        seen = selection.included_paths + selection.dropped_paths
        assert sorted(seen) == sorted(f.path for f in files)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

class TestRender:
    def test_render_labels_truncated_and_omitted(self) -> None:
        files = make_files(("app/page.tsx", "p" * 2_000), ("lib/extra.ts", "e" * 900))
        selection = ContextBuilder().select(files, "", 1_000)
        text = ContextBuilder.render(selection)
        assert text.startswith("## Existing files (2)")
        assert "### app/page.tsx (truncated)\n```typescript" in text
        assert "### lib/extra.ts (omitted, over context budget)" in text
