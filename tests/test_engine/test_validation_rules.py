"""Tests for the validator, its rule table and the import graph.

Property-based tests (Hypothesis) check purity, that removing a rule
never lowers the score, and the validity invariant.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from forgeloop.engine.imports import (
    ModuleGraph,
    parse_exports,
    parse_imports,
    resolve_import,
)
from forgeloop.engine.rules import DEFAULT_RULES, Rule, RuleContext
from forgeloop.engine.validator import Validator
from forgeloop.models import AgentRole, DeploymentMode, Severity
from tests.conftest import make_files
from tests.strategies import file_sets

PAGE = (
    "import SearchBox from '@/components/SearchBox';\n"
    "export default function Page() {\n"
    "  return <SearchBox />;\n"
    "}\n"
)
SEARCHBOX_NAMED = "export function SearchBox() {\n  return <input />;\n}\n"
SEARCHBOX_DEFAULT = "export default function SearchBox() {\n  return <input />;\n}\n"


def validate(*pairs, **kwargs):
    return Validator().validate(make_files(*pairs), **kwargs)


# ---------------------------------------------------------------------------
# Import graph
# ---------------------------------------------------------------------------

class TestImportGraph:
    def test_parse_exports(self) -> None:
        code = (
            "export default function A() {}\n"
            "export const b = 1;\n"
            "export { c, d as e };\n"
            "// export default Ignored\n"
        )
        exports = parse_exports(code)
        assert exports.default_count == 1
        assert exports.names == frozenset({"b", "c", "e"})
        assert not exports.reexports_all

    def test_export_as_default_counts(self) -> None:
        assert parse_exports("const x = 1;\nexport { x as default };").has_default

    def test_parse_imports(self) -> None:
        code = (
            "import React, { useState, useEffect as ue } from 'react';\n"
            "import * as utils from './utils';\n"
            "import type { Props } from './types';\n"
            "import './styles.css';\n"
        )
        records = parse_imports(code)
        react = records[0]
        assert react.default == "React"
        assert react.names == ("useState", "useEffect")
        assert not react.is_local
        assert records[1].namespace and records[1].is_local
        assert records[2].names == ("Props",)
        assert records[3].source == "./styles.css"

    @pytest.mark.parametrize(
        "importer, source, expected",
        [
            ("app/page.tsx", "@/components/Nav", "components/Nav.tsx"),
            ("src/app/page.tsx", "@/lib/db", "src/lib/db.ts"),
            ("app/page.tsx", "../components/Nav", "components/Nav.tsx"),
            ("app/page.tsx", "./ui", "app/ui/index.ts"),
            ("lib/a.ts", "./b.js", "lib/b.ts"),
            ("app/page.tsx", "./missing", None),
        ],
    )
    def test_resolve_import(self, importer: str, source: str, expected: str | None) -> None:
        paths = [
            "components/Nav.tsx",
            "src/lib/db.ts",
            "app/ui/index.ts",
            "lib/b.ts",
        ]
        assert resolve_import(importer, source, paths) == expected

    def test_graph_only_covers_scripts(self) -> None:
        graph = ModuleGraph.build(make_files(("a.ts", "export const a = 1;"), ("s.css", "a{}")))
        assert set(graph.exports) == {"a.ts"}


# ---------------------------------------------------------------------------
# Critical rules
# ---------------------------------------------------------------------------

class TestCriticalRules:
    def test_clean_artifact_scores_100(self) -> None:
        result = validate(("app/page.tsx", PAGE), ("components/SearchBox.tsx", SEARCHBOX_DEFAULT))
        assert result.score == 100
        assert result.is_valid
        assert result.issues == [] and result.critical_issues == []

    def test_default_import_without_default_export(self) -> None:
        result = validate(("app/page.tsx", PAGE), ("components/SearchBox.tsx", SEARCHBOX_NAMED))
        assert len(result.critical_issues) == 1
        assert "app/page.tsx" in result.critical_issues[0]
        assert "components/SearchBox.tsx has no default export" in result.critical_issues[0]
        assert result.score == 75
        assert not result.is_valid

    def test_missing_named_export(self) -> None:
        result = validate(
            ("a.ts", "import { helper } from './b';\nexport const a = helper;"),
            ("b.ts", "export const other = 1;"),
        )
        assert any("'helper'" in issue for issue in result.critical_issues)

    def test_star_reexport_skips_named_check(self) -> None:
        result = validate(
            ("a.ts", "import { helper } from './b';\nexport const a = helper;"),
            ("b.ts", "export * from './c';"),
            ("c.ts", "export const helper = 1;"),
        )
        assert result.critical_issues == []

    def test_multiple_default_exports(self) -> None:
        result = validate(
            ("a.tsx", "export default function A() {}\nexport default function B() {}")
        )
        assert result.critical_issues == ["a.tsx: has 2 default exports, only one is allowed"]
        assert result.score == 50

    def test_unresolved_local_import(self) -> None:
        result = validate(("a.ts", "import x from './nowhere';\nexport default x;"))
        assert result.critical_issues == ["a.ts: import './nowhere' does not resolve to any file"]

    def test_package_imports_ignored(self) -> None:
        result = validate(("a.ts", "import React from 'react';\nexport default React;"))
        assert result.critical_issues == []

    def test_coder_without_files(self) -> None:
        result = Validator().validate([], role=AgentRole.CODER)
        assert result.critical_issues == ["output contains no code files"]

    def test_provider_in_page_only_when_deployed(self) -> None:
        page = "'use client';\nconst Ctx = createContext(null);\nexport default function Page() {}"
        files = make_files(("app/page.tsx", page))
        assert Validator().validate(files).critical_issues == []
        deployed = Validator().validate(files, DeploymentMode.VERCEL)
        assert len(deployed.critical_issues) == 1
        assert "app/page.tsx" in deployed.critical_issues[0]


# ---------------------------------------------------------------------------
# Advisory rules
# ---------------------------------------------------------------------------

class TestAdvisoryRules:
    def test_client_directive_in_deploy_mode(self) -> None:
        comp = "import { useState } from 'react';\nexport default function C() { const [a] = useState(0); }"
        files = make_files(("components/C.tsx", comp))
        assert Validator().validate(files, DeploymentMode.NONE).issues == []
        result = Validator().validate(files, DeploymentMode.RENDER)
        assert result.issues == ['components/C.tsx: uses client hooks without a "use client" directive']
        assert result.critical_issues == []
        assert result.score == 90

    def test_interval_without_cleanup(self) -> None:
        result = validate(("t.ts", "export const t = setInterval(() => {}, 1000);"))
        assert result.issues == ["t.ts: setInterval without matching cleanup"]

    def test_interval_with_cleanup(self) -> None:
        code = "const t = setInterval(() => {}, 1000);\nexport const stop = () => clearInterval(t);"
        assert validate(("t.ts", code)).issues == []

    def test_listener_without_cleanup(self) -> None:
        result = validate(("l.ts", "window.addEventListener('resize', () => {});\nexport {};"))
        assert result.issues == ["l.ts: addEventListener without matching cleanup"]

    def test_dynamic_evaluation(self) -> None:
        result = validate(("e.ts", "export const run = (s: string) => eval(s);"))
        assert result.issues == ["e.ts: uses dynamic code evaluation"]
        assert result.score == 85

    def test_hardcoded_secret(self) -> None:
        code = 'export const apiKey = "sk-abcdefghijklmnopqrstuvwxyz123456";'
        result = validate(("config.ts", code))
        assert result.issues == ["config.ts: contains a hardcoded secret-like literal"]

    def test_oversized_file(self) -> None:
        code = "\n".join(f"export const v{i} = {i};" for i in range(600))
        result = validate(("big.ts", code))
        assert result.issues == ["big.ts: 600 lines, split it into smaller files"]

    def test_incomplete_code(self) -> None:
        code = "export function f() {\n  // ...\n}"
        assert validate(("f.ts", code)).issues == ["f.ts: contains placeholder or incomplete code"]

    def test_many_components_in_single_file(self) -> None:
        code = "\n".join(f"export function C{i}() {{ return null; }}" for i in range(4))
        result = validate(("App.tsx", code))
        assert result.issues == ["App.tsx: 4 components in a single file, split them up"]

    def test_plan_shape(self) -> None:
        v = Validator()
        bad = v.validate([], role=AgentRole.PLANNER, text="I will build it.")
        good = v.validate([], role=AgentRole.PLANNER, text="1. Create page\n2. Add search")
        assert bad.issues == ["plan output has no enumerable steps"]
        assert good.issues == []

    def test_review_shape(self) -> None:
        v = Validator()
        bad = v.validate([], role=AgentRole.REVIEWER, text="Nice work.")
        good = v.validate([], role=AgentRole.SECURITY, text="Issue: unsanitized input")
        assert bad.issues == ["reviewer output has no identifiable findings"]
        assert good.issues == []

    def test_each_finding_subtracts_weight(self) -> None:
        result = validate(
            ("a.ts", "export const a = () => eval('1');"),
            ("b.ts", "export const b = () => eval('2');"),
        )
        assert result.score == 70
        assert len(result.issues) == 2


# ---------------------------------------------------------------------------
# Validator mechanics
# ---------------------------------------------------------------------------

class TestValidatorMechanics:
    def test_duplicate_rule_ids_rejected(self) -> None:
        rule = DEFAULT_RULES[0]
        with pytest.raises(ValueError):
            Validator([rule, rule])

    def test_rule_weight_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            Rule("x", Severity.ADVISORY, 0, "zero", lambda ctx: [])

    def test_custom_rule(self) -> None:
        no_console = Rule(
            "no-console",
            Severity.ADVISORY,
            5,
            "no console output",
            lambda ctx: [f"{f.path}: console.log" for f in ctx.files if "console.log" in f.content],
        )
        result = Validator([no_console]).validate(make_files(("a.ts", "console.log(1)")))
        assert result.score == 95
        assert result.issues == ["a.ts: console.log"]

    def test_severe_penalties_clamp_at_zero(self) -> None:
        heavy = Rule("heavy", Severity.CRITICAL, 80, "heavy", lambda ctx: ["a", "b"])
        assert Validator([heavy]).validate([]).score == 0

    def test_rule_context_scripts(self) -> None:
        ctx = RuleContext(files=tuple(make_files(("a.ts", ""), ("b.css", ""))))
        assert [f.path for f in ctx.scripts] == ["a.ts"]

    @settings(max_examples=40, deadline=None)
    @given(file_sets, st.sampled_from(list(DeploymentMode)))
    def test_pure_and_deterministic(self, files, mode) -> None:
        v = Validator()
        assert v.validate(files, mode) == v.validate(files, mode)

    @settings(max_examples=40, deadline=None)
    @given(
        file_sets,
        st.sampled_from(list(DeploymentMode)),
        st.sampled_from([r.id for r in DEFAULT_RULES]),
    )
    def test_removing_a_rule_never_lowers_score(self, files, mode, rule_id) -> None:
        full = Validator().validate(files, mode)
        reduced = Validator([r for r in DEFAULT_RULES if r.id != rule_id]).validate(files, mode)
        assert reduced.score >= full.score

    @settings(max_examples=40, deadline=None)
    @given(file_sets, st.sampled_from(list(DeploymentMode)))
    def test_validity_invariant_and_disjoint_findings(self, files, mode) -> None:
        result = Validator().validate(files, mode)
        assert result.is_valid == (result.score >= 50 and not result.critical_issues)
        assert not set(result.issues) & set(result.critical_issues)
