"""Tests for runtime error signature detection."""

from __future__ import annotations

from forgeloop.engine.diagnostics import DetectedError, ErrorKind, auto_fix_hint, detect_errors


class TestDetectErrors:
    def test_module_not_found(self) -> None:
        log = "Error in ./app/page.tsx\nModule not found: Can't resolve 'lodash'"
        errors = detect_errors(log)
        assert [e.kind for e in errors] == [ErrorKind.IMPORT]
        assert errors[0].file == "./app/page.tsx"

    def test_type_error_with_line(self) -> None:
        log = "components/Card.tsx:12:5 - Type 'string' is not assignable to type 'number'"
        (error,) = detect_errors(log)
        assert error.kind is ErrorKind.TYPE
        assert error.file == "components/Card.tsx"
        assert error.line == 12

    def test_runtime_errors_are_not_auto_fixable(self) -> None:
        errors = detect_errors("TypeError: Cannot read properties of undefined (reading 'map')")
        kinds = {e.kind: e for e in errors}
        assert kinds[ErrorKind.TYPE].auto_fixable
        assert not kinds[ErrorKind.RUNTIME].auto_fixable

    def test_duplicates_collapse(self) -> None:
        log = "Missing semicolon\nMissing semicolon\n"
        assert len(detect_errors(log)) == 1

    def test_clean_log(self) -> None:
        assert detect_errors("compiled successfully") == []


class TestAutoFixHint:
    def test_package_import(self) -> None:
        error = DetectedError(ErrorKind.IMPORT, "Cannot find module 'zod'")
        assert auto_fix_hint(error) == "install the missing module: npm install zod"

    def test_local_import(self) -> None:
        error = DetectedError(ErrorKind.IMPORT, "Cannot find module './utils'")
        assert auto_fix_hint(error) == "check the import paths and the exports of the imported file"

    def test_null_guard(self) -> None:
        error = DetectedError(ErrorKind.RUNTIME, "Cannot read properties of null")
        assert "optional chaining" in auto_fix_hint(error)

    def test_describe(self) -> None:
        error = DetectedError(ErrorKind.SYNTAX, "Missing semicolon", file="a.ts", line=3)
        assert error.describe() == (
            "syntax: Missing semicolon in a.ts:3 "
            "(fix: fix the syntax (unbalanced brackets, missing punctuation))"
        )
