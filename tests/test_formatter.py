"""Tests for fixgate.formatter dispatch."""

from __future__ import annotations

from pathlib import Path

import pytest

from fixgate.categories import FixCategory
from fixgate.documents import Diagnostic, SourceDocument
from fixgate.fixers import BaseFixer, FixerRegistry, UnusedImportsFixer
from fixgate.formatter import FormatOptions, FormatterEngine
from fixgate.options import ConfigurationStore
from fixgate.severity import InvalidSeverityError, Severity

CODE = "import os\n\nclass C:\n    pass\n"
FIXED = "class C:\n    pass\n"
CODE_AFTER_ASSIGNMENT = "x = 1\nimport os\n\nclass C:\n    pass\n"

RULE_KEY = "fixgate_diagnostic.F401.severity"
CATEGORY_KEY = "fixgate_analyzer_diagnostic.category-Style.severity"
GLOBAL_KEY = "fixgate_analyzer_diagnostic.severity"

STYLE = FixCategory.WHITESPACE | FixCategory.CODE_STYLE
ALL_CATEGORIES = STYLE | FixCategory.ANALYZERS


def _format(
    editorconfig: dict[str, str],
    fix_categories: FixCategory,
    severity: Severity,
    code: str = CODE,
) -> str:
    engine = FormatterEngine(
        FormatOptions(fix_categories=fix_categories, severity=severity),
        registry=FixerRegistry([UnusedImportsFixer()]),
    )
    result = engine.format_document(SourceDocument("test.py", code), ConfigurationStore(editorconfig))
    return result.source


class TestUnusedImportScenarios:
    """End-to-end decisions for the unused import fixer."""

    def test_style_not_requested_no_change(self) -> None:
        """Test that whitespace-only requests never remove imports."""
        assert _format({}, FixCategory.WHITESPACE, Severity.INFO) == CODE
        assert _format({RULE_KEY: "error"}, FixCategory.WHITESPACE, Severity.INFO) == CODE

    def test_rule_not_configured_no_change(self) -> None:
        """Test the default-safe outcome with no severity keys."""
        assert _format({}, STYLE, Severity.INFO) == CODE

    @pytest.mark.parametrize("key", [RULE_KEY, CATEGORY_KEY, GLOBAL_KEY])
    @pytest.mark.parametrize("configured", ["warning", "info"])
    def test_severity_lower_than_fix_severity_no_change(self, key: str, configured: str) -> None:
        """Test configured severities below the requirement."""
        assert _format({key: configured}, STYLE, Severity.ERROR) == CODE

    @pytest.mark.parametrize("key", [RULE_KEY, CATEGORY_KEY, GLOBAL_KEY])
    @pytest.mark.parametrize("configured", ["warning", "error"])
    def test_severity_equal_or_greater_import_removed(self, key: str, configured: str) -> None:
        """Test configured severities at or above the requirement."""
        assert _format({key: configured}, STYLE, Severity.WARNING) == FIXED

    def test_category_key_used_when_rule_key_absent(self) -> None:
        """Test fallback to the category key."""
        assert _format({CATEGORY_KEY: "error"}, STYLE, Severity.WARNING) == FIXED

    def test_rule_key_overrides_category_and_global(self) -> None:
        """Test that only the rule value is considered once present."""
        config = {RULE_KEY: "info", CATEGORY_KEY: "error", GLOBAL_KEY: "error"}
        assert _format(config, STYLE, Severity.WARNING) == CODE

    def test_invalid_severity_raises(self) -> None:
        """Test that a malformed value fails the unit."""
        with pytest.raises(InvalidSeverityError):
            _format({RULE_KEY: "sometimes"}, STYLE, Severity.WARNING)

    def test_idempotent(self) -> None:
        """Test formatting already formatted code changes nothing."""
        assert _format({RULE_KEY: "warning"}, STYLE, Severity.WARNING, code=FIXED) == FIXED


class _AppendFixer(BaseFixer):
    """Appends a marker line once; records the text it saw."""

    category = FixCategory.WHITESPACE
    option_keys = ("marker",)

    def __init__(self, name: str) -> None:
        self.name = name  # type: ignore[misc]
        self.seen: list[str] = []

    def analyze(self, document: SourceDocument, store: ConfigurationStore) -> list[Diagnostic]:
        self.seen.append(document.text)
        marker = f"# {self.name}\n"
        if document.text.endswith(marker):
            return []
        return [Diagnostic(UnusedImportsFixer.descriptor, line=1)]  # type: ignore[arg-type]

    def fix(
        self,
        document: SourceDocument,
        diagnostics: list[Diagnostic],
        store: ConfigurationStore,
    ) -> SourceDocument | None:
        return document.with_text(document.text + f"# {self.name}\n")


class TestDispatch:
    """Tests for ordering, records and error isolation."""

    def test_fixers_run_in_declared_order_on_previous_output(self) -> None:
        """Test each fixer sees the text produced by the one before it."""
        first, second = _AppendFixer("first"), _AppendFixer("second")
        engine = FormatterEngine(FormatOptions(FixCategory.WHITESPACE), registry=FixerRegistry([first, second]))
        store = ConfigurationStore({"marker": "1"})
        result = engine.format_document(SourceDocument("a.py", "x = 1\n"), store)
        assert result.source == "x = 1\n# first\n# second\n"
        assert second.seen == ["x = 1\n# first\n"]
        assert result.applied_fixers == ["first", "second"]
        assert result.changed is True

    def test_records_every_decision(self) -> None:
        """Test that skipped fixers are recorded with their reason."""
        engine = FormatterEngine(
            FormatOptions(FixCategory.WHITESPACE),
            registry=FixerRegistry([UnusedImportsFixer()]),
        )
        result = engine.format_document(SourceDocument("a.py", CODE), ConfigurationStore())
        assert len(result.records) == 1
        assert result.records[0].fixer == "unused-imports"
        assert result.records[0].decision.apply is False
        assert result.records[0].decision.reason == "category not requested"
        assert result.changed is False

    def test_required_severity_per_category(self) -> None:
        """Test analyzer fixers use the analyzer threshold."""
        options = FormatOptions(
            fix_categories=FixCategory.CODE_STYLE | FixCategory.ANALYZERS,
            severity=Severity.ERROR,
            analyzer_severity=Severity.SILENT,
        )
        assert options.required_severity(FixCategory.CODE_STYLE) is Severity.ERROR
        assert options.required_severity(FixCategory.ANALYZERS) is Severity.SILENT

    def test_overrides_win_over_editorconfig(self, tmp_path: Path) -> None:
        """Test that overrides are layered above the store provider."""
        engine = FormatterEngine(
            FormatOptions(STYLE),
            overrides={RULE_KEY: "error"},
            store_provider=lambda path: ConfigurationStore({RULE_KEY: "none"}),
        )
        assert engine.store_for(tmp_path / "a.py").get(RULE_KEY) == "error"

    def test_explain_keeps_going_after_invalid_severity(self) -> None:
        """Test explain reports invalid values per fixer."""
        engine = FormatterEngine(FormatOptions(STYLE))
        store = ConfigurationStore({RULE_KEY: "bogus", "fixgate_diagnostic.E703.severity": "error"})
        outcomes = dict((fixer.name, outcome) for fixer, outcome in engine.explain(store))
        assert isinstance(outcomes["unused-imports"], InvalidSeverityError)
        assert outcomes["useless-semicolon"].apply is True  # type: ignore[union-attr]
        assert outcomes["trailing-whitespace"].reason == "not configured"  # type: ignore[union-attr]


class TestBuiltInFixers:
    """The full built-in registry run through the engine."""

    MESSY = "x = 1;  \nimport os\r\n\nclass C:\n    pass"

    def test_empty_store_changes_nothing(self) -> None:
        """Test that no built-in fixer runs without configuration."""
        engine = FormatterEngine(FormatOptions(ALL_CATEGORIES, Severity.NONE, Severity.NONE))
        result = engine.format_document(SourceDocument("a.py", self.MESSY), ConfigurationStore())
        assert result.source == self.MESSY
        assert result.applied_fixers == []
        assert not any(record.decision.apply for record in result.records)

    def test_bare_cr_unused_import(self) -> None:
        """Test import removal after line endings are converted to a bare CR."""
        engine = FormatterEngine(FormatOptions(STYLE))
        store = ConfigurationStore({"end_of_line": "cr", RULE_KEY: "warning"})
        result = engine.format_document(SourceDocument("a.py", CODE_AFTER_ASSIGNMENT), store)
        assert result.source == "x = 1\r\rclass C:\r    pass\r"
        assert result.applied_fixers == ["end-of-line", "unused-imports"]

    def test_bare_cr_semicolon_and_unused_import(self) -> None:
        """Test both code-style fixers on a file converted to a bare CR."""
        engine = FormatterEngine(FormatOptions(STYLE))
        store = ConfigurationStore(
            {
                "end_of_line": "cr",
                RULE_KEY: "warning",
                "fixgate_diagnostic.E703.severity": "warning",
            }
        )
        source = "x = 1;\nimport os\n\nclass C:\n    pass\n"
        result = engine.format_document(SourceDocument("a.py", source), store)
        assert result.source == "x = 1\r\rclass C:\r    pass\r"
        assert result.applied_fixers == ["end-of-line", "useless-semicolon", "unused-imports"]


class TestAnalyzerThreshold:
    """Analyzer fixers are gated by the analyzer severity, not the style one."""

    SOURCE = "if x is 1:\n    pass\n"
    FIXED_SOURCE = "if x == 1:\n    pass\n"
    KEY = "fixgate_diagnostic.F632.severity"

    def _format(self, options: FormatOptions, store: dict[str, str]) -> tuple[str, str]:
        engine = FormatterEngine(options)
        result = engine.format_document(SourceDocument("a.py", self.SOURCE), ConfigurationStore(store))
        record = next(r for r in result.records if r.fixer == "literal-comparison")
        return result.source, record.decision.reason

    def test_analyzer_severity_blocks(self) -> None:
        """Test a low style threshold does not lower the analyzer threshold."""
        options = FormatOptions(FixCategory.ANALYZERS, Severity.SILENT, Severity.ERROR)
        assert self._format(options, {self.KEY: "warning"}) == (self.SOURCE, "warning < error")

    def test_analyzer_severity_allows(self) -> None:
        """Test a high style threshold does not raise the analyzer threshold."""
        options = FormatOptions(FixCategory.ANALYZERS, Severity.ERROR, Severity.WARNING)
        assert self._format(options, {self.KEY: "warning"}) == (self.FIXED_SOURCE, "warning >= warning")

    def test_category_key(self) -> None:
        """Test the analyzer's diagnostic category key."""
        options = FormatOptions(FixCategory.ANALYZERS, analyzer_severity=Severity.WARNING)
        store = {"fixgate_analyzer_diagnostic.category-Correctness.severity": "error"}
        assert self._format(options, store)[0] == self.FIXED_SOURCE

    def test_analyzers_must_be_requested(self) -> None:
        """Test style categories never run the analyzer fixer."""
        options = FormatOptions(STYLE, Severity.NONE, Severity.NONE)
        assert self._format(options, {self.KEY: "error"}) == (self.SOURCE, "category not requested")


class TestFormatFiles:
    """Tests for file-level formatting."""

    @staticmethod
    def _engine(store: dict[str, str], parallel: bool = True) -> FormatterEngine:
        return FormatterEngine(
            FormatOptions(STYLE),
            store_provider=lambda path: ConfigurationStore(store),
            parallel=parallel,
        )

    def test_writes_changes(self, tmp_path: Path) -> None:
        """Test that changed files are written back."""
        path = tmp_path / "a.py"
        path.write_text(CODE)
        result = self._engine({RULE_KEY: "warning"}).format_file(path)
        assert result.written is True
        assert path.read_text() == FIXED

    def test_no_write_mode(self, tmp_path: Path) -> None:
        """Test check mode leaves files untouched."""
        path = tmp_path / "a.py"
        path.write_text(CODE)
        result = self._engine({RULE_KEY: "warning"}).format_file(path, write=False)
        assert result.changed is True
        assert result.written is False
        assert path.read_text() == CODE

    def test_preserves_crlf(self, tmp_path: Path) -> None:
        """Test that line endings on disk are preserved."""
        path = tmp_path / "a.py"
        path.write_bytes(b"import os\r\n\r\nx = 1\r\n")
        self._engine({RULE_KEY: "warning"}).format_file(path)
        assert path.read_bytes() == b"x = 1\r\n"

    @pytest.mark.parametrize("parallel", [True, False])
    def test_failure_isolated_per_file(self, tmp_path: Path, parallel: bool) -> None:
        """Test one file's error does not affect other files."""
        good = tmp_path / "good.py"
        broken = tmp_path / "broken.py"
        good.write_text(CODE)
        broken.write_text("import (\n")

        engine = self._engine({RULE_KEY: "warning"}, parallel=parallel)
        results = engine.format_files([broken, good])

        assert results.total_files == 2
        assert results.changed_files == 1
        assert results.error_files == 1
        assert [r.path for r in results.results] == [str(broken), str(good)]
        assert "Cannot parse" in results.results[0].errors[0]
        assert good.read_text() == FIXED
        assert broken.read_text() == "import (\n"

    def test_invalid_severity_isolated_per_file(self, tmp_path: Path) -> None:
        """Test InvalidSeverityError is recorded on the file, not raised."""
        path = tmp_path / "a.py"
        path.write_text(CODE)
        result = self._engine({RULE_KEY: "sometimes"}).format_file(path)
        assert result.changed is False
        assert "Invalid severity 'sometimes'" in result.errors[0]
        assert path.read_text() == CODE

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test unreadable files are reported as errors."""
        result = self._engine({}).format_file(tmp_path / "missing.py")
        assert result.errors

    def test_check_pass_after_fix_is_clean(self, tmp_path: Path) -> None:
        """Test that re-running after a fix finds nothing to change."""
        path = tmp_path / "a.py"
        path.write_text(CODE)
        engine = self._engine({RULE_KEY: "warning"})
        engine.format_file(path)
        assert engine.format_file(path, write=False).changed is False
