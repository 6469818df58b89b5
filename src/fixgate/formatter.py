"""Formatter dispatch.

Runs the registered fixers over source units. For each unit, every fixer is
put through the fix decision engine in the registry's declared order, and
approved fixers are applied one after the other so each sees the previous
fixer's output. Units are independent and may be formatted in parallel.
"""

from __future__ import annotations

import concurrent.futures
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from fixgate.categories import FixCategory
from fixgate.decision import FixDecision, decide
from fixgate.documents import SourceDocument
from fixgate.editorconfig import EditorConfigError, load_editorconfig
from fixgate.fixers.base import BaseFixer, FixerError
from fixgate.fixers.registry import FixerRegistry, get_global_registry
from fixgate.options import ConfigurationStore
from fixgate.severity import InvalidSeverityError, Severity

StoreProvider = Callable[[Path], ConfigurationStore]


@dataclass(frozen=True)
class FormatOptions:
    """What the caller asked for.

    Attributes:
        fix_categories: Categories of fixes to consider.
        severity: Minimum severity for code-style fixes.
        analyzer_severity: Minimum severity for analyzer fixes.
    """

    fix_categories: FixCategory = FixCategory.WHITESPACE
    severity: Severity = Severity.WARNING
    analyzer_severity: Severity = Severity.WARNING

    def required_severity(self, category: FixCategory) -> Severity:
        """Threshold that applies to fixers of ``category``."""
        if category == FixCategory.ANALYZERS:
            return self.analyzer_severity
        return self.severity


@dataclass
class FixRecord:
    """What happened to one fixer on one unit.

    Attributes:
        fixer: Fixer name.
        decision: Decision returned by the engine.
        changed: Whether the fixer modified the text.
    """

    fixer: str
    decision: FixDecision
    changed: bool = False


@dataclass
class FormatResult:
    """Result of formatting one source unit.

    Attributes:
        path: Path of the unit.
        original: Text before formatting.
        source: Text after formatting (equal to ``original`` on error).
        records: One record per fixer that was evaluated, in dispatch order.
        errors: Error messages. A unit with errors is left unchanged.
        written: Whether the new text was written back to disk.
    """

    path: str
    original: str
    source: str
    records: list[FixRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    written: bool = False

    @property
    def changed(self) -> bool:
        return not self.errors and self.source != self.original

    @property
    def applied_fixers(self) -> list[str]:
        return [record.fixer for record in self.records if record.changed]


@dataclass
class FormatResults:
    """Aggregated results for a batch of files."""

    results: list[FormatResult]
    total_files: int
    changed_files: int
    error_files: int


def _read_source(path: Path) -> str:
    # newline="" keeps line endings as they are on disk
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _write_source(path: Path, text: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)


class FormatterEngine:
    """Applies severity-gated fixers to source units.

    Attributes:
        options: Requested categories and severity thresholds.
        registry: Fixers in dispatch order.
        overrides: Configuration values layered above the editorconfig values.
        parallel: Whether to format files concurrently.
    """

    def __init__(
        self,
        options: FormatOptions,
        registry: FixerRegistry | None = None,
        overrides: Mapping[str, str] | None = None,
        store_provider: StoreProvider = load_editorconfig,
        parallel: bool = True,
        max_workers: int | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            options: Requested categories and severity thresholds.
            registry: Fixers to run. Defaults to the built-in registry.
            overrides: Extra configuration values that win over editorconfig.
            store_provider: Builds the configuration store for a file path.
            parallel: Whether to format files concurrently.
            max_workers: Thread pool size for parallel runs.
        """
        self.options = options
        self.registry = registry if registry is not None else get_global_registry()
        self.overrides = dict(overrides or {})
        self.store_provider = store_provider
        self.parallel = parallel
        self.max_workers = max_workers

    def store_for(self, path: Path) -> ConfigurationStore:
        """Configuration store for ``path`` with overrides applied."""
        return ConfigurationStore.merged(self.store_provider(path), self.overrides)

    def decide(self, fixer: BaseFixer, store: ConfigurationStore) -> FixDecision:
        """Run the fix decision engine for one fixer."""
        return decide(
            fixer,
            self.options.fix_categories,
            store,
            self.options.required_severity(fixer.category),
        )

    def explain(
        self, store: ConfigurationStore
    ) -> list[tuple[BaseFixer, FixDecision | InvalidSeverityError]]:
        """Evaluate every fixer without applying anything.

        Invalid severities are returned in place of the decision so that one
        bad key does not hide the other fixers' decisions.
        """
        explained: list[tuple[BaseFixer, FixDecision | InvalidSeverityError]] = []
        for fixer in self.registry:
            try:
                explained.append((fixer, self.decide(fixer, store)))
            except InvalidSeverityError as e:
                explained.append((fixer, e))
        return explained

    def format_document(
        self, document: SourceDocument, store: ConfigurationStore
    ) -> FormatResult:
        """Format one source unit.

        Args:
            document: Unit to format.
            store: Configuration for the unit.

        Returns:
            FormatResult with the rewritten text.

        Raises:
            InvalidSeverityError: If a governing severity key is malformed.
            SyntaxError: If a fixer cannot parse the source.
            FixerError: If a fixer's rewrite fails.
        """
        current = document
        records: list[FixRecord] = []
        for fixer in self.registry:
            decision = self.decide(fixer, store)
            record = FixRecord(fixer=fixer.name, decision=decision)
            records.append(record)
            if not decision.apply:
                continue
            rewritten = fixer.apply(current, store)
            if rewritten is not None:
                current = rewritten
                record.changed = True

        return FormatResult(
            path=document.path,
            original=document.text,
            source=current.text,
            records=records,
        )

    def format_file(self, path: Path, write: bool = True) -> FormatResult:
        """Format one file, isolating any failure to this file.

        Args:
            path: File to format.
            write: Whether to write changes back to disk.

        Returns:
            FormatResult. Failures are reported in ``errors``, never raised.
        """
        try:
            original = _read_source(path)
        except (OSError, UnicodeDecodeError) as e:
            return FormatResult(path=str(path), original="", source="", errors=[str(e)])

        try:
            store = self.store_for(path)
            result = self.format_document(SourceDocument(str(path), original), store)
        except (InvalidSeverityError, EditorConfigError, FixerError) as e:
            return FormatResult(path=str(path), original=original, source=original, errors=[str(e)])
        except SyntaxError as e:
            return FormatResult(
                path=str(path),
                original=original,
                source=original,
                errors=[f"Cannot parse {path}: {e.msg} (line {e.lineno})"],
            )

        if write and result.changed:
            try:
                _write_source(path, result.source)
                result.written = True
            except OSError as e:
                result.errors.append(f"Failed to write {path}: {e}")
        return result

    def format_files(self, paths: list[Path], write: bool = True) -> FormatResults:
        """Format a batch of files.

        Args:
            paths: Files to format.
            write: Whether to write changes back to disk.

        Returns:
            FormatResults, with results in the order of ``paths``.
        """
        if self.parallel and len(paths) > 1:
            results = self._run_parallel(paths, write)
        else:
            results = [self.format_file(path, write) for path in paths]

        return FormatResults(
            results=results,
            total_files=len(paths),
            changed_files=sum(1 for r in results if r.changed),
            error_files=sum(1 for r in results if r.errors),
        )

    def _run_parallel(self, paths: list[Path], write: bool) -> list[FormatResult]:
        """Format files using a ThreadPoolExecutor."""
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self.format_file, path, write) for path in paths]
            return [future.result() for future in futures]
