"""fixgate CLI - Main entry point."""

from __future__ import annotations

import difflib
import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from fixgate import __version__
from fixgate.categories import category_name
from fixgate.cli_utils import (
    EXIT_USER_ERROR,
    analyzer_severity_option,
    error,
    fix_category_option,
    format_error_details,
    info,
    parse_overrides,
    set_option,
    severity_option,
    success,
    warning,
    wire_config,
)
from fixgate.config import FixgateConfig
from fixgate.decision import FixDecision
from fixgate.discovery import find_source_files
from fixgate.editorconfig import EditorConfigError
from fixgate.fixers.registry import get_global_registry
from fixgate.formatter import FormatOptions, FormatResult, FormatResults, FormatterEngine
from fixgate.keys import candidate_keys
from fixgate.severity import InvalidSeverityError

app = typer.Typer(
    name="fixgate",
    help="fixgate - Apply formatting fixes gated by editorconfig severities.",
    add_completion=False,
)

# Rich consoles for output
console = Console()
err_console = Console(stderr=True)


def _build_engine(
    config: FixgateConfig,
    set_values: list[str] | None,
    parallel: bool = True,
) -> FormatterEngine:
    """Create a FormatterEngine from the resolved configuration."""
    options = FormatOptions(
        fix_categories=config.fix_category_flags(),
        severity=config.required_severity(),
        analyzer_severity=config.required_analyzer_severity(),
    )
    registry = get_global_registry().filter_rules(config.diagnostics)
    return FormatterEngine(
        options,
        registry=registry,
        overrides=parse_overrides(set_values),
        parallel=parallel,
    )


def _decision_dict(fixer: str, decision: FixDecision) -> dict[str, Any]:
    return {
        "fixer": fixer,
        "apply": decision.apply,
        "severity": decision.effective_severity.label if decision.effective_severity is not None else None,
        "key": decision.key,
        "reason": decision.reason,
    }


def _describe_decision(decision: FixDecision) -> str:
    """One-line rich markup summary of a decision."""
    status = "[green]apply[/green]" if decision.apply else "[dim]skip[/dim]"
    details = decision.reason
    if decision.key:
        details = f"{details}; {decision.key}"
    return f"{status} [dim]({escape(details)})[/dim]"


# -----------------------------------------------------------------------------
# Version and Main Callbacks
# -----------------------------------------------------------------------------


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"fixgate version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """fixgate - Apply formatting fixes gated by editorconfig severities."""
    pass


# -----------------------------------------------------------------------------
# Format Command
# -----------------------------------------------------------------------------


@app.command("format")
def format_command(
    paths: list[Path] | None = typer.Argument(
        None,
        help="Files or directories to format. Defaults to the current directory.",
    ),
    fix_category: list[str] | None = fix_category_option(),
    severity: str | None = severity_option(),
    analyzer_severity: str | None = analyzer_severity_option(),
    diagnostics: list[str] | None = typer.Option(
        None,
        "--diagnostics",
        "-d",
        help="Only fix these rule ids, e.g. F401 (repeatable).",
    ),
    set_values: list[str] | None = set_option(),
    check: bool = typer.Option(
        False,
        "--check",
        help="Verify no changes are needed. Writes nothing; exits 1 if files would change.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show what would change without writing files.",
    ),
    diff: bool = typer.Option(
        False,
        "--diff",
        help="Print a unified diff for every changed file.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show every fix decision.",
    ),
    no_parallel: bool = typer.Option(
        False,
        "--no-parallel",
        help="Format files one at a time.",
    ),
) -> None:
    """Apply the requested fixes to Python source files.

    A style fix runs only when its category is requested and its rule's
    configured severity (rule, then category, then global key in
    .editorconfig) is at or above the requested severity.

    Exit codes:
      0 - Success (or no changes needed in --check mode)
      1 - A file failed, or files would change in --check mode
    """
    config = wire_config(
        fix_categories=fix_category,
        severity=severity,
        analyzer_severity=analyzer_severity,
        diagnostics=diagnostics,
    )
    engine = _build_engine(config, set_values, parallel=not no_parallel)

    try:
        files = find_source_files(paths or [Path(".")], config.include, config.exclude)
    except FileNotFoundError as e:
        error(str(e))

    write = not (check or dry_run)
    results = engine.format_files(files, write=write)
    mode = "check" if check else ("dry_run" if dry_run else "fix")

    if json_output:
        payload: dict[str, Any] = {
            "success": results.error_files == 0 and not (check and results.changed_files),
            "mode": mode,
            "total_files": results.total_files,
            "changed_files": results.changed_files,
            "error_files": results.error_files,
            "files": [
                {
                    "path": result.path,
                    "changed": result.changed,
                    "written": result.written,
                    "applied": result.applied_fixers,
                    "errors": result.errors,
                    "decisions": [_decision_dict(r.fixer, r.decision) for r in result.records],
                }
                for result in results.results
            ],
        }
        console.print_json(json.dumps(payload))
    else:
        _format_print_results(results, mode=mode, diff=diff, verbose=verbose)

    if results.error_files:
        raise typer.Exit(code=EXIT_USER_ERROR)
    if check and results.changed_files:
        raise typer.Exit(code=EXIT_USER_ERROR)


def _print_diff(result: FormatResult) -> None:
    lines = difflib.unified_diff(
        result.original.splitlines(keepends=True),
        result.source.splitlines(keepends=True),
        fromfile=f"a/{result.path}",
        tofile=f"b/{result.path}",
    )
    for line in lines:
        text = escape(line.rstrip("\r\n"))
        if line.startswith("+") and not line.startswith("+++"):
            console.print(f"[green]{text}[/green]")
        elif line.startswith("-") and not line.startswith("---"):
            console.print(f"[red]{text}[/red]")
        else:
            console.print(text)


def _format_print_results(
    results: FormatResults,
    *,
    mode: str,
    diff: bool,
    verbose: bool,
) -> None:
    """Print format command results to console.

    Args:
        results: Aggregated results.
        mode: "fix", "check" or "dry_run".
        diff: Whether to print unified diffs.
        verbose: Whether to print every fix decision.
    """
    verb = "Formatted" if mode == "fix" else "Would format"

    for result in results.results:
        path = escape(result.path)
        if result.errors:
            err_console.print(f"[red]Failed[/red] {path}")
            typer.echo(format_error_details(result.errors), err=True)
        elif result.changed:
            fixers = ", ".join(result.applied_fixers)
            console.print(f"[cyan]{verb}[/cyan] {path} [dim]({fixers})[/dim]")
        elif verbose:
            console.print(f"[dim]Unchanged[/dim] {path}")

        if verbose:
            for record in result.records:
                console.print(f"    {record.fixer}: {_describe_decision(record.decision)}")
        if diff and result.changed:
            _print_diff(result)

    total = results.total_files
    changed = results.changed_files
    failed = results.error_files

    if total == 0:
        warning("No files to format")
        return
    if failed:
        err_console.print(f"[red]Error:[/red] {failed} of {total} file(s) could not be formatted")
    if mode == "check" and changed:
        warning(f"{changed} of {total} file(s) would be reformatted")
    elif mode == "dry_run":
        info(f"{changed} of {total} file(s) would be reformatted")
    elif not failed:
        if changed:
            success(f"Formatted {changed} of {total} file(s)")
        else:
            success(f"{total} file(s) already formatted")


# -----------------------------------------------------------------------------
# Explain Command
# -----------------------------------------------------------------------------


@app.command()
def explain(
    file: Path = typer.Argument(..., help="File whose fix decisions to explain."),
    fix_category: list[str] | None = fix_category_option(),
    severity: str | None = severity_option(),
    analyzer_severity: str | None = analyzer_severity_option(),
    set_values: list[str] | None = set_option(),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Also list the configuration keys looked up for each rule.",
    ),
) -> None:
    """Show, for every fixer, whether it would run on FILE and why.

    Exit codes:
      0 - Decisions computed
      1 - File missing, or a configured severity is invalid
    """
    if not file.is_file():
        error(f"File does not exist: {file}")

    config = wire_config(
        fix_categories=fix_category,
        severity=severity,
        analyzer_severity=analyzer_severity,
    )
    engine = _build_engine(config, set_values, parallel=False)

    try:
        store = engine.store_for(file)
    except EditorConfigError as e:
        error(str(e))

    explained = engine.explain(store)
    invalid = [item for item in explained if isinstance(item[1], InvalidSeverityError)]

    if json_output:
        rows: list[dict[str, Any]] = []
        for fixer, outcome in explained:
            if isinstance(outcome, InvalidSeverityError):
                rows.append({"fixer": fixer.name, "error": str(outcome)})
            else:
                rows.append(_decision_dict(fixer.name, outcome))
        console.print_json(json.dumps({"file": str(file), "success": not invalid, "decisions": rows}))
    else:
        table = Table(title=f"Fix decisions for {file}")
        table.add_column("Fixer", style="cyan")
        table.add_column("Category")
        table.add_column("Rule")
        table.add_column("Decision")
        table.add_column("Severity")
        table.add_column("Key")
        table.add_column("Reason")

        for fixer, outcome in explained:
            rule = fixer.rule_id or "-"
            if isinstance(outcome, InvalidSeverityError):
                table.add_row(
                    fixer.name, category_name(fixer.category), rule,
                    "[red]invalid[/red]", "-", escape(outcome.key or "-"), escape(str(outcome)),
                )
                continue
            decision = "[green]apply[/green]" if outcome.apply else "[dim]skip[/dim]"
            level = outcome.effective_severity.label if outcome.effective_severity is not None else "-"
            table.add_row(
                fixer.name, category_name(fixer.category), rule,
                decision, level, escape(outcome.key or "-"), escape(outcome.reason),
            )
        console.print(table)

        if verbose:
            for fixer, _ in explained:
                if fixer.descriptor is None:
                    continue
                keys = " > ".join(candidate_keys(fixer.descriptor))
                console.print(f"[bold]{fixer.descriptor.rule_id}[/bold]: {escape(keys)}")

    if invalid:
        raise typer.Exit(code=EXIT_USER_ERROR)


# -----------------------------------------------------------------------------
# List-Fixers Command
# -----------------------------------------------------------------------------


@app.command("list-fixers")
def list_fixers(
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON.",
    ),
) -> None:
    """List registered fixers in the order they are applied."""
    registry = get_global_registry()

    rows: list[dict[str, Any]] = []
    for position, fixer in enumerate(registry, start=1):
        descriptor = fixer.descriptor
        rows.append(
            {
                "order": position,
                "name": fixer.name,
                "category": category_name(fixer.category),
                "rule_id": descriptor.rule_id if descriptor else None,
                "diagnostic_category": descriptor.category if descriptor else None,
                "default_severity": descriptor.default_severity.label if descriptor else None,
                "title": descriptor.title if descriptor else "",
            }
        )

    if json_output:
        console.print_json(json.dumps({"fixers": rows}))
        return

    table = Table(title="Registered fixers")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Rule")
    table.add_column("Diagnostic category")
    table.add_column("Default severity")
    for row in rows:
        table.add_row(
            str(row["order"]),
            row["name"],
            row["category"],
            row["rule_id"] or "-",
            row["diagnostic_category"] or "-",
            row["default_severity"] or "-",
        )
    console.print(table)


if __name__ == "__main__":
    app()
