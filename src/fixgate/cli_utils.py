"""CLI utility functions for fixgate.

Provides helper functions for:
- Config wiring: Extracting Typer CLI options and passing to load_config
- Override parsing: Turning ``--set key=value`` options into a mapping
- Error formatting: Consistent user-friendly error messages with exit codes
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, NoReturn

import typer

from fixgate.config import FixgateConfig, load_config

# Exit code conventions
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # User error (bad input, invalid config, changes in check mode)
EXIT_SYSTEM_ERROR = 2  # System error (permissions, I/O, etc.)


# -----------------------------------------------------------------------------
# Error Formatting Helpers
# -----------------------------------------------------------------------------


def error(msg: str, *, exit_code: int = EXIT_USER_ERROR) -> NoReturn:
    """Print an error message and exit with the given exit code.

    Args:
        msg: The error message to display.
        exit_code: Exit code to use (default: EXIT_USER_ERROR=1).

    Raises:
        typer.Exit: Always raises to exit the program.
    """
    styled_prefix = typer.style("Error:", fg=typer.colors.RED, bold=True)
    typer.echo(f"{styled_prefix} {msg}", err=True)
    raise typer.Exit(code=exit_code)


def warning(msg: str) -> None:
    """Print a warning message to stderr."""
    styled_prefix = typer.style("Warning:", fg=typer.colors.YELLOW, bold=True)
    typer.echo(f"{styled_prefix} {msg}", err=True)


def success(msg: str) -> None:
    """Print a success message to stdout."""
    styled_prefix = typer.style("Success:", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"{styled_prefix} {msg}")


def info(msg: str) -> None:
    """Print an info message to stdout."""
    typer.echo(msg)


def format_error_details(errors: list[str]) -> str:
    """Format a list of error messages for display.

    Args:
        errors: List of error messages.

    Returns:
        Formatted string with bullet points.
    """
    if not errors:
        return ""
    return "\n".join(f"  - {e}" for e in errors)


# -----------------------------------------------------------------------------
# Override Parsing
# -----------------------------------------------------------------------------


def parse_overrides(values: list[str] | None) -> dict[str, str]:
    """Parse ``key=value`` strings into a configuration mapping.

    Args:
        values: Raw ``--set`` option values.

    Returns:
        Mapping of key to value. Later duplicates win.

    Raises:
        typer.Exit: If a value is not of the form ``key=value``.
    """
    overrides: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            error(f"Invalid --set value '{item}' (expected KEY=VALUE)")
        overrides[key.strip()] = value.strip()
    return overrides


# -----------------------------------------------------------------------------
# Config Wiring Helper
# -----------------------------------------------------------------------------


def wire_config(
    fix_categories: list[str] | None = None,
    severity: str | None = None,
    analyzer_severity: str | None = None,
    diagnostics: list[str] | None = None,
    start_dir: Path | None = None,
) -> FixgateConfig:
    """Wire CLI options to load_config with appropriate overrides.

    Args:
        fix_categories: Override for requested fix categories.
        severity: Override for the code-style severity threshold.
        analyzer_severity: Override for the analyzer severity threshold.
        diagnostics: Override for the rule id filter.
        start_dir: Directory to start searching for config files.

    Returns:
        Fully resolved FixgateConfig instance.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    cli_overrides: dict[str, Any] = {}

    if fix_categories:
        cli_overrides["fix_categories"] = list(fix_categories)
    if severity is not None:
        cli_overrides["severity"] = severity
    if analyzer_severity is not None:
        cli_overrides["analyzer_severity"] = analyzer_severity
    if diagnostics:
        cli_overrides["diagnostics"] = list(diagnostics)

    try:
        return load_config(cli_overrides=cli_overrides, start_dir=start_dir)
    except ValueError as e:
        error(f"Invalid configuration: {e}", exit_code=EXIT_USER_ERROR)


# -----------------------------------------------------------------------------
# Typer Option Factory Functions
# -----------------------------------------------------------------------------
# Typer consumes Option objects when decorating commands, so each command
# needs a fresh instance.


def fix_category_option() -> Any:
    """Create a Typer Option for --fix-category / -f."""
    return typer.Option(
        None,
        "--fix-category",
        "-f",
        help="Fix categories to apply: whitespace, style, analyzers (repeatable, comma-separated).",
    )


def severity_option() -> Any:
    """Create a Typer Option for --severity."""
    return typer.Option(
        None,
        "--severity",
        help="Minimum severity for style fixes: none, silent, info, warning, error.",
    )


def analyzer_severity_option() -> Any:
    """Create a Typer Option for --analyzer-severity."""
    return typer.Option(
        None,
        "--analyzer-severity",
        help="Minimum severity for analyzer fixes.",
    )


def set_option() -> Any:
    """Create a Typer Option for --set KEY=VALUE."""
    return typer.Option(
        None,
        "--set",
        help="Configuration value that overrides .editorconfig (repeatable), "
        "e.g. fixgate_diagnostic.F401.severity=warning.",
    )
