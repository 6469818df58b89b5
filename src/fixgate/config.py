"""Configuration management for the fixgate CLI tool.

Handles configuration loading from multiple sources with precedence:
CLI args > environment variables > .fixgaterc > pyproject.toml > defaults

Severity overrides for individual rules do not live here; they are read from
``.editorconfig`` files (see ``fixgate.editorconfig``).
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from fixgate.categories import FixCategory, parse_fix_categories
from fixgate.severity import InvalidSeverityError, Severity, parse_severity

# tomllib is only available in Python 3.11+
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found]

_LIST_FIELDS = ("fix_categories", "include", "exclude", "diagnostics")


@dataclass
class FixgateConfig:
    """Configuration for the fixgate CLI tool.

    Attributes:
        fix_categories: Fix categories to apply (default: whitespace, style).
        severity: Minimum severity for code-style fixes (default: "warning").
        analyzer_severity: Minimum severity for analyzer fixes (default: "warning").
        include: Glob patterns of files to format inside directories.
        exclude: Glob patterns of files to skip inside directories.
        diagnostics: Rule ids to restrict fixing to (default: all rules).
    """

    fix_categories: list[str] = field(default_factory=lambda: ["whitespace", "style"])
    severity: str = "warning"
    analyzer_severity: str = "warning"
    include: list[str] = field(default_factory=lambda: ["**/*.py"])
    exclude: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any configuration value is invalid.
        """
        for name in _LIST_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ValueError(f"{name} must be a list of strings")

        # Validate fix_categories
        if not self.fix_categories:
            raise ValueError("fix_categories must not be empty")
        parse_fix_categories(self.fix_categories)

        # Validate severities
        for name in ("severity", "analyzer_severity"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ValueError(f"{name} must be a string")
            try:
                parse_severity(value)
            except InvalidSeverityError as e:
                raise ValueError(f"{name}: {e}") from e

        # Validate include
        if not self.include:
            raise ValueError("include must not be empty")

    def fix_category_flags(self) -> FixCategory:
        """Requested categories as a FixCategory flag set."""
        return parse_fix_categories(self.fix_categories)

    def required_severity(self) -> Severity:
        """Threshold for code-style fixes."""
        return parse_severity(self.severity)

    def required_analyzer_severity(self) -> Severity:
        """Threshold for analyzer fixes."""
        return parse_severity(self.analyzer_severity)


def _get_config_field_names() -> set[str]:
    """Get the set of valid configuration field names."""
    return {f.name for f in fields(FixgateConfig)}


def find_config_file(filename: str = ".fixgaterc", start_dir: Path | None = None) -> Path | None:
    """Find a configuration file by traversing up the directory tree.

    Args:
        filename: Name of the config file to find.
        start_dir: Directory to start searching from. Defaults to current directory.

    Returns:
        Path to the config file if found, None otherwise.
    """
    current = start_dir or Path.cwd()
    current = current.resolve()

    while True:
        config_path = current / filename
        if config_path.is_file():
            return config_path

        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    with open(path, "rb") as f:
        result: dict[str, Any] = tomllib.load(f)
        return result


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Accept kebab-case keys (``fix-categories``) and keep only known fields."""
    valid_fields = _get_config_field_names()
    normalized = {k.replace("-", "_"): v for k, v in data.items()}
    return {k: v for k, v in normalized.items() if k in valid_fields}


def _load_from_fixgaterc(start_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from a .fixgaterc (TOML) file.

    Raises:
        ValueError: If the file exists but is not valid TOML.
    """
    config_path = find_config_file(".fixgaterc", start_dir)
    if config_path is None:
        return {}

    try:
        data = _load_toml_file(config_path)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"{config_path}: {e}") from e
    except OSError:
        return {}
    return _normalize_keys(data)


def _load_from_pyproject(start_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from the pyproject.toml [tool.fixgate] section.

    Raises:
        ValueError: If the file exists but is not valid TOML.
    """
    config_path = find_config_file("pyproject.toml", start_dir)
    if config_path is None:
        return {}

    try:
        data = _load_toml_file(config_path)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"{config_path}: {e}") from e
    except OSError:
        return {}
    section = data.get("tool", {}).get("fixgate", {})
    if not isinstance(section, dict):
        raise ValueError(f"{config_path}: [tool.fixgate] must be a table")
    return _normalize_keys(section)


def _split_list(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _load_from_env() -> dict[str, Any]:
    """Load configuration from environment variables.

    Environment variables are prefixed with FIXGATE_ and use uppercase names,
    for example FIXGATE_SEVERITY or FIXGATE_FIX_CATEGORIES. List values are
    comma-separated.
    """
    result: dict[str, Any] = {}
    for name in _get_config_field_names():
        value = os.environ.get(f"FIXGATE_{name.upper()}")
        if value is None:
            continue
        result[name] = _split_list(value) if name in _LIST_FIELDS else value
    return result


def _merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge configuration dictionaries. Later dictionaries take precedence."""
    result: dict[str, Any] = {}
    for config in configs:
        for key, value in config.items():
            if value is not None:
                result[key] = value
    return result


def load_config(
    cli_overrides: dict[str, Any] | None = None,
    start_dir: Path | None = None,
) -> FixgateConfig:
    """Load configuration with full precedence chain.

    Precedence (highest to lowest):
    1. CLI arguments (cli_overrides)
    2. Environment variables (FIXGATE_*)
    3. .fixgaterc file
    4. pyproject.toml [tool.fixgate] section
    5. Default values

    Args:
        cli_overrides: Configuration overrides from CLI arguments. Empty lists
            and None values are ignored.
        start_dir: Directory to start searching for config files.

    Returns:
        Fully resolved FixgateConfig instance.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    pyproject_config = _load_from_pyproject(start_dir)
    fixgaterc_config = _load_from_fixgaterc(start_dir)
    env_config = _load_from_env()

    valid_fields = _get_config_field_names()
    cli_config = {
        k: v
        for k, v in (cli_overrides or {}).items()
        if k in valid_fields and v is not None and v != []
    }

    merged = _merge_configs(
        pyproject_config,
        fixgaterc_config,
        env_config,
        cli_config,
    )

    return FixgateConfig(**merged)
