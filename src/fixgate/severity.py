"""Severity levels used to gate automated fixes.

Severities form a total order ``none < silent/info < warning < error``.
``silent`` and ``info`` are two spellings of the same level and parse to the
same member.
"""

from __future__ import annotations

from enum import IntEnum


class InvalidSeverityError(ValueError):
    """Raised when a configuration value is not a recognized severity token."""

    def __init__(self, value: str, key: str | None = None) -> None:
        self.value = value
        self.key = key
        if key is None:
            message = f"Invalid severity {value!r}"
        else:
            message = f"Invalid severity {value!r} for key '{key}'"
        super().__init__(
            f"{message} (expected one of: {', '.join(SEVERITY_TOKENS)})"
        )


class Severity(IntEnum):
    """Ordered severity scale.

    Attributes:
        NONE: Disabled. Never triggers a fix.
        SILENT: Lowest active level. ``INFO`` is an alias with the same rank.
        WARNING: Warning level.
        ERROR: Error level.
    """

    NONE = 0
    SILENT = 1
    INFO = 1
    WARNING = 2
    ERROR = 3

    @property
    def label(self) -> str:
        """Canonical lowercase token for this level."""
        return self.name.lower()


SEVERITY_TOKENS: dict[str, Severity] = {
    "none": Severity.NONE,
    "silent": Severity.SILENT,
    "info": Severity.INFO,
    "warning": Severity.WARNING,
    "error": Severity.ERROR,
}


def parse_severity(raw: str, key: str | None = None) -> Severity:
    """Parse a raw configuration token into a Severity.

    Matching is case-insensitive and ignores surrounding whitespace.
    Unknown tokens, including the empty string, are never defaulted.

    Args:
        raw: Raw configuration value.
        key: Configuration key the value came from, used in the error message.

    Returns:
        The parsed Severity.

    Raises:
        InvalidSeverityError: If the token is not recognized.
    """
    severity = SEVERITY_TOKENS.get(raw.strip().lower())
    if severity is None:
        raise InvalidSeverityError(raw, key)
    return severity


def compare_severity(a: Severity, b: Severity) -> int:
    """Compare two severities.

    Returns:
        -1 if ``a`` ranks below ``b``, 0 if they rank equal, 1 otherwise.
    """
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def meets_threshold(actual: Severity, required: Severity) -> bool:
    """Return True when ``actual`` is at or above ``required``."""
    return compare_severity(actual, required) >= 0
