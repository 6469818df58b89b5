"""Configuration key naming and precedence for diagnostic severities.

Keys follow the editorconfig convention:

    fixgate_diagnostic.<RULE_ID>.severity                       (rule)
    fixgate_analyzer_diagnostic.category-<CATEGORY>.severity    (category)
    fixgate_analyzer_diagnostic.severity                        (global)

The most specific key that is present wins.
"""

from __future__ import annotations

from fixgate.documents import DiagnosticDescriptor

DIAGNOSTIC_PREFIX = "fixgate_diagnostic"
ANALYZER_DIAGNOSTIC_PREFIX = "fixgate_analyzer_diagnostic"
CATEGORY_PREFIX = "category"
SEVERITY_SUFFIX = "severity"

GLOBAL_SEVERITY_KEY = f"{ANALYZER_DIAGNOSTIC_PREFIX}.{SEVERITY_SUFFIX}"


def rule_severity_key(rule_id: str) -> str:
    """Build the rule-scoped severity key."""
    return f"{DIAGNOSTIC_PREFIX}.{rule_id}.{SEVERITY_SUFFIX}"


def category_severity_key(category: str) -> str:
    """Build the category-scoped severity key."""
    return f"{ANALYZER_DIAGNOSTIC_PREFIX}.{CATEGORY_PREFIX}-{category}.{SEVERITY_SUFFIX}"


def candidate_keys(descriptor: DiagnosticDescriptor) -> list[str]:
    """Return the keys to look up for ``descriptor``, most specific first."""
    return [
        rule_severity_key(descriptor.rule_id),
        category_severity_key(descriptor.category),
        GLOBAL_SEVERITY_KEY,
    ]
