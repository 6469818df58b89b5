"""Severity-gated fix selection.

Decides, for one fixer, whether its fix must be applied given the requested
fix categories, the configuration store and the required severity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from fixgate.categories import FixCategory
from fixgate.documents import DiagnosticDescriptor
from fixgate.keys import candidate_keys
from fixgate.options import ConfigurationStore
from fixgate.severity import Severity, meets_threshold


class GatedFixer(Protocol):
    """The parts of a fixer the decision engine looks at."""

    @property
    def category(self) -> FixCategory: ...

    @property
    def descriptor(self) -> DiagnosticDescriptor | None: ...

    @property
    def option_keys(self) -> tuple[str, ...]: ...


@dataclass(frozen=True)
class FixDecision:
    """Outcome of evaluating one fixer.

    Attributes:
        apply: Whether the fixer must run.
        effective_severity: Severity that governed the decision, or None when
            no severity was involved (category not requested, not configured,
            or a fixer that is not diagnostic-driven).
        key: Configuration key the effective severity was read from, or the
            property that enabled a fixer without a descriptor.
        reason: Short explanation for reports.
    """

    apply: bool
    effective_severity: Severity | None = None
    key: str | None = None
    reason: str = ""


def resolve_effective_severity(
    descriptor: DiagnosticDescriptor,
    store: ConfigurationStore,
) -> tuple[Severity, str] | None:
    """Find the most specific configured severity for ``descriptor``.

    Returns:
        ``(severity, key)`` for the first candidate key present in the store,
        or None if no candidate key is present.

    Raises:
        InvalidSeverityError: If the first present key holds an unparsable
            value. Less specific keys are not consulted in that case.
    """
    for key in candidate_keys(descriptor):
        severity = store.get_severity(key)
        if severity is not None:
            return severity, key
    return None


def decide(
    fixer: GatedFixer,
    requested: FixCategory,
    store: ConfigurationStore,
    required: Severity,
) -> FixDecision:
    """Decide whether ``fixer`` must be applied.

    Args:
        fixer: Fixer being considered.
        requested: Fix categories requested by the caller.
        store: Configuration for the source unit being formatted.
        required: Minimum effective severity needed to apply the fix.

    Returns:
        A fresh FixDecision.

    Raises:
        InvalidSeverityError: If the governing key holds an unparsable value.
    """
    if fixer.category not in requested:
        return FixDecision(apply=False, reason="category not requested")

    descriptor = fixer.descriptor
    if descriptor is None:
        # Property-driven fixers run only when one of their properties is set.
        for key in fixer.option_keys:
            if key in store:
                return FixDecision(apply=True, key=key, reason="configured")
        return FixDecision(apply=False, reason="not configured")

    resolved = resolve_effective_severity(descriptor, store)
    if resolved is None:
        return FixDecision(apply=False, reason="severity not configured")

    severity, key = resolved
    if severity == Severity.NONE:
        return FixDecision(
            apply=False, effective_severity=severity, key=key, reason="disabled"
        )

    if meets_threshold(severity, required):
        return FixDecision(
            apply=True,
            effective_severity=severity,
            key=key,
            reason=f"{severity.label} >= {required.label}",
        )
    return FixDecision(
        apply=False,
        effective_severity=severity,
        key=key,
        reason=f"{severity.label} < {required.label}",
    )
