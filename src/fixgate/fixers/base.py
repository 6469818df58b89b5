"""Base classes for fixgate fixers.

Provides the contract every fixer implements: report diagnostics for a
source unit and rewrite it to resolve them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from fixgate.categories import FixCategory
from fixgate.documents import Diagnostic, DiagnosticDescriptor, SourceDocument
from fixgate.options import ConfigurationStore


class FixerError(Exception):
    """Raised when a fixer fails to rewrite a source unit."""

    def __init__(self, fixer_name: str, path: str, cause: Exception) -> None:
        self.fixer_name = fixer_name
        self.path = path
        self.cause = cause
        super().__init__(f"Fixer '{fixer_name}' failed on {path}: {cause}")


class BaseFixer(ABC):
    """Abstract base class for all fixers.

    Subclasses declare a unique ``name``, exactly one ``category`` and,
    when the fixer is driven by a diagnostic rule, a ``descriptor``. Fixers
    without a descriptor list the ``option_keys`` that enable them. Whether
    a fixer runs is decided by ``fixgate.decision.decide``; the fixer only
    knows how to rewrite.

    Fixers must be idempotent: applying a fixer to its own output reports no
    diagnostics and leaves the text unchanged.
    """

    name: ClassVar[str] = ""
    category: ClassVar[FixCategory] = FixCategory.NONE
    descriptor: ClassVar[DiagnosticDescriptor | None] = None
    option_keys: ClassVar[tuple[str, ...]] = ()

    @abstractmethod
    def analyze(
        self, document: SourceDocument, store: ConfigurationStore
    ) -> list[Diagnostic]:
        """Report the issues this fixer can resolve in ``document``.

        Args:
            document: Source unit to inspect.
            store: Configuration for the source unit.

        Returns:
            Diagnostics in source order. Empty when there is nothing to fix.
        """

    @abstractmethod
    def fix(
        self,
        document: SourceDocument,
        diagnostics: list[Diagnostic],
        store: ConfigurationStore,
    ) -> SourceDocument | None:
        """Rewrite ``document`` to resolve ``diagnostics``.

        Args:
            document: Source unit to rewrite.
            diagnostics: Diagnostics previously returned by ``analyze``.
            store: Configuration for the source unit.

        Returns:
            The rewritten document, or None if nothing changed.
        """

    def apply(
        self, document: SourceDocument, store: ConfigurationStore
    ) -> SourceDocument | None:
        """Analyze and fix ``document`` in one step.

        Returns:
            The rewritten document, or None if nothing changed.

        Raises:
            SyntaxError: If the source cannot be parsed by the fixer.
            FixerError: If the rewrite itself fails.
        """
        diagnostics = self.analyze(document, store)
        if not diagnostics:
            return None
        try:
            result = self.fix(document, diagnostics, store)
        except (ValueError, IndexError, KeyError) as e:
            raise FixerError(self.name, document.path, e) from e
        if result is None or result.text == document.text:
            return None
        return result

    @property
    def rule_id(self) -> str | None:
        """Rule code of the descriptor, if the fixer is diagnostic-driven."""
        return self.descriptor.rule_id if self.descriptor else None
