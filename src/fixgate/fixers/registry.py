"""Fixer registry holding fixers in their declared dispatch order.

Fixers may touch overlapping text, so the order in which approved fixers run
on one source unit is fixed: it is the registration order.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from fixgate.categories import FixCategory
from fixgate.fixers.base import BaseFixer


class FixerRegistry:
    """Ordered registry of fixer instances.

    Example:
        >>> registry = FixerRegistry()
        >>> registry.register(UnusedImportsFixer())
        >>> [fixer.name for fixer in registry]
        ['unused-imports']
    """

    def __init__(self, fixers: Iterable[BaseFixer] = ()) -> None:
        """Initialize the registry, registering ``fixers`` in order."""
        self._fixers: list[BaseFixer] = []
        for fixer in fixers:
            self.register(fixer)

    def register(self, fixer: BaseFixer) -> None:
        """Append a fixer to the dispatch order.

        Args:
            fixer: Fixer instance to register.

        Raises:
            ValueError: If the fixer has no name or no category, or if a fixer
                with the same name is already registered.
        """
        if not fixer.name:
            raise ValueError(f"Fixer class {type(fixer).__name__} has no name defined")
        if fixer.category == FixCategory.NONE:
            raise ValueError(f"Fixer '{fixer.name}' has no category defined")
        if self.has_fixer(fixer.name):
            raise ValueError(f"Fixer '{fixer.name}' already registered")
        self._fixers.append(fixer)

    def get_fixer(self, name: str) -> BaseFixer | None:
        """Return the fixer registered under ``name``, or None."""
        for fixer in self._fixers:
            if fixer.name == name:
                return fixer
        return None

    def has_fixer(self, name: str) -> bool:
        """Check if a fixer is registered under ``name``."""
        return self.get_fixer(name) is not None

    def list_names(self) -> list[str]:
        """List fixer names in dispatch order."""
        return [fixer.name for fixer in self._fixers]

    def filter_rules(self, rule_ids: Iterable[str]) -> FixerRegistry:
        """Return a registry restricted to the given diagnostic rule ids.

        Fixers that are not diagnostic-driven are kept. An empty selection
        keeps every fixer.
        """
        selected = set(rule_ids)
        if not selected:
            return FixerRegistry(self._fixers)
        return FixerRegistry(
            fixer
            for fixer in self._fixers
            if fixer.rule_id is None or fixer.rule_id in selected
        )

    def __iter__(self) -> Iterator[BaseFixer]:
        return iter(list(self._fixers))

    def __len__(self) -> int:
        return len(self._fixers)


_global_registry: FixerRegistry | None = None


def get_global_registry() -> FixerRegistry:
    """Get the global fixer registry populated with the built-in fixers."""
    global _global_registry
    if _global_registry is None:
        _global_registry = _create_default_registry()
    return _global_registry


def _create_default_registry() -> FixerRegistry:
    """Create the default registry in the built-in dispatch order."""
    # Import here to avoid circular imports
    from fixgate.fixers.comparisons import LiteralComparisonFixer
    from fixgate.fixers.semicolons import UselessSemicolonFixer
    from fixgate.fixers.unused_imports import UnusedImportsFixer
    from fixgate.fixers.whitespace import (
        EndOfLineFixer,
        FinalNewlineFixer,
        TrailingWhitespaceFixer,
    )

    registry = FixerRegistry()
    registry.register(TrailingWhitespaceFixer())
    registry.register(EndOfLineFixer())
    registry.register(UselessSemicolonFixer())
    registry.register(UnusedImportsFixer())
    registry.register(LiteralComparisonFixer())
    registry.register(FinalNewlineFixer())
    return registry
