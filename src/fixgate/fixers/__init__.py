"""Fixer framework for rewriting source units.

Provides the fixer contract, the ordered registry and the built-in fixers.
"""

from __future__ import annotations

from fixgate.fixers.base import BaseFixer, FixerError
from fixgate.fixers.comparisons import LiteralComparisonFixer
from fixgate.fixers.registry import (
    FixerRegistry,
    get_global_registry,
)
from fixgate.fixers.semicolons import UselessSemicolonFixer
from fixgate.fixers.unused_imports import UnusedImportsFixer
from fixgate.fixers.whitespace import (
    EndOfLineFixer,
    FinalNewlineFixer,
    TrailingWhitespaceFixer,
)

__all__ = [
    # Base types
    "BaseFixer",
    "FixerError",
    # Registry
    "FixerRegistry",
    "get_global_registry",
    # Fixers
    "EndOfLineFixer",
    "FinalNewlineFixer",
    "LiteralComparisonFixer",
    "TrailingWhitespaceFixer",
    "UnusedImportsFixer",
    "UselessSemicolonFixer",
]
