"""Fix categories a caller can request."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Flag, auto


class FixCategory(Flag):
    """Coarse-grained class of fix. Members combine with ``|``."""

    NONE = 0
    WHITESPACE = auto()
    CODE_STYLE = auto()
    ANALYZERS = auto()


CATEGORY_NAMES: dict[str, FixCategory] = {
    "whitespace": FixCategory.WHITESPACE,
    "style": FixCategory.CODE_STYLE,
    "analyzers": FixCategory.ANALYZERS,
}


def parse_fix_categories(values: Iterable[str]) -> FixCategory:
    """Combine category names into a single flag set.

    Each value may itself be a comma-separated list, so both
    ``["whitespace", "style"]`` and ``["whitespace,style"]`` are accepted.

    Args:
        values: Category names (case-insensitive).

    Returns:
        The combined FixCategory.

    Raises:
        ValueError: If a name is not a known category.
    """
    result = FixCategory.NONE
    for value in values:
        for part in value.split(","):
            name = part.strip().lower()
            if not name:
                continue
            if name not in CATEGORY_NAMES:
                raise ValueError(
                    f"Unknown fix category '{part.strip()}' "
                    f"(expected one of: {', '.join(CATEGORY_NAMES)})"
                )
            result |= CATEGORY_NAMES[name]
    return result


def category_name(category: FixCategory) -> str:
    """Return the CLI name of a single category."""
    for name, member in CATEGORY_NAMES.items():
        if member == category:
            return name
    return str(category.name).lower()
