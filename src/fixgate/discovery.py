"""Source file discovery.

Expands the paths given on the command line into the list of files to
format, filtering out directories that should never be touched.
"""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatch
from pathlib import Path

# Directories never descended into
IGNORED_DIRS = frozenset(
    {
        ".venv",
        "venv",
        "node_modules",
        "__pycache__",
        ".git",
        ".hg",
        "dist",
        "build",
        ".tox",
        ".nox",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        "site-packages",
    }
)


def _matches_any(rel_path: str, patterns: Iterable[str]) -> bool:
    """Check a POSIX relative path against glob patterns.

    ``**/`` prefixes also match files at the top level, so ``**/*.py``
    matches ``setup.py``.
    """
    for pattern in patterns:
        if fnmatch(rel_path, pattern):
            return True
        if pattern.startswith("**/") and fnmatch(rel_path, pattern[3:]):
            return True
    return False


def _should_skip_path(rel_path: Path, exclude: Iterable[str]) -> bool:
    """Check if a path relative to the search root should be skipped.

    Args:
        rel_path: Path relative to the directory being searched.
        exclude: Extra glob patterns to exclude.

    Returns:
        True if the path should be skipped.
    """
    if set(rel_path.parts) & IGNORED_DIRS:
        return True
    return _matches_any(rel_path.as_posix(), exclude)


def find_source_files(
    paths: Iterable[Path],
    include: Iterable[str] = ("**/*.py",),
    exclude: Iterable[str] = (),
) -> list[Path]:
    """Find the files to format.

    Files given explicitly are always included. Directories are searched
    recursively for files matching ``include`` and not matching ``exclude``.

    Args:
        paths: Files and directories to search.
        include: Glob patterns (relative to each directory) to include.
        exclude: Glob patterns (relative to each directory) to exclude.

    Returns:
        De-duplicated list of files in argument order. Matches inside a
        directory are sorted.

    Raises:
        FileNotFoundError: If a given path does not exist.
    """
    include = list(include)
    exclude = list(exclude)
    found: list[Path] = []
    seen: set[Path] = set()

    for path in paths:
        if not path.exists():
            raise FileNotFoundError(f"Path does not exist: {path}")

        if path.is_file():
            candidates = [path]
        else:
            candidates = []
            for candidate in sorted(path.rglob("*")):
                if not candidate.is_file():
                    continue
                rel_path = candidate.relative_to(path)
                if _should_skip_path(rel_path, exclude):
                    continue
                if _matches_any(rel_path.as_posix(), include):
                    candidates.append(candidate)

        for candidate in candidates:
            resolved = candidate.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            found.append(candidate)

    return found
