"""Editorconfig reader producing the flat configuration store for a file.

Collects ``.editorconfig`` files from the file's directory upward until one
declares ``root = true``, then applies matching sections from the outermost
file to the innermost. Later matches win.

Keys and values keep their case so that rule-scoped keys such as
``fixgate_diagnostic.F401.severity`` match exactly.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from fixgate.options import ConfigurationStore

EDITORCONFIG_NAME = ".editorconfig"

_SECTION = re.compile(r"^\[(?P<glob>.+)\]$")
_PROPERTY = re.compile(r"^(?P<key>[^=:]+?)\s*[=:]\s*(?P<value>.*)$")
_NUMERIC_RANGE = re.compile(r"^(?P<low>[+-]?\d+)\.\.(?P<high>[+-]?\d+)$")


class EditorConfigError(ValueError):
    """Raised when an editorconfig file cannot be parsed."""

    def __init__(self, message: str, path: Path | None = None, line: int | None = None) -> None:
        self.path = path
        self.line = line
        location = ""
        if path is not None:
            location = f"{path}:{line}: " if line is not None else f"{path}: "
        super().__init__(f"{location}{message}")


@dataclass
class Section:
    """One ``[glob]`` section and its properties, in file order."""

    glob: str
    properties: dict[str, str] = field(default_factory=dict)
    _pattern: re.Pattern[str] | None = field(default=None, repr=False, compare=False)
    _ranges: list[tuple[int, int]] = field(default_factory=list, repr=False, compare=False)

    def matches(self, rel_path: str) -> bool:
        """Check whether a POSIX path relative to the config directory matches."""
        if self._pattern is None:
            self._pattern, self._ranges = compile_glob(self.glob)
        match = self._pattern.fullmatch(rel_path)
        if match is None:
            return False
        for index, (low, high) in enumerate(self._ranges):
            if not low <= int(match.group(f"n{index}")) <= high:
                return False
        return True


@dataclass
class EditorConfigFile:
    """Parsed contents of a single ``.editorconfig`` file."""

    root: bool = False
    sections: list[Section] = field(default_factory=list)


def _find_closing(text: str, start: int, opening: str, closing: str) -> int:
    """Index of the bracket closing the one at ``start``, or -1."""
    depth = 0
    index = start
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return -1


def _split_alternatives(text: str) -> list[str]:
    """Split brace content on commas that are not nested or escaped."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\" and index + 1 < len(text):
            current.append(text[index : index + 2])
            index += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current))
            current = []
            index += 1
            continue
        current.append(char)
        index += 1
    parts.append("".join(current))
    return parts


def _convert(glob: str, ranges: list[tuple[int, int]]) -> str:
    out: list[str] = []
    index = 0
    while index < len(glob):
        char = glob[index]
        if char == "\\" and index + 1 < len(glob):
            out.append(re.escape(glob[index + 1]))
            index += 2
        elif char == "*":
            if glob.startswith("**", index):
                out.append(".*")
                index += 2
            else:
                out.append("[^/]*")
                index += 1
        elif char == "?":
            out.append("[^/]")
            index += 1
        elif char == "[":
            end = glob.find("]", index + 1)
            content = glob[index + 1 : end] if end != -1 else ""
            if end == -1 or "/" in content or not content:
                out.append(re.escape(char))
                index += 1
                continue
            if content.startswith("!"):
                content = "^" + content[1:]
            out.append(f"[{content}]")
            index = end + 1
        elif char == "{":
            end = _find_closing(glob, index, "{", "}")
            if end == -1:
                out.append(re.escape(char))
                index += 1
                continue
            content = glob[index + 1 : end]
            numeric = _NUMERIC_RANGE.match(content)
            alternatives = _split_alternatives(content)
            if numeric:
                low, high = int(numeric.group("low")), int(numeric.group("high"))
                out.append(f"(?P<n{len(ranges)}>[+-]?\\d+)")
                ranges.append((min(low, high), max(low, high)))
            elif len(alternatives) > 1:
                out.append("(?:" + "|".join(_convert(a, ranges) for a in alternatives) + ")")
            else:
                out.append(re.escape("{") + _convert(content, ranges) + re.escape("}"))
            index = end + 1
        else:
            out.append(re.escape(char))
            index += 1
    return "".join(out)


def compile_glob(glob: str) -> tuple[re.Pattern[str], list[tuple[int, int]]]:
    """Compile an editorconfig section glob.

    A glob without ``/`` matches the file name at any depth; a glob with
    ``/`` is anchored at the directory holding the ``.editorconfig`` file.

    Returns:
        The compiled pattern and the numeric ``{n1..n2}`` ranges, in the
        order of the ``n<i>`` groups.
    """
    ranges: list[tuple[int, int]] = []
    if "/" in glob:
        body = _convert(glob[1:] if glob.startswith("/") else glob, ranges)
        return re.compile(body), ranges
    return re.compile("(?:.*/)?" + _convert(glob, ranges)), ranges


def parse_editorconfig(text: str, path: Path | None = None) -> EditorConfigFile:
    """Parse editorconfig text.

    Args:
        text: File contents.
        path: Source path, used in error messages.

    Returns:
        The parsed file. Properties before the first section are only
        consulted for ``root``.

    Raises:
        EditorConfigError: If a line is neither a comment, a section header
            nor a ``key = value`` pair.
    """
    result = EditorConfigFile()
    current: Section | None = None
    for number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith(("#", ";")):
            continue

        section = _SECTION.match(line)
        if section:
            current = Section(section.group("glob"))
            result.sections.append(current)
            continue

        prop = _PROPERTY.match(line)
        if prop is None:
            raise EditorConfigError(f"Invalid line: {raw_line!r}", path, number)

        key, value = prop.group("key").strip(), prop.group("value").strip()
        if current is None:
            if key.lower() == "root":
                result.root = value.lower() == "true"
            continue
        current.properties[key] = value
    return result


@lru_cache(maxsize=256)
def _read_editorconfig(path: str, mtime_ns: int, size: int) -> EditorConfigFile:
    # Keyed on mtime and size; an edited file gets a new entry
    config_path = Path(path)
    return parse_editorconfig(config_path.read_text(encoding="utf-8"), config_path)


def _parse_cached(config_path: Path) -> EditorConfigFile:
    stat = config_path.stat()
    return _read_editorconfig(str(config_path), stat.st_mtime_ns, stat.st_size)


def find_editorconfig_files(file_path: Path) -> list[Path]:
    """Return the ``.editorconfig`` files that apply, outermost first."""
    found: list[Path] = []
    current = file_path.resolve().parent
    while True:
        candidate = current / EDITORCONFIG_NAME
        if candidate.is_file():
            found.append(candidate)
            parsed = _parse_cached(candidate)
            if parsed.root:
                break
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            break
        current = parent
    return list(reversed(found))


def load_editorconfig(file_path: Path) -> ConfigurationStore:
    """Build the configuration store that applies to ``file_path``.

    Raises:
        EditorConfigError: If an applicable ``.editorconfig`` is malformed.
        OSError: If an ``.editorconfig`` cannot be read.
    """
    resolved = file_path.resolve()
    values: dict[str, str] = {}
    for config_path in find_editorconfig_files(resolved):
        parsed = _parse_cached(config_path)
        rel_path = resolved.relative_to(config_path.parent).as_posix()
        for section in parsed.sections:
            if section.matches(rel_path):
                values.update(section.properties)
    return ConfigurationStore(values)
