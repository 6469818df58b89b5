"""Source units and the diagnostics reported against them."""

from __future__ import annotations

import io
import re
from dataclasses import dataclass, replace

from fixgate.severity import Severity

LINE_BREAK = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> list[str]:
    """Split ``text`` into lines, each keeping its own line ending.

    ``\\n``, ``\\r\\n`` and a bare ``\\r`` all end a line, as they do for the
    Python tokenizer, so item ``n - 1`` is the line ``ast`` calls ``n``.
    """
    return io.StringIO(text, newline="").readlines()


def normalize_line_breaks(text: str) -> str:
    """Replace every line ending with ``\\n``. Line and column numbers are unchanged."""
    return LINE_BREAK.sub("\n", text)


def char_column(line: str, byte_offset: int) -> int:
    """Convert an ``ast`` UTF-8 byte offset within ``line`` to a str index."""
    return len(line.encode("utf-8")[:byte_offset].decode("utf-8", errors="ignore"))


@dataclass(frozen=True)
class DiagnosticDescriptor:
    """Identifies one fixable rule.

    Attributes:
        rule_id: Stable rule code (e.g., "F401").
        category: Diagnostic category name (e.g., "Style"). Used to build the
            category-scoped configuration key.
        default_severity: Severity the rule reports at when not configured.
            Informational only; an unconfigured rule is never fixed.
        title: Short human-readable description of the rule.
    """

    rule_id: str
    category: str
    default_severity: Severity = Severity.WARNING
    title: str = ""


@dataclass(frozen=True)
class Diagnostic:
    """A single issue found in a source unit.

    Attributes:
        descriptor: The rule that produced the diagnostic.
        line: 1-based line number.
        column: 0-based column offset.
        message: Human-readable description of the issue.
    """

    descriptor: DiagnosticDescriptor
    line: int
    column: int = 0
    message: str = ""

    @property
    def rule_id(self) -> str:
        return self.descriptor.rule_id

    @property
    def category(self) -> str:
        return self.descriptor.category


@dataclass(frozen=True)
class SourceDocument:
    """A unit of source text.

    Attributes:
        path: Path of the file the text was read from (display and config
            lookup only).
        text: Full source text.
    """

    path: str
    text: str

    def with_text(self, text: str) -> SourceDocument:
        """Return a copy of this document holding ``text``."""
        return replace(self, text=text)

    @property
    def name(self) -> str:
        """Base name of the document path."""
        return self.path.replace("\\", "/").rsplit("/", 1)[-1]
