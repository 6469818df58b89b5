"""Whitespace fixers driven by standard editorconfig properties.

These fixers are not tied to a diagnostic rule. Each one declares the
editorconfig property that enables it in ``option_keys`` and runs only when
the whitespace category is requested and that property is set.
"""

from __future__ import annotations

import io
import re
import tokenize

from fixgate.categories import FixCategory
from fixgate.documents import (
    LINE_BREAK,
    Diagnostic,
    DiagnosticDescriptor,
    SourceDocument,
    normalize_line_breaks,
)
from fixgate.fixers.base import BaseFixer
from fixgate.options import ConfigurationStore

LINE_ENDINGS = {"lf": "\n", "crlf": "\r\n", "cr": "\r"}

_TRAILING = re.compile(r"[ \t]+$")

# Report-only descriptors; whitespace fixers themselves carry no descriptor.
TRAILING_WHITESPACE = DiagnosticDescriptor("WS001", "Whitespace", title="Trailing whitespace")
END_OF_LINE = DiagnosticDescriptor("WS002", "Whitespace", title="Inconsistent line ending")
FINAL_NEWLINE = DiagnosticDescriptor("WS003", "Whitespace", title="Final newline")


def _string_interior_lines(text: str) -> set[int]:
    """Return 1-based line numbers whose line break sits inside a string.

    Trailing whitespace on those lines is part of the string value.

    Raises:
        SyntaxError: If the source cannot be tokenized.
    """
    interior: set[int] = set()
    fstring_start = getattr(tokenize, "FSTRING_START", None)
    fstring_end = getattr(tokenize, "FSTRING_END", None)
    open_fstrings: list[int] = []
    try:
        for token in tokenize.generate_tokens(io.StringIO(normalize_line_breaks(text)).readline):
            if token.type == fstring_start:
                open_fstrings.append(token.start[0])
            elif token.type == fstring_end and open_fstrings:
                start_row = open_fstrings.pop()
                interior.update(range(start_row, token.end[0]))
            elif token.type == tokenize.STRING and token.start[0] != token.end[0]:
                interior.update(range(token.start[0], token.end[0]))
    except tokenize.TokenError as e:
        raise SyntaxError(f"Cannot tokenize source: {e.args[0]}") from e
    return interior


def _split_lines(text: str) -> list[tuple[str, str]]:
    """Split text into ``(content, line_break)`` pairs."""
    lines: list[tuple[str, str]] = []
    position = 0
    for match in LINE_BREAK.finditer(text):
        lines.append((text[position : match.start()], match.group()))
        position = match.end()
    if position < len(text):
        lines.append((text[position:], ""))
    return lines


def _detect_line_ending(text: str, store: ConfigurationStore) -> str:
    """Line ending to use when adding one: configured, else first seen, else LF."""
    configured = (store.get("end_of_line") or "").strip().lower()
    if configured in LINE_ENDINGS:
        return LINE_ENDINGS[configured]
    match = LINE_BREAK.search(text)
    return match.group() if match else "\n"


class TrailingWhitespaceFixer(BaseFixer):
    """Strips spaces and tabs at the end of lines.

    Active when ``trim_trailing_whitespace = true``. Lines that end inside a
    multi-line string are left alone.
    """

    name = "trailing-whitespace"
    category = FixCategory.WHITESPACE
    option_keys = ("trim_trailing_whitespace",)

    def analyze(
        self, document: SourceDocument, store: ConfigurationStore
    ) -> list[Diagnostic]:
        if not store.get_bool("trim_trailing_whitespace"):
            return []

        protected = _string_interior_lines(document.text)
        diagnostics: list[Diagnostic] = []
        for number, (content, _) in enumerate(_split_lines(document.text), start=1):
            if number in protected:
                continue
            match = _TRAILING.search(content)
            if match:
                diagnostics.append(
                    Diagnostic(
                        TRAILING_WHITESPACE,
                        line=number,
                        column=match.start(),
                        message="Trailing whitespace",
                    )
                )
        return diagnostics

    def fix(
        self,
        document: SourceDocument,
        diagnostics: list[Diagnostic],
        store: ConfigurationStore,
    ) -> SourceDocument | None:
        targets = {d.line for d in diagnostics}
        parts: list[str] = []
        for number, (content, line_break) in enumerate(_split_lines(document.text), start=1):
            if number in targets:
                content = _TRAILING.sub("", content)
            parts.append(content + line_break)
        return document.with_text("".join(parts))


class EndOfLineFixer(BaseFixer):
    """Normalizes line endings to the ``end_of_line`` property (lf, crlf, cr)."""

    name = "end-of-line"
    category = FixCategory.WHITESPACE
    option_keys = ("end_of_line",)

    def analyze(
        self, document: SourceDocument, store: ConfigurationStore
    ) -> list[Diagnostic]:
        wanted = LINE_ENDINGS.get((store.get("end_of_line") or "").strip().lower())
        if wanted is None:
            return []

        diagnostics: list[Diagnostic] = []
        for number, (content, line_break) in enumerate(_split_lines(document.text), start=1):
            if line_break and line_break != wanted:
                diagnostics.append(
                    Diagnostic(
                        END_OF_LINE,
                        line=number,
                        column=len(content),
                        message=f"Line ending {line_break!r} should be {wanted!r}",
                    )
                )
        return diagnostics

    def fix(
        self,
        document: SourceDocument,
        diagnostics: list[Diagnostic],
        store: ConfigurationStore,
    ) -> SourceDocument | None:
        wanted = LINE_ENDINGS[(store.get("end_of_line") or "").strip().lower()]
        return document.with_text(LINE_BREAK.sub(wanted, document.text))


class FinalNewlineFixer(BaseFixer):
    """Enforces the ``insert_final_newline`` property.

    ``true`` appends a line ending to a non-empty file that lacks one;
    ``false`` removes trailing line endings.
    """

    name = "final-newline"
    category = FixCategory.WHITESPACE
    option_keys = ("insert_final_newline",)

    def analyze(
        self, document: SourceDocument, store: ConfigurationStore
    ) -> list[Diagnostic]:
        setting = store.get_bool("insert_final_newline")
        text = document.text
        if setting is None or not text:
            return []

        has_newline = text.endswith(("\n", "\r"))
        if setting == has_newline:
            return []
        line = text.count("\n") + 1
        message = "Missing final newline" if setting else "Unexpected final newline"
        return [Diagnostic(FINAL_NEWLINE, line=line, message=message)]

    def fix(
        self,
        document: SourceDocument,
        diagnostics: list[Diagnostic],
        store: ConfigurationStore,
    ) -> SourceDocument | None:
        if store.get_bool("insert_final_newline"):
            return document.with_text(
                document.text + _detect_line_ending(document.text, store)
            )
        return document.with_text(document.text.rstrip("\r\n"))
