"""Fixer for statements terminated by a useless semicolon (E703)."""

from __future__ import annotations

import io
import tokenize

from fixgate.categories import FixCategory
from fixgate.documents import (
    Diagnostic,
    DiagnosticDescriptor,
    SourceDocument,
    normalize_line_breaks,
    split_lines,
)
from fixgate.fixers.base import BaseFixer
from fixgate.options import ConfigurationStore
from fixgate.severity import Severity

USELESS_SEMICOLON = DiagnosticDescriptor(
    rule_id="E703",
    category="Style",
    default_severity=Severity.SILENT,
    title="Statement ends with a semicolon",
)

_TRAILER_TYPES = {tokenize.COMMENT, tokenize.NL}
_END_TYPES = {tokenize.NEWLINE, tokenize.ENDMARKER}


class UselessSemicolonFixer(BaseFixer):
    """Removes semicolons that end a logical line.

    ``x = 1;`` becomes ``x = 1``. Semicolons separating two statements on
    one line are left alone.
    """

    name = "useless-semicolon"
    category = FixCategory.CODE_STYLE
    descriptor = USELESS_SEMICOLON

    def analyze(
        self, document: SourceDocument, store: ConfigurationStore
    ) -> list[Diagnostic]:
        try:
            readline = io.StringIO(normalize_line_breaks(document.text)).readline
            tokens = list(tokenize.generate_tokens(readline))
        except tokenize.TokenError as e:
            raise SyntaxError(f"Cannot tokenize {document.path}: {e.args[0]}") from e

        diagnostics: list[Diagnostic] = []
        for index, token in enumerate(tokens):
            if token.type != tokenize.OP or token.string != ";":
                continue
            following = index + 1
            while following < len(tokens) and tokens[following].type in _TRAILER_TYPES:
                following += 1
            if following == len(tokens) or tokens[following].type in _END_TYPES:
                diagnostics.append(
                    Diagnostic(
                        USELESS_SEMICOLON,
                        line=token.start[0],
                        column=token.start[1],
                        message="Statement ends with a semicolon",
                    )
                )
        return diagnostics

    def fix(
        self,
        document: SourceDocument,
        diagnostics: list[Diagnostic],
        store: ConfigurationStore,
    ) -> SourceDocument | None:
        lines = split_lines(document.text)
        # Right to left keeps earlier columns valid on the same line.
        for diagnostic in sorted(diagnostics, key=lambda d: (d.line, d.column), reverse=True):
            index = diagnostic.line - 1
            line = lines[index]
            if line[diagnostic.column : diagnostic.column + 1] != ";":
                raise ValueError(
                    f"expected ';' at line {diagnostic.line}, column {diagnostic.column}"
                )
            head = line[: diagnostic.column].rstrip(" \t")
            lines[index] = head + line[diagnostic.column + 1 :]
        return document.with_text("".join(lines))
