"""Fixer for identity comparisons against literals (F632).

``x is 1`` and ``name is "main"`` compare object identity, which for numbers
and strings depends on interpreter caching. The fix rewrites ``is`` to ``==``
and ``is not`` to ``!=``. Comparisons with ``None``, ``True``, ``False`` and
``...`` are singletons and are left alone.
"""

from __future__ import annotations

import ast
import io
import itertools
import tokenize
from dataclasses import dataclass

from fixgate.categories import FixCategory
from fixgate.documents import (
    Diagnostic,
    DiagnosticDescriptor,
    SourceDocument,
    char_column,
    normalize_line_breaks,
    split_lines,
)
from fixgate.fixers.base import BaseFixer
from fixgate.options import ConfigurationStore
from fixgate.severity import Severity

LITERAL_COMPARISON = DiagnosticDescriptor(
    rule_id="F632",
    category="Correctness",
    default_severity=Severity.WARNING,
    title="Use ==/!= to compare with a literal",
)

_LITERAL_TYPES = (str, bytes, int, float, complex)

Position = tuple[int, int]


def _is_literal(node: ast.expr) -> bool:
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.USub, ast.UAdd)):
        return _is_literal(node.operand)
    if isinstance(node, ast.JoinedStr):
        return True
    return (
        isinstance(node, ast.Constant)
        and isinstance(node.value, _LITERAL_TYPES)
        and not isinstance(node.value, bool)
    )


@dataclass(frozen=True)
class _Comparison:
    left: ast.expr
    right: ast.expr
    negated: bool


@dataclass(frozen=True)
class _Operator:
    """Source span of one ``is`` / ``is not`` operator (1-based rows, str columns)."""

    start: Position
    end: Position
    negated: bool

    @property
    def replacement(self) -> str:
        return "!=" if self.negated else "=="


class _IdentityComparisons(ast.NodeVisitor):
    """Collects ``is`` / ``is not`` operations that have a literal operand."""

    def __init__(self) -> None:
        self.found: list[_Comparison] = []

    def visit_Compare(self, node: ast.Compare) -> None:
        left = node.left
        for op, right in zip(node.ops, node.comparators):
            if isinstance(op, (ast.Is, ast.IsNot)) and (_is_literal(left) or _is_literal(right)):
                self.found.append(_Comparison(left, right, isinstance(op, ast.IsNot)))
            left = right
        self.generic_visit(node)


def _keyword_tokens(text: str) -> list[tokenize.TokenInfo]:
    """``is`` and ``not`` NAME tokens of ``text`` in source order."""
    try:
        tokens = list(tokenize.generate_tokens(io.StringIO(text).readline))
    except tokenize.TokenError as e:
        raise SyntaxError(f"Cannot tokenize source: {e.args[0]}") from e
    return [t for t in tokens if t.type == tokenize.NAME and t.string in ("is", "not")]


def _start(lines: list[str], node: ast.expr) -> Position:
    return node.lineno, char_column(lines[node.lineno - 1], node.col_offset)


def _end(lines: list[str], node: ast.expr) -> Position:
    row = node.end_lineno or node.lineno
    return row, char_column(lines[row - 1], node.end_col_offset or 0)


def _find_operators(document: SourceDocument) -> list[_Operator]:
    """Locate every identity operator with a literal operand.

    Raises:
        SyntaxError: If the source cannot be parsed.
    """
    text = normalize_line_breaks(document.text)
    tree = ast.parse(text, filename=document.path)
    visitor = _IdentityComparisons()
    visitor.visit(tree)
    if not visitor.found:
        return []

    lines = split_lines(text)
    keywords = _keyword_tokens(text)
    operators: list[_Operator] = []
    for comparison in visitor.found:
        after, before = _end(lines, comparison.left), _start(lines, comparison.right)
        for index, token in enumerate(keywords):
            if token.string != "is" or token.start < after or token.end > before:
                continue
            end = keywords[index + 1].end if comparison.negated else token.end
            operators.append(_Operator(token.start, end, comparison.negated))
            break
    return sorted(operators, key=lambda o: o.start)


class LiteralComparisonFixer(BaseFixer):
    """Replaces ``is`` / ``is not`` with ``==`` / ``!=`` when an operand is a literal."""

    name = "literal-comparison"
    category = FixCategory.ANALYZERS
    descriptor = LITERAL_COMPARISON

    def analyze(
        self, document: SourceDocument, store: ConfigurationStore
    ) -> list[Diagnostic]:
        return [
            Diagnostic(
                LITERAL_COMPARISON,
                line=operator.start[0],
                column=operator.start[1],
                message=f"Use {operator.replacement} to compare with a literal",
            )
            for operator in _find_operators(document)
        ]

    def fix(
        self,
        document: SourceDocument,
        diagnostics: list[Diagnostic],
        store: ConfigurationStore,
    ) -> SourceDocument | None:
        reported = {(d.line, d.column) for d in diagnostics}
        operators = [op for op in _find_operators(document) if op.start in reported]
        if not operators:
            return None

        # Absolute offset of each line start; columns match the original text.
        lengths = (len(line) for line in split_lines(document.text))
        offsets = list(itertools.accumulate(lengths, initial=0))
        text = document.text
        for operator in reversed(operators):
            start = offsets[operator.start[0] - 1] + operator.start[1]
            end = offsets[operator.end[0] - 1] + operator.end[1]
            text = text[:start] + operator.replacement + text[end:]
        return document.with_text(text)
