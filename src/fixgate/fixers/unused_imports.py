"""Fixer for unused imports (F401).

Finds imported names that are never referenced in the module and removes
them. Statements where only some names are unused are rewritten with the
remaining names.
"""

from __future__ import annotations

import ast
import re
from collections.abc import Iterator
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

UNUSED_IMPORT = DiagnosticDescriptor(
    rule_id="F401",
    category="Style",
    default_severity=Severity.WARNING,
    title="Imported name is never used",
)

_NOQA = re.compile(r"#\s*noqa(?::\s*(?P<codes>[A-Z0-9]+(?:[,\s]+[A-Z0-9]+)*))?", re.IGNORECASE)

ImportNode = ast.Import | ast.ImportFrom


@dataclass
class _UnusedImport:
    """An import statement with at least one unused name."""

    node: ImportNode
    unused: list[ast.alias]
    siblings: list[ast.stmt]

    @property
    def removes_all(self) -> bool:
        return len(self.unused) == len(self.node.names)


def _bound_name(node: ImportNode, alias: ast.alias) -> str:
    """Name an import alias binds in the importing namespace."""
    if alias.asname:
        return alias.asname
    if isinstance(node, ast.Import):
        return alias.name.split(".")[0]
    return alias.name


def _is_explicit_reexport(alias: ast.alias) -> bool:
    # ``import x as x`` / ``from m import y as y``
    return alias.asname is not None and alias.asname == alias.name.rsplit(".", 1)[-1]


def _annotation_names(value: str) -> set[str]:
    """Names referenced by a string annotation such as ``"Path | None"``."""
    try:
        expression = ast.parse(value, mode="eval")
    except SyntaxError:
        return set()
    return {node.id for node in ast.walk(expression) if isinstance(node, ast.Name)}


def _string_annotations(tree: ast.AST) -> Iterator[str]:
    for node in ast.walk(tree):
        annotations: list[ast.expr | None] = []
        if isinstance(node, ast.arg):
            annotations.append(node.annotation)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            annotations.append(node.returns)
        elif isinstance(node, ast.AnnAssign):
            annotations.append(node.annotation)
        for annotation in annotations:
            if annotation is None:
                continue
            for inner in ast.walk(annotation):
                if isinstance(inner, ast.Constant) and isinstance(inner.value, str):
                    yield inner.value


def _dunder_all_names(tree: ast.Module) -> set[str]:
    names: set[str] = set()
    for node in tree.body:
        if isinstance(node, ast.Assign):
            targets = node.targets
        elif isinstance(node, (ast.AugAssign, ast.AnnAssign)):
            targets = [node.target]
        else:
            continue
        if not any(isinstance(t, ast.Name) and t.id == "__all__" for t in targets):
            continue
        if isinstance(node.value, (ast.List, ast.Tuple)):
            for element in node.value.elts:
                if isinstance(element, ast.Constant) and isinstance(element.value, str):
                    names.add(element.value)
    return names


def _used_names(tree: ast.Module) -> set[str]:
    used = {
        node.id
        for node in ast.walk(tree)
        if isinstance(node, ast.Name) and not isinstance(node.ctx, ast.Store)
    }
    for annotation in _string_annotations(tree):
        used |= _annotation_names(annotation)
    used |= _dunder_all_names(tree)
    return used


def _statement_siblings(tree: ast.Module) -> dict[int, list[ast.stmt]]:
    """Map ``id(statement)`` to the statement list that contains it."""
    siblings: dict[int, list[ast.stmt]] = {}
    for node in ast.walk(tree):
        for _, value in ast.iter_fields(node):
            if isinstance(value, list) and value and all(isinstance(v, ast.stmt) for v in value):
                for statement in value:
                    siblings[id(statement)] = value
    return siblings


def _is_suppressed(lines: list[str], node: ImportNode) -> bool:
    end = node.end_lineno or node.lineno
    for line in lines[node.lineno - 1 : end]:
        match = _NOQA.search(line)
        if match is None:
            continue
        codes = match.group("codes")
        if codes is None or UNUSED_IMPORT.rule_id in re.split(r"[,\s]+", codes.upper()):
            return True
    return False


def _find_unused(tree: ast.Module, lines: list[str]) -> list[_UnusedImport]:
    used = _used_names(tree)
    siblings = _statement_siblings(tree)
    found: list[_UnusedImport] = []
    for node in ast.walk(tree):
        if not isinstance(node, (ast.Import, ast.ImportFrom)):
            continue
        if isinstance(node, ast.ImportFrom) and node.module == "__future__":
            continue
        if _is_suppressed(lines, node):
            continue
        unused = [
            alias
            for alias in node.names
            if alias.name != "*"
            and not _is_explicit_reexport(alias)
            and _bound_name(node, alias) not in used
        ]
        if unused:
            found.append(_UnusedImport(node, unused, siblings.get(id(node), [])))
    return sorted(found, key=lambda u: (u.node.lineno, u.node.col_offset))


def _shares_line(lines: list[str], node: ImportNode) -> bool:
    """True when another statement sits on the same physical line."""
    end_lineno = node.end_lineno or node.lineno
    first, last = lines[node.lineno - 1], lines[end_lineno - 1]
    end_col = len(last) if node.end_col_offset is None else char_column(last, node.end_col_offset)
    before = first[: char_column(first, node.col_offset)]
    after = last[end_col:].strip()
    return bool(before.strip()) or (bool(after) and not after.startswith("#"))


def _is_blank(line: str) -> bool:
    return not line.strip()


class UnusedImportsFixer(BaseFixer):
    """Removes imports whose names are never used.

    ``__future__`` imports, star imports, explicit re-exports
    (``import x as x``), names listed in ``__all__`` and lines marked
    ``# noqa`` / ``# noqa: F401`` are never reported. ``__init__.py`` files
    are skipped entirely since their imports usually form the package API.
    """

    name = "unused-imports"
    category = FixCategory.CODE_STYLE
    descriptor = UNUSED_IMPORT

    def analyze(
        self, document: SourceDocument, store: ConfigurationStore
    ) -> list[Diagnostic]:
        if document.name == "__init__.py":
            return []

        tree = ast.parse(normalize_line_breaks(document.text), filename=document.path)
        lines = split_lines(document.text)
        diagnostics: list[Diagnostic] = []
        for entry in _find_unused(tree, lines):
            for alias in entry.unused:
                diagnostics.append(
                    Diagnostic(
                        UNUSED_IMPORT,
                        line=entry.node.lineno,
                        column=entry.node.col_offset,
                        message=f"'{alias.name}' imported but unused",
                    )
                )
        return diagnostics

    def fix(
        self,
        document: SourceDocument,
        diagnostics: list[Diagnostic],
        store: ConfigurationStore,
    ) -> SourceDocument | None:
        tree = ast.parse(normalize_line_breaks(document.text), filename=document.path)
        lines = split_lines(document.text)
        reported = {d.line for d in diagnostics}
        entries = [
            entry
            for entry in _find_unused(tree, lines)
            if entry.node.lineno in reported and not _shares_line(lines, entry.node)
        ]
        if not entries:
            return None

        # A block must keep at least one statement; a module may be empty.
        removed = {id(entry.node) for entry in entries if entry.removes_all}
        keep_as_pass: set[int] = set()
        for entry in entries:
            if entry.siblings is tree.body:
                continue
            if id(entry.node) in removed and all(id(s) in removed for s in entry.siblings):
                keep_as_pass.add(id(entry.siblings[0]))

        for entry in sorted(entries, key=lambda e: e.node.lineno, reverse=True):
            node = entry.node
            start = node.lineno - 1
            end = node.end_lineno or node.lineno
            indent = lines[start][: char_column(lines[start], node.col_offset)]
            last = lines[end - 1]
            line_break = last[len(last.rstrip("\r\n")) :]

            if id(node) in keep_as_pass:
                lines[start:end] = [f"{indent}pass{line_break}"]
            elif entry.removes_all:
                del lines[start:end]
                self._collapse_blank_lines(lines, start)
            else:
                kept = [alias for alias in node.names if alias not in entry.unused]
                replacement: ImportNode
                if isinstance(node, ast.ImportFrom):
                    replacement = ast.ImportFrom(module=node.module, names=kept, level=node.level)
                else:
                    replacement = ast.Import(names=kept)
                end_col = char_column(last, node.end_col_offset or 0)
                trailer = last[end_col:].rstrip("\r\n")
                lines[start:end] = [f"{indent}{ast.unparse(replacement)}{trailer}{line_break}"]

        return document.with_text("".join(lines))

    @staticmethod
    def _collapse_blank_lines(lines: list[str], index: int) -> None:
        """Tidy blank lines left where a statement was deleted at ``index``."""
        if all(_is_blank(line) for line in lines[:index]):
            while index < len(lines) and _is_blank(lines[index]):
                del lines[index]
            return
        if (
            0 < index < len(lines)
            and _is_blank(lines[index - 1])
            and _is_blank(lines[index])
        ):
            del lines[index]
