"""Fact extraction from ES-module source text.

``FactExtractor`` is the seam the rest of the package depends on. The bundled
``RegexFactExtractor`` is a best-effort scanner: results are approximate
(no scope analysis) but sufficient for structural dependency analysis. It is
the fallback for ``TreeSitterFactExtractor`` in ``treesitter.py``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol

from ..exceptions import FileAccessError, ModgraphError, ParsingError
from ..logging_config import get_logger
from .models import (
    DEFAULT_SENTINEL,
    NAMESPACE_SENTINEL,
    Binding,
    BindingKind,
    ExportFact,
    ExportKind,
    FactKind,
    FileFacts,
    ImportFact,
    ReferenceFact,
)

logger = get_logger(__name__)


class FactExtractor(Protocol):
    """Turns one file's content into import/export facts.

    Implementations raise ``ParsingError`` for input they cannot handle;
    callers decide whether that skips the file or aborts the batch.
    """

    def extract(self, path: str, content: str) -> FileFacts: ...


_QUOTED = r"(?P<q>['\"])(?P<spec>[^'\"\n]+)(?P=q)"
# A statement starts a line or follows a semicolon on the same line
_START = r"(?:^|(?<=;))[ \t]*"

_IMPORT_FROM = re.compile(
    _START + r"import\s+(?P<type>type\s+)?(?P<clause>[\w$\s{},*]+?)\s*from\s*" + _QUOTED,
    re.MULTILINE,
)
_IMPORT_BARE = re.compile(_START + r"import\s*" + _QUOTED, re.MULTILINE)
_EXPORT_FROM = re.compile(
    _START
    + r"export\s+(?P<type>type\s+)?(?P<clause>\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s*from\s*"
    + _QUOTED,
    re.MULTILINE,
)
_EXPORT_LIST = re.compile(
    _START + r"export\s+(?P<type>type\s+)?\{(?P<names>[^}]*)\}(?!\s*from\b)", re.MULTILINE
)
_EXPORT_DECL = re.compile(
    _START
    + r"export\s+(?P<default>default\s+)?(?:declare\s+)?(?:abstract\s+)?(?:async\s+)?"
    r"(?:const\s+(?=enum\b))?"
    r"(?P<keyword>function\b\s*\*?|(?:class|const|let|var|interface|type|enum)\b)"
    r"\s*(?P<name>[\w$]+)?",
    re.MULTILINE,
)
_EXPORT_DEFAULT = re.compile(_START + r"export\s+default\b", re.MULTILINE)
_EXPORT_DEFAULT_IDENT = re.compile(
    _START + r"export\s+default\s+(?P<ident>[A-Za-z_$][\w$]*)\s*;?[ \t]*$", re.MULTILINE
)

_LEXICAL = re.compile(
    r"(?P<string>'(?:[^'\\\n]|\\.)*'|\"(?:[^\"\\\n]|\\.)*\")"
    r"|(?P<template>`(?:[^`\\]|\\.)*`)"
    r"|(?P<block>/\*.*?\*/)"
    r"|(?P<line>//[^\n]*)",
    re.DOTALL,
)
_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")

_KEYWORD_KINDS = {
    "function": ExportKind.FUNCTION,
    "class": ExportKind.CLASS,
    "const": ExportKind.VARIABLE,
    "let": ExportKind.VARIABLE,
    "var": ExportKind.VARIABLE,
    "enum": ExportKind.VARIABLE,
    "interface": ExportKind.INTERFACE,
    "type": ExportKind.TYPE,
}

# Words the declaration pattern can capture that are not binding names
_NOT_A_NAME = frozenset({"extends", "implements"})


def _line_of(content: str, offset: int) -> int:
    return content.count("\n", 0, offset) + 1


def _blank(text: str) -> str:
    """Replace everything but newlines so offsets and line numbers survive."""
    return re.sub(r"[^\n]", " ", text)


def _mask(content: str, keep_strings: bool = True) -> str:
    """Blank comments and template literal bodies in one left-to-right pass.

    Quoted strings are matched by the same pass, so comment markers inside
    them are left alone. With ``keep_strings`` unset their contents are
    blanked as well. Quotes and newlines stay in place.
    """

    def replace(match: re.Match) -> str:
        text = match.group()
        if match.lastgroup == "string" and keep_strings:
            return text
        if match.lastgroup in ("string", "template"):
            return text[0] + _blank(text[1:-1]) + text[-1]
        return _blank(text)

    return _LEXICAL.sub(replace, content)


def _specifier(match: re.Match, text: str) -> str:
    return text[match.start("spec"):match.end("spec")]


def binding_kind_for(imported: str) -> BindingKind:
    """Binding kind of a named import or re-export of ``imported``."""
    return BindingKind.DEFAULT if imported == DEFAULT_SENTINEL else BindingKind.NAMED


@dataclass
class RegexFactExtractor:
    """Regex-based ES-module fact extractor."""

    def extract(self, path: str, content: str) -> FileFacts:
        if "\x00" in content:
            raise ParsingError(path, "binary content")

        # Blanked, not removed, so offsets and line numbers stay valid. Patterns
        # run over ``code``; specifiers are read back from ``text`` at the same offsets.
        text = _mask(content)
        code = _mask(content, keep_strings=False)

        facts = FileFacts(path=path)
        declaration_spans: list[tuple[int, int]] = []

        for match in _IMPORT_FROM.finditer(code):
            declaration_spans.append(match.span())
            self._add_import(facts, match, path, text)

        for match in _IMPORT_BARE.finditer(code):
            declaration_spans.append(match.span())
            facts.references.append(
                ReferenceFact(
                    module=path,
                    specifier=_specifier(match, text),
                    kind=FactKind.IMPORT,
                    line=_line_of(text, match.start()),
                )
            )

        for match in _EXPORT_FROM.finditer(code):
            declaration_spans.append(match.span())
            self._add_reexport(facts, match, path, text)

        self._add_local_exports(facts, code, path)

        facts.identifiers = frozenset(self._identifiers(code, declaration_spans))
        facts.references.sort(key=lambda r: r.line)
        facts.imports.sort(key=lambda i: i.line)
        facts.exports.sort(key=lambda e: e.line)
        return facts

    # ── imports ──────────────────────────────────────────────────

    def _add_import(self, facts: FileFacts, match: re.Match, path: str, code: str) -> None:
        specifier = _specifier(match, code)
        line = _line_of(code, match.start())
        declaration_type_only = bool(match.group("type"))
        bindings: list[Binding] = []

        for imported, local, kind, type_only in _parse_import_clause(match.group("clause")):
            bound_name = imported if kind is BindingKind.NAMED else local
            bindings.append(Binding(name=bound_name, kind=kind))
            facts.imports.append(
                ImportFact(
                    module=path,
                    specifier=specifier,
                    name=imported,
                    binding_kind=kind,
                    local_name=local,
                    line=line,
                    type_only=declaration_type_only or type_only,
                )
            )

        facts.references.append(
            ReferenceFact(
                module=path,
                specifier=specifier,
                kind=FactKind.TYPE_ONLY if declaration_type_only else FactKind.IMPORT,
                bindings=tuple(bindings),
                line=line,
            )
        )

    # ── re-exports ───────────────────────────────────────────────

    def _add_reexport(self, facts: FileFacts, match: re.Match, path: str, code: str) -> None:
        specifier = _specifier(match, code)
        line = _line_of(code, match.start())
        type_only = bool(match.group("type"))
        clause = match.group("clause").strip()
        bindings: list[Binding] = []

        if clause.startswith("*"):
            alias = clause[1:].replace("as", "", 1).strip()
            bindings.append(Binding(name=NAMESPACE_SENTINEL, kind=BindingKind.NAMESPACE))
            facts.imports.append(
                ImportFact(
                    module=path,
                    specifier=specifier,
                    name=NAMESPACE_SENTINEL,
                    binding_kind=BindingKind.NAMESPACE,
                    local_name=alias,
                    line=line,
                    type_only=type_only,
                    reexport=True,
                )
            )
            if alias:
                facts.exports.append(ExportFact(module=path, name=alias, line=line))
        else:
            for imported, exported in _parse_export_list(clause.strip("{}")):
                kind = binding_kind_for(imported)
                bindings.append(Binding(name=imported, kind=kind))
                facts.imports.append(
                    ImportFact(
                        module=path,
                        specifier=specifier,
                        name=imported,
                        binding_kind=kind,
                        local_name=exported,
                        line=line,
                        type_only=type_only,
                        reexport=True,
                    )
                )
                facts.exports.append(
                    ExportFact(
                        module=path,
                        name=exported,
                        kind=ExportKind.TYPE if type_only else ExportKind.VARIABLE,
                        is_default=exported == DEFAULT_SENTINEL,
                        line=line,
                    )
                )

        facts.references.append(
            ReferenceFact(
                module=path,
                specifier=specifier,
                kind=FactKind.TYPE_ONLY if type_only else FactKind.EXPORT,
                bindings=tuple(bindings),
                line=line,
            )
        )

    # ── local exports ────────────────────────────────────────────

    def _add_local_exports(self, facts: FileFacts, code: str, path: str) -> None:
        default_offsets: set[int] = set()

        for match in _EXPORT_DECL.finditer(code):
            keyword = match.group("keyword").replace("*", "").strip()
            name = match.group("name")
            is_default = bool(match.group("default"))
            if name in _NOT_A_NAME:
                name = None
            if name is None and not is_default:
                continue
            if is_default:
                default_offsets.add(match.start())
            facts.exports.append(
                ExportFact(
                    module=path,
                    name=name or DEFAULT_SENTINEL,
                    kind=_KEYWORD_KINDS[keyword],
                    is_default=is_default,
                    line=_line_of(code, match.start()),
                )
            )

        named_defaults = {m.start(): m.group("ident") for m in _EXPORT_DEFAULT_IDENT.finditer(code)}
        for match in _EXPORT_DEFAULT.finditer(code):
            if match.start() in default_offsets:
                continue
            facts.exports.append(
                ExportFact(
                    module=path,
                    name=named_defaults.get(match.start(), DEFAULT_SENTINEL),
                    kind=ExportKind.VARIABLE,
                    is_default=True,
                    line=_line_of(code, match.start()),
                )
            )

        for match in _EXPORT_LIST.finditer(code):
            type_only = bool(match.group("type"))
            line = _line_of(code, match.start())
            for _local, exported in _parse_export_list(match.group("names")):
                facts.exports.append(
                    ExportFact(
                        module=path,
                        name=exported,
                        kind=ExportKind.TYPE if type_only else ExportKind.VARIABLE,
                        is_default=exported == DEFAULT_SENTINEL,
                        line=line,
                    )
                )

    # ── identifiers ──────────────────────────────────────────────

    @staticmethod
    def _identifiers(code: str, declaration_spans: Iterable[tuple[int, int]]) -> set[str]:
        chunks: list[str] = []
        cursor = 0
        for start, end in sorted(declaration_spans):
            if start < cursor:
                continue
            chunks.append(code[cursor:start])
            cursor = end
        chunks.append(code[cursor:])
        return set(_IDENTIFIER.findall("".join(chunks)))


def _split_items(text: str) -> list[str]:
    return [item.strip() for item in text.split(",") if item.strip()]


def _parse_import_clause(clause: str) -> list[tuple[str, str, BindingKind, bool]]:
    """Parse an import clause into (imported, local, kind, type_only) tuples.

    Handles ``X``, ``* as ns``, ``{a, b as c, type D}`` and combinations
    such as ``X, {a}`` or ``X, * as ns``.
    """
    result: list[tuple[str, str, BindingKind, bool]] = []
    braces: Optional[str] = None
    brace_match = re.search(r"\{([^}]*)\}", clause)
    if brace_match:
        braces = brace_match.group(1)
        clause = clause[: brace_match.start()] + clause[brace_match.end():]

    for item in _split_items(clause):
        if item.startswith("*"):
            local = item[1:].replace("as", "", 1).strip()
            result.append((NAMESPACE_SENTINEL, local, BindingKind.NAMESPACE, False))
        else:
            result.append((DEFAULT_SENTINEL, item, BindingKind.DEFAULT, False))

    if braces is not None:
        for item in _split_items(braces):
            type_only = False
            if item.startswith("type "):
                type_only = True
                item = item[len("type "):].strip()
            parts = re.split(r"\s+as\s+", item)
            imported = parts[0].strip()
            local = parts[-1].strip()
            result.append((imported, local, binding_kind_for(imported), type_only))

    return result


def _parse_export_list(names: str) -> list[tuple[str, str]]:
    """Parse ``a, b as c, type D`` into (local, exported) pairs."""
    pairs: list[tuple[str, str]] = []
    for item in _split_items(names):
        if item.startswith("type "):
            item = item[len("type "):].strip()
        parts = re.split(r"\s+as\s+", item)
        pairs.append((parts[0].strip(), parts[-1].strip()))
    return pairs


def extract_file(extractor: FactExtractor, path: str, read_file: Callable[[str], str]) -> FileFacts:
    """Read ``path`` and extract its facts.

    Raises:
        FileAccessError: If the content cannot be read
        ParsingError: If the extractor fails on the content
    """
    try:
        content = read_file(path)
    except ModgraphError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise FileAccessError(path, str(e))

    try:
        return extractor.extract(path, content)
    except ModgraphError:
        raise
    except Exception as e:
        raise ParsingError(path, f"{type(e).__name__}: {e}")


def extract_batch(
    extractor: FactExtractor,
    files: Iterable[str],
    read_file: Callable[[str], str],
    fail_fast: bool = False,
) -> tuple[dict[str, FileFacts], list[str]]:
    """Extract facts for every file.

    Returns the facts by path (in ``files`` order) and the paths that were
    skipped. With ``fail_fast`` the first failure is raised instead.
    """
    facts_by_file: dict[str, FileFacts] = {}
    skipped: list[str] = []

    for path in files:
        try:
            facts_by_file[path] = extract_file(extractor, path, read_file)
        except ModgraphError as e:
            if fail_fast:
                raise
            logger.warning("Skipping %s: %s", path, e)
            skipped.append(path)

    return facts_by_file, skipped
