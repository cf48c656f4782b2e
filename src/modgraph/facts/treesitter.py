"""Tree-sitter fact extraction.

Parses TypeScript, TSX and JavaScript with the tree-sitter grammars and walks
the top-level statements of the syntax tree. Files the grammars cannot
handle (unsupported extension, syntax errors, encoding errors) go to the
regex fallback.

Handles a missing tree-sitter dependency gracefully:

    if TREE_SITTER_AVAILABLE:
        extractor = TreeSitterFactExtractor()
"""

from __future__ import annotations

from typing import Any, Optional

from ..exceptions import ParsingError
from ..logging_config import get_logger
from .extractor import RegexFactExtractor, binding_kind_for
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

TREE_SITTER_AVAILABLE = False
_tree_sitter_module: Any = None
_language_modules: dict[str, Any] = {}

try:
    import tree_sitter as _tree_sitter_module  # type: ignore[no-redef]

    TREE_SITTER_AVAILABLE = True

    try:
        import tree_sitter_typescript

        _language_modules["typescript"] = tree_sitter_typescript
        # TSX ships in the same package
        _language_modules["tsx"] = tree_sitter_typescript
    except ImportError:
        pass

    try:
        import tree_sitter_javascript

        _language_modules["javascript"] = tree_sitter_javascript
    except ImportError:
        pass

except ImportError:
    TREE_SITTER_AVAILABLE = False


_LANGUAGE_BY_EXTENSION = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}

_DECLARATION_KINDS = {
    "function_declaration": ExportKind.FUNCTION,
    "generator_function_declaration": ExportKind.FUNCTION,
    "function_signature": ExportKind.FUNCTION,
    "function_expression": ExportKind.FUNCTION,
    "function": ExportKind.FUNCTION,
    "generator_function": ExportKind.FUNCTION,
    "class_declaration": ExportKind.CLASS,
    "abstract_class_declaration": ExportKind.CLASS,
    "class": ExportKind.CLASS,
    "lexical_declaration": ExportKind.VARIABLE,
    "variable_declaration": ExportKind.VARIABLE,
    "enum_declaration": ExportKind.VARIABLE,
    "interface_declaration": ExportKind.INTERFACE,
    "type_alias_declaration": ExportKind.TYPE,
}

_IDENTIFIER_NODES = frozenset(
    {
        "identifier",
        "property_identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
        "type_identifier",
    }
)


def get_supported_languages() -> list[str]:
    """Languages with an installed grammar."""
    if not TREE_SITTER_AVAILABLE:
        return []
    return list(_language_modules.keys())


def language_for(path: str) -> Optional[str]:
    lower = path.lower()
    for extension, language in _LANGUAGE_BY_EXTENSION.items():
        if lower.endswith(extension):
            return language
    return None


def _text(node: Any) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _unquote(node: Any) -> str:
    text = _text(node)
    if node is not None and node.type == "string":
        return text[1:-1]
    return text


def _line(node: Any) -> int:
    return node.start_point[0] + 1


def _has_token(node: Any, token: str) -> bool:
    """True when ``node`` has the anonymous keyword child ``token``."""
    return any(not child.is_named and child.type == token for child in node.children)


def _named_child(node: Any, *types: str) -> Any:
    for child in node.children:
        if child.type in types:
            return child
    return None


def _declared_names(declaration: Any) -> list[str]:
    """Binding names introduced by a declaration node."""
    if declaration.type in ("lexical_declaration", "variable_declaration"):
        names: list[str] = []
        for declarator in declaration.children:
            if declarator.type != "variable_declarator":
                continue
            target = declarator.child_by_field_name("name")
            if target is None:
                continue
            if target.type == "identifier":
                names.append(_text(target))
                continue
            # Destructuring: every bound identifier is exported
            stack = [target]
            while stack:
                node = stack.pop()
                if node.type in ("identifier", "shorthand_property_identifier_pattern"):
                    names.append(_text(node))
                elif node.type == "pair_pattern":
                    value = node.child_by_field_name("value")
                    if value is not None:
                        stack.append(value)
                else:
                    stack.extend(reversed(node.children))
        return names

    name = declaration.child_by_field_name("name")
    return [_text(name)] if name is not None else []


class TreeSitterParser:
    """Wrapper around tree-sitter for the ES-module languages.

    Check ``TREE_SITTER_AVAILABLE`` before using, or check whether
    ``parse()`` returns None.
    """

    def __init__(self) -> None:
        self._parsers: dict[str, Any] = {}

        if not TREE_SITTER_AVAILABLE:
            return

        for lang_name, lang_module in _language_modules.items():
            try:
                # tree_sitter_typescript exposes language_typescript / language_tsx
                lang_fn = getattr(lang_module, f"language_{lang_name}", None)
                if lang_fn is None:
                    lang_fn = getattr(lang_module, "language", None)
                if lang_fn is None:
                    continue
                language = _tree_sitter_module.Language(lang_fn())
                self._parsers[lang_name] = _tree_sitter_module.Parser(language)
            except Exception as e:
                logger.debug("Cannot load %s grammar: %s", lang_name, e)

    def is_language_supported(self, language: str) -> bool:
        return language in self._parsers

    def parse(self, code: bytes, language: str) -> Any:
        parser = self._parsers.get(language)
        if parser is None:
            return None
        try:
            return parser.parse(code)
        except Exception as e:
            logger.debug("tree-sitter failed on %s input: %s", language, e)
            return None


class TreeSitterFactExtractor:
    """ES-module fact extractor over tree-sitter syntax trees.

    Attributes:
        parsed_count: Files extracted from a syntax tree
        fallback_count: Files handed to the regex fallback
    """

    def __init__(self, fallback: Optional[RegexFactExtractor] = None) -> None:
        self._parser = TreeSitterParser()
        self._fallback = fallback or RegexFactExtractor()
        self.parsed_count = 0
        self.fallback_count = 0

    def extract(self, path: str, content: str) -> FileFacts:
        if "\x00" in content:
            raise ParsingError(path, "binary content")

        tree = self._parse(path, content)
        if tree is None:
            self.fallback_count += 1
            return self._fallback.extract(path, content)

        self.parsed_count += 1
        facts = FileFacts(path=path)
        skipped_subtrees: list[Any] = []

        for statement in tree.root_node.children:
            if statement.type == "import_statement":
                skipped_subtrees.append(statement)
                self._add_import(facts, statement, path)
            elif statement.type == "export_statement":
                if statement.child_by_field_name("source") is not None:
                    skipped_subtrees.append(statement)
                    self._add_reexport(facts, statement, path)
                else:
                    self._add_local_export(facts, statement, path)

        facts.identifiers = frozenset(self._identifiers(tree.root_node, skipped_subtrees))
        facts.references.sort(key=lambda r: r.line)
        facts.imports.sort(key=lambda i: i.line)
        facts.exports.sort(key=lambda e: e.line)
        return facts

    def _parse(self, path: str, content: str) -> Any:
        language = language_for(path)
        if language is None or not self._parser.is_language_supported(language):
            return None

        try:
            code = content.encode("utf-8")
        except UnicodeEncodeError:
            logger.debug("Encoding error for %s, falling back to regex", path)
            return None

        tree = self._parser.parse(code, language)
        if tree is None:
            return None
        if tree.root_node.has_error:
            logger.debug("Syntax errors in %s, falling back to regex", path)
            return None
        return tree

    # ── imports ──────────────────────────────────────────────────

    def _add_import(self, facts: FileFacts, statement: Any, path: str) -> None:
        specifier = _unquote(statement.child_by_field_name("source"))
        line = _line(statement)
        declaration_type_only = _has_token(statement, "type")
        bindings: list[Binding] = []

        clause = _named_child(statement, "import_clause")
        for imported, local, kind, type_only in self._import_clause(clause):
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

    @staticmethod
    def _import_clause(clause: Any) -> list[tuple[str, str, BindingKind, bool]]:
        result: list[tuple[str, str, BindingKind, bool]] = []
        if clause is None:
            return result

        for child in clause.children:
            if child.type == "identifier":
                result.append((DEFAULT_SENTINEL, _text(child), BindingKind.DEFAULT, False))
            elif child.type == "namespace_import":
                local = _text(_named_child(child, "identifier"))
                result.append((NAMESPACE_SENTINEL, local, BindingKind.NAMESPACE, False))
            elif child.type == "named_imports":
                for specifier in child.children:
                    if specifier.type != "import_specifier":
                        continue
                    imported = _unquote(specifier.child_by_field_name("name"))
                    alias = specifier.child_by_field_name("alias")
                    local = _text(alias) if alias is not None else imported
                    type_only = _has_token(specifier, "type")
                    result.append((imported, local, binding_kind_for(imported), type_only))
        return result

    # ── re-exports ───────────────────────────────────────────────

    def _add_reexport(self, facts: FileFacts, statement: Any, path: str) -> None:
        specifier = _unquote(statement.child_by_field_name("source"))
        line = _line(statement)
        type_only = _has_token(statement, "type")
        clause = _named_child(statement, "export_clause")
        bindings: list[Binding] = []

        if clause is None:
            namespace = _named_child(statement, "namespace_export")
            alias = ""
            if namespace is not None:
                alias = _unquote(_named_child(namespace, "identifier", "string"))
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
            for imported, exported, specifier_type_only in self._export_clause(clause):
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
                        type_only=type_only or specifier_type_only,
                        reexport=True,
                    )
                )
                facts.exports.append(
                    ExportFact(
                        module=path,
                        name=exported,
                        kind=(
                            ExportKind.TYPE
                            if type_only or specifier_type_only
                            else ExportKind.VARIABLE
                        ),
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

    @staticmethod
    def _export_clause(clause: Any) -> list[tuple[str, str, bool]]:
        """(local, exported, type_only) for each specifier of ``{...}``."""
        pairs: list[tuple[str, str, bool]] = []
        for specifier in clause.children:
            if specifier.type != "export_specifier":
                continue
            local = _unquote(specifier.child_by_field_name("name"))
            alias = specifier.child_by_field_name("alias")
            exported = _unquote(alias) if alias is not None else local
            pairs.append((local, exported, _has_token(specifier, "type")))
        return pairs

    # ── local exports ────────────────────────────────────────────

    def _add_local_export(self, facts: FileFacts, statement: Any, path: str) -> None:
        line = _line(statement)
        is_default = _has_token(statement, "default")
        declaration = statement.child_by_field_name("declaration")

        if declaration is not None and declaration.type == "ambient_declaration":
            # export declare ...
            declaration = next((c for c in declaration.children if c.is_named), None)

        if declaration is not None:
            kind = _DECLARATION_KINDS.get(declaration.type)
            if kind is None:
                return
            names = _declared_names(declaration)
            if is_default:
                names = names[:1] or [DEFAULT_SENTINEL]
            for name in names:
                facts.exports.append(
                    ExportFact(module=path, name=name, kind=kind, is_default=is_default, line=line)
                )
            return

        if is_default:
            value = statement.child_by_field_name("value")
            name = DEFAULT_SENTINEL
            kind = ExportKind.VARIABLE
            if value is not None:
                if value.type == "identifier":
                    name = _text(value)
                else:
                    kind = _DECLARATION_KINDS.get(value.type, ExportKind.VARIABLE)
                    if kind is not ExportKind.VARIABLE:
                        declared = value.child_by_field_name("name")
                        if declared is not None:
                            name = _text(declared)
            facts.exports.append(
                ExportFact(module=path, name=name, kind=kind, is_default=True, line=line)
            )
            return

        clause = _named_child(statement, "export_clause")
        if clause is None:
            return
        type_only = _has_token(statement, "type")
        for _local, exported, specifier_type_only in self._export_clause(clause):
            facts.exports.append(
                ExportFact(
                    module=path,
                    name=exported,
                    kind=(
                        ExportKind.TYPE if type_only or specifier_type_only else ExportKind.VARIABLE
                    ),
                    is_default=exported == DEFAULT_SENTINEL,
                    line=line,
                )
            )

    # ── identifiers ──────────────────────────────────────────────

    @staticmethod
    def _identifiers(root: Any, skipped_subtrees: list[Any]) -> set[str]:
        skipped = {(n.start_byte, n.end_byte) for n in skipped_subtrees}
        identifiers: set[str] = set()
        stack = [root]
        while stack:
            node = stack.pop()
            if (node.start_byte, node.end_byte) in skipped and node.type in (
                "import_statement",
                "export_statement",
            ):
                continue
            if node.type in _IDENTIFIER_NODES:
                identifiers.add(_text(node))
                continue
            stack.extend(node.children)
        return identifiers
