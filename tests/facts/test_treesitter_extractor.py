"""Tests for facts/treesitter.py and facts/factory.py."""

import pytest

from modgraph.deadcode import DeadCodeAnalyzer
from modgraph.exceptions import ParsingError
from modgraph.facts import (
    BindingKind,
    ExportKind,
    FactKind,
    RegexFactExtractor,
    TreeSitterFactExtractor,
    default_extractor,
)
from modgraph.facts import treesitter
from modgraph.facts.treesitter import get_supported_languages, language_for
from modgraph.graph.builder import GraphBuilder

GRAMMARS_INSTALLED = {"typescript", "tsx", "javascript"} <= set(get_supported_languages())

SOURCE = """import React, { useState } from 'react';
import * as utils from './utils';
import type { Props } from './types';
import './styles.css';
export { helper } from './helper';
export * from './shared';

export function render() {}
export const answer = 42;
export default class App {}
"""


def _references(facts):
    return [(r.specifier, r.kind, r.bindings, r.line) for r in facts.references]


def _imports(facts):
    return [
        (i.specifier, i.name, i.local, i.binding_kind, i.type_only, i.reexport, i.line)
        for i in facts.imports
    ]


def _exports(facts):
    return [(e.name, e.kind, e.is_default, e.line) for e in facts.exports]


class TestLanguageSelection:
    def test_extensions(self):
        assert language_for("/p/a.ts") == "typescript"
        assert language_for("/p/types.d.ts") == "typescript"
        assert language_for("/p/App.tsx") == "tsx"
        assert language_for("/p/a.mjs") == "javascript"
        assert language_for("/p/a.JSX") == "javascript"
        assert language_for("/p/App.vue") is None

    def test_supported_languages_empty_when_unavailable(self):
        if not treesitter.TREE_SITTER_AVAILABLE:
            assert get_supported_languages() == []


class TestFallback:
    def test_unsupported_extension_uses_regex(self):
        extractor = TreeSitterFactExtractor()
        facts = extractor.extract("/p/App.vue", "import { a } from './a';\n")
        assert [r.specifier for r in facts.references] == ["./a"]
        assert extractor.fallback_count == 1
        assert extractor.parsed_count == 0

    def test_binary_content_raises(self):
        with pytest.raises(ParsingError):
            TreeSitterFactExtractor().extract("/p/blob.js", "abc\x00def")


class TestFactory:
    def test_regex_without_grammars(self, monkeypatch):
        monkeypatch.setattr(treesitter, "get_supported_languages", lambda: [])
        assert isinstance(default_extractor(), RegexFactExtractor)

    def test_components_use_factory_default(self, monkeypatch):
        monkeypatch.setattr(treesitter, "get_supported_languages", lambda: [])
        assert isinstance(GraphBuilder().extractor, RegexFactExtractor)
        assert isinstance(DeadCodeAnalyzer().extractor.extractor, RegexFactExtractor)

    @pytest.mark.skipif(not GRAMMARS_INSTALLED, reason="tree-sitter grammars not installed")
    def test_tree_sitter_when_grammars_installed(self):
        assert isinstance(default_extractor(), TreeSitterFactExtractor)


@pytest.mark.skipif(not GRAMMARS_INSTALLED, reason="tree-sitter grammars not installed")
class TestTreeSitterExtraction:
    """Tests that require the tree-sitter grammars to be installed."""

    def test_matches_regex_facts(self):
        """Both extractors agree on a file the regex scanner handles."""
        extractor = TreeSitterFactExtractor()
        parsed = extractor.extract("/p/src/app.tsx", SOURCE)
        scanned = RegexFactExtractor().extract("/p/src/app.tsx", SOURCE)

        assert extractor.parsed_count == 1
        assert _references(parsed) == _references(scanned)
        assert _imports(parsed) == _imports(scanned)
        assert _exports(parsed) == _exports(scanned)

    def test_type_only_import(self):
        facts = TreeSitterFactExtractor().extract("/p/a.ts", SOURCE)
        (props,) = [i for i in facts.imports if i.specifier == "./types"]
        assert props.type_only
        ref = next(r for r in facts.references if r.specifier == "./types")
        assert ref.kind is FactKind.TYPE_ONLY

    def test_comment_marker_inside_string(self):
        source = "import { a } from './a'; const u = 'x//y'; import { b } from './b';\n"
        facts = TreeSitterFactExtractor().extract("/p/a.ts", source)
        assert [r.specifier for r in facts.references] == ["./a", "./b"]

    def test_const_enums(self):
        source = "export const enum Color { Red }\nexport declare const enum Dir { Up }\n"
        facts = TreeSitterFactExtractor().extract("/p/enums.ts", source)
        assert _exports(facts) == [
            ("Color", ExportKind.VARIABLE, False, 1),
            ("Dir", ExportKind.VARIABLE, False, 2),
        ]

    def test_interfaces_and_types(self):
        source = (
            "export interface Shape {}\nexport type Id = string;\nexport abstract class Base {}\n"
        )
        facts = TreeSitterFactExtractor().extract("/p/a.ts", source)
        assert [(e.name, e.kind) for e in facts.exports] == [
            ("Shape", ExportKind.INTERFACE),
            ("Id", ExportKind.TYPE),
            ("Base", ExportKind.CLASS),
        ]

    def test_destructured_export(self):
        source = "const obj = { a: 1, b: 2 };\nexport const { a, b: renamed } = obj;\n"
        facts = TreeSitterFactExtractor().extract("/p/a.ts", source)
        assert [e.name for e in facts.exports] == ["a", "renamed"]

    def test_anonymous_defaults(self):
        facts = TreeSitterFactExtractor().extract("/p/a.js", "export default function () {}\n")
        assert _exports(facts) == [("default", ExportKind.FUNCTION, True, 1)]

        facts = TreeSitterFactExtractor().extract("/p/b.ts", "export default {\n  port: 80,\n};\n")
        assert _exports(facts) == [("default", ExportKind.VARIABLE, True, 1)]

    def test_default_identifier_export(self):
        source = "const Widget = 1;\nexport default Widget;\n"
        facts = TreeSitterFactExtractor().extract("/p/a.ts", source)
        assert _exports(facts) == [("Widget", ExportKind.VARIABLE, True, 2)]

    def test_default_reexport_binding_matches_import(self):
        source = "export { default } from './b';\n"
        facts = TreeSitterFactExtractor().extract("/p/index.ts", source)
        (ref,) = facts.references
        (imported,) = facts.imports
        assert ref.bindings[0].kind is BindingKind.DEFAULT
        assert imported.binding_kind is BindingKind.DEFAULT

    def test_identifiers_exclude_import_declarations(self):
        source = "import { used, unused } from './x';\nused();\n"
        facts = TreeSitterFactExtractor().extract("/p/a.ts", source)
        assert "used" in facts.identifiers
        assert "unused" not in facts.identifiers

    def test_jsx_in_javascript(self):
        source = "import Button from './Button';\nexport const App = () => <Button />;\n"
        extractor = TreeSitterFactExtractor()
        facts = extractor.extract("/p/App.jsx", source)
        assert extractor.parsed_count == 1
        assert "Button" in facts.identifiers

    def test_syntax_error_falls_back_to_regex(self):
        extractor = TreeSitterFactExtractor()
        facts = extractor.extract("/p/a.ts", "import { a } from './a';\nconst = ;\n")
        assert extractor.fallback_count == 1
        assert [r.specifier for r in facts.references] == ["./a"]
