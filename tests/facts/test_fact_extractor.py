"""Tests for facts/extractor.py - regex fact extraction and batch handling."""

import pytest

from modgraph.exceptions import FileAccessError, ParsingError
from modgraph.facts import (
    BindingKind,
    ExportKind,
    FactKind,
    RegexFactExtractor,
    extract_batch,
    extract_file,
)

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


@pytest.fixture
def facts():
    return RegexFactExtractor().extract("/p/src/app.tsx", SOURCE)


class TestImports:
    def test_default_and_named_bindings(self, facts):
        react = [i for i in facts.imports if i.specifier == "react"]
        assert [(i.name, i.local, i.binding_kind) for i in react] == [
            ("default", "React", BindingKind.DEFAULT),
            ("useState", "useState", BindingKind.NAMED),
        ]

    def test_namespace_import(self, facts):
        (utils,) = [i for i in facts.imports if i.specifier == "./utils"]
        assert utils.name == "*"
        assert utils.local == "utils"
        assert utils.binding_kind is BindingKind.NAMESPACE

    def test_type_only_import(self, facts):
        (props,) = [i for i in facts.imports if i.specifier == "./types"]
        assert props.type_only
        ref = next(r for r in facts.references if r.specifier == "./types")
        assert ref.kind is FactKind.TYPE_ONLY

    def test_side_effect_reference_has_no_bindings(self, facts):
        ref = next(r for r in facts.references if r.specifier == "./styles.css")
        assert ref.bindings == ()
        assert ref.kind is FactKind.IMPORT
        assert not any(i.specifier == "./styles.css" for i in facts.imports)

    def test_aliased_named_import(self):
        facts = RegexFactExtractor().extract("/p/a.ts", "import { a as b } from './x';\nb();\n")
        (imported,) = facts.imports
        assert imported.name == "a"
        assert imported.local == "b"

    def test_multiline_import(self):
        source = "import {\n  one,\n  two,\n} from './numbers';\n"
        facts = RegexFactExtractor().extract("/p/a.ts", source)
        assert [i.name for i in facts.imports] == ["one", "two"]
        assert facts.imports[0].line == 1

    def test_references_are_line_ordered(self, facts):
        lines = [r.line for r in facts.references]
        assert lines == sorted(lines)
        assert lines == [1, 2, 3, 4, 5, 6]


class TestReexports:
    def test_named_reexport_is_export_reference(self, facts):
        ref = next(r for r in facts.references if r.specifier == "./helper")
        assert ref.kind is FactKind.EXPORT
        (imported,) = [i for i in facts.imports if i.specifier == "./helper"]
        assert imported.reexport
        assert any(e.name == "helper" for e in facts.exports)

    def test_star_reexport(self, facts):
        ref = next(r for r in facts.references if r.specifier == "./shared")
        assert ref.kind is FactKind.EXPORT
        assert ref.bindings[0].kind is BindingKind.NAMESPACE

    def test_default_reexport_binding_matches_import(self):
        facts = RegexFactExtractor().extract("/p/index.ts", "export { default } from './b';\n")
        (ref,) = facts.references
        (imported,) = facts.imports
        assert ref.bindings[0].kind is BindingKind.DEFAULT
        assert imported.binding_kind is BindingKind.DEFAULT
        assert facts.exports[0].is_default

    def test_renamed_default_reexport(self):
        source = "export { default as Button } from './Button';\n"
        facts = RegexFactExtractor().extract("/p/index.ts", source)
        (ref,) = facts.references
        assert ref.bindings[0].kind is BindingKind.DEFAULT
        assert facts.imports[0].binding_kind is BindingKind.DEFAULT
        assert [e.name for e in facts.exports] == ["Button"]


class TestExports:
    def test_declarations(self, facts):
        by_name = {e.name: e for e in facts.exports}
        assert by_name["render"].kind is ExportKind.FUNCTION
        assert by_name["answer"].kind is ExportKind.VARIABLE
        assert by_name["App"].kind is ExportKind.CLASS
        assert by_name["App"].is_default
        assert by_name["render"].line == 8

    def test_default_class_reported_once(self, facts):
        assert sum(1 for e in facts.exports if e.is_default) == 1

    def test_anonymous_default_export(self):
        facts = RegexFactExtractor().extract("/p/config.ts", "export default {\n  port: 80,\n};\n")
        (export,) = facts.exports
        assert export.name == "default"
        assert export.is_default

    def test_default_identifier_export(self):
        source = "const Widget = 1;\nexport default Widget;\n"
        facts = RegexFactExtractor().extract("/p/a.ts", source)
        (export,) = facts.exports
        assert export.name == "Widget"
        assert export.is_default
        assert export.line == 2

    def test_export_list_and_types(self):
        source = "interface Shape {}\nexport type Id = string;\nexport { a, b as c };\n"
        facts = RegexFactExtractor().extract("/p/a.ts", source)
        by_name = {e.name: e for e in facts.exports}
        assert by_name["Id"].kind is ExportKind.TYPE
        assert set(by_name) == {"Id", "a", "c"}

    def test_const_enums(self):
        source = "export const enum Color { Red }\nexport declare const enum Dir { Up }\n"
        facts = RegexFactExtractor().extract("/p/enums.ts", source)
        assert [(e.name, e.kind, e.line) for e in facts.exports] == [
            ("Color", ExportKind.VARIABLE, 1),
            ("Dir", ExportKind.VARIABLE, 2),
        ]

    def test_plain_enum_and_const(self):
        source = "export enum Mode { On }\nexport const enumerated = 1;\n"
        facts = RegexFactExtractor().extract("/p/a.ts", source)
        assert [e.name for e in facts.exports] == ["Mode", "enumerated"]


class TestIdentifiers:
    def test_import_declarations_are_excluded(self, facts):
        assert "useState" not in facts.identifiers
        assert "render" in facts.identifiers

    def test_usage_is_recorded(self):
        source = "import { used, unused } from './x';\nused();\n"
        facts = RegexFactExtractor().extract("/p/a.ts", source)
        assert "used" in facts.identifiers
        assert "unused" not in facts.identifiers

    def test_comments_are_ignored(self):
        source = "// import { ghost } from './ghost';\n/* import './also-ghost'; */\nconst x = 1;\n"
        facts = RegexFactExtractor().extract("/p/a.ts", source)
        assert facts.references == []
        assert "ghost" not in facts.identifiers

    def test_string_contents_are_not_identifiers(self):
        source = "const label = 'hidden name';\nconst path = `also ${shown}`;\n"
        facts = RegexFactExtractor().extract("/p/a.ts", source)
        assert "label" in facts.identifiers
        assert "hidden" not in facts.identifiers
        assert "also" not in facts.identifiers


class TestLexing:
    def test_comment_marker_inside_string(self):
        source = "import { a } from './a'; const u = 'x//y'; import { b } from './b';\n"
        facts = RegexFactExtractor().extract("/p/a.ts", source)
        assert [r.specifier for r in facts.references] == ["./a", "./b"]
        assert [i.name for i in facts.imports] == ["a", "b"]

    def test_url_in_string_does_not_hide_next_line(self):
        source = (
            "const api = 'https://example.com/*';\n"
            "import { client } from './client';\n"
            "const end = '*/';\n"
        )
        facts = RegexFactExtractor().extract("/p/a.ts", source)
        assert [r.specifier for r in facts.references] == ["./client"]
        assert facts.references[0].line == 2

    def test_import_text_inside_string_is_not_a_reference(self):
        source = "const s = 'x; import { fake } from \"./fake\"';\nexport const y = 1;\n"
        facts = RegexFactExtractor().extract("/p/a.ts", source)
        assert facts.references == []
        assert [e.name for e in facts.exports] == ["y"]

    def test_block_comment_marker_inside_template(self):
        source = "const glob = `src/*`;\nimport './side-effect';\nconst end = `*/`;\n"
        facts = RegexFactExtractor().extract("/p/a.ts", source)
        assert [r.specifier for r in facts.references] == ["./side-effect"]


class TestErrors:
    def test_binary_content_raises(self):
        with pytest.raises(ParsingError):
            RegexFactExtractor().extract("/p/blob.js", "abc\x00def")


class _BrokenExtractor:
    def extract(self, path, content):
        raise ValueError("unexpected token")


class TestExtractBatch:
    def _read(self, files):
        def read(path):
            if path not in files:
                raise OSError("no such file")
            return files[path]

        return read

    def test_failures_are_skipped(self):
        files = {"/p/a.ts": "export const a = 1;\n", "/p/bad.ts": "\x00"}
        facts, skipped = extract_batch(
            RegexFactExtractor(), ["/p/a.ts", "/p/bad.ts", "/p/gone.ts"], self._read(files)
        )
        assert list(facts) == ["/p/a.ts"]
        assert skipped == ["/p/bad.ts", "/p/gone.ts"]

    def test_fail_fast_raises_first_error(self):
        files = {"/p/bad.ts": "\x00"}
        with pytest.raises(ParsingError):
            extract_batch(RegexFactExtractor(), ["/p/bad.ts"], self._read(files), fail_fast=True)

    def test_read_error_becomes_file_access_error(self):
        with pytest.raises(FileAccessError):
            extract_file(RegexFactExtractor(), "/p/gone.ts", self._read({}))

    def test_unexpected_extractor_error_becomes_parsing_error(self):
        with pytest.raises(ParsingError) as excinfo:
            extract_file(_BrokenExtractor(), "/p/a.ts", lambda path: "x")
        assert "unexpected token" in excinfo.value.reason
