"""Cross-file dead export and unused import detection.

Works on facts only; the dependency graph is not needed. Exports are matched
against an import map built from every import in the file set:

    resolved module id -> {imported names, "default", "*"}

A namespace import (``"*"``) marks every export of its target as used.
"""

import time
from collections import defaultdict
from typing import Callable, Iterable, Mapping, Optional

from ..config import AnalysisConfig
from ..facts.cache import CachingExtractor, FactCache, LRUFactCache
from ..facts.extractor import FactExtractor, extract_batch
from ..facts.factory import default_extractor
from ..facts.models import (
    DEFAULT_SENTINEL,
    NAMESPACE_SENTINEL,
    BindingKind,
    ExportFact,
    FileFacts,
    ImportFact,
)
from ..graph.resolver import ModuleResolver
from ..logging_config import get_logger
from .models import DeadCodeMetrics, DeadCodeReport, DeadReferenceCandidate
from .risk import assess_export_risk, assess_import_risk, confidence_for
from .suggestions import generate_removal_suggestions

logger = get_logger(__name__)

# Rough size of removed code, for the savings estimate
_LINES_PER_EXPORT = 15
_LINES_PER_IMPORT = 1
_CHARS_PER_LINE = 50


def build_import_map(
    imports: Iterable[ImportFact], resolver: ModuleResolver
) -> dict[str, set[str]]:
    """Map each resolved target module to the names imported from it."""
    import_map: dict[str, set[str]] = defaultdict(set)
    for imported in imports:
        if imported.binding_kind is BindingKind.SIDE_EFFECT:
            continue
        target = resolver.resolve(imported.module, imported.specifier).id
        if imported.binding_kind is BindingKind.NAMESPACE:
            import_map[target].add(NAMESPACE_SENTINEL)
        elif imported.binding_kind is BindingKind.DEFAULT:
            import_map[target].add(DEFAULT_SENTINEL)
        else:
            import_map[target].add(imported.name)
    return import_map


def is_export_used(export: ExportFact, imported_names: set[str]) -> bool:
    if NAMESPACE_SENTINEL in imported_names or export.name in imported_names:
        return True
    return export.is_default and DEFAULT_SENTINEL in imported_names


def find_dead_exports(
    exports: Iterable[ExportFact],
    imports: Iterable[ImportFact],
    resolver: Optional[ModuleResolver] = None,
    project_path: Optional[str] = None,
) -> list[DeadReferenceCandidate]:
    """Exports that no import in the set consumes, with confidence and risk factors."""
    export_list = list(exports)
    import_list = list(imports)
    if resolver is None:
        known = {e.module for e in export_list} | {i.module for i in import_list}
        resolver = ModuleResolver(known_files=known)

    import_map = build_import_map(import_list, resolver)
    dead: list[DeadReferenceCandidate] = []

    for export in export_list:
        if is_export_used(export, import_map.get(export.module, set())):
            continue
        factors = assess_export_risk(export, project_path)
        dead.append(
            DeadReferenceCandidate(
                fact=export,
                confidence=confidence_for(factors),
                risk_factors=factors,
                reason="No imports found for this export",
            )
        )

    return dead


def find_unused_imports(
    imports: Iterable[ImportFact], identifiers_by_module: Mapping[str, Iterable[str]]
) -> list[DeadReferenceCandidate]:
    """Imports whose local name never appears in the importing module's body.

    Re-exports and side-effect imports bind nothing locally and are never
    reported. Modules missing from ``identifiers_by_module`` are not checked.
    """
    unused: list[DeadReferenceCandidate] = []
    identifier_sets: dict[str, frozenset[str]] = {}

    for imported in imports:
        if imported.reexport or imported.binding_kind is BindingKind.SIDE_EFFECT:
            continue
        if imported.module not in identifiers_by_module:
            continue
        identifiers = identifier_sets.get(imported.module)
        if identifiers is None:
            identifiers = frozenset(identifiers_by_module[imported.module])
            identifier_sets[imported.module] = identifiers
        if imported.local in identifiers:
            continue

        factors = assess_import_risk(imported)
        unused.append(
            DeadReferenceCandidate(
                fact=imported,
                confidence=confidence_for(factors),
                risk_factors=factors,
                reason="Imported but never referenced",
            )
        )

    return unused


def estimate_savings_kb(dead_exports: int, unused_imports: int) -> int:
    lines = dead_exports * _LINES_PER_EXPORT + unused_imports * _LINES_PER_IMPORT
    return round(lines * _CHARS_PER_LINE / 1024)


class DeadCodeAnalyzer:
    """Runs dead export and unused import detection over a file set."""

    def __init__(
        self,
        extractor: Optional[FactExtractor] = None,
        cache: Optional[FactCache] = None,
        config: Optional[AnalysisConfig] = None,
    ):
        self.config = config or AnalysisConfig()
        self.cache = cache if cache is not None else LRUFactCache(self.config.cache_capacity)
        self.extractor = CachingExtractor(extractor or default_extractor(), self.cache)

    def analyze(
        self,
        files: Iterable[str],
        read_file: Callable[[str], str],
        project_path: str = "",
    ) -> DeadCodeReport:
        start = time.perf_counter()
        file_list = list(files)
        facts_by_file, skipped = extract_batch(
            self.extractor, file_list, read_file, fail_fast=self.config.fail_fast
        )
        report = self.analyze_facts(facts_by_file, project_path, known_files=file_list)
        report.skipped = skipped
        report.metrics.total_files = len(file_list)
        report.metrics.skipped_files = len(skipped)
        report.metrics.analysis_time_ms = int((time.perf_counter() - start) * 1000)
        report.metrics.cache_stats = self.cache.stats()
        logger.debug("Fact cache: %s", report.metrics.cache_stats)
        return report

    def analyze_facts(
        self,
        facts_by_file: Mapping[str, FileFacts],
        project_path: str = "",
        known_files: Optional[Iterable[str]] = None,
    ) -> DeadCodeReport:
        """Dead code report for already extracted facts."""
        exports = [e for facts in facts_by_file.values() for e in facts.exports]
        imports = [i for facts in facts_by_file.values() for i in facts.imports]
        resolver = ModuleResolver(
            extensions=self.config.resolve_extensions,
            known_files=known_files if known_files is not None else facts_by_file.keys(),
        )

        dead_exports = find_dead_exports(exports, imports, resolver, project_path or None)
        unused_imports = find_unused_imports(
            imports, {path: facts.identifiers for path, facts in facts_by_file.items()}
        )
        suggestions = generate_removal_suggestions(
            dead_exports + unused_imports, project_path or None
        )

        logger.info(
            "Found %d dead exports and %d unused imports in %d files",
            len(dead_exports),
            len(unused_imports),
            len(facts_by_file),
        )

        metrics = DeadCodeMetrics(
            total_files=len(facts_by_file),
            total_exports=len(exports),
            total_imports=len(imports),
            dead_exports=len(dead_exports),
            unused_imports=len(unused_imports),
            estimated_savings_kb=estimate_savings_kb(len(dead_exports), len(unused_imports)),
        )
        return DeadCodeReport(
            project_path=project_path,
            dead_exports=dead_exports,
            unused_imports=unused_imports,
            suggestions=suggestions,
            metrics=metrics,
        )
