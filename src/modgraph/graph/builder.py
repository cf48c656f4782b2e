"""Dependency graph construction from reference facts."""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from ..config import AnalysisConfig
from ..facts.extractor import FactExtractor, extract_batch
from ..facts.factory import default_extractor
from ..facts.models import BindingKind, FileFacts, ReferenceFact
from ..logging_config import get_logger
from .cycles import find_cycles
from .metrics import compute_graph_metrics
from .models import DependencyEdge, DependencyGraph
from .resolver import ModuleResolver, is_relative_specifier

logger = get_logger(__name__)


def build_dependency_graph(
    files: Iterable[str],
    facts: Iterable[ReferenceFact],
    resolver: Optional[ModuleResolver] = None,
    include_external: bool = True,
    config: Optional[AnalysisConfig] = None,
    project_path: str = "",
) -> DependencyGraph:
    """Build a dependency graph with metrics from reference facts.

    ``files`` are canonical module ids (absolute paths). Every file becomes a
    node; external targets become nodes only when ``include_external`` is set.
    Each bound name of a reference is its own edge; a reference without
    bindings yields a single side-effect edge.
    """
    file_list = list(files)
    if resolver is None:
        if config is None:
            resolver = ModuleResolver(known_files=file_list)
        else:
            resolver = ModuleResolver(config.resolve_extensions, known_files=file_list)

    graph = DependencyGraph(project_path=project_path)
    for path in file_list:
        graph.add_node(path)

    for fact in facts:
        if fact.module not in graph.nodes:
            logger.debug("Reference from unanalyzed module %s ignored", fact.module)
            continue

        resolved = resolver.resolve(fact.module, fact.specifier)
        if resolved.is_external:
            if include_external:
                graph.add_node(resolved.id, is_external=True)
            if is_relative_specifier(fact.specifier):
                logger.debug("Unresolved reference %r in %s", fact.specifier, fact.module)
        elif resolved.id not in graph.nodes:
            # Exists on disk but outside the analyzed file set
            graph.add_node(resolved.id)

        for binding_kind, name in _edge_bindings(fact):
            graph.add_edge(
                DependencyEdge(
                    source=fact.module,
                    target=resolved.id,
                    kind=fact.kind,
                    is_external=resolved.is_external,
                    binding_kind=binding_kind,
                    name=name,
                    specifier=fact.specifier,
                )
            )

    thresholds = config.thresholds if config else None
    graph.metrics = compute_graph_metrics(graph, find_cycles(graph), thresholds)
    return graph


def _edge_bindings(fact: ReferenceFact) -> list[tuple[BindingKind, Optional[str]]]:
    if not fact.bindings:
        return [(BindingKind.SIDE_EFFECT, None)]
    return [(binding.kind, binding.name) for binding in fact.bindings]


@dataclass
class BuildResult:
    """A built graph plus the per-file facts and the files that were skipped."""

    graph: DependencyGraph
    facts: dict[str, FileFacts] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)


class GraphBuilder:
    """Extracts facts for a file set and builds the graph.

    With ``config.fail_fast`` unset a file that cannot be read or parsed is
    logged and skipped; with it set the first failure is raised.
    """

    def __init__(
        self,
        extractor: Optional[FactExtractor] = None,
        config: Optional[AnalysisConfig] = None,
    ):
        self.extractor = extractor or default_extractor()
        self.config = config or AnalysisConfig()

    def build(
        self,
        files: Iterable[str],
        read_file: Callable[[str], str],
        project_path: str = "",
        known_files: Optional[Iterable[str]] = None,
        check_disk: bool = True,
    ) -> BuildResult:
        """Build the graph for ``files``, reading content with ``read_file``.

        ``known_files`` defaults to ``files``; pass the full listing when only
        a subset is rebuilt so references into the rest still resolve. Turn
        ``check_disk`` off when the files are not the ones on disk (another
        revision).
        """
        file_list = list(files)
        facts_by_file, skipped = extract_batch(
            self.extractor, file_list, read_file, fail_fast=self.config.fail_fast
        )

        analyzed = [p for p in file_list if p in facts_by_file]
        resolver = ModuleResolver(
            extensions=self.config.resolve_extensions,
            known_files=known_files if known_files is not None else file_list,
            check_disk=check_disk,
        )
        graph = build_dependency_graph(
            analyzed,
            (ref for path in analyzed for ref in facts_by_file[path].references),
            resolver=resolver,
            include_external=self.config.include_external,
            config=self.config,
            project_path=project_path,
        )

        if skipped:
            logger.info("Built graph from %d files (%d skipped)", len(analyzed), len(skipped))
        else:
            logger.debug("Built graph from %d files", len(analyzed))
        return BuildResult(graph=graph, facts=facts_by_file, skipped=skipped)

