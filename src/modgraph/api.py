"""Public API for modgraph.

Entry points that wire configuration, providers, caches and analyzers
together. Use these instead of constructing the pieces by hand.

Example:
    >>> from modgraph import analyze_graph, compare_refs
    >>>
    >>> snapshot = analyze_graph("/path/to/project")
    >>> snapshot.metrics.health_score
    100.0
    >>>
    >>> report = compare_refs("/path/to/repo", "main", "WORKTREE")
    >>> [c.type.value for c in report.changes]
    ['dependency-added', 'circular-dependency-introduced']
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Union

from .config import AnalysisConfig, load_config
from .deadcode.analyzer import DeadCodeAnalyzer
from .deadcode.models import DeadCodeReport
from .diff.engine import diff_snapshots, filter_by_severity
from .diff.models import DiffReport
from .facts.cache import FactCache
from .facts.extractor import FactExtractor
from .logging_config import get_logger
from .snapshot.git import GitSnapshotProvider
from .snapshot.manager import SnapshotManager, default_cache
from .snapshot.models import GraphSnapshot
from .snapshot.provider import WORKING_TREE, SnapshotProvider, WorkingTreeProvider

logger = get_logger(__name__)


def _config(
    config: Optional[AnalysisConfig], config_file: Optional[Path], overrides
) -> AnalysisConfig:
    if config is not None:
        return config
    return load_config(config_file=config_file, **overrides)


def default_provider(
    path: Union[str, Path], config: Optional[AnalysisConfig] = None
) -> SnapshotProvider:
    """Git provider when ``path`` is inside a git repository, working tree otherwise."""
    git = GitSnapshotProvider(str(path), config)
    if git.is_repository():
        return git
    logger.info("%s is not a git repository; using the working tree only", path)
    return WorkingTreeProvider(str(path), config)


def analyze_graph(
    path: Union[str, Path] = ".",
    ref: str = WORKING_TREE,
    files: Optional[Iterable[str]] = None,
    extractor: Optional[FactExtractor] = None,
    config: Optional[AnalysisConfig] = None,
    config_file: Optional[Path] = None,
    **overrides,
) -> GraphSnapshot:
    """Build the dependency graph of ``path`` at ``ref``.

    Raises:
        InvalidRefError: If ``ref`` cannot be resolved
        ModgraphError: If configuration is invalid
    """
    config = _config(config, config_file, overrides)
    provider = default_provider(path, config)
    with SnapshotManager(provider, extractor=extractor, config=config) as manager:
        return manager.snapshot(ref, files)


def analyze_dead_code(
    path: Union[str, Path] = ".",
    extractor: Optional[FactExtractor] = None,
    cache: Optional[FactCache] = None,
    config: Optional[AnalysisConfig] = None,
    config_file: Optional[Path] = None,
    **overrides,
) -> DeadCodeReport:
    """Find dead exports and unused imports in the working tree at ``path``."""
    config = _config(config, config_file, overrides)
    provider = WorkingTreeProvider(str(path), config)
    root = provider.root.as_posix()
    relative_files = provider.list_files(WORKING_TREE)

    owned_cache = default_cache(config) if cache is None else None
    analyzer = DeadCodeAnalyzer(
        extractor=extractor, cache=cache if cache is not None else owned_cache, config=config
    )
    relative_by_id = {f"{root}/{relative}": relative for relative in relative_files}
    try:
        return analyzer.analyze(
            list(relative_by_id),
            lambda module_id: provider.read_file_at(relative_by_id[module_id], WORKING_TREE),
            project_path=root,
        )
    finally:
        if owned_cache is not None:
            owned_cache.close()


def compare_refs(
    provider: Union[SnapshotProvider, str, Path],
    baseline_ref: str,
    current_ref: str = WORKING_TREE,
    extractor: Optional[FactExtractor] = None,
    cache: Optional[FactCache] = None,
    config: Optional[AnalysisConfig] = None,
    min_severity: Optional[str] = None,
    use_workspace: bool = False,
    config_file: Optional[Path] = None,
    **overrides,
) -> DiffReport:
    """Snapshot two refs and diff them.

    Both refs are resolved before any analysis, so a bad ref fails fast.
    ``provider`` may be a ``SnapshotProvider`` or a path to a repository.
    With ``use_workspace`` each ref is materialized into a temporary
    directory for the analysis.

    Raises:
        InvalidRefError: If either ref cannot be resolved
    """
    config = _config(config, config_file, overrides)
    if not hasattr(provider, "resolve_ref"):
        provider = default_provider(provider, config)

    provider.resolve_ref(baseline_ref)
    provider.resolve_ref(current_ref)

    with SnapshotManager(provider, extractor=extractor, cache=cache, config=config) as manager:
        take = manager.snapshot_workspace if use_workspace else manager.snapshot
        baseline = take(baseline_ref)
        current = take(current_ref)

    report = diff_snapshots(baseline, current, config.thresholds)
    severity = min_severity or config.min_severity
    if severity != "low":
        report = filter_by_severity(report, severity)
    return report
