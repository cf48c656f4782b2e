"""Snapshot orchestration: list, read, extract, build, measure.

Module ids are absolute paths under the provider's root, whatever the ref,
so the same file has the same id in every snapshot and diffs line up.
"""

import posixpath
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..config import AnalysisConfig
from ..facts.cache import CachingExtractor, DiskFactCache, FactCache, LRUFactCache
from ..facts.extractor import FactExtractor
from ..facts.factory import default_extractor
from ..graph.builder import GraphBuilder
from ..graph.resolver import canonical_path
from ..logging_config import get_logger
from .models import GraphSnapshot
from .provider import SnapshotProvider, read_text

logger = get_logger(__name__)


def default_cache(config: AnalysisConfig) -> FactCache:
    if config.disk_cache:
        return DiskFactCache(config.cache_dir, config.cache_ttl_hours)
    return LRUFactCache(config.cache_capacity)


class SnapshotManager:
    """Builds ``GraphSnapshot``s for refs of one provider.

    The fact cache is shared between calls. Its keys include a content hash,
    so a file whose content differs between refs is extracted again, and every
    call builds a fresh graph and metrics.
    """

    def __init__(
        self,
        provider: SnapshotProvider,
        extractor: Optional[FactExtractor] = None,
        cache: Optional[FactCache] = None,
        config: Optional[AnalysisConfig] = None,
    ):
        self.provider = provider
        self.config = config or AnalysisConfig()
        # A cache built here is closed by close(); a caller's cache is left open
        self._owns_cache = cache is None
        self.cache = cache if cache is not None else default_cache(self.config)
        self.extractor = CachingExtractor(extractor or default_extractor(), self.cache)
        self.builder = GraphBuilder(self.extractor, self.config)

    def close(self) -> None:
        if self._owns_cache:
            self.cache.close()

    def __enter__(self) -> "SnapshotManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def root(self) -> str:
        return canonical_path(str(self.provider.root))

    def snapshot(self, ref: str, files: Optional[Iterable[str]] = None) -> GraphSnapshot:
        """Snapshot ``ref`` through the provider.

        Raises:
            InvalidRefError: If the provider cannot resolve ``ref``
        """
        revision = self.provider.resolve_ref(ref)
        listing = self.provider.list_files(revision)
        relative_files = self._relative(files) if files is not None else listing
        return self._build(
            ref,
            revision,
            relative_files,
            lambda relative: self.provider.read_file_at(relative, revision),
            known_relative=listing,
        )

    def snapshot_workspace(self, ref: str) -> GraphSnapshot:
        """Snapshot ``ref`` from a temporary workspace removed afterwards."""
        revision = self.provider.resolve_ref(ref)
        with self.provider.workspace(revision) as workspace:
            relative_files = sorted(
                p.relative_to(workspace).as_posix()
                for p in workspace.rglob("*")
                if p.is_file() and self.config.is_source_file(p.relative_to(workspace).as_posix())
            )
            return self._build(
                ref, revision, relative_files, lambda relative: read_text(workspace / relative)
            )

    def _build(
        self,
        ref: str,
        revision: str,
        relative_files: list[str],
        read_relative: Callable[[str], str],
        known_relative: Optional[list[str]] = None,
    ) -> GraphSnapshot:
        root = self.root
        ids = [posixpath.join(root, relative) for relative in relative_files]
        relative_by_id = dict(zip(ids, relative_files))
        known_files = (
            [posixpath.join(root, relative) for relative in known_relative]
            if known_relative is not None
            else ids
        )

        result = self.builder.build(
            ids,
            lambda module_id: read_relative(relative_by_id[module_id]),
            project_path=root,
            known_files=known_files,
            check_disk=False,
        )
        logger.info(
            "Snapshot %s: %d modules, %d edges, health %.1f",
            ref,
            len(result.graph.nodes),
            len(result.graph.edges),
            result.graph.metrics.health_score,
        )
        logger.debug("Fact cache: %s", self.cache.stats())

        return GraphSnapshot(
            ref=ref,
            graph=result.graph,
            timestamp=datetime.now(timezone.utc),
            file_set=tuple(ids),
            skipped=tuple(result.skipped),
            revision=revision,
        )

    def _relative(self, files: Iterable[str]) -> list[str]:
        root = Path(self.root)
        relative: list[str] = []
        for f in files:
            path = Path(f)
            if path.is_absolute():
                try:
                    path = path.relative_to(root)
                except ValueError:
                    logger.warning("Ignoring %s: outside %s", f, root)
                    continue
            relative.append(path.as_posix())
        return relative
