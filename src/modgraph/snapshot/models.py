"""Graph snapshots: immutable records of one analyzed state of a codebase."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from ..graph.models import DependencyGraph, GraphMetrics


@dataclass(frozen=True)
class GraphSnapshot:
    """The dependency graph of one ref at one point in time.

    Built once by the snapshot manager and never modified; two snapshots are
    the only inputs to a diff.
    """

    ref: str
    graph: DependencyGraph
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    file_set: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()
    revision: Optional[str] = None  # resolved commit id, when the provider has one

    @property
    def metrics(self) -> GraphMetrics:
        return self.graph.metrics

    def to_dict(self) -> dict[str, Any]:
        return {
            "ref": self.ref,
            "revision": self.revision,
            "timestamp": self.timestamp.isoformat(),
            "fileCount": len(self.file_set),
            "skipped": list(self.skipped),
            "graph": self.graph.to_dict(),
        }
