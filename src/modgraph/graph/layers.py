"""Path-based architectural layers.

A module's layer is inferred from its directory names. The only forbidden
dependency is a UI module reaching a data module without going through a
service.
"""

import posixpath
from typing import Iterable, Optional

from .models import DependencyEdge

LAYER_DIRECTORIES: dict[str, frozenset[str]] = {
    "ui": frozenset({"components", "ui", "views", "pages"}),
    "service": frozenset({"services", "service"}),
    "data": frozenset({"database", "db", "models", "repositories"}),
}

# (from_layer, to_layer) pairs that count as violations
FORBIDDEN_DEPENDENCIES = frozenset({("ui", "data")})


def classify_layer(path: str) -> Optional[str]:
    """Layer of ``path`` from its directory segments, innermost match wins."""
    directories = posixpath.dirname(path.replace("\\", "/")).split("/")
    for segment in reversed(directories):
        lowered = segment.lower()
        for layer, names in LAYER_DIRECTORIES.items():
            if lowered in names:
                return layer
    return None


def find_layer_violations(edges: Iterable[DependencyEdge]) -> list[tuple[str, str]]:
    """Distinct (source, target) pairs of internal edges crossing a forbidden boundary."""
    violations: list[tuple[str, str]] = []
    seen: set[tuple[str, str]] = set()
    for edge in edges:
        if edge.is_external:
            continue
        pair = (edge.source, edge.target)
        if pair in seen:
            continue
        source_layer = classify_layer(edge.source)
        target_layer = classify_layer(edge.target)
        if (source_layer, target_layer) in FORBIDDEN_DEPENDENCIES:
            seen.add(pair)
            violations.append(pair)
    return violations
