"""Module dependency graph: resolution, construction, cycles and metrics."""

from .builder import BuildResult, GraphBuilder, build_dependency_graph
from .cycles import cycle_key, find_cycles, find_cycles_in
from .layers import classify_layer, find_layer_violations
from .metrics import compute_metrics, health_score
from .models import DependencyEdge, DependencyGraph, GraphMetrics, ModuleNode
from .resolver import ModuleResolver, ResolvedModule, canonical_path, is_relative_specifier

__all__ = [
    "BuildResult",
    "DependencyEdge",
    "DependencyGraph",
    "GraphBuilder",
    "GraphMetrics",
    "ModuleNode",
    "ModuleResolver",
    "ResolvedModule",
    "build_dependency_graph",
    "canonical_path",
    "classify_layer",
    "compute_metrics",
    "cycle_key",
    "find_cycles",
    "find_cycles_in",
    "find_layer_violations",
    "health_score",
    "is_relative_specifier",
]
