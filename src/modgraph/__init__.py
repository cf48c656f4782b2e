"""
modgraph - ES module dependency graphs for JavaScript and TypeScript projects

Extracts import/export facts, builds a module dependency graph, finds
circular dependencies, dead exports and unused imports, and classifies the
architectural changes between two git refs.
"""

__version__ = "0.1.0"

from .api import analyze_dead_code, analyze_graph, compare_refs
from .deadcode.models import DeadCodeReport
from .diff.models import DiffReport
from .graph.models import DependencyGraph, GraphMetrics
from .snapshot.models import GraphSnapshot

__all__ = [
    "analyze_graph",  # Dependency graph of one ref
    "analyze_dead_code",
    "compare_refs",  # Architectural diff of two refs
    "DependencyGraph",
    "GraphMetrics",
    "GraphSnapshot",
    "DeadCodeReport",
    "DiffReport",
]
