"""Data models for the module dependency graph.

Layers:
  Nodes: modules (analyzed files and external packages)
  Edges: one per bound name of each reference
  Metrics: derived measurements, recomputed per graph, never patched
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from ..facts.models import BindingKind, FactKind

# ── Nodes and edges ────────────────────────────────────────────────


@dataclass(frozen=True)
class ModuleNode:
    """A module: canonical absolute path, or package name when external."""

    id: str
    is_external: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "isExternal": self.is_external}


@dataclass(frozen=True)
class DependencyEdge:
    """Directed edge: ``source`` depends on ``target``.

    Edges are not deduplicated; ``import {a, b}`` yields two edges between
    the same pair.
    """

    source: str
    target: str
    kind: FactKind = FactKind.IMPORT
    is_external: bool = False
    binding_kind: BindingKind = BindingKind.NAMED
    name: Optional[str] = None  # bound name, None for side-effect edges
    specifier: Optional[str] = None  # reference text as written

    @property
    def identity(self) -> tuple[str, str, BindingKind]:
        """Key used when comparing edge sets across snapshots."""
        return (self.source, self.target, self.binding_kind)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "from": self.source,
            "to": self.target,
            "kind": self.kind.value,
            "isExternal": self.is_external,
            "bindingKind": self.binding_kind.value,
        }
        if self.name is not None:
            data["name"] = self.name
        if self.specifier is not None:
            data["specifier"] = self.specifier
        return data


# ── Metrics ────────────────────────────────────────────────────────


@dataclass
class GraphMetrics:
    """Whole-graph measurements."""

    total_nodes: int = 0
    total_edges: int = 0
    internal_edges: int = 0
    external_edges: int = 0
    cycles: list[list[str]] = field(default_factory=list)
    average_coupling: float = 0.0  # internal edges per node
    most_connected_node: Optional[str] = None
    hotspots: list[str] = field(default_factory=list)
    layer_violations: int = 0
    external_targets: list[str] = field(default_factory=list)
    health_score: float = 100.0  # 0-100

    @property
    def cycle_count(self) -> int:
        return len(self.cycles)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalNodes": self.total_nodes,
            "totalEdges": self.total_edges,
            "internalEdges": self.internal_edges,
            "externalEdges": self.external_edges,
            "circularDependencies": [list(c) for c in self.cycles],
            "averageCoupling": self.average_coupling,
            "mostConnectedNode": self.most_connected_node,
            "hotspots": list(self.hotspots),
            "layerViolations": self.layer_violations,
            "externalDependencies": list(self.external_targets),
            "healthScore": self.health_score,
        }


# ── Graph ──────────────────────────────────────────────────────────


@dataclass
class DependencyGraph:
    """Module dependency graph.

    ``nodes`` preserves first-insertion order. Every edge's source is a node;
    internal targets are nodes; external targets may be edge-only when
    external nodes are not included.
    """

    nodes: dict[str, ModuleNode] = field(default_factory=dict)
    edges: list[DependencyEdge] = field(default_factory=list)
    metrics: GraphMetrics = field(default_factory=GraphMetrics)
    project_path: str = ""

    def add_node(self, node_id: str, is_external: bool = False) -> ModuleNode:
        """Insert a node unless one with the same id exists; return the stored node."""
        existing = self.nodes.get(node_id)
        if existing is not None:
            return existing
        node = ModuleNode(id=node_id, is_external=is_external)
        self.nodes[node_id] = node
        return node

    def add_edge(self, edge: DependencyEdge) -> None:
        if edge.source not in self.nodes:
            raise ValueError(f"edge source is not a node: {edge.source}")
        if not edge.is_external and edge.target not in self.nodes:
            raise ValueError(f"internal edge target is not a node: {edge.target}")
        self.edges.append(edge)

    @property
    def internal_edges(self) -> list[DependencyEdge]:
        return [e for e in self.edges if not e.is_external]

    @property
    def external_edges(self) -> list[DependencyEdge]:
        return [e for e in self.edges if e.is_external]

    def dependencies_of(self, node_id: str) -> list[str]:
        """Distinct targets of ``node_id`` in edge order."""
        return list(dict.fromkeys(e.target for e in self.edges if e.source == node_id))

    def dependents_of(self, node_id: str) -> list[str]:
        """Distinct sources that depend on ``node_id`` in edge order."""
        return list(dict.fromkeys(e.source for e in self.edges if e.target == node_id))

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectPath": self.project_path,
            "nodes": [n.to_dict() for n in self.nodes.values()],
            "edges": [e.to_dict() for e in self.edges],
            "metrics": self.metrics.to_dict(),
        }
