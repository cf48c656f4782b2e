"""Whole-graph metrics and the health score."""

from typing import Iterable, Optional

from ..config import DEFAULT_THRESHOLDS, ThresholdConfig
from .layers import find_layer_violations
from .models import DependencyEdge, DependencyGraph, GraphMetrics


def compute_metrics(
    nodes: Iterable[str],
    edges: list[DependencyEdge],
    cycles: list[list[str]],
    thresholds: Optional[ThresholdConfig] = None,
) -> GraphMetrics:
    """Compute metrics for a node/edge set whose cycles are already known.

    ``nodes`` order decides ties for the most connected node and the order of
    hotspots.
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    order = list(nodes)
    node_count = len(order)

    internal = [e for e in edges if not e.is_external]
    external = [e for e in edges if e.is_external]

    out_degree: dict[str, int] = {n: 0 for n in order}
    for edge in internal:
        out_degree[edge.source] = out_degree.get(edge.source, 0) + 1

    average_coupling = round(len(internal) / max(node_count, 1), 1)

    most_connected: Optional[str] = None
    best = 0
    for node_id, degree in out_degree.items():
        if degree > best:
            best = degree
            most_connected = node_id

    hotspots = [
        node_id
        for node_id, degree in out_degree.items()
        if degree > thresholds.hotspot_factor * average_coupling
        and degree >= thresholds.hotspot_min_out_degree
    ]

    external_targets = sorted({e.target for e in external})
    layer_violations = len(find_layer_violations(internal))

    metrics = GraphMetrics(
        total_nodes=node_count,
        total_edges=len(edges),
        internal_edges=len(internal),
        external_edges=len(external),
        cycles=[list(c) for c in cycles],
        average_coupling=average_coupling,
        most_connected_node=most_connected,
        hotspots=hotspots,
        layer_violations=layer_violations,
        external_targets=external_targets,
    )
    metrics.health_score = health_score(metrics, thresholds)
    return metrics


def compute_graph_metrics(
    graph: DependencyGraph, cycles: list[list[str]], thresholds: Optional[ThresholdConfig] = None
) -> GraphMetrics:
    return compute_metrics(graph.nodes, graph.edges, cycles, thresholds)


def health_score(metrics: GraphMetrics, thresholds: Optional[ThresholdConfig] = None) -> float:
    """0-100 score; 100 is a graph with no structural penalties.

    Each term is independent, so one extra cycle lowers the unclamped score by
    exactly ``cycle_penalty``.
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    external_ratio = metrics.external_edges / max(metrics.total_nodes, 1)

    score = 100.0
    score -= thresholds.cycle_penalty * len(metrics.cycles)
    score -= thresholds.coupling_penalty * max(
        0.0, metrics.average_coupling - thresholds.coupling_allowance
    )
    score -= thresholds.external_penalty * max(0.0, external_ratio - thresholds.external_allowance)
    score -= thresholds.hotspot_penalty * len(metrics.hotspots)

    return round(max(0.0, min(100.0, score)), 1)
