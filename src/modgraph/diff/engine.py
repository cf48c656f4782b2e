"""Diff engine: classifies structural changes between two graph snapshots.

The algorithm works in six passes, each comparing one aspect of the graphs:
  1. Edges, by (source, target, binding kind) identity.
  2. Cycles, as sets of node ids (rotation and direction of the path ignored).
  3. Average coupling, above a noise threshold.
  4. External targets.
  5. Hotspots.
  6. Layer violation counts.

Every change gets its impact from a fixed table; the summary and
recommendations are derived from the change list alone.
"""

import os
from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Union

from ..config import DEFAULT_THRESHOLDS, ThresholdConfig
from ..graph.cycles import cycle_key
from ..graph.layers import find_layer_violations
from ..graph.models import DependencyEdge
from ..logging_config import get_logger
from ..snapshot.models import GraphSnapshot
from .impact import impact_for
from .models import (
    ArchitecturalChange,
    ChangeCategory,
    ChangeDetails,
    ChangeType,
    DiffReport,
    ImpactSummary,
    MetricChange,
    Severity,
)
from .recommendations import generate_recommendations

logger = get_logger(__name__)


class _ChangeLog:
    """Collects changes and numbers them ``change-1``, ``change-2``, ..."""

    def __init__(self, root: str):
        self.root = root
        self.changes: list[ArchitecturalChange] = []

    def display(self, module_id: str) -> str:
        if self.root and os.path.isabs(module_id):
            try:
                return os.path.relpath(module_id, self.root).replace("\\", "/")
            except ValueError:
                return module_id
        return module_id

    def add(
        self,
        change_type: ChangeType,
        severity: Severity,
        category: ChangeCategory,
        description: str,
        before=None,
        after=None,
        modules: Optional[list[str]] = None,
    ) -> None:
        self.changes.append(
            ArchitecturalChange(
                id=f"change-{len(self.changes) + 1}",
                type=change_type,
                severity=severity,
                category=category,
                description=description,
                details=ChangeDetails(before=before, after=after, modules=list(modules or [])),
                impact=impact_for(change_type),
            )
        )


# ── Passes ──────────────────────────────────────────────────────────────────


def _unique_edges(edges: list[DependencyEdge]) -> dict[tuple, DependencyEdge]:
    unique: dict[tuple, DependencyEdge] = {}
    for edge in edges:
        unique.setdefault(edge.identity, edge)
    return unique


def _diff_edges(log: _ChangeLog, baseline: GraphSnapshot, current: GraphSnapshot) -> None:
    before = _unique_edges(baseline.graph.edges)
    after = _unique_edges(current.graph.edges)

    for key, edge in after.items():
        if key in before:
            continue
        log.add(
            ChangeType.DEPENDENCY_ADDED,
            Severity.MEDIUM if edge.is_external else Severity.LOW,
            ChangeCategory.DEPENDENCIES,
            f"Added dependency: {log.display(edge.source)} -> {log.display(edge.target)}"
            f" ({edge.binding_kind.value})",
            after=edge.to_dict(),
            modules=[edge.source, edge.target],
        )

    for key, edge in before.items():
        if key in after:
            continue
        log.add(
            ChangeType.DEPENDENCY_REMOVED,
            Severity.MEDIUM if edge.is_external else Severity.LOW,
            ChangeCategory.DEPENDENCIES,
            f"Removed dependency: {log.display(edge.source)} -> {log.display(edge.target)}"
            f" ({edge.binding_kind.value})",
            before=edge.to_dict(),
            modules=[edge.source, edge.target],
        )


def _diff_cycles(log: _ChangeLog, baseline: GraphSnapshot, current: GraphSnapshot) -> None:
    before = {cycle_key(c): c for c in baseline.metrics.cycles}
    after = {cycle_key(c): c for c in current.metrics.cycles}

    for key, cycle in after.items():
        if key in before:
            continue
        path = " -> ".join(log.display(m) for m in cycle)
        log.add(
            ChangeType.CIRCULAR_DEPENDENCY_INTRODUCED,
            Severity.CRITICAL if len(key) > 2 else Severity.HIGH,
            ChangeCategory.ARCHITECTURE,
            f"New circular dependency: {path}",
            before=len(before),
            after=len(after),
            modules=sorted(key),
        )

    for key, cycle in before.items():
        if key in after:
            continue
        path = " -> ".join(log.display(m) for m in cycle)
        log.add(
            ChangeType.CIRCULAR_DEPENDENCY_RESOLVED,
            Severity.LOW,
            ChangeCategory.ARCHITECTURE,
            f"Circular dependency resolved: {path}",
            before=len(before),
            after=len(after),
            modules=sorted(key),
        )


def _coupling_severity(magnitude: float) -> Severity:
    if magnitude > 2:
        return Severity.HIGH
    if magnitude > 1:
        return Severity.MEDIUM
    return Severity.LOW


def _diff_coupling(
    log: _ChangeLog,
    baseline: GraphSnapshot,
    current: GraphSnapshot,
    thresholds: ThresholdConfig,
) -> None:
    before = baseline.metrics.average_coupling
    after = current.metrics.average_coupling
    delta = round(after - before, 1)
    if abs(delta) <= thresholds.coupling_change_threshold:
        return

    if delta > 0:
        log.add(
            ChangeType.COUPLING_INCREASED,
            _coupling_severity(delta),
            ChangeCategory.COUPLING,
            f"Average coupling increased by {delta:.1f} dependencies per module",
            before=before,
            after=after,
        )
    else:
        log.add(
            ChangeType.COUPLING_DECREASED,
            Severity.LOW,
            ChangeCategory.COUPLING,
            f"Average coupling decreased by {abs(delta):.1f} dependencies per module",
            before=before,
            after=after,
        )


def _diff_sets(
    log: _ChangeLog,
    before: list[str],
    after: list[str],
    added: tuple[ChangeType, Severity, ChangeCategory, str],
    removed: tuple[ChangeType, Severity, ChangeCategory, str],
) -> None:
    before_set, after_set = set(before), set(after)
    for item in after:
        if item not in before_set:
            change_type, severity, category, label = added
            log.add(
                change_type,
                severity,
                category,
                f"{label}: {log.display(item)}",
                before=len(before_set),
                after=len(after_set),
                modules=[item],
            )
    for item in before:
        if item not in after_set:
            change_type, severity, category, label = removed
            log.add(
                change_type,
                severity,
                category,
                f"{label}: {log.display(item)}",
                before=len(before_set),
                after=len(after_set),
                modules=[item],
            )


def _diff_layers(log: _ChangeLog, baseline: GraphSnapshot, current: GraphSnapshot) -> None:
    before_pairs = find_layer_violations(baseline.graph.edges)
    after_pairs = find_layer_violations(current.graph.edges)
    before_set, after_set = set(before_pairs), set(after_pairs)
    before, after = len(before_set), len(after_set)

    # Pairs, not counts: a swapped violation leaves the count unchanged
    new_pairs = [p for p in after_pairs if p not in before_set]
    if new_pairs:
        increase = len(new_pairs)
        log.add(
            ChangeType.LAYER_VIOLATION_INTRODUCED,
            Severity.HIGH if increase > 2 else Severity.MEDIUM,
            ChangeCategory.ARCHITECTURE,
            f"{increase} new layer {'violation' if increase == 1 else 'violations'} introduced",
            before=before,
            after=after,
            modules=list(dict.fromkeys(m for pair in new_pairs for m in pair)),
        )

    gone = [p for p in before_pairs if p not in after_set]
    if gone:
        decrease = len(gone)
        log.add(
            ChangeType.LAYER_VIOLATION_RESOLVED,
            Severity.LOW,
            ChangeCategory.ARCHITECTURE,
            f"{decrease} layer {'violation' if decrease == 1 else 'violations'} resolved",
            before=before,
            after=after,
            modules=list(dict.fromkeys(m for pair in gone for m in pair)),
        )


# ── Summary ─────────────────────────────────────────────────────────────────


def summarize_impact(
    changes: list[ArchitecturalChange], baseline: GraphSnapshot, current: GraphSnapshot
) -> ImpactSummary:
    severity_counts = Counter(c.severity for c in changes)
    category_counts = Counter(c.category for c in changes)
    old, new = baseline.metrics, current.metrics

    return ImpactSummary(
        total_changes=len(changes),
        by_severity={s.value: severity_counts.get(s, 0) for s in Severity},
        by_category={c.value: category_counts.get(c, 0) for c in ChangeCategory},
        health_change=MetricChange(old.health_score, new.health_score),
        key_metrics={
            "circularDependencies": MetricChange(len(old.cycles), len(new.cycles)),
            "averageCoupling": MetricChange(old.average_coupling, new.average_coupling),
            "externalDependencies": MetricChange(old.external_edges, new.external_edges),
            "moduleCount": MetricChange(old.total_nodes, new.total_nodes),
        },
    )


# ── Public API ──────────────────────────────────────────────────────────────


def diff_snapshots(
    baseline: GraphSnapshot,
    current: GraphSnapshot,
    thresholds: Optional[ThresholdConfig] = None,
) -> DiffReport:
    """Compare two snapshots and return classified changes with impact and advice.

    Diffing a snapshot against itself yields no changes and a zero health delta.
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    log = _ChangeLog(current.graph.project_path or baseline.graph.project_path)

    _diff_edges(log, baseline, current)
    _diff_cycles(log, baseline, current)
    _diff_coupling(log, baseline, current, thresholds)
    _diff_sets(
        log,
        baseline.metrics.external_targets,
        current.metrics.external_targets,
        added=(
            ChangeType.EXTERNAL_DEPENDENCY_ADDED,
            Severity.MEDIUM,
            ChangeCategory.EXTERNAL,
            "New external dependency",
        ),
        removed=(
            ChangeType.EXTERNAL_DEPENDENCY_REMOVED,
            Severity.LOW,
            ChangeCategory.EXTERNAL,
            "External dependency removed",
        ),
    )
    _diff_sets(
        log,
        baseline.metrics.hotspots,
        current.metrics.hotspots,
        added=(
            ChangeType.HOTSPOT_CREATED,
            Severity.MEDIUM,
            ChangeCategory.COMPLEXITY,
            "New complexity hotspot",
        ),
        removed=(
            ChangeType.HOTSPOT_RESOLVED,
            Severity.LOW,
            ChangeCategory.COMPLEXITY,
            "Complexity hotspot resolved",
        ),
    )
    _diff_layers(log, baseline, current)

    changes = log.changes
    impact = summarize_impact(changes, baseline, current)
    logger.info(
        "Diff %s..%s: %d changes, health %+.1f",
        baseline.ref,
        current.ref,
        len(changes),
        impact.health_change.delta,
    )

    return DiffReport(
        baseline_ref=baseline.ref,
        current_ref=current.ref,
        generated_at=datetime.now(timezone.utc),
        baseline_metrics=baseline.metrics,
        current_metrics=current.metrics,
        changes=changes,
        impact=impact,
        recommendations=generate_recommendations(changes),
    )


def filter_by_severity(report: DiffReport, min_severity: Union[Severity, str]) -> DiffReport:
    """Copy of ``report`` keeping only changes at or above ``min_severity``.

    Recommendations keep only the change ids that survive and are dropped when
    none do. Metrics and the impact summary describe the full diff and are
    left unchanged.
    """
    if isinstance(min_severity, str):
        min_severity = Severity.parse(min_severity)

    kept = [c for c in report.changes if c.severity.rank >= min_severity.rank]
    kept_ids = {c.id for c in kept}

    recommendations = []
    for recommendation in report.recommendations:
        addresses = [a for a in recommendation.addresses if a in kept_ids]
        if addresses:
            recommendations.append(replace(recommendation, addresses=addresses))

    return replace(report, changes=kept, recommendations=recommendations)
