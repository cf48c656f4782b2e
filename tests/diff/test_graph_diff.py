"""Tests for diff/engine.py - change classification between snapshots."""

import pytest

from modgraph.diff import (
    IMPACT_TABLE,
    ChangeCategory,
    ChangeType,
    Severity,
    diff_snapshots,
    filter_by_severity,
)
from modgraph.diff.engine import _coupling_severity
from modgraph.graph import DependencyEdge, DependencyGraph, find_cycles
from modgraph.graph.metrics import compute_graph_metrics
from modgraph.snapshot import GraphSnapshot

A = "/p/src/a.ts"
B = "/p/src/b.ts"
C = "/p/src/c.ts"
D = "/p/src/d.ts"


def make_snapshot(ref, edges, nodes=(), external=()):
    """Snapshot from (source, target) pairs; ``external`` pairs target packages."""
    graph = DependencyGraph(project_path="/p")
    for node in nodes:
        graph.add_node(node)
    for source, target in edges:
        graph.add_node(source)
        graph.add_node(target)
        graph.add_edge(DependencyEdge(source, target))
    for source, package in external:
        graph.add_node(source)
        graph.add_edge(DependencyEdge(source, package, is_external=True))
    graph.metrics = compute_graph_metrics(graph, find_cycles(graph))
    return GraphSnapshot(ref=ref, graph=graph)


class TestIdempotence:
    def test_same_snapshot_has_no_changes(self):
        snapshot = make_snapshot("s", [(A, B), (B, C), (C, A)], external=[(A, "react")])
        report = diff_snapshots(snapshot, snapshot)
        assert report.changes == []
        assert report.recommendations == []
        assert report.impact.health_change.delta == 0
        assert report.impact.total_changes == 0


class TestCycleChanges:
    def test_two_node_cycle_introduced(self):
        baseline = make_snapshot("main", [(A, B)])
        current = make_snapshot("HEAD", [(A, B), (B, A)])
        report = diff_snapshots(baseline, current)

        (cycle,) = report.changes_of(ChangeType.CIRCULAR_DEPENDENCY_INTRODUCED)
        assert cycle.severity is Severity.HIGH
        assert cycle.category is ChangeCategory.ARCHITECTURE
        assert cycle.details.modules == sorted([A, B])
        health = report.impact.health_change
        assert (health.before, health.after, health.delta) == (100.0, 90.0, -10.0)

        (added,) = report.changes_of(ChangeType.DEPENDENCY_ADDED)
        assert added.severity is Severity.LOW
        assert added.details.after["from"] == B

    def test_larger_cycle_is_critical(self):
        baseline = make_snapshot("main", [(A, B), (B, C)])
        current = make_snapshot("HEAD", [(A, B), (B, C), (C, A)])
        report = diff_snapshots(baseline, current)
        (cycle,) = report.changes_of(ChangeType.CIRCULAR_DEPENDENCY_INTRODUCED)
        assert cycle.severity is Severity.CRITICAL
        assert report.recommendations[0].title == "Address Critical Architectural Issues"
        assert report.recommendations[0].addresses == [cycle.id]

    def test_rotated_cycle_is_same_cycle(self):
        baseline = make_snapshot("main", [(A, B), (B, C), (C, A)], nodes=[A, B, C])
        current = make_snapshot("HEAD", [(A, B), (B, C), (C, A)], nodes=[B, C, A])
        assert baseline.metrics.cycles != current.metrics.cycles
        assert diff_snapshots(baseline, current).changes == []

    def test_cycle_resolved(self):
        baseline = make_snapshot("main", [(A, B), (B, A)])
        current = make_snapshot("HEAD", [(A, B)], nodes=[A, B])
        report = diff_snapshots(baseline, current)
        (resolved,) = report.changes_of(ChangeType.CIRCULAR_DEPENDENCY_RESOLVED)
        assert resolved.severity is Severity.LOW
        titles = [r.title for r in report.recommendations]
        assert "Continue Good Practices" in titles


class TestEdgeChanges:
    def test_external_edge_is_medium(self):
        baseline = make_snapshot("main", [(A, B)])
        current = make_snapshot("HEAD", [(A, B)], external=[(A, "lodash")])
        report = diff_snapshots(baseline, current)

        (added,) = report.changes_of(ChangeType.DEPENDENCY_ADDED)
        assert added.severity is Severity.MEDIUM
        (package,) = report.changes_of(ChangeType.EXTERNAL_DEPENDENCY_ADDED)
        assert package.details.modules == ["lodash"]
        assert package.category is ChangeCategory.EXTERNAL
        assert [r.title for r in report.recommendations] == ["Review New External Dependencies"]

    def test_edge_removed(self):
        baseline = make_snapshot("main", [(A, B), (A, C)])
        current = make_snapshot("HEAD", [(A, B)], nodes=[A, B, C])
        (removed,) = diff_snapshots(baseline, current).changes_of(ChangeType.DEPENDENCY_REMOVED)
        assert removed.details.before["to"] == C
        assert removed.impact.overall_score == 2

    def test_parallel_edges_are_one_identity(self):
        baseline = make_snapshot("main", [(A, B)])
        current = make_snapshot("HEAD", [(A, B), (A, B)])
        assert diff_snapshots(baseline, current).changes_of(ChangeType.DEPENDENCY_ADDED) == []


class TestCouplingChanges:
    def test_severity_by_magnitude(self):
        assert _coupling_severity(2.5) is Severity.HIGH
        assert _coupling_severity(1.5) is Severity.MEDIUM
        assert _coupling_severity(0.6) is Severity.LOW

    def test_small_change_ignored(self):
        baseline = make_snapshot("main", [], nodes=[A, B])
        current = make_snapshot("HEAD", [(A, B)])
        report = diff_snapshots(baseline, current)
        assert report.changes_of(ChangeType.COUPLING_INCREASED) == []

    def test_coupling_increase_and_hotspot(self):
        baseline = make_snapshot("main", [], nodes=[A, B, C, D])
        current = make_snapshot("HEAD", [(A, B), (A, C), (A, D), (B, C)])
        report = diff_snapshots(baseline, current)

        (coupling,) = report.changes_of(ChangeType.COUPLING_INCREASED)
        assert coupling.severity is Severity.LOW
        assert (coupling.details.before, coupling.details.after) == (0.0, 1.0)
        (hotspot,) = report.changes_of(ChangeType.HOTSPOT_CREATED)
        assert hotspot.details.modules == [A]
        titles = [r.title for r in report.recommendations]
        assert "Reduce Module Coupling" in titles
        assert "Split Complexity Hotspots" in titles

    def test_coupling_decrease(self):
        baseline = make_snapshot("main", [(A, B), (A, C), (B, C), (C, D)])
        current = make_snapshot("HEAD", [], nodes=[A, B, C, D])
        (decrease,) = diff_snapshots(baseline, current).changes_of(ChangeType.COUPLING_DECREASED)
        assert decrease.severity is Severity.LOW


class TestLayerChanges:
    def test_violation_introduced(self):
        ui = "/p/src/components/Button.tsx"
        service = "/p/src/services/api.ts"
        data = "/p/src/db/user.ts"
        baseline = make_snapshot("main", [(ui, service), (service, data)])
        current = make_snapshot("HEAD", [(ui, service), (service, data), (ui, data)])
        report = diff_snapshots(baseline, current)

        (violation,) = report.changes_of(ChangeType.LAYER_VIOLATION_INTRODUCED)
        assert violation.severity is Severity.MEDIUM
        assert violation.details.modules == [ui, data]
        assert "Fix Layer Violations" in [r.title for r in report.recommendations]

        back = diff_snapshots(current, baseline)
        assert len(back.changes_of(ChangeType.LAYER_VIOLATION_RESOLVED)) == 1

    def test_swapped_violation_with_same_count(self):
        ui = "/p/src/components/Button.tsx"
        old_data = "/p/src/db/user.ts"
        new_data = "/p/src/models/order.ts"
        baseline = make_snapshot("main", [(ui, old_data)], nodes=[new_data])
        current = make_snapshot("HEAD", [(ui, new_data)], nodes=[old_data])
        assert baseline.metrics.layer_violations == current.metrics.layer_violations == 1

        report = diff_snapshots(baseline, current)

        (introduced,) = report.changes_of(ChangeType.LAYER_VIOLATION_INTRODUCED)
        assert introduced.details.modules == [ui, new_data]
        assert (introduced.details.before, introduced.details.after) == (1, 1)
        (resolved,) = report.changes_of(ChangeType.LAYER_VIOLATION_RESOLVED)
        assert resolved.details.modules == [ui, old_data]
        assert resolved.severity is Severity.LOW


class TestReport:
    def _report(self):
        baseline = make_snapshot("main", [(A, B)])
        current = make_snapshot("HEAD", [(A, B), (B, A)])
        return diff_snapshots(baseline, current)

    def test_change_ids_are_sequential(self):
        report = self._report()
        assert [c.id for c in report.changes] == [
            f"change-{n}" for n in range(1, len(report.changes) + 1)
        ]

    def test_impact_from_table(self):
        for change in self._report().changes:
            assert change.impact == IMPACT_TABLE[change.type]
        assert IMPACT_TABLE[ChangeType.CIRCULAR_DEPENDENCY_INTRODUCED].overall_score == -6

    def test_summary(self):
        impact = self._report().impact
        assert impact.total_changes == 2
        assert impact.by_severity == {"low": 1, "medium": 0, "high": 1, "critical": 0}
        assert impact.by_category["architecture"] == 1
        assert set(impact.key_metrics) == {
            "circularDependencies",
            "averageCoupling",
            "externalDependencies",
            "moduleCount",
        }
        assert impact.key_metrics["circularDependencies"].delta == 1

    def test_has_regressions(self):
        assert self._report().has_regressions

    def test_to_dict(self):
        data = self._report().to_dict()
        assert data["baseline"] == "main"
        assert data["current"] == "HEAD"
        assert set(data["metrics"]) == {"baseline", "current"}
        assert data["impact"]["healthChange"] == {"before": 100.0, "after": 90.0, "delta": -10.0}
        assert data["changes"][0]["impact"]["overallScore"] == -2
        assert data["recommendations"][0]["id"] == "rec-1"


class TestFilterBySeverity:
    def test_keeps_changes_at_or_above(self):
        report = diff_snapshots(
            make_snapshot("main", [(A, B)]), make_snapshot("HEAD", [(A, B), (B, A)])
        )
        filtered = filter_by_severity(report, "high")
        assert [c.type for c in filtered.changes] == [ChangeType.CIRCULAR_DEPENDENCY_INTRODUCED]
        assert filtered.impact == report.impact
        assert filtered.current_metrics is report.current_metrics
        kept = {c.id for c in filtered.changes}
        for recommendation in filtered.recommendations:
            assert set(recommendation.addresses) <= kept
        assert len(report.changes) == 2

    def test_drops_recommendations_without_changes(self):
        report = diff_snapshots(
            make_snapshot("main", [(A, B)]), make_snapshot("HEAD", [(A, B), (B, A)])
        )
        filtered = filter_by_severity(report, Severity.CRITICAL)
        assert filtered.changes == []
        assert filtered.recommendations == []

    def test_unknown_severity(self):
        with pytest.raises(ValueError):
            Severity.parse("urgent")
