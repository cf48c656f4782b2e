"""Tests for graph/cycles.py - iterative circular dependency detection."""

from modgraph.graph import DependencyEdge, cycle_key, find_cycles_in


def _edges(*pairs):
    return [DependencyEdge(source, target) for source, target in pairs]


class TestFindCycles:
    def test_triangle(self):
        cycles = find_cycles_in(["A", "B", "C"], _edges(("A", "B"), ("B", "C"), ("C", "A")))
        assert cycles == [["A", "B", "C", "A"]]

    def test_acyclic(self):
        assert find_cycles_in(["A", "B", "C"], _edges(("A", "B"), ("B", "C"), ("A", "C"))) == []

    def test_empty(self):
        assert find_cycles_in([], []) == []

    def test_self_loop(self):
        assert find_cycles_in(["A"], _edges(("A", "A"))) == [["A", "A"]]

    def test_parallel_edges_report_cycle_once(self):
        edges = _edges(("A", "B"), ("A", "B"), ("B", "A"))
        assert find_cycles_in(["A", "B"], edges) == [["A", "B", "A"]]

    def test_cycle_not_starting_at_root(self):
        edges = _edges(("R", "A"), ("A", "B"), ("B", "A"))
        assert find_cycles_in(["R", "A", "B"], edges) == [["A", "B", "A"]]

    def test_two_independent_cycles(self):
        edges = _edges(("A", "B"), ("B", "A"), ("C", "D"), ("D", "C"))
        cycles = find_cycles_in(["A", "B", "C", "D"], edges)
        assert cycles == [["A", "B", "A"], ["C", "D", "C"]]

    def test_external_edges_ignored(self):
        edges = [
            DependencyEdge("A", "react", is_external=True),
            DependencyEdge("react", "A", is_external=True),
        ]
        assert find_cycles_in(["A"], edges) == []

    def test_root_order_follows_nodes(self):
        edges = _edges(("A", "B"), ("B", "A"))
        assert find_cycles_in(["B", "A"], edges) == [["B", "A", "B"]]

    def test_deep_chain_does_not_recurse(self):
        size = 5000
        nodes = [f"m{i}" for i in range(size)]
        pairs = [(nodes[i], nodes[i + 1]) for i in range(size - 1)] + [(nodes[-1], nodes[0])]
        cycles = find_cycles_in(nodes, _edges(*pairs))
        assert len(cycles) == 1
        assert len(cycles[0]) == size + 1


class TestCycleKey:
    def test_rotation_and_direction_ignored(self):
        assert cycle_key(["A", "B", "C", "A"]) == cycle_key(["B", "C", "A", "B"])
        assert cycle_key(["A", "B", "A"]) == cycle_key(["B", "A", "B"])

    def test_different_nodes_differ(self):
        assert cycle_key(["A", "B", "A"]) != cycle_key(["A", "C", "A"])
