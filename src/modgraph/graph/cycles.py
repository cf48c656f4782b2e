"""Circular dependency detection.

Single depth-first pass over internal edges, run iteratively with an explicit
stack so deep import chains never hit Python's recursion limit.

Completeness: each node is expanded at most once, so a cycle whose nodes were
all reached first through an already-finished subtree is not reported. This
keeps detection O(V + E); every reported cycle is a real cycle.
"""

from typing import Iterable

from .models import DependencyEdge, DependencyGraph


def find_cycles(graph: DependencyGraph) -> list[list[str]]:
    """Cycles among the graph's internal edges, as closed paths ``[A, ..., A]``."""
    return find_cycles_in(graph.nodes, graph.edges)


def find_cycles_in(nodes: Iterable[str], edges: Iterable[DependencyEdge]) -> list[list[str]]:
    """Cycles among ``edges`` starting DFS roots in ``nodes`` order.

    Neighbours are visited in edge order. Multiple edges between the same
    pair are one adjacency. Self-loops are reported as ``[A, A]``.
    """
    order = list(nodes)
    adjacency: dict[str, list[str]] = {n: [] for n in order}
    for edge in edges:
        if edge.is_external:
            continue
        targets = adjacency.setdefault(edge.source, [])
        if edge.target not in targets:
            targets.append(edge.target)
        adjacency.setdefault(edge.target, [])

    visited: set[str] = set()
    seen_paths: set[tuple[str, ...]] = set()
    cycles: list[list[str]] = []

    for root in order:
        if root in visited:
            continue

        visited.add(root)
        path: list[str] = [root]
        position: dict[str, int] = {root: 0}
        # Explicit call stack: each frame is (node, neighbor_iterator)
        call_stack = [(root, iter(adjacency[root]))]

        while call_stack:
            node, neighbors = call_stack[-1]
            pushed = False
            for neighbor in neighbors:
                if neighbor in position:
                    cycle = path[position[neighbor]:] + [neighbor]
                    key = tuple(cycle)
                    if key not in seen_paths:
                        seen_paths.add(key)
                        cycles.append(cycle)
                elif neighbor not in visited:
                    visited.add(neighbor)
                    position[neighbor] = len(path)
                    path.append(neighbor)
                    call_stack.append((neighbor, iter(adjacency[neighbor])))
                    pushed = True
                    break

            if not pushed:
                call_stack.pop()
                path.pop()
                del position[node]

    return cycles


def cycle_key(cycle: list[str]) -> frozenset[str]:
    """Order-independent identity of a cycle: its distinct node ids."""
    return frozenset(cycle)
