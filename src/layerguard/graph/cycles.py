"""Cycle detection over the module-to-module dependency graph."""

from __future__ import annotations

from typing import TYPE_CHECKING

from layerguard.graph.model import Layer
from layerguard.graph.rule_engine import RuleKind, Severity, Violation

if TYPE_CHECKING:
    from collections.abc import Iterable

    from layerguard.graph.model import ReferenceEdge


def normalize_cycle(path: list[str]) -> tuple[str, ...]:
    """Rotate a cycle so that its smallest member comes first.

    ``A -> B -> C`` and ``B -> C -> A`` normalize to the same tuple.  The
    path must not repeat the start node at the end.
    """
    if not path:
        return ()
    min_idx = path.index(min(path))
    return tuple(path[min_idx:] + path[:min_idx])


def module_adjacency(edges: Iterable[ReferenceEdge]) -> dict[str, set[str]]:
    """Collapse value edges between modules into ``module -> {modules}``."""
    adj: dict[str, set[str]] = {}
    for edge in edges:
        if edge.is_type_only or not edge.is_resolved:
            continue
        if edge.source.layer is not Layer.MODULE or edge.target.layer is not Layer.MODULE:
            continue
        src = edge.source.module_name
        dst = edge.target.module_name
        if src is None or dst is None or src == dst:
            continue
        adj.setdefault(src, set()).add(dst)
    return adj


def find_cycles(adj: dict[str, set[str]]) -> list[tuple[str, ...]]:
    """Return every distinct elementary cycle found by depth-first search.

    Nodes and neighbours are visited in sorted order and each cycle is
    normalized, so the result does not depend on input order.
    """
    nodes = sorted(set(adj) | {n for targets in adj.values() for n in targets})
    seen: set[tuple[str, ...]] = set()
    cycles: list[tuple[str, ...]] = []

    def visit(node: str, start: str, stack: list[str], on_stack: set[str]) -> None:
        stack.append(node)
        on_stack.add(node)
        for neighbor in sorted(adj.get(node, ())):
            if neighbor < start:
                # Cycles through smaller nodes are found from those nodes.
                continue
            if neighbor in on_stack:
                normalized = normalize_cycle(stack[stack.index(neighbor) :])
                if normalized not in seen:
                    seen.add(normalized)
                    cycles.append(normalized)
            else:
                visit(neighbor, start, stack, on_stack)
        stack.pop()
        on_stack.discard(node)

    for start in nodes:
        visit(start, start, [], set())

    return sorted(cycles)


def detect_cycles(edges: Iterable[ReferenceEdge]) -> list[Violation]:
    """Report each module cycle once as a HIGH violation."""
    violations: list[Violation] = []
    for cycle in find_cycles(module_adjacency(edges)):
        display = " → ".join([*cycle, cycle[0]])
        violations.append(
            Violation(
                rule_kind=RuleKind.CYCLE,
                severity=Severity.HIGH,
                file=None,
                cycle=cycle,
                message=f"Circular module dependency detected: {display}",
            )
        )
    return violations
