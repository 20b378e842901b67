"""
Flow Analyzer — read-only diagnostics for a built FlowGraph.

Produces the warnings the editor shows before a save:
    - Entry point and exit points
    - Questions no respondent can reach
    - Cycles (legal, but usually a mistake)
    - Fan-out per question
    - Anomalies absorbed while building the graph

IMPORTANT: This module does NOT modify the graph.
It only produces reports.

Reachability follows the same resolution the traversal engine uses:
explicit edges, plus the linear-order successor when a question has no
default edge.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from surveyflow.graph import FlowGraph
from surveyflow.model import EdgeKind, QuestionId


def successors(graph: FlowGraph, question_id: QuestionId) -> List[QuestionId]:
    """Every question the traversal engine could move to from `question_id`."""
    targets = [e.to_id for e in graph.outgoing(question_id)]
    if graph.neighbors(question_id, EdgeKind.DEFAULT) is None:
        linear = graph.linear_successor(question_id)
        if linear is not None:
            targets.append(linear)
    # Deduplicate, keep order
    return list(dict.fromkeys(targets))


def _find_cycle(graph: FlowGraph, start: QuestionId) -> Optional[List[QuestionId]]:
    """Iterative DFS from `start`; returns the first cycle found."""
    path: List[QuestionId] = []
    on_path: Set[QuestionId] = set()
    done: Set[QuestionId] = set()
    stack = [(start, iter(successors(graph, start)))]
    path.append(start)
    on_path.add(start)

    while stack:
        node, children = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            path.pop()
            on_path.discard(node)
            done.add(node)
            continue
        if child in on_path:
            return path[path.index(child):] + [child]
        if child not in done:
            stack.append((child, iter(successors(graph, child))))
            path.append(child)
            on_path.add(child)
    return None


@dataclass
class FlowReport:
    """Analysis report for a flow graph."""

    total_questions: int = 0
    total_edges: int = 0
    branch_edges: int = 0
    entry_point: Optional[QuestionId] = None
    exit_points: List[QuestionId] = field(default_factory=list)
    unreachable: List[QuestionId] = field(default_factory=list)
    has_cycles: bool = False
    cycle_example: Optional[List[QuestionId]] = None
    fan_out: Dict[QuestionId, int] = field(default_factory=dict)
    diagnostic_counts: Dict[str, int] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_flow(graph: FlowGraph) -> FlowReport:
    """
    Analyze a FlowGraph.

    Returns a FlowReport with structure metrics and warnings.
    """
    report = FlowReport(total_questions=len(graph), total_edges=len(graph.edges))
    report.branch_edges = sum(1 for e in graph.edges if e.kind is EdgeKind.BRANCH)
    report.entry_point = graph.entry_point()

    for q in graph.questions:
        report.fan_out[q.id] = len(successors(graph, q.id))
        if report.fan_out[q.id] == 0:
            report.exit_points.append(q.id)

    reachable: Set[QuestionId] = set()
    if report.entry_point is not None:
        stack = [report.entry_point]
        while stack:
            node = stack.pop()
            if node in reachable:
                continue
            reachable.add(node)
            stack.extend(n for n in successors(graph, node) if n not in reachable)
    report.unreachable = [q.id for q in graph.questions if q.id not in reachable]

    if report.entry_point is not None:
        cycle = _find_cycle(graph, report.entry_point)
        if cycle:
            report.has_cycles = True
            report.cycle_example = cycle

    report.diagnostic_counts = dict(Counter(d.kind.value for d in graph.diagnostics))

    if report.unreachable:
        report.add_warning(
            f"Unreachable questions: {', '.join(str(q) for q in report.unreachable)}"
        )
    if report.has_cycles:
        report.add_warning(
            f"Cycle detected: {' -> '.join(str(q) for q in report.cycle_example)}"
        )
    if report.total_questions > 0 and not report.exit_points:
        report.add_warning("No question ends the survey")
    for kind, count in sorted(report.diagnostic_counts.items()):
        report.add_warning(f"{count} {kind.replace('_', ' ')} issue(s) dropped while loading rules")

    return report


__all__ = ["FlowReport", "analyze_flow", "successors"]
