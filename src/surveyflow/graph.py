"""
Flow Graph — questions plus the typed edges decoded from their rules.

Built once from persisted questions, then read-only. A built graph may be
shared by any number of respondent sessions without locking.

Build algorithm (per question, in input order):
    1. Decode its rule (never raises; malformed -> empty rule)
    2. Emit a DEFAULT edge if the default target is a known question
    3. For CHOICE questions, emit one BRANCH edge per branch whose option
       is current and whose target is a known question

Everything else is dropped and reported as a diagnostic. Cycles are legal.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from surveyflow.codec import decode_rule
from surveyflow.diagnostics import Diagnostic, DiagnosticKind, record
from surveyflow.model import Edge, EdgeKind, Question, QuestionId, TransitionRule

logger = logging.getLogger(__name__)

EdgeKey = Union[EdgeKind, str]


class FlowGraph:
    """
    Directed graph of questions.

    INVARIANTS:
        - At most one DEFAULT edge per source question
        - At most one BRANCH edge per (source question, option)
        - Edges only reference questions present in the graph
    """

    def __init__(
        self,
        questions: Sequence[Question],
        edges: Sequence[Edge],
        rules: Optional[Dict[QuestionId, TransitionRule]] = None,
        diagnostics: Optional[List[Diagnostic]] = None,
    ):
        self._questions: Dict[QuestionId, Question] = {}
        for q in questions:
            if q.id in self._questions:
                raise ValueError(f"Duplicate question id: {q.id!r}")
            self._questions[q.id] = q

        # First question in input order wins an order_index slot.
        self._by_order: Dict[int, QuestionId] = {}
        for q in self._questions.values():
            self._by_order.setdefault(q.order_index, q.id)

        self._edges: List[Edge] = []
        self._adjacency: Dict[Tuple[QuestionId, EdgeKey], QuestionId] = {}
        self._outgoing: Dict[QuestionId, List[Edge]] = defaultdict(list)
        self._incoming: Dict[QuestionId, List[Edge]] = defaultdict(list)
        for edge in edges:
            if edge.from_id not in self._questions or edge.to_id not in self._questions:
                raise ValueError(f"Edge references unknown question: {edge}")
            slot = (edge.from_id, edge.key)
            if slot in self._adjacency:
                raise ValueError(f"Duplicate edge for {edge.from_id!r} via {edge.key!r}")
            self._adjacency[slot] = edge.to_id
            self._edges.append(edge)
            self._outgoing[edge.from_id].append(edge)
            self._incoming[edge.to_id].append(edge)

        self.rules: Dict[QuestionId, TransitionRule] = dict(rules or {})
        self.diagnostics: List[Diagnostic] = list(diagnostics or [])

    def __len__(self) -> int:
        return len(self._questions)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._questions

    @property
    def questions(self) -> List[Question]:
        return list(self._questions.values())

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    def question(self, question_id: QuestionId) -> Optional[Question]:
        return self._questions.get(question_id)

    def outgoing(self, question_id: QuestionId) -> List[Edge]:
        return list(self._outgoing.get(question_id, []))

    def incoming(self, question_id: QuestionId) -> List[Edge]:
        return list(self._incoming.get(question_id, []))

    def neighbors(self, question_id: QuestionId, via: EdgeKey) -> Optional[QuestionId]:
        """
        Follow one edge.

        Args:
            question_id: Source question
            via: Option value (branch) or EdgeKind.DEFAULT

        Returns:
            Target question id, or None if no such edge exists
        """
        return self._adjacency.get((question_id, via))

    def linear_successor(self, question_id: QuestionId) -> Optional[QuestionId]:
        """Question whose order_index is one past `question_id`'s, if any."""
        q = self._questions.get(question_id)
        if q is None:
            return None
        return self._by_order.get(q.order_index + 1)

    def entry_point(self) -> Optional[QuestionId]:
        """
        Where a respondent starts.

        The first question (input order) with order_index 0 that no other
        question routes into; otherwise the first question; None if empty.
        """
        if not self._questions:
            return None
        for q in self._questions.values():
            if q.order_index != 0:
                continue
            routed_into = any(e.from_id != q.id for e in self._incoming.get(q.id, []))
            if not routed_into:
                return q.id
        return next(iter(self._questions))


def build_flow_graph(questions: Iterable[Question]) -> FlowGraph:
    """
    Assemble a FlowGraph from persisted questions.

    Never raises on bad rules: malformed encodings, dangling targets and
    orphaned branch options are dropped and listed in `graph.diagnostics`.
    """
    diagnostics: List[Diagnostic] = []

    unique: List[Question] = []
    seen: Set[QuestionId] = set()
    for q in questions:
        if q.id in seen:
            record(diagnostics, DiagnosticKind.DUPLICATE_QUESTION,
                   "Duplicate question id; keeping the first occurrence", q.id, logger)
            continue
        seen.add(q.id)
        unique.append(q)

    edges: List[Edge] = []
    rules: Dict[QuestionId, TransitionRule] = {}

    for q in unique:
        rule = decode_rule(q.rule, diagnostics, q.id)
        rules[q.id] = rule
        if rule.is_empty:
            continue

        if rule.default_next_id is not None:
            if rule.default_next_id in seen:
                edges.append(Edge(from_id=q.id, to_id=rule.default_next_id))
            else:
                record(diagnostics, DiagnosticKind.DANGLING_EDGE,
                       f"Default target {rule.default_next_id!r} does not exist", q.id, logger)

        if not rule.branches:
            continue
        if not q.is_choice:
            record(diagnostics, DiagnosticKind.ORPHANED_BRANCH,
                   f"Branches on a {q.kind.value} question are ignored", q.id, logger)
            continue

        for option in rule.orphaned_options(q.options):
            record(diagnostics, DiagnosticKind.ORPHANED_BRANCH,
                   f"Branch option {option!r} is not a current option", q.id, logger)

        # Option order, not rule order, so edge lists are stable.
        for option in q.options:
            if option not in rule.branches:
                continue
            target = rule.branches[option]
            if target not in seen:
                record(diagnostics, DiagnosticKind.DANGLING_EDGE,
                       f"Branch {option!r} target {target!r} does not exist", q.id, logger)
                continue
            edges.append(Edge(from_id=q.id, to_id=target, kind=EdgeKind.BRANCH, option=option))

    logger.debug("Built flow graph: %d questions, %d edges, %d diagnostics",
                 len(unique), len(edges), len(diagnostics))
    return FlowGraph(unique, edges, rules=rules, diagnostics=diagnostics)


def entry_point(questions: Sequence[Question]) -> Optional[QuestionId]:
    """Entry question of a question set (see FlowGraph.entry_point)."""
    return build_flow_graph(questions).entry_point()


__all__ = ["FlowGraph", "build_flow_graph", "entry_point", "EdgeKey"]
