"""
Tests for the flow graph builder.

Bad rules are absorbed at build time: the graph omits the broken edge and
lists a diagnostic, it never raises.
"""

import pytest

from surveyflow.codec import encode_rule
from surveyflow.diagnostics import DiagnosticKind
from surveyflow.graph import FlowGraph, build_flow_graph, entry_point
from surveyflow.model import AnswerKind, Edge, EdgeKind, Question, TransitionRule


def choice(qid, options, order_index=0, rule=None):
    return Question(id=qid, text=f"Q{qid}", kind=AnswerKind.CHOICE, options=options,
                    order_index=order_index, rule=encode_rule(rule) if rule else None)


def text(qid, order_index=0, rule=None):
    return Question(id=qid, text=f"Q{qid}", order_index=order_index,
                    rule=encode_rule(rule) if rule else None)


class TestBuild:
    """Test build_flow_graph."""

    def test_no_rules_no_edges(self):
        graph = build_flow_graph([text(1, 0), text(2, 1)])
        assert len(graph) == 2
        assert graph.edges == []
        assert graph.diagnostics == []

    def test_default_and_branch_edges(self):
        graph = build_flow_graph([
            choice(1, ["yes", "no"], 0, TransitionRule(default_next_id=2, branches={"yes": 3})),
            text(2, 1),
            text(3, 2),
        ])
        assert Edge(1, 2) in graph.edges
        assert Edge(1, 3, EdgeKind.BRANCH, "yes") in graph.edges
        assert len(graph.edges) == 2

    def test_neighbors_lookup(self):
        graph = build_flow_graph([
            choice(1, ["yes", "no"], 0, TransitionRule(default_next_id=2, branches={"yes": 3})),
            text(2, 1),
            text(3, 2),
        ])
        assert graph.neighbors(1, "yes") == 3
        assert graph.neighbors(1, EdgeKind.DEFAULT) == 2
        assert graph.neighbors(1, "no") is None
        assert graph.neighbors(2, EdgeKind.DEFAULT) is None

    def test_dangling_default_dropped(self):
        """A rule pointing at a missing question must not break the build."""
        graph = build_flow_graph([text(1, 0, TransitionRule(default_next_id=99)), text(2, 1)])
        assert graph.edges == []
        assert [d.kind for d in graph.diagnostics] == [DiagnosticKind.DANGLING_EDGE]
        assert graph.diagnostics[0].question_id == 1

    def test_dangling_branch_dropped(self):
        graph = build_flow_graph([
            choice(1, ["yes", "no"], 0, TransitionRule(branches={"yes": 99, "no": 2})),
            text(2, 1),
        ])
        assert graph.edges == [Edge(1, 2, EdgeKind.BRANCH, "no")]
        assert graph.diagnostics[0].kind is DiagnosticKind.DANGLING_EDGE

    def test_orphaned_branch_dropped(self):
        """Branches on options that no longer exist are dropped."""
        graph = build_flow_graph([
            choice(1, ["yes", "no"], 0, TransitionRule(branches={"maybe": 2})),
            text(2, 1),
        ])
        assert graph.edges == []
        assert graph.diagnostics[0].kind is DiagnosticKind.ORPHANED_BRANCH
        # The decoded rule itself still has the stale key.
        assert graph.rules[1].branches == {"maybe": 2}

    def test_branches_on_text_question_ignored(self):
        graph = build_flow_graph([text(1, 0, TransitionRule(branches={"yes": 2})), text(2, 1)])
        assert graph.edges == []
        assert graph.diagnostics[0].kind is DiagnosticKind.ORPHANED_BRANCH

    def test_malformed_rule_absorbed(self):
        q = Question(id=1, text="Q", rule="{not json")
        graph = build_flow_graph([q, text(2, 1)])
        assert graph.edges == []
        assert graph.diagnostics[0].kind is DiagnosticKind.RULE_DECODE_ERROR

    def test_duplicate_question_ids(self):
        graph = build_flow_graph([text(1, 0), Question(id=1, text="again", order_index=1)])
        assert len(graph) == 1
        assert graph.question(1).text == "Q1"
        assert graph.diagnostics[0].kind is DiagnosticKind.DUPLICATE_QUESTION

    def test_self_loop_allowed(self):
        graph = build_flow_graph([text("A", 0, TransitionRule(default_next_id="A"))])
        assert graph.neighbors("A", EdgeKind.DEFAULT) == "A"

    def test_branch_edges_follow_option_order(self):
        graph = build_flow_graph([
            choice(1, ["a", "b", "c"], 0, TransitionRule(branches={"c": 2, "a": 3})),
            text(2, 1),
            text(3, 2),
        ])
        assert [e.option for e in graph.outgoing(1)] == ["a", "c"]
        assert [e.from_id for e in graph.incoming(3)] == [1]


class TestFlowGraphInvariants:
    """The constructor refuses graphs that break the edge invariants."""

    def test_two_defaults_rejected(self):
        with pytest.raises(ValueError):
            FlowGraph([text(1), text(2, 1), text(3, 2)], [Edge(1, 2), Edge(1, 3)])

    def test_unknown_endpoint_rejected(self):
        with pytest.raises(ValueError):
            FlowGraph([text(1)], [Edge(1, 2)])


class TestLinearSuccessor:
    """Test the order_index fallback lookup."""

    def test_next_by_order_index(self):
        graph = build_flow_graph([text("C", 2), text("A", 0), text("B", 1)])
        assert graph.linear_successor("A") == "B"
        assert graph.linear_successor("B") == "C"
        assert graph.linear_successor("C") is None

    def test_gap_in_order(self):
        graph = build_flow_graph([text(1, 0), text(2, 2)])
        assert graph.linear_successor(1) is None

    def test_unknown_question(self):
        assert build_flow_graph([text(1)]).linear_successor(42) is None


class TestEntryPoint:
    """Test entry point selection."""

    def test_empty(self):
        assert entry_point([]) is None

    def test_order_zero(self):
        assert entry_point([text(2, 1), text(1, 0)]) == 1

    def test_order_zero_routed_into_is_skipped(self):
        """A question other questions route into is not the start."""
        questions = [
            text(1, 0),
            text(2, 0, TransitionRule(default_next_id=1)),
        ]
        assert entry_point(questions) == 2

    def test_self_loop_does_not_disqualify(self):
        questions = [text("A", 0, TransitionRule(default_next_id="A"))]
        assert entry_point(questions) == "A"

    def test_fallback_to_first_question(self):
        assert entry_point([text(5, 3), text(6, 4)]) == 5
