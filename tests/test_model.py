"""
Tests for Survey Flow Model Objects

These tests verify:
    - Basic question creation
    - Option invariants
    - Transition rule behavior (orphans, immutability)
    - Edge construction rules
"""

import pytest
from surveyflow.model import (
    AnswerKind,
    Edge,
    EdgeKind,
    Question,
    TransitionRule,
)


class TestQuestion:
    """Test Question objects."""

    def test_minimal_question(self):
        """Should create a text question with defaults."""
        q = Question(id=1, text="Any comments?")
        assert q.id == 1
        assert q.kind is AnswerKind.TEXT
        assert q.options == []
        assert q.order_index == 0
        assert q.required is False
        assert q.rule is None

    def test_choice_question(self):
        """Should store ordered options on a choice question."""
        q = Question(id="q1", text="Pick one", kind=AnswerKind.CHOICE, options=["b", "a"])
        assert q.is_choice
        assert q.options == ["b", "a"]

    def test_duplicate_options_rejected(self):
        """Options must be unique within a question."""
        with pytest.raises(ValueError, match="duplicate"):
            Question(id=1, text="Pick", kind=AnswerKind.CHOICE, options=["yes", "yes"])

    def test_options_on_text_question_rejected(self):
        """Only choice questions carry options."""
        with pytest.raises(ValueError):
            Question(id=1, text="Scale", kind=AnswerKind.SCALE, options=["1", "2"])

    def test_with_rule_returns_copy(self):
        """with_rule should not touch the original question."""
        q = Question(id=1, text="Q", kind=AnswerKind.CHOICE, options=["a"])
        updated = q.with_rule('{"nextQuestionId":2}')
        assert updated.rule == '{"nextQuestionId":2}'
        assert q.rule is None
        assert updated.options is not q.options

    def test_answer_kind_wire_values(self):
        """Kinds map onto the persisted questionType values."""
        assert AnswerKind("text") is AnswerKind.TEXT
        assert AnswerKind("scale") is AnswerKind.SCALE
        assert AnswerKind("mcq") is AnswerKind.CHOICE


class TestTransitionRule:
    """Test TransitionRule objects."""

    def test_empty_rule(self):
        assert TransitionRule().is_empty
        assert not TransitionRule(default_next_id=2).is_empty
        assert not TransitionRule(branches={"yes": 3}).is_empty

    def test_branches_are_copied(self):
        """Mutating the caller's dict must not change the rule."""
        branches = {"yes": 3}
        rule = TransitionRule(branches=branches)
        branches["no"] = 4
        assert rule.branches == {"yes": 3}

    def test_equality(self):
        assert TransitionRule(2, {"a": 1}) == TransitionRule(default_next_id=2, branches={"a": 1})
        assert TransitionRule(2) != TransitionRule(3)

    def test_without_orphans(self):
        """Branch keys that are no longer options should be dropped."""
        rule = TransitionRule(default_next_id=2, branches={"yes": 3, "maybe": 4})
        cleaned = rule.without_orphans(["yes", "no"])
        assert cleaned.branches == {"yes": 3}
        assert cleaned.default_next_id == 2
        assert rule.orphaned_options(["yes", "no"]) == ["maybe"]


class TestEdge:
    """Test Edge objects."""

    def test_default_edge(self):
        edge = Edge(from_id=1, to_id=2)
        assert edge.kind is EdgeKind.DEFAULT
        assert edge.option is None
        assert edge.key is EdgeKind.DEFAULT

    def test_branch_edge(self):
        edge = Edge(from_id=1, to_id=3, kind=EdgeKind.BRANCH, option="yes")
        assert edge.key == "yes"

    def test_branch_edge_needs_option(self):
        with pytest.raises(ValueError):
            Edge(from_id=1, to_id=3, kind=EdgeKind.BRANCH)

    def test_default_edge_rejects_option(self):
        with pytest.raises(ValueError):
            Edge(from_id=1, to_id=3, option="yes")
