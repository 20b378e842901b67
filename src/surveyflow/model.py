"""
Core Survey Flow Objects

Defines the fundamental data structures of the survey flow graph.

These are plain data classes representing:
    - Questions (graph nodes)
    - Transition rules (per-question branching, decoded form)
    - Edges (directed, typed connections between questions)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about storage, editors or traversal
        - Are mostly immutable
        - Are fully serializable
        - Represent structure, not behavior
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Union

QuestionId = Union[int, str]

SCALE_MIN = 1
SCALE_MAX = 10


class AnswerKind(Enum):
    """
    Kind of answer a question accepts.

    Values match the persisted `questionType` column.
    """

    TEXT = "text"
    SCALE = "scale"      # integer 1..10
    CHOICE = "mcq"       # one of the question's options


@dataclass
class Question:
    """
    Represents a single survey question, the node type of the flow graph.

    Properties:
        id:
            Unique identifier, stable across edits (int or str)

        text:
            Question text shown to the respondent

        kind:
            AnswerKind

        options:
            Ordered option strings (CHOICE only, unique within a question)

        order_index:
            Fallback linear position. Only used for routing when no
            explicit edge applies.

        required:
            Whether the respondent must answer before moving on

        rule:
            Raw persisted transition rule (None = no explicit rule).
            Decoded by `surveyflow.codec`.

    ARCHITECTURAL RULE:
        - order_index is a safety net, not the authority
        - rule is stored opaque; only the codec interprets it
    """

    id: QuestionId
    text: str
    kind: AnswerKind = AnswerKind.TEXT
    options: List[str] = field(default_factory=list)
    order_index: int = 0
    required: bool = False
    rule: Optional[str] = None

    def __post_init__(self) -> None:
        if self.options and self.kind is not AnswerKind.CHOICE:
            raise ValueError(
                f"Question {self.id!r}: options are only allowed on choice questions"
            )
        if len(set(self.options)) != len(self.options):
            duplicates = sorted({o for o in self.options if self.options.count(o) > 1})
            raise ValueError(f"Question {self.id!r}: duplicate options {duplicates}")

    @property
    def is_choice(self) -> bool:
        return self.kind is AnswerKind.CHOICE

    def with_rule(self, rule: Optional[str]) -> "Question":
        """Return a copy carrying a different raw rule."""
        return replace(self, options=list(self.options), rule=rule)


@dataclass(frozen=True)
class TransitionRule:
    """
    Decoded branching rule of one question.

    Properties:
        default_next_id:
            Target taken when no branch applies (None = no default)

        branches:
            Mapping option value -> target question id.
            Only meaningful for CHOICE questions.

    INVARIANT:
        Branch keys should be current options of the owning question.
        Keys that are not are "orphaned": kept on raw decode, dropped
        when a graph is built or an editor save re-derives the rule.
    """

    default_next_id: Optional[QuestionId] = None
    branches: Mapping[str, QuestionId] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Private copy so callers cannot mutate a frozen rule through their dict.
        object.__setattr__(self, "branches", dict(self.branches))

    @property
    def is_empty(self) -> bool:
        return self.default_next_id is None and not self.branches

    def without_orphans(self, options: Iterable[str]) -> "TransitionRule":
        """Drop branch keys that are not among `options`."""
        allowed = set(options)
        kept: Dict[str, QuestionId] = {
            option: target for option, target in self.branches.items() if option in allowed
        }
        return TransitionRule(default_next_id=self.default_next_id, branches=kept)

    def orphaned_options(self, options: Iterable[str]) -> List[str]:
        allowed = set(options)
        return [option for option in self.branches if option not in allowed]


class EdgeKind(Enum):
    """Kind of a flow edge."""

    DEFAULT = "default"   # taken when no option-specific branch applies
    BRANCH = "branch"     # taken when a specific option was chosen


@dataclass(frozen=True)
class Edge:
    """
    Directed transition between two questions.

    Properties:
        from_id: Source question id
        to_id: Destination question id
        kind: EdgeKind
        option: Option value for BRANCH edges (None for DEFAULT)

    Example:
        "yes" on question 1 leads to question 3:

        Edge(from_id=1, to_id=3, kind=EdgeKind.BRANCH, option="yes")
    """

    from_id: QuestionId
    to_id: QuestionId
    kind: EdgeKind = EdgeKind.DEFAULT
    option: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind is EdgeKind.BRANCH and self.option is None:
            raise ValueError("Branch edges need an option value")
        if self.kind is EdgeKind.DEFAULT and self.option is not None:
            raise ValueError("Default edges carry no option value")

    @property
    def key(self) -> Union[EdgeKind, str]:
        """Adjacency key: the option for branches, EdgeKind.DEFAULT otherwise."""
        return self.option if self.kind is EdgeKind.BRANCH else EdgeKind.DEFAULT
