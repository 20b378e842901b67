"""
Traversal Engine — walks a FlowGraph while a respondent answers.

State machine:

    EMPTY                 survey has no questions (terminal)
    AT_QUESTION(qid)      waiting for an answer to qid
    COMPLETED             no next question, finalized early, or cycle aborted

Next-question resolution after an answer, in order:
    1. BRANCH edge for the chosen option (CHOICE questions only)
    2. DEFAULT edge
    3. Linear fallback: question with order_index + 1
    4. None -> COMPLETED

Edges that loop back are followed again. An optional hop cap turns a
runaway loop into COMPLETED with reason CYCLE_ABORTED.

One TraversalState belongs to exactly one respondent session. The engine
holds only the (read-only) graph, so one engine can serve many sessions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from surveyflow.diagnostics import (
    AnswerRequiredError,
    Diagnostic,
    DiagnosticKind,
    InvalidAnswerError,
    TraversalFinishedError,
    record,
)
from surveyflow.graph import FlowGraph
from surveyflow.model import SCALE_MAX, SCALE_MIN, AnswerKind, EdgeKind, Question, QuestionId

logger = logging.getLogger(__name__)


class TraversalStatus(Enum):
    AT_QUESTION = "at_question"
    COMPLETED = "completed"
    EMPTY = "empty"


class CompletionReason(Enum):
    END_OF_FLOW = "end_of_flow"
    FINALIZED_EARLY = "finalized_early"
    CYCLE_ABORTED = "cycle_aborted"


@dataclass
class TraversalState:
    """
    Progress of one respondent through a survey.

    Properties:
        visited_path: Questions in navigation order (repeats allowed on cycles)
        answers: Question id -> last recorded answer
        current_question_id: Question being shown (None once finished)
        status: TraversalStatus
        completion_reason: Why the traversal finished (None while in progress)
        hops: Forward moves on the current path (retreat takes one back)
        diagnostics: Non-fatal anomalies seen during this session
    """

    visited_path: List[QuestionId] = field(default_factory=list)
    answers: Dict[QuestionId, Any] = field(default_factory=dict)
    current_question_id: Optional[QuestionId] = None
    status: TraversalStatus = TraversalStatus.EMPTY
    completion_reason: Optional[CompletionReason] = None
    hops: int = 0
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def is_finished(self) -> bool:
        return self.status is not TraversalStatus.AT_QUESTION


def is_blank(answer: Any) -> bool:
    return answer is None or (isinstance(answer, str) and answer.strip() == "")


def _scale_value(answer: Any) -> Optional[int]:
    if isinstance(answer, bool):
        return None
    if isinstance(answer, int):
        return answer
    if isinstance(answer, str):
        text = answer.strip()
        # isdigit alone accepts superscripts and other non-ASCII digits.
        if text.isascii() and text.isdigit():
            return int(text)
    return None


def validate_answer(question: Question, answer: Any) -> None:
    """
    Check an answer against its question.

    Raises:
        AnswerRequiredError: Blank answer on a required question
        InvalidAnswerError: Answer not acceptable for the question kind
    """
    if is_blank(answer):
        if question.required:
            raise AnswerRequiredError(f"Question {question.id!r} requires an answer")
        return

    if question.kind is AnswerKind.SCALE:
        value = _scale_value(answer)
        if value is None or not SCALE_MIN <= value <= SCALE_MAX:
            raise InvalidAnswerError(
                f"Question {question.id!r} expects a value from {SCALE_MIN} to {SCALE_MAX}, got {answer!r}"
            )
    elif question.kind is AnswerKind.CHOICE:
        if answer not in question.options:
            raise InvalidAnswerError(f"Question {question.id!r} has no option {answer!r}")
    elif not isinstance(answer, str):
        raise InvalidAnswerError(f"Question {question.id!r} expects text, got {type(answer).__name__}")


class TraversalEngine:
    """
    Drives TraversalState objects over one FlowGraph.

    Args:
        graph: Built flow graph (shared, never mutated)
        max_hops: Forward moves allowed on the path before the traversal
            is aborted as a cycle. None = no cap.
    """

    def __init__(self, graph: FlowGraph, max_hops: Optional[int] = None):
        if max_hops is not None and max_hops < 0:
            raise ValueError("max_hops must not be negative")
        self.graph = graph
        self.max_hops = max_hops

    @classmethod
    def with_hop_cap(cls, graph: FlowGraph, factor: Optional[int]) -> "TraversalEngine":
        """Engine whose hop cap is `factor` x question count (None = uncapped)."""
        if factor is None:
            return cls(graph)
        return cls(graph, max_hops=factor * len(graph))

    def start(self) -> TraversalState:
        entry = self.graph.entry_point()
        if entry is None:
            return TraversalState(status=TraversalStatus.EMPTY)
        return TraversalState(
            visited_path=[entry],
            current_question_id=entry,
            status=TraversalStatus.AT_QUESTION,
        )

    def resume(self, visited_path: Sequence[QuestionId], answers: Mapping[QuestionId, Any]) -> TraversalState:
        """
        Rebuild a state from a saved checkpoint.

        Ids no longer in the graph are dropped from both path and answers.
        An empty resulting path starts over at the entry point, keeping
        whatever answers survived.
        """
        path = [qid for qid in visited_path if qid in self.graph]
        if len(path) != len(visited_path):
            logger.info("Dropped %d unknown question(s) from resumed path", len(visited_path) - len(path))
        kept = {qid: value for qid, value in answers.items() if qid in self.graph}

        if not path:
            state = self.start()
            state.answers.update(kept)
            return state

        return TraversalState(
            visited_path=path,
            answers=kept,
            current_question_id=path[-1],
            status=TraversalStatus.AT_QUESTION,
            hops=len(path) - 1,
        )

    def current_question(self, state: TraversalState) -> Optional[Question]:
        if state.current_question_id is None:
            return None
        return self.graph.question(state.current_question_id)

    def resolve_next(self, question: Question, answer: Any) -> Optional[QuestionId]:
        """Next question id after answering `question` (None = end of flow)."""
        if question.is_choice and isinstance(answer, str):
            target = self.graph.neighbors(question.id, answer)
            if target is not None:
                return target
        target = self.graph.neighbors(question.id, EdgeKind.DEFAULT)
        if target is not None:
            return target
        return self.graph.linear_successor(question.id)

    def advance(self, state: TraversalState, answer: Any) -> TraversalState:
        """
        Record `answer` for the current question and move on.

        The state is left untouched when validation fails.

        Raises:
            TraversalFinishedError: State is completed or empty
            AnswerRequiredError, InvalidAnswerError: Answer rejected
        """
        question = self._require_current(state)
        validate_answer(question, answer)

        state.answers[question.id] = answer
        target = self.resolve_next(question, answer)

        if target is None:
            self._complete(state, CompletionReason.END_OF_FLOW)
            return state

        if self.max_hops is not None and state.hops >= self.max_hops:
            record(state.diagnostics, DiagnosticKind.CYCLE_ABORTED,
                   f"Hop cap of {self.max_hops} reached; ending traversal", question.id, logger)
            self._complete(state, CompletionReason.CYCLE_ABORTED)
            return state

        state.visited_path.append(target)
        state.current_question_id = target
        state.hops += 1
        return state

    def can_retreat(self, state: TraversalState) -> bool:
        return state.status is TraversalStatus.AT_QUESTION and len(state.visited_path) > 1

    def retreat(self, state: TraversalState) -> bool:
        """
        Go back one question, keeping the answer given to the popped one.

        Returns:
            False (no-op, NO_PRIOR_QUESTION diagnostic) when there is
            nothing to go back to; True otherwise.
        """
        if not self.can_retreat(state):
            record(state.diagnostics, DiagnosticKind.NO_PRIOR_QUESTION,
                   "Nothing to go back to", state.current_question_id, logger)
            return False
        state.visited_path.pop()
        state.current_question_id = state.visited_path[-1]
        state.hops = max(state.hops - 1, 0)
        return True

    def finalize_early(self, state: TraversalState) -> TraversalState:
        """
        Stop at the current question without answering it.

        Raises:
            TraversalFinishedError: State is completed or empty
            AnswerRequiredError: Current question is required
        """
        question = self._require_current(state)
        if question.required:
            raise AnswerRequiredError(
                f"Question {question.id!r} is required; the survey cannot be finished here"
            )
        self._complete(state, CompletionReason.FINALIZED_EARLY)
        return state

    def _require_current(self, state: TraversalState) -> Question:
        if state.status is not TraversalStatus.AT_QUESTION:
            raise TraversalFinishedError(f"Traversal is {state.status.value}")
        question = self.current_question(state)
        if question is None:
            raise TraversalFinishedError(f"Current question {state.current_question_id!r} is not in the graph")
        return question

    def _complete(self, state: TraversalState, reason: CompletionReason) -> None:
        state.status = TraversalStatus.COMPLETED
        state.completion_reason = reason
        state.current_question_id = None
        logger.debug("Traversal completed (%s) after %d hops", reason.value, state.hops)


__all__ = [
    "TraversalEngine",
    "TraversalState",
    "TraversalStatus",
    "CompletionReason",
    "validate_answer",
]
