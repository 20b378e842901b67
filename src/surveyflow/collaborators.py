"""
External collaborators, specified only at their interface.

The flow core hands data to these and never looks behind them:

    - ResponseStore: partial checkpoints and final submissions
    - QuestionStore: persists questions saved from the graph editor
    - RedemptionService: points redemption, fed by completed responses

Calls are fire-and-forget from the engine's point of view. Retry and
backoff are the collaborator's business.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

from surveyflow.model import Question, QuestionId


@dataclass(frozen=True)
class AnswerEntry:
    question_id: QuestionId
    answer: Any


@dataclass(frozen=True)
class PartialResponse:
    """
    Checkpoint of an in-progress response.

    Carries the full answer set so far, not a delta. Stores upsert by
    session_id, so replaying the same checkpoint is harmless.
    """

    survey_id: Any
    session_id: str
    answers: Tuple[AnswerEntry, ...]
    visited_path: Tuple[QuestionId, ...]
    current_question_id: Optional[QuestionId]
    completed: bool = False


@dataclass(frozen=True)
class ResponseSubmission:
    """
    Final response, answers in visitation order.

    completed is always True; the redemption side only looks at
    completed responses.
    """

    survey_id: Any
    session_id: str
    answers: Tuple[AnswerEntry, ...]
    visited_path: Tuple[QuestionId, ...]
    completion_reason: str
    completed: bool = True


class ResponseStore(Protocol):
    def save_partial(self, partial: PartialResponse) -> None:
        ...

    def submit(self, submission: ResponseSubmission) -> None:
        ...


class QuestionStore(Protocol):
    def save_questions(self, survey_id: Any, questions: Sequence[Question]) -> None:
        ...


@dataclass(frozen=True)
class RedemptionRequest:
    response_id: str
    method: str
    details: Dict[str, Any] = field(default_factory=dict)
    status: str = "pending"


@dataclass(frozen=True)
class RedemptionBatchResult:
    processed_count: int = 0
    failed_count: int = 0


class RedemptionService(Protocol):
    """Consumed only; the batch job runs out of band."""

    def can_redeem(self, response_id: str) -> bool:
        ...

    def submit_redemption(self, response_id: str, method: str, details: Dict[str, Any]) -> RedemptionRequest:
        ...

    def process_pending_redemptions(self) -> RedemptionBatchResult:
        ...


__all__ = [
    "AnswerEntry",
    "PartialResponse",
    "ResponseSubmission",
    "ResponseStore",
    "QuestionStore",
    "RedemptionRequest",
    "RedemptionBatchResult",
    "RedemptionService",
]
