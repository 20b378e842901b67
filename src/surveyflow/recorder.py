"""
Response Recorder — ties a respondent session to the traversal engine
and the response store.

Every answer (and every step back) is followed by a checkpoint carrying
the full answer set. Completion, whether by reaching the end of the flow
or by finishing early, produces exactly one submission per session.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from surveyflow.collaborators import AnswerEntry, PartialResponse, ResponseStore, ResponseSubmission
from surveyflow.diagnostics import StaleAnswerError, TraversalFinishedError
from surveyflow.model import QuestionId
from surveyflow.traversal import TraversalEngine, TraversalState, TraversalStatus

logger = logging.getLogger(__name__)


def ordered_answers(state: TraversalState, include_off_path: bool = False) -> Tuple[AnswerEntry, ...]:
    """
    Answers in visitation order (first visit of each question).

    With include_off_path, answers to questions the respondent backed out
    of are appended after the path ones, in the order they were given.
    """
    entries: List[AnswerEntry] = []
    seen = set()
    for qid in state.visited_path:
        if qid in seen or qid not in state.answers:
            continue
        seen.add(qid)
        entries.append(AnswerEntry(question_id=qid, answer=state.answers[qid]))

    if include_off_path:
        for qid, answer in state.answers.items():
            if qid not in seen:
                entries.append(AnswerEntry(question_id=qid, answer=answer))
    return tuple(entries)


class ResponseRecorder:
    """
    One respondent session.

    Args:
        engine: Traversal engine for the survey's graph snapshot
        survey_id: Survey being answered
        store: ResponseStore receiving checkpoints and the submission
        session_id: Upsert key for checkpoints (generated if omitted)
        state: Existing state, e.g. from TraversalEngine.resume()
    """

    def __init__(
        self,
        engine: TraversalEngine,
        survey_id: Any,
        store: ResponseStore,
        session_id: Optional[str] = None,
        state: Optional[TraversalState] = None,
    ):
        self.engine = engine
        self.survey_id = survey_id
        self.store = store
        self.session_id = session_id or uuid.uuid4().hex
        self.state = state if state is not None else engine.start()
        self.submission: Optional[ResponseSubmission] = None

    @property
    def current_question_id(self) -> Optional[QuestionId]:
        return self.state.current_question_id

    @property
    def answers(self) -> Dict[QuestionId, Any]:
        return dict(self.state.answers)

    def on_answer(self, question_id: QuestionId, answer: Any) -> TraversalState:
        """
        Answer the current question, checkpoint, and submit on completion.

        Raises:
            TraversalFinishedError: Session already finished
            StaleAnswerError: question_id is not the current question
            AnswerRequiredError, InvalidAnswerError: Answer rejected
        """
        if self.state.is_finished:
            raise TraversalFinishedError(f"Session {self.session_id} is {self.state.status.value}")
        if question_id != self.state.current_question_id:
            raise StaleAnswerError(
                f"Answer for {question_id!r} but current question is {self.state.current_question_id!r}"
            )

        self.engine.advance(self.state, answer)
        self.checkpoint()
        if self.state.status is TraversalStatus.COMPLETED:
            self.finalize()
        return self.state

    def on_back(self) -> bool:
        moved = self.engine.retreat(self.state)
        if moved:
            self.checkpoint()
        return moved

    def checkpoint(self) -> PartialResponse:
        """Send the full answer set so far to the store (upsert by session)."""
        partial = PartialResponse(
            survey_id=self.survey_id,
            session_id=self.session_id,
            answers=ordered_answers(self.state, include_off_path=True),
            visited_path=tuple(self.state.visited_path),
            current_question_id=self.state.current_question_id,
        )
        self.store.save_partial(partial)
        return partial

    def finish_early(self) -> ResponseSubmission:
        """Stop at an optional question and submit what was answered."""
        return self.finalize()

    def finalize(self) -> ResponseSubmission:
        """
        Submit the response. Only the first call reaches the store.

        Finalizing a session still at a question finishes it early, which
        the engine refuses for required questions.
        """
        if self.submission is not None:
            return self.submission

        if self.state.status is TraversalStatus.AT_QUESTION:
            self.engine.finalize_early(self.state)

        reason = self.state.completion_reason
        submission = ResponseSubmission(
            survey_id=self.survey_id,
            session_id=self.session_id,
            answers=ordered_answers(self.state),
            visited_path=tuple(self.state.visited_path),
            completion_reason=reason.value if reason else self.state.status.value,
        )
        self.store.submit(submission)
        # A submit that raised leaves the session unfinalized.
        self.submission = submission
        logger.debug("Session %s finalized (%s)", self.session_id, self.submission.completion_reason)
        return self.submission


__all__ = ["ResponseRecorder", "ordered_answers"]
