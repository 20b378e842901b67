"""
Error taxonomy for the survey flow.

Two families live here:

    - Diagnostics: non-fatal anomalies (broken rule strings, dangling
      edges, back navigation with nowhere to go, aborted cycles). They are
      logged and collected, never raised. A broken branching rule must not
      block a respondent from finishing a survey.

    - Exceptions: the few failures a caller has to act on (an unanswered
      required question, an answer outside the allowed values, an editor
      save the store rejected).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from surveyflow.model import QuestionId


class DiagnosticKind(Enum):
    """Named kinds of non-fatal anomalies."""

    RULE_DECODE_ERROR = "rule_decode_error"
    DANGLING_EDGE = "dangling_edge"
    ORPHANED_BRANCH = "orphaned_branch"
    DUPLICATE_QUESTION = "duplicate_question"
    NO_PRIOR_QUESTION = "no_prior_question"
    CYCLE_ABORTED = "cycle_aborted"


@dataclass(frozen=True)
class Diagnostic:
    """
    One absorbed anomaly.

    Properties:
        kind: DiagnosticKind
        message: Human-readable description
        question_id: Question the anomaly is attached to (optional)
    """

    kind: DiagnosticKind
    message: str
    question_id: Optional[QuestionId] = None


def record(
    diagnostics: Optional[List[Diagnostic]],
    kind: DiagnosticKind,
    message: str,
    question_id: Optional[QuestionId] = None,
    logger: Optional[logging.Logger] = None,
) -> Diagnostic:
    """Log a diagnostic and append it to `diagnostics` when a list is given."""
    diagnostic = Diagnostic(kind=kind, message=message, question_id=question_id)
    log = logger or logging.getLogger(__name__)
    # Going back from the first question is routine UI traffic.
    level = logging.INFO if kind is DiagnosticKind.NO_PRIOR_QUESTION else logging.WARNING
    log.log(level, "%s (question=%s): %s", kind.value, question_id, message)
    if diagnostics is not None:
        diagnostics.append(diagnostic)
    return diagnostic


class SurveyFlowError(Exception):
    """Base class for errors raised by this package."""
    pass


class RuleDecodeError(SurveyFlowError):
    """Raised by strict decoding when a persisted rule string is malformed."""
    pass


class AnswerRequiredError(SurveyFlowError):
    """Raised when a required question is left blank."""
    pass


class InvalidAnswerError(SurveyFlowError):
    """Raised when an answer is not acceptable for the question kind."""
    pass


class TraversalFinishedError(SurveyFlowError):
    """Raised when advancing a traversal that is already completed or empty."""
    pass


class StaleAnswerError(SurveyFlowError):
    """Raised when an answer arrives for a question that is not current."""
    pass


class EditorSaveError(SurveyFlowError):
    """Raised when the question store rejects an editor save."""
    pass


class SerializationError(SurveyFlowError):
    """Raised when a question record or survey definition is malformed."""
    pass


class ConfigError(SurveyFlowError):
    """Raised when settings cannot be loaded or contain invalid values."""
    pass
