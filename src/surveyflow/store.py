"""
In-memory reference implementation of ResponseStore.

Keyed by session id: every checkpoint overwrites the previous one, and a
submission replaces the checkpoint for its session. Used by tests and the
demo; a real deployment plugs its database-backed store in instead.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Union

from surveyflow.collaborators import PartialResponse, ResponseSubmission

logger = logging.getLogger(__name__)


class InMemoryResponseStore:
    """Upserting ResponseStore kept in a dict."""

    def __init__(self) -> None:
        self._records: Dict[str, Union[PartialResponse, ResponseSubmission]] = {}
        self.submissions: List[ResponseSubmission] = []

    def save_partial(self, partial: PartialResponse) -> None:
        existing = self._records.get(partial.session_id)
        if isinstance(existing, ResponseSubmission):
            logger.warning("Ignoring checkpoint for already submitted session %s", partial.session_id)
            return
        self._records[partial.session_id] = partial

    def submit(self, submission: ResponseSubmission) -> None:
        self._records[submission.session_id] = submission
        self.submissions.append(submission)
        logger.info("Response %s submitted for survey %s (%d answers)",
                    submission.session_id, submission.survey_id, len(submission.answers))

    def get(self, session_id: str) -> Optional[Union[PartialResponse, ResponseSubmission]]:
        return self._records.get(session_id)

    def is_completed(self, session_id: str) -> bool:
        """True once a session has a submission; this is what makes it redeemable."""
        return isinstance(self._records.get(session_id), ResponseSubmission)

    def __len__(self) -> int:
        return len(self._records)
