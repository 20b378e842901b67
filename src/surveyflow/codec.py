"""
Transition Rule Codec

Converts between the compact textual rule stored on each question record
and the in-memory TransitionRule.

Wire format (a JSON object, both keys optional):

    {"branches": {"yes": 3}, "nextQuestionId": 2}

    - nextQuestionId: default target question id
    - branches: option value -> target question id

A missing/null rule means "no explicit rule, use linear order".

Decoding never raises. Malformed input degrades to the empty rule and is
reported as a RULE_DECODE_ERROR diagnostic. Stale option keys are kept as
they are; dropping them is the graph builder's and the editor's job.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from surveyflow.diagnostics import (
    Diagnostic,
    DiagnosticKind,
    RuleDecodeError,
    record,
)
from surveyflow.model import QuestionId, TransitionRule

logger = logging.getLogger(__name__)

DEFAULT_KEY = "nextQuestionId"
BRANCHES_KEY = "branches"

EMPTY_RULE = TransitionRule()


def _is_question_id(value: Any) -> bool:
    # bool is an int subclass; True is not a question id.
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and value != ""


def decode_rule_strict(raw: Optional[str]) -> TransitionRule:
    """
    Decode a persisted rule, raising on malformed input.

    Args:
        raw: Persisted rule string (None or blank = no rule)

    Returns:
        TransitionRule

    Raises:
        RuleDecodeError: If the string is not a valid rule encoding
    """
    if raw is None:
        return EMPTY_RULE
    if not isinstance(raw, str):
        raise RuleDecodeError(f"Rule must be a string, got {type(raw).__name__}")
    if raw.strip() == "":
        return EMPTY_RULE

    try:
        payload = json.loads(raw)
    except ValueError as e:
        raise RuleDecodeError(f"Rule is not valid JSON: {e}")

    if not isinstance(payload, dict):
        raise RuleDecodeError(f"Rule must be a JSON object, got {type(payload).__name__}")

    default_next = payload.get(DEFAULT_KEY)
    if default_next is not None and not _is_question_id(default_next):
        raise RuleDecodeError(f"Invalid {DEFAULT_KEY}: {default_next!r}")

    raw_branches = payload.get(BRANCHES_KEY)
    branches: Dict[str, QuestionId] = {}
    if raw_branches is not None:
        if not isinstance(raw_branches, dict):
            raise RuleDecodeError(f"{BRANCHES_KEY} must be an object, got {type(raw_branches).__name__}")
        for option, target in raw_branches.items():
            if not _is_question_id(target):
                raise RuleDecodeError(f"Invalid branch target for {option!r}: {target!r}")
            branches[option] = target

    return TransitionRule(default_next_id=default_next, branches=branches)


def decode_rule(
    raw: Optional[str],
    diagnostics: Optional[List[Diagnostic]] = None,
    question_id: Optional[QuestionId] = None,
) -> TransitionRule:
    """
    Decode a persisted rule without ever raising.

    Malformed input yields the empty rule and a RULE_DECODE_ERROR
    diagnostic (logged, appended to `diagnostics` when given).
    """
    try:
        return decode_rule_strict(raw)
    except RuleDecodeError as e:
        record(diagnostics, DiagnosticKind.RULE_DECODE_ERROR, str(e), question_id, logger)
        return EMPTY_RULE


def encode_rule(rule: TransitionRule) -> Optional[str]:
    """
    Encode a rule for persistence.

    Returns None for the empty rule so "no outgoing rule" round-trips
    exactly. Keys are sorted, so equal rules encode byte-identically.
    """
    if rule.is_empty:
        return None

    payload: Dict[str, Any] = {}
    if rule.default_next_id is not None:
        payload[DEFAULT_KEY] = rule.default_next_id
    if rule.branches:
        payload[BRANCHES_KEY] = dict(rule.branches)
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


__all__ = [
    "decode_rule",
    "decode_rule_strict",
    "encode_rule",
    "EMPTY_RULE",
]
