"""
Serialization helpers for survey flow objects.

Question records use the persisted column shape of the survey platform:

    {"id": 1, "questionText": "...", "questionType": "mcq",
     "options": "yes\\nno", "required": true, "orderIndex": 0,
     "conditionalLogic": "{\\"nextQuestionId\\":2}"}

Options travel as one newline-separated string; the rule travels opaque.
Survey definitions are {"name": ..., "questions": [records...]} in JSON
or YAML. Traversal states serialize to plain dicts for resume.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence, Tuple

import yaml

from surveyflow.diagnostics import SerializationError
from surveyflow.model import AnswerKind, Question
from surveyflow.traversal import CompletionReason, TraversalState, TraversalStatus


def options_to_text(options: Sequence[str]) -> str | None:
    if not options:
        return None
    return "\n".join(options)


def options_from_text(text: str | None) -> List[str]:
    if not text:
        return []
    return [line for line in text.split("\n") if line.strip() != ""]


def question_to_dict(q: Question) -> Dict[str, Any]:
    return {
        "id": q.id,
        "questionText": q.text,
        "questionType": q.kind.value,
        "options": options_to_text(q.options),
        "required": q.required,
        "orderIndex": q.order_index,
        "conditionalLogic": q.rule,
    }


def question_from_dict(d: Dict[str, Any]) -> Question:
    if not isinstance(d, dict):
        raise SerializationError(f"Question record must be a mapping, got {type(d).__name__}")
    try:
        kind = AnswerKind(d.get("questionType", AnswerKind.TEXT.value))
    except ValueError:
        raise SerializationError(f"Unknown questionType: {d.get('questionType')!r}")
    if "id" not in d:
        raise SerializationError("Question record has no id")
    required = d.get("required", False)
    if not isinstance(required, bool):
        raise SerializationError(f"Question {d['id']!r}: required must be a boolean, got {required!r}")
    options = options_from_text(d.get("options")) if kind is AnswerKind.CHOICE else []
    try:
        return Question(
            id=d["id"],
            text=d.get("questionText", ""),
            kind=kind,
            options=options,
            order_index=int(d.get("orderIndex", 0)),
            required=required,
            rule=d.get("conditionalLogic"),
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Invalid question record {d.get('id')!r}: {e}")


def survey_to_dict(name: str, questions: Sequence[Question]) -> Dict[str, Any]:
    return {"name": name, "questions": [question_to_dict(q) for q in questions]}


def survey_from_dict(d: Dict[str, Any]) -> Tuple[str, List[Question]]:
    if not isinstance(d, dict):
        raise SerializationError("Survey definition must be a mapping")
    records = d.get("questions", [])
    if not isinstance(records, list):
        raise SerializationError("Survey questions must be a list")
    return d.get("name", ""), [question_from_dict(r) for r in records]


def survey_to_json(name: str, questions: Sequence[Question]) -> str:
    return json.dumps(survey_to_dict(name, questions), sort_keys=True)


def survey_from_json(s: str) -> Tuple[str, List[Question]]:
    try:
        d = json.loads(s)
    except ValueError as e:
        raise SerializationError(f"Survey definition is not valid JSON: {e}")
    return survey_from_dict(d)


def survey_to_yaml(name: str, questions: Sequence[Question]) -> str:
    return yaml.safe_dump(survey_to_dict(name, questions), sort_keys=False)


def survey_from_yaml(s: str) -> Tuple[str, List[Question]]:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise SerializationError(f"Survey definition is not valid YAML: {e}")
    return survey_from_dict(d)


def load_survey_file(filepath: str) -> Tuple[str, List[Question]]:
    """
    Load a survey definition, picking JSON or YAML by extension.

    Raises:
        FileNotFoundError: If the file doesn't exist
        SerializationError: If the content is malformed
    """
    with open(filepath, "r", encoding="utf-8") as f:
        content = f.read()
    if filepath.endswith(".json"):
        return survey_from_json(content)
    return survey_from_yaml(content)


def state_to_dict(state: TraversalState) -> Dict[str, Any]:
    return {
        "visited_path": list(state.visited_path),
        "answers": [[qid, answer] for qid, answer in state.answers.items()],
        "current_question_id": state.current_question_id,
        "status": state.status.value,
        "completion_reason": state.completion_reason.value if state.completion_reason else None,
        "hops": state.hops,
    }


def state_from_dict(d: Dict[str, Any]) -> TraversalState:
    # Answers are stored as pairs so int and str question ids survive JSON.
    try:
        reason = d.get("completion_reason")
        return TraversalState(
            visited_path=list(d.get("visited_path", [])),
            answers={qid: answer for qid, answer in d.get("answers", [])},
            current_question_id=d.get("current_question_id"),
            status=TraversalStatus(d.get("status", TraversalStatus.EMPTY.value)),
            completion_reason=CompletionReason(reason) if reason else None,
            hops=int(d.get("hops", 0)),
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Invalid traversal state: {e}")


__all__ = [
    "question_to_dict",
    "question_from_dict",
    "survey_to_dict",
    "survey_from_dict",
    "survey_to_json",
    "survey_from_json",
    "survey_to_yaml",
    "survey_from_yaml",
    "load_survey_file",
    "state_to_dict",
    "state_from_dict",
]
