"""
Tests for serialization and deserialization of survey flow objects.

Question records keep the platform's column shape; survey definitions
round-trip through JSON and YAML without loss.
"""

import pytest

from surveyflow.diagnostics import SerializationError
from surveyflow.examples import build_example_doctor_survey
from surveyflow.graph import build_flow_graph
from surveyflow.model import AnswerKind
from surveyflow.serialization import (
    load_survey_file,
    question_from_dict,
    question_to_dict,
    state_from_dict,
    state_to_dict,
    survey_from_json,
    survey_from_yaml,
    survey_to_json,
    survey_to_yaml,
)
from surveyflow.traversal import TraversalEngine


def test_question_record_shape():
    q = build_example_doctor_survey()[0]
    record = question_to_dict(q)
    assert record["questionText"] == q.text
    assert record["questionType"] == "mcq"
    assert record["options"] == "Daily\nWeekly\nNever"
    assert record["orderIndex"] == 0
    assert record["required"] is True
    assert record["conditionalLogic"] == q.rule


def test_question_from_platform_record():
    q = question_from_dict({
        "id": 12,
        "questionText": "Pick",
        "questionType": "mcq",
        "options": "yes\nno\n",
        "required": False,
        "orderIndex": 3,
        "conditionalLogic": None,
    })
    assert q.kind is AnswerKind.CHOICE
    assert q.options == ["yes", "no"]
    assert q.order_index == 3


def test_unknown_question_type():
    with pytest.raises(SerializationError):
        question_from_dict({"id": 1, "questionType": "ranking"})


def test_duplicate_options_rejected():
    with pytest.raises(SerializationError):
        question_from_dict({"id": 1, "questionType": "mcq", "options": "a\na"})


def test_missing_id():
    with pytest.raises(SerializationError):
        question_from_dict({"questionText": "no id"})


@pytest.mark.parametrize("required", ["false", "true", 0, None])
def test_required_must_be_boolean(required):
    with pytest.raises(SerializationError):
        question_from_dict({"id": 1, "required": required})


def test_json_roundtrip():
    questions = build_example_doctor_survey()
    name, restored = survey_from_json(survey_to_json("Doctors", questions))
    assert name == "Doctors"
    assert restored == questions


def test_yaml_roundtrip():
    questions = build_example_doctor_survey()
    name, restored = survey_from_yaml(survey_to_yaml("Doctors", questions))
    assert name == "Doctors"
    assert restored == questions


def test_invalid_json():
    with pytest.raises(SerializationError):
        survey_from_json("{oops")


def test_load_survey_file(tmp_path):
    path = tmp_path / "survey.yaml"
    path.write_text(survey_to_yaml("From file", build_example_doctor_survey()), encoding="utf-8")
    name, questions = load_survey_file(str(path))
    assert name == "From file"
    assert len(questions) == 4


def test_state_roundtrip_keeps_id_types():
    engine = TraversalEngine(build_flow_graph(build_example_doctor_survey()))
    state = engine.start()
    engine.advance(state, "Daily")
    engine.advance(state, "8")
    restored = state_from_dict(state_to_dict(state))
    assert restored.visited_path == [1, 2, 3]
    assert restored.answers == {1: "Daily", 2: "8"}
    assert restored.current_question_id == 3
    assert restored.status is state.status
    assert restored.hops == 2
