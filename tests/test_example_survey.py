"""
End-to-end scenarios over the example surveys: load questions, build the
graph, answer through a recorder, check what reaches the store.
"""

from surveyflow.config import load_settings
from surveyflow.examples import (
    build_branching_survey,
    build_example_doctor_survey,
    build_linear_survey,
    build_self_loop_survey,
)
from surveyflow.graph import build_flow_graph
from surveyflow.recorder import ResponseRecorder
from surveyflow.store import InMemoryResponseStore
from surveyflow.traversal import CompletionReason, TraversalEngine, TraversalStatus


def start_session(questions, settings=None):
    settings = settings or load_settings(environ={})
    engine = TraversalEngine.with_hop_cap(build_flow_graph(questions), settings.hop_cap_factor)
    return ResponseRecorder(engine, survey_id="survey-1", store=InMemoryResponseStore())


def test_linear_survey_scenario():
    rec = start_session(build_linear_survey())
    for qid in ("A", "B", "C"):
        rec.on_answer(qid, f"answer {qid}")
    assert rec.state.visited_path == ["A", "B", "C"]
    assert rec.state.status is TraversalStatus.COMPLETED
    assert rec.store.is_completed(rec.session_id)


def test_branching_survey_yes():
    rec = start_session(build_branching_survey())
    rec.on_answer("A", "yes")
    assert rec.current_question_id == "C"


def test_branching_survey_no():
    rec = start_session(build_branching_survey())
    rec.on_answer("A", "no")
    assert rec.current_question_id == "B"


def test_self_loop_aborted_with_default_settings():
    rec = start_session(build_self_loop_survey())
    hops = 0
    while not rec.state.is_finished:
        rec.on_answer("A", "more")
        hops += 1
        assert hops <= 10
    assert rec.state.completion_reason is CompletionReason.CYCLE_ABORTED
    assert rec.store.submissions[0].completion_reason == "cycle_aborted"


def test_doctor_survey_never_skips_to_comments():
    rec = start_session(build_example_doctor_survey())
    rec.on_answer(1, "Never")
    assert rec.current_question_id == 4
    rec.on_answer(4, "")
    submission = rec.store.submissions[0]
    assert submission.visited_path == (1, 4)
    assert [(e.question_id, e.answer) for e in submission.answers] == [(1, "Never"), (4, "")]


def test_doctor_survey_resume_from_checkpoint():
    questions = build_example_doctor_survey()
    first = start_session(questions)
    first.on_answer(1, "Weekly")
    checkpoint = first.store.get(first.session_id)

    # New engine, same survey: the respondent comes back later.
    engine = TraversalEngine(build_flow_graph(questions))
    state = engine.resume(checkpoint.visited_path, {e.question_id: e.answer for e in checkpoint.answers})
    resumed = ResponseRecorder(engine, "survey-1", first.store, session_id=first.session_id, state=state)
    assert resumed.current_question_id == 2
    resumed.on_answer(2, 6)
    resumed.on_answer(3, "Nausea")
    resumed.on_answer(4, "")
    assert first.store.is_completed(first.session_id)
    assert first.store.submissions[0].visited_path == (1, 2, 3, 4)
