#!/usr/bin/env python3
"""
Complete Pipeline Demo: Questions → Flow Graph → Analysis → Answering → Editing

Shows the full workflow:
1. Load a survey definition (YAML/JSON file, or the built-in doctor survey)
2. Build the flow graph and analyze it
3. Walk it as a respondent, including a step back
4. Rewire it in the editor and save the re-encoded rules
"""

import logging
import sys

from surveyflow.analyzer import analyze_flow
from surveyflow.backends import DotMode, save_dot_file
from surveyflow.config import load_settings
from surveyflow.editor import option_handle, save_editable_graph, to_editable_graph
from surveyflow.examples import build_example_doctor_survey
from surveyflow.graph import build_flow_graph
from surveyflow.model import AnswerKind
from surveyflow.recorder import ResponseRecorder
from surveyflow.serialization import load_survey_file
from surveyflow.store import InMemoryResponseStore
from surveyflow.traversal import TraversalEngine


class PrintingQuestionStore:
    def save_questions(self, survey_id, questions):
        for q in questions:
            print(f"   ✓ Saved question {q.id}: {q.rule}")


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = load_settings()

    if len(sys.argv) > 1:
        name, questions = load_survey_file(sys.argv[1])
    else:
        name, questions = "Doctor feedback", build_example_doctor_survey()

    print("=" * 80)
    print(f"SURVEY FLOW DEMO: {name}")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Build and analyze
    # =========================================================================
    print("\n1. BUILDING FLOW GRAPH...")
    graph = build_flow_graph(questions)
    report = analyze_flow(graph)
    print(f"   ✓ Questions: {report.total_questions}")
    print(f"   ✓ Edges: {report.total_edges} ({report.branch_edges} branches)")
    print(f"   ✓ Entry point: {report.entry_point}")
    print(f"   ✓ Exit points: {report.exit_points}")
    for warning in report.warnings:
        print(f"      - {warning}")

    # =========================================================================
    # STEP 2: Answer as a respondent
    # =========================================================================
    print("\n2. ANSWERING...")
    store = InMemoryResponseStore()
    engine = TraversalEngine.with_hop_cap(graph, settings.hop_cap_factor)
    recorder = ResponseRecorder(engine, survey_id=name, store=store)
    stepped_back = False
    while not recorder.state.is_finished:
        question = engine.current_question(recorder.state)
        answer = question.options[0] if question.is_choice else ("5" if question.kind is AnswerKind.SCALE else "ok")
        print(f"   ? {question.text} -> {answer}")
        recorder.on_answer(question.id, answer)
        if not stepped_back and recorder.on_back():
            stepped_back = True
            print(f"   ← Back to {recorder.state.current_question_id}")
    submission = recorder.finalize()
    print(f"   ✓ Submitted {len(submission.answers)} answers, path {list(submission.visited_path)}")

    # =========================================================================
    # STEP 3: Edit the flow
    # =========================================================================
    print("\n3. EDITING...")
    editable = to_editable_graph(graph, settings=settings)
    first = editable.nodes[0]
    if first.question.is_choice and len(editable.nodes) > 2:
        editable.connect(first.id, editable.nodes[-1].id, option_handle(0))
    save_editable_graph(name, editable, questions, PrintingQuestionStore())

    save_dot_file(graph, "survey_flow.dot", mode=DotMode.DETAILED)
    print("\n   ✓ Diagram written to survey_flow.dot")


if __name__ == "__main__":
    main()
