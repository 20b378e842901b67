"""
Example survey builders.

Small question sets covering the flow shapes the engine has to handle:
a plain linear survey, a choice question that branches, a question that
routes back to itself, and a realistic doctor feedback survey mixing all
answer kinds.
"""
from typing import List

from surveyflow.codec import encode_rule
from surveyflow.model import AnswerKind, Question, TransitionRule


def build_linear_survey(question_count: int = 3) -> List[Question]:
    """Questions A, B, C, ... with no rules, routed by order_index only."""
    return [
        Question(id=chr(ord("A") + i), text=f"Question {chr(ord('A') + i)}", order_index=i)
        for i in range(question_count)
    ]


def build_branching_survey() -> List[Question]:
    """A asks yes/no: "yes" jumps to C, anything else goes to B by default."""
    rule = TransitionRule(default_next_id="B", branches={"yes": "C"})
    return [
        Question(id="A", text="Do you prescribe this drug?", kind=AnswerKind.CHOICE,
                 options=["yes", "no"], order_index=0, required=True, rule=encode_rule(rule)),
        Question(id="B", text="Why not?", order_index=1),
        Question(id="C", text="How satisfied are you?", kind=AnswerKind.SCALE, order_index=2),
    ]


def build_self_loop_survey() -> List[Question]:
    """A single question whose default edge points back at itself."""
    return [
        Question(id="A", text="Anything else to add?", order_index=0,
                 rule=encode_rule(TransitionRule(default_next_id="A"))),
    ]


def build_example_doctor_survey() -> List[Question]:
    """
    Doctor feedback survey with integer ids, as stored by the platform.

    Flow:
        1 (mcq) --default--> 2 (scale) -> 3 (text) -> 4 (text) -> end
        1 (mcq) --"Never"--> 4
        2 -> 3 -> 4 follow order_index; there are no explicit rules there.
    """
    return [
        Question(
            id=1,
            text="How often do you prescribe Cardiozen?",
            kind=AnswerKind.CHOICE,
            options=["Daily", "Weekly", "Never"],
            order_index=0,
            required=True,
            rule=encode_rule(TransitionRule(default_next_id=2, branches={"Never": 4})),
        ),
        Question(
            id=2,
            text="How effective has it been for your patients?",
            kind=AnswerKind.SCALE,
            order_index=1,
            required=True,
        ),
        Question(
            id=3,
            text="Which side effects have you observed?",
            order_index=2,
        ),
        Question(
            id=4,
            text="Any other comments?",
            order_index=3,
        ),
    ]
