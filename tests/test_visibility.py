from govassess.engine.models import Condition, ConditionGroup, Question, QuestionType
from govassess.engine.visibility import is_visible, progress, visible_questions


def _questions():
    return [
        Question(id="q1", type=QuestionType.SINGLE_SELECT),
        Question(id="q2", type=QuestionType.SINGLE_SELECT),
        Question(id="q3", type=QuestionType.TEXT, required=False),
        Question(id="q4", type=QuestionType.NUMBER, visibility=ConditionGroup("AND", ())),
        Question(
            id="q5",
            type=QuestionType.TEXT,
            visibility=Condition(field="q2", operator="equals", value="managed"),
        ),
    ]


def ids(questions):
    return [q.id for q in questions]


def test_hidden_until_condition_met():
    questions = _questions()
    assert ids(visible_questions(questions, {"q2": "basic"})) == ["q1", "q2", "q3", "q4"]
    assert ids(visible_questions(questions, {"q2": "managed"})) == ["q1", "q2", "q3", "q4", "q5"]


def test_recomputed_after_answer_change():
    questions = _questions()
    answers = {"q2": "managed"}
    assert "q5" in ids(visible_questions(questions, answers))
    answers["q2"] = "basic"
    assert "q5" not in ids(visible_questions(questions, answers))


def test_later_answer_can_hide_earlier_question():
    questions = [
        Question(id="a", type=QuestionType.TEXT, visibility=Condition("b", "is_empty")),
        Question(id="b", type=QuestionType.TEXT),
    ]
    assert ids(visible_questions(questions, {})) == ["a", "b"]
    assert ids(visible_questions(questions, {"b": "filled"})) == ["b"]


def test_no_conditions_always_visible():
    q = Question(id="q", type=QuestionType.TEXT)
    assert is_visible(q, {})
    assert is_visible(q, {"anything": "at all"})


def test_progress_counts_visible_questions_only():
    questions = _questions()
    p = progress(questions, {"q1": "x", "q2": "basic", "q3": ""})
    assert p.visible == 4
    assert p.answered == 2
    assert p.percent == 50.0
    assert p.required == 3
    assert p.required_answered == 2
    assert p.required_percent == 66.7


def test_progress_with_nothing_visible():
    p = progress([], {})
    assert p.visible == 0
    assert p.percent == 0.0
    assert p.required_percent == 100.0
