"""Question visibility: which configured questions are active for the current answers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence

from govassess.engine.conditions import evaluate_tree, is_empty
from govassess.engine.models import Question


def is_visible(question: Question, answers: Mapping[str, Any]) -> bool:
    if question.visibility is None:
        return True
    return evaluate_tree(answers, question.visibility)


def visible_questions(questions: Sequence[Question], answers: Mapping[str, Any]) -> List[Question]:
    """
    Return the questions currently shown, in configured order.

    Never cached: a later answer can hide or reveal questions anywhere in the list,
    so callers recompute after every answer change.
    """
    return [q for q in questions if is_visible(q, answers)]


@dataclass(frozen=True)
class Progress:
    visible: int
    answered: int
    percent: float
    required: int
    required_answered: int
    required_percent: float


def progress(questions: Sequence[Question], answers: Mapping[str, Any]) -> Progress:
    shown = visible_questions(questions, answers)
    answered = [q for q in shown if q.id in answers and not is_empty(answers[q.id])]
    required = [q for q in shown if q.required]
    required_answered = [q for q in required if q.id in answers and not is_empty(answers[q.id])]

    percent = (len(answered) / len(shown) * 100.0) if shown else 0.0
    required_percent = (len(required_answered) / len(required) * 100.0) if required else 100.0
    return Progress(
        visible=len(shown),
        answered=len(answered),
        percent=round(percent, 1),
        required=len(required),
        required_answered=len(required_answered),
        required_percent=round(required_percent, 1),
    )
