"""Scoring policy, governance-level thresholds and the answer-based baseline score."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple

from govassess.engine.models import GovernanceLevel, Question, QuestionType
from govassess.engine.visibility import visible_questions

WEIGHTING_MODES = ("weighted_mean", "mean", "max")


@dataclass(frozen=True)
class ScoringPolicy:
    # Per-deployment tuning; see Settings.scoring_policy().
    high_threshold: float = 70.0
    medium_threshold: float = 40.0
    weighting: str = "weighted_mean"
    fallback_template: str = "basic_governance_template"


def clamp_score(value: Any) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(v):
        return 0.0
    return min(100.0, max(0.0, v))


def level_for(score: float, policy: Optional[ScoringPolicy] = None) -> GovernanceLevel:
    policy = policy or ScoringPolicy()
    if score >= policy.high_threshold:
        return GovernanceLevel.HIGH
    if score >= policy.medium_threshold:
        return GovernanceLevel.MEDIUM
    return GovernanceLevel.LOW


def aggregate_confidence(entries: Sequence[Tuple[float, float]], mode: str = "weighted_mean") -> float:
    """Combine (confidence, weight) pairs; falls back to a plain mean when all weights are zero."""
    if not entries:
        return 0.0
    if mode == "max":
        return max(c for c, _ in entries)
    total_weight = sum(w for _, w in entries)
    if mode == "mean" or total_weight <= 0:
        return sum(c for c, _ in entries) / len(entries)
    return sum(c * w for c, w in entries) / total_weight


# -------------------------
# Baseline (answer-based) score
# -------------------------

def _text_score(answer: str) -> float:
    n = len(answer.strip())
    if n == 0:
        return 0.0
    if n < 10:
        return 2.0
    if n < 50:
        return 5.0
    if n < 100:
        return 7.0
    return 10.0


def question_score(question: Question, answer: Any) -> Tuple[float, float]:
    """Return (score, max_score) for one question; an unanswered question scores 0."""
    qtype = question.type

    if qtype == QuestionType.SINGLE_SELECT:
        max_score = max((o.score for o in question.options), default=0.0)
        opt = question.option(answer) if answer is not None else None
        return (opt.score if opt else 0.0), max_score

    if qtype == QuestionType.MULTI_SELECT:
        max_score = sum(o.score for o in question.options)
        if not isinstance(answer, (list, tuple, set, frozenset)):
            return 0.0, max_score
        score = 0.0
        for value in answer:
            opt = question.option(value)
            if opt:
                score += opt.score
        return score, max_score

    if qtype == QuestionType.RATING:
        if isinstance(answer, bool) or not isinstance(answer, (int, float)):
            return 0.0, 10.0
        scale = question.scale or 5
        if answer < 1 or answer > scale:
            return 0.0, 10.0
        return float(round(answer / scale * 10)), 10.0

    if qtype == QuestionType.NUMBER:
        if isinstance(answer, bool) or not isinstance(answer, (int, float)):
            return 0.0, 10.0
        low = question.min_value if question.min_value is not None else 0.0
        high = question.max_value if question.max_value is not None else 100.0
        if high <= low:
            return 0.0, 10.0
        normalized = max(0.0, min(1.0, (answer - low) / (high - low)))
        return float(round(normalized * 10)), 10.0

    if qtype == QuestionType.TEXT:
        return (_text_score(answer) if isinstance(answer, str) else 0.0), 10.0

    # Dates carry no maturity signal.
    return 0.0, 0.0


def baseline_score(questions: Sequence[Question], answers: Mapping[str, Any]) -> float:
    """Weighted percentage (0-100) of the maximum attainable score over the visible questions."""
    total = 0.0
    maximum = 0.0
    for q in visible_questions(questions, answers):
        score, max_score = question_score(q, answers.get(q.id))
        total += score * q.weight
        maximum += max_score * q.weight
    if maximum <= 0:
        return 0.0
    return clamp_score(total / maximum * 100.0)
