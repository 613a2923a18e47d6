"""Type-specific answer validation and normalization."""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

from govassess.engine.conditions import is_empty
from govassess.engine.models import Question, QuestionType, ValidationIssue


def _issue(question: Question, constraint: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=question.id, constraint=constraint, message=message)


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def check_answer(question: Question, value: Any) -> Tuple[Any, List[ValidationIssue]]:
    """
    Validate ``value`` against ``question`` and return (normalized_value, issues).

    Normalization: multi-select values become a frozenset, dates become
    ``datetime.date``, integral float ratings become ints. An empty value on an
    optional question is accepted as-is; ``None`` means "clear the answer".
    """
    if is_empty(value):
        if question.required:
            msg = (
                "Please select at least one option"
                if question.type == QuestionType.MULTI_SELECT and value is not None
                else "This question is required"
            )
            return value, [_issue(question, "required", msg)]
        if question.type == QuestionType.MULTI_SELECT and value is not None and not isinstance(value, str):
            return frozenset(), []
        return value, []

    qtype = question.type
    issues: List[ValidationIssue] = []

    if qtype == QuestionType.SINGLE_SELECT:
        if not isinstance(value, str):
            return value, [_issue(question, "type", "Expected a single option value")]
        if question.options and value not in question.option_values():
            issues.append(_issue(question, "option", f"'{value}' is not one of the available options"))
        return value, issues

    if qtype == QuestionType.MULTI_SELECT:
        if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
            return value, [_issue(question, "type", "Expected a list of option values")]
        if not all(isinstance(v, str) for v in value):
            return value, [_issue(question, "type", "Option values must be strings")]
        selected = frozenset(value)
        if question.options:
            unknown = sorted(selected - set(question.option_values()))
            if unknown:
                issues.append(_issue(question, "option", f"Unknown options: {', '.join(unknown)}"))
        max_selections = question.max_selections or (len(question.options) or None)
        if len(selected) < question.min_selections:
            issues.append(_issue(question, "min_selections", f"Select at least {question.min_selections} options"))
        if max_selections is not None and len(selected) > max_selections:
            issues.append(_issue(question, "max_selections", f"Select up to {max_selections} options"))
        return selected, issues

    if qtype == QuestionType.TEXT:
        if not isinstance(value, str):
            return value, [_issue(question, "type", "Invalid input type, expected a string")]
        if len(value) < question.min_length:
            issues.append(_issue(question, "min_length", f"Minimum length is {question.min_length} characters"))
        if len(value) > question.max_length:
            issues.append(_issue(question, "max_length", f"Maximum length is {question.max_length} characters"))
        if question.pattern:
            try:
                if re.search(question.pattern, value) is None:
                    issues.append(
                        _issue(question, "pattern", f"Input does not match required pattern: {question.pattern}")
                    )
            except re.error:
                issues.append(_issue(question, "pattern", f"Configured pattern is invalid: {question.pattern}"))
        return value, issues

    if qtype == QuestionType.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return value, [_issue(question, "type", "Invalid input type, expected a number")]
        if math.isnan(value) or math.isinf(value):
            return value, [_issue(question, "type", "Value must be a finite number")]
        if question.min_value is not None and value < question.min_value:
            issues.append(_issue(question, "min_value", f"Value must be at least {question.min_value:g}"))
        if question.max_value is not None and value > question.max_value:
            issues.append(_issue(question, "max_value", f"Value must not exceed {question.max_value:g}"))
        return value, issues

    if qtype == QuestionType.DATE:
        parsed = _parse_date(value)
        if parsed is None:
            return value, [_issue(question, "date", "Invalid date format, expected YYYY-MM-DD")]
        if question.min_date and parsed < question.min_date:
            issues.append(_issue(question, "min_date", f"Date must be on or after {question.min_date.isoformat()}"))
        if question.max_date and parsed > question.max_date:
            issues.append(_issue(question, "max_date", f"Date must be on or before {question.max_date.isoformat()}"))
        return parsed, issues

    if qtype == QuestionType.RATING:
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, bool) or not isinstance(value, int):
            return value, [_issue(question, "type", "Rating must be a whole number")]
        if value < 1 or value > question.scale:
            issues.append(_issue(question, "range", f"Rating must be between 1 and {question.scale}"))
        return value, issues

    return value, [_issue(question, "type", f"Unknown question type: {qtype}")]


def validate_answer(question: Question, value: Any) -> List[ValidationIssue]:
    _, issues = check_answer(question, value)
    return issues


def required_issues(question: Question, answers: dict) -> List[ValidationIssue]:
    # Completion check: a required question must hold a non-empty answer.
    if question.required and is_empty(answers.get(question.id)):
        return [_issue(question, "required", "This question is required")]
    return []
