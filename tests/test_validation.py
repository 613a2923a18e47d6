from datetime import date

import pytest

from govassess.engine.models import Option, Question, QuestionType
from govassess.engine.validation import check_answer, required_issues, validate_answer


def constraints(issues):
    return [i.constraint for i in issues]


CHOICES = (Option("a", "A"), Option("b", "B"), Option("c", "C"))


class TestRequired:
    def test_missing_required(self):
        q = Question(id="q", type=QuestionType.TEXT)
        issues = validate_answer(q, "  ")
        assert constraints(issues) == ["required"]
        assert issues[0].field == "q"

    def test_empty_multi_select_message(self):
        q = Question(id="q", type=QuestionType.MULTI_SELECT, options=CHOICES)
        assert validate_answer(q, [])[0].message == "Please select at least one option"

    def test_optional_empty_is_accepted(self):
        q = Question(id="q", type=QuestionType.MULTI_SELECT, required=False, options=CHOICES)
        assert check_answer(q, []) == (frozenset(), [])

    def test_required_issues_for_completion(self):
        q = Question(id="q", type=QuestionType.TEXT)
        assert constraints(required_issues(q, {})) == ["required"]
        assert required_issues(q, {"q": "done"}) == []


class TestChoices:
    def test_single_select_unknown_option(self):
        q = Question(id="q", type=QuestionType.SINGLE_SELECT, options=CHOICES)
        assert constraints(validate_answer(q, "z")) == ["option"]
        assert validate_answer(q, "a") == []

    def test_single_select_wrong_type(self):
        q = Question(id="q", type=QuestionType.SINGLE_SELECT, options=CHOICES)
        assert constraints(validate_answer(q, ["a"])) == ["type"]

    def test_multi_select_normalizes_to_frozenset(self):
        q = Question(id="q", type=QuestionType.MULTI_SELECT, options=CHOICES)
        value, issues = check_answer(q, ["a", "b", "a"])
        assert value == frozenset({"a", "b"})
        assert issues == []

    def test_multi_select_bounds(self):
        q = Question(id="q", type=QuestionType.MULTI_SELECT, options=CHOICES, min_selections=2, max_selections=2)
        assert constraints(validate_answer(q, ["a"])) == ["min_selections"]
        assert constraints(validate_answer(q, ["a", "b", "c"])) == ["max_selections"]

    def test_multi_select_string_rejected(self):
        q = Question(id="q", type=QuestionType.MULTI_SELECT, options=CHOICES)
        assert constraints(validate_answer(q, "a")) == ["type"]


class TestText:
    def test_length(self):
        q = Question(id="q", type=QuestionType.TEXT, min_length=3, max_length=5)
        assert constraints(validate_answer(q, "ab")) == ["min_length"]
        assert constraints(validate_answer(q, "abcdef")) == ["max_length"]

    def test_pattern(self):
        q = Question(id="q", type=QuestionType.TEXT, pattern=r"^[A-Z]{3}$")
        assert validate_answer(q, "ABC") == []
        assert constraints(validate_answer(q, "abc")) == ["pattern"]

    def test_invalid_configured_pattern(self):
        q = Question(id="q", type=QuestionType.TEXT, pattern="(")
        assert constraints(validate_answer(q, "x")) == ["pattern"]


class TestNumber:
    def test_range(self):
        q = Question(id="q", type=QuestionType.NUMBER, min_value=0, max_value=10)
        assert validate_answer(q, 10) == []
        assert constraints(validate_answer(q, -1)) == ["min_value"]
        assert constraints(validate_answer(q, 11)) == ["max_value"]

    @pytest.mark.parametrize("bad", ["5", True, float("inf")])
    def test_type(self, bad):
        q = Question(id="q", type=QuestionType.NUMBER)
        assert constraints(validate_answer(q, bad)) == ["type"]


class TestDate:
    def test_parsed_from_iso(self):
        q = Question(id="q", type=QuestionType.DATE)
        assert check_answer(q, "2024-05-01") == (date(2024, 5, 1), [])

    def test_bounds(self):
        q = Question(id="q", type=QuestionType.DATE, min_date=date(2024, 1, 1), max_date=date(2024, 12, 31))
        assert constraints(validate_answer(q, "2023-12-31")) == ["min_date"]
        assert constraints(validate_answer(q, "2025-01-01")) == ["max_date"]

    def test_invalid(self):
        q = Question(id="q", type=QuestionType.DATE)
        assert constraints(validate_answer(q, "31/12/2024")) == ["date"]


class TestRating:
    def test_range(self):
        q = Question(id="q", type=QuestionType.RATING, scale=5)
        assert validate_answer(q, 5) == []
        assert constraints(validate_answer(q, 0)) == ["range"]
        assert constraints(validate_answer(q, 6)) == ["range"]

    def test_integral_float_accepted(self):
        q = Question(id="q", type=QuestionType.RATING)
        assert check_answer(q, 4.0) == (4, [])
        assert constraints(validate_answer(q, 3.5)) == ["type"]
