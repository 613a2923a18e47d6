from datetime import date

import pytest

from govassess.engine.conditions import (
    CONDITION_OPERATORS,
    evaluate_condition,
    evaluate_tree,
    explain_tree,
    is_known_operator,
    normalize_operator,
    tree_from_obj,
    tree_to_obj,
)
from govassess.engine.models import Condition, ConditionGroup


def cond(field, operator, value=None):
    return Condition(field=field, operator=operator, value=value)


# =============================================================================
# Predicates
# =============================================================================

class TestMissingAnswer:
    @pytest.mark.parametrize(
        "operator,value",
        [
            ("equals", "x"),
            ("contains", "x"),
            ("greater_than", 1),
            ("less_than", 1),
            ("in_list", ["x"]),
            ("between", [0, 10]),
            ("regex_match", ".*"),
        ],
    )
    def test_false(self, operator, value):
        assert evaluate_condition({}, cond("q1", operator, value)) is False

    def test_is_empty_true(self):
        assert evaluate_condition({}, cond("q1", "is_empty")) is True
        assert evaluate_condition({}, cond("q1", "is_not_empty")) is False

    def test_not_equals_and_not_contains(self):
        assert evaluate_condition({}, cond("q1", "not_equals", "x")) is True
        assert evaluate_condition({}, cond("q1", "not_contains", "x")) is True


class TestEquality:
    def test_scalar(self):
        assert evaluate_condition({"q1": "a"}, cond("q1", "equals", "a"))
        assert not evaluate_condition({"q1": "a"}, cond("q1", "equals", "b"))

    def test_number_against_numeric_string(self):
        assert evaluate_condition({"q1": 5}, cond("q1", "equals", "5"))

    def test_bool_does_not_equal_number(self):
        assert not evaluate_condition({"q1": True}, cond("q1", "equals", 1))

    def test_sets_compare_unordered(self):
        answers = {"q1": frozenset({"a", "b"})}
        assert evaluate_condition(answers, cond("q1", "equals", ["b", "a"]))

    def test_date_against_iso_string(self):
        answers = {"q1": date(2024, 3, 1)}
        assert evaluate_condition(answers, cond("q1", "equals", "2024-03-01"))


class TestMembership:
    def test_contains(self):
        answers = {"q3": frozenset({"hipaa", "gdpr"})}
        assert evaluate_condition(answers, cond("q3", "contains", "hipaa"))
        assert not evaluate_condition(answers, cond("q3", "contains", "sox"))
        assert evaluate_condition(answers, cond("q3", "not_contains", "sox"))

    def test_scalar_answer_is_neither(self):
        answers = {"q3": "hipaa"}
        assert not evaluate_condition(answers, cond("q3", "contains", "hipaa"))
        assert not evaluate_condition(answers, cond("q3", "not_contains", "hipaa"))

    def test_in_list(self):
        assert evaluate_condition({"q1": "b"}, cond("q1", "in_list", ["a", "b"]))
        assert not evaluate_condition({"q1": "c"}, cond("q1", "in_list", ["a", "b"]))
        assert evaluate_condition({"q1": "c"}, cond("q1", "not_in_list", ["a", "b"]))

    def test_in_list_requires_list_value(self):
        assert not evaluate_condition({"q1": "a"}, cond("q1", "in_list", "a"))


class TestOrdering:
    def test_numeric_coercion(self):
        assert evaluate_condition({"q1": "7"}, cond("q1", "greater_than", 5))
        assert evaluate_condition({"q1": 3}, cond("q1", "less_than", "5"))
        assert evaluate_condition({"q1": 5}, cond("q1", "greater_than_or_equal", 5))
        assert evaluate_condition({"q1": 5}, cond("q1", "less_than_or_equal", 5))

    def test_failed_coercion_is_false(self):
        assert not evaluate_condition({"q1": "abc"}, cond("q1", "greater_than", 1))
        assert not evaluate_condition({"q1": "abc"}, cond("q1", "less_than", 1))
        assert not evaluate_condition({"q1": 4}, cond("q1", "greater_than", None))

    def test_between_inclusive(self):
        assert evaluate_condition({"q1": 10}, cond("q1", "between", [1, 10]))
        assert not evaluate_condition({"q1": 11}, cond("q1", "between", [1, 10]))
        assert not evaluate_condition({"q1": 5}, cond("q1", "between", [1]))

    def test_dates(self):
        answers = {"q1": date(2024, 6, 1)}
        assert evaluate_condition(answers, cond("q1", "greater_than", "2024-01-01"))
        assert not evaluate_condition(answers, cond("q1", "greater_than", "not a date"))


class TestMisc:
    def test_regex(self):
        assert evaluate_condition({"q1": "ACME Corp"}, cond("q1", "regex_match", r"^ACME"))
        assert not evaluate_condition({"q1": "ACME Corp"}, cond("q1", "regex_match", "(unclosed"))

    def test_empty_values(self):
        for empty in ("", "   ", frozenset(), []):
            assert evaluate_condition({"q1": empty}, cond("q1", "is_empty"))
        assert evaluate_condition({"q1": 0}, cond("q1", "is_not_empty"))

    def test_unknown_operator_is_false(self):
        assert evaluate_condition({"q1": "a"}, cond("q1", "sounds_like", "a")) is False
        assert evaluate_condition({"q1": "a"}, cond("q1", "", "a")) is False

    def test_operator_aliases(self):
        assert normalize_operator("not-equals") == "not_equals"
        assert normalize_operator("in") == "in_list"
        assert is_known_operator("greater-than")
        assert not is_known_operator(None)

    def test_answers_prefix(self):
        assert evaluate_condition({"q1": "a"}, cond("answers.q1", "equals", "a"))

    def test_raw_dict(self):
        assert evaluate_condition({"q1": "a"}, {"field": "q1", "operator": "equals", "value": "a"})


# =============================================================================
# Trees
# =============================================================================

FIN = cond("q1", "equals", "financial_data")
HIPAA = cond("q3", "contains", "hipaa")

ANSWER_MAPS = [
    {},
    {"q1": "financial_data"},
    {"q3": frozenset({"hipaa"})},
    {"q1": "financial_data", "q3": frozenset({"hipaa"})},
    {"q1": "customer_data", "q3": frozenset({"gdpr"})},
]

TREES = [
    FIN,
    ConditionGroup("AND", (FIN, HIPAA)),
    ConditionGroup("OR", (FIN, HIPAA)),
    ConditionGroup("XOR", (FIN, HIPAA)),
    ConditionGroup("OR", (ConditionGroup("NOT", (FIN,)), HIPAA)),
    ConditionGroup("AND", ()),
    {},
    {"operator": "OR", "children": [{}, tree_to_obj(FIN)]},
]


class TestTrees:
    @pytest.mark.parametrize("tree", TREES)
    @pytest.mark.parametrize("answers", ANSWER_MAPS)
    def test_double_negation(self, tree, answers):
        doubled = ConditionGroup("NOT", (ConditionGroup("NOT", (tree,)),))
        assert evaluate_tree(answers, doubled) == evaluate_tree(answers, tree)

    @pytest.mark.parametrize("answers", ANSWER_MAPS)
    def test_double_negation_of_raw_documents(self, answers):
        raw = {"operator": "NOT", "children": [{"operator": "NOT", "children": [tree_to_obj(FIN)]}]}
        assert evaluate_tree(answers, raw) == evaluate_tree(answers, FIN)

    @pytest.mark.parametrize("empty_child", [{}, None])
    def test_not_of_empty_child_is_false(self, empty_child):
        raw = {"operator": "NOT", "children": [empty_child]}
        assert evaluate_tree({}, raw) is False
        doubled = {"operator": "NOT", "children": [raw]}
        assert evaluate_tree({}, doubled) is True

    def test_empty_child_kept_as_empty_and(self):
        tree = tree_from_obj({"operator": "XOR", "children": [{}, tree_to_obj(FIN)]})
        assert tree.children[0] == ConditionGroup("AND", ())
        assert evaluate_tree({}, tree) is True
        assert evaluate_tree({"q1": "financial_data"}, tree) is False

    @pytest.mark.parametrize("empty", [None, {}, [], ConditionGroup("AND", ()), ConditionGroup("OR", ())])
    def test_empty_tree_is_true(self, empty):
        assert evaluate_tree({}, empty) is True

    def test_and_or(self):
        answers = {"q1": "financial_data"}
        assert not evaluate_tree(answers, ConditionGroup("AND", (FIN, HIPAA)))
        assert evaluate_tree(answers, ConditionGroup("OR", (FIN, HIPAA)))

    def test_xor(self):
        tree = ConditionGroup("XOR", (FIN, HIPAA))
        assert evaluate_tree({"q1": "financial_data"}, tree)
        assert not evaluate_tree({"q1": "financial_data", "q3": frozenset({"hipaa"})}, tree)
        assert not evaluate_tree({}, tree)

    def test_lowercase_operator(self):
        assert evaluate_tree({"q1": "financial_data"}, {"operator": "or", "children": [tree_to_obj(FIN)]})

    def test_unknown_logical_operator_behaves_as_and(self):
        tree = ConditionGroup("NAND", (FIN, HIPAA))
        assert not evaluate_tree({"q1": "financial_data"}, tree)

    def test_malformed_group_missing_children(self):
        assert evaluate_tree({}, {"operator": "AND"}) is True
        assert evaluate_tree({}, {"operator": "OR", "children": None}) is True

    def test_legacy_rules_key(self):
        raw = {
            "operator": "OR",
            "rules": [
                {"field": "q1", "operator": "equals", "value": "financial_data"},
                {"questionId": "q3", "operator": "contains", "value": "hipaa"},
            ],
        }
        tree = tree_from_obj(raw)
        assert isinstance(tree, ConditionGroup)
        assert tree.children[1] == HIPAA
        assert evaluate_tree({"q3": ["hipaa"]}, raw)

    def test_garbage_node_is_false(self):
        assert evaluate_tree({}, 42) is False
        assert evaluate_tree({}, ConditionGroup("AND", (42,))) is False

    def test_round_trip_obj(self):
        tree = ConditionGroup("OR", (FIN, ConditionGroup("NOT", (HIPAA,))))
        assert tree_from_obj(tree_to_obj(tree)) == tree

    def test_explain_tree_reports_every_leaf(self):
        outcome = explain_tree({"q1": "financial_data"}, ConditionGroup("OR", (FIN, HIPAA)))
        assert outcome == [(FIN, True), (HIPAA, False)]


def test_operator_catalogue():
    assert set(CONDITION_OPERATORS) == {
        "equals",
        "not_equals",
        "contains",
        "not_contains",
        "greater_than",
        "less_than",
        "greater_than_or_equal",
        "less_than_or_equal",
        "between",
        "in_list",
        "not_in_list",
        "regex_match",
        "is_empty",
        "is_not_empty",
    }
