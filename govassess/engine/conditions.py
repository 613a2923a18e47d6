"""Condition predicates and logical condition trees.

Both evaluators are pure functions over an answer map and never raise:
configuration is end-user editable, so a malformed condition evaluates to
``False`` (and is logged) instead of breaking the caller.
"""

from __future__ import annotations

import math
import operator as _op
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from govassess.app.logging import get_logger
from govassess.engine.models import LOGICAL_OPERATORS, Condition, ConditionGroup, ConditionTree

logger = get_logger(__name__)

_OPERATOR_ALIASES = {
    "in": "in_list",
    "not_in": "not_in_list",
    "eq": "equals",
    "neq": "not_equals",
    "gt": "greater_than",
    "lt": "less_than",
    "gte": "greater_than_or_equal",
    "lte": "less_than_or_equal",
}

_ANSWERS_PREFIX = "answers."


def normalize_operator(name: Any) -> str:
    if not isinstance(name, str):
        return ""
    key = name.strip().lower().replace("-", "_")
    return _OPERATOR_ALIASES.get(key, key)


def field_value(answers: Mapping[str, Any], field: Any) -> Any:
    # Missing answers behave as None.
    if not isinstance(answers, Mapping) or not isinstance(field, str):
        return None
    if field in answers:
        return answers[field]
    if field.startswith(_ANSWERS_PREFIX):
        return answers.get(field[len(_ANSWERS_PREFIX):])
    return None


# -------------------------
# Value helpers
# -------------------------

def _is_collection(v: Any) -> bool:
    return isinstance(v, (list, tuple, set, frozenset))


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _to_number(v: Any) -> Optional[float]:
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        f = float(v)
    elif isinstance(v, str):
        try:
            f = float(v.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(f) else f


def _to_date(v: Any) -> Optional[date]:
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    if isinstance(v, str):
        try:
            return date.fromisoformat(v.strip()[:10])
        except ValueError:
            return None
    return None


def _comparable(a: Any, b: Any) -> Optional[Tuple[Any, Any]]:
    if isinstance(a, date) or isinstance(b, date):
        da, db = _to_date(a), _to_date(b)
        return (da, db) if da is not None and db is not None else None
    na, nb = _to_number(a), _to_number(b)
    return (na, nb) if na is not None and nb is not None else None


def values_equal(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is None and b is None
    if _is_collection(a) and _is_collection(b):
        try:
            return set(a) == set(b)
        except TypeError:
            return list(a) == list(b)
    if _is_collection(a) or _is_collection(b):
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if (_is_number(a) and isinstance(b, str)) or (isinstance(a, str) and _is_number(b)):
        pair = _comparable(a, b)
        return pair is not None and pair[0] == pair[1]
    if isinstance(a, date) or isinstance(b, date):
        pair = _comparable(a, b)
        return pair is not None and pair[0] == pair[1]
    return a == b


def is_empty(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, str):
        return not v.strip()
    if _is_collection(v) or isinstance(v, Mapping):
        return len(v) == 0
    return False


# -------------------------
# Predicates
# -------------------------

def _contains(answer: Any, expected: Any) -> bool:
    if not _is_collection(answer):
        return False
    return any(values_equal(item, expected) for item in answer)


def _not_contains(answer: Any, expected: Any) -> bool:
    if answer is None:
        return True
    if not _is_collection(answer):
        return False
    return not _contains(answer, expected)


def _ordered(cmp: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def check(answer: Any, expected: Any) -> bool:
        pair = _comparable(answer, expected)
        if pair is None:
            return False
        return cmp(pair[0], pair[1])

    return check


def _between(answer: Any, expected: Any) -> bool:
    if not isinstance(expected, (list, tuple)) or len(expected) != 2:
        return False
    low = _comparable(answer, expected[0])
    high = _comparable(answer, expected[1])
    if low is None or high is None:
        return False
    return low[1] <= low[0] <= high[1]


def _in_list(answer: Any, expected: Any) -> bool:
    if not isinstance(expected, (list, tuple, set, frozenset)):
        return False
    if answer is None or _is_collection(answer):
        return False
    return any(values_equal(answer, item) for item in expected)


def _not_in_list(answer: Any, expected: Any) -> bool:
    if not isinstance(expected, (list, tuple, set, frozenset)):
        return False
    if _is_collection(answer):
        return False
    return not any(values_equal(answer, item) for item in expected)


def _regex_match(answer: Any, expected: Any) -> bool:
    if answer is None or _is_collection(answer) or not isinstance(expected, str):
        return False
    try:
        return re.search(expected, str(answer)) is not None
    except re.error:
        logger.warning("invalid regex_match pattern", extra={"pattern": expected})
        return False


_PREDICATES: Dict[str, Callable[[Any, Any], bool]] = {
    "equals": values_equal,
    "not_equals": lambda a, b: not values_equal(a, b),
    "contains": _contains,
    "not_contains": _not_contains,
    "greater_than": _ordered(_op.gt),
    "less_than": _ordered(_op.lt),
    "greater_than_or_equal": _ordered(_op.ge),
    "less_than_or_equal": _ordered(_op.le),
    "between": _between,
    "in_list": _in_list,
    "not_in_list": _not_in_list,
    "regex_match": _regex_match,
    "is_empty": lambda a, _b: is_empty(a),
    "is_not_empty": lambda a, _b: not is_empty(a),
}

CONDITION_OPERATORS = tuple(_PREDICATES)


def is_known_operator(name: Any) -> bool:
    return normalize_operator(name) in _PREDICATES


def is_known_logical_operator(name: Any) -> bool:
    # A blank group operator means AND.
    if name is None or name == "":
        return True
    return isinstance(name, str) and name.upper() in LOGICAL_OPERATORS


# -------------------------
# Lenient parsing (raw dicts from UI-edited configuration)
# -------------------------

def tree_from_obj(obj: Any) -> Optional[ConditionTree]:
    """
    Build a condition tree from a loosely-typed object without raising.

    Accepts the ``children`` key and the legacy ``rules`` key for groups, the
    legacy ``questionId`` key for leaves, and a bare list as an implicit AND.
    Returns None for an absent/empty tree.
    """
    if obj is None:
        return None
    if isinstance(obj, (Condition, ConditionGroup)):
        return obj
    if isinstance(obj, (list, tuple)):
        return ConditionGroup("AND", _children_from(obj))
    if isinstance(obj, Mapping):
        if not obj:
            return None
        raw_op = obj.get("operator")
        is_group = (
            "children" in obj
            or "rules" in obj
            or ("field" not in obj and "questionId" not in obj
                and isinstance(raw_op, str) and raw_op.upper() in LOGICAL_OPERATORS)
        )
        if is_group:
            raw_children = obj.get("children", obj.get("rules"))
            children = _children_from(raw_children) if isinstance(raw_children, (list, tuple)) else ()
            op = raw_op.strip().upper() if isinstance(raw_op, str) and raw_op.strip() else "AND"
            return ConditionGroup(op, children)
        field = obj.get("field", obj.get("questionId", ""))
        return Condition(
            field=field if isinstance(field, str) else str(field),
            operator=raw_op if isinstance(raw_op, str) else "",
            value=obj.get("value"),
        )
    logger.warning("unrecognized condition node", extra={"node_type": type(obj).__name__})
    return Condition(field="", operator="", value=None)


def _children_from(items: Any) -> Tuple[ConditionTree, ...]:
    # An empty child is kept as an empty AND (vacuously true) so NOT/XOR still see it.
    out: List[ConditionTree] = []
    for item in items:
        node = tree_from_obj(item)
        out.append(node if node is not None else ConditionGroup("AND", ()))
    return tuple(out)


def tree_to_obj(tree: Optional[ConditionTree]) -> Optional[Dict[str, Any]]:
    if tree is None:
        return None
    if isinstance(tree, Condition):
        return {"field": tree.field, "operator": tree.operator, "value": tree.value}
    return {"operator": tree.operator, "children": [tree_to_obj(c) for c in tree.children]}


# -------------------------
# Evaluation
# -------------------------

def evaluate_condition(answers: Mapping[str, Any], condition: Any) -> bool:
    if isinstance(condition, Mapping):
        condition = tree_from_obj(condition)
    if not isinstance(condition, Condition):
        return evaluate_tree(answers, condition)

    name = normalize_operator(condition.operator)
    predicate = _PREDICATES.get(name)
    if predicate is None:
        logger.warning(
            "unknown condition operator; predicate evaluates false",
            extra={"operator": condition.operator, "field": condition.field},
        )
        return False
    try:
        return bool(predicate(field_value(answers, condition.field), condition.value))
    except Exception:
        logger.warning(
            "condition evaluation failed; predicate evaluates false",
            extra={"operator": name, "field": condition.field},
            exc_info=True,
        )
        return False


def evaluate_tree(answers: Mapping[str, Any], tree: Any) -> bool:
    if tree is None:
        return True
    if isinstance(tree, (Mapping, list, tuple)):
        tree = tree_from_obj(tree)
        if tree is None:
            return True
    if isinstance(tree, Condition):
        return evaluate_condition(answers, tree)
    if not isinstance(tree, ConditionGroup):
        logger.warning("unrecognized condition tree", extra={"node_type": type(tree).__name__})
        return False

    op = (tree.operator or "AND").upper()
    children = tree.children or ()

    if op == "OR":
        if not children:
            return True
        for child in children:
            if evaluate_tree(answers, child):
                return True
        return False
    if op == "NOT":
        if not children:
            return True
        return not evaluate_tree(answers, children[0])
    if op == "XOR":
        if not children:
            return True
        hits = 0
        for child in children:
            if evaluate_tree(answers, child):
                hits += 1
                if hits > 1:
                    return False
        return hits == 1
    if not is_known_logical_operator(tree.operator):
        logger.warning("unknown logical operator; treated as AND", extra={"operator": tree.operator})
    for child in children:
        if not evaluate_tree(answers, child):
            return False
    return True


def iter_conditions(tree: Any) -> List[Condition]:
    node = tree_from_obj(tree)
    if node is None:
        return []
    if isinstance(node, Condition):
        return [node]
    out: List[Condition] = []
    for child in node.children:
        out.extend(iter_conditions(child))
    return out


def iter_groups(tree: Any) -> List[ConditionGroup]:
    node = tree_from_obj(tree)
    if not isinstance(node, ConditionGroup):
        return []
    out = [node]
    for child in node.children:
        out.extend(iter_groups(child))
    return out


def describe_condition(condition: Condition) -> str:
    if not is_known_operator(condition.operator):
        return f"{condition.field} unknown operator {condition.operator!r}"
    name = normalize_operator(condition.operator)
    if name in ("is_empty", "is_not_empty"):
        return f"{condition.field} {name}"
    return f"{condition.field} {name} {condition.value!r}"


def explain_tree(answers: Mapping[str, Any], tree: Any) -> List[Tuple[Condition, bool]]:
    # Every leaf with its own outcome (no short-circuit); used for audit reasons.
    return [(c, evaluate_condition(answers, c)) for c in iter_conditions(tree)]


__all__ = [
    "CONDITION_OPERATORS",
    "normalize_operator",
    "is_known_operator",
    "is_known_logical_operator",
    "field_value",
    "values_equal",
    "is_empty",
    "tree_from_obj",
    "tree_to_obj",
    "evaluate_condition",
    "evaluate_tree",
    "iter_conditions",
    "iter_groups",
    "describe_condition",
    "explain_tree",
]
