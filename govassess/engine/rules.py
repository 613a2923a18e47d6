"""Rule evaluation over an answer map, plus rule-set housekeeping."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from govassess.app.logging import get_logger
from govassess.engine.conditions import (
    describe_condition,
    evaluate_tree,
    explain_tree,
    is_known_logical_operator,
    iter_groups,
)
from govassess.engine.models import ConditionGroup, MatchResult, Rule, TraceEntry

logger = get_logger(__name__)


def ordered_rules(rules: Iterable[Rule]) -> List[Rule]:
    # Active rules, ascending priority; sorted() is stable so config order breaks ties.
    return sorted((r for r in rules if r.active), key=lambda r: r.priority)


def _has_conditions(rule: Rule) -> bool:
    tree = rule.conditions
    if tree is None:
        return False
    return not (isinstance(tree, ConditionGroup) and not tree.children)


def _reason(answers: Mapping[str, Any], rule: Rule, matched: bool) -> str:
    verdict = "matched" if matched else "not matched"
    if not _has_conditions(rule):
        return f"{verdict}: no conditions (vacuous match)"
    parts = [
        f"{describe_condition(c)} -> {'true' if ok else 'false'}"
        for c, ok in explain_tree(answers, rule.conditions)
    ]
    parts.extend(
        f"unknown logical operator {g.operator!r} treated as AND"
        for g in iter_groups(rule.conditions)
        if not is_known_logical_operator(g.operator)
    )
    if not parts:
        return f"{verdict}: condition groups hold no leaf conditions"
    return f"{verdict}: " + "; ".join(parts)


def evaluate_rule(answers: Mapping[str, Any], rule: Rule) -> MatchResult:
    matched = evaluate_tree(answers, rule.conditions)
    return MatchResult(
        rule_id=rule.id,
        matched=matched,
        actions=rule.actions,
        reason=_reason(answers, rule, matched),
    )


def evaluate_rules(answers: Mapping[str, Any], rules: Sequence[Rule]) -> List[MatchResult]:
    """
    Evaluate every active rule against ``answers``.

    Each rule is evaluated independently of the others. The full ordered list is
    returned (matched and unmatched) so callers can audit why a rule did not fire.
    """
    results = [evaluate_rule(answers, rule) for rule in ordered_rules(rules)]
    for r in results:
        logger.debug("rule evaluated", extra={"rule_id": r.rule_id, "matched": r.matched})
    logger.info(
        "rules evaluated",
        extra={"evaluated": len(results), "matched": sum(1 for r in results if r.matched)},
    )
    return results


def rule_trace(results: Sequence[MatchResult]) -> List[TraceEntry]:
    return [TraceEntry(stage="rule", rule_id=r.rule_id, matched=r.matched, reason=r.reason) for r in results]


# -------------------------
# Diagnostics ("test rules")
# -------------------------

@dataclass(frozen=True)
class RuleTestSummary:
    results: Tuple[MatchResult, ...]
    trace: Tuple[TraceEntry, ...]
    total_rules: int
    evaluated_rules: int
    matched_rules: int
    success_rate: float


def dry_run_rules(sample_answers: Mapping[str, Any], rules: Sequence[Rule]) -> RuleTestSummary:
    results = evaluate_rules(sample_answers, rules)
    matched = sum(1 for r in results if r.matched)
    rate = round(matched / len(results) * 100.0, 1) if results else 0.0
    return RuleTestSummary(
        results=tuple(results),
        trace=tuple(rule_trace(results)),
        total_rules=len(rules),
        evaluated_rules=len(results),
        matched_rules=matched,
        success_rate=rate,
    )


@dataclass(frozen=True)
class RuleStats:
    total: int
    active: int
    inactive: int
    by_category: Dict[str, int] = field(default_factory=dict)


def rule_stats(rules: Sequence[Rule]) -> RuleStats:
    by_category: Dict[str, int] = {}
    for r in rules:
        key = r.category or "uncategorized"
        by_category[key] = by_category.get(key, 0) + 1
    active = sum(1 for r in rules if r.active)
    return RuleStats(total=len(rules), active=active, inactive=len(rules) - active, by_category=by_category)


# -------------------------
# Rule-set edits (return new tuples; configuration snapshots are never mutated)
# -------------------------

def merge_rules(existing: Sequence[Rule], imported: Sequence[Rule], replace_all: bool = False) -> Tuple[Rule, ...]:
    if replace_all:
        return tuple(imported)
    merged = list(existing)
    index = {r.id: i for i, r in enumerate(merged)}
    for rule in imported:
        if rule.id in index:
            merged[index[rule.id]] = rule
        else:
            index[rule.id] = len(merged)
            merged.append(rule)
    return tuple(merged)


def set_rule_active(rules: Sequence[Rule], rule_id: str, active: bool) -> Tuple[Rule, ...]:
    if not any(r.id == rule_id for r in rules):
        raise KeyError(f"Rule {rule_id} not found")
    return tuple(replace(r, active=active) if r.id == rule_id else r for r in rules)
