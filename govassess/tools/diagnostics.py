import pandas as pd
from typing import Any, Iterable, Mapping, Sequence

from govassess.engine.models import Rule, TraceEntry
from govassess.engine.rules import evaluate_rules, ordered_rules

TRACE_COLUMNS = ["stage", "rule_id", "matched", "reason"]
HIT_COLUMNS = ["sample", "rule_id", "priority", "category", "matched", "reason"]


def trace_frame(trace: Iterable[TraceEntry]) -> pd.DataFrame:
    """
    Tabulates an audit trace (rule decisions and composition steps).

    Args:
        trace: TraceEntry items, e.g. Report.trace or RuleTestSummary.trace.

    Returns:
        pd.DataFrame: One row per entry, columns stage / rule_id / matched / reason.
    """
    rows = [t.to_dict() for t in trace]
    return pd.DataFrame(rows, columns=TRACE_COLUMNS)


def rule_hit_frame(sample_answer_sets: Mapping[str, Mapping[str, Any]], rules: Sequence[Rule]) -> pd.DataFrame:
    """
    Runs every active rule against several sample answer maps.

    Args:
        sample_answer_sets: Sample name -> answer map.
        rules: The rule set under test.

    Returns:
        pd.DataFrame: One row per (sample, rule) in evaluation order.
    """
    active = ordered_rules(rules)
    rows = []
    for sample, answers in sample_answer_sets.items():
        # evaluate_rules keeps ordered_rules() order, so results pair up by position.
        for rule, result in zip(active, evaluate_rules(answers, active)):
            rows.append({
                "sample": sample,
                "rule_id": result.rule_id,
                "priority": rule.priority,
                "category": rule.category,
                "matched": result.matched,
                "reason": result.reason,
            })
    return pd.DataFrame(rows, columns=HIT_COLUMNS)


def hit_rate_by_rule(hits: pd.DataFrame) -> pd.DataFrame:
    """
    Summarizes a rule_hit_frame() result per rule.

    Returns:
        pd.DataFrame: rule_id, samples, matched, hit_rate (percent, 1 decimal).
    """
    if hits.empty:
        return pd.DataFrame(columns=["rule_id", "samples", "matched", "hit_rate"])
    summary = (
        hits.groupby("rule_id", sort=False)["matched"]
        .agg(samples="size", matched="sum")
        .reset_index()
    )
    summary["matched"] = summary["matched"].astype(int)
    summary["hit_rate"] = (summary["matched"] / summary["samples"] * 100.0).round(1)
    return summary
