# govassess/workflows/graph.py
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

from langgraph.graph import END, StateGraph

from govassess.app.logging import clear_assessment_id, get_logger, set_assessment_id
from govassess.engine.composer import compose
from govassess.engine.models import EngineConfig, Report
from govassess.engine.rules import evaluate_rules
from govassess.engine.scoring import ScoringPolicy, baseline_score
from govassess.workflows.state import ReportState, state_get

logger = get_logger(__name__)


# --- Nodes (each returns a partial state update) ---

def score_baseline_node(state: ReportState) -> Dict[str, Any]:
    config: EngineConfig = state_get(state, "config")
    score = baseline_score(config.questions, state_get(state, "answers", {}))
    logger.debug("baseline scored", extra={"baseline_score": score})
    return {"baseline_score": score}


def evaluate_rules_node(state: ReportState) -> Dict[str, Any]:
    config: EngineConfig = state_get(state, "config")
    results = evaluate_rules(state_get(state, "answers", {}), config.rules)
    return {"match_results": results}


def compose_report_node(state: ReportState) -> Dict[str, Any]:
    config: EngineConfig = state_get(state, "config")
    report = compose(
        state_get(state, "match_results", []),
        config.templates,
        state_get(state, "baseline_score", 0.0),
        state_get(state, "policy"),
    )
    return {"report": report}


def build_report_graph():
    workflow = StateGraph(ReportState)

    workflow.add_node("score_baseline", score_baseline_node)
    workflow.add_node("evaluate_rules", evaluate_rules_node)
    workflow.add_node("compose_report", compose_report_node)

    workflow.set_entry_point("score_baseline")
    workflow.add_edge("score_baseline", "evaluate_rules")
    workflow.add_edge("evaluate_rules", "compose_report")
    workflow.add_edge("compose_report", END)

    return workflow.compile()


@lru_cache(maxsize=1)
def get_report_graph():
    # The compiled graph holds no per-assessment data and is safe to share.
    return build_report_graph()


def run_report_pipeline(
    config: EngineConfig,
    answers: Mapping[str, Any],
    policy: Optional[ScoringPolicy] = None,
    assessment_id: Optional[str] = None,
) -> Report:
    """Score, evaluate and compose a report for one answer snapshot."""
    initial = {
        "assessment_id": assessment_id,
        "config": config,
        "answers": dict(answers),
        "policy": policy or ScoringPolicy(),
    }
    set_assessment_id(assessment_id)
    try:
        final = get_report_graph().invoke(initial)
    finally:
        clear_assessment_id()
    report = state_get(final, "report")
    if report is None:
        # compose() always returns a report; reaching here means the graph was altered.
        raise RuntimeError("report pipeline finished without a report")
    return report
