import json

from govassess.engine.composer import compose
from govassess.engine.rules import evaluate_rules
from govassess.engine.scoring import ScoringPolicy, baseline_score
from govassess.workflows.graph import get_report_graph, run_report_pipeline
from govassess.workflows.state import ReportState, state_get

ANSWERS = {
    "question-1": "financial_data",
    "question-2": "defined",
    "question-3": frozenset({"hipaa"}),
    "question-5": "small",
}


def test_pipeline_matches_direct_composition(stock_config):
    expected = compose(
        evaluate_rules(ANSWERS, stock_config.rules),
        stock_config.templates,
        baseline_score(stock_config.questions, ANSWERS),
    )
    assert run_report_pipeline(stock_config, ANSWERS) == expected


def test_pipeline_report_contents(stock_config):
    report = run_report_pipeline(stock_config, ANSWERS, assessment_id="a-1")
    assert report.matched_rule_ids == ("rule-1", "rule-3", "rule-2")
    # high_security (2), advanced (2), simplified (1)
    assert report.template_ids == (
        "high_security_template",
        "advanced_governance_template",
        "simplified_governance_template",
    )
    assert "automation" in report.sections


def test_pipeline_uses_policy(stock_config):
    strict = ScoringPolicy(high_threshold=99, medium_threshold=95)
    report = run_report_pipeline(stock_config, ANSWERS, strict)
    assert report.level.value == "low"


def test_graph_is_shared():
    assert get_report_graph() is get_report_graph()


def test_pipeline_does_not_mutate_answers(stock_config):
    answers = dict(ANSWERS)
    run_report_pipeline(stock_config, answers)
    assert answers == ANSWERS


def test_state_helpers(stock_config):
    state = ReportState(config=stock_config, answers=dict(ANSWERS))
    assert state_get(state, "answers") == ANSWERS
    assert state_get({"report": None}, "report", "x") is None
    assert state_get(object(), "missing", "default") == "default"
    assert state["baseline_score"] == 0.0

    state.patch(baseline_score=12.5, unknown_key=1)
    payload = json.loads(state.to_json())
    assert payload["baseline_score"] == 12.5
    assert payload["answers"]["question-3"] == ["hipaa"]
    assert payload["config"] == {"questions": 5, "rules": 3, "templates": 4}
    assert payload["report"] is None
