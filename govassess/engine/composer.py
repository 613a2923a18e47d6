"""Recommendation composition: matched rule actions + template library -> Report."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from govassess.app.logging import get_logger
from govassess.engine.models import (
    Action,
    GovernanceLevel,
    MatchResult,
    Report,
    Template,
    TraceEntry,
)
from govassess.engine.rules import rule_trace
from govassess.engine.scoring import ScoringPolicy, aggregate_confidence, clamp_score, level_for

logger = get_logger(__name__)


# Used when neither a resolved template nor the policy's fallback template is available.
DEFAULT_TEMPLATE = Template(
    id="default_template",
    name="Default Governance Template",
    summary="Based on your assessment, here are our recommendations.",
    governance_level=GovernanceLevel.LOW,
    confidence_score=85.0,
    sections={
        "placement": (
            "Implement centralized data storage with appropriate security controls",
            "Establish clear data classification and handling procedures",
        ),
        "controls": (
            "Deploy role-based access controls for sensitive data",
            "Implement regular access reviews and audit procedures",
        ),
        "sharing": (
            "Create data sharing agreements and approval processes",
            "Establish secure channels for external data collaboration",
        ),
        "compliance": (
            "Document data handling procedures and retention policies",
            "Conduct regular compliance assessments and reviews",
        ),
    },
)


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _action_weight(action: Action) -> Optional[float]:
    raw = action.parameters.get("weight", 1)
    weight = _as_float(raw)
    if weight is None or weight < 0:
        return None
    return weight


def _merge_sections(templates: Sequence[Template]) -> Dict[str, Tuple[str, ...]]:
    merged: Dict[str, List[str]] = {}
    seen: Dict[str, set] = {}
    for tpl in templates:
        for name, items in tpl.sections.items():
            bucket = merged.setdefault(name, [])
            marks = seen.setdefault(name, set())
            for item in items:
                if item not in marks:
                    marks.add(item)
                    bucket.append(item)
    return {name: tuple(items) for name, items in merged.items()}


def _apply_score_actions(
    score: float,
    actions: Sequence[Tuple[str, Action]],
    trace: List[TraceEntry],
) -> float:
    for rule_id, action in actions:
        params = action.parameters
        operation = str(params.get("operation", "add")).lower()
        value = _as_float(params.get("value", 1))
        weight = _as_float(params.get("weight", 1))
        if value is None or weight is None:
            trace.append(TraceEntry("compose", rule_id, False, "score action has a non-numeric value or weight; ignored"))
            continue
        delta = value * weight
        if operation == "add":
            score += delta
        elif operation == "subtract":
            score -= delta
        elif operation == "multiply":
            score *= delta
        elif operation == "set":
            score = delta
        else:
            trace.append(TraceEntry("compose", rule_id, False, f"unknown score operation '{operation}'; ignored"))
            continue
        trace.append(TraceEntry("compose", rule_id, True, f"score {operation} {delta:g} -> {score:g}"))
    return score


def compose(
    match_results: Sequence[MatchResult],
    templates: Mapping[str, Template],
    baseline_score: float,
    policy: Optional[ScoringPolicy] = None,
) -> Report:
    """
    Build a Report from rule match results.

    Configuration problems never raise: unresolved template references and
    malformed actions are skipped and recorded in the trace. With no resolved
    template the report falls back to ``baseline_score`` and the policy's
    fallback template (or DEFAULT_TEMPLATE). The result depends only on the
    inputs.
    """
    policy = policy or ScoringPolicy()
    trace: List[TraceEntry] = []
    matched = [r for r in match_results if r.matched]

    # template id -> [summed weight, first referencing rule]
    refs: Dict[str, List[Any]] = {}
    score_actions: List[Tuple[str, Action]] = []
    routes: List[str] = []

    for result in matched:
        for action in result.actions:
            kind = str(action.type or "").lower()
            if kind == "recommend":
                tid = action.template_id
                weight = _action_weight(action)
                if tid is None:
                    trace.append(TraceEntry("compose", result.rule_id, False, "recommend action has no template id; skipped"))
                    continue
                if weight is None:
                    trace.append(TraceEntry("compose", result.rule_id, False, f"invalid weight for template '{tid}'; using 1"))
                    weight = 1.0
                if tid in refs:
                    refs[tid][0] += weight
                else:
                    refs[tid] = [weight, result.rule_id]
            elif kind == "score":
                score_actions.append((result.rule_id, action))
            elif kind == "route":
                target = action.parameters.get("target")
                if target:
                    routes.append(str(target))
                else:
                    trace.append(TraceEntry("compose", result.rule_id, False, "route action has no target; skipped"))
            else:
                logger.warning("unsupported action type", extra={"rule_id": result.rule_id, "action_type": kind})
                trace.append(TraceEntry("compose", result.rule_id, False, f"unsupported action type '{kind}'; skipped"))

    resolved: List[Tuple[Template, float]] = []
    unresolved: List[str] = []
    for tid, (weight, rule_id) in refs.items():
        tpl = templates.get(tid)
        if tpl is None:
            unresolved.append(tid)
            logger.warning("template reference not found", extra={"template_id": tid, "rule_id": rule_id})
            trace.append(TraceEntry("compose", rule_id, False, f"template '{tid}' not found in library; skipped"))
        else:
            resolved.append((tpl, weight))
            trace.append(TraceEntry("compose", rule_id, True, f"template '{tid}' resolved (weight {weight:g})"))

    if resolved:
        # Weight descending; sorted() keeps first-reference order for equal weights.
        ordered = [tpl for tpl, _ in sorted(resolved, key=lambda e: -e[1])]
        confidence = clamp_score(
            aggregate_confidence([(tpl.confidence_score, w) for tpl, w in resolved], policy.weighting)
        )
        score = confidence
    else:
        fallback = templates.get(policy.fallback_template) or DEFAULT_TEMPLATE
        trace.append(TraceEntry("compose", None, True, f"no templates resolved; baseline report from '{fallback.id}'"))
        ordered = [fallback]
        confidence = clamp_score(fallback.confidence_score)
        score = clamp_score(baseline_score)

    score = clamp_score(_apply_score_actions(score, score_actions, trace))
    level = level_for(score, policy)

    logger.info(
        "report composed",
        extra={"score": score, "level": level.value, "templates": [t.id for t in ordered], "unresolved": unresolved},
    )

    return Report(
        score=score,
        level=level,
        matched_rule_ids=tuple(r.rule_id for r in matched),
        sections=_merge_sections(ordered),
        confidence=confidence,
        template_ids=tuple(t.id for t in ordered),
        unresolved_templates=tuple(unresolved),
        routes=tuple(routes),
        summary=ordered[0].summary,
        trace=tuple(rule_trace(match_results)) + tuple(trace),
    )
