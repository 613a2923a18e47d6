# govassess/catalog/loader.py
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from jsonschema import Draft202012Validator

from govassess.app.errors import ConfigurationError
from govassess.app.logging import get_logger
from govassess.catalog.schemas import schema_for
from govassess.engine.conditions import (
    is_known_logical_operator,
    is_known_operator,
    iter_conditions,
    iter_groups,
    tree_from_obj,
    tree_to_obj,
)
from govassess.engine.models import (
    ACTION_TYPES,
    Action,
    ConditionTree,
    EngineConfig,
    GovernanceLevel,
    Option,
    Question,
    QuestionType,
    Rule,
    Template,
)

logger = get_logger(__name__)

_LEGACY_TYPES = {
    "text-input": QuestionType.TEXT,
    "number-input": QuestionType.NUMBER,
    "date-input": QuestionType.DATE,
    "rating-scale": QuestionType.RATING,
}

_VALIDATORS: Dict[str, Draft202012Validator] = {}


def _validator(name: str) -> Draft202012Validator:
    if name not in _VALIDATORS:
        _VALIDATORS[name] = Draft202012Validator(
            schema_for(name), format_checker=Draft202012Validator.FORMAT_CHECKER
        )
    return _VALIDATORS[name]


def validate_document(doc: Any, schema: str = "document") -> None:
    # Structural validation; collects every problem before raising.
    errors = sorted(_validator(schema).iter_errors(doc), key=lambda e: [str(p) for p in e.absolute_path])
    if errors:
        problems = [f"{'/'.join(str(p) for p in e.absolute_path) or '<root>'}: {e.message}" for e in errors]
        raise ConfigurationError(f"Invalid {schema} configuration ({len(problems)} problem(s))", problems)


# -------------------------
# dict -> model
# -------------------------

def _opt_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    return date.fromisoformat(str(value))


def _opt_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def question_from_dict(d: Mapping[str, Any]) -> Question:
    raw_type = str(d["type"])
    qtype = _LEGACY_TYPES.get(raw_type) or QuestionType(raw_type)
    options = tuple(
        Option(
            value=str(o["value"]),
            label=str(o.get("label") or o.get("title") or o["value"]),
            score=float(o.get("score", 0) or 0),
        )
        for o in d.get("options") or []
    )
    visibility_raw = d.get("visibilityConditions", d.get("visibility"))
    return Question(
        id=str(d["id"]),
        type=qtype,
        required=bool(d.get("required", True)),
        weight=float(d.get("weight", 1)),
        options=options,
        visibility=tree_from_obj(visibility_raw),
        title=str(d.get("title", "")),
        category=str(d.get("category", "general")),
        min_length=int(d.get("minLength", 0)),
        max_length=int(d.get("maxLength", 500)),
        pattern=d.get("pattern") or None,
        min_value=_opt_float(d.get("min")),
        max_value=_opt_float(d.get("max")),
        min_date=_opt_date(d.get("minDate")),
        max_date=_opt_date(d.get("maxDate")),
        min_selections=int(d.get("minSelections", 0)),
        max_selections=d.get("maxSelections"),
        scale=int(d.get("scale", 5)),
    )


def action_from_dict(d: Mapping[str, Any]) -> Action:
    return Action(type=str(d["type"]), parameters=dict(d.get("parameters") or {}))


def rule_from_dict(d: Mapping[str, Any]) -> Rule:
    return Rule(
        id=str(d["id"]),
        conditions=tree_from_obj(d.get("conditions")),
        actions=tuple(action_from_dict(a) for a in d.get("actions") or []),
        priority=int(d.get("priority", 1)),
        active=bool(d.get("active", True)),
        name=str(d.get("name", "")),
        category=str(d.get("category", "")),
        description=str(d.get("description", "")),
    )


def template_from_dict(d: Mapping[str, Any]) -> Template:
    # Accepts flat fields or the nested "recommendation" block of older exports.
    nested = d.get("recommendation") or {}
    level = d.get("governanceLevel", nested.get("governanceLevel", "medium"))
    confidence = d.get("confidenceScore", nested.get("confidenceScore", 85))
    return Template(
        id=str(d["id"]),
        sections={str(k): tuple(str(i) for i in v) for k, v in (d.get("sections") or {}).items()},
        governance_level=GovernanceLevel(level),
        confidence_score=float(confidence),
        name=str(d.get("name", "")),
        summary=str(d.get("summary", nested.get("summary", ""))),
    )


def config_from_dict(doc: Mapping[str, Any], validate: bool = True) -> EngineConfig:
    if validate:
        validate_document(doc)
    try:
        questions = tuple(question_from_dict(q) for q in doc.get("questions") or [])
        rules = tuple(rule_from_dict(r) for r in doc.get("rules") or [])
        library = [template_from_dict(t) for t in doc.get("templates") or []]
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Failed to build configuration: {e}") from e
    # The library is keyed by id; a repeated id would drop a template.
    duplicates = _duplicates("template", [t.id for t in library])
    if duplicates:
        raise ConfigurationError(
            "Configuration has duplicate template ids", problems=[i.message for i in duplicates]
        )
    templates: Dict[str, Template] = {t.id: t for t in library}
    config = EngineConfig(questions=questions, rules=rules, templates=templates)
    for issue in lint_config(config):
        logger.warning(
            "configuration issue",
            extra={"issue_kind": issue.kind, "subject": issue.subject, "detail": issue.message},
        )
    return config


def load_config(path: Union[str, Path], validate: bool = True) -> EngineConfig:
    p = Path(path)
    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Failed to read configuration file {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Configuration file {p} is not valid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise ConfigurationError(f"Configuration file {p} must hold a JSON object")
    config = config_from_dict(doc, validate=validate)
    logger.info(
        "configuration loaded",
        extra={"path": str(p), "questions": len(config.questions), "rules": len(config.rules),
               "templates": len(config.templates)},
    )
    return config


# -------------------------
# model -> dict (export / round-trip)
# -------------------------

def question_to_dict(q: Question) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": q.id,
        "type": q.type.value,
        "title": q.title,
        "category": q.category,
        "required": q.required,
        "weight": q.weight,
        "options": [{"value": o.value, "label": o.label, "score": o.score} for o in q.options],
        "visibilityConditions": tree_to_obj(q.visibility),
        "minLength": q.min_length,
        "maxLength": q.max_length,
        "minSelections": q.min_selections,
        "scale": q.scale,
    }
    optional = {
        "pattern": q.pattern,
        "min": q.min_value,
        "max": q.max_value,
        "minDate": q.min_date.isoformat() if q.min_date else None,
        "maxDate": q.max_date.isoformat() if q.max_date else None,
        "maxSelections": q.max_selections,
    }
    out.update({k: v for k, v in optional.items() if v is not None})
    return out


def rule_to_dict(r: Rule) -> Dict[str, Any]:
    return {
        "id": r.id,
        "name": r.name,
        "description": r.description,
        "category": r.category,
        "priority": r.priority,
        "active": r.active,
        "conditions": tree_to_obj(r.conditions),
        "actions": [{"type": a.type, "parameters": dict(a.parameters)} for a in r.actions],
    }


def template_to_dict(t: Template) -> Dict[str, Any]:
    return {
        "id": t.id,
        "name": t.name,
        "summary": t.summary,
        "governanceLevel": t.governance_level.value,
        "confidenceScore": t.confidence_score,
        "sections": {k: list(v) for k, v in t.sections.items()},
    }


def config_to_dict(config: EngineConfig) -> Dict[str, Any]:
    return {
        "questions": [question_to_dict(q) for q in config.questions],
        "rules": [rule_to_dict(r) for r in config.rules],
        "templates": [template_to_dict(t) for t in config.templates.values()],
    }


# -------------------------
# Semantic lint (non-fatal)
# -------------------------

@dataclass(frozen=True)
class ConfigIssue:
    kind: str
    subject: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "subject": self.subject, "message": self.message}


def _tree_issues(subject: str, tree: Optional[ConditionTree], question_ids: Sequence[str]) -> List[ConfigIssue]:
    issues: List[ConfigIssue] = []
    for group in iter_groups(tree):
        if not is_known_logical_operator(group.operator):
            issues.append(ConfigIssue("logical_operator", subject, f"unknown logical operator '{group.operator}'"))
    for cond in iter_conditions(tree):
        if not is_known_operator(cond.operator):
            issues.append(ConfigIssue("operator", subject, f"unknown operator '{cond.operator}' evaluates false"))
        field = cond.field[len("answers."):] if cond.field.startswith("answers.") else cond.field
        if question_ids and field not in question_ids:
            issues.append(ConfigIssue("field", subject, f"condition references unknown question '{cond.field}'"))
    return issues


def _duplicates(kind: str, ids: Sequence[str]) -> List[ConfigIssue]:
    seen: set = set()
    issues: List[ConfigIssue] = []
    for i in ids:
        if i in seen:
            issues.append(ConfigIssue("duplicate_id", i, f"duplicate {kind} id '{i}'"))
        seen.add(i)
    return issues


def lint_config(config: EngineConfig) -> List[ConfigIssue]:
    """Report problems that evaluation tolerates (fail soft) but an editor should fix."""
    question_ids = [q.id for q in config.questions]
    issues: List[ConfigIssue] = []
    issues.extend(_duplicates("question", question_ids))
    issues.extend(_duplicates("rule", [r.id for r in config.rules]))

    for q in config.questions:
        issues.extend(_tree_issues(f"question:{q.id}", q.visibility, question_ids))

    for r in config.rules:
        subject = f"rule:{r.id}"
        issues.extend(_tree_issues(subject, r.conditions, question_ids))
        for a in r.actions:
            kind = a.type.lower()
            if kind not in ACTION_TYPES:
                issues.append(ConfigIssue("action", subject, f"unsupported action type '{a.type}'"))
            elif kind == "recommend":
                tid = a.template_id
                if tid is None:
                    issues.append(ConfigIssue("template", subject, "recommend action has no template id"))
                elif tid not in config.templates:
                    issues.append(ConfigIssue("template", subject, f"template '{tid}' is not in the library"))
    return issues
