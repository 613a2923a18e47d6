# govassess/engine/models.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class QuestionType(str, Enum):
    SINGLE_SELECT = "single-select"
    MULTI_SELECT = "multi-select"
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    RATING = "rating"


class GovernanceLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


LOGICAL_OPERATORS = ("AND", "OR", "NOT", "XOR")
ACTION_TYPES = ("recommend", "score", "route")


@dataclass(frozen=True)
class Condition:
    field: str
    operator: str
    value: Any = None


@dataclass(frozen=True)
class ConditionGroup:
    operator: str = "AND"
    children: Tuple["ConditionTree", ...] = ()


ConditionTree = Union[Condition, ConditionGroup]


@dataclass(frozen=True)
class Option:
    value: str
    label: str = ""
    score: float = 0.0


@dataclass(frozen=True)
class Question:
    id: str
    type: QuestionType
    required: bool = True
    weight: float = 1.0
    options: Tuple[Option, ...] = ()
    visibility: Optional[ConditionTree] = None
    title: str = ""
    category: str = "general"

    # Type-specific constraints
    min_length: int = 0
    max_length: int = 500
    pattern: Optional[str] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_date: Optional[date] = None
    max_date: Optional[date] = None
    min_selections: int = 0
    max_selections: Optional[int] = None
    scale: int = 5

    def option_values(self) -> Tuple[str, ...]:
        return tuple(o.value for o in self.options)

    def option(self, value: Any) -> Optional[Option]:
        for o in self.options:
            if o.value == value:
                return o
        return None


@dataclass(frozen=True)
class Action:
    type: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    @property
    def template_id(self) -> Optional[str]:
        tid = self.parameters.get("template")
        return str(tid) if tid not in (None, "") else None


@dataclass(frozen=True)
class Rule:
    id: str
    conditions: Optional[ConditionTree] = None
    actions: Tuple[Action, ...] = ()
    priority: int = 1
    active: bool = True
    name: str = ""
    category: str = ""
    description: str = ""


@dataclass(frozen=True)
class Template:
    id: str
    sections: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    governance_level: GovernanceLevel = GovernanceLevel.MEDIUM
    confidence_score: float = 85.0
    name: str = ""
    summary: str = ""


@dataclass(frozen=True)
class EngineConfig:
    # Caller-owned configuration snapshot; never mutated by the engine.
    questions: Tuple[Question, ...] = ()
    rules: Tuple[Rule, ...] = ()
    templates: Dict[str, Template] = field(default_factory=dict)

    def question(self, question_id: str) -> Optional[Question]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None


@dataclass(frozen=True)
class MatchResult:
    rule_id: str
    matched: bool
    actions: Tuple[Action, ...] = ()
    reason: str = ""


@dataclass(frozen=True)
class TraceEntry:
    stage: str  # "rule" | "compose"
    rule_id: Optional[str]
    matched: bool
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    constraint: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Report:
    score: float
    level: GovernanceLevel
    matched_rule_ids: Tuple[str, ...]
    sections: Dict[str, Tuple[str, ...]]
    confidence: float
    template_ids: Tuple[str, ...] = ()
    unresolved_templates: Tuple[str, ...] = ()
    routes: Tuple[str, ...] = ()
    summary: str = ""
    trace: Tuple[TraceEntry, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level.value,
            "matchedRuleIds": list(self.matched_rule_ids),
            "sections": {name: list(items) for name, items in self.sections.items()},
            "confidence": self.confidence,
            "templateIds": list(self.template_ids),
            "unresolvedTemplates": list(self.unresolved_templates),
            "routes": list(self.routes),
            "summary": self.summary,
            "trace": [t.to_dict() for t in self.trace],
        }


def answers_to_dict(answers: Dict[str, Any]) -> Dict[str, Any]:
    # JSON-friendly projection of an answer map (sets sorted, dates as ISO strings).
    out: Dict[str, Any] = {}
    for key, value in answers.items():
        if isinstance(value, (set, frozenset)):
            out[key] = sorted(value)
        elif isinstance(value, date):
            out[key] = value.isoformat()
        else:
            out[key] = value
    return out


__all__: List[str] = [
    "QuestionType",
    "GovernanceLevel",
    "LOGICAL_OPERATORS",
    "ACTION_TYPES",
    "Condition",
    "ConditionGroup",
    "ConditionTree",
    "Option",
    "Question",
    "Action",
    "Rule",
    "Template",
    "EngineConfig",
    "MatchResult",
    "TraceEntry",
    "ValidationIssue",
    "Report",
    "answers_to_dict",
]
