# govassess/workflows/state.py
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from govassess.engine.models import EngineConfig, MatchResult, Report, answers_to_dict
from govassess.engine.scoring import ScoringPolicy


def _now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def state_get(state: Any, key: str, default: Any = None) -> Any:
    # Support dataclass-like or dict-like states.
    if hasattr(state, key):
        return getattr(state, key)
    if isinstance(state, dict):
        return state.get(key, default)
    return default


# -------------------------
# Core State (single object passed around LangGraph)
# -------------------------

@dataclass
class ReportState:
    # Identity / request
    assessment_id: Optional[str] = None
    config: EngineConfig = field(default_factory=EngineConfig)
    answers: Dict[str, Any] = field(default_factory=dict)
    policy: ScoringPolicy = field(default_factory=ScoringPolicy)

    # Pipeline outputs
    baseline_score: float = 0.0
    match_results: List[MatchResult] = field(default_factory=list)
    report: Optional[Report] = None

    # Internal bookkeeping
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    def __getitem__(self, key):
        return getattr(self, key)

    def touch(self) -> None:
        self.updated_at = _now()

    def patch(self, **updates: Any) -> "ReportState":
        for k, v in updates.items():
            if not hasattr(self, k):
                continue
            setattr(self, k, v)
        self.touch()
        return self

    # -------------------------
    # JSON serialization
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        # The configuration snapshot is summarized, not dumped.
        return {
            "assessment_id": self.assessment_id,
            "config": {
                "questions": len(self.config.questions),
                "rules": len(self.config.rules),
                "templates": len(self.config.templates),
            },
            "answers": answers_to_dict(self.answers),
            "policy": _json_sanitize(self.policy),
            "baseline_score": self.baseline_score,
            "match_results": _json_sanitize(self.match_results),
            "report": self.report.to_dict() if self.report else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_json(self, ensure_ascii: bool = False, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=ensure_ascii, indent=indent)


def _json_sanitize(obj: Any) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if is_dataclass(obj) and not isinstance(obj, type):
        return _json_sanitize(asdict(obj))
    if isinstance(obj, dict):
        return {str(k): _json_sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (set, frozenset)):
        return sorted(_json_sanitize(v) for v in obj)
    if isinstance(obj, (list, tuple)):
        return [_json_sanitize(v) for v in obj]
    try:
        json.dumps(obj)
        return obj
    except TypeError:
        return str(obj)
