# govassess/workflows/session.py
from __future__ import annotations

import uuid
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from govassess.app.errors import AnswerValidationError, InvariantViolation
from govassess.app.logging import get_logger
from govassess.engine.models import EngineConfig, Question, Report, ValidationIssue
from govassess.engine.scoring import ScoringPolicy
from govassess.engine.validation import check_answer, required_issues
from govassess.engine.visibility import Progress, is_visible, progress, visible_questions
from govassess.workflows.graph import run_report_pipeline

logger = get_logger(__name__)


class AssessmentStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class AssessmentSession:
    """
    Progression through one assessment run.

    Holds the only mutable state of the engine (answers, position, status). One
    instance per in-flight assessment; callers serialize mutating calls.

    The position is an index into the configured question list and always points
    at a currently visible question, or is None when no question is visible.
    """

    def __init__(
        self,
        config: EngineConfig,
        policy: Optional[ScoringPolicy] = None,
        assessment_id: Optional[str] = None,
    ):
        self.config = config
        self.policy = policy or ScoringPolicy()
        self.assessment_id = assessment_id or uuid.uuid4().hex
        self.status = AssessmentStatus.NOT_STARTED
        self._answers: Dict[str, Any] = {}
        self._position: Optional[int] = None
        self._report: Optional[Report] = None

    # -------------------------
    # Read-only views
    # -------------------------

    @property
    def answers(self) -> Mapping[str, Any]:
        return MappingProxyType(dict(self._answers))

    @property
    def report(self) -> Optional[Report]:
        return self._report

    @property
    def visible(self) -> List[Question]:
        return visible_questions(self.config.questions, self._answers)

    @property
    def current_question(self) -> Optional[Question]:
        if self.status != AssessmentStatus.IN_PROGRESS or self._position is None:
            return None
        return self.config.questions[self._position]

    @property
    def is_first(self) -> bool:
        return self._previous_visible() is None

    def progress(self) -> Progress:
        return progress(self.config.questions, self._answers)

    def preview(self) -> Report:
        # Report from the answers so far; no state transition.
        return run_report_pipeline(self.config, self._answers, self.policy, self.assessment_id)

    # -------------------------
    # Transitions
    # -------------------------

    def start(self) -> None:
        if self.status == AssessmentStatus.IN_PROGRESS:
            raise InvariantViolation("start() called on an assessment already in progress")
        self._answers = {}
        self._report = None
        self.status = AssessmentStatus.IN_PROGRESS
        self._position = self._next_visible(-1)
        self._log("assessment started", position=self._current_id())

    def answer(self, question_id: str, value: Any) -> None:
        self._require_in_progress("answer")
        index = self._index_of(question_id)
        if index is None:
            raise InvariantViolation(f"Unknown question: {question_id}")
        question = self.config.questions[index]
        if not is_visible(question, self._answers):
            raise InvariantViolation(f"Question {question_id} is not currently visible")

        if value is None and not question.required:
            self._answers.pop(question_id, None)
            self._log("answer cleared", question_id=question_id)
        else:
            normalized, issues = check_answer(question, value)
            if issues:
                self._log("answer rejected", question_id=question_id, issues=[i.to_dict() for i in issues])
                raise AnswerValidationError(issues)
            self._answers[question_id] = normalized
            self._log("answer recorded", question_id=question_id)

        self._reposition()

    def advance(self) -> Optional[Question]:
        """Move to the next visible question; completes the assessment after the last one."""
        self._require_in_progress("advance")
        current = self.current_question
        if current is not None:
            issues = required_issues(current, self._answers)
            if issues:
                raise AnswerValidationError(issues)

        after = self._position if self._position is not None else -1
        nxt = self._next_visible(after)
        if nxt is not None:
            self._position = nxt
            self._log("advanced", position=self._current_id())
            return self.current_question

        self._complete()
        return None

    def retreat(self) -> Optional[Question]:
        self._require_in_progress("retreat")
        prev = self._previous_visible()
        if prev is not None:
            self._position = prev
            self._log("retreated", position=self._current_id())
        return self.current_question

    # -------------------------
    # Internals
    # -------------------------

    def _complete(self) -> None:
        issues: List[ValidationIssue] = []
        for q in self.visible:
            issues.extend(required_issues(q, self._answers))
        if issues:
            self._log("completion blocked", missing=[i.field for i in issues])
            raise AnswerValidationError(issues)

        # Status check in _require_in_progress keeps the pipeline to a single run.
        self._report = run_report_pipeline(self.config, self._answers, self.policy, self.assessment_id)
        self.status = AssessmentStatus.COMPLETED
        self._position = None
        self._log(
            "assessment completed",
            score=self._report.score,
            level=self._report.level.value,
            matched_rules=list(self._report.matched_rule_ids),
        )

    def _require_in_progress(self, op: str) -> None:
        if self.status != AssessmentStatus.IN_PROGRESS:
            raise InvariantViolation(f"{op}() requires an assessment in progress (status: {self.status.value})")

    def _index_of(self, question_id: str) -> Optional[int]:
        for i, q in enumerate(self.config.questions):
            if q.id == question_id:
                return i
        return None

    def _visible_at(self, index: int) -> bool:
        return is_visible(self.config.questions[index], self._answers)

    def _next_visible(self, after: int) -> Optional[int]:
        for i in range(after + 1, len(self.config.questions)):
            if self._visible_at(i):
                return i
        return None

    def _previous_visible(self) -> Optional[int]:
        if self._position is None:
            return None
        for i in range(self._position - 1, -1, -1):
            if self._visible_at(i):
                return i
        return None

    def _reposition(self) -> None:
        # An answer can hide the current question or reveal earlier ones.
        if self._position is not None and self._visible_at(self._position):
            return
        start = self._position if self._position is not None else -1
        nxt = self._next_visible(start)
        if nxt is None and self._position is not None:
            nxt = self._previous_visible()
        self._position = nxt

    def _current_id(self) -> Optional[str]:
        q = self.current_question
        return q.id if q else None

    def _log(self, msg: str, **extra: Any) -> None:
        logger.info(msg, extra={"assessment_id": self.assessment_id, **extra})
