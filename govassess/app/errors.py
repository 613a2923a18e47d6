from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

if TYPE_CHECKING:
    from govassess.engine.models import ValidationIssue


class AppError(Exception):
    # Base class for domain errors (intended, meaningful failures).
    pass


class ConfigurationError(AppError):
    # Raised when a configuration document is structurally malformed at load time.
    def __init__(self, message: str, problems: Sequence[str] = ()):
        super().__init__(message)
        self.problems: List[str] = list(problems)


class AnswerValidationError(AppError):
    # Raised when an answer fails its question's constraints; session state is left unchanged.
    def __init__(self, issues: Sequence["ValidationIssue"]):
        self.issues: List["ValidationIssue"] = list(issues)
        summary = "; ".join(f"{i.field}: {i.message}" for i in self.issues) or "invalid answer"
        super().__init__(summary)


class InvariantViolation(AppError):
    # Raised when the caller drives an assessment out of sequence (integration bug).
    pass
