from __future__ import annotations

from typing import Dict, Iterable, List, Optional


class PlanCatalogError(Exception):
    """Base class for errors raised by the plan catalog core."""


class ValidationError(PlanCatalogError):
    """Raised when a catalog entry or questionnaire payload fails validation."""

    def __init__(self, errors: Iterable[str], *, subject: Optional[str] = None):
        self.errors: List[str] = list(errors)
        self.subject = subject
        prefix = f"Invalid {subject}: " if subject else "Validation failed: "
        super().__init__(prefix + "; ".join(self.errors))


class InvalidFilterError(PlanCatalogError, ValueError):
    """Raised when an age bracket or household type is outside its enumeration."""

    def __init__(self, field: str, value: object, allowed: Iterable[str]):
        self.field = field
        self.value = value
        self.allowed = list(allowed)
        super().__init__(
            f"{field} must be one of {', '.join(self.allowed)}; got {value!r}."
        )


class NoEligiblePlansError(PlanCatalogError):
    """Raised when valid inputs leave no qualifying plan in the catalog."""

    def __init__(self, reasons: Dict[str, str]):
        self.reasons = dict(reasons)
        if self.reasons:
            detail = "; ".join(f"{plan_id}: {reason}" for plan_id, reason in sorted(self.reasons.items()))
            message = f"No eligible plans found ({detail})."
        else:
            message = "No eligible plans found: the catalog is empty."
        super().__init__(message)


class CatalogUnavailableError(PlanCatalogError, RuntimeError):
    """Raised when the hosted catalog backend cannot be reached or read."""


class QuestionnaireNotFoundError(PlanCatalogError, LookupError):
    """Raised when no stored questionnaire response exists for a session."""
