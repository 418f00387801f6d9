from __future__ import annotations

from typing import Any, List, Tuple

import jsonschema
from jsonschema.exceptions import ValidationError as SchemaError
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import PricingPlan, QuestionnaireResponse
from .schema import PRICING_PLAN_SCHEMA


class PlanValidator:
    """Validates catalog entries against schema and business rules."""

    def __init__(self):
        self._validator = jsonschema.Draft202012Validator(PRICING_PLAN_SCHEMA)

    def validate(self, payload: Any) -> Tuple[List[str], List[str]]:
        schema_errors = sorted(
            self._validator.iter_errors(payload),
            key=lambda error: [str(item) for item in error.path],
        )
        errors = [self._format_error(error) for error in schema_errors]
        warnings: List[str] = []
        if errors:
            return errors, warnings
        return self._cross_field_rules(payload)

    def _cross_field_rules(self, payload: dict) -> Tuple[List[str], List[str]]:
        errors: List[str] = []
        warnings: List[str] = []
        seen_pairs = set()

        for index, entry in enumerate(payload["plan_matrix"]):
            pair = (entry["age_bracket"], entry["household_type"])
            if pair in seen_pairs:
                errors.append(
                    f"plan_matrix > {index}: duplicate entry for {pair[0]} / {pair[1]}."
                )
            seen_pairs.add(pair)

            costs = sorted(entry["costs"], key=lambda cost: cost["initial_unshared_amount"])
            for lower, higher in zip(costs, costs[1:]):
                if higher["monthly_premium"] > lower["monthly_premium"]:
                    warnings.append(
                        f"plan_matrix > {index}: premium rises from {lower['monthly_premium']} "
                        f"to {higher['monthly_premium']} as the unshared amount increases."
                    )

        if not payload.get("coverage"):
            warnings.append(
                f"Plan '{payload['id']}' has no coverage details; it cannot satisfy "
                "maternity or pre-existing condition requirements."
            )
        return errors, warnings

    @staticmethod
    def _format_error(error: SchemaError) -> str:
        path = " > ".join(str(item) for item in error.path)
        prefix = f"{path}: " if path else ""
        return f"{prefix}{error.message}"


_default_validator = PlanValidator()


def validate_plan(candidate: Any) -> PricingPlan:
    """Return ``candidate`` as a ``PricingPlan`` or raise ``ValidationError``."""
    errors, _ = _default_validator.validate(candidate)
    if errors:
        plan_id = candidate.get("id") if isinstance(candidate, dict) else None
        subject = f"plan '{plan_id}'" if plan_id else "plan"
        raise ValidationError(errors, subject=subject)
    try:
        return PricingPlan.model_validate(candidate)
    except PydanticValidationError as exc:
        raise ValidationError(_pydantic_messages(exc), subject=f"plan '{candidate['id']}'") from exc


def validate_questionnaire(payload: Any) -> QuestionnaireResponse:
    try:
        return QuestionnaireResponse.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(_pydantic_messages(exc), subject="questionnaire response") from exc


def _pydantic_messages(exc: PydanticValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        path = " > ".join(str(item) for item in error["loc"])
        prefix = f"{path}: " if path else ""
        messages.append(f"{prefix}{error['msg']}")
    return messages
