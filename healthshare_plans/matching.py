from __future__ import annotations

from typing import Optional, Tuple, Union

from .errors import InvalidFilterError
from .models import (
    AgeBracket,
    CoverageType,
    HouseholdType,
    PlanCost,
    PricingPlan,
    QuestionnaireResponse,
)

_AGE_RANGES = (
    (18, 29, AgeBracket.AGE_18_29),
    (30, 39, AgeBracket.AGE_30_39),
    (40, 49, AgeBracket.AGE_40_49),
    (50, 64, AgeBracket.AGE_50_64),
)

_COVERAGE_TO_HOUSEHOLD = {
    CoverageType.JUST_ME: HouseholdType.MEMBER_ONLY,
    CoverageType.ME_SPOUSE: HouseholdType.MEMBER_SPOUSE,
    CoverageType.ME_KIDS: HouseholdType.MEMBER_CHILDREN,
    CoverageType.FAMILY: HouseholdType.MEMBER_FAMILY,
}

_PEOPLE_COVERED = {
    HouseholdType.MEMBER_ONLY: 1,
    HouseholdType.MEMBER_SPOUSE: 2,
    HouseholdType.MEMBER_CHILDREN: 3,
    HouseholdType.MEMBER_FAMILY: 4,
}


def age_bracket_for_age(age: int) -> Optional[AgeBracket]:
    for low, high, bracket in _AGE_RANGES:
        if low <= age <= high:
            return bracket
    return None


def household_type_for_size(size: int) -> HouseholdType:
    if size <= 1:
        return HouseholdType.MEMBER_ONLY
    if size == 2:
        return HouseholdType.MEMBER_SPOUSE
    if size <= 4:
        return HouseholdType.MEMBER_CHILDREN
    return HouseholdType.MEMBER_FAMILY


def household_type_for_response(response: QuestionnaireResponse) -> HouseholdType:
    """An explicit coverage type beats the size-based guess."""
    if response.coverage_type is not None:
        return _COVERAGE_TO_HOUSEHOLD[response.coverage_type]
    return household_type_for_size(response.household_size)


def people_covered(household_type: HouseholdType) -> int:
    return _PEOPLE_COVERED[household_type]


def coerce_age_bracket(value: Union[AgeBracket, str]) -> AgeBracket:
    try:
        return AgeBracket(value)
    except ValueError as exc:
        raise InvalidFilterError("age_bracket", value, [b.value for b in AgeBracket]) from exc


def coerce_household_type(value: Union[HouseholdType, str]) -> HouseholdType:
    try:
        return HouseholdType(value)
    except ValueError as exc:
        raise InvalidFilterError("household_type", value, [h.value for h in HouseholdType]) from exc


def find_plan_costs(
    plan: PricingPlan,
    age_bracket: Union[AgeBracket, str],
    household_type: Union[HouseholdType, str],
) -> Optional[Tuple[PlanCost, ...]]:
    return plan.find_costs(coerce_age_bracket(age_bracket), coerce_household_type(household_type))
