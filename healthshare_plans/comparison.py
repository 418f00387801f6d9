from __future__ import annotations

from typing import List, Optional, Sequence, Tuple, Union

from .models import (
    AgeBracket,
    CostComparisonRow,
    CoverageDetails,
    HouseholdType,
    PlanComparisonRow,
    PlanCost,
    PreExistingEligibility,
    PricingPlan,
    VisitFrequency,
)
from .catalog import default_plans
from .matching import coerce_age_bracket, coerce_household_type, people_covered

VISIT_COST = 200.0

_VISITS_PER_PERSON = {
    VisitFrequency.JUST_CHECKUPS: 1,
    VisitFrequency.FEW_MONTHS: 3,
    VisitFrequency.MONTHLY_PLUS: 12,
}

CHECK = "check"
CROSS = "x"
NOT_LISTED = "Not listed"


def _resolve_plans(plans: Optional[Sequence[PricingPlan]]) -> Sequence[PricingPlan]:
    if plans is not None:
        return plans
    return default_plans()


def get_plan_comparison(
    age_bracket: Union[AgeBracket, str],
    household_type: Union[HouseholdType, str],
    plans: Optional[Sequence[PricingPlan]] = None,
) -> List[PlanComparisonRow]:
    """
    Build side-by-side coverage rows for ``plans`` (the bundled catalog by default).

    Plans without pricing for the requested age bracket and household type are
    left out; the remaining rows keep the input order.
    """
    bracket = coerce_age_bracket(age_bracket)
    household = coerce_household_type(household_type)
    return [
        _comparison_row(plan)
        for plan in _resolve_plans(plans)
        if plan.find_costs(bracket, household) is not None
    ]


def _comparison_row(plan: PricingPlan) -> PlanComparisonRow:
    coverage = plan.coverage
    if coverage is None:
        return PlanComparisonRow(
            plan_id=plan.id,
            plan_name=plan.display_name,
            emergency_services=NOT_LISTED,
            surgical_procedures=NOT_LISTED,
            preventative_services=NOT_LISTED,
            maternity_coverage=NOT_LISTED,
            pregnancy_waiting_period=NOT_LISTED,
            pre_existing_condition_waiting_period=NOT_LISTED,
            alternative_medicine=NOT_LISTED,
            telemedicine=NOT_LISTED,
            prescription_drugs_after_iua=NOT_LISTED,
            lifetime_limit=NOT_LISTED,
        )
    return PlanComparisonRow(
        plan_id=plan.id,
        plan_name=plan.display_name,
        emergency_services=_mark(coverage.emergency_services),
        surgical_procedures=_mark(coverage.surgical_procedures),
        preventative_services=_mark(coverage.preventative_services),
        maternity_coverage=_mark(coverage.maternity_coverage),
        pregnancy_waiting_period=_pregnancy_wait(coverage),
        pre_existing_condition_waiting_period=_pre_existing_wait(coverage),
        alternative_medicine=_mark(coverage.alternative_medicine),
        telemedicine=_mark(coverage.telemedicine),
        prescription_drugs_after_iua=_mark(coverage.prescription_drugs_after_iua),
        lifetime_limit=coverage.lifetime_limit,
    )


def _mark(flag: bool) -> str:
    return CHECK if flag else CROSS


def _months(value: Optional[int]) -> str:
    if value is None:
        return NOT_LISTED
    if value == 0:
        return "none"
    return f"{value} month" if value == 1 else f"{value} months"


def _pregnancy_wait(coverage: CoverageDetails) -> str:
    if not coverage.maternity_coverage:
        return "not shared"
    return _months(coverage.pregnancy_waiting_period_months)


def _pre_existing_wait(coverage: CoverageDetails) -> str:
    if coverage.pre_existing_conditions == PreExistingEligibility.NOT_ELIGIBLE:
        return "not shared"
    return _months(coverage.pre_existing_waiting_period_months)


def visit_frequency_cost(
    visit_frequency: Optional[Union[VisitFrequency, str]],
    household_type: Union[HouseholdType, str],
    visit_cost: float = VISIT_COST,
) -> float:
    """Expected yearly spend on routine visits; unknown frequency counts as checkups only."""
    frequency = VisitFrequency(visit_frequency) if visit_frequency else VisitFrequency.JUST_CHECKUPS
    people = people_covered(coerce_household_type(household_type))
    return float(people * _VISITS_PER_PERSON[frequency] * visit_cost)


def calculate_annual_cost(
    monthly_premium: float,
    visit_frequency: Optional[Union[VisitFrequency, str]] = None,
    household_type: Union[HouseholdType, str] = HouseholdType.MEMBER_ONLY,
    visit_cost: float = VISIT_COST,
) -> float:
    return monthly_premium * 12 + visit_frequency_cost(visit_frequency, household_type, visit_cost)


def get_cost_comparison(
    age_bracket: Union[AgeBracket, str],
    household_type: Union[HouseholdType, str],
    plans: Optional[Sequence[PricingPlan]] = None,
    max_iua: Optional[float] = None,
    visit_frequency: Optional[Union[VisitFrequency, str]] = None,
) -> List[CostComparisonRow]:
    """One row per priced option, cheapest estimated annual cost first."""
    bracket = coerce_age_bracket(age_bracket)
    household = coerce_household_type(household_type)
    rows: List[CostComparisonRow] = []
    for plan in _resolve_plans(plans):
        costs = plan.find_costs(bracket, household)
        if costs is None:
            continue
        for cost in _within_iua(costs, max_iua):
            rows.append(
                CostComparisonRow(
                    plan_id=plan.id,
                    provider_name=plan.provider_name,
                    plan_name=plan.display_name,
                    monthly_premium=cost.monthly_premium,
                    initial_unshared_amount=cost.initial_unshared_amount,
                    annual_cost=calculate_annual_cost(cost.monthly_premium, visit_frequency, household),
                )
            )
    rows.sort(key=lambda row: (row.annual_cost, row.initial_unshared_amount, row.plan_id))
    return rows


def find_cheapest_plan(
    age_bracket: Union[AgeBracket, str],
    household_type: Union[HouseholdType, str],
    plans: Optional[Sequence[PricingPlan]] = None,
    max_iua: Optional[float] = None,
) -> Optional[Tuple[PricingPlan, PlanCost]]:
    bracket = coerce_age_bracket(age_bracket)
    household = coerce_household_type(household_type)
    cheapest: Optional[Tuple[PricingPlan, PlanCost]] = None
    for plan in _resolve_plans(plans):
        costs = plan.find_costs(bracket, household)
        if costs is None:
            continue
        for cost in _within_iua(costs, max_iua):
            if cheapest is None or cost.monthly_premium < cheapest[1].monthly_premium:
                cheapest = (plan, cost)
    return cheapest


def _within_iua(costs: Sequence[PlanCost], max_iua: Optional[float]) -> List[PlanCost]:
    if max_iua is None:
        return list(costs)
    return [cost for cost in costs if cost.initial_unshared_amount <= max_iua]


def available_iua_levels(plans: Optional[Sequence[PricingPlan]] = None) -> List[float]:
    levels = {
        cost.initial_unshared_amount
        for plan in _resolve_plans(plans)
        for entry in plan.plan_matrix
        for cost in entry.costs
    }
    return sorted(levels)


def all_providers(plans: Optional[Sequence[PricingPlan]] = None) -> List[str]:
    seen: List[str] = []
    for plan in _resolve_plans(plans):
        if plan.provider_name not in seen:
            seen.append(plan.provider_name)
    return seen


def plans_for_provider(
    provider_name: str, plans: Optional[Sequence[PricingPlan]] = None
) -> List[PricingPlan]:
    return [plan for plan in _resolve_plans(plans) if plan.provider_name == provider_name]
