from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .comparison import calculate_annual_cost
from .errors import NoEligiblePlansError
from .matching import age_bracket_for_age, household_type_for_response
from .models import (
    AgeBracket,
    ExpensePreference,
    HouseholdType,
    PlanCost,
    PreExistingEligibility,
    PregnancyPlanning,
    PricingPlan,
    QuestionnaireResponse,
    RankedPlan,
    RecommendationConfig,
    ScoreFactor,
)

logger = logging.getLogger(__name__)

MONTHLY_COST = "Monthly Cost"
UNSHARED_AMOUNT = "Initial Unshared Amount"
MATERNITY = "Maternity Coverage"
PRE_EXISTING = "Pre-existing Conditions"


@dataclass
class _Weights:
    premium: float
    unshared: float
    maternity: float
    pre_existing: float


@dataclass
class _ScoredOption:
    plan: PricingPlan
    cost: PlanCost
    score: float
    factors: Tuple[ScoreFactor, ...]


def get_recommendations(
    catalog: Sequence[PricingPlan],
    response: QuestionnaireResponse,
    config: Optional[RecommendationConfig] = None,
) -> List[RankedPlan]:
    """
    Rank ``catalog`` for a questionnaire response, best match first.

    Plans without pricing for the household's age bracket and household type,
    or failing a hard requirement (maternity sharing, pre-existing condition
    sharing, financial capacity), are dropped rather than down-ranked. Each
    remaining plan is represented by its best scoring cost option.

    Raises ``NoEligiblePlansError`` when nothing qualifies.
    """
    config = config or RecommendationConfig()
    age_bracket = age_bracket_for_age(response.age)
    household_type = household_type_for_response(response)

    reasons: Dict[str, str] = {}
    candidates: List[Tuple[PricingPlan, List[PlanCost]]] = []
    for plan in catalog:
        costs, reason = _eligible_costs(plan, response, age_bracket, household_type)
        if reason:
            logger.debug("Excluding plan %s: %s", plan.id, reason)
            reasons[plan.id] = reason
            continue
        candidates.append((plan, costs))

    if not candidates:
        raise NoEligiblePlansError(reasons)

    weights = _weights(response, config)
    lowest_premium = min(cost.monthly_premium for _, costs in candidates for cost in costs)
    lowest_unshared = min(cost.initial_unshared_amount for _, costs in candidates for cost in costs)

    best_options: List[_ScoredOption] = []
    for plan, costs in candidates:
        options = [
            _score_option(plan, cost, response, weights, config, lowest_premium, lowest_unshared)
            for cost in costs
        ]
        options.sort(
            key=lambda option: (
                -option.score,
                option.cost.monthly_premium,
                option.cost.initial_unshared_amount,
            )
        )
        best_options.append(options[0])

    best_options.sort(key=lambda option: (-option.score, option.cost.monthly_premium, option.plan.id))
    if config.top_k is not None:
        best_options = best_options[: config.top_k]

    ranked = [
        RankedPlan(
            ranking=position,
            plan_id=option.plan.id,
            provider_name=option.plan.provider_name,
            plan_name=option.plan.display_name,
            monthly_premium=option.cost.monthly_premium,
            initial_unshared_amount=option.cost.initial_unshared_amount,
            estimated_annual_cost=calculate_annual_cost(
                option.cost.monthly_premium,
                response.visit_frequency,
                household_type,
                config.visit_cost,
            ),
            score=round(option.score, 2),
            factors=option.factors,
            explanation=tuple(factor.explanation for factor in option.factors),
        )
        for position, option in enumerate(best_options, start=1)
    ]
    logger.info(
        "Ranked %d of %d plans for %s / %s (%d excluded)",
        len(ranked),
        len(catalog),
        age_bracket.value,
        household_type.value,
        len(reasons),
    )
    return ranked


def _eligible_costs(
    plan: PricingPlan,
    response: QuestionnaireResponse,
    age_bracket: Optional[AgeBracket],
    household_type: HouseholdType,
) -> Tuple[List[PlanCost], Optional[str]]:
    if age_bracket is None:
        return [], f"age {response.age} is outside every priced age bracket"
    costs = plan.find_costs(age_bracket, household_type)
    if costs is None:
        return [], f"no pricing for {age_bracket.value} / {household_type.value}"
    if response.requires_maternity and not plan.supports_maternity:
        return [], "maternity expenses are not shared"
    if response.pre_existing_conditions and not plan.accommodates_pre_existing:
        return [], "pre-existing conditions are not shared"
    eligible = list(costs)
    if response.financial_capacity is not None:
        eligible = [cost for cost in eligible if cost.initial_unshared_amount <= response.financial_capacity]
        if not eligible:
            return [], f"every unshared amount exceeds ${response.financial_capacity:,.0f}"
    return eligible, None


def _weights(response: QuestionnaireResponse, config: RecommendationConfig) -> _Weights:
    premium = config.premium_weight
    unshared = config.unshared_weight
    if response.expense_preference == ExpensePreference.LOWER_MONTHLY:
        premium *= config.lower_monthly_premium_multiplier
        unshared *= config.lower_monthly_unshared_multiplier
    else:
        premium *= config.higher_monthly_premium_multiplier
        unshared *= config.higher_monthly_unshared_multiplier
    # Higher expected spend makes the out-of-pocket threshold matter more.
    unshared *= config.spend_unshared_multipliers.get(response.annual_healthcare_spend.value, 1.0)

    if response.requires_maternity:
        maternity = config.maternity_weight
    elif response.pregnancy_planning == PregnancyPlanning.MAYBE:
        maternity = config.maybe_maternity_weight
    else:
        maternity = 0.0
    pre_existing = config.pre_existing_weight if response.pre_existing_conditions else 0.0
    return _Weights(premium=premium, unshared=unshared, maternity=maternity, pre_existing=pre_existing)


def _score_option(
    plan: PricingPlan,
    cost: PlanCost,
    response: QuestionnaireResponse,
    weights: _Weights,
    config: RecommendationConfig,
    lowest_premium: float,
    lowest_unshared: float,
) -> _ScoredOption:
    factors = [
        _monthly_factor(cost.monthly_premium, lowest_premium, weights.premium),
        _unshared_factor(cost.initial_unshared_amount, lowest_unshared, weights.unshared),
    ]
    if weights.maternity:
        factors.append(_maternity_factor(plan, weights.maternity))
    if weights.pre_existing:
        factors.append(_pre_existing_factor(plan, weights.pre_existing, config))

    total_weight = sum(factor.weight for factor in factors)
    score = sum(factor.score * factor.weight for factor in factors) / total_weight
    return _ScoredOption(plan=plan, cost=cost, score=score, factors=tuple(factors))


def _monthly_factor(premium: float, lowest: float, weight: float) -> ScoreFactor:
    if premium == lowest:
        detail = " (lowest available rate)"
    else:
        percent = round((premium - lowest) / lowest * 100)
        detail = f" ({percent}% more than lowest option at ${lowest:,.0f})"
    return ScoreFactor(
        factor=MONTHLY_COST,
        score=100.0 * lowest / premium,
        weight=weight,
        explanation=f"Monthly cost: ${premium:,.0f}{detail}",
    )


def _unshared_factor(amount: float, lowest: float, weight: float) -> ScoreFactor:
    return ScoreFactor(
        factor=UNSHARED_AMOUNT,
        score=100.0 * lowest / amount,
        weight=weight,
        explanation=f"Initial unshared amount: ${amount:,.0f}",
    )


def _maternity_factor(plan: PricingPlan, weight: float) -> ScoreFactor:
    if not plan.supports_maternity:
        return ScoreFactor(
            factor=MATERNITY,
            score=0.0,
            weight=weight,
            explanation="NOTE: This plan does not include sharing for maternity expenses.",
        )
    months = plan.coverage.pregnancy_waiting_period_months
    wait = f" after a {months} month waiting period" if months else ""
    return ScoreFactor(
        factor=MATERNITY,
        score=100.0,
        weight=weight,
        explanation=f"This plan includes maternity sharing{wait}.",
    )


def _pre_existing_factor(plan: PricingPlan, weight: float, config: RecommendationConfig) -> ScoreFactor:
    coverage = plan.coverage
    months = coverage.pre_existing_waiting_period_months
    if months is None:
        months = config.pre_existing_max_wait_months
    score = max(0.0, 100.0 * (1 - months / config.pre_existing_max_wait_months))
    if coverage.pre_existing_conditions == PreExistingEligibility.LIMITED:
        score *= 0.75
        limit = "limited sharing"
    else:
        limit = "sharing"
    return ScoreFactor(
        factor=PRE_EXISTING,
        score=score,
        weight=weight,
        explanation=f"Pre-existing conditions: {limit} after {months} months.",
    )
