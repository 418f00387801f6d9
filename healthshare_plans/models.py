from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AgeBracket(str, Enum):
    AGE_18_29 = "18-29"
    AGE_30_39 = "30-39"
    AGE_40_49 = "40-49"
    AGE_50_64 = "50-64"


class HouseholdType(str, Enum):
    MEMBER_ONLY = "Member Only"
    MEMBER_SPOUSE = "Member & Spouse"
    MEMBER_CHILDREN = "Member & Child(ren)"
    MEMBER_FAMILY = "Member & Family"


class PregnancyPlanning(str, Enum):
    YES = "yes"
    NO = "no"
    MAYBE = "maybe"


class ExpensePreference(str, Enum):
    LOWER_MONTHLY = "lower_monthly"
    HIGHER_MONTHLY = "higher_monthly"


class AnnualHealthcareSpend(str, Enum):
    LESS_1000 = "<1000"
    BETWEEN_1000_5000 = "1000-5000"
    MORE_5000 = ">5000"


class CoverageType(str, Enum):
    JUST_ME = "just_me"
    ME_SPOUSE = "me_spouse"
    ME_KIDS = "me_kids"
    FAMILY = "family"


class VisitFrequency(str, Enum):
    JUST_CHECKUPS = "just_checkups"
    FEW_MONTHS = "few_months"
    MONTHLY_PLUS = "monthly_plus"


class PreExistingEligibility(str, Enum):
    ELIGIBLE = "Eligible"
    LIMITED = "Limited"
    NOT_ELIGIBLE = "Not Eligible"


class PlanCost(BaseModel):
    model_config = ConfigDict(frozen=True)

    monthly_premium: float = Field(..., gt=0, description="Monthly share amount.")
    initial_unshared_amount: float = Field(
        ..., gt=0, description="Out-of-pocket threshold before sharing begins."
    )


class PlanMatrixEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    age_bracket: AgeBracket
    household_type: HouseholdType
    costs: Tuple[PlanCost, ...] = Field(..., min_length=1)


class CoverageDetails(BaseModel):
    """What a plan shares beyond its price matrix."""

    model_config = ConfigDict(frozen=True)

    emergency_services: bool = True
    surgical_procedures: bool = True
    preventative_services: bool = False
    maternity_coverage: bool = False
    pregnancy_waiting_period_months: Optional[int] = Field(default=None, ge=0)
    pre_existing_conditions: PreExistingEligibility = PreExistingEligibility.NOT_ELIGIBLE
    pre_existing_waiting_period_months: Optional[int] = Field(default=None, ge=0)
    alternative_medicine: bool = False
    telemedicine: bool = False
    prescription_drugs_after_iua: bool = False
    lifetime_limit: str = "none"


class PricingPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    provider_name: str = Field(..., min_length=1)
    plan_name: Union[str, Tuple[str, ...]]
    max_coverage: str
    annual_unshared_amount: str
    source_url: str
    plan_matrix: Tuple[PlanMatrixEntry, ...] = Field(..., min_length=1)
    coverage: Optional[CoverageDetails] = None

    @field_validator("plan_name")
    def plan_name_not_empty(cls, value):
        if isinstance(value, tuple) and not value:
            raise ValueError("plan_name must list at least one name")
        return value

    @property
    def display_name(self) -> str:
        if isinstance(self.plan_name, tuple):
            return " / ".join(self.plan_name)
        return self.plan_name

    def find_costs(
        self, age_bracket: AgeBracket, household_type: HouseholdType
    ) -> Optional[Tuple[PlanCost, ...]]:
        for entry in self.plan_matrix:
            if entry.age_bracket == age_bracket and entry.household_type == household_type:
                return entry.costs
        return None

    @property
    def supports_maternity(self) -> bool:
        return self.coverage is not None and self.coverage.maternity_coverage

    @property
    def accommodates_pre_existing(self) -> bool:
        return (
            self.coverage is not None
            and self.coverage.pre_existing_conditions != PreExistingEligibility.NOT_ELIGIBLE
        )


class QuestionnaireResponse(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    zip_code: str = Field(..., pattern=r"^\d{5}$")
    household_size: int = Field(..., ge=1, le=10)
    age: int = Field(..., ge=18, le=100)
    pregnant: bool = False
    pregnancy_planning: PregnancyPlanning = PregnancyPlanning.NO
    pre_existing_conditions: bool = False
    expense_preference: ExpensePreference = ExpensePreference.LOWER_MONTHLY
    annual_healthcare_spend: AnnualHealthcareSpend = AnnualHealthcareSpend.LESS_1000
    coverage_type: Optional[CoverageType] = None
    financial_capacity: Optional[float] = Field(default=None, gt=0)
    visit_frequency: VisitFrequency = VisitFrequency.JUST_CHECKUPS
    medical_conditions: Tuple[str, ...] = ()

    @property
    def requires_maternity(self) -> bool:
        return self.pregnant or self.pregnancy_planning == PregnancyPlanning.YES


class ScoreFactor(BaseModel):
    model_config = ConfigDict(frozen=True)

    factor: str
    score: float
    weight: float
    explanation: str


class RankedPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    ranking: int
    plan_id: str
    provider_name: str
    plan_name: str
    monthly_premium: float
    initial_unshared_amount: float
    estimated_annual_cost: float
    score: float
    factors: Tuple[ScoreFactor, ...]
    explanation: Tuple[str, ...]


class PlanComparisonRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan_id: str
    plan_name: str
    emergency_services: str
    surgical_procedures: str
    preventative_services: str
    maternity_coverage: str
    pregnancy_waiting_period: str
    pre_existing_condition_waiting_period: str
    alternative_medicine: str
    telemedicine: str
    prescription_drugs_after_iua: str
    lifetime_limit: str


class CostComparisonRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan_id: str
    provider_name: str
    plan_name: str
    monthly_premium: float
    initial_unshared_amount: float
    annual_cost: float


@dataclass
class RecommendationConfig:
    """Weights used by the recommendation evaluator."""

    premium_weight: float = 1.0
    unshared_weight: float = 1.0
    lower_monthly_premium_multiplier: float = 2.5
    lower_monthly_unshared_multiplier: float = 0.6
    higher_monthly_premium_multiplier: float = 0.8
    higher_monthly_unshared_multiplier: float = 1.7
    spend_unshared_multipliers: Dict[str, float] = field(
        default_factory=lambda: {
            AnnualHealthcareSpend.LESS_1000.value: 1.0,
            AnnualHealthcareSpend.BETWEEN_1000_5000.value: 1.25,
            AnnualHealthcareSpend.MORE_5000.value: 1.5,
        }
    )
    maternity_weight: float = 2.0
    maybe_maternity_weight: float = 1.0
    pre_existing_weight: float = 1.0
    pre_existing_max_wait_months: int = 36
    visit_cost: float = 200.0
    top_k: Optional[int] = None

    def __post_init__(self):
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0:
                raise ValueError(f"{item.name} must not be negative; got {value}.")
        for bucket, multiplier in self.spend_unshared_multipliers.items():
            if multiplier < 0:
                raise ValueError(
                    f"spend_unshared_multipliers[{bucket!r}] must not be negative; got {multiplier}."
                )
        if self.premium_weight == 0 and self.unshared_weight == 0:
            raise ValueError("premium_weight and unshared_weight cannot both be 0.")
        preferences = {
            "lower_monthly": (self.lower_monthly_premium_multiplier, self.lower_monthly_unshared_multiplier),
            "higher_monthly": (self.higher_monthly_premium_multiplier, self.higher_monthly_unshared_multiplier),
        }
        spend_multipliers = {1.0, *self.spend_unshared_multipliers.values()}
        for preference, (premium_multiplier, unshared_multiplier) in preferences.items():
            for spend_multiplier in spend_multipliers:
                premium = self.premium_weight * premium_multiplier
                unshared = self.unshared_weight * unshared_multiplier * spend_multiplier
                if premium + unshared == 0:
                    raise ValueError(
                        f"{preference} multipliers leave no cost weight for spend multiplier {spend_multiplier}."
                    )
        if self.pre_existing_max_wait_months <= 0:
            raise ValueError(
                f"pre_existing_max_wait_months must be positive; got {self.pre_existing_max_wait_months}."
            )
        if self.top_k is not None and self.top_k < 1:
            raise ValueError(f"top_k must be at least 1; got {self.top_k}.")

