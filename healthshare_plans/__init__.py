"""Health-sharing plan recommendation and comparison package."""

from .api import create_app
from .catalog import PlanCatalog, default_plans
from .comparison import get_cost_comparison, get_plan_comparison
from .errors import InvalidFilterError, NoEligiblePlansError, ValidationError
from .recommendation import get_recommendations
from .validator import validate_plan, validate_questionnaire

__all__ = [
    "create_app",
    "PlanCatalog",
    "default_plans",
    "get_cost_comparison",
    "get_plan_comparison",
    "get_recommendations",
    "validate_plan",
    "validate_questionnaire",
    "InvalidFilterError",
    "NoEligiblePlansError",
    "ValidationError",
]
