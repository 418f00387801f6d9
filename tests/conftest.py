import pytest

from healthshare_plans.validator import validate_plan


def _coverage(maternity=True, pre_existing="Limited", pre_existing_wait=12, pregnancy_wait=6):
    return {
        "emergency_services": True,
        "surgical_procedures": True,
        "preventative_services": True,
        "maternity_coverage": maternity,
        "pregnancy_waiting_period_months": pregnancy_wait if maternity else None,
        "pre_existing_conditions": pre_existing,
        "pre_existing_waiting_period_months": None if pre_existing == "Not Eligible" else pre_existing_wait,
        "alternative_medicine": False,
        "telemedicine": True,
        "prescription_drugs_after_iua": True,
        "lifetime_limit": "none",
    }


def _plan_row(
    plan_id,
    costs=((200, 1000),),
    pairs=(("30-39", "Member Only"),),
    *,
    provider="Test Health",
    name=None,
    coverage=True,
    **coverage_kwargs,
):
    return {
        "id": plan_id,
        "provider_name": provider,
        "plan_name": name or plan_id.title(),
        "max_coverage": "No limit",
        "annual_unshared_amount": "Total of three IUAs in 12 months",
        "source_url": f"https://{plan_id}.example.com/plans",
        "plan_matrix": [
            {
                "age_bracket": age_bracket,
                "household_type": household_type,
                "costs": [
                    {"monthly_premium": premium, "initial_unshared_amount": unshared}
                    for premium, unshared in costs
                ],
            }
            for age_bracket, household_type in pairs
        ],
        "coverage": _coverage(**coverage_kwargs) if coverage else None,
    }


@pytest.fixture
def plan_row():
    return _plan_row


@pytest.fixture
def make_plan():
    def factory(plan_id, *args, **kwargs):
        return validate_plan(_plan_row(plan_id, *args, **kwargs))

    return factory


@pytest.fixture
def questionnaire():
    def factory(**overrides):
        payload = {
            "zip_code": "30301",
            "household_size": 1,
            "age": 35,
            "pregnant": False,
            "pregnancy_planning": "no",
            "pre_existing_conditions": False,
            "expense_preference": "lower_monthly",
            "annual_healthcare_spend": "<1000",
        }
        payload.update(overrides)
        return payload

    return factory
