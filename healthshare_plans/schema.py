from .models import AgeBracket, HouseholdType, PreExistingEligibility

AGE_BRACKETS = [bracket.value for bracket in AgeBracket]
HOUSEHOLD_TYPES = [household.value for household in HouseholdType]

PLAN_COST_SCHEMA = {
    "type": "object",
    "required": ["monthly_premium", "initial_unshared_amount"],
    "properties": {
        "monthly_premium": {"type": "number", "exclusiveMinimum": 0},
        "initial_unshared_amount": {"type": "number", "exclusiveMinimum": 0},
    },
    "additionalProperties": False,
}

COVERAGE_SCHEMA = {
    "type": "object",
    "properties": {
        "emergency_services": {"type": "boolean"},
        "surgical_procedures": {"type": "boolean"},
        "preventative_services": {"type": "boolean"},
        "maternity_coverage": {"type": "boolean"},
        "pregnancy_waiting_period_months": {"type": ["integer", "null"], "minimum": 0},
        "pre_existing_conditions": {"enum": [item.value for item in PreExistingEligibility]},
        "pre_existing_waiting_period_months": {"type": ["integer", "null"], "minimum": 0},
        "alternative_medicine": {"type": "boolean"},
        "telemedicine": {"type": "boolean"},
        "prescription_drugs_after_iua": {"type": "boolean"},
        "lifetime_limit": {"type": "string"},
    },
    "additionalProperties": False,
}

PRICING_PLAN_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Health-sharing Pricing Plan",
    "type": "object",
    "required": [
        "id",
        "provider_name",
        "plan_name",
        "max_coverage",
        "annual_unshared_amount",
        "source_url",
        "plan_matrix",
    ],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "provider_name": {"type": "string", "minLength": 1},
        "plan_name": {
            "oneOf": [
                {"type": "string", "minLength": 1},
                {"type": "array", "minItems": 1, "items": {"type": "string", "minLength": 1}},
            ]
        },
        "max_coverage": {"type": "string"},
        "annual_unshared_amount": {"type": "string"},
        "source_url": {"type": "string", "pattern": r"^https?://[^\s/$.?#][^\s]*\.[^\s]+$"},
        "plan_matrix": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["age_bracket", "household_type", "costs"],
                "properties": {
                    "age_bracket": {"enum": AGE_BRACKETS},
                    "household_type": {"enum": HOUSEHOLD_TYPES},
                    "costs": {"type": "array", "minItems": 1, "items": PLAN_COST_SCHEMA},
                },
                "additionalProperties": False,
            },
        },
        "coverage": {"oneOf": [{"type": "null"}, COVERAGE_SCHEMA]},
    },
    "additionalProperties": False,
}
