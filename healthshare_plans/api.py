from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Body, Cookie, FastAPI, HTTPException, Query, Response
from pydantic import BaseModel

from .catalog import PlanCatalog
from .comparison import all_providers, get_cost_comparison, get_plan_comparison
from .config import Settings, build_catalog_source, configure_logging, load_recommendation_config
from .errors import (
    CatalogUnavailableError,
    InvalidFilterError,
    NoEligiblePlansError,
    QuestionnaireNotFoundError,
    ValidationError,
)
from .locations import penalty_notice
from .matching import coerce_age_bracket, coerce_household_type
from .models import (
    CostComparisonRow,
    PlanComparisonRow,
    PricingPlan,
    QuestionnaireResponse,
    RankedPlan,
    RecommendationConfig,
    VisitFrequency,
)
from .recommendation import get_recommendations
from .session import BaseQuestionnaireStore, InMemoryQuestionnaireStore
from .validator import validate_questionnaire

logger = logging.getLogger(__name__)


class QuestionnaireSaved(BaseModel):
    session_id: str
    questionnaire: QuestionnaireResponse
    penalty_notice: Optional[str] = None


class RecommendationsResponse(BaseModel):
    recommendations: List[RankedPlan]
    penalty_notice: Optional[str] = None


def create_app(
    *,
    catalog: Optional[PlanCatalog] = None,
    store: Optional[BaseQuestionnaireStore] = None,
    config: Optional[RecommendationConfig] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    plan_catalog = catalog or PlanCatalog(
        build_catalog_source(settings), strict=settings.strict_ingestion
    )
    questionnaire_store = store or InMemoryQuestionnaireStore()
    recommendation_config = config or load_recommendation_config(settings.weights_path)
    cookie_name = settings.session_cookie

    app = FastAPI(title="Health-sharing Plan Finder", version="0.1.0")

    async def current_plans() -> Tuple[PricingPlan, ...]:
        try:
            return await plan_catalog.plans()
        except CatalogUnavailableError as exc:
            logger.error("Plan catalog unavailable: %s", exc)
            raise HTTPException(status_code=503, detail=str(exc)) from exc

    async def recommend(response: QuestionnaireResponse) -> RecommendationsResponse:
        plans = await current_plans()
        try:
            ranked = get_recommendations(plans, response, recommendation_config)
        except NoEligiblePlansError as exc:
            raise HTTPException(
                status_code=404,
                detail={"message": "No eligible plans found for your criteria.", "reasons": exc.reasons},
            ) from exc
        return RecommendationsResponse(
            recommendations=ranked, penalty_notice=penalty_notice(response.zip_code)
        )

    def parse_questionnaire(payload: Dict[str, Any]) -> QuestionnaireResponse:
        try:
            return validate_questionnaire(payload)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=exc.errors) from exc

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.get("/plans", response_model=List[PricingPlan])
    async def list_plans():
        return list(await current_plans())

    @app.get("/plans/providers", response_model=List[str])
    async def list_providers():
        return all_providers(await current_plans())

    @app.get("/plans/comparison", response_model=List[PlanComparisonRow])
    async def compare_plans(
        age_bracket: str = Query(...),
        household_type: str = Query(...),
        plan_id: Optional[List[str]] = Query(default=None),
    ):
        try:
            bracket = coerce_age_bracket(age_bracket)
            household = coerce_household_type(household_type)
        except InvalidFilterError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        plans = await current_plans()
        if plan_id:
            by_id = {plan.id: plan for plan in plans}
            missing = [pid for pid in plan_id if pid not in by_id]
            if missing:
                raise HTTPException(status_code=404, detail=f"Unknown plan ids: {', '.join(missing)}")
            plans = [by_id[pid] for pid in plan_id]
        return get_plan_comparison(bracket, household, plans)

    @app.get("/plans/costs", response_model=List[CostComparisonRow])
    async def compare_costs(
        age_bracket: str = Query(...),
        household_type: str = Query(...),
        max_iua: Optional[float] = Query(default=None, gt=0),
        visit_frequency: Optional[VisitFrequency] = Query(default=None),
    ):
        plans = await current_plans()
        try:
            return get_cost_comparison(
                age_bracket, household_type, plans, max_iua=max_iua, visit_frequency=visit_frequency
            )
        except InvalidFilterError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @app.get("/plans/{plan_id}", response_model=PricingPlan)
    async def get_plan(plan_id: str):
        await current_plans()
        plan = await plan_catalog.get(plan_id)
        if plan is None:
            raise HTTPException(status_code=404, detail=f"Plan '{plan_id}' not found.")
        return plan

    @app.post("/questionnaire", response_model=QuestionnaireSaved)
    async def save_questionnaire(
        response: Response,
        payload: Dict[str, Any] = Body(...),
        session_id: Optional[str] = Cookie(default=None, alias=cookie_name),
    ):
        questionnaire = parse_questionnaire(payload)
        session_id = session_id or uuid.uuid4().hex
        questionnaire_store.save(session_id, questionnaire)
        response.set_cookie(cookie_name, session_id, max_age=30 * 60, httponly=True, samesite="lax")
        return QuestionnaireSaved(
            session_id=session_id,
            questionnaire=questionnaire,
            penalty_notice=penalty_notice(questionnaire.zip_code),
        )

    @app.get("/questionnaire", response_model=QuestionnaireResponse)
    async def load_questionnaire(session_id: Optional[str] = Cookie(default=None, alias=cookie_name)):
        try:
            return questionnaire_store.load(session_id or "")
        except QuestionnaireNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.post("/questionnaire/clear")
    async def clear_questionnaire(
        response: Response,
        session_id: Optional[str] = Cookie(default=None, alias=cookie_name),
    ):
        if session_id:
            questionnaire_store.clear(session_id)
        response.delete_cookie(cookie_name)
        return {"success": True}

    @app.post("/recommendations", response_model=RecommendationsResponse)
    async def recommendations_for(payload: Dict[str, Any] = Body(...)):
        return await recommend(parse_questionnaire(payload))

    @app.get("/recommendations", response_model=RecommendationsResponse)
    async def recommendations_for_session(
        session_id: Optional[str] = Cookie(default=None, alias=cookie_name),
    ):
        try:
            questionnaire = questionnaire_store.load(session_id or "")
        except QuestionnaireNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return await recommend(questionnaire)

    return app


def app_from_env() -> FastAPI:
    """ASGI factory for servers, e.g. ``uvicorn --factory healthshare_plans.api:app_from_env``."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    return create_app(settings=settings)
