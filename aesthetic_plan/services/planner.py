from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel

from aesthetic_plan.errors import PlanGenerationFailure
from aesthetic_plan.models import Plan, PlanRequest
from aesthetic_plan.services.plan_extractor import CompleteFn, extract_plan
from aesthetic_plan.services.plan_normalizer import build_fallback_plan, normalize_plan, reconcile_with_catalog
from aesthetic_plan.services.plan_prompt import build_plan_prompt
from aesthetic_plan.services.price_catalog import PriceCatalog


logger = logging.getLogger("aesthetic-plan-agent.planner")


class PlanOutcome(BaseModel):
    plan: Plan
    source: Literal["llm", "fallback"]


async def generate_plan(
    request: PlanRequest,
    *,
    catalog: PriceCatalog,
    complete: CompleteFn,
    language: str = "Japanese",
) -> PlanOutcome:
    prompt = build_plan_prompt(request, catalog=catalog, language=language)

    try:
        doc = await extract_plan(prompt, complete=complete)
    except PlanGenerationFailure as exc:
        logger.warning("plan_fallback reason=unparseable attempts=%s", exc.attempts)
        return PlanOutcome(plan=build_fallback_plan(catalog, scores=request.scores), source="fallback")

    plan = reconcile_with_catalog(normalize_plan(doc), catalog)
    if plan.item_count() == 0:
        logger.warning("plan_fallback reason=no_catalog_items")
        return PlanOutcome(plan=build_fallback_plan(catalog, scores=request.scores), source="fallback")

    return PlanOutcome(plan=plan, source="llm")
