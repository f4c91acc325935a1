from __future__ import annotations

import logging
from typing import Any, Type, TypeVar

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from aesthetic_plan.config import Settings
from aesthetic_plan.errors import ConfigError, UpstreamError, ValidationError
from aesthetic_plan.models import DiagnoseRequest, PlanRequest
from aesthetic_plan.services.diagnosis import diagnose
from aesthetic_plan.services.llm import complete_chat
from aesthetic_plan.services.plan_normalizer import build_fallback_plan
from aesthetic_plan.services.planner import generate_plan
from aesthetic_plan.services.price_catalog import PriceCatalog


router = APIRouter()

logger = logging.getLogger("aesthetic-plan-agent.v1")

ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse_body(model: Type[ModelT], body: Any) -> ModelT:
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")
    try:
        return model.model_validate(body)
    except PydanticValidationError as exc:
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        raise ValidationError("Invalid request body.", details={"fields": fields}) from None


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _catalog(request: Request) -> PriceCatalog:
    return request.app.state.price_catalog


@router.post("/diagnose")
async def diagnose_endpoint(request: Request, body: Any = Body(default=None)):
    payload = _parse_body(DiagnoseRequest, body)
    result = await diagnose(payload, settings=_settings(request))
    return result.to_response()


@router.post("/plan")
async def plan_endpoint(request: Request, body: Any = Body(default=None)):
    # Every plan field has a default, so a missing body reads as an empty one.
    payload = _parse_body(PlanRequest, {} if body is None else body)
    settings = _settings(request)
    catalog = _catalog(request)

    async def _complete(prompt: str) -> str:
        return await complete_chat(prompt, settings=settings)

    try:
        outcome = await generate_plan(payload, catalog=catalog, complete=_complete, language=settings.plan_language)
    except (ConfigError, UpstreamError) as exc:
        logger.error("plan_generation_aborted code=%s err=%s", exc.code, exc.message)
        # Still hand back something usable alongside the error.
        fallback = build_fallback_plan(catalog, scores=payload.scores)
        # The provider's own status stays in details; a 401 or 429 from it is not the caller's.
        status_code = 502 if isinstance(exc, UpstreamError) else exc.status_code
        return JSONResponse(
            status_code=status_code,
            content={**fallback.model_dump(), **exc.to_dict()},
            headers={"X-Plan-Source": "fallback"},
        )

    return JSONResponse(content=outcome.plan.model_dump(), headers={"X-Plan-Source": outcome.source})


@router.get("/price-catalog")
async def price_catalog_endpoint(request: Request):
    catalog = _catalog(request)
    return {"source": catalog.source, "entries": catalog.as_dicts()}
