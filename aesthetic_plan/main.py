from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from aesthetic_plan.config import Settings, load_settings
from aesthetic_plan.errors import AestheticPlanError, UnexpectedError, ValidationError
from aesthetic_plan.routes.health import router as health_router
from aesthetic_plan.routes.v1 import router as v1_router
from aesthetic_plan.services.price_catalog import load_price_catalog


logger = logging.getLogger("aesthetic-plan-agent")


def _parse_cors_origins(raw: Optional[str]) -> list[str]:
    if not raw:
        return ["*"]
    parts = [p.strip() for p in raw.split(",")]
    return [p for p in parts if p]


def _setup_logging() -> None:
    level = (os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AestheticPlanError)
    async def _service_error(request: Request, exc: AestheticPlanError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        err = ValidationError("Request body is not valid JSON.")
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "HTTP_ERROR", "message": str(exc.detail), "details": {}},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error path=%s", request.url.path)
        err = UnexpectedError()
        return JSONResponse(status_code=err.status_code, content=err.to_dict())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    _setup_logging()
    settings = settings or load_settings()
    app = FastAPI(title="Aesthetic Plan Agent", version="0.1.0")

    app.state.settings = settings
    app.state.price_catalog = load_price_catalog(settings.price_catalog_path)

    origins = _parse_cors_origins(os.getenv("CORS_ORIGINS"))
    allow_all = "*" in origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=86400,
    )

    _install_error_handlers(app)
    app.include_router(health_router)
    app.include_router(v1_router, prefix="/v1")

    return app


app = create_app()
