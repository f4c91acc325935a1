from __future__ import annotations

import os

from fastapi import APIRouter, Request

router = APIRouter()


def _get_commit_sha() -> str | None:
    for key in (
        # Netlify
        "COMMIT_REF",
        # Common CI providers
        "GITHUB_SHA",
        "VERCEL_GIT_COMMIT_SHA",
        # Generic fallbacks
        "COMMIT_SHA",
        "GIT_SHA",
    ):
        value = os.getenv(key)
        if value:
            return value
    return None


@router.get("/healthz")
def healthz(request: Request):
    catalog = request.app.state.price_catalog
    return {
        "ok": True,
        "service": "aesthetic-plan-agent",
        "commit_sha": _get_commit_sha(),
        "environment": os.getenv("ENVIRONMENT"),
        "price_catalog": {"source": catalog.source, "entries": len(catalog)},
    }
