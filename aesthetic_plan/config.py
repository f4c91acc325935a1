from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, ConfigDict


DEFAULT_VISION_API_BASE_URL = "https://vision.googleapis.com"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    vision_api_key: Optional[str] = None
    vision_api_base_url: str = DEFAULT_VISION_API_BASE_URL
    openai_api_key: Optional[str] = None
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_temperature: float = 0.2
    upstream_timeout_s: float = 10.0
    llm_timeout_s: float = 30.0
    plan_language: str = "Japanese"
    price_catalog_path: Optional[str] = None


def _optional(key: str) -> Optional[str]:
    return (os.getenv(key) or "").strip() or None


def load_settings() -> Settings:
    return Settings(
        vision_api_key=_optional("VISION_API_KEY"),
        vision_api_base_url=(os.getenv("VISION_API_BASE_URL") or DEFAULT_VISION_API_BASE_URL).rstrip("/"),
        openai_api_key=_optional("OPENAI_API_KEY"),
        openai_base_url=(os.getenv("OPENAI_BASE_URL") or DEFAULT_OPENAI_BASE_URL).rstrip("/"),
        openai_model=(os.getenv("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL).strip(),
        openai_temperature=float(os.getenv("OPENAI_TEMPERATURE") or "0.2"),
        upstream_timeout_s=float(os.getenv("UPSTREAM_TIMEOUT_S") or "10"),
        llm_timeout_s=float(os.getenv("LLM_TIMEOUT_S") or "30"),
        plan_language=(os.getenv("PLAN_LANGUAGE") or "Japanese").strip(),
        price_catalog_path=_optional("PRICE_CATALOG_PATH"),
    )
