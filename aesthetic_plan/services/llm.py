from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from aesthetic_plan.config import Settings
from aesthetic_plan.errors import ConfigError, UpstreamError
from aesthetic_plan.services.plan_prompt import SYSTEM_MESSAGE


logger = logging.getLogger("aesthetic-plan-agent.llm")


def _message_content(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) else ""


async def complete_chat(
    prompt: str,
    *,
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Send one chat-completion request and return the raw assistant text.

    No retry happens here: a content retry needs a different prompt, which is
    the extractor's job.
    """
    if not settings.openai_api_key:
        raise ConfigError("OPENAI_API_KEY is not set.", setting="OPENAI_API_KEY")

    url = f"{settings.openai_base_url.rstrip('/')}/chat/completions"
    headers = {
        "Authorization": f"Bearer {settings.openai_api_key}",
        "Content-Type": "application/json",
    }
    payload: dict[str, Any] = {
        "model": settings.openai_model,
        "temperature": settings.openai_temperature,
        # JSON-only output is enforced by the prompt, not response_format.
        "messages": [
            {"role": "system", "content": SYSTEM_MESSAGE},
            {"role": "user", "content": prompt},
        ],
    }

    try:
        async with httpx.AsyncClient(timeout=settings.llm_timeout_s, transport=transport) as client:
            res = await client.post(url, headers=headers, json=payload)
    except httpx.HTTPError as exc:
        logger.error("llm_call_failed model=%s err=%s", settings.openai_model, exc)
        raise UpstreamError(f"Completion API request failed: {exc}", upstream="llm") from exc

    if res.status_code >= 400:
        logger.warning("llm_call_rejected status=%s body=%s", res.status_code, res.text[:500])
        raise UpstreamError(
            f"Completion API error {res.status_code}.",
            upstream="llm",
            upstream_status=res.status_code,
            body=res.text[:2000],
        )

    try:
        data = res.json()
    except ValueError:
        raise UpstreamError("Completion API returned a non-JSON body.", upstream="llm", body=res.text[:2000]) from None

    return _message_content(data)
