from __future__ import annotations

import json
import logging
import re
from typing import Any, Awaitable, Callable, Optional

from aesthetic_plan.errors import PlanGenerationFailure
from aesthetic_plan.services.plan_prompt import build_retry_prompt


logger = logging.getLogger("aesthetic-plan-agent.plan-extractor")

CompleteFn = Callable[[str], Awaitable[str]]

MAX_ATTEMPTS = 2

MAX_SCAN_CHARS = 20000
MAX_BRACE_STARTS = 20

_CODE_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE_RE.sub("", text).strip()


def _loads_object(candidate: str) -> Optional[dict[str, Any]]:
    try:
        obj = json.loads(candidate)
    except ValueError:
        return None
    return obj if isinstance(obj, dict) else None


def parse_json_object(text: Any) -> Optional[dict[str, Any]]:
    """Recover a JSON object from model output that may carry extra text."""
    if not isinstance(text, str) or not text.strip():
        return None

    cleaned = strip_code_fences(text)
    obj = _loads_object(cleaned)
    if obj is not None:
        return obj

    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first >= 0 and last > first:
        obj = _loads_object(cleaned[first : last + 1])
        if obj is not None:
            return obj

    # Trailing prose with its own braces defeats the first/last slice.
    # Each start walks to the end of the text, so both are bounded.
    if len(cleaned) > MAX_SCAN_CHARS:
        return None
    starts = [i for i, ch in enumerate(cleaned) if ch == "{"][:MAX_BRACE_STARTS]
    for start in starts:
        candidate = _extract_braced(cleaned, start)
        if not candidate:
            continue
        obj = _loads_object(candidate)
        if obj is not None:
            return obj

    return None


def _extract_braced(text: str, start: int) -> Optional[str]:
    depth = 0
    in_str = False
    escape = False
    end: Optional[int] = None

    for i in range(start, len(text)):
        ch = text[i]
        if in_str:
            if escape:
                escape = False
                continue
            if ch == "\\":
                escape = True
                continue
            if ch == '"':
                in_str = False
            continue

        if ch == '"':
            in_str = True
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                end = i
                break

    if end is None or depth != 0:
        return None
    return text[start : end + 1]


async def extract_plan(prompt: str, *, complete: CompleteFn) -> dict[str, Any]:
    """Ask the model for a plan, retrying once with a stricter JSON-only instruction.

    Raises PlanGenerationFailure when neither attempt yields a JSON object.
    Transport and configuration errors from ``complete`` propagate unchanged.
    """
    prompts = [prompt, build_retry_prompt(prompt)]
    for attempt, attempt_prompt in enumerate(prompts[:MAX_ATTEMPTS], start=1):
        content = await complete(attempt_prompt)
        parsed = parse_json_object(content)
        if parsed is not None:
            if attempt > 1:
                logger.info("plan_extracted_on_retry attempt=%s", attempt)
            return parsed
        logger.warning("plan_output_not_json attempt=%s sample=%r", attempt, (content or "")[:200])

    raise PlanGenerationFailure("LLM output is not valid JSON.", attempts=MAX_ATTEMPTS)
