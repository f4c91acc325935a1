from __future__ import annotations

import json

from aesthetic_plan.models import PlanRequest
from aesthetic_plan.services.price_catalog import PriceCatalog


DEFAULT_EXTRA_NOTE = "Avoid diagnostic assertions; phrase everything as general advice."

STRICT_JSON_SUFFIX = (
    "\n\nIMPORTANT: Return ONLY a valid JSON object. "
    "Do not output any text, symbols or code fences before or after it."
)

SYSTEM_MESSAGE = "You are a cautious cosmetic assistant. Output VALID JSON only."

OUTPUT_SCHEMA = (
    "{\n"
    '  "light":      [{"category":"...","name":"...","unit":"...","price":12345,"sessions":1,"reason":"..."}],\n'
    '  "standard":   [{"category":"...","name":"...","unit":"...","price":12345,"sessions":1,"reason":"..."}],\n'
    '  "aggressive": [{"category":"...","name":"...","unit":"...","price":12345,"sessions":1,"reason":"..."}],\n'
    '  "notes": "(contraindications, cautions, visit frequency, estimated total cost)"\n'
    "}"
)


def _format_age(age: float | None) -> str:
    if age is None:
        return "not provided"
    return str(int(age)) if float(age).is_integer() else str(age)


def build_plan_prompt(request: PlanRequest, *, catalog: PriceCatalog, language: str = "Japanese") -> str:
    concerns = [c.strip() for c in request.concerns if c and c.strip()]
    assessment = json.dumps({"scores": request.scores, "grades": request.grades}, ensure_ascii=False, indent=2)
    extra_note = (request.extra_note or "").strip() or DEFAULT_EXTRA_NOTE

    return (
        "You are a counselor at an aesthetic medicine clinic. Based on the information below, "
        "propose treatment plans in three tiers (light / standard / aggressive).\n"
        f"Output ONLY a JSON object, written in {language}. Do not add any text, symbols or code blocks "
        "before or after it. Keys must match the format below exactly.\n\n"
        "[Patient]\n"
        f"- Age: {_format_age(request.age)}\n"
        f"- Sex: {(request.sex or '').strip() or 'unknown'}\n"
        f"- Concerns: {', '.join(concerns) if concerns else '(not provided)'}\n\n"
        "[Assessment (scores 30-100, higher is better / grades A-D)]\n"
        f"{assessment}\n\n"
        "[Treatment menu and price list (DO NOT MODIFY)]\n"
        f"{catalog.to_json()}\n\n"
        "[Instructions]\n"
        "- Choose treatments ONLY from the price list above. Never rewrite a price, and never add a treatment "
        "that is not on the list.\n"
        "- Build each of the arrays light / standard / aggressive with 1 to 3 items.\n"
        '- Every item MUST contain all of "category", "name", "unit", "price", "sessions", "reason", '
        "copying category, name, unit and price exactly from the price list.\n"
        '- "sessions" is an integer of 1 or more; "price" is a number.\n'
        '- Keep "reason" short and refer to the patient information (concerns, scores).\n'
        '- Put contraindications, cautions, visit frequency and the estimated total cost in "notes".\n'
        f"- {extra_note}\n\n"
        "[Output JSON format]\n"
        f"{OUTPUT_SCHEMA}\n"
    )


def build_retry_prompt(prompt: str) -> str:
    return prompt + STRICT_JSON_SUFFIX
