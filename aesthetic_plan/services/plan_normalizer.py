from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Optional, Union

from aesthetic_plan.models import TIER_KEYS, Plan, PlanItem
from aesthetic_plan.services.price_catalog import PriceCatalog


logger = logging.getLogger("aesthetic-plan-agent.plan-normalizer")

FALLBACK_NOTES = (
    "This is a standard plan generated without AI personalization. "
    "Prices follow the clinic price list. Please confirm contraindications, downtime and visit "
    "frequency during an in-person consultation."
)

# (items per tier, sessions per item)
_FALLBACK_TIERS: dict[str, tuple[int, int]] = {
    "light": (1, 1),
    "standard": (2, 3),
    "aggressive": (3, 5),
}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_price(value: Any) -> Union[int, float]:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip().replace(",", ""))
        except ValueError:
            return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value) if value.is_integer() else value
    return 0


def _as_sessions(value: Any) -> int:
    if isinstance(value, bool):
        return 1
    if isinstance(value, int):
        return value if value > 0 else 1
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    return 1


def normalize_item(raw: Mapping[str, Any]) -> PlanItem:
    price = raw.get("price")
    if price is None:
        price = raw.get("price_jpy")
    return PlanItem(
        category=_as_text(raw.get("category")),
        name=_as_text(raw.get("name")),
        unit=_as_text(raw.get("unit")),
        price=_as_price(price),
        sessions=_as_sessions(raw.get("sessions")),
        reason=_as_text(raw.get("reason")),
    )


def normalize_plan(doc: Any) -> Plan:
    """Coerce any recovered document into a fully populated Plan. Never raises."""
    src = doc if isinstance(doc, dict) else {}

    tiers: dict[str, list[PlanItem]] = {}
    for key in TIER_KEYS:
        raw_items = src.get(key)
        if not isinstance(raw_items, list):
            raw_items = []
        tiers[key] = [normalize_item(it) for it in raw_items if isinstance(it, dict)]

    notes = src.get("notes")
    return Plan(**tiers, notes=notes if isinstance(notes, str) else "")


def reconcile_with_catalog(plan: Plan, catalog: PriceCatalog) -> Plan:
    """Pin every item to its catalog entry; drop items the catalog does not know."""
    reconciled: dict[str, list[PlanItem]] = {}
    for tier, items in plan.tiers().items():
        kept: list[PlanItem] = []
        for item in items:
            entry = catalog.find(item.name, item.category or None)
            if entry is None:
                logger.warning("plan_item_not_in_catalog tier=%s name=%r", tier, item.name)
                continue
            if item.price != entry.price or item.unit != entry.unit or item.category != entry.category:
                logger.warning(
                    "plan_item_altered tier=%s name=%r price=%s catalog_price=%s",
                    tier,
                    entry.name,
                    item.price,
                    entry.price,
                )
            kept.append(item.model_copy(update={"category": entry.category, "unit": entry.unit, "price": entry.price}))
        reconciled[tier] = kept
    return Plan(**reconciled, notes=plan.notes)


def _score_key(value: Optional[float]) -> float:
    if value is None:
        return math.inf
    try:
        value = float(value)
    except (TypeError, ValueError):
        return math.inf
    return value if math.isfinite(value) else math.inf


def build_fallback_plan(catalog: PriceCatalog, *, scores: Optional[Mapping[str, Any]] = None) -> Plan:
    """Deterministic three-tier plan built only from catalog entries, worst category first."""
    scores = scores or {}
    categories = catalog.categories()
    ordered = sorted(categories, key=lambda c: (_score_key(scores.get(c)), categories.index(c)))

    tiers: dict[str, list[PlanItem]] = {}
    for tier, (count, sessions) in _FALLBACK_TIERS.items():
        items: list[PlanItem] = []
        for category in ordered[:count]:
            entry = catalog.first_in(category)
            if entry is None:
                continue
            items.append(
                PlanItem(
                    category=entry.category,
                    name=entry.name,
                    unit=entry.unit,
                    price=entry.price,
                    sessions=sessions,
                    reason=f"Standard option for {category}.",
                )
            )
        tiers[tier] = items

    return Plan(**tiers, notes=FALLBACK_NOTES)
