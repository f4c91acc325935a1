from __future__ import annotations

from pathlib import Path
import sys
import unittest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from aesthetic_plan.models import Plan, PlanItem
from aesthetic_plan.services.plan_normalizer import build_fallback_plan, normalize_plan, reconcile_with_catalog
from aesthetic_plan.services.price_catalog import BUILTIN_CATALOG


def _item(**overrides) -> dict:
    item = {
        "category": "spots",
        "name": "Laser toning",
        "unit": "session",
        "price": 30000,
        "sessions": 3,
        "reason": "Dullness and spots",
    }
    item.update(overrides)
    return item


class TestNormalizePlan(unittest.TestCase):
    def test_sessions_default_to_one(self) -> None:
        item = _item()
        del item["sessions"]
        plan = normalize_plan({"light": [item]})
        self.assertEqual(plan.light[0].sessions, 1)

    def test_invalid_sessions_become_one(self) -> None:
        for sessions in (-3, 0, "2", 1.5, True, None, [2]):
            with self.subTest(sessions=sessions):
                plan = normalize_plan({"light": [_item(sessions=sessions)]})
                self.assertEqual(plan.light[0].sessions, 1)

    def test_integral_float_sessions_are_kept(self) -> None:
        plan = normalize_plan({"light": [_item(sessions=4.0)]})
        self.assertEqual(plan.light[0].sessions, 4)

    def test_absent_or_wrong_typed_tiers_become_empty_lists(self) -> None:
        plan = normalize_plan({"light": [_item()], "standard": "two sessions of HIFU", "notes": 12})

        self.assertEqual(len(plan.light), 1)
        self.assertEqual(plan.standard, [])
        self.assertEqual(plan.aggressive, [])
        self.assertEqual(plan.notes, "")

    def test_non_object_documents_give_empty_plan(self) -> None:
        for doc in (None, [], "text", 3):
            with self.subTest(doc=doc):
                plan = normalize_plan(doc)
                self.assertEqual(plan.model_dump(), {"light": [], "standard": [], "aggressive": [], "notes": ""})

    def test_items_get_every_field(self) -> None:
        plan = normalize_plan({"aggressive": [{"name": "HIFU (full face)"}, "not an item"]})

        self.assertEqual(len(plan.aggressive), 1)
        self.assertEqual(
            plan.aggressive[0].model_dump(),
            {"category": "", "name": "HIFU (full face)", "unit": "", "price": 0, "sessions": 1, "reason": ""},
        )

    def test_price_is_forced_numeric(self) -> None:
        plan = normalize_plan(
            {
                "light": [
                    _item(price="30,000"),
                    _item(price="free"),
                    _item(price=29999.5),
                ],
                "standard": [{"name": "Laser toning", "price_jpy": 30000}],
            }
        )
        self.assertEqual([i.price for i in plan.light], [30000, 0, 29999.5])
        self.assertEqual(plan.standard[0].price, 30000)


class TestReconcileWithCatalog(unittest.TestCase):
    def test_altered_price_is_restored_from_catalog(self) -> None:
        plan = Plan(light=[PlanItem(category="spots", name="Laser toning", unit="shot", price=1, sessions=2)])
        with self.assertLogs("aesthetic-plan-agent.plan-normalizer", level="WARNING"):
            fixed = reconcile_with_catalog(plan, BUILTIN_CATALOG)

        self.assertEqual(fixed.light[0].price, 30000)
        self.assertEqual(fixed.light[0].unit, "session")
        self.assertEqual(fixed.light[0].sessions, 2)

    def test_invented_items_are_dropped(self) -> None:
        plan = Plan(
            standard=[
                PlanItem(category="spots", name="Gold facial", unit="session", price=99999),
                PlanItem(category="sagging", name="HIFU (full face)", unit="session", price=90000),
            ],
            notes="keep me",
        )
        with self.assertLogs("aesthetic-plan-agent.plan-normalizer", level="WARNING"):
            fixed = reconcile_with_catalog(plan, BUILTIN_CATALOG)

        self.assertEqual([i.name for i in fixed.standard], ["HIFU (full face)"])
        self.assertEqual(fixed.notes, "keep me")


class TestFallbackPlan(unittest.TestCase):
    def test_uses_only_catalog_entries_in_every_tier(self) -> None:
        plan = build_fallback_plan(BUILTIN_CATALOG)
        known = {(e.category, e.name, e.unit, e.price) for e in BUILTIN_CATALOG}

        self.assertEqual([len(plan.light), len(plan.standard), len(plan.aggressive)], [1, 2, 3])
        for items in plan.tiers().values():
            for item in items:
                self.assertIn((item.category, item.name, item.unit, item.price), known)
        self.assertTrue(plan.notes)

    def test_worst_scores_come_first(self) -> None:
        plan = build_fallback_plan(
            BUILTIN_CATALOG,
            scores={"overall": 60, "spots": 90, "wrinkles": 80, "sagging": 41, "pores": 75, "redness": 55},
        )
        self.assertEqual([i.category for i in plan.light], ["sagging"])
        self.assertEqual([i.category for i in plan.standard], ["sagging", "redness"])
        self.assertEqual([i.category for i in plan.aggressive], ["sagging", "redness", "pores"])
        self.assertEqual([i.sessions for i in plan.aggressive], [5, 5, 5])

    def test_is_deterministic(self) -> None:
        scores = {"spots": 50}
        self.assertEqual(
            build_fallback_plan(BUILTIN_CATALOG, scores=scores).model_dump(),
            build_fallback_plan(BUILTIN_CATALOG, scores=scores).model_dump(),
        )


if __name__ == "__main__":
    unittest.main()
