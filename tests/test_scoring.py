from __future__ import annotations

import math
from pathlib import Path
import sys
import unittest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from aesthetic_plan.models import AggregateFeatures
from aesthetic_plan.services.scoring import display_score, grade_for, raw_scores, round_half_up, score_features


class TestDisplayScore(unittest.TestCase):
    def test_endpoints_are_exact(self) -> None:
        self.assertEqual(display_score(0.0), 100)
        self.assertEqual(display_score(1.0), 30)

    def test_bounded_and_monotonically_non_increasing(self) -> None:
        previous = None
        for step in range(0, 101):
            score = display_score(step / 100)
            self.assertGreaterEqual(score, 30)
            self.assertLessEqual(score, 100)
            if previous is not None:
                self.assertLessEqual(score, previous)
            previous = score

    def test_out_of_range_raw_values_are_clamped(self) -> None:
        self.assertEqual(display_score(-3.0), 100)
        self.assertEqual(display_score(7.0), 30)
        self.assertIn(display_score(math.nan), range(30, 101))

    def test_curve_is_not_linear(self) -> None:
        # Midpoint lands below the linear 65 because of the 1.2 exponent.
        self.assertEqual(display_score(0.5), 60)

    def test_round_half_up(self) -> None:
        self.assertEqual(round_half_up(70.5), 71)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(70.4), 70)


class TestGrades(unittest.TestCase):
    def test_threshold_boundaries(self) -> None:
        cases = {100: "A", 85: "A", 84: "B", 70: "B", 69: "C", 55: "C", 54: "D", 30: "D"}
        for score, grade in cases.items():
            with self.subTest(score=score):
                self.assertEqual(grade_for(score), grade)


class TestScoreFeatures(unittest.TestCase):
    def test_default_features_give_bounded_scores(self) -> None:
        features = AggregateFeatures(avg_brightness=0.5, avg_redness_ratio=0.3, contrast=0.0, texture=0.4)
        result = score_features(features, age=None)

        for key, value in result.as_scores().items():
            with self.subTest(key=key):
                self.assertGreaterEqual(value, 30)
                self.assertLessEqual(value, 100)
        self.assertEqual(set(result.grades), {"overall", "spots", "wrinkles", "sagging", "pores", "redness"})

    def test_missing_or_non_finite_age_counts_as_zero(self) -> None:
        features = AggregateFeatures()
        baseline = raw_scores(features, age=0)
        self.assertEqual(raw_scores(features, age=None), baseline)
        self.assertEqual(raw_scores(features, age=math.nan), baseline)

    def test_raw_scores_follow_weights(self) -> None:
        features = AggregateFeatures(avg_brightness=0.6, avg_redness_ratio=0.25, contrast=0.1, texture=0.46)
        raw = raw_scores(features, age=40)

        self.assertAlmostEqual(raw["spots"], 0.6 * 0.4 + 0.4 * 0.1)
        self.assertAlmostEqual(raw["wrinkles"], 0.4 * 0.5 + 0.6 * 0.1)
        self.assertAlmostEqual(raw["sagging"], 0.5 * 0.5 + 0.5 * 0.9)
        self.assertAlmostEqual(raw["pores"], 0.7 * 0.46 + 0.3 * 0.1)
        self.assertAlmostEqual(raw["redness"], 0.25)

    def test_old_age_clamps_raw_values(self) -> None:
        raw = raw_scores(AggregateFeatures(contrast=0.0), age=150)
        self.assertEqual(raw["sagging"], 1.0)
        result = score_features(AggregateFeatures(contrast=0.0), age=150)
        self.assertEqual(result.sagging, 30)

    def test_overall_is_rounded_mean(self) -> None:
        result = score_features(AggregateFeatures(), age=40)
        parts = [result.spots, result.wrinkles, result.sagging, result.pores, result.redness]
        self.assertEqual(result.overall, round_half_up(sum(parts) / 5))


if __name__ == "__main__":
    unittest.main()
