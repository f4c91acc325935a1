"""
Heuristic aesthetic scoring.

Raw values are "badness" in [0, 1] (higher is worse). They are turned into
user-facing scores in [30, 100] (higher is better) through a 1.2 power curve,
which compresses the top of the range more than the bottom. The weights are
calibrated constants and must stay as they are.
"""
from __future__ import annotations

import math
from typing import Optional

from aesthetic_plan.models import SCORE_CATEGORIES, AggregateFeatures, ScoreSet
from aesthetic_plan.services.features import DEFAULT_BRIGHTNESS, DEFAULT_REDNESS_RATIO, clamp01


SCORE_FLOOR = 30
SCORE_SPAN = 70
CURVE_EXPONENT = 1.2
AGE_NORMALIZER = 80.0

GRADE_THRESHOLDS: tuple[tuple[int, str], ...] = ((85, "A"), (70, "B"), (55, "C"))


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _finite_or(value: Optional[float], default: float) -> float:
    if value is None:
        return default
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def raw_scores(features: AggregateFeatures, *, age: Optional[float] = None) -> dict[str, float]:
    brightness = _finite_or(features.avg_brightness, DEFAULT_BRIGHTNESS)
    redness = _finite_or(features.avg_redness_ratio, DEFAULT_REDNESS_RATIO)
    contrast = _finite_or(features.contrast, 0.0)
    texture = _finite_or(features.texture, clamp01(0.4 + 0.6 * contrast))
    age_factor = _finite_or(age, 0.0) / AGE_NORMALIZER

    return {
        "spots": clamp01(0.6 * (1 - brightness) + 0.4 * contrast),
        "wrinkles": clamp01(0.4 * age_factor + 0.6 * contrast),
        "sagging": clamp01(0.5 * age_factor + 0.5 * (1 - contrast)),
        "pores": clamp01(0.7 * texture + 0.3 * contrast),
        "redness": clamp01(redness),
    }


def display_score(raw: float) -> int:
    goodness = 1.0 - clamp01(_finite_or(raw, 0.0))
    return round_half_up(SCORE_FLOOR + goodness**CURVE_EXPONENT * SCORE_SPAN)


def grade_for(score: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "D"


def score_features(features: AggregateFeatures, *, age: Optional[float] = None) -> ScoreSet:
    raw = raw_scores(features, age=age)
    scores = {category: display_score(raw[category]) for category in SCORE_CATEGORIES}
    overall = round_half_up(sum(scores.values()) / len(scores))

    grades = {category: grade_for(score) for category, score in scores.items()}
    grades["overall"] = grade_for(overall)

    return ScoreSet(**scores, overall=overall, grades=grades)
