from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence

from aesthetic_plan.models import AggregateFeatures, DominantColor, ImageSignal


DEFAULT_BRIGHTNESS = 0.5
DEFAULT_REDNESS_RATIO = 0.3

# Mean absolute roll above this many degrees marks the photo set as tilted.
TILT_THRESHOLD_DEGREES = 15.0

REQUIRED_FACES = 3


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def _finite(value: Optional[float], default: float = 0.0) -> float:
    if value is None or not math.isfinite(value):
        return default
    return float(value)


def _channel(value: float) -> float:
    return max(0.0, min(255.0, _finite(value)))


def _channels(color: DominantColor) -> tuple[float, float, float]:
    return _channel(color.red), _channel(color.green), _channel(color.blue)


def brightness_of(color: DominantColor) -> float:
    """Luma-weighted brightness normalized to [0, 1]."""
    r, g, b = _channels(color)
    return clamp01((0.299 * r + 0.587 * g + 0.114 * b) / 255.0)


def redness_ratio_of(color: DominantColor) -> float:
    r, g, b = _channels(color)
    return clamp01(r / max(1.0, r + g + b))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _population_variance(values: Sequence[float], mean: float) -> float:
    if not values:
        return 0.0
    return sum((v - mean) ** 2 for v in values) / len(values)


def _detection(signals: Sequence[ImageSignal]) -> tuple[float, bool]:
    faces = [s for s in signals if s.face_detected]
    # All-or-nothing: a partial detection is a failed read, not a weaker one.
    if len(signals) != REQUIRED_FACES or len(faces) != REQUIRED_FACES:
        return 0.0, False

    confidence = clamp01(_mean([_finite(s.detection_confidence) for s in faces]))
    avg_tilt = _mean([abs(_finite(s.roll_angle_degrees)) for s in faces])
    return confidence, avg_tilt > TILT_THRESHOLD_DEGREES


def aggregate_features(signals: Iterable[ImageSignal]) -> AggregateFeatures:
    signals = list(signals)
    colors = [s.dominant_color for s in signals if s.dominant_color is not None]

    brightness_vals = [brightness_of(c) for c in colors]
    redness_vals = [redness_ratio_of(c) for c in colors]

    avg_brightness = _mean(brightness_vals) if brightness_vals else DEFAULT_BRIGHTNESS
    variance = _population_variance(brightness_vals, avg_brightness)
    avg_redness = _mean(redness_vals) if redness_vals else DEFAULT_REDNESS_RATIO

    detection_confidence, tilted = _detection(signals)

    # A tilted face makes brightness spread a weaker wrinkle proxy.
    contrast = clamp01(variance * (2.5 if tilted else 3.0))
    texture = clamp01(0.4 + 0.6 * contrast)

    return AggregateFeatures(
        avg_brightness=clamp01(avg_brightness),
        brightness_variance=max(0.0, variance),
        avg_redness_ratio=clamp01(avg_redness),
        contrast=contrast,
        texture=texture,
        detection_confidence=detection_confidence,
        is_face_tilted=tilted,
    )
