from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from aesthetic_plan.config import Settings
from aesthetic_plan.models import AggregateFeatures, DiagnoseRequest, ScoreSet
from aesthetic_plan.services.features import aggregate_features
from aesthetic_plan.services.scoring import score_features
from aesthetic_plan.services.vision import annotate_images


logger = logging.getLogger("aesthetic-plan-agent.diagnosis")

DISCLAIMER = (
    "This result is a reference evaluation for cosmetic purposes only and is not a medical diagnosis. "
    "An in-person consultation is recommended."
)


class DiagnoseResult(BaseModel):
    features: AggregateFeatures
    scores: ScoreSet

    def to_response(self) -> dict[str, Any]:
        return {
            "scores": self.scores.as_scores(),
            "grades": dict(self.scores.grades),
            "analysis_info": {
                "detection_confidence": self.features.detection_confidence,
                "is_face_tilted": self.features.is_face_tilted,
            },
            "comment": DISCLAIMER,
        }


async def diagnose(
    request: DiagnoseRequest,
    *,
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DiagnoseResult:
    signals = await annotate_images(
        request.images,
        api_key=settings.vision_api_key,
        base_url=settings.vision_api_base_url,
        timeout_s=settings.upstream_timeout_s,
        transport=transport,
    )
    features = aggregate_features(signals)
    scores = score_features(features, age=request.age)

    logger.info(
        "diagnosis_scored overall=%s detection_confidence=%.3f tilted=%s",
        scores.overall,
        features.detection_confidence,
        features.is_face_tilted,
    )
    return DiagnoseResult(features=features, scores=scores)
