from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Any, Optional

import httpx

from aesthetic_plan.errors import ConfigError, UpstreamError, ValidationError
from aesthetic_plan.models import DominantColor, ImageSignal


logger = logging.getLogger("aesthetic-plan-agent.vision")

EXPECTED_IMAGE_COUNT = 3

_DATA_URL_PREFIX_RE = re.compile(r"^data:[\w.+-]+/[\w.+-]+;base64,", re.IGNORECASE)


def validate_image_payloads(images: Any) -> list[str]:
    if not isinstance(images, list) or len(images) != EXPECTED_IMAGE_COUNT:
        raise ValidationError(
            f"images must be an array of {EXPECTED_IMAGE_COUNT} base64 strings.",
            details={"received": len(images) if isinstance(images, list) else None},
        )

    cleaned: list[str] = []
    for idx, raw in enumerate(images):
        if not isinstance(raw, str) or not raw.strip():
            raise ValidationError("Each image must be a non-empty base64 string.", details={"index": idx})
        payload = _DATA_URL_PREFIX_RE.sub("", raw.strip())
        try:
            base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Image payload is not valid base64.", details={"index": idx}) from None
        cleaned.append(payload)
    return cleaned


def build_annotate_request(images: list[str]) -> dict[str, Any]:
    return {
        "requests": [
            {
                "image": {"content": content},
                "features": [
                    {"type": "IMAGE_PROPERTIES", "maxResults": 1},
                    # One face per photo.
                    {"type": "FACE_DETECTION", "maxResults": 1},
                ],
            }
            for content in images
        ]
    }


def _as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _dominant_color(rep: dict[str, Any]) -> Optional[DominantColor]:
    props = rep.get("imagePropertiesAnnotation")
    if not isinstance(props, dict):
        return None
    dominant = props.get("dominantColors")
    colors = dominant.get("colors") if isinstance(dominant, dict) else None
    if not isinstance(colors, list) or not colors:
        return None
    first = colors[0] if isinstance(colors[0], dict) else {}
    color = first.get("color") if isinstance(first.get("color"), dict) else {}
    # The Vision API omits zero-valued channels.
    return DominantColor(
        red=_as_float(color.get("red")),
        green=_as_float(color.get("green")),
        blue=_as_float(color.get("blue")),
    )


def signal_from_response(rep: Any) -> ImageSignal:
    if not isinstance(rep, dict):
        return ImageSignal()

    faces = rep.get("faceAnnotations")
    face = faces[0] if isinstance(faces, list) and faces and isinstance(faces[0], dict) else None

    roll: Optional[float] = None
    if face is not None and face.get("rollAngle") is not None:
        roll = _as_float(face.get("rollAngle"))

    return ImageSignal(
        dominant_color=_dominant_color(rep),
        face_detected=face is not None,
        detection_confidence=_as_float(face.get("detectionConfidence")) if face is not None else 0.0,
        roll_angle_degrees=roll,
    )


def parse_annotate_response(data: Any, *, expected: int = EXPECTED_IMAGE_COUNT) -> list[ImageSignal]:
    responses = data.get("responses") if isinstance(data, dict) else None
    if not isinstance(responses, list):
        responses = []

    signals: list[ImageSignal] = []
    for idx in range(expected):
        rep = responses[idx] if idx < len(responses) else None
        if rep is None:
            logger.warning("vision_response_missing index=%s", idx)
        elif isinstance(rep, dict) and rep.get("error"):
            logger.warning("vision_image_error index=%s error=%s", idx, rep.get("error"))
        signals.append(signal_from_response(rep))
    return signals


async def annotate_images(
    images: Any,
    *,
    api_key: Optional[str],
    base_url: str,
    timeout_s: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> list[ImageSignal]:
    payloads = validate_image_payloads(images)
    if not api_key:
        raise ConfigError("VISION_API_KEY is not set.", setting="VISION_API_KEY")

    url = f"{base_url.rstrip('/')}/v1/images:annotate"
    try:
        async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
            res = await client.post(url, params={"key": api_key}, json=build_annotate_request(payloads))
    except httpx.HTTPError as exc:
        logger.error("vision_call_failed err=%s", exc)
        raise UpstreamError(f"Vision API request failed: {exc}", upstream="vision") from exc

    if res.status_code >= 400:
        logger.warning("vision_call_rejected status=%s body=%s", res.status_code, res.text[:500])
        raise UpstreamError(
            "Vision API returned an error.",
            upstream="vision",
            upstream_status=res.status_code,
            body=res.text[:2000],
        )

    try:
        data = res.json()
    except ValueError:
        raise UpstreamError(
            "Vision API returned a non-JSON body.",
            upstream="vision",
            body=res.text[:2000],
        ) from None

    return parse_annotate_response(data, expected=len(payloads))
