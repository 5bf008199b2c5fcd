import logging
from typing import Any, Dict, Optional

from openai import AsyncOpenAI
from pydantic import ValidationError

from app.config import DETECTION_MODEL
from app.exceptions import DetectionFailure
from app.models import DetectionResult, ImagePayload
from app.prompts import DETECTION_PROMPT, DETECTION_SYSTEM_PROMPT
from app.services.llm import request_json

logger = logging.getLogger(__name__)


def _normalise_confidence(value: Any) -> float:
    """Accept 0-1 floats, percentages (77 or "77%") and numeric strings"""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"invalid confidence: {value!r}")
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    confidence = float(value)
    if 1.0 < confidence <= 100.0:
        confidence = confidence / 100.0
    return confidence


def parse_detection(data: Dict[str, Any]) -> DetectionResult:
    """Validate the detection JSON; every field must be present"""
    missing = [k for k in ("plantName", "disease", "confidence") if k not in data]
    if missing:
        raise DetectionFailure(f"Detection response missing fields: {', '.join(missing)}")

    try:
        return DetectionResult(
            plant_name=str(data["plantName"] or "").strip(),
            disease=str(data["disease"] or "").strip(),
            confidence=_normalise_confidence(data["confidence"]),
        )
    except (ValueError, TypeError, ValidationError) as e:
        raise DetectionFailure(f"Detection response is unusable: {e}") from e


async def detect_disease(
    client: Optional[AsyncOpenAI],
    image: ImagePayload,
    model: str = DETECTION_MODEL,
) -> DetectionResult:
    """Identify the plant and any visible disease in ``image``.

    The image travels as a data URI next to the pathology prompt; the model is
    asked for ``{plantName, disease, confidence}`` and the answer is validated
    into a ``DetectionResult``. Raises ``DetectionFailure`` on any error.
    """
    logger.info(f"Starting plant disease detection with {model}")

    if not client:
        logger.error("AI API key not configured for detection")
        raise DetectionFailure("Disease detection service not configured")

    messages = [
        {"role": "system", "content": DETECTION_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": DETECTION_PROMPT},
                {"type": "image_url", "image_url": {"url": image.to_data_uri()}},
            ],
        },
    ]

    data = await request_json(client, model, messages, DetectionFailure)
    result = parse_detection(data)

    logger.info(
        f"Detected plant: {result.plant_name or '-'} "
        f"(Disease: {result.disease or '-'}, Confidence: {result.confidence:.2f})"
    )
    return result
