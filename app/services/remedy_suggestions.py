import logging
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from app.config import REMEDY_MODEL
from app.exceptions import RemedyFailure
from app.models import NO_DISEASE, RemedyResult
from app.prompts import REMEDY_SYSTEM_PROMPT, build_remedy_prompt
from app.services.llm import request_json
from app.utils.text_processing import clean_string_list

logger = logging.getLogger(__name__)


def parse_remedies(data: Dict[str, Any], disease: str) -> RemedyResult:
    """
    Build a RemedyResult from the model JSON.

    Causes and remedies default to empty lists. Supplements are kept only for a
    real disease and only when non-empty. Maintenance advice (no disease) must
    contain at least one remedy.
    """
    try:
        causes = clean_string_list(data.get("possibleCauses") or data.get("causes"))
        remedies = clean_string_list(data.get("remedies"))
        supplements = clean_string_list(data.get("supplements"))
    except ValueError as e:
        raise RemedyFailure(f"Remedy response is unusable: {e}") from e

    if disease == NO_DISEASE:
        if not remedies:
            raise RemedyFailure("Model returned no maintenance guidance")
        supplements = []

    return RemedyResult(
        possible_causes=causes,
        remedies=remedies,
        supplements=supplements or None,
    )


async def suggest_remedies(
    client: Optional[AsyncOpenAI],
    disease: str,
    plant_description: str,
    model: str = REMEDY_MODEL,
) -> RemedyResult:
    """Ask the model for causes, remedies and supplements for ``disease``"""
    branch = "maintenance" if disease == NO_DISEASE else "treatment"
    logger.info(f"Requesting {branch} advice with {model} for: {disease}")

    if not client:
        logger.error("AI API key not configured for remedy suggestions")
        raise RemedyFailure("Remedy suggestion service not configured")

    messages = [
        {"role": "system", "content": REMEDY_SYSTEM_PROMPT},
        {"role": "user", "content": build_remedy_prompt(disease, plant_description)},
    ]

    data = await request_json(client, model, messages, RemedyFailure)
    result = parse_remedies(data, disease)

    logger.info(
        f"Remedies ready: {len(result.possible_causes)} causes, {len(result.remedies)} remedies, "
        f"{len(result.supplements or [])} supplements"
    )
    return result
