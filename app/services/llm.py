import asyncio
import logging
from typing import Any, Dict, List, Type

import httpx
from openai import APIError, AsyncOpenAI

from app.config import (
    AI_BASE_URL,
    API_CONNECT_TIMEOUT,
    API_TIMEOUT,
    APP_REFERER,
    APP_TITLE,
    OPENROUTER_API_KEY,
)
from app.exceptions import PlantAIError
from app.utils.text_processing import parse_model_json

logger = logging.getLogger(__name__)


def create_openai_client() -> AsyncOpenAI:
    """Create an OpenAI-compatible client for OpenRouter with explicit timeouts"""
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=API_CONNECT_TIMEOUT,
            read=API_TIMEOUT,
            write=API_TIMEOUT,
            pool=API_TIMEOUT
        )
    )
    client = AsyncOpenAI(
        base_url=AI_BASE_URL,
        api_key=OPENROUTER_API_KEY,
        http_client=http_client,
    )
    logger.info(f"AI client initialized ({AI_BASE_URL}) with {API_TIMEOUT}s timeout")
    return client


async def request_json(
    client: AsyncOpenAI,
    model: str,
    messages: List[Dict[str, Any]],
    failure: Type[PlantAIError],
    max_tokens: int = 2048,
) -> Dict[str, Any]:
    """
    Run one chat completion and parse its answer as a JSON object.
    Any transport, API or parsing problem is raised as ``failure``.
    """
    try:
        response = await asyncio.wait_for(
            client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                extra_headers={
                    "HTTP-Referer": APP_REFERER,
                    "X-Title": APP_TITLE,
                },
            ),
            timeout=API_TIMEOUT
        )
    except asyncio.TimeoutError as e:
        logger.error(f"{model} timeout after {API_TIMEOUT} seconds")
        raise failure(f"Model call timed out after {API_TIMEOUT:.0f}s") from e
    except (httpx.TimeoutException, httpx.ConnectError) as e:
        logger.error(f"HTTP error calling {model}: {e}")
        raise failure(f"Could not reach the model service: {e}") from e
    except APIError as e:
        logger.error(f"API error from {model}: {e}")
        raise failure(f"Model service error: {e}") from e

    if not response.choices or not response.choices[0].message.content:
        raise failure("Model returned an empty response")

    raw_text = response.choices[0].message.content
    logger.info(f"{model} raw response: {raw_text[:300]}...")

    try:
        return parse_model_json(raw_text)
    except ValueError as e:
        logger.warning(f"Failed to parse JSON from response: {e}")
        raise failure(f"Malformed model response: {e}") from e
