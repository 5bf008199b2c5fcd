"""
AI client interface used by the analysis pipeline.

The pipeline only talks to ``PlantAIClient``; ``OpenRouterPlantAI`` is the
production implementation and tests substitute their own.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from openai import AsyncOpenAI

from app.config import DETECTION_MODEL, OPENROUTER_API_KEY, REMEDY_MODEL
from app.models import DetectionResult, ImagePayload, RemedyResult
from app.services.disease_detection import detect_disease
from app.services.llm import create_openai_client
from app.services.remedy_suggestions import suggest_remedies

logger = logging.getLogger(__name__)


class PlantAIClient(ABC):
    @abstractmethod
    async def detect(self, image: ImagePayload) -> DetectionResult:
        """
        Classify the plant and disease in the image.
        Raises DetectionFailure.
        """
        pass

    @abstractmethod
    async def suggest_remedies(self, disease: str, plant_description: str) -> RemedyResult:
        """
        Propose causes, remedies and supplements for a disease label.
        Raises RemedyFailure.
        """
        pass


class OpenRouterPlantAI(PlantAIClient):
    """Both stages served by chat-completion models behind an OpenAI-compatible API"""

    def __init__(
        self,
        client: Optional[AsyncOpenAI],
        detection_model: str = DETECTION_MODEL,
        remedy_model: str = REMEDY_MODEL,
    ):
        self.client = client
        self.detection_model = detection_model
        self.remedy_model = remedy_model

    @classmethod
    def from_config(cls) -> "OpenRouterPlantAI":
        client = None
        if OPENROUTER_API_KEY:
            client = create_openai_client()
        else:
            logger.warning("No AI API key configured; analysis requests will fail")
        return cls(client)

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def detect(self, image: ImagePayload) -> DetectionResult:
        return await detect_disease(self.client, image, model=self.detection_model)

    async def suggest_remedies(self, disease: str, plant_description: str) -> RemedyResult:
        return await suggest_remedies(
            self.client, disease, plant_description, model=self.remedy_model
        )

    async def close(self):
        if self.client:
            await self.client.close()
